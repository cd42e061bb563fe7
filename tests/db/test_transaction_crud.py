from typing import Any, Dict

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from aremxyplug.bills.exceptions import TransactionNotFoundError
from aremxyplug.db.exceptions import AremxyDBIntegrityError
from aremxyplug.db.sqlmodel_models import (
    AirtimeTransaction,
    DataTransaction,
    EducationTransaction,
    ElectricityTransaction,
    SmileDataTransaction,
    SpectranetDataTransaction,
    TransactionRecordBase,
    TransactionStatus,
    TvTransaction,
)
from aremxyplug.db.transaction_crud import TransactionRepository

pytestmark = pytest.mark.asyncio

# Minimal family-specific columns for each table
FAMILY_FIELDS: Dict[type, Dict[str, Any]] = {
    ElectricityTransaction: {"disco_type": "ikeja-electric", "meter_number": "1234567890"},
    DataTransaction: {"network": "MTN", "phone_number": "08012345678", "plan_code": "7"},
    AirtimeTransaction: {"network": "GLO", "phone_number": "08055555555"},
    EducationTransaction: {"exam_type": "waecdirect"},
    TvTransaction: {"decoder_type": "gotv", "smartcard_number": "7033211111"},
    SmileDataTransaction: {"account_id": "08011223344", "plan_code": "624"},
    SpectranetDataTransaction: {"phone_number": "08011223344", "plan_code": "spectranet-7000"},
}

ALL_MODELS = list(FAMILY_FIELDS)


def make_record(model: type, **overrides: Any) -> TransactionRecordBase:
    fields: Dict[str, Any] = {
        "request_id": "req-1",
        "user_identifier": "ada@example.com",
        "status": TransactionStatus.PENDING,
        "amount": 1000.0,
        **FAMILY_FIELDS[model],
    }
    fields.update(overrides)
    return model(**fields)


@pytest.mark.parametrize("model", ALL_MODELS, ids=lambda m: m.__tablename__)
async def test_save_inserts_new_record(async_session: AsyncSession, model):
    repo = TransactionRepository(async_session, model)

    stored = await repo.save(make_record(model, status=TransactionStatus.SUCCESS, transaction_id="TX-1"))

    assert stored.id is not None
    fetched = await repo.get_by_id("TX-1")
    assert fetched.request_id == "req-1"
    assert fetched.status == TransactionStatus.SUCCESS


@pytest.mark.parametrize("model", ALL_MODELS, ids=lambda m: m.__tablename__)
async def test_save_twice_keeps_one_record(async_session: AsyncSession, model):
    repo = TransactionRepository(async_session, model)

    first = await repo.save(make_record(model, status=TransactionStatus.SUCCESS, transaction_id="TX-1"))
    second = await repo.save(make_record(model, status=TransactionStatus.SUCCESS, transaction_id="TX-1"))

    assert second.id == first.id
    assert len(await repo.list_by_user("ada@example.com")) == 1


async def test_pending_record_takes_terminal_outcome(async_session: AsyncSession):
    repo = TransactionRepository(async_session, ElectricityTransaction)
    pending = await repo.save(make_record(ElectricityTransaction))
    assert pending.transaction_id == ""

    outcome = make_record(
        ElectricityTransaction,
        status=TransactionStatus.SUCCESS,
        transaction_id="TX-99",
        amount=5000.0,
        token="4275 5467",
        bill_generated="Unit price: 5000.00 | Commission: 50.00",
    )
    updated = await repo.save(outcome)

    assert updated.id == pending.id
    assert updated.status == TransactionStatus.SUCCESS
    assert updated.transaction_id == "TX-99"
    assert updated.amount == 5000.0
    assert updated.token == "4275 5467"
    assert updated.updated_at >= updated.created_at


async def test_terminal_record_is_never_rewritten(async_session: AsyncSession):
    repo = TransactionRepository(async_session, DataTransaction)
    await repo.save(make_record(DataTransaction, status=TransactionStatus.FAILED, failure_reason="timed out"))

    result = await repo.save(make_record(DataTransaction, status=TransactionStatus.SUCCESS, transaction_id="TX-2"))

    assert result.status == TransactionStatus.FAILED
    assert result.transaction_id == ""
    assert result.failure_reason == "timed out"


async def test_transaction_id_is_not_replaced_once_set(async_session: AsyncSession):
    repo = TransactionRepository(async_session, TvTransaction)
    await repo.save(make_record(TvTransaction, transaction_id="TX-FIRST"))

    result = await repo.save(make_record(TvTransaction, status=TransactionStatus.SUCCESS, transaction_id="TX-OTHER"))

    assert result.status == TransactionStatus.SUCCESS
    assert result.transaction_id == "TX-FIRST"


async def test_save_resolves_insert_race_by_updating(async_session: AsyncSession, mocker):
    repo = TransactionRepository(async_session, AirtimeTransaction)
    await repo.save(make_record(AirtimeTransaction))

    real_get = repo.get_by_request_id
    calls = []

    async def racing_get(request_id: str):
        # First lookup misses, as if the competing insert had not committed yet
        calls.append(request_id)
        if len(calls) == 1:
            return None
        return await real_get(request_id)

    mocker.patch.object(repo, "get_by_request_id", side_effect=racing_get)

    result = await repo.save(make_record(AirtimeTransaction, status=TransactionStatus.SUCCESS, transaction_id="TX-3"))

    assert result.status == TransactionStatus.SUCCESS
    assert result.transaction_id == "TX-3"
    assert len(await repo.list_by_user("ada@example.com")) == 1


async def test_claim_reports_only_the_first_insert(async_session: AsyncSession):
    repo = TransactionRepository(async_session, SmileDataTransaction)

    first, created = await repo.claim(make_record(SmileDataTransaction))
    second, created_again = await repo.claim(make_record(SmileDataTransaction, status=TransactionStatus.SUCCESS))

    assert created is True
    assert created_again is False
    assert second.id == first.id
    assert second.status == TransactionStatus.PENDING


async def test_claim_after_lost_insert_race_is_not_created(async_session: AsyncSession, mocker):
    repo = TransactionRepository(async_session, SpectranetDataTransaction)
    winner, _ = await repo.claim(make_record(SpectranetDataTransaction))
    winner_id = winner.id

    real_get = repo.get_by_request_id
    calls = []

    async def racing_get(request_id: str):
        calls.append(request_id)
        if len(calls) == 1:
            return None
        return await real_get(request_id)

    mocker.patch.object(repo, "get_by_request_id", side_effect=racing_get)

    stored, created = await repo.claim(make_record(SpectranetDataTransaction))

    assert created is False
    assert stored.id == winner_id
    assert len(await repo.list_by_user("ada@example.com")) == 1


async def test_save_rejects_negative_amount(async_session: AsyncSession):
    repo = TransactionRepository(async_session, EducationTransaction)

    with pytest.raises(AremxyDBIntegrityError):
        await repo.save(make_record(EducationTransaction, amount=-5.0))


async def test_get_by_id_matches_request_id(async_session: AsyncSession):
    repo = TransactionRepository(async_session, ElectricityTransaction)
    await repo.save(make_record(ElectricityTransaction, request_id="req-77"))

    record = await repo.get_by_id("req-77")

    assert record.request_id == "req-77"


@pytest.mark.parametrize("identifier", ["missing", ""])
async def test_get_by_id_not_found(async_session: AsyncSession, identifier):
    repo = TransactionRepository(async_session, ElectricityTransaction)

    with pytest.raises(TransactionNotFoundError):
        await repo.get_by_id(identifier)


async def test_list_by_user_in_insertion_order(async_session: AsyncSession):
    repo = TransactionRepository(async_session, DataTransaction)
    for request_id in ("b-req", "a-req", "c-req"):
        await repo.save(make_record(DataTransaction, request_id=request_id))
    await repo.save(make_record(DataTransaction, request_id="other", user_identifier="someone@else.com"))

    records = await repo.list_by_user("ada@example.com")

    assert [r.request_id for r in records] == ["b-req", "a-req", "c-req"]


async def test_list_by_user_unknown_user_is_empty(async_session: AsyncSession):
    repo = TransactionRepository(async_session, TvTransaction)

    assert await repo.list_by_user("nobody@example.com") == []


async def test_families_are_stored_separately(async_session: AsyncSession):
    data_repo = TransactionRepository(async_session, DataTransaction)
    airtime_repo = TransactionRepository(async_session, AirtimeTransaction)

    await data_repo.save(make_record(DataTransaction, request_id="shared-id"))
    await airtime_repo.save(make_record(AirtimeTransaction, request_id="shared-id"))

    assert len(await data_repo.list_by_user("ada@example.com")) == 1
    assert len(await airtime_repo.list_by_user("ada@example.com")) == 1
    assert data_repo.family_table == "data_transactions"
