import pydantic
import pytest

from aremxyplug.bills.requests import (
    AirtimePurchase,
    DataPurchase,
    EducationPurchase,
    ElectricityPurchase,
    SmileDataPurchase,
    SpectranetDataPurchase,
    TvPurchase,
)


def test_electricity_accepts_camel_case_keys():
    request = ElectricityPurchase.model_validate(
        {"requestId": "req-9", "amount": 2000, "discoType": "EKEDC", "meterNo": 4512345678, "meterType": "PostPaid"}
    )

    assert request.request_id == "req-9"
    assert request.meter_no == "4512345678"
    assert request.meter_type == "postpaid"
    assert request.user_identifier == "4512345678"


@pytest.mark.parametrize("amount", [0, -50])
def test_amount_must_be_positive(electricity_payload, amount):
    with pytest.raises(pydantic.ValidationError):
        ElectricityPurchase.model_validate(dict(electricity_payload, amount=amount))


def test_request_id_is_required(electricity_payload):
    payload = {k: v for k, v in electricity_payload.items() if k != "request_id"}

    with pytest.raises(pydantic.ValidationError):
        ElectricityPurchase.model_validate(payload)


@pytest.mark.parametrize("request_id", ["transactions", "Transactions", "req/1"])
def test_request_id_must_be_addressable_by_lookup_route(electricity_payload, request_id):
    with pytest.raises(pydantic.ValidationError):
        ElectricityPurchase.model_validate(dict(electricity_payload, request_id=request_id))


def test_user_identifier_prefers_email_then_phone():
    with_email = DataPurchase(
        request_id="r1", amount=100, network="MTN", phone_number="0803", plan_code="1", phone="0803", email="A@B.com"
    )
    with_phone = DataPurchase(
        request_id="r2", amount=100, network="MTN", phone_number="0803", plan_code="1", phone="0809"
    )

    assert with_email.user_identifier == "a@b.com"
    assert with_phone.user_identifier == "0809"


def test_integer_phone_gets_leading_zero():
    request = AirtimePurchase(request_id="r1", amount=100, network="MTN", phone_number=8031234567, phone=8031234567)

    assert request.phone == "08031234567"
    assert request.phone_number == "8031234567"
    assert request.airtime_type == "VTU"


def test_education_quantity_bounds():
    with pytest.raises(pydantic.ValidationError):
        EducationPurchase(request_id="r1", amount=100, exam_type="waecdirect", quantity=11)


def test_tv_change_requires_bouquet():
    with pytest.raises(pydantic.ValidationError):
        TvPurchase(request_id="r1", amount=100, decoder_type="gotv", smartcard_number="7033211111")


def test_tv_renew_without_bouquet():
    request = TvPurchase(
        request_id="r1", amount=100, decoder_type="GOTV", smartcard_number="7033211111", subscription_type="renew"
    )

    assert request.decoder_type == "gotv"
    assert request.account_reference == "7033211111"


def test_tv_unknown_decoder_rejected():
    with pytest.raises(pydantic.ValidationError):
        TvPurchase(request_id="r1", amount=100, decoder_type="netflix", smartcard_number="1", bouquet_code="x")


def test_smile_account_is_the_account_reference():
    request = SmileDataPurchase.model_validate(
        {"requestId": "s1", "amount": 1000, "accountId": 8011223344, "planCode": 624}
    )

    assert request.account_id == "8011223344"
    assert request.plan_code == "624"
    assert request.user_identifier == "8011223344"


def test_spectranet_quantity_bounds():
    with pytest.raises(pydantic.ValidationError):
        SpectranetDataPurchase(
            request_id="s1", amount=100, phone_number="0809", plan_code="spectranet-7000", quantity=0
        )
