from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from aremxyplug.bills import mappers
from aremxyplug.bills.requests import (
    AirtimePurchase,
    DataPurchase,
    EducationPurchase,
    ElectricityPurchase,
    PurchaseRequest,
    SmileDataPurchase,
    SpectranetDataPurchase,
    TvPurchase,
)
from aremxyplug.db.sqlmodel_models import (
    AirtimeTransaction,
    DataTransaction,
    EducationTransaction,
    ElectricityTransaction,
    SmileDataTransaction,
    SpectranetDataTransaction,
    TransactionRecordBase,
    TvTransaction,
)


@dataclass(frozen=True)
class BillFamily:
    """Everything the handler and router need to know about one category of bill.

    Attributes:
        name: Short identifier used in logs and to pick the provider client.
        route_prefix: Path segment under /api/v1.
        request_model: Pydantic model that validates an inbound purchase.
        record_model: SQLModel table holding the family's canonical records.
        map_response: Pure mapper from a raw provider response plus the request to a record.
        build_failed_record: Builds the failed record persisted when no provider outcome is usable.
    """

    name: str
    route_prefix: str
    request_model: type[PurchaseRequest]
    record_model: type[TransactionRecordBase]
    map_response: Callable[[Mapping[str, Any], Any], TransactionRecordBase]
    build_failed_record: Callable[[Any, str], TransactionRecordBase]


ELECTRICITY = BillFamily(
    name="electricity",
    route_prefix="/electric-bill",
    request_model=ElectricityPurchase,
    record_model=ElectricityTransaction,
    map_response=mappers.map_electricity_response,
    build_failed_record=mappers.build_failed_electricity_record,
)

DATA = BillFamily(
    name="data",
    route_prefix="/data",
    request_model=DataPurchase,
    record_model=DataTransaction,
    map_response=mappers.map_data_response,
    build_failed_record=mappers.build_failed_data_record,
)

AIRTIME = BillFamily(
    name="airtime",
    route_prefix="/airtime",
    request_model=AirtimePurchase,
    record_model=AirtimeTransaction,
    map_response=mappers.map_airtime_response,
    build_failed_record=mappers.build_failed_airtime_record,
)

EDUCATION = BillFamily(
    name="education",
    route_prefix="/edu",
    request_model=EducationPurchase,
    record_model=EducationTransaction,
    map_response=mappers.map_education_response,
    build_failed_record=mappers.build_failed_education_record,
)

TV = BillFamily(
    name="tv",
    route_prefix="/tvsub",
    request_model=TvPurchase,
    record_model=TvTransaction,
    map_response=mappers.map_tv_response,
    build_failed_record=mappers.build_failed_tv_record,
)

SMILE = BillFamily(
    name="smile",
    route_prefix="/data/smile",
    request_model=SmileDataPurchase,
    record_model=SmileDataTransaction,
    map_response=mappers.map_smile_response,
    build_failed_record=mappers.build_failed_smile_record,
)

SPECTRANET = BillFamily(
    name="spectranet",
    route_prefix="/data/spectranet",
    request_model=SpectranetDataPurchase,
    record_model=SpectranetDataTransaction,
    map_response=mappers.map_spectranet_response,
    build_failed_record=mappers.build_failed_spectranet_record,
)

# /data/smile and /data/spectranet must be registered ahead of /data
ALL_FAMILIES: tuple[BillFamily, ...] = (SMILE, SPECTRANET, DATA, AIRTIME, EDUCATION, TV, ELECTRICITY)

FAMILIES_BY_NAME: dict[str, BillFamily] = {family.name: family for family in ALL_FAMILIES}
