"""Translate raw provider responses into canonical transaction records.

Each ``map_*_response`` function is pure: it validates the raw payload against the
provider's schema, then builds the family's record using the original purchase
request for the fields the provider does not echo back (variation codes,
contact details). A payload missing a required block raises ``MappingError``.

The ``build_failed_*_record`` functions produce the record persisted when no
usable provider response exists (transport failure or mapping failure).
"""

import logging
from collections.abc import Mapping
from typing import Any, List, Optional, TypeVar

import pydantic

from aremxyplug.bills.exceptions import MappingError
from aremxyplug.bills.provider_schemas import (
    AirtimeProviderResponse,
    DataProviderResponse,
    EducationProviderResponse,
    ElectricityProviderResponse,
    ProviderPayload,
    SmileProviderResponse,
    SpectranetProviderResponse,
    TvProviderResponse,
    VTPassCard,
)
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
    TransactionStatus,
    TvTransaction,
)

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=ProviderPayload)

SUCCESS_STATUSES = frozenset({"completed", "successful", "success", "delivered"})
PENDING_STATUSES = frozenset({"pending", "initiated", "processing"})
FAILED_STATUSES = frozenset({"failed", "fail", "reversed", "declined"})


def normalize_status(raw_status: Optional[str]) -> TransactionStatus:
    """Map a provider status word onto the canonical enum. Unrecognized values are failures."""
    value = (raw_status or "").strip().lower()
    if value in SUCCESS_STATUSES:
        return TransactionStatus.SUCCESS
    if value in PENDING_STATUSES:
        return TransactionStatus.PENDING
    if value not in FAILED_STATUSES:
        logger.warning(f"Unrecognized provider status {raw_status!r}; recording as failed")
    return TransactionStatus.FAILED


def _status_failure_reason(raw_status: str, status: TransactionStatus, description: str = "") -> Optional[str]:
    if status is not TransactionStatus.FAILED:
        return None
    reason = f"Provider reported status '{raw_status}'"
    return f"{reason}: {description}" if description else reason


def format_bill_generated(unit_price: float, commission: float) -> str:
    return f"Unit price: {unit_price:.2f} | Commission: {commission:.2f}"


def compose_descriptor(product_name: str, variation: str) -> str:
    parts = [part.strip() for part in (product_name, variation) if part and part.strip()]
    return " - ".join(parts)


def _parse(schema: type[PayloadT], raw: Any, family: str) -> PayloadT:
    if not isinstance(raw, Mapping):
        raise MappingError(f"{family} provider response is not a JSON object", family=family)
    try:
        return schema.model_validate(dict(raw))
    except pydantic.ValidationError as exc:
        missing = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
        raise MappingError(
            f"{family} provider response is missing or has invalid fields: {', '.join(missing)}",
            family=family,
            missing=missing,
        ) from exc


def _checked_amount(amount: float, family: str) -> float:
    if amount < 0:
        raise MappingError(
            f"{family} provider response has a negative amount ({amount})", family=family, missing=["amount"]
        )
    return amount


def _card_lines(cards: List[VTPassCard]) -> List[str]:
    return [f"{card.serial}:{card.pin}" for card in cards]


def _common_fields(request: PurchaseRequest) -> dict[str, Any]:
    return dict(
        request_id=request.request_id,
        user_identifier=request.user_identifier,
        phone=request.phone,
        email=request.email,
    )


# --- Electricity --- #


def map_electricity_response(raw: Mapping[str, Any], request: ElectricityPurchase) -> ElectricityTransaction:
    response = _parse(ElectricityProviderResponse, raw, "electricity")
    details = response.details
    status = normalize_status(details.status)

    token = response.token
    if not token and response.purchased_code:
        # "Token : 4275 5467 ..." -> "4275 5467 ..."
        token = response.purchased_code.split(":", 1)[-1].strip()

    return ElectricityTransaction(
        **_common_fields(request),
        transaction_id=details.transaction_id,
        status=status,
        amount=_checked_amount(response.amount, "electricity"),
        product_descriptor=compose_descriptor(details.product_name, request.disco_type),
        failure_reason=_status_failure_reason(details.status, status, response.response_description),
        transaction_date=response.date,
        disco_type=request.disco_type,
        meter_number=details.unique_element or request.meter_no,
        meter_type=(details.type if details.type.lower() in ("prepaid", "postpaid") else request.meter_type).lower(),
        customer_name=response.customer_name,
        product=details.product_name,
        bill_generated=format_bill_generated(details.unit_price, details.commission),
        order_id=response.order_id,
        token=token or None,
        units=response.units,
    )


def build_failed_electricity_record(request: ElectricityPurchase, reason: str) -> ElectricityTransaction:
    return ElectricityTransaction(
        **_common_fields(request),
        status=TransactionStatus.FAILED,
        amount=request.amount,
        product_descriptor=compose_descriptor("Electricity", request.disco_type),
        failure_reason=reason,
        disco_type=request.disco_type,
        meter_number=request.meter_no,
        meter_type=request.meter_type,
    )


# --- Data --- #


def map_data_response(raw: Mapping[str, Any], request: DataPurchase) -> DataTransaction:
    response = _parse(DataProviderResponse, raw, "data")
    status = normalize_status(response.status)

    return DataTransaction(
        **_common_fields(request),
        transaction_id=response.reference,
        status=status,
        amount=_checked_amount(response.plan_amount, "data"),
        product_descriptor=compose_descriptor(response.plan_name or "Data", request.plan_code),
        failure_reason=_status_failure_reason(response.status, status, response.api_response or ""),
        transaction_date=response.create_date,
        network=response.plan_network or request.network,
        phone_number=response.mobile_number or request.phone_number,
        plan_code=request.plan_code,
        plan_name=response.plan_name,
    )


def build_failed_data_record(request: DataPurchase, reason: str) -> DataTransaction:
    return DataTransaction(
        **_common_fields(request),
        status=TransactionStatus.FAILED,
        amount=request.amount,
        product_descriptor=compose_descriptor("Data", request.plan_code),
        failure_reason=reason,
        network=request.network,
        phone_number=request.phone_number,
        plan_code=request.plan_code,
    )


# --- Airtime --- #


def map_airtime_response(raw: Mapping[str, Any], request: AirtimePurchase) -> AirtimeTransaction:
    response = _parse(AirtimeProviderResponse, raw, "airtime")
    status = normalize_status(response.status)
    charged = response.paid_amount if response.paid_amount is not None else response.amount
    network = response.plan_network or request.network

    return AirtimeTransaction(
        **_common_fields(request),
        transaction_id=response.reference,
        status=status,
        amount=_checked_amount(charged, "airtime"),
        product_descriptor=compose_descriptor(f"{network} Airtime", response.airtime_type or request.airtime_type),
        failure_reason=_status_failure_reason(response.status, status, response.api_response or ""),
        transaction_date=response.create_date,
        network=network,
        phone_number=response.mobile_number or request.phone_number,
        airtime_type=response.airtime_type or request.airtime_type,
    )


def build_failed_airtime_record(request: AirtimePurchase, reason: str) -> AirtimeTransaction:
    return AirtimeTransaction(
        **_common_fields(request),
        status=TransactionStatus.FAILED,
        amount=request.amount,
        product_descriptor=compose_descriptor(f"{request.network} Airtime", request.airtime_type),
        failure_reason=reason,
        network=request.network,
        phone_number=request.phone_number,
        airtime_type=request.airtime_type,
    )


# --- Education --- #


def map_education_response(raw: Mapping[str, Any], request: EducationPurchase) -> EducationTransaction:
    response = _parse(EducationProviderResponse, raw, "education")
    details = response.details
    status = normalize_status(details.status)

    pin_lines = _card_lines(response.cards)
    pin_lines.extend(response.tokens)
    if not pin_lines and response.purchased_code:
        pin_lines.append(response.purchased_code)

    return EducationTransaction(
        **_common_fields(request),
        transaction_id=details.transaction_id,
        status=status,
        amount=_checked_amount(response.amount, "education"),
        product_descriptor=compose_descriptor(details.product_name, request.exam_type),
        failure_reason=_status_failure_reason(details.status, status, response.response_description),
        transaction_date=response.date,
        exam_type=request.exam_type,
        quantity=details.quantity or request.quantity,
        pins="\n".join(pin_lines) or None,
    )


def build_failed_education_record(request: EducationPurchase, reason: str) -> EducationTransaction:
    return EducationTransaction(
        **_common_fields(request),
        status=TransactionStatus.FAILED,
        amount=request.amount,
        product_descriptor=compose_descriptor("Education PIN", request.exam_type),
        failure_reason=reason,
        exam_type=request.exam_type,
        quantity=request.quantity,
    )


# --- TV subscription --- #


def map_tv_response(raw: Mapping[str, Any], request: TvPurchase) -> TvTransaction:
    response = _parse(TvProviderResponse, raw, "tv")
    details = response.details
    status = normalize_status(details.status)
    variation = request.bouquet_code or request.subscription_type

    return TvTransaction(
        **_common_fields(request),
        transaction_id=details.transaction_id,
        status=status,
        amount=_checked_amount(response.amount, "tv"),
        product_descriptor=compose_descriptor(details.product_name, variation),
        failure_reason=_status_failure_reason(details.status, status, response.response_description),
        transaction_date=response.date,
        decoder_type=request.decoder_type,
        smartcard_number=details.unique_element or request.smartcard_number,
        bouquet_code=request.bouquet_code,
        subscription_type=request.subscription_type,
    )


def build_failed_tv_record(request: TvPurchase, reason: str) -> TvTransaction:
    return TvTransaction(
        **_common_fields(request),
        status=TransactionStatus.FAILED,
        amount=request.amount,
        product_descriptor=compose_descriptor(
            request.decoder_type.upper(), request.bouquet_code or request.subscription_type
        ),
        failure_reason=reason,
        decoder_type=request.decoder_type,
        smartcard_number=request.smartcard_number,
        bouquet_code=request.bouquet_code,
        subscription_type=request.subscription_type,
    )


# --- Smile data --- #


def map_smile_response(raw: Mapping[str, Any], request: SmileDataPurchase) -> SmileDataTransaction:
    response = _parse(SmileProviderResponse, raw, "smile")
    details = response.details
    status = normalize_status(details.status)

    return SmileDataTransaction(
        **_common_fields(request),
        transaction_id=details.transaction_id,
        status=status,
        amount=_checked_amount(response.amount, "smile"),
        product_descriptor=compose_descriptor(details.product_name or "Smile Data", request.plan_code),
        failure_reason=_status_failure_reason(details.status, status, response.response_description),
        transaction_date=response.date,
        account_id=details.unique_element or request.account_id,
        plan_code=request.plan_code,
        plan_name=details.product_name,
    )


def build_failed_smile_record(request: SmileDataPurchase, reason: str) -> SmileDataTransaction:
    return SmileDataTransaction(
        **_common_fields(request),
        status=TransactionStatus.FAILED,
        amount=request.amount,
        product_descriptor=compose_descriptor("Smile Data", request.plan_code),
        failure_reason=reason,
        account_id=request.account_id,
        plan_code=request.plan_code,
    )


# --- Spectranet data --- #


def map_spectranet_response(raw: Mapping[str, Any], request: SpectranetDataPurchase) -> SpectranetDataTransaction:
    response = _parse(SpectranetProviderResponse, raw, "spectranet")
    details = response.details
    status = normalize_status(details.status)

    pin_lines = _card_lines(response.cards)
    if not pin_lines and response.purchased_code:
        pin_lines.append(response.purchased_code)

    return SpectranetDataTransaction(
        **_common_fields(request),
        transaction_id=details.transaction_id,
        status=status,
        amount=_checked_amount(response.amount, "spectranet"),
        product_descriptor=compose_descriptor(details.product_name or "Spectranet Data", request.plan_code),
        failure_reason=_status_failure_reason(details.status, status, response.response_description),
        transaction_date=response.date,
        phone_number=request.phone_number,
        plan_code=request.plan_code,
        plan_name=details.product_name,
        quantity=details.quantity or request.quantity,
        pins="\n".join(pin_lines) or None,
    )


def build_failed_spectranet_record(request: SpectranetDataPurchase, reason: str) -> SpectranetDataTransaction:
    return SpectranetDataTransaction(
        **_common_fields(request),
        status=TransactionStatus.FAILED,
        amount=request.amount,
        product_descriptor=compose_descriptor("Spectranet Data", request.plan_code),
        failure_reason=reason,
        phone_number=request.phone_number,
        plan_code=request.plan_code,
        quantity=request.quantity,
    )
