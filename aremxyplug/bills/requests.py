from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class PurchaseRequest(BaseModel):
    """Fields every purchase request carries.

    ``request_id`` is the client's idempotency key. Replaying a request with the
    same id never creates a second transaction. Both snake_case and camelCase
    keys are accepted.
    """

    model_config = ConfigDict(str_strip_whitespace=True, alias_generator=to_camel, populate_by_name=True)

    request_id: str = Field(min_length=1, max_length=64)
    amount: float = Field(gt=0)
    phone: str = Field(default="", max_length=32)
    email: str = Field(default="", max_length=255)

    @field_validator("request_id")
    @classmethod
    def usable_in_lookup_path(cls, value: str) -> str:
        # Records are fetched at GET {family}/{request_id}; "transactions" is the listing route
        if "/" in value or value.lower() == "transactions":
            raise ValueError("request_id must not contain '/' or be the reserved word 'transactions'")
        return value

    @field_validator("phone", mode="before")
    @classmethod
    def phone_as_string(cls, value):
        # Some clients send phone numbers as JSON integers
        if isinstance(value, int):
            return f"0{value}" if len(str(value)) == 10 else str(value)
        return value

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.lower()

    @property
    def account_reference(self) -> str:
        """The product-side account the purchase is credited to (meter, smartcard, line)."""
        return ""

    @property
    def user_identifier(self) -> str:
        """Partition key for per-user listing: email, then phone, then the account reference."""
        return self.email or self.phone or self.account_reference


class ElectricityPurchase(PurchaseRequest):
    disco_type: str = Field(min_length=1)  # e.g. "ikeja-electric", "IKEDC"
    meter_no: str = Field(min_length=1, max_length=32)
    meter_type: Literal["prepaid", "postpaid"] = Field(default="prepaid")

    @field_validator("meter_no", mode="before")
    @classmethod
    def meter_as_string(cls, value):
        return str(value) if isinstance(value, int) else value

    @field_validator("meter_type", mode="before")
    @classmethod
    def lowercase_meter_type(cls, value):
        return value.lower() if isinstance(value, str) else value

    @property
    def account_reference(self) -> str:
        return self.meter_no


class DataPurchase(PurchaseRequest):
    network: str = Field(min_length=1)
    phone_number: str = Field(min_length=1, max_length=32)
    plan_code: str = Field(min_length=1)

    @field_validator("phone_number", "plan_code", mode="before")
    @classmethod
    def coerce_to_string(cls, value):
        return str(value) if isinstance(value, int) else value

    @property
    def account_reference(self) -> str:
        return self.phone_number


class AirtimePurchase(PurchaseRequest):
    network: str = Field(min_length=1)
    phone_number: str = Field(min_length=1, max_length=32)
    airtime_type: str = Field(default="VTU")

    @field_validator("phone_number", mode="before")
    @classmethod
    def coerce_to_string(cls, value):
        return str(value) if isinstance(value, int) else value

    @property
    def account_reference(self) -> str:
        return self.phone_number


class EducationPurchase(PurchaseRequest):
    exam_type: str = Field(min_length=1)  # VTpass variation code, e.g. "waecdirect"
    quantity: int = Field(default=1, ge=1, le=10)
    service_id: Optional[str] = Field(default=None)  # defaults to "waec"


class TvPurchase(PurchaseRequest):
    decoder_type: Literal["dstv", "gotv", "startimes", "showmax"] = Field()
    smartcard_number: str = Field(min_length=1, max_length=32)
    bouquet_code: str = Field(default="")
    subscription_type: Literal["change", "renew"] = Field(default="change")

    @field_validator("decoder_type", mode="before")
    @classmethod
    def lowercase_decoder(cls, value):
        return value.lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def bouquet_required_for_change(self):
        if self.subscription_type == "change" and not self.bouquet_code:
            raise ValueError("bouquet_code is required when subscription_type is 'change'")
        return self

    @property
    def account_reference(self) -> str:
        return self.smartcard_number


class SmileDataPurchase(PurchaseRequest):
    account_id: str = Field(min_length=1, max_length=32)  # Smile customer account number or registered phone
    plan_code: str = Field(min_length=1)  # VTpass variation code, e.g. "624"

    @field_validator("account_id", "plan_code", mode="before")
    @classmethod
    def coerce_to_string(cls, value):
        return str(value) if isinstance(value, int) else value

    @property
    def account_reference(self) -> str:
        return self.account_id


class SpectranetDataPurchase(PurchaseRequest):
    phone_number: str = Field(min_length=1, max_length=32)
    plan_code: str = Field(min_length=1)  # VTpass variation code, e.g. "spectranet-7000"
    quantity: int = Field(default=1, ge=1, le=10)

    @field_validator("phone_number", "plan_code", mode="before")
    @classmethod
    def coerce_to_string(cls, value):
        return str(value) if isinstance(value, int) else value

    @property
    def account_reference(self) -> str:
        return self.phone_number
