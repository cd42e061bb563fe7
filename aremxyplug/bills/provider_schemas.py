from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

"""
Raw response shapes of the bill providers.

These types exist only so the mappers can validate a provider payload before
reading it. Nothing outside ``aremxyplug.bills.mappers`` should use them.

Example VTpass response (electricity, TV, education pins, Smile and Spectranet share this envelope):
{
  "code": "000",
  "content": {
    "transactions": {
      "status": "delivered",
      "product_name": "Ikeja Electric Payment - IKEDC",
      "unique_element": "1111111111111",
      "unit_price": 5000,
      "quantity": 1,
      "commission": 50,
      "type": "Electricity Bill",
      "email": "user@example.com",
      "phone": "08011111111",
      "transactionId": "17416290523437658468753547"
    }
  },
  "response_description": "TRANSACTION SUCCESSFUL",
  "requestId": "2025031216340001",
  "amount": 5000,
  "transaction_date": {"date": "2025-03-12 16:34:12.000000", "timezone_type": 3, "timezone": "Africa/Lagos"},
  "purchased_code": "Token : 4275 5467 0123 9876 1234",
  "customerName": "ADE JOHN",
  "token": "4275 5467 0123 9876 1234"
}

Example VTU data response:
{
  "id": 81913, "ident": "Data6d1e87f2b8c31", "network": 1, "mobile_number": "08012345678",
  "plan": 7, "Status": "successful", "plan_network": "MTN", "plan_name": "1.0GB",
  "plan_amount": "260.0", "create_date": "2025-03-12T16:34:12.412Z", "Ported_number": true
}
"""


class ProviderPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class VTPassTransactionDetails(ProviderPayload):
    status: str = Field()
    product_name: str = Field(default="")
    unique_element: str = Field(default="")
    unit_price: float = Field(default=0.0)
    commission: float = Field(default=0.0)
    quantity: int = Field(default=1)
    phone: str = Field(default="")
    email: str = Field(default="")
    type: str = Field(default="")
    transaction_id: str = Field(default="", alias="transactionId")

    @field_validator("unit_price", "commission", mode="before")
    @classmethod
    def null_as_zero(cls, value):
        return 0.0 if value in (None, "") else value


class VTPassContent(ProviderPayload):
    transactions: VTPassTransactionDetails = Field()


class VTPassTransactionDate(ProviderPayload):
    date: str = Field()


class VTPassResponse(ProviderPayload):
    code: str = Field()
    content: VTPassContent = Field()
    response_description: str = Field(default="")
    request_id: str = Field(default="", alias="requestId")
    amount: float = Field()
    transaction_date: Optional[VTPassTransactionDate] = Field(default=None)
    purchased_code: str = Field(default="")

    @model_validator(mode="before")
    @classmethod
    def lift_transactions_block(cls, data: Any) -> Any:
        # Accept {"transactions": {...}} at the top level as shorthand for content.transactions
        if isinstance(data, dict) and "content" not in data and "transactions" in data:
            data = dict(data)
            data["content"] = {"transactions": data.pop("transactions")}
        return data

    @field_validator("transaction_date", mode="before")
    @classmethod
    def wrap_plain_date(cls, value):
        if isinstance(value, str):
            return {"date": value}
        return value

    @property
    def details(self) -> VTPassTransactionDetails:
        return self.content.transactions

    @property
    def date(self) -> Optional[str]:
        return self.transaction_date.date if self.transaction_date else None


class ElectricityProviderResponse(VTPassResponse):
    customer_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("customerName", "customer_name"))
    token: Optional[str] = Field(default=None, validation_alias=AliasChoices("token", "mainToken", "Token"))
    order_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("orderId", "order_id"))
    units: Optional[str] = Field(default=None, validation_alias=AliasChoices("units", "Units"))


class VTPassCard(ProviderPayload):
    serial: str = Field(validation_alias=AliasChoices("Serial", "serial", "serialNumber"))
    pin: str = Field(validation_alias=AliasChoices("Pin", "pin"))
    expires_on: Optional[str] = Field(default=None, validation_alias=AliasChoices("expiresOn", "expires_on"))


class EducationProviderResponse(VTPassResponse):
    cards: List[VTPassCard] = Field(default_factory=list)
    tokens: List[str] = Field(default_factory=list)


class TvProviderResponse(VTPassResponse):
    pass


class SmileProviderResponse(VTPassResponse):
    pass


class SpectranetProviderResponse(VTPassResponse):
    cards: List[VTPassCard] = Field(default_factory=list)


class VTUResponse(ProviderPayload):
    id: Optional[int] = Field(default=None)
    ident: str = Field(default="")
    status: str = Field(validation_alias=AliasChoices("Status", "status"))
    plan_network: str = Field(default="")
    mobile_number: str = Field(default="")
    create_date: Optional[str] = Field(default=None)
    api_response: Optional[str] = Field(default=None)

    @property
    def reference(self) -> str:
        if self.ident:
            return self.ident
        return str(self.id) if self.id is not None else ""


class DataProviderResponse(VTUResponse):
    plan_name: str = Field(default="")
    plan_amount: float = Field()


class AirtimeProviderResponse(VTUResponse):
    amount: float = Field()
    paid_amount: Optional[float] = Field(default=None)
    airtime_type: str = Field(default="")

    @field_validator("paid_amount", mode="before")
    @classmethod
    def blank_as_none(cls, value):
        return None if value == "" else value
