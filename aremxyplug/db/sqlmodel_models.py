import datetime as dt
from enum import Enum
from typing import Any, Optional

from sqlalchemy import CheckConstraint, DateTime, String, Text
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel

from .naive_datetime import NaiveDatetime

# SQLModel models combining SQLAlchemy and Pydantic


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING

    def __str__(self) -> str:
        return self.value


class StatusType(TypeDecorator):
    """Stores TransactionStatus as its plain string value so every family table can share it."""

    impl = String(16)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return TransactionStatus(value).value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return TransactionStatus(value)


class TransactionRecordBase(SQLModel):
    """Fields shared by every bill family's canonical transaction record.

    Attributes:
        request_id: Client-supplied idempotency key, unique within a family table.
        transaction_id: Provider-assigned identifier. Empty until the provider responds.
        status: pending, success or failed. Success and failed are terminal.
        amount: Value charged, never negative.
        user_identifier: Email when the client supplied one, otherwise phone. Used for per-user listing.
        product_descriptor: Provider product name joined with the variation the client asked for.
        failure_reason: Diagnostic context attached to failed records.
        transaction_date: Provider-reported transaction date, kept verbatim.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    request_id: str = Field(sa_type=String(64), unique=True, index=True, nullable=False)
    transaction_id: str = Field(default="", sa_type=String(64), index=True)
    status: TransactionStatus = Field(default=TransactionStatus.PENDING, sa_type=StatusType(), index=True)
    amount: float = Field(default=0.0, ge=0)
    user_identifier: str = Field(sa_type=String(255), index=True, nullable=False)
    product_descriptor: str = Field(default="", sa_type=String(255))
    phone: str = Field(default="", sa_type=String(32))
    email: str = Field(default="", sa_type=String(255))
    failure_reason: Optional[str] = Field(default=None, sa_type=Text)
    transaction_date: Optional[str] = Field(default=None, sa_type=String(64))
    # Naive UTC to match TIMESTAMP WITHOUT TIME ZONE columns
    created_at: dt.datetime = Field(
        default_factory=NaiveDatetime.now, sa_type=DateTime(timezone=False), nullable=False
    )
    updated_at: dt.datetime = Field(
        default_factory=NaiveDatetime.now, sa_type=DateTime(timezone=False), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(id={self.id}, "
            f"request_id='{self.request_id}', "
            f"transaction_id='{self.transaction_id}', "
            f"status='{self.status}')>"
        )


class ElectricityTransaction(TransactionRecordBase, table=True):
    __tablename__ = "electricity_transactions"  # type: ignore (shut up pyright)
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_electricity_transactions_amount"),)

    disco_type: str = Field(sa_type=String(64))
    meter_number: str = Field(sa_type=String(32), index=True)
    meter_type: str = Field(default="prepaid", sa_type=String(16))
    customer_name: Optional[str] = Field(default=None, sa_type=String(255))
    product: str = Field(default="", sa_type=String(255))
    bill_generated: str = Field(default="", sa_type=String(255))
    order_id: Optional[int] = Field(default=None)
    token: Optional[str] = Field(default=None, sa_type=String(255))
    units: Optional[str] = Field(default=None, sa_type=String(64))


class DataTransaction(TransactionRecordBase, table=True):
    __tablename__ = "data_transactions"  # type: ignore
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_data_transactions_amount"),)

    network: str = Field(sa_type=String(32))
    phone_number: str = Field(sa_type=String(32))
    plan_code: str = Field(sa_type=String(64))
    plan_name: str = Field(default="", sa_type=String(255))


class AirtimeTransaction(TransactionRecordBase, table=True):
    __tablename__ = "airtime_transactions"  # type: ignore
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_airtime_transactions_amount"),)

    network: str = Field(sa_type=String(32))
    phone_number: str = Field(sa_type=String(32))
    airtime_type: str = Field(default="VTU", sa_type=String(32))


class EducationTransaction(TransactionRecordBase, table=True):
    __tablename__ = "education_transactions"  # type: ignore
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_education_transactions_amount"),)

    exam_type: str = Field(sa_type=String(64))
    quantity: int = Field(default=1)
    # "serial:pin" pairs, one per line
    pins: Optional[str] = Field(default=None, sa_type=Text)


class TvTransaction(TransactionRecordBase, table=True):
    __tablename__ = "tv_transactions"  # type: ignore
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_tv_transactions_amount"),)

    decoder_type: str = Field(sa_type=String(32))
    smartcard_number: str = Field(sa_type=String(32), index=True)
    bouquet_code: str = Field(default="", sa_type=String(64))
    subscription_type: str = Field(default="change", sa_type=String(16))


class SmileDataTransaction(TransactionRecordBase, table=True):
    __tablename__ = "smile_data_transactions"  # type: ignore
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_smile_data_transactions_amount"),)

    account_id: str = Field(sa_type=String(32), index=True)
    plan_code: str = Field(sa_type=String(64))
    plan_name: str = Field(default="", sa_type=String(255))


class SpectranetDataTransaction(TransactionRecordBase, table=True):
    __tablename__ = "spectranet_data_transactions"  # type: ignore
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_spectranet_data_transactions_amount"),)

    phone_number: str = Field(sa_type=String(32))
    plan_code: str = Field(sa_type=String(64))
    plan_name: str = Field(default="", sa_type=String(255))
    quantity: int = Field(default=1)
    pins: Optional[str] = Field(default=None, sa_type=Text)


class User(SQLModel, table=True):
    """Registered customer account."""

    __tablename__ = "users"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str = Field(sa_type=String(255))
    username: str = Field(sa_type=String(64), unique=True, index=True)
    email: str = Field(sa_type=String(255), unique=True, index=True)
    phone: str = Field(default="", sa_type=String(32))
    password_hash: str = Field(sa_type=String(255))
    is_verified: bool = Field(default=False)
    created_at: dt.datetime = Field(
        default_factory=NaiveDatetime.now, sa_type=DateTime(timezone=False), nullable=False
    )

    def __init__(self, **data: Any) -> None:
        if "email" in data and isinstance(data["email"], str):
            data["email"] = data["email"].strip().lower()
        super().__init__(**data)


class Message(SQLModel, table=True):
    """Contact-us message left by a visitor or customer."""

    __tablename__ = "messages"  # type: ignore

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_type=String(255))
    email: str = Field(sa_type=String(255), index=True)
    subject: str = Field(default="", sa_type=String(255))
    body: str = Field(sa_type=Text)
    created_at: dt.datetime = Field(
        default_factory=NaiveDatetime.now, sa_type=DateTime(timezone=False), nullable=False
    )
