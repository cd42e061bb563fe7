"""Database models and session management."""

from .sqlmodel_models import (
    AirtimeTransaction,
    DataTransaction,
    EducationTransaction,
    ElectricityTransaction,
    Message,
    TransactionRecordBase,
    TransactionStatus,
    TvTransaction,
    User,
)

__all__ = [
    "AirtimeTransaction",
    "DataTransaction",
    "EducationTransaction",
    "ElectricityTransaction",
    "Message",
    "TransactionRecordBase",
    "TransactionStatus",
    "TvTransaction",
    "User",
]
