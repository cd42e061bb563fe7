# Bill purchase exceptions

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aremxyplug.db.sqlmodel_models import TransactionRecordBase


class BillsError(Exception):
    """Base exception for bill purchase and lookup errors."""

    def __init__(self, *args, family: str | None = None, status_code: int | None = None, detail: str | None = None):
        super().__init__(*args)
        self.family = family
        self.status_code = status_code
        # Use the first arg as detail if detail kwarg is not provided and args exist
        self.detail = detail or (args[0] if args else None)


class PurchaseValidationError(BillsError):
    """The purchase request is malformed. No provider call is made and nothing is persisted."""

    def __init__(self, detail: str, *, family: str | None = None, errors: list[dict[str, Any]] | None = None):
        super().__init__(detail, family=family, status_code=422, detail=detail)
        self.errors = errors or []


class ProviderTransportError(BillsError):
    """The provider could not be reached or answered with something other than a usable JSON body."""

    def __init__(self, detail: str, *, provider: str | None = None, http_status: int | None = None):
        super().__init__(detail, status_code=502, detail=detail)
        self.provider = provider
        self.http_status = http_status


class MappingError(BillsError):
    """A provider response is missing fields needed to build a canonical record."""

    def __init__(self, detail: str, *, family: str | None = None, missing: list[str] | None = None):
        super().__init__(detail, family=family, status_code=502, detail=detail)
        self.missing = missing or []


class TransactionNotFoundError(BillsError):
    """No record matches the requested transaction id or request id."""

    def __init__(self, identifier: str, *, family: str | None = None):
        detail = f"Transaction '{identifier}' not found"
        super().__init__(detail, family=family, status_code=404, detail=detail)
        self.identifier = identifier


class DuplicateRequestError(BillsError):
    """A purchase was replayed with a request_id that already has a record, and replays are rejected."""

    def __init__(self, request_id: str, *, family: str | None = None):
        detail = f"A transaction with request_id '{request_id}' already exists"
        super().__init__(detail, family=family, status_code=409, detail=detail)
        self.request_id = request_id


class PurchaseFailedError(BillsError):
    """A purchase ended in a persisted failed record because of a transport or mapping error.

    The failed record is attached so the caller can reconcile by request_id.
    """

    def __init__(self, detail: str, *, record: "TransactionRecordBase", family: str | None = None):
        super().__init__(detail, family=family, status_code=502, detail=detail)
        self.record = record
