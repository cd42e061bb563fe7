import asyncio
import logging
from typing import Any, Generic, List, Mapping, TypeVar

import pydantic

from aremxyplug.bills.exceptions import (
    DuplicateRequestError,
    MappingError,
    ProviderTransportError,
    PurchaseFailedError,
    PurchaseValidationError,
)
from aremxyplug.bills.families import BillFamily
from aremxyplug.bills.requests import PurchaseRequest
from aremxyplug.core.logging import log_purchase_state
from aremxyplug.db.sqlmodel_models import TransactionRecordBase, TransactionStatus
from aremxyplug.db.transaction_crud import TransactionRepository
from aremxyplug.providers.base import ProviderClient

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=TransactionRecordBase)


class PurchaseHandler(Generic[RecordT]):
    """Runs a purchase for one bill family from request to persisted record.

    The lifecycle is: received -> claimed (pending) -> dispatched -> mapped -> persisted.
    Only the call that creates the pending row dispatches to the provider; any other call
    with the same request_id is a replay. Transport, mapping and unexpected provider errors
    end in a persisted failed record and a PurchaseFailedError carrying it. A failure reported
    by the provider itself is a normal, mapped record, and so is an outcome the provider left
    unconfirmed, which is stored as failed.
    """

    def __init__(
        self,
        family: BillFamily,
        provider: ProviderClient,
        repository: TransactionRepository[RecordT],
        reject_duplicates: bool = False,
    ) -> None:
        self.family = family
        self.provider = provider
        self.repository = repository
        self.reject_duplicates = reject_duplicates

    def parse_request(self, payload: Mapping[str, Any]) -> PurchaseRequest:
        """Validate an inbound payload against the family's request model.

        Raises:
            PurchaseValidationError: If a field is missing or invalid.
        """
        try:
            return self.family.request_model.model_validate(payload)
        except pydantic.ValidationError as exc:
            errors = exc.errors(include_url=False, include_context=False)
            fields = ", ".join(".".join(str(part) for part in err["loc"]) or "body" for err in errors)
            raise PurchaseValidationError(
                f"Invalid {self.family.name} purchase request: {fields}", family=self.family.name, errors=errors
            ) from exc

    def _pending_record(self, request: PurchaseRequest) -> RecordT:
        record = self.family.build_failed_record(request, "")
        record.status = TransactionStatus.PENDING
        record.failure_reason = None
        return record  # type: ignore[return-value]

    async def purchase(self, payload: Mapping[str, Any]) -> RecordT:
        """Submit a purchase and return the persisted canonical record.

        A replay of a request that is still in flight returns its pending record.

        Raises:
            PurchaseValidationError: If the payload is invalid. Nothing is persisted.
            DuplicateRequestError: If the request_id is known and duplicates are rejected.
            PurchaseFailedError: If the provider could not be reached, failed unexpectedly, or its response
                could not be mapped.
        """
        request = self.parse_request(payload)
        request_id = request.request_id
        log_purchase_state(request_id, "received", {"family": self.family.name})

        stored, created = await self.repository.claim(self._pending_record(request))
        if not created:
            if self.reject_duplicates:
                logger.info(f"Rejecting replayed {self.family.name} request_id={request_id}")
                raise DuplicateRequestError(request_id, family=self.family.name)
            logger.info(f"Replayed {self.family.name} request_id={request_id}; returning stored record")
            log_purchase_state(request_id, "replayed", {"status": str(stored.status)})
            return stored

        log_purchase_state(request_id, "pending", {"family": self.family.name})

        try:
            raw = await self.provider.purchase(request)
        except ProviderTransportError as exc:
            log_purchase_state(request_id, "dispatch_failed", {"error": str(exc)})
            failed = await asyncio.shield(self._persist_failure(request, f"Provider transport error: {exc}"))
            raise PurchaseFailedError(str(exc), record=failed, family=self.family.name) from exc
        except Exception as exc:
            logger.error(
                f"Unexpected error from {self.provider.name} for request_id={request_id}: {exc!r}", exc_info=True
            )
            log_purchase_state(request_id, "dispatch_failed", {"error": repr(exc)})
            failed = await asyncio.shield(self._persist_failure(request, f"Unexpected provider error: {exc!r}"))
            raise PurchaseFailedError(
                f"Unexpected error from {self.provider.name}", record=failed, family=self.family.name
            ) from exc
        log_purchase_state(request_id, "dispatched", {"provider": self.provider.name})

        try:
            record = await asyncio.shield(self._map_and_persist(raw, request))
        except MappingError as exc:
            log_purchase_state(request_id, "mapping_failed", {"error": str(exc)})
            failed = await asyncio.shield(self._persist_failure(request, f"Unusable provider response: {exc}"))
            raise PurchaseFailedError(str(exc), record=failed, family=self.family.name) from exc

        log_purchase_state(request_id, "persisted", {"status": str(record.status)})
        return record

    async def _map_and_persist(self, raw: Mapping[str, Any], request: PurchaseRequest) -> RecordT:
        record = self.family.map_response(raw, request)
        if not TransactionStatus(record.status).is_terminal:
            # A purchase the provider left unconfirmed is closed out as failed, keeping its transaction_id
            logger.warning(
                f"{self.family.name} provider left request_id={record.request_id} "
                f"transaction_id={record.transaction_id} unconfirmed; recording as failed"
            )
            record.status = TransactionStatus.FAILED
            record.failure_reason = (
                f"Provider did not confirm the purchase (transaction_id '{record.transaction_id}'); "
                "reconcile with the provider before retrying"
            )
        stored = await self.repository.save(record)  # type: ignore[arg-type]
        logger.info(
            f"{self.family.name} purchase request_id={stored.request_id} "
            f"transaction_id={stored.transaction_id} finished with status={stored.status}"
        )
        return stored

    async def _persist_failure(self, request: PurchaseRequest, reason: str) -> RecordT:
        logger.warning(f"{self.family.name} purchase request_id={request.request_id} failed: {reason}")
        return await self.repository.save(self.family.build_failed_record(request, reason))  # type: ignore[arg-type]

    async def get(self, identifier: str) -> RecordT:
        """Fetch a record by transaction id or request id. Raises TransactionNotFoundError on a miss."""
        return await self.repository.get_by_id(identifier)

    async def list_for_user(self, user_identifier: str) -> List[RecordT]:
        return await self.repository.list_by_user(user_identifier)
