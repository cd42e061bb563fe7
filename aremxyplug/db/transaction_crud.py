# Persistence for canonical transaction records, one repository per bill family.

import logging
from typing import Generic, List, Optional, Tuple, TypeVar

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aremxyplug.bills.exceptions import TransactionNotFoundError
from aremxyplug.db.exceptions import (
    AremxyDBIntegrityError,
    AremxyDBOperationError,
    AremxyDBQueryError,
    AremxyDBTransactionError,
)

from .naive_datetime import NaiveDatetime
from .sqlmodel_models import TransactionRecordBase, TransactionStatus

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=TransactionRecordBase)

# Fields a terminal outcome may not rewrite on an existing row.
_IMMUTABLE_FIELDS = {"id", "request_id", "transaction_id", "user_identifier", "created_at", "updated_at"}


class TransactionRepository(Generic[RecordT]):
    """Save, fetch and list the canonical records of one bill family.

    Uniqueness of ``request_id`` is enforced by the table's unique index, so two
    concurrent saves for the same request can never produce two rows: the loser of
    the insert race falls through to the update path.
    """

    def __init__(self, session: AsyncSession, model: type[RecordT]) -> None:
        self.session = session
        self.model = model

    @property
    def family_table(self) -> str:
        return str(self.model.__tablename__)

    async def get_by_request_id(self, request_id: str) -> Optional[RecordT]:
        """Get the record for a request_id, or None.

        Raises:
            AremxyDBQueryError: If the query execution fails
        """
        try:
            stmt = select(self.model).where(self.model.request_id == request_id)  # type: ignore[arg-type]
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error fetching {self.family_table} by request_id: {sqla_err}", exc_info=True)
            raise AremxyDBQueryError(f"Database query failed while fetching transaction: {sqla_err}") from sqla_err

    async def save(self, record: RecordT) -> RecordT:
        """Insert a record, or upsert onto the existing row with the same request_id.

        Only a pending row is updated. A pending row takes the incoming status and
        the provider-derived fields; its transaction_id is filled once and never
        replaced. Terminal rows are returned untouched.

        Args:
            record: The canonical record to persist

        Returns:
            The stored record (which is the existing row when the request_id was already known)

        Raises:
            AremxyDBIntegrityError: If a constraint other than request_id uniqueness is violated
            AremxyDBTransactionError: If the transaction fails
            AremxyDBOperationError: For other database errors
        """
        stored, created = await self.claim(record)
        if created:
            return stored
        return await self._update(stored, record)

    async def claim(self, record: RecordT) -> Tuple[RecordT, bool]:
        """Insert a record only if its request_id is not stored yet.

        Exactly one of any number of concurrent claims for the same request_id
        reports ``created=True``; the others get the winner's row back.

        Returns:
            (stored record, created)

        Raises:
            AremxyDBIntegrityError: If a constraint other than request_id uniqueness is violated
            AremxyDBTransactionError: If the transaction fails
        """
        existing = await self.get_by_request_id(record.request_id)
        if existing is not None:
            return existing, False
        inserted = await self._insert(record)
        if inserted is not None:
            return inserted, True
        # Lost an insert race on request_id; the winner's row is now visible.
        existing = await self.get_by_request_id(record.request_id)
        if existing is None:
            raise AremxyDBTransactionError(
                f"Insert for request_id '{record.request_id}' conflicted but no row is visible afterwards"
            )
        return existing, False

    async def _insert(self, record: RecordT) -> Optional[RecordT]:
        """Insert a new row. Returns None when the request_id already exists."""
        try:
            self.session.add(record)
            await self.session.commit()
            await self.session.refresh(record)
            logger.info(
                f"Stored new {self.family_table} record request_id={record.request_id} status={record.status}"
            )
            return record
        except IntegrityError as ie:
            await self.session.rollback()
            if await self.get_by_request_id(record.request_id) is not None:
                logger.info(f"Concurrent insert detected for request_id={record.request_id}; using the stored row")
                return None
            logger.error(f"Integrity error storing {self.family_table} record: {ie}")
            raise AremxyDBIntegrityError(f"Could not store transaction due to constraint violation: {ie}", ie) from ie
        except SQLAlchemyError as sqla_err:
            await self.session.rollback()
            logger.error(f"SQLAlchemy error storing {self.family_table} record: {sqla_err}")
            raise AremxyDBTransactionError(
                f"Database transaction failed while storing transaction: {sqla_err}"
            ) from sqla_err
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Unexpected error storing {self.family_table} record: {e}")
            raise AremxyDBOperationError(f"Unexpected error during transaction insert: {e}") from e

    async def _update(self, existing: RecordT, incoming: RecordT) -> RecordT:
        current_status = TransactionStatus(existing.status)
        new_status = TransactionStatus(incoming.status)

        if current_status.is_terminal:
            if new_status != current_status or (
                incoming.transaction_id and incoming.transaction_id != existing.transaction_id
            ):
                logger.warning(
                    f"Ignoring update for terminal {self.family_table} record request_id={existing.request_id}: "
                    f"stored status={current_status.value}, incoming status={new_status.value}"
                )
            return existing

        changed = False
        if not existing.transaction_id and incoming.transaction_id:
            existing.transaction_id = incoming.transaction_id
            changed = True

        if new_status.is_terminal:
            for field_name, value in incoming.model_dump(exclude=_IMMUTABLE_FIELDS).items():
                setattr(existing, field_name, value)
            existing.status = new_status
            changed = True

        if not changed:
            return existing

        existing.updated_at = NaiveDatetime.now()
        try:
            await self.session.commit()
            await self.session.refresh(existing)
            logger.info(
                f"Updated {self.family_table} record request_id={existing.request_id} "
                f"{current_status.value} -> {TransactionStatus(existing.status).value}"
            )
            return existing
        except IntegrityError as ie:
            await self.session.rollback()
            logger.error(f"Integrity error updating {self.family_table} record: {ie}")
            raise AremxyDBIntegrityError(f"Could not update transaction due to constraint violation: {ie}", ie) from ie
        except SQLAlchemyError as sqla_err:
            await self.session.rollback()
            logger.error(f"SQLAlchemy error updating {self.family_table} record: {sqla_err}")
            raise AremxyDBTransactionError(
                f"Database transaction failed while updating transaction: {sqla_err}"
            ) from sqla_err

    async def get_by_id(self, identifier: str) -> RecordT:
        """Get a record by provider transaction id or by client request id.

        Raises:
            TransactionNotFoundError: If no record matches
            AremxyDBQueryError: If the query execution fails
        """
        if not identifier:
            raise TransactionNotFoundError(identifier)
        try:
            stmt = (
                select(self.model)
                .where(
                    or_(
                        self.model.transaction_id == identifier,  # type: ignore[arg-type]
                        self.model.request_id == identifier,  # type: ignore[arg-type]
                    )
                )
                .order_by(self.model.id)  # type: ignore[arg-type]
            )
            result = await self.session.execute(stmt)
            record = result.scalars().first()
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error fetching {self.family_table} record: {sqla_err}", exc_info=True)
            raise AremxyDBQueryError(f"Database query failed while fetching transaction: {sqla_err}") from sqla_err

        if record is None:
            raise TransactionNotFoundError(identifier)
        return record

    async def list_by_user(self, user_identifier: str) -> List[RecordT]:
        """List a user's records in insertion order. Empty when the user has none.

        Raises:
            AremxyDBQueryError: If the query execution fails
        """
        try:
            stmt = (
                select(self.model)
                .where(self.model.user_identifier == user_identifier)  # type: ignore[arg-type]
                .order_by(self.model.id)  # type: ignore[arg-type]
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as sqla_err:
            logger.error(f"SQLAlchemy error listing {self.family_table} records: {sqla_err}")
            raise AremxyDBQueryError(f"Database query failed while listing transactions: {sqla_err}") from sqla_err
