# CRUD operations specific to the User model.

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aremxyplug.db.exceptions import (
    AremxyDBIntegrityError,
    AremxyDBOperationError,
    AremxyDBQueryError,
    AremxyDBTransactionError,
)

from .sqlmodel_models import User

logger = logging.getLogger(__name__)


async def save_user(session: AsyncSession, user: User) -> User:
    """Create a new user account.

    Args:
        session: The database session
        user: The user to create. ``password_hash`` must already be hashed.

    Returns:
        The created user with updated ID

    Raises:
        AremxyDBIntegrityError: If the email or username is already registered
        AremxyDBTransactionError: If the transaction fails
        AremxyDBOperationError: For other database errors
    """
    try:
        session.add(user)
        await session.commit()
        await session.refresh(user)
        logger.info(f"Successfully created user with ID: {user.id}")
        return user
    except IntegrityError as ie:
        await session.rollback()
        logger.error(f"Integrity error creating user: {ie}")
        raise AremxyDBIntegrityError(f"Could not create user due to constraint violation: {ie}", ie) from ie
    except SQLAlchemyError as sqla_err:
        await session.rollback()
        logger.error(f"SQLAlchemy error creating user: {sqla_err}")
        raise AremxyDBTransactionError(f"Database transaction failed while creating user: {sqla_err}") from sqla_err
    except Exception as e:
        await session.rollback()
        logger.error(f"Unexpected error creating user: {e}")
        raise AremxyDBOperationError(f"Unexpected error during user creation: {e}") from e


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    """Get a user by email address (case-insensitive).

    Returns:
        The user if found, None otherwise

    Raises:
        AremxyDBQueryError: If the query execution fails
    """
    try:
        stmt = select(User).where(User.email == email.strip().lower())  # type: ignore[arg-type]
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
    except SQLAlchemyError as sqla_err:
        logger.error(f"SQLAlchemy error fetching user by email: {sqla_err}", exc_info=True)
        raise AremxyDBQueryError(f"Database query failed while fetching user: {sqla_err}") from sqla_err
