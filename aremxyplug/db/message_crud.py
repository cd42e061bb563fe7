# Message sink for contact-us submissions.

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from aremxyplug.db.exceptions import AremxyDBTransactionError

from .sqlmodel_models import Message

logger = logging.getLogger(__name__)


async def create_message(session: AsyncSession, message: Message) -> Message:
    """Persist a contact message.

    Raises:
        AremxyDBTransactionError: If the transaction fails
    """
    try:
        session.add(message)
        await session.commit()
        await session.refresh(message)
        logger.info(f"Stored message {message.id} from {message.email}")
        return message
    except SQLAlchemyError as sqla_err:
        await session.rollback()
        logger.error(f"SQLAlchemy error storing message: {sqla_err}")
        raise AremxyDBTransactionError(f"Database transaction failed while storing message: {sqla_err}") from sqla_err
