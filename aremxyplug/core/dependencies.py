import logging
from typing import AsyncGenerator, Callable

import httpx
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from aremxyplug.bills.families import BillFamily
from aremxyplug.bills.handler import PurchaseHandler
from aremxyplug.core.dependency_container import DependencyContainer
from aremxyplug.db.database_async import create_all_tables, create_db_engine
from aremxyplug.db.database_async import get_db_session as db_get_session
from aremxyplug.db.transaction_crud import TransactionRepository
from aremxyplug.settings import Settings

logger = logging.getLogger(__name__)

# --- Dependency Providers --- #


def get_dependencies(request: Request) -> DependencyContainer:
    """Dependency to retrieve the DependencyContainer from application state."""
    dependencies: DependencyContainer | None = getattr(request.app.state, "dependencies", None)
    if dependencies is None:
        logger.critical(
            "DependencyContainer not found in application state. "
            "This indicates a critical setup error in the application lifespan."
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: Application dependencies not initialized.",
        )
    return dependencies


# --- Async Database Session Dependency using Container ---


async def get_db_session(
    dependencies: DependencyContainer = Depends(get_dependencies),
) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency to get an async database session using the container's factory."""
    session_factory = dependencies.db_session_factory
    if session_factory is None:
        logger.critical("DB Session Factory not found in DependencyContainer.")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: Database session factory not available.",
        )

    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# --- Purchase Handler Dependency ---


def get_purchase_handler(family: BillFamily) -> Callable[..., PurchaseHandler]:
    """Build a FastAPI dependency yielding a PurchaseHandler for one bill family.

    The handler only sees its own family's provider client and repository.
    """

    def _handler_dependency(
        dependencies: DependencyContainer = Depends(get_dependencies),
        session: AsyncSession = Depends(get_db_session),
    ) -> PurchaseHandler:
        try:
            provider = dependencies.get_provider(family.name)
        except KeyError as e:
            logger.critical(str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Internal server error: No provider configured for {family.name}.",
            )
        return PurchaseHandler(
            family=family,
            provider=provider,
            repository=TransactionRepository(session, family.record_model),
            reject_duplicates=dependencies.settings.get_reject_duplicate_requests(),
        )

    return _handler_dependency


async def initialize_app_dependencies(app_settings: Settings) -> DependencyContainer:
    """Initialize and configure core application dependencies.

    Sets up the shared HTTP client used for provider calls, the database engine
    and the provider clients, and bundles them into a DependencyContainer.

    Args:
        app_settings: The application settings instance.

    Returns:
        A DependencyContainer instance populated with initialized dependencies.

    Raises:
        RuntimeError: If initialization of the HTTP client or database engine fails.
    """
    logger.info("Initializing core application dependencies...")

    read_timeout = app_settings.get_provider_timeout_seconds()
    timeout = httpx.Timeout(5.0, connect=10.0, read=read_timeout, write=10.0)
    http_client = httpx.AsyncClient(timeout=timeout)
    logger.info(f"HTTP Client initialized for DependencyContainer (provider read timeout {read_timeout}s).")

    try:
        logger.info("Attempting to create main DB engine and session factory for DependencyContainer...")
        await create_db_engine()
        logger.info("Main DB engine successfully created for DependencyContainer.")
        if app_settings.dev_mode():
            await create_all_tables()
        db_session_factory = db_get_session
    except Exception as db_exc:
        logger.critical(f"Failed to initialize database for DependencyContainer due to exception: {db_exc}")
        await http_client.aclose()
        logger.info("HTTP client closed due to DB initialization failure.")
        raise RuntimeError(f"Failed to initialize database for DependencyContainer: {db_exc}") from db_exc

    try:
        dependencies = DependencyContainer(
            settings=app_settings,
            http_client=http_client,
            db_session_factory=db_session_factory,
        )
        logger.info("Dependency Container created successfully.")
        return dependencies
    except Exception as container_exc:
        logger.critical(f"Failed to create Dependency Container instance: {container_exc}", exc_info=True)
        await http_client.aclose()
        logger.info("HTTP client closed due to Dependency Container instantiation failure.")
        raise RuntimeError(f"Failed to create Dependency Container instance: {container_exc}") from container_exc
