import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from aremxyplug.bills.router import router as bills_router
from aremxyplug.core.dependencies import initialize_app_dependencies
from aremxyplug.core.dependency_container import DependencyContainer
from aremxyplug.core.logging import setup_logging
from aremxyplug.db.database_async import close_db_engine
from aremxyplug.settings import Settings

setup_logging()


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the lifespan of the application resources.

    Initializes the dependency container on startup and releases the database
    engine and the shared HTTP client on shutdown.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: After startup procedures are complete, allowing the application to run.

    Raises:
        RuntimeError: If critical application dependencies fail to initialize during startup.
    """
    logger.info("Application startup sequence initiated.")

    app_settings = Settings()
    logger.info("Settings loaded.")

    initialized_dependencies: DependencyContainer | None = None
    try:
        initialized_dependencies = await initialize_app_dependencies(app_settings)
        app.state.dependencies = initialized_dependencies
        logger.info("Core application dependencies initialized and stored in app state.")
    except Exception as init_exc:
        logger.critical(f"Fatal error during application dependency initialization: {init_exc}", exc_info=True)
        await close_db_engine()
        logger.info("DB Engine closed due to dependency initialization failure during startup.")
        raise RuntimeError(
            f"Application startup failed due to dependency initialization error: {init_exc}"
        ) from init_exc

    yield  # Application runs here

    logger.info("Application shutdown sequence initiated.")

    await close_db_engine()
    logger.info("Main DB Engine closed.")

    await initialized_dependencies.http_client.aclose()
    logger.info("HTTP Client from DependencyContainer closed.")

    logger.info("Application shutdown complete.")


app = FastAPI(
    title="Aremxyplug",
    description="Bill payment aggregator for data, airtime, education pins, TV subscriptions and electricity.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["General"], status_code=200)
async def health_check():
    """Perform a basic health check.

    Returns:
        A dictionary indicating the application status.
    """
    return {"status": "ok"}


app.include_router(bills_router)


# --- Root Endpoint --- #


@app.get("/")
async def read_root():
    return {"message": "Aremxyplug bill payment API is running."}


# --- Run with Uvicorn (for local development) --- #

if __name__ == "__main__":
    import uvicorn

    dev_settings = Settings()
    uvicorn.run(
        "aremxyplug.main:app",
        host=dev_settings.get_app_host(),
        port=dev_settings.get_app_port(),
        reload=dev_settings.get_app_reload(),
        log_level=dev_settings.get_log_level().lower(),
    )
