import logging
import os
import sys
from logging.config import fileConfig

# Add project root to Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlmodel import SQLModel

from aremxyplug.db import sqlmodel_models  # noqa - Ensure models are registered
from aremxyplug.settings import Settings

load_dotenv()

settings = Settings()

logger = logging.getLogger(__name__)

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Prioritize DATABASE_URL
database_url = settings.get_database_url()

final_db_url = None

if database_url:
    logger.info("Using DATABASE_URL for Alembic connection.")
    # Migrations run synchronously through psycopg2
    if database_url.startswith("postgresql+asyncpg://"):
        final_db_url = database_url.replace("postgresql+asyncpg://", "postgresql://", 1)
    elif database_url.startswith("postgres://"):
        final_db_url = database_url.replace("postgres://", "postgresql://", 1)
        logger.info("Converted 'postgres://' URL to 'postgresql://'")
    else:
        final_db_url = database_url
else:
    logger.warning("DATABASE_URL not set. Falling back to individual DB_* variables for Alembic.")
    # Raises ValueError naming whichever DB_* variables are missing
    final_db_url = settings.get_db_dsn()


config.set_main_option("sqlalchemy.url", final_db_url)


# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# for 'autogenerate' support
target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This configures the context with just a URL and not an Engine, so no DBAPI
    is needed. Calls to context.execute() emit the given string to the script output.
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode.

    Creates a synchronous connection to the database to run migrations.
    """
    connectable = create_engine(config.get_main_option("sqlalchemy.url"))

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
