#!/usr/bin/env python3
"""
Create the bill transaction, user and message tables straight from the SQLModel models.
This is a manual alternative to using Alembic, useful for local development and testing.
"""

import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from aremxyplug.db import sqlmodel_models  # noqa: F401 - Ensure models are registered
from aremxyplug.db.database_async import close_db_engine, create_all_tables, create_db_engine

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def create_tables() -> bool:
    """Create all tables defined in the SQLModel models."""
    env_file = Path(__file__).parent.parent / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=env_file)
        logger.info(f"Loaded environment variables from {env_file}")
    else:
        logger.warning(f".env file not found at {env_file}, using system environment variables")

    try:
        await create_db_engine()
        logger.info("Creating tables from SQLModel definitions...")
        await create_all_tables()
        logger.info("Tables created successfully!")
        return True
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        return False
    finally:
        await close_db_engine()


if __name__ == "__main__":
    success = asyncio.run(create_tables())
    sys.exit(0 if success else 1)
