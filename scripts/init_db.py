#!/usr/bin/env python3
"""Initialize the database schema."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.logging import setup_logging, get_logger
from app.db.connection import Database, DatabaseError

setup_logging()
logger = get_logger(__name__)


async def main() -> int:
    """Initialize the database."""
    logger.info("initializing_database")

    try:
        async with Database() as db:
            await db.init_schema()
        logger.info("database_initialized_successfully")
        return 0
    except DatabaseError as e:
        logger.error("database_initialization_failed", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
