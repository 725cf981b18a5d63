"""Initialize database tables.

Usage: ``python -m receipt_keeper.scripts.init_db``
"""

import asyncio
import logging

from receipt_keeper.core.database import dispose_engine, init_db

logger = logging.getLogger(__name__)


async def main():
    logger.info("Initializing database tables...")
    try:
        await init_db()
    finally:
        await dispose_engine()
    logger.info("Database initialization complete!")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
