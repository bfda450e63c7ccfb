"""
Database initialization script

Run once to create the booking indexes:
    python scripts/init_db.py
    python scripts/init_db.py --drop   # drop custom indexes first
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.db.indexes import create_indexes, drop_all_indexes
from app.db.mongo import connect_to_mongo, close_mongo_connection

setup_logging()
logger = get_logger("scripts.init_db")


async def main(drop: bool = False):
    logger.info(f"🔌 Connecting to MongoDB: {settings.MONGODB_DB_NAME}")
    client = await connect_to_mongo(settings.MONGODB_URL)
    database = client[settings.MONGODB_DB_NAME]

    try:
        if drop:
            await drop_all_indexes(database)
        await create_indexes(database)
        logger.info("🎉 Database initialized")
    finally:
        close_mongo_connection(client)


if __name__ == "__main__":
    asyncio.run(main(drop="--drop" in sys.argv[1:]))
