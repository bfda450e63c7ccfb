"""
app/db/indexes.py

Purpose: Database index management

- Status index backing the pending-set lookup on every inbound reply
- Creation-time indexes for the newest-first listing
"""

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.db.mongo import get_bookings_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes(database: AsyncIOMotorDatabase):
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.

    The availability collection is keyed by _id (the date) and needs
    no secondary index.
    """
    try:
        bookings = get_bookings_collection(database)

        logger.info("Creating database indexes...")

        # Pending-set lookup for reply resolution
        await bookings.create_index("status", name="status_idx")
        logger.debug("Created index on bookings.status")

        # Newest-first listing
        await bookings.create_index([("createdAt", -1)], name="created_at_desc_idx")
        logger.debug("Created index on bookings.createdAt")

        # Status partition + ordering in one pass
        await bookings.create_index(
            [("status", 1), ("createdAt", -1)],
            name="status_created_idx"
        )
        logger.debug("Created compound index on bookings.status + createdAt")

        booking_indexes = await bookings.index_information()
        logger.info(f"✅ Database indexes ready: Bookings={len(booking_indexes)}")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise


async def drop_all_indexes(database: AsyncIOMotorDatabase):
    """
    Drops all custom indexes (keeps _id index).
    Use with caution! Only for maintenance/migration.
    """
    try:
        logger.warning("Dropping all database indexes...")
        await get_bookings_collection(database).drop_indexes()
        logger.info("✅ All indexes dropped successfully")

    except Exception as e:
        logger.error(f"Failed to drop indexes: {str(e)}", exc_info=True)
        raise
