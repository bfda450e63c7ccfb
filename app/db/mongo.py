"""
app/db/mongo.py

Purpose: MongoDB connection setup

- Initializes Motor client with connection pooling
- Collections: bookings, availability
- Health checks and retry logic
- The client is owned by the service container, not a module global
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
import asyncio

from app.core.logging import get_logger

logger = get_logger(__name__)

BOOKINGS_COLLECTION = "bookings"
AVAILABILITY_COLLECTION = "availability"


async def connect_to_mongo(
    mongodb_url: str,
    max_retries: int = 3,
    retry_delay: float = 2
) -> AsyncIOMotorClient:
    """
    Establishes connection to MongoDB with retry logic.
    Called during application startup.

    Returns:
        Connected AsyncIOMotorClient

    Raises:
        ConnectionError: If every attempt fails
    """
    for attempt in range(1, max_retries + 1):
        try:
            logger.info(
                f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
            )

            client = AsyncIOMotorClient(
                mongodb_url,
                maxPoolSize=50,
                minPoolSize=5,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                retryWrites=True,
                retryReads=True,
                tz_aware=True,
            )

            # Verify connection
            await client.admin.command("ping")

            logger.info("✅ Successfully connected to MongoDB")
            return client

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(
                f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
            )

            if attempt < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("Failed to connect to MongoDB after all retries")
                raise ConnectionError("Could not establish MongoDB connection") from e


def close_mongo_connection(client: AsyncIOMotorClient):
    """
    Closes the MongoDB connection.
    Called during application shutdown.
    """
    logger.info("Closing MongoDB connection")
    client.close()
    logger.info("MongoDB connection closed")


async def check_database_health(database: AsyncIOMotorDatabase) -> bool:
    """
    Checks if the database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        await database.command("ping")
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


def get_bookings_collection(database: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    """
    Returns the bookings collection.

    Document fields:
    - _id: str (booking ID, e.g. BK-1718000000123)
    - bookingId: str (same as _id)
    - status: "pending" | "confirmed" | "completed"
    - customerName, phone, address, serviceDate, serviceTime: str
    - lotSize, estimatedPrice, instructions: str | None
    - photos: list[str] (stored file names)
    - createdAt: datetime
    - confirmedAt: datetime | None
    - confirmedBy: str | None (phone that accepted)
    """
    return database[BOOKINGS_COLLECTION]


def get_availability_collection(database: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    """
    Returns the availability collection.

    Document fields:
    - _id: str (date, YYYY-MM-DD)
    - date: str
    - timeSlots: list[str]
    - updatedAt: datetime
    """
    return database[AVAILABILITY_COLLECTION]
