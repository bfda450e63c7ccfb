"""
app/core/container.py

Purpose: Service wiring

- Builds every component from Settings once at startup
- Owns the MongoDB client and shared HTTP client lifecycle
- Replaced wholesale in tests with in-memory stores and fake dispatchers
"""

from dataclasses import dataclass
from typing import Optional

import httpx
from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import Settings
from app.core.logging import get_logger
from app.db.indexes import create_indexes
from app.db.mongo import (
    close_mongo_connection,
    connect_to_mongo,
    get_availability_collection,
    get_bookings_collection,
)
from app.flow.reply_resolver import ReplyResolver
from app.services.availability_service import (
    AvailabilityStore,
    InMemoryAvailabilityStore,
    MongoAvailabilityStore,
)
from app.services.booking_store import BookingStore, InMemoryBookingStore, MongoBookingStore
from app.services.intake_service import BookingIntake
from app.services.photo_service import PhotoStore
from app.services.twilio_service import NotificationDispatcher, TwilioSmsDispatcher
from utils.booking_id_utils import BookingIdGenerator

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    booking_store: BookingStore
    availability_store: AvailabilityStore
    dispatcher: NotificationDispatcher
    resolver: ReplyResolver
    intake: BookingIntake
    mongo_client: Optional[AsyncIOMotorClient] = None
    http_client: Optional[httpx.AsyncClient] = None

    async def close(self):
        if self.http_client is not None:
            await self.http_client.aclose()
        if self.mongo_client is not None:
            close_mongo_connection(self.mongo_client)


def assemble(
    config: Settings,
    booking_store: BookingStore,
    availability_store: AvailabilityStore,
    dispatcher: NotificationDispatcher,
    id_generator: Optional[BookingIdGenerator] = None,
    photo_store: Optional[PhotoStore] = None
) -> ServiceContainer:
    """
    Wires resolver and intake around already-built stores and dispatcher.
    """
    photo_store = photo_store or PhotoStore(
        upload_dir=config.UPLOAD_DIR,
        max_files=config.MAX_UPLOAD_FILES,
        max_file_bytes=config.max_upload_bytes
    )
    resolver = ReplyResolver(
        store=booking_store,
        dispatcher=dispatcher,
        accept_keyword=config.ACCEPT_KEYWORD
    )
    intake = BookingIntake(
        store=booking_store,
        dispatcher=dispatcher,
        id_generator=id_generator or BookingIdGenerator(prefix=config.BOOKING_ID_PREFIX),
        employee_phone=config.EMPLOYEE_PHONE_NUMBER,
        photo_store=photo_store,
        accept_keyword=config.ACCEPT_KEYWORD,
        confirmation_window_minutes=config.CONFIRMATION_WINDOW_MINUTES
    )
    return ServiceContainer(
        booking_store=booking_store,
        availability_store=availability_store,
        dispatcher=dispatcher,
        resolver=resolver,
        intake=intake
    )


async def build_container(config: Settings) -> ServiceContainer:
    """
    Builds the production container: Mongo (or memory) stores and Twilio.
    """
    mongo_client = None

    if config.STORAGE_BACKEND == "mongo":
        mongo_client = await connect_to_mongo(config.MONGODB_URL.replace("%%", "%25"))
        database = mongo_client[config.MONGODB_DB_NAME]
        await create_indexes(database)
        booking_store: BookingStore = MongoBookingStore(get_bookings_collection(database))
        availability_store: AvailabilityStore = MongoAvailabilityStore(get_availability_collection(database))
    else:
        logger.warning("⚠️ Using in-memory storage, data is lost on restart")
        booking_store = InMemoryBookingStore()
        availability_store = InMemoryAvailabilityStore()

    http_client = httpx.AsyncClient(timeout=config.TWILIO_TIMEOUT_SECONDS)
    dispatcher = TwilioSmsDispatcher(
        account_sid=config.TWILIO_ACCOUNT_SID,
        auth_token=config.TWILIO_AUTH_TOKEN,
        from_number=config.TWILIO_PHONE_NUMBER,
        business_name=config.BUSINESS_NAME,
        base_url=config.TWILIO_API_BASE_URL,
        timeout=config.TWILIO_TIMEOUT_SECONDS,
        client=http_client
    )
    if not dispatcher.is_configured():
        logger.warning("⚠️ Twilio credentials missing, outbound SMS will fail")

    container = assemble(config, booking_store, availability_store, dispatcher)
    container.mongo_client = mongo_client
    container.http_client = http_client
    return container
