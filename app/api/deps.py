"""
app/api/deps.py

Purpose: FastAPI dependencies resolving components from the service container
"""

from fastapi import Request

from app.core.container import ServiceContainer
from app.flow.reply_resolver import ReplyResolver
from app.services.availability_service import AvailabilityStore
from app.services.booking_store import BookingStore
from app.services.intake_service import BookingIntake


def get_container(request: Request) -> ServiceContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Service container not initialized. Start the app through its lifespan.")
    return container


def get_booking_store(request: Request) -> BookingStore:
    return get_container(request).booking_store


def get_availability_store(request: Request) -> AvailabilityStore:
    return get_container(request).availability_store


def get_resolver(request: Request) -> ReplyResolver:
    return get_container(request).resolver


def get_intake(request: Request) -> BookingIntake:
    return get_container(request).intake
