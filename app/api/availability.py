"""
app/api/availability.py

Purpose: Availability endpoints keyed by calendar date
"""

from fastapi import APIRouter, Depends

from app.api.deps import get_availability_store
from app.schemas.availability import AvailabilitySlots
from app.schemas.response import SuccessResponse
from app.services.availability_service import AvailabilityStore

router = APIRouter()


@router.post("/availability", response_model=SuccessResponse)
async def set_availability(
    payload: AvailabilitySlots,
    store: AvailabilityStore = Depends(get_availability_store),
):
    await store.set(payload.date, payload.time_slots)
    return SuccessResponse()


@router.get(
    "/availability/{date}",
    response_model=AvailabilitySlots,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def get_availability(date: str, store: AvailabilityStore = Depends(get_availability_store)):
    """
    Slots for ``date``; the default five slots when none were set.
    """
    return await store.get(date)
