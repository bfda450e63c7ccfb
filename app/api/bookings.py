"""
app/api/bookings.py

Purpose: Booking endpoints

- Intake from the booking form (JSON payload + optional photos)
- Admin dashboard listing, partitioned by status
- Single booking lookup
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import List, Optional

from app.api.deps import get_booking_store, get_intake
from app.flow.states import BookingStatus
from app.models.booking import Booking
from app.schemas.booking import BookingCreatedResponse, BookingListResponse
from app.services.booking_store import BookingStore
from app.services.intake_service import BookingIntake, parse_payload

router = APIRouter()


@router.post("/send-booking-sms", response_model=BookingCreatedResponse, response_model_by_alias=True)
async def create_booking(
    bookingData: str = Form(...),
    photos: Optional[List[UploadFile]] = File(None),
    intake: BookingIntake = Depends(get_intake),
):
    """
    Creates a pending booking and texts the employee and the customer.
    """
    request = parse_payload(bookingData)
    result = await intake.submit(request, photos or [])

    return BookingCreatedResponse(
        booking_id=result.booking.booking_id,
        employee_sid=result.employee_handle.sid,
        customer_sid=result.customer_handle.sid
    )


@router.get("/bookings", response_model=BookingListResponse, response_model_by_alias=True)
async def list_bookings(store: BookingStore = Depends(get_booking_store)):
    """
    All bookings partitioned by status, newest first.
    """
    partitions = BookingListResponse()
    for booking in await store.list_all():
        if booking.status == BookingStatus.PENDING:
            partitions.pending.append(booking)
        elif booking.status == BookingStatus.CONFIRMED:
            partitions.confirmed.append(booking)
        elif booking.status == BookingStatus.COMPLETED:
            partitions.completed.append(booking)
    return partitions


@router.get("/bookings/{booking_id}", response_model=Booking, response_model_by_alias=True)
async def get_booking(booking_id: str, store: BookingStore = Depends(get_booking_store)):
    return await store.get(booking_id)
