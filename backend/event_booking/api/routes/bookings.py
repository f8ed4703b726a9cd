"""
Booking endpoints with concurrency-safe admission control.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_booking.db.session import get_db
from event_booking.schemas.booking import (
    BookingCancelResponse, BookingCreate, BookingDetailResponse,
    BookingResponse, EventBookingResponse,
)
from event_booking.services.booking_service import (
    cancel_booking, get_event_bookings, get_user_booking, get_user_bookings, submit_booking,
)
from event_booking.services.interfaces.admission import AdmissionGate
from event_booking.services.strategy_factory import get_admission
from event_booking.core.security import Principal, get_current_user_id, require_admin

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    gate: AdmissionGate = Depends(get_admission),
):
    """
    Book spots for an event.

    The event's gate serialises this request against other bookings and
    cancellations of the same event, so capacity can never be oversold.
    Rejections: 404 event missing or past, 409 not enough spots,
    409 already booked.
    """
    return await submit_booking(
        db,
        gate,
        user_id=user_id,
        event_id=booking_data.event_id,
        attendee=booking_data.attendee(),
        quantity=booking_data.quantity,
    )


@router.get("/", response_model=list[BookingDetailResponse])
async def list_user_bookings(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings for the authenticated user."""
    return await get_user_bookings(db, user_id)


@router.get("/event/{event_id}", response_model=list[EventBookingResponse])
async def list_event_bookings(
    event_id: int,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Every booking of an event, with booker details. Admin only."""
    return await get_event_bookings(db, event_id)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_user_booking(db, booking_id, user_id)


@router.put("/{booking_id}/cancel", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    gate: AdmissionGate = Depends(get_admission),
):
    """Cancel a booking and release its spots back to the event."""
    booking = await cancel_booking(db, gate, booking_id, user_id)
    return BookingCancelResponse(
        message="Booking cancelled successfully",
        booking_id=booking.id,
        status=booking.status,
    )
