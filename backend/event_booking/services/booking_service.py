"""
Booking service: admission control and cancellation against event capacity.

CONCURRENCY STRATEGY: Per-event gate + row lock + unique constraint
===================================================================

Problem:
  Two users try to book the last spot simultaneously.
  Both sum the confirmed quantity, both see one spot left, both insert.
  Result: Overbooking.

Solution:
  Every admission runs as one unit:

  1. Enter the event's AdmissionGate (asyncio.Lock or Redis lock per event)
  2. SELECT the event row FOR UPDATE (serialises writers across processes
     on PostgreSQL; a no-op on SQLite, where the gate alone serialises)
  3. Check: event exists and is dated today or later      -> EventNotFound
  4. Check: quantity <= capacity - SUM(confirmed quantity) -> CapacityExceeded
  5. Check: no booking row yet for (event, user)           -> DuplicateBooking
  6. INSERT the confirmed booking and COMMIT
  7. Leave the gate

  Any rejection rolls back before the gate is left, so partial writes are
  never visible. Cancellation takes the same gate and row lock, so a freed
  spot can never be lost to an admission that read the sum before it.

  The UNIQUE(event_id, user_id) constraint is the last line of defence
  against duplicate rows. If it fires (a race the gate did not cover, e.g.
  two workers with the local strategy on SQLite), the whole admission is
  rolled back and retried once, which then reports the precise error.
  A second conflict surfaces as Conflict rather than being retried again.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from event_booking.core import clock
from event_booking.core.exceptions import (
    AlreadyCancelled,
    BookingError,
    BookingNotFound,
    CapacityExceeded,
    Conflict,
    DuplicateBooking,
    EventNotFound,
)
from event_booking.core.logging import get_logger
from event_booking.models.booking import Booking, BookingStatus
from event_booking.models.event import Event
from event_booking.schemas.booking import AttendeeInfo
from event_booking.services.availability import committed_quantity, project
from event_booking.services.interfaces.admission import AdmissionGate

logger = get_logger(__name__)

# First attempt plus a single retry after a storage-level conflict
MAX_ADMISSION_ATTEMPTS = 2


async def lock_event(db: AsyncSession, event_id: int) -> Event | None:
    """Load an event with a row lock held until the transaction ends."""
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def submit_booking(
    db: AsyncSession,
    gate: AdmissionGate,
    user_id: int,
    event_id: int,
    attendee: AttendeeInfo,
    quantity: int = 1,
) -> Booking:
    """
    Admit and commit a booking, or raise a BookingError.
    Checks run in a fixed order: existence, capacity, duplicate.
    """
    for attempt in range(1, MAX_ADMISSION_ATTEMPTS + 1):
        try:
            async with gate.hold(event_id):
                return await _admit(db, user_id, event_id, attendee, quantity, attempt)
        except IntegrityError as e:
            logger.warning(
                "booking_retry",
                event_id=event_id,
                user_id=user_id,
                attempt=attempt,
                reason="integrity_conflict",
                error=str(e.orig),
            )

    raise Conflict(
        "Booking conflicted with a concurrent request. Please try again.",
        event_id=event_id,
    )


async def _admit(
    db: AsyncSession,
    user_id: int,
    event_id: int,
    attendee: AttendeeInfo,
    quantity: int,
    attempt: int,
) -> Booking:
    try:
        event = await lock_event(db, event_id)
        if event is None or event.date < clock.today():
            raise EventNotFound(event_id)

        availability = project(event, await committed_quantity(db, event_id))
        if quantity > availability.available_spots:
            raise CapacityExceeded(availability.available_spots, quantity)

        existing = await db.execute(
            select(Booking.id).where(
                Booking.event_id == event_id,
                Booking.user_id == user_id,
            )
        )
        if existing.first() is not None:
            raise DuplicateBooking(event_id)

        booking = Booking(
            event_id=event_id,
            user_id=user_id,
            attendee_name=attendee.name,
            attendee_email=attendee.email,
            attendee_phone=attendee.phone,
            quantity=quantity,
            status=BookingStatus.CONFIRMED.value,
        )
        db.add(booking)
        await db.flush()
        await db.refresh(booking)
        await db.commit()
    except BookingError as e:
        await db.rollback()
        logger.warning(
            "booking_rejected",
            event_id=event_id,
            user_id=user_id,
            requested=quantity,
            reason=e.code,
        )
        raise
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "booking_created",
        booking_id=booking.id,
        user_id=user_id,
        event_id=event_id,
        quantity=quantity,
        available_after=availability.available_spots - quantity,
        attempt=attempt,
    )
    return booking


async def cancel_booking(
    db: AsyncSession,
    gate: AdmissionGate,
    booking_id: int,
    user_id: int,
) -> Booking:
    """
    Cancel one of the user's bookings, freeing its quantity immediately.
    Someone else's booking is reported exactly like a missing one.
    """
    result = await db.execute(
        select(Booking.event_id).where(
            Booking.id == booking_id,
            Booking.user_id == user_id,
        )
    )
    event_id = result.scalar_one_or_none()
    # No transaction (and no pooled connection) is held while waiting on the gate
    await db.rollback()
    if event_id is None:
        raise BookingNotFound(booking_id)

    async with gate.hold(event_id):
        try:
            await lock_event(db, event_id)
            result = await db.execute(
                select(Booking)
                .where(Booking.id == booking_id, Booking.user_id == user_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            booking = result.scalar_one_or_none()

            if booking is None:
                raise BookingNotFound(booking_id)
            if booking.status == BookingStatus.CANCELLED.value:
                raise AlreadyCancelled(booking_id)

            booking.status = BookingStatus.CANCELLED.value
            await db.flush()
            await db.refresh(booking)
            await db.commit()
        except BookingError as e:
            await db.rollback()
            logger.warning(
                "booking_cancel_rejected",
                booking_id=booking_id,
                user_id=user_id,
                reason=e.code,
            )
            raise
        except Exception:
            await db.rollback()
            raise

    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        user_id=user_id,
        event_id=booking.event_id,
        quantity_released=booking.quantity,
    )
    return booking


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    """Get all bookings for a user, newest first, with their event."""
    result = await db.execute(
        select(Booking)
        .options(joinedload(Booking.event))
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def get_user_booking(db: AsyncSession, booking_id: int, user_id: int) -> Booking:
    result = await db.execute(
        select(Booking)
        .options(joinedload(Booking.event))
        .where(Booking.id == booking_id, Booking.user_id == user_id)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise BookingNotFound(booking_id)
    return booking


async def get_event_bookings(db: AsyncSession, event_id: int) -> list[Booking]:
    """All bookings of an event with their bookers. Admin view, no ownership scoping."""
    event = await db.get(Event, event_id)
    if event is None:
        raise EventNotFound(event_id)

    result = await db.execute(
        select(Booking)
        .options(joinedload(Booking.user))
        .where(Booking.event_id == event_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())
