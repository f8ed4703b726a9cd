"""
Event service handling catalog CRUD.

Every read is annotated with availability computed in the same query
(a correlated SUM over confirmed bookings), never from a stored counter.
Updates and deletes go through the event's admission gate so they cannot
interleave with an admission that is checking capacity.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from event_booking.core import clock
from event_booking.core.exceptions import Conflict, EventNotFound
from event_booking.core.logging import get_logger
from event_booking.models.booking import Booking
from event_booking.models.event import Event
from event_booking.schemas.event import EventCreate
from event_booking.services.availability import (
    Availability,
    committed_quantity,
    committed_subquery,
    project,
)
from event_booking.services.booking_service import lock_event
from event_booking.services.interfaces.admission import AdmissionGate

logger = get_logger(__name__)


def _apply(event: Event, event_data: EventCreate) -> None:
    event.title = event_data.title
    event.description = event_data.description
    event.date = event_data.date
    event.start_time = event_data.start_time
    event.end_time = event_data.end_time
    event.location = event_data.location
    event.capacity = event_data.capacity
    event.price = event_data.price
    event.image_url = str(event_data.image_url) if event_data.image_url else None


async def create_event(
    db: AsyncSession, event_data: EventCreate, organizer_id: int
) -> tuple[Event, Availability]:
    """Create a new event. Nothing is committed against it yet."""
    event = Event(created_by=organizer_id)
    _apply(event, event_data)
    db.add(event)
    await db.flush()
    await db.refresh(event)
    await db.commit()

    logger.info(
        "event_created",
        event_id=event.id,
        title=event.title,
        date=str(event.date),
        capacity=event.capacity,
        created_by=organizer_id,
    )
    return event, project(event, 0)


async def get_event(db: AsyncSession, event_id: int) -> tuple[Event, Availability]:
    """Get a single event by ID with its current availability."""
    result = await db.execute(
        select(Event, committed_subquery()).where(Event.id == event_id)
    )
    row = result.one_or_none()

    if row is None:
        raise EventNotFound(event_id)
    event, committed = row
    return event, project(event, committed)


async def list_events(db: AsyncSession) -> list[tuple[Event, Availability]]:
    """
    List upcoming events (dated today or later) with availability.
    Ordered by date, then start time, then id. Uses ix_events_date_start.
    """
    result = await db.execute(
        select(Event, committed_subquery())
        .where(Event.date >= clock.today())
        .order_by(Event.date.asc(), Event.start_time.asc(), Event.id.asc())
    )
    return [(event, project(event, committed)) for event, committed in result.all()]


async def update_event(
    db: AsyncSession,
    gate: AdmissionGate,
    event_id: int,
    event_data: EventCreate,
) -> tuple[Event, Availability]:
    """
    Replace an event's fields. Capacity may not drop below what is already
    committed, otherwise confirmed bookings would exceed it.
    """
    async with gate.hold(event_id):
        try:
            event = await lock_event(db, event_id)
            if event is None:
                raise EventNotFound(event_id)

            committed = await committed_quantity(db, event_id)
            if event_data.capacity < committed:
                raise Conflict(
                    f"Capacity cannot be reduced below the {committed} spots already booked",
                    committed=committed,
                    requested_capacity=event_data.capacity,
                )

            _apply(event, event_data)
            await db.flush()
            await db.refresh(event)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    logger.info("event_updated", event_id=event.id, capacity=event.capacity, committed=committed)
    return event, project(event, committed)


async def delete_event(db: AsyncSession, gate: AdmissionGate, event_id: int) -> None:
    """Delete an event together with all of its bookings."""
    async with gate.hold(event_id):
        try:
            event = await lock_event(db, event_id)
            if event is None:
                raise EventNotFound(event_id)

            result = await db.execute(delete(Booking).where(Booking.event_id == event_id))
            await db.execute(delete(Event).where(Event.id == event_id))
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    logger.info("event_deleted", event_id=event_id, bookings_removed=result.rowcount)
