"""
Availability projection: derives committed / available spots for events.

Nothing here is stored. Every call sums the confirmed bookings of the event
at the time of the read:

    committed       = SUM(quantity) over confirmed bookings
    available_spots = capacity - committed
    is_full         = available_spots <= 0

The admission path calls `committed_quantity` only after it holds the event's
gate and row lock, so the value it sees cannot be overtaken by another
admission or cancellation for the same event.
"""

from dataclasses import asdict, dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from event_booking.core.exceptions import EventNotFound
from event_booking.models.booking import Booking, BookingStatus
from event_booking.models.event import Event


@dataclass(frozen=True)
class Availability:
    event_id: int
    capacity: int
    committed: int

    @property
    def available_spots(self) -> int:
        return self.capacity - self.committed

    @property
    def is_full(self) -> bool:
        return self.available_spots <= 0

    def as_dict(self) -> dict:
        return {
            **asdict(self),
            "available_spots": self.available_spots,
            "is_full": self.is_full,
        }


def committed_subquery():
    """Correlated scalar subquery of confirmed quantity, for use alongside Event."""
    return (
        select(func.coalesce(func.sum(Booking.quantity), 0))
        .where(
            Booking.event_id == Event.id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        .correlate(Event)
        .scalar_subquery()
        .label("committed")
    )


async def committed_quantity(db: AsyncSession, event_id: int) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(Booking.quantity), 0)).where(
            Booking.event_id == event_id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
    )
    return int(result.scalar_one())


def project(event: Event, committed: int) -> Availability:
    return Availability(event_id=event.id, capacity=event.capacity, committed=int(committed))


async def get_availability(db: AsyncSession, event_id: int) -> Availability:
    """Availability of a single event. Raises EventNotFound if it does not exist."""
    result = await db.execute(
        select(Event.id, Event.capacity, committed_subquery()).where(Event.id == event_id)
    )
    row = result.one_or_none()
    if row is None:
        raise EventNotFound(event_id)
    return Availability(event_id=row.id, capacity=row.capacity, committed=int(row.committed))
