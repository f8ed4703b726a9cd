"""
Event endpoints. Reads are public; writes require an admin principal.
Availability is computed on every read, nothing is cached.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_booking.db.session import get_db
from event_booking.models.event import Event
from event_booking.schemas.event import (
    AvailabilityResponse, EventCreate, EventDeleteResponse, EventResponse,
)
from event_booking.services.availability import Availability, get_availability
from event_booking.services.event_service import (
    create_event, delete_event, get_event, list_events, update_event,
)
from event_booking.services.interfaces.admission import AdmissionGate
from event_booking.services.strategy_factory import get_admission
from event_booking.core.security import Principal, require_admin

router = APIRouter(prefix="/events", tags=["Events"])


def to_response(event: Event, availability: Availability) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date,
        start_time=event.start_time,
        end_time=event.end_time,
        location=event.location,
        capacity=event.capacity,
        price=event.price,
        image_url=event.image_url,
        created_by=event.created_by,
        created_at=event.created_at,
        available_spots=availability.available_spots,
        is_full=availability.is_full,
    )


@router.get("/", response_model=list[EventResponse])
async def list_events_endpoint(db: AsyncSession = Depends(get_db)):
    """Upcoming events ordered by date and start time, with live availability."""
    return [to_response(event, availability) for event, availability in await list_events(db)]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    event, availability = await get_event(db, event_id)
    return to_response(event, availability)


@router.get("/{event_id}/availability", response_model=AvailabilityResponse)
async def get_availability_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    availability = await get_availability(db, event_id)
    return AvailabilityResponse(**availability.as_dict())


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event. Requires the admin role."""
    event, availability = await create_event(db, event_data, admin.id)
    return to_response(event, availability)


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventCreate,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    gate: AdmissionGate = Depends(get_admission),
):
    """Replace an event. Capacity cannot drop below booked spots."""
    event, availability = await update_event(db, gate, event_id, event_data)
    return to_response(event, availability)


@router.delete("/{event_id}", response_model=EventDeleteResponse)
async def delete_event_endpoint(
    event_id: int,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    gate: AdmissionGate = Depends(get_admission),
):
    await delete_event(db, gate, event_id)
    return EventDeleteResponse(message="Event deleted successfully", event_id=event_id)
