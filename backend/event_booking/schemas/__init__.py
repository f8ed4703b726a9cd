from event_booking.schemas.user import UserCreate, UserResponse, UserLogin, AuthResponse
from event_booking.schemas.event import EventCreate, EventResponse, AvailabilityResponse
from event_booking.schemas.booking import BookingCreate, BookingResponse, AttendeeInfo

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "AuthResponse",
    "EventCreate", "EventResponse", "AvailabilityResponse",
    "BookingCreate", "BookingResponse", "AttendeeInfo",
]
