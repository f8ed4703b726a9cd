"""
Domain errors raised by the catalog and booking services.

Services raise these instead of HTTPException so the admission logic can be
driven without an HTTP layer. `main.py` registers a single handler that
renders any BookingError as `{"detail": ..., "code": ..., **extra}`.
"""

from fastapi import status


class BookingError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "booking_error"

    def __init__(self, detail: str, **extra):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code, **self.extra}


class EventNotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "event_not_found"

    def __init__(self, event_id: int):
        super().__init__(f"Event {event_id} not found or has already passed")
        self.event_id = event_id


class BookingNotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "booking_not_found"

    def __init__(self, booking_id: int):
        super().__init__("Booking not found")
        self.booking_id = booking_id


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class CapacityExceeded(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = "capacity_exceeded"

    def __init__(self, available_spots: int, requested: int):
        super().__init__(
            f"Only {max(available_spots, 0)} spots available, but {requested} requested",
            available_spots=max(available_spots, 0),
            requested=requested,
        )


class DuplicateBooking(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_booking"

    def __init__(self, event_id: int):
        super().__init__("You have already booked this event", event_id=event_id)


class AlreadyCancelled(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "already_cancelled"

    def __init__(self, booking_id: int):
        super().__init__("Booking is already cancelled", booking_id=booking_id)


class Conflict(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
