"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from event_booking.core.config import get_settings


class AttendeeInfo(BaseModel):
    """Contact details of the person attending, as given on the booking form."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50, pattern=r"^\+?[\d\s\-()]+$")


class BookingCreate(BaseModel):
    event_id: int = Field(..., gt=0)
    attendee_name: str = Field(..., min_length=1, max_length=255)
    attendee_email: EmailStr
    attendee_phone: Optional[str] = Field(None, max_length=50, pattern=r"^\+?[\d\s\-()]+$")
    quantity: int = Field(default=1, gt=0)

    @field_validator("attendee_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("quantity")
    @classmethod
    def within_booking_limit(cls, value: int) -> int:
        limit = get_settings().MAX_BOOKING_QUANTITY
        if value > limit:
            raise ValueError(f"at most {limit} spots per booking")
        return value

    def attendee(self) -> AttendeeInfo:
        return AttendeeInfo(
            name=self.attendee_name,
            email=self.attendee_email,
            phone=self.attendee_phone,
        )


class BookingResponse(BaseModel):
    id: int
    event_id: int
    user_id: int
    attendee_name: str
    attendee_email: str
    attendee_phone: Optional[str]
    quantity: int
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class EventSummary(BaseModel):
    id: int
    title: str
    date: date
    start_time: str
    end_time: str
    location: str

    model_config = {"from_attributes": True}


class BookerSummary(BaseModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}


class BookingDetailResponse(BookingResponse):
    event: EventSummary


class EventBookingResponse(BookingResponse):
    user: BookerSummary


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
    status: str
