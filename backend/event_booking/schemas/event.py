"""
Pydantic schemas for event-related request/response validation.
"""

import re
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, HttpUrl, field_validator

from event_booking.core import clock

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    date: date
    start_time: str
    end_time: str
    location: str = Field(..., min_length=1, max_length=255)
    capacity: int = Field(..., gt=0, le=100000)
    price: float = Field(0, ge=0, le=99999999)
    image_url: Optional[HttpUrl] = None

    @field_validator("title", "location")
    @classmethod
    def strip_required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("date")
    @classmethod
    def date_not_in_past(cls, value: date) -> date:
        if value < clock.today():
            raise ValueError("event date must be today or later")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_time(cls, value: str) -> str:
        match = TIME_PATTERN.match(value.strip())
        if not match:
            raise ValueError("time must be HH:MM (24h)")
        hours, minutes = match.groups()
        return f"{int(hours):02d}:{minutes}"


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    date: date
    start_time: str
    end_time: str
    location: str
    capacity: int
    price: float
    image_url: Optional[str]
    created_by: int
    created_at: datetime
    available_spots: int
    is_full: bool


class AvailabilityResponse(BaseModel):
    event_id: int
    capacity: int
    committed: int
    available_spots: int
    is_full: bool

    model_config = {"from_attributes": True}


class EventDeleteResponse(BaseModel):
    message: str
    event_id: int
