"""
Event model: one bookable occurrence with a fixed capacity.

Key design decisions:
- No denormalized seat counter. Availability is always derived from the
  confirmed bookings (see services/availability.py), so there is nothing to
  drift out of sync.
- date is a calendar date; start/end are "HH:MM" wall-clock strings, zero
  padded so (date, start_time) sorts correctly as plain columns.
- Composite index on (date, start_time) matches the listing query.
"""

from sqlalchemy import (
    Column, Integer, String, Date, Numeric, ForeignKey, Index, CheckConstraint,
)
from sqlalchemy.orm import relationship

from event_booking.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    location = Column(String(255), nullable=False)
    capacity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    image_url = Column(String(2048), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    bookings = relationship("Booking", back_populates="event", lazy="raise")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="check_capacity_positive"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        Index("ix_events_date_start", "date", "start_time"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, date={self.date}, capacity={self.capacity})>"
