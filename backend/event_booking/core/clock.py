"""
Calendar helpers. Event dates are wall-clock dates, so "today" is taken in
the configured EVENT_TIMEZONE rather than from the server's local clock.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from event_booking.core.config import get_settings


def today() -> date:
    return datetime.now(ZoneInfo(get_settings().EVENT_TIMEZONE)).date()
