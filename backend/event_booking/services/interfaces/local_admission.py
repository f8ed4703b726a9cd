"""
In-process admission gate: one asyncio.Lock per event.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from event_booking.core.exceptions import Conflict
from event_booking.core.logging import get_logger
from event_booking.services.interfaces.admission import AdmissionGate

logger = get_logger(__name__)


class LocalAdmissionGate(AdmissionGate):
    """
    Single-writer-per-event gate for one worker process.

    Use when:
    - One API process (or PostgreSQL row locks cover the other workers)
    - Tests and development

    Locks are created on first use and dropped as soon as nobody holds or
    waits on them, so the table only ever contains events under contention.
    """

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, event_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(event_id, asyncio.Lock())
        self._users[event_id] = self._users.get(event_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
            except asyncio.TimeoutError:
                logger.warning("admission_gate_timeout", event_id=event_id, timeout=self.timeout)
                raise Conflict(
                    f"Event {event_id} is busy, please try again",
                    event_id=event_id,
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[event_id] -= 1
            if self._users[event_id] == 0:
                del self._users[event_id]
                self._locks.pop(event_id, None)

    def active_events(self) -> set[int]:
        """Events that currently have a holder or waiter."""
        return set(self._locks)
