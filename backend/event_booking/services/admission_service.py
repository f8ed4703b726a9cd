"""
Distributed admission gate backed by Redis locks.
Implements AdmissionGate for deployments with several API workers.

Failure mode:
  If Redis cannot be reached the gate degrades to the in-process gate and
  logs a warning. The database stays authoritative: the admission
  transaction still takes a row lock on the event (SELECT ... FOR UPDATE) and
  the (event_id, user_id) unique constraint, so PostgreSQL keeps workers from
  overbooking while Redis is down. Only the fail-fast behaviour is lost.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional

import redis.asyncio as redis
from redis.exceptions import LockError, RedisError

from event_booking.core.exceptions import Conflict
from event_booking.core.logging import get_logger
from event_booking.infrastructure.redis_client import get_redis
from event_booking.services.interfaces.admission import AdmissionGate
from event_booking.services.interfaces.local_admission import LocalAdmissionGate

logger = get_logger(__name__)

LOCK_KEY = "admission:event:{event_id}"


class RedisAdmissionGate(AdmissionGate):
    """
    Redis-based per-event lock.

    The lock TTL bounds how long a crashed holder can block an event; the
    blocking timeout bounds how long a request waits before failing with
    Conflict.

    Use when:
    - More than one API worker process
    - Flash sales / viral events where fail-fast matters
    """

    def __init__(
        self,
        timeout: float = 5.0,
        ttl: float = 10.0,
        client_factory: Callable[[], Awaitable[Optional[redis.Redis]]] = get_redis,
    ):
        self.timeout = timeout
        self.ttl = ttl
        self._client_factory = client_factory
        self._fallback = LocalAdmissionGate(timeout=timeout)

    @asynccontextmanager
    async def hold(self, event_id: int) -> AsyncIterator[None]:
        lock = await self._acquire(event_id)

        if lock is None:
            async with self._fallback.hold(event_id):
                yield
            return

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # TTL ran out while the section was still running
                logger.warning("admission_lock_expired", event_id=event_id, ttl=self.ttl)
            except RedisError as e:
                # The section has already committed or rolled back; the TTL frees the key
                logger.error("admission_lock_release_failed", event_id=event_id, error=str(e))

    async def _acquire(self, event_id: int):
        """Return the acquired Redis lock, or None when Redis is unavailable."""
        client = await self._client_factory()
        if client is None:
            logger.warning("admission_redis_unavailable", event_id=event_id)
            return None

        lock = client.lock(
            LOCK_KEY.format(event_id=event_id),
            timeout=self.ttl,
            blocking=True,
            blocking_timeout=self.timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            logger.error("admission_redis_error", event_id=event_id, error=str(e))
            return None

        if not acquired:
            logger.warning("admission_gate_timeout", event_id=event_id, timeout=self.timeout)
            raise Conflict(
                f"Event {event_id} is busy, please try again",
                event_id=event_id,
            )
        return lock
