"""
Admission gate factory.
Configures which admission strategy guards per-event critical sections.
"""

from typing import Optional

from event_booking.core.config import get_settings
from event_booking.services.admission_service import RedisAdmissionGate
from event_booking.services.interfaces.admission import AdmissionGate
from event_booking.services.interfaces.local_admission import LocalAdmissionGate


def get_admission_strategy() -> AdmissionGate:
    """
    Build the configured admission gate.

    Strategy selection (ADMISSION_STRATEGY env var):
    - local: LocalAdmissionGate (single process, default)
    - redis: RedisAdmissionGate (multiple workers)
    """
    settings = get_settings()
    strategy = settings.ADMISSION_STRATEGY.lower()

    if strategy == "redis":
        return RedisAdmissionGate(
            timeout=settings.ADMISSION_LOCK_TIMEOUT,
            ttl=settings.ADMISSION_LOCK_TTL,
        )
    if strategy == "local":
        return LocalAdmissionGate(timeout=settings.ADMISSION_LOCK_TIMEOUT)
    raise ValueError(f"Unknown ADMISSION_STRATEGY: {settings.ADMISSION_STRATEGY!r}")


# Singleton instance
_gate: Optional[AdmissionGate] = None


def get_admission() -> AdmissionGate:
    """Get admission gate singleton. Also used as a FastAPI dependency."""
    global _gate
    if _gate is None:
        _gate = get_admission_strategy()
    return _gate
