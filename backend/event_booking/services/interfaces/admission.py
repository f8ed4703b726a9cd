"""
Admission gate interface.
Allows swapping between different per-event mutual exclusion approaches.
"""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class AdmissionGate(ABC):
    """
    Serialises every state change that depends on an event's committed
    quantity: booking admission, cancellation and capacity updates.

    Implementations:
    - LocalAdmissionGate: asyncio.Lock per event, single process
    - RedisAdmissionGate: Redis lock per event, shared by all workers

    Holders must finish their transaction (commit or rollback) before the
    context exits. Acquisition never waits longer than the configured
    timeout; on timeout the gate raises Conflict instead of blocking.
    """

    @abstractmethod
    def hold(self, event_id: int) -> AsyncContextManager[None]:
        """
        Exclusive section for one event.

        Usage:
            async with gate.hold(event_id):
                ...check, write, commit...
        """
