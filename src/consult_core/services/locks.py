"""Per-lawyer mutual exclusion for booking writes."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator
from weakref import WeakValueDictionary


class LawyerLockRegistry:
    """One ``asyncio.Lock`` per lawyer id, created on demand.

    Serializes the conflict-check-then-write sequence of bookings and
    reschedules for one lawyer inside this process. Locks are dropped once no
    coroutine holds or waits on them. Cross-process serialization comes from
    the row lock taken on the lawyer profile in the same transaction.
    """

    def __init__(self) -> None:
        self._locks: "WeakValueDictionary[str, asyncio.Lock]" = WeakValueDictionary()

    def _lock_for(self, lawyer_id: str) -> asyncio.Lock:
        lock = self._locks.get(lawyer_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[lawyer_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, lawyer_id: str) -> AsyncIterator[None]:
        lock = self._lock_for(lawyer_id)
        async with lock:
            yield


_default_registry = LawyerLockRegistry()


def get_lawyer_lock_registry() -> LawyerLockRegistry:
    """Process-wide registry shared by booking and rescheduling."""
    return _default_registry
