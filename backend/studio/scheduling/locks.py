"""Per-instance mutual exclusion for booking commands."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from studio.scheduling.recurrence import InstanceKey


class InstanceLockRegistry:
    """Hands out one ``asyncio.Lock`` per (schedule_id, class_date).

    Locks are created on first use and dropped once nobody holds or waits on
    them, so the registry only ever contains instances with work in flight.
    """

    def __init__(self) -> None:
        self._locks: dict[InstanceKey, asyncio.Lock] = {}
        self._waiters: dict[InstanceKey, int] = {}

    @asynccontextmanager
    async def hold(self, key: InstanceKey) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_locked(self, key: InstanceKey) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
