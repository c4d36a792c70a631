"""
Per-source write serialisation.

Stage changes are read -> evaluate gate -> write, which is a check-then-act
sequence. Writes to the same source id are serialised through one asyncio
lock per id; the repository additionally issues SELECT ... FOR UPDATE so a
database with row locks (PostgreSQL) covers multiple worker processes.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Dict


class SourceLockRegistry:
    """Hands out one asyncio.Lock per source id."""

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}

    def lock_for(self, source_id: int) -> asyncio.Lock:
        lock = self._locks.get(source_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[source_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, source_id: int) -> AsyncGenerator[None, None]:
        """Critical section for writes to one source."""
        lock = self.lock_for(source_id)
        async with lock:
            yield

    def discard(self, source_id: int) -> None:
        """Forget the lock of a deleted source (no-op while it is held)."""
        lock = self._locks.get(source_id)
        if lock is not None and not lock.locked():
            del self._locks[source_id]


source_locks = SourceLockRegistry()
