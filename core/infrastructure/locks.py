"""
Per-organization write locks.

Renewal and activation of one organization must not interleave. Locks
are asyncio locks, one per organization and event loop: under ASGI every
handler runs on the server loop, while each bare async_to_sync call
(management commands, Celery tasks) gets a loop, and locks, of its own.
"""
import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator


class OrganizationLocks:
    """Registry handing out one lock per organization."""

    def __init__(self):
        # event loop -> organization ID -> lock
        self._locks = weakref.WeakKeyDictionary()

    def _lock_for(self, organization_id: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        locks = self._locks.setdefault(loop, {})
        lock = locks.get(organization_id)
        if lock is None:
            lock = asyncio.Lock()
            locks[organization_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, organization_id: str) -> AsyncIterator[None]:
        """
        Serialize a block of work for one organization.

        A waiter cancelled before it gets the lock leaves it untouched.

        Args:
            organization_id: Organization whose writes are serialized

        Usage:
            async with locks.hold("org1"):
                ...
        """
        async with self._lock_for(organization_id):
            yield

    def is_held(self, organization_id: str) -> bool:
        return self._lock_for(organization_id).locked()
