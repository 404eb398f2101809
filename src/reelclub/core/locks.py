"""Per-scope serialization.

Submissions, picks and rollovers for one scope run their check-then-act
sequences under the same lock; different scopes never contend. The locks are
process-local: cross-process races are caught by the relational adapter's
unique constraints instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

GLOBAL_SCOPE_KEY = "__global__"


def scope_key(scope_id: str | None) -> str:
    return GLOBAL_SCOPE_KEY if scope_id is None else scope_id


class ScopeLocks:
    """Registry of one ``asyncio.Lock`` per scope, created on first use."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, scope_id: str | None) -> asyncio.Lock:
        key = scope_key(scope_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, scope_id: str | None, *, reason: str = "") -> AsyncIterator[None]:
        lock = self.get(scope_id)
        if lock.locked():
            logger.debug("scope_lock_wait scope=%s reason=%s", scope_key(scope_id), reason)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
