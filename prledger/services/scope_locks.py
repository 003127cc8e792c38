"""Per-scope serialization of ledger writes inside one process."""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

Scope = tuple[uuid.UUID, uuid.UUID]


class ScopeLockRegistry:
    """One asyncio.Lock per (user, exercise).

    Work on the same scope runs one at a time; different scopes never wait on each
    other. A lock is dropped from the registry once nobody holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: dict[Scope, asyncio.Lock] = {}
        self._users: dict[Scope, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, user_id: uuid.UUID, exercise_id: uuid.UUID) -> bool:
        lock = self._locks.get((user_id, exercise_id))
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, user_id: uuid.UUID, exercise_id: uuid.UUID) -> AsyncIterator[None]:
        scope = (user_id, exercise_id)
        lock = self._locks.setdefault(scope, asyncio.Lock())
        self._users[scope] = self._users.get(scope, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[scope] -= 1
            if self._users[scope] == 0:
                del self._users[scope]
                del self._locks[scope]


scope_locks = ScopeLockRegistry()
