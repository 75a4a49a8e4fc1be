"""
Keyed Lock

Architectural Intent:
- Serializes work on the same key across request threads
- Each HTTP request runs its own event loop, so the lock is a threading
  lock acquired off-loop rather than an asyncio.Lock
- Entries are reference counted and dropped once nobody holds or waits
"""

import asyncio
import threading
from contextlib import asynccontextmanager
from typing import AsyncIterator


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class KeyedLock:
    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def _checkout(self, key: str) -> _Entry:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        entry = self._checkout(key)
        try:
            if not entry.lock.acquire(blocking=False):
                await asyncio.get_running_loop().run_in_executor(
                    None, entry.lock.acquire
                )
        except BaseException:
            self._checkin(key, entry)
            raise
        try:
            yield
        finally:
            entry.lock.release()
            self._checkin(key, entry)
