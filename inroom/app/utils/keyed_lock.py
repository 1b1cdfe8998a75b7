"""Per-key mutual exclusion for read-modify-write sections."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class LockTimeout(TimeoutError):
    """Raised when a keyed lock is not acquired within the timeout."""


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class KeyedLock:
    """Hand out one ``asyncio.Lock`` per key, created on demand.

    Holders of different keys never wait on each other. An entry is dropped
    once no task holds or waits for it, so the registry only grows with the
    number of keys in use at the same time. Entries belong to one event loop.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, key: str, timeout: float | None = None) -> AsyncIterator[None]:
        """Hold the lock for ``key``; raise :class:`LockTimeout` after ``timeout`` seconds."""

        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.users += 1
        acquired = False
        try:
            try:
                await asyncio.wait_for(entry.lock.acquire(), timeout)
            except asyncio.TimeoutError:
                raise LockTimeout(
                    f"lock for {key!r} not acquired in {timeout}s"
                ) from None
            acquired = True
            yield
        finally:
            if acquired:
                entry.lock.release()
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)

    def active_keys(self) -> int:
        return len(self._entries)
