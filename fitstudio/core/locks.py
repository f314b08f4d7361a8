"""Per-key asyncio locks for read-decide-write units."""
import asyncio
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class KeyedLock:
    """Hands out one ``asyncio.Lock`` per key.

    Two coroutines holding different keys never wait on each other; two
    coroutines holding the same key run one after the other. A lock is
    dropped as soon as nobody holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._holders: Counter = Counter()

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] <= 0:
                del self._holders[key]
                self._locks.pop(key, None)

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()


session_locks = KeyedLock()
template_locks = KeyedLock()
