import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class KeyedLocks:
    """
    One asyncio.Lock per key (owner name, receipt id).

    Serializes balance read-then-write sequences inside a process. Locks are
    kept per event loop because an asyncio.Lock cannot be shared across loops,
    and an entry is dropped as soon as nobody holds or waits on it.
    """

    def __init__(self):
        self._by_loop: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, _Entry]]" = (
            weakref.WeakKeyDictionary()
        )

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        loop = asyncio.get_running_loop()
        entries = self._by_loop.setdefault(loop, {})
        entry = entries.get(key)
        if entry is None:
            entry = entries[key] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del entries[key]

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._by_loop.values())


ledger_locks = KeyedLocks()
