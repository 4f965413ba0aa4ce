import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager


class PieLocks:
    """
    One asyncio.Lock per pie id, created on first use.

    The slice recorder and the settlement engine both hold a pie's lock
    while they touch it, so a settlement never interleaves with a slice
    insert for the same pie inside this process. Different pies never
    contend.
    """

    def __init__(self):
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def hold(self, pie_id: str):
        async with self._locks[pie_id]:
            yield

    def clear(self):
        """Forget locks that nobody holds (after clear-all)."""
        for pie_id in [key for key, lock in self._locks.items() if not lock.locked()]:
            del self._locks[pie_id]
