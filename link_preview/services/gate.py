import asyncio
import itertools
import logging
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_permit_ids = itertools.count(1)


@dataclass(eq=False)
class Permit:
    id: int = field(default_factory=lambda: next(_permit_ids))
    released: bool = False


class ConcurrencyGate:
    """Admission control for outbound requests.

    At most ``limit`` permits are held at once. Callers beyond that wait and
    are admitted strictly in arrival order.
    """

    def __init__(self, limit: int = 10):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self._limit = limit
        self._active = 0
        self._peak = 0
        self._waiters: deque[asyncio.Future[Permit]] = deque()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def active(self) -> int:
        return self._active

    @property
    def waiting(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    @property
    def peak(self) -> int:
        """Highest number of permits held at once since creation."""
        return self._peak

    async def acquire(self) -> Permit:
        if self._active < self._limit and not self._waiters:
            return self._grant()

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Granted just before the cancellation landed; hand it on.
                self.release(waiter.result())
            else:
                self._discard(waiter)
            raise

    def release(self, permit: Permit) -> None:
        if permit.released:
            logger.debug("Permit %d released twice", permit.id)
            return
        permit.released = True
        self._active -= 1
        self._wake()

    def resize(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self._limit = limit
        self._wake()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[Permit]:
        permit = await self.acquire()
        try:
            yield permit
        finally:
            self.release(permit)

    def _grant(self) -> Permit:
        self._active += 1
        self._peak = max(self._peak, self._active)
        return Permit()

    def _wake(self) -> None:
        while self._waiters and self._active < self._limit:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            waiter.set_result(self._grant())

    def _discard(self, waiter: asyncio.Future[Permit]) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass
