"""Persistent per-host icon cache.

Entries live in memory and are written through to the ``icon_cache`` table so
they survive restarts. Expiry is lazy: an entry older than the horizon is
treated as absent when read, and dropped at that point.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from link_preview.models import IconRecord
from link_preview.schemas import IconStats

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
DEFAULT_EXPIRY_MS = 30 * DAY_MS


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class IconCacheEntry:
    ref: str | None
    fetched_at: int


class IconStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        expiry_ms: int = DEFAULT_EXPIRY_MS,
        clock: Callable[[], int] = _now_ms,
    ):
        self._session_factory = session_factory
        self._expiry_ms = expiry_ms
        self._clock = clock
        self._entries: dict[str, IconCacheEntry] = {}

    async def load(self) -> None:
        """Rehydrate the in-memory map from the database."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(IconRecord))
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.warning("Failed to load icon cache: %s", e)
            return

        now = self._clock()
        self._entries = {
            record.host: IconCacheEntry(ref=record.ref, fetched_at=record.fetched_at)
            for record in records
            if not self._is_expired(record.fetched_at, now)
        }
        logger.debug("Loaded %d icon cache entries", len(self._entries))

    def lookup(self, host: str) -> IconCacheEntry | None:
        """Return the live entry for ``host``, including cached negatives."""
        entry = self._entries.get(host)
        if entry is None:
            return None
        if self._is_expired(entry.fetched_at, self._clock()):
            del self._entries[host]
            return None
        return entry

    def get(self, host: str) -> str | None:
        entry = self.lookup(host)
        return entry.ref if entry else None

    async def set(self, host: str, ref: str | None) -> None:
        entry = IconCacheEntry(ref=ref, fetched_at=self._clock())
        self._entries[host] = entry
        try:
            async with self._session_factory() as session:
                await session.merge(
                    IconRecord(host=host, ref=entry.ref, fetched_at=entry.fetched_at)
                )
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning("Failed to persist icon for %s: %s", host, e)

    async def clear(self) -> None:
        self._entries.clear()
        try:
            async with self._session_factory() as session:
                await session.execute(delete(IconRecord))
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning("Failed to clear icon cache table: %s", e)

    def stats(self) -> IconStats:
        """Counts only entries ``lookup`` would still return."""
        now = self._clock()
        live = [
            e.fetched_at
            for e in self._entries.values()
            if not self._is_expired(e.fetched_at, now)
        ]
        return IconStats(entries=len(live), oldest_timestamp=min(live, default=None))

    def _is_expired(self, fetched_at: int, now: int) -> bool:
        return now - fetched_at >= self._expiry_ms
