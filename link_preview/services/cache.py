from collections import OrderedDict
from typing import Generic, Hashable, TypeVar

from link_preview.schemas import CacheStats

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class BoundedCache(Generic[K, V]):
    """Fixed-capacity LRU map with hit/miss/eviction counters.

    Not synchronized: every operation is a single non-suspending step, which
    is enough on one event loop.
    """

    def __init__(self, capacity: int = 1000):
        self._capacity = max(1, capacity)
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, key: K) -> V | None:
        if key not in self._entries:
            self._misses += 1
            return None
        self._entries.move_to_end(key)
        self._hits += 1
        return self._entries[key]

    def set(self, key: K, value: V) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self._capacity:
            self._evict_oldest()
        self._entries[key] = value

    def delete(self, key: K) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def resize(self, capacity: int) -> None:
        self._capacity = max(1, capacity)
        while len(self._entries) > self._capacity:
            self._evict_oldest()

    def keys(self) -> list[K]:
        """Keys from least to most recently used."""
        return list(self._entries)

    def stats(self) -> CacheStats:
        total = self._hits + self._misses
        hit_rate = self._hits / total if total else 0.0
        return CacheStats(
            size=len(self._entries),
            capacity=self._capacity,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            # percentage, two decimals
            hit_rate=round(hit_rate * 100, 2),
        )

    def _evict_oldest(self) -> None:
        self._entries.popitem(last=False)
        self._evictions += 1
