"""
Memoization for derived schedule structures.

Entries are keyed on the identity of the input snapshots plus the job's
invalidation token. Snapshots are immutable, so the same objects always
produce the same rows and stats; a changed structure arrives as new objects or
a bumped token and misses the cache.
"""

from collections import OrderedDict
from collections.abc import Sequence, Set
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from ...core.observability import get_logger

logger = get_logger(__name__)

CacheKey = tuple[Any, ...]


@dataclass
class CacheEntry:
    """Cached value together with the exact inputs it was computed from."""

    key: CacheKey
    inputs: tuple[object, ...]
    value: Any
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    access_count: int = 0
    tags: set[str] = field(default_factory=set)


class StructureCache:
    """LRU cache for pure structure computations."""

    def __init__(self, max_entries: int = 128) -> None:
        self.max_entries = max(1, max_entries)
        self.cache: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(namespace: str, inputs: Sequence[object], token: int) -> CacheKey:
        return (namespace, token, *(id(obj) for obj in inputs))

    def get(self, namespace: str, inputs: Sequence[object], token: int = 0) -> Any | None:
        key = self.make_key(namespace, inputs, token)
        entry = self.cache.get(key)
        # ids can be reused after garbage collection; require the very same objects
        if entry is not None and all(a is b for a, b in zip(entry.inputs, inputs)):
            self.cache.move_to_end(key)
            entry.access_count += 1
            self.hits += 1
            return entry.value
        self.misses += 1
        return None

    def set(
        self,
        namespace: str,
        inputs: Sequence[object],
        value: Any,
        token: int = 0,
        tags: set[str] | None = None,
    ) -> None:
        key = self.make_key(namespace, inputs, token)
        self.cache.pop(key, None)
        while len(self.cache) >= self.max_entries:
            oldest_key, _ = self.cache.popitem(last=False)
            logger.debug("Evicted structure cache entry", key=str(oldest_key[0]))
        self.cache[key] = CacheEntry(key=key, inputs=tuple(inputs), value=value, tags=tags or set())

    def invalidate_by_tags(self, tags: Set[str]) -> int:
        """Drop every entry carrying any of ``tags``; returns how many were removed."""
        stale = [key for key, entry in self.cache.items() if entry.tags & tags]
        for key in stale:
            del self.cache[key]
        return len(stale)

    def clear(self) -> None:
        self.cache.clear()

    def __len__(self) -> int:
        return len(self.cache)

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def get_stats(self) -> dict[str, Any]:
        return {
            "entries": len(self.cache),
            "max_entries": self.max_entries,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
        }
