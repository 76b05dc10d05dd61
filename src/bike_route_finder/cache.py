"""Time-bounded cache of route results keyed by (start, end) address text."""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Sequence

from bike_route_finder.models import RouteOption

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60
DEFAULT_MAX_SIZE = 256

# Joins start and end into one key; not expected in address text
KEY_SEPARATOR = "\x1f"


def normalize_key(start: str, end: str) -> str:
    """Case-folded, trimmed start and end joined in order."""
    return f"{start.strip().casefold()}{KEY_SEPARATOR}{end.strip().casefold()}"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    routes: tuple[RouteOption, ...]
    created_at: float


class ResultCache:
    """Thread-safe LRU cache of route lists with a fixed time-to-live.

    Entries older than the TTL are treated as absent at lookup time and
    dropped; there is no background eviction. The clock is injectable so
    expiry can be tested without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int | None = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl_seconds
        self.max_size = max_size
        self.clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self.lock = Lock()
        self.hits = 0
        self.misses = 0

    def get(self, start: str, end: str) -> list[RouteOption] | None:
        """Cached routes for the pair, or None if missing or expired."""
        key = normalize_key(start, end)
        with self.lock:
            entry = self._entries.get(key)
            if entry is not None and self.clock() - entry.created_at < self.ttl:
                self._entries.move_to_end(key)
                self.hits += 1
                return list(entry.routes)
            if entry is not None:
                del self._entries[key]
            self.misses += 1
            return None

    def put(self, start: str, end: str, routes: Sequence[RouteOption]) -> None:
        """Store routes for the pair, replacing any previous entry."""
        key = normalize_key(start, end)
        entry = CacheEntry(key=key, routes=tuple(routes), created_at=self.clock())
        with self.lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = entry
            # Evict least recently used if over limit
            while self.max_size is not None and len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cache entry %r", evicted)

    def stats(self) -> dict:
        """Return cache statistics."""
        with self.lock:
            total = self.hits + self.misses
            hit_rate = (self.hits / total * 100) if total > 0 else 0
            return {
                "hit_rate": f"{hit_rate:.1f}%",
                "hits": self.hits,
                "misses": self.misses,
                "size": len(self._entries),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl,
            }

    def clear(self) -> int:
        """Clear all cached entries. Returns number of entries cleared."""
        with self.lock:
            count = len(self._entries)
            self._entries.clear()
            self.hits = 0
            self.misses = 0
            return count
