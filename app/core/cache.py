"""
In-memory response cache with TTL expiry and prefix invalidation.

Entries are keyed by ``(endpoint, params)``. The cache is an explicit
collaborator: the ESPN service receives one at construction time and
the admin route can invalidate it, instead of every module reaching
for its own module-level dict.

Usage:
    cache = ResponseCache(default_ttl=300)
    cache.set("scoreboard", {"league": "nba"}, data)
    cache.get("scoreboard", {"league": "nba"})
    cache.invalidate("scoreboard")  # drop every scoreboard entry
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Tuple

from app.core.logging import get_logger

logger = get_logger(__name__)

CacheKey = Tuple[str, Tuple[Tuple[str, Hashable], ...]]


@dataclass
class CacheEntry:
    """Cached value and the clock reading after which it is stale."""
    data: Any
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class ResponseCache:
    """TTL cache keyed by endpoint name and request parameters."""

    def __init__(
        self,
        default_ttl: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            default_ttl: TTL in seconds used when ``set`` gets no ttl
            clock: Monotonic time source (injectable for tests)
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}

    @staticmethod
    def make_key(endpoint: str, params: Optional[Mapping[str, Hashable]] = None) -> CacheKey:
        """Build a hashable key; parameter order does not matter."""
        items = tuple(sorted((params or {}).items()))
        return endpoint, items

    def get(self, endpoint: str, params: Optional[Mapping[str, Hashable]] = None) -> Optional[Any]:
        """Return the cached value, or None if missing or expired."""
        key = self.make_key(endpoint, params)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not entry.is_valid(self._clock()):
            del self._entries[key]
            return None
        return entry.data

    def set(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Hashable]],
        data: Any,
        ttl: Optional[float] = None,
    ) -> None:
        """Store a value with its own TTL (or the default)."""
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[self.make_key(endpoint, params)] = CacheEntry(data, self._clock() + ttl)

    def discard(self, endpoint: str, params: Optional[Mapping[str, Hashable]] = None) -> None:
        """Drop a single entry if present."""
        self._entries.pop(self.make_key(endpoint, params), None)

    def invalidate(self, prefix: Optional[str] = None) -> int:
        """
        Drop cached entries.

        Args:
            prefix: Only drop entries whose endpoint starts with this
                    string. None clears the whole cache.

        Returns:
            Number of entries removed
        """
        if prefix is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            stale = [key for key in self._entries if key[0].startswith(prefix)]
            for key in stale:
                del self._entries[key]
            removed = len(stale)

        logger.info(f"Invalidated {removed} cache entries (prefix={prefix or '*'})")
        return removed

    def __len__(self) -> int:
        return len(self._entries)
