"""
Bounded, time-limited cache for fetched CID content
"""
import time
from typing import Any, Callable, List, Optional

import structlog
from cachetools import TTLCache

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ENTRIES = 1000
DEFAULT_TTL_SECONDS = 30 * 60


class ContentCache:
    """LRU cache where every entry expires a fixed time after insertion.

    One instance is meant to be shared by every fetcher in a process. It is
    not thread-safe; all access happens on the event loop.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        timer: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._entries = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=timer)

    def get(self, key: str) -> Optional[Any]:
        """Return the value for key, or None when absent or expired.

        A hit makes the entry the most recently used one.
        """
        # drop expired entries so an expired key is gone, not just hidden
        self._entries.expire()
        try:
            return self._entries[key]
        except KeyError:
            return None

    def set(self, key: str, value: Any) -> None:
        """Insert or replace key, evicting the least recently used entry if full."""
        self._entries.expire()
        if key not in self._entries and len(self._entries) >= self.max_entries:
            logger.debug("cache_evict", max_entries=self.max_entries)
        self._entries[key] = value

    def keys(self) -> List[str]:
        """CIDs currently held and not yet expired."""
        self._entries.expire()
        return list(self._entries.keys())

    def clear(self, key: str = None):
        if key is not None:
            self._entries.pop(key, None)
        else:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)
