"""
Fetches CID content through the shared cache, retrying the gateway on a miss
and recording per-CID status for the session.
"""
import asyncio
from datetime import datetime
from typing import Any, List, Optional, Sequence

import structlog

from .cache import ContentCache
from .retry import RetryingFetch
from .status import StatusTracker

logger = structlog.get_logger(__name__)


class ContentFetcher:
    """One fetch session: a status tracker over a shared cache and gateway.

    Errors never escape ``fetch_cid_content`` or ``fetch_multiple_cids``; a
    None result is explained by ``get_error``.

    Concurrent fetches of the same uncached CID are not coalesced and each
    one goes to the gateway.
    """

    def __init__(
        self,
        cache: ContentCache,
        retrying_fetch: RetryingFetch,
        tracker: StatusTracker = None,
        settle_on_cache_hit: bool = False,
    ):
        self.cache = cache
        self.retrying_fetch = retrying_fetch
        self.tracker = tracker or StatusTracker()
        # A cache hit leaves the CID marked as loading unless this is set
        self.settle_on_cache_hit = settle_on_cache_hit

    async def fetch_cid_content(self, cid: str) -> Optional[Any]:
        """Return the content for cid from the cache or the gateway."""
        if not cid:
            return None

        self.tracker.mark_loading(cid)

        cached = self.cache.get(cid)
        if cached is not None:
            logger.debug("cache_hit", cid=cid)
            if self.settle_on_cache_hit:
                self.tracker.mark_success(cid)
            return cached

        try:
            data = await self.retrying_fetch.fetch(cid)
            self.cache.set(cid, data)
            self.tracker.mark_success(cid)
            return data
        except Exception as e:
            logger.error("fetch_cid_error", cid=cid, error=str(e))
            self.tracker.mark_error(cid, str(e) or "Unknown error")
            return None

    async def fetch_multiple_cids(self, cids: Sequence[str]) -> List[Optional[Any]]:
        """Fetch every CID concurrently; results follow the input order."""
        return list(await asyncio.gather(*(self.fetch_cid_content(cid) for cid in cids)))

    def is_loading(self, cid: str) -> bool:
        return self.tracker.is_loading(cid)

    def get_error(self, cid: str) -> Optional[str]:
        return self.tracker.get_error(cid)

    def get_last_updated(self, cid: str) -> Optional[datetime]:
        return self.tracker.get_last_updated(cid)
