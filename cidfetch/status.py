"""
Per-CID fetch status: loading flag, last error and last update time
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FetchStatus:
    """Status of the most recent fetch for one CID."""

    loading: bool = False
    error: Optional[str] = None
    last_updated: Optional[datetime] = None


class StatusTracker:
    """Tracks fetch status for every CID seen by one fetch session.

    The mapping is replaced, never mutated, on each update so a snapshot
    taken from ``statuses`` stays valid after later updates. Entries are
    never removed; a CID with no entry has never been fetched.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock
        self._statuses: Dict[str, FetchStatus] = {}

    def _update(self, cid: str, **changes) -> FetchStatus:
        previous = self._statuses.get(cid, FetchStatus())
        status = replace(previous, last_updated=self._clock(), **changes)
        self._statuses = {**self._statuses, cid: status}
        return status

    def mark_loading(self, cid: str) -> FetchStatus:
        return self._update(cid, loading=True, error=None)

    def mark_success(self, cid: str) -> FetchStatus:
        # error is left as is; mark_loading already cleared it
        return self._update(cid, loading=False)

    def mark_error(self, cid: str, message: str) -> FetchStatus:
        return self._update(cid, loading=False, error=message)

    def get_status(self, cid: str) -> Optional[FetchStatus]:
        return self._statuses.get(cid)

    def is_loading(self, cid: str) -> bool:
        status = self._statuses.get(cid)
        return status.loading if status else False

    def get_error(self, cid: str) -> Optional[str]:
        status = self._statuses.get(cid)
        return status.error if status else None

    def get_last_updated(self, cid: str) -> Optional[datetime]:
        status = self._statuses.get(cid)
        return status.last_updated if status else None

    @property
    def statuses(self) -> Mapping[str, FetchStatus]:
        """Read-only view of the current status mapping."""
        return MappingProxyType(self._statuses)
