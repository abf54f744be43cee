import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Tuple

from portal_reports.services.normalizer import Record

CacheKey = Tuple[Hashable, ...]


@dataclass
class CacheEntry:
    expires_at: float
    rows: List[Record]
    next: Optional[str] = None


def _freeze(value: Any) -> Hashable:
    if isinstance(value, Mapping):
        return tuple(sorted((str(key), _freeze(item)) for key, item in value.items()))
    if isinstance(value, (list, tuple, set)):
        return tuple(_freeze(item) for item in value)
    return value


def cache_key(
    report: str,
    tenant: str,
    start_date: Any = None,
    end_date: Any = None,
    max_rows: Optional[int] = None,
    start_key: Optional[str] = None,
    filters: Optional[Mapping[str, Any]] = None,
) -> CacheKey:
    return (report, tenant, start_date, end_date, max_rows, start_key, _freeze(filters or {}))


class ResponseCache:
    """Process-lifetime TTL memo for fetched report pages.

    Expired entries are treated as misses but never evicted; there is no
    locking, concurrent writers for the same key simply overwrite each other.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None or self.clock() >= entry.expires_at:
            return None
        return entry

    def set(self, key: CacheKey, rows: List[Record], next: Optional[str] = None) -> CacheEntry:
        entry = CacheEntry(expires_at=self.clock() + self.ttl, rows=list(rows), next=next)
        self._entries[key] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)
