"""Time-boxed in-memory store of raw fetched rows."""

from __future__ import annotations

import threading
from typing import Callable, Protocol

from statpipe.common.constants import CACHE_TTL_MS
from statpipe.common.models import CacheEntry, RawRecord
from statpipe.common.time_utils import now_ms


def cache_key(dataset_id: str, locale: str) -> str:
    return f"{dataset_id}:{locale}"


class RowCache(Protocol):
    def get(self, dataset_id: str, locale: str) -> list[RawRecord] | None: ...

    def set(self, dataset_id: str, locale: str, rows: list[RawRecord]) -> None: ...

    def clear(self, dataset_id: str, locale: str | None = None) -> None: ...


class ResultCache:
    """Raw rows per ``dataset_id:locale``, expired after ``ttl_ms``.

    Only pre-normalisation rows are stored. Expired entries are evicted on
    lookup and never returned. ``clock`` returns epoch milliseconds and can be
    replaced in tests.
    """

    def __init__(self, ttl_ms: int = CACHE_TTL_MS, clock: Callable[[], int] | None = None) -> None:
        self.ttl_ms = ttl_ms
        self.clock = clock or now_ms
        self.entries: dict[str, CacheEntry] = {}
        self.lock = threading.Lock()

    def get(self, dataset_id: str, locale: str) -> list[RawRecord] | None:
        key = cache_key(dataset_id, locale)
        with self.lock:
            entry = self.entries.get(key)
            if entry is None:
                return None
            if self.clock() - entry.timestamp_ms > self.ttl_ms:
                del self.entries[key]
                return None
            return entry.rows

    def set(self, dataset_id: str, locale: str, rows: list[RawRecord]) -> None:
        entry = CacheEntry(rows=rows, timestamp_ms=self.clock(), locale=locale)
        with self.lock:
            self.entries[cache_key(dataset_id, locale)] = entry

    def clear(self, dataset_id: str, locale: str | None = None) -> None:
        with self.lock:
            if locale is not None:
                self.entries.pop(cache_key(dataset_id, locale), None)
                return
            prefix = f"{dataset_id}:"
            for key in [key for key in self.entries if key.startswith(prefix)]:
                del self.entries[key]

    def clear_all(self) -> None:
        with self.lock:
            self.entries.clear()

    def stats(self) -> dict:
        now = self.clock()
        with self.lock:
            return {
                "size": len(self.entries),
                "entries": [
                    {"key": key, "age_ms": now - entry.timestamp_ms, "locale": entry.locale}
                    for key, entry in self.entries.items()
                ],
            }
