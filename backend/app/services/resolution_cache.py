"""
backend/app/services/resolution_cache.py

Purpose:
    Cache abstraction for fixture resolution results. The default backend is
    a process-local dict with per-entry TTL; writes are last-writer-wins and
    unlocked, so concurrent misses only cost redundant upstream calls.

Dependencies:
    - time
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, Protocol

from app.config import settings
from app.models.fixtures import ResolutionResult


class ResolutionCache(Protocol):
    def get(self, key: str) -> ResolutionResult | None: ...

    def set(self, key: str, value: ResolutionResult, ttl_seconds: int | None = None) -> None: ...


def build_cache_key(variants: Iterable[str], sport_hint: str | None = None) -> str:
    """Sorted unique variants plus sport; side order does not change the key."""
    names = "|".join(sorted({str(v) for v in variants if v}))
    sport = (sport_hint or settings.DEFAULT_SPORT or "").strip().lower()
    return f"fixture:{sport}:{names}"


class InMemoryResolutionCache:
    """
    Process-wide TTL map.

    Expired entries are dropped on read and swept on every write. Past
    max_entries the oldest write is evicted first, so the map stays bounded
    however many distinct match texts arrive.
    """

    def __init__(
        self,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
        max_entries: int | None = None,
    ):
        self._ttl = settings.RESOLUTION_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._max_entries = settings.RESOLUTION_CACHE_MAX_ENTRIES if max_entries is None else max_entries
        self._clock = clock
        # Insertion order == write order; re-set keys move to the end
        self._entries: dict[str, dict] = {}

    def get(self, key: str) -> ResolutionResult | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry["expires_at"]:
            self._entries.pop(key, None)
            return None
        return entry["data"].model_copy(deep=True)

    def _sweep(self, now: float) -> None:
        expired = [k for k, entry in self._entries.items() if now >= entry["expires_at"]]
        for k in expired:
            del self._entries[k]

    def set(self, key: str, value: ResolutionResult, ttl_seconds: int | None = None) -> None:
        ttl = self._ttl if ttl_seconds is None else ttl_seconds
        now = self._clock()
        self._sweep(now)
        self._entries.pop(key, None)
        while self._max_entries > 0 and len(self._entries) >= self._max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = {
            "data": value.model_copy(deep=True),
            "expires_at": now + max(0, int(ttl)),
        }

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullResolutionCache:
    """Disabled cache: never stores, always misses."""

    def get(self, key: str) -> ResolutionResult | None:
        return None

    def set(self, key: str, value: ResolutionResult, ttl_seconds: int | None = None) -> None:
        return None
