"""Short-lived in-memory cache for scan payloads."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any


DEFAULT_CACHE_TTL_SECONDS = 60


@dataclass(slots=True)
class CacheEntry:
    payload: Any
    expires_at: datetime


class MarketCache:
    """Keyed payload cache; entries expire ``ttl_seconds`` after they are stored."""

    def __init__(self, ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str, now: datetime) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= now:
            del self._entries[key]
            return None
        return entry.payload

    def set(self, key: str, payload: Any, now: datetime) -> None:
        self._entries[key] = CacheEntry(payload=payload, expires_at=now + self.ttl)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
