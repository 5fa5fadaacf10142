from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .buckets import DEFAULT_BUCKET_CAPACITY
from .registry import Variant


@dataclass(frozen=True, slots=True)
class ScanContext:
    """Runtime parameters shared by every stage of one scan."""

    variant: Variant
    now: datetime
    window_hours: float | None = None
    capacity: int = DEFAULT_BUCKET_CAPACITY

    @property
    def effective_window_hours(self) -> float:
        if self.window_hours is None:
            return self.variant.default_window_hours
        return self.window_hours

    @property
    def cache_key(self) -> str:
        if self.window_hours is None or self.window_hours == self.variant.default_window_hours:
            return self.variant.name
        return f"{self.variant.name}:{self.window_hours:g}h"
