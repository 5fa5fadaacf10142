"""Typed domain representations shared by the normalizer, the scan pipeline, and the API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Tag:
    """Tag or category attached to an event or market."""

    id: str
    label: str


@dataclass(slots=True)
class Candidate:
    """Normalized market snapshot evaluated by the scan pipeline."""

    question: str
    end_date: datetime | None
    hours_to_close: float | None
    time_to_end: str | None
    resolution_state: str | None
    url: str
    event_url: str
    tags: list[Tag] = field(default_factory=list)
    outcomes: list[str] = field(default_factory=list)
    outcome_prices: list[float] = field(default_factory=list)
    best_price: float | None = None
    volume: float | None = None
    one_day_price_change: float | None = None
    one_week_price_change: float | None = None
    one_month_price_change: float | None = None
    score: int | None = None
