from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from app.core.config import Settings
from app.domain import Candidate


FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def iso_in(hours: float, *, now: datetime = FIXED_NOW) -> str:
    """ISO timestamp ``hours`` after ``now`` in the feed's Z-suffixed format."""
    return (now + timedelta(hours=hours)).isoformat().replace("+00:00", "Z")


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def sample_events_payload() -> list[dict[str, Any]]:
    path = Path(__file__).parent / "data" / "sample_events.json"
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def make_event() -> Callable[..., dict[str, Any]]:
    """Build a single-market raw event closing ``hours`` after the fixed instant."""

    def factory(
        *,
        hours: float = 2,
        volume: Any = 20_000,
        prices: Any = ("0.03", "0.97"),
        day_change: Any = None,
        week_change: Any = None,
        slug: str = "sample-market",
        **market_fields: Any,
    ) -> dict[str, Any]:
        market: dict[str, Any] = {
            "id": f"{slug}-id",
            "slug": slug,
            "question": f"Question for {slug}?",
            "endDate": iso_in(hours),
            "outcomes": json.dumps(["Yes", "No"]),
            "outcomePrices": json.dumps(list(prices)),
            "volume": volume,
        }
        if day_change is not None:
            market["oneDayPriceChange"] = day_change
        if week_change is not None:
            market["oneWeekPriceChange"] = week_change
        market.update(market_fields)
        return {"id": f"event-{slug}", "slug": f"event-{slug}", "markets": [market]}

    return factory


@pytest.fixture
def test_settings(monkeypatch) -> Settings:
    settings = Settings(
        polymarket_api_url="https://gamma.example.test/events",
        excluded_tag_ids=[1, 84],
        cache_ttl_seconds=60,
        bucket_capacity=5,
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings


def build_candidate(**overrides: Any) -> Candidate:
    """Scored-pipeline friendly candidate with neutral defaults."""
    values: dict[str, Any] = {
        "question": "Will it happen?",
        "end_date": FIXED_NOW + timedelta(hours=6),
        "hours_to_close": 6.0,
        "time_to_end": "06:00:00",
        "resolution_state": None,
        "url": "https://polymarket.com/market/will-it-happen",
        "event_url": "https://polymarket.com/event/will-it-happen",
        "outcomes": ["Yes", "No"],
        "outcome_prices": [0.04, 0.96],
        "best_price": 0.04,
        "volume": 60_000.0,
    }
    values.update(overrides)
    return Candidate(**values)
