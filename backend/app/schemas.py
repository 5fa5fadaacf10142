from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from app.domain import Candidate


def _isoformat_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TagSchema(BaseModel):
    id: str
    label: str


class MarketSummary(BaseModel):
    """Externally visible view of a scored candidate, serialized with camelCase keys."""

    question: str
    end_date: str | None = None
    resolution_state: str | None = None
    tags: list[TagSchema] = Field(default_factory=list)
    outcomes: list[str] = Field(default_factory=list)
    outcome_prices: list[float] = Field(default_factory=list)
    one_day_price_change: float | None = None
    one_week_price_change: float | None = None
    one_month_price_change: float | None = None
    time_to_end: str | None = None
    best_price: float | None = None
    url: str
    event_url: str
    volume: float | None = None
    score: int | None = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @field_validator("end_date", mode="before")
    @classmethod
    def _serialize_end_date(cls, value: Any) -> str | None:
        if isinstance(value, datetime):
            return _isoformat_utc(value)
        return value

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "MarketSummary":
        return cls(
            question=candidate.question,
            end_date=candidate.end_date,
            resolution_state=candidate.resolution_state,
            tags=[TagSchema(id=tag.id, label=tag.label) for tag in candidate.tags],
            outcomes=list(candidate.outcomes),
            outcome_prices=list(candidate.outcome_prices),
            one_day_price_change=candidate.one_day_price_change,
            one_week_price_change=candidate.one_week_price_change,
            one_month_price_change=candidate.one_month_price_change,
            time_to_end=candidate.time_to_end,
            best_price=candidate.best_price,
            url=candidate.url,
            event_url=candidate.event_url,
            volume=candidate.volume,
            score=candidate.score,
        )


ScanPayload = dict[str, list[MarketSummary]]


def build_payload(buckets: dict[str, list[Candidate]]) -> ScanPayload:
    return {
        category: [MarketSummary.from_candidate(candidate) for candidate in candidates]
        for category, candidates in buckets.items()
    }


class HealthStatus(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    error: str
    retryable: bool = False
