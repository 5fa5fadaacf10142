"""Categorize scored candidates and keep the top entries per category."""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Callable, Iterable, Sequence

from app.domain import Candidate

from .scoring import Scorer


DEFAULT_BUCKET_CAPACITY = 5

Categorizer = Callable[[Candidate], str | None]


class PriceBand(str, Enum):
    ONE_TO_FIVE = "oneToFive"
    FIVE_TO_TEN = "fiveToTen"
    TEN_TO_FIFTEEN = "tenToFifteen"
    FIFTEEN_TO_TWENTY = "fifteenToTwenty"


class FlipCategory(str, Enum):
    TWENTY_TO_FIFTY = "twentyToFifty"
    ABOVE_FIFTY = "aboveFifty"


class VelocityCategory(str, Enum):
    MODERATE = "moderate"
    FAST = "fast"
    RAPID = "rapid"


MIN_BAND_PRICE = 0.01
# Upper (inclusive) price limit of each band; the lowest band starts at MIN_BAND_PRICE.
PRICE_BAND_LIMITS: tuple[tuple[float, PriceBand], ...] = (
    (0.05, PriceBand.ONE_TO_FIVE),
    (0.10, PriceBand.FIVE_TO_TEN),
    (0.15, PriceBand.TEN_TO_FIFTEEN),
    (0.20, PriceBand.FIFTEEN_TO_TWENTY),
)
FLIP_CUTOFFS: tuple[tuple[float, FlipCategory], ...] = (
    (0.5, FlipCategory.ABOVE_FIFTY),
    (0.2, FlipCategory.TWENTY_TO_FIFTY),
)
VELOCITY_CUTOFFS: tuple[tuple[float, VelocityCategory], ...] = (
    (0.3, VelocityCategory.RAPID),
    (0.2, VelocityCategory.FAST),
    (0.1, VelocityCategory.MODERATE),
)


def resolve_price_band(price: float | None) -> PriceBand | None:
    if price is None or price < MIN_BAND_PRICE:
        return None
    for limit, band in PRICE_BAND_LIMITS:
        if price <= limit:
            return band
    return None


def _resolve_by_cutoffs(change: float | None, cutoffs: Sequence[tuple[float, Enum]]):
    if change is None:
        return None
    magnitude = abs(change)
    for floor, category in cutoffs:
        if magnitude >= floor:
            return category
    return None


def resolve_flip_category(
    change: float | None, cutoffs: Sequence[tuple[float, FlipCategory]] = FLIP_CUTOFFS
) -> FlipCategory | None:
    return _resolve_by_cutoffs(change, cutoffs)


def resolve_velocity_category(
    change: float | None, cutoffs: Sequence[tuple[float, VelocityCategory]] = VELOCITY_CUTOFFS
) -> VelocityCategory | None:
    return _resolve_by_cutoffs(change, cutoffs)


def categorize_by_price(candidate: Candidate) -> str | None:
    band = resolve_price_band(candidate.best_price)
    return band.value if band else None


def categorize_by_flip(candidate: Candidate) -> str | None:
    category = resolve_flip_category(candidate.one_day_price_change)
    return category.value if category else None


def categorize_by_velocity(candidate: Candidate) -> str | None:
    category = resolve_velocity_category(candidate.one_day_price_change)
    return category.value if category else None


def assemble(
    candidates: Iterable[Candidate],
    *,
    scorer: Scorer,
    categorize: Categorizer,
    categories: Sequence[str],
    capacity: int = DEFAULT_BUCKET_CAPACITY,
) -> dict[str, list[Candidate]]:
    """Score, rank and cap candidates per category.

    Ranking is a stable sort on descending score, so candidates with equal
    scores keep their incoming order. Once a category is full, later
    candidates for it are discarded. Candidates without a category are dropped.
    Returned candidates are scored copies; the inputs are left untouched.
    """
    buckets: dict[str, list[Candidate]] = {category: [] for category in categories}

    scored = [replace(candidate, score=scorer(candidate)) for candidate in candidates]
    scored.sort(key=lambda candidate: candidate.score, reverse=True)

    for candidate in scored:
        category = categorize(candidate)
        if category is None or category not in buckets:
            continue
        bucket = buckets[category]
        if len(bucket) >= capacity:
            continue
        bucket.append(candidate)

    return buckets
