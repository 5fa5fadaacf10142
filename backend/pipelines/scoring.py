"""Table-driven scoring heuristics for the three scan variants.

Every formula sums independently capped sub-scores whose maxima add up to 100.
The point tables are plain data so a profile can be tuned without touching the
formulas.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

from app.domain import Candidate


Scorer = Callable[[Candidate], int]


@dataclass(frozen=True, slots=True)
class AtMostTable:
    """Awards the points of the first tier whose limit is >= the value."""

    tiers: tuple[tuple[float, int], ...]
    fallback: int

    def points(self, value: float) -> int:
        for limit, points in self.tiers:
            if value <= limit:
                return points
        return self.fallback

    @property
    def maximum(self) -> int:
        return max([self.fallback, *(points for _, points in self.tiers)])


@dataclass(frozen=True, slots=True)
class AtLeastTable:
    """Awards the points of the first tier whose floor is <= the value."""

    tiers: tuple[tuple[float, int], ...]
    fallback: int

    def points(self, value: float) -> int:
        for floor, points in self.tiers:
            if value >= floor:
                return points
        return self.fallback

    @property
    def maximum(self) -> int:
        return max([self.fallback, *(points for _, points in self.tiers)])


@dataclass(frozen=True, slots=True)
class RangeTable:
    """Awards the points of the first inclusive ``[low, high]`` range containing the value."""

    tiers: tuple[tuple[float, float, int], ...]
    fallback: int

    def points(self, value: float) -> int:
        for low, high, points in self.tiers:
            if low <= value <= high:
                return points
        return self.fallback

    @property
    def maximum(self) -> int:
        return max([self.fallback, *(points for _, _, points in self.tiers)])


@dataclass(frozen=True, slots=True)
class OpportunityProfile:
    hours: AtMostTable = AtMostTable(
        tiers=((4, 70), (8, 50), (12, 35), (24, 20), (48, 10), (72, 5)), fallback=1
    )
    volume: AtLeastTable = AtLeastTable(
        tiers=(
            (1_000_000, 15),
            (500_000, 13),
            (250_000, 11),
            (100_000, 9),
            (50_000, 7),
            (10_000, 5),
        ),
        fallback=3,
    )
    price: AtMostTable = AtMostTable(tiers=((0.05, 15), (0.10, 13), (0.15, 11)), fallback=9)
    default_hours: float = 24
    default_price: float = 0.2


@dataclass(frozen=True, slots=True)
class FlippedProfile:
    volume: AtLeastTable = AtLeastTable(
        tiers=((1_000_000, 40), (500_000, 35), (250_000, 30), (100_000, 25)), fallback=20
    )
    magnitude: AtLeastTable = AtLeastTable(
        tiers=((0.5, 40), (0.4, 35), (0.3, 30), (0.2, 25)), fallback=20
    )
    # Non-monotonic: one to three days scores best.
    hours: RangeTable = RangeTable(
        tiers=((24, 72, 20), (12, 24, 15), (72, 168, 15)), fallback=10
    )
    default_hours: float = 168


@dataclass(frozen=True, slots=True)
class VelocityProfile:
    volume: AtLeastTable = AtLeastTable(
        tiers=(
            (1_000_000, 40),
            (500_000, 35),
            (250_000, 30),
            (100_000, 25),
            (50_000, 20),
        ),
        fallback=10,
    )
    sweet_spot: RangeTable = RangeTable(
        tiers=((0.03, 0.08, 35), (0.01, 0.12, 25), (0.12, 0.20, 15)), fallback=5
    )
    trend: AtLeastTable = AtLeastTable(tiers=((0.15, 25), (0.10, 20), (0.05, 15)), fallback=10)
    trend_opposed: int = 3
    trend_unknown: int = 8


DEFAULT_OPPORTUNITY_PROFILE = OpportunityProfile()
DEFAULT_FLIPPED_PROFILE = FlippedProfile()
DEFAULT_VELOCITY_PROFILE = VelocityProfile()


def _finalize(total: float) -> int:
    return int(min(100, max(0, round(total))))


def _or_default(value: float | None, default: float) -> float:
    return value if value is not None and math.isfinite(value) else default


def score_opportunity(
    candidate: Candidate, profile: OpportunityProfile = DEFAULT_OPPORTUNITY_PROFILE
) -> int:
    """Favour markets that close soon, then liquidity, then cheap outcomes."""
    hours = _or_default(candidate.hours_to_close, profile.default_hours)
    volume = _or_default(candidate.volume, 0)
    price = _or_default(candidate.best_price, profile.default_price)
    return _finalize(
        profile.hours.points(hours) + profile.volume.points(volume) + profile.price.points(price)
    )


def score_flipped(candidate: Candidate, profile: FlippedProfile = DEFAULT_FLIPPED_PROFILE) -> int:
    volume = _or_default(candidate.volume, 0)
    magnitude = abs(_or_default(candidate.one_day_price_change, 0))
    hours = _or_default(candidate.hours_to_close, profile.default_hours)
    return _finalize(
        profile.volume.points(volume)
        + profile.magnitude.points(magnitude)
        + profile.hours.points(hours)
    )


def trend_confirmation_points(
    candidate: Candidate, profile: VelocityProfile = DEFAULT_VELOCITY_PROFILE
) -> int:
    """Compare the daily move with the weekly move.

    Same direction scores by weekly magnitude, opposite directions score low,
    and missing or flat changes get a fixed default.
    """
    day = candidate.one_day_price_change
    week = candidate.one_week_price_change
    if day is None or week is None or day == 0 or week == 0:
        return profile.trend_unknown
    if (day > 0) != (week > 0):
        return profile.trend_opposed
    return profile.trend.points(abs(week))


def score_velocity(candidate: Candidate, profile: VelocityProfile = DEFAULT_VELOCITY_PROFILE) -> int:
    volume = _or_default(candidate.volume, 0)
    day_move = abs(_or_default(candidate.one_day_price_change, 0))
    return _finalize(
        profile.volume.points(volume)
        + profile.sweet_spot.points(day_move)
        + trend_confirmation_points(candidate, profile)
    )
