from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from app.core.config import Settings
from app.domain import Candidate

from .buckets import (
    Categorizer,
    FlipCategory,
    PriceBand,
    VelocityCategory,
    categorize_by_flip,
    categorize_by_price,
    categorize_by_velocity,
)
from .filters import Predicate, in_price_band, min_price_move, min_volume, within_window
from .scoring import Scorer, score_flipped, score_opportunity, score_velocity


OPPORTUNITIES = "opportunities"
FLIPPED = "flipped"
VELOCITY = "velocity"

VARIANT_NAMES = (OPPORTUNITIES, FLIPPED, VELOCITY)


@dataclass(frozen=True, slots=True)
class Variant:
    """One scan flavour: its eligibility chain, formula and output categories."""

    name: str
    default_window_hours: float
    categories: tuple[str, ...]
    eligibility: tuple[Predicate, ...]
    scorer: Scorer
    categorize: Categorizer
    tie_break: Callable[[Candidate], float]

    def predicates(self, window_hours: float | None = None) -> tuple[Predicate, ...]:
        window = self.default_window_hours if window_hours is None else window_hours
        return (*self.eligibility, within_window(window))


def _by_volume(candidate: Candidate) -> float:
    return candidate.volume or 0


def _by_day_move(candidate: Candidate) -> float:
    return abs(candidate.one_day_price_change or 0)


def build_variants(settings: Settings) -> dict[str, Variant]:
    return {
        OPPORTUNITIES: Variant(
            name=OPPORTUNITIES,
            default_window_hours=settings.opportunities_window_hours,
            categories=tuple(band.value for band in PriceBand),
            eligibility=(min_volume(settings.opportunities_min_volume), in_price_band),
            scorer=score_opportunity,
            categorize=categorize_by_price,
            tie_break=_by_volume,
        ),
        FLIPPED: Variant(
            name=FLIPPED,
            default_window_hours=settings.flipped_window_hours,
            categories=tuple(category.value for category in FlipCategory),
            eligibility=(
                min_volume(settings.movement_min_volume),
                in_price_band,
                min_price_move(settings.flip_threshold),
            ),
            scorer=score_flipped,
            categorize=categorize_by_flip,
            tie_break=_by_volume,
        ),
        VELOCITY: Variant(
            name=VELOCITY,
            default_window_hours=settings.velocity_window_hours,
            categories=tuple(category.value for category in VelocityCategory),
            eligibility=(
                min_volume(settings.movement_min_volume),
                in_price_band,
                min_price_move(settings.velocity_threshold),
            ),
            scorer=score_velocity,
            categorize=categorize_by_velocity,
            tie_break=_by_day_move,
        ),
    }


def get_variant(name: str, settings: Settings) -> Variant:
    variants = build_variants(settings)
    try:
        return variants[name]
    except KeyError:
        raise ValueError(
            f"Unknown scan variant '{name}'. Available: {', '.join(VARIANT_NAMES)}"
        ) from None


__all__ = [
    "FLIPPED",
    "OPPORTUNITIES",
    "VARIANT_NAMES",
    "VELOCITY",
    "Variant",
    "build_variants",
    "get_variant",
]
