"""Eligibility predicates applied to normalized candidates before scoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from loguru import logger

from app.domain import Candidate

from .buckets import resolve_price_band


@dataclass(frozen=True, slots=True)
class Predicate:
    """Named boolean check; a candidate is eligible when every predicate passes."""

    name: str
    check: Callable[[Candidate], bool]

    def __call__(self, candidate: Candidate) -> bool:
        return self.check(candidate)


def within_window(window_hours: float) -> Predicate:
    def check(candidate: Candidate) -> bool:
        hours = candidate.hours_to_close
        if hours is None or hours <= 0 or hours > window_hours:
            return False
        state = (candidate.resolution_state or "").lower()
        return state != "resolved"

    return Predicate(name=f"within_{window_hours:g}h", check=check)


def min_volume(floor: float) -> Predicate:
    def check(candidate: Candidate) -> bool:
        return (candidate.volume or 0) >= floor

    return Predicate(name=f"volume_at_least_{floor:g}", check=check)


def _has_investable_price(candidate: Candidate) -> bool:
    return resolve_price_band(candidate.best_price) is not None


in_price_band = Predicate(name="investable_price", check=_has_investable_price)


def min_price_move(threshold: float) -> Predicate:
    """Require an absolute one-day price change of at least ``threshold``."""

    def check(candidate: Candidate) -> bool:
        change = candidate.one_day_price_change
        return change is not None and abs(change) >= threshold

    return Predicate(name=f"day_move_at_least_{threshold:g}", check=check)


def apply_predicates(
    candidates: Iterable[Candidate], predicates: Sequence[Predicate]
) -> list[Candidate]:
    remaining = list(candidates)
    for predicate in predicates:
        before = len(remaining)
        remaining = [candidate for candidate in remaining if predicate(candidate)]
        logger.debug(
            "Predicate {} kept {} of {} candidates", predicate.name, len(remaining), before
        )
    return remaining
