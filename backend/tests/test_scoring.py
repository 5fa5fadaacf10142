from __future__ import annotations

import pytest

from pipelines.scoring import (
    DEFAULT_FLIPPED_PROFILE,
    DEFAULT_OPPORTUNITY_PROFILE,
    DEFAULT_VELOCITY_PROFILE,
    AtLeastTable,
    AtMostTable,
    OpportunityProfile,
    RangeTable,
    score_flipped,
    score_opportunity,
    score_velocity,
    trend_confirmation_points,
)

from conftest import build_candidate


def test_profiles_sum_to_one_hundred():
    opportunity = DEFAULT_OPPORTUNITY_PROFILE
    flipped = DEFAULT_FLIPPED_PROFILE
    velocity = DEFAULT_VELOCITY_PROFILE

    assert opportunity.hours.maximum + opportunity.volume.maximum + opportunity.price.maximum == 100
    assert flipped.volume.maximum + flipped.magnitude.maximum + flipped.hours.maximum == 100
    assert velocity.volume.maximum + velocity.sweet_spot.maximum + velocity.trend.maximum == 100


def test_tables_pick_first_matching_tier():
    at_most = AtMostTable(tiers=((4, 70), (8, 50)), fallback=1)
    at_least = AtLeastTable(tiers=((100, 10), (10, 5)), fallback=0)
    ranges = RangeTable(tiers=((24, 72, 20), (12, 24, 15)), fallback=10)

    assert [at_most.points(value) for value in (4, 4.01, 8, 9)] == [70, 50, 50, 1]
    assert [at_least.points(value) for value in (100, 99, 10, 9.9)] == [10, 5, 5, 0]
    assert [ranges.points(value) for value in (24, 72, 12, 11.9, 73)] == [20, 20, 15, 10, 10]


def test_opportunity_score_maximum_for_short_liquid_cheap_market():
    candidate = build_candidate(hours_to_close=2.0, volume=2_000_000.0, best_price=0.03)
    assert score_opportunity(candidate) == 100


@pytest.mark.parametrize(
    ("hours", "expected_time_points"),
    [(4, 70), (7.5, 50), (12, 35), (20, 20), (48, 10), (72, 5), (100, 1)],
)
def test_opportunity_time_tiers(hours, expected_time_points):
    # 20K volume -> 5 points, 0.03 price -> 15 points.
    candidate = build_candidate(hours_to_close=hours, volume=20_000.0, best_price=0.03)
    assert score_opportunity(candidate) == expected_time_points + 5 + 15


def test_opportunity_defaults_for_missing_fields():
    candidate = build_candidate(hours_to_close=None, volume=None, best_price=None)
    # 24h -> 20, no volume -> 3, price 0.2 -> 9.
    assert score_opportunity(candidate) == 32


def test_opportunity_profile_is_configurable():
    profile = OpportunityProfile(price=AtMostTable(tiers=((0.05, 1),), fallback=0))
    candidate = build_candidate(hours_to_close=2.0, volume=2_000_000.0, best_price=0.03)
    assert score_opportunity(candidate, profile) == 86


@pytest.mark.parametrize(
    ("hours", "expected_time_points"),
    [(6, 10), (12, 15), (23.9, 15), (24, 20), (48, 20), (72, 20), (72.5, 15), (168, 15), (200, 10)],
)
def test_flipped_time_preference_is_non_monotonic(hours, expected_time_points):
    candidate = build_candidate(hours_to_close=hours, volume=60_000.0, one_day_price_change=0.25)
    assert score_flipped(candidate) == 20 + 25 + expected_time_points


def test_flipped_score_weights_volume_and_magnitude():
    candidate = build_candidate(hours_to_close=36.0, volume=1_500_000.0, one_day_price_change=-0.6)
    assert score_flipped(candidate) == 100

    missing = build_candidate(hours_to_close=None, volume=None, one_day_price_change=None)
    # Missing hours default to 168 -> 15 points.
    assert score_flipped(missing) == 20 + 20 + 15


@pytest.mark.parametrize(
    ("day", "week", "expected"),
    [
        (0.04, 0.15, 25),
        (0.04, 0.12, 20),
        (-0.04, -0.07, 15),
        (0.04, 0.01, 10),
        (0.04, -0.15, 3),
        (-0.2, 0.3, 3),
        (0.04, None, 8),
        (None, 0.2, 8),
        (0.0, 0.2, 8),
    ],
)
def test_trend_confirmation_points(day, week, expected):
    candidate = build_candidate(one_day_price_change=day, one_week_price_change=week)
    assert trend_confirmation_points(candidate) == expected


@pytest.mark.parametrize(
    ("day", "expected_sweet_spot"),
    [(0.03, 35), (0.08, 35), (0.02, 25), (0.1, 25), (0.15, 15), (0.25, 5), (0.005, 5), (-0.05, 35)],
)
def test_velocity_sweet_spot(day, expected_sweet_spot):
    candidate = build_candidate(volume=60_000.0, one_day_price_change=day, one_week_price_change=None)
    assert score_velocity(candidate) == 20 + expected_sweet_spot + 8


def test_velocity_score_caps_at_one_hundred():
    candidate = build_candidate(
        volume=5_000_000.0, one_day_price_change=0.05, one_week_price_change=0.3
    )
    assert score_velocity(candidate) == 100


def test_scorers_do_not_mutate_candidates():
    candidate = build_candidate(one_day_price_change=0.3, one_week_price_change=0.1)

    for scorer in (score_opportunity, score_flipped, score_velocity):
        result = scorer(candidate)
        assert isinstance(result, int)
        assert 0 <= result <= 100

    assert candidate.score is None
