import math
from datetime import timedelta

import pytest

from repo_ranker.domain.scoring import calculate_usage_score, days_between, recency_score


def test_untouched_zero_star_repository_scores_exactly_200(now):
    assert calculate_usage_score(0, now, now, now) == 200.0


def test_score_is_monotonic_in_stars(now):
    updated = now - timedelta(days=3)
    pushed = now - timedelta(days=10)
    scores = [calculate_usage_score(stars, updated, pushed, now) for stars in range(0, 50, 7)]
    assert scores == sorted(scores)


def test_stars_count_twice_by_default(now):
    assert calculate_usage_score(10, now, now, now) == 220.0


def test_recency_decays_over_thirty_day_scale(now):
    month_ago = now - timedelta(days=30)
    score = calculate_usage_score(0, month_ago, month_ago, now)
    assert score == pytest.approx(200 * math.exp(-1))


def test_update_and_push_decay_independently(now):
    score = calculate_usage_score(0, now, now - timedelta(days=60), now)
    assert score == pytest.approx(100 + 100 * math.exp(-2))


def test_old_repository_approaches_star_term(now):
    ancient = now - timedelta(days=3650)
    assert calculate_usage_score(7, ancient, ancient, now) == pytest.approx(14.0)


def test_weights_are_configurable(now):
    week_ago = now - timedelta(days=7)
    score = calculate_usage_score(5, week_ago, week_ago, now, decay_days=7, star_weight=3)
    assert score == pytest.approx(15 + 200 * math.exp(-1))


def test_future_timestamps_count_as_now(now):
    future = now + timedelta(days=400)
    score = calculate_usage_score(0, future, future, now)
    assert score == 200.0
    assert math.isfinite(score)


def test_negative_stars_rejected(now):
    with pytest.raises(ValueError):
        calculate_usage_score(-1, now, now, now)


def test_days_between_is_fractional(now):
    assert days_between(now - timedelta(hours=36), now) == pytest.approx(1.5)
    assert recency_score(now, now) == 100.0
