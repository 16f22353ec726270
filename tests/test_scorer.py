"""Tests for the pure scoring functions."""

from datetime import datetime, timedelta, timezone

import pytest

from attribution_kernel.attribution.scorer import (
    as_utc,
    combine_confidence,
    hours_between,
    surface_match_score,
    time_proximity_score,
)

T = datetime(2026, 3, 1, 12, 0, 0)


class TestTimeProximity:
    def test_zero_distance_scores_one(self):
        assert time_proximity_score(T, T, 6) == 1.0

    def test_linear_decay(self):
        score = time_proximity_score(T, T - timedelta(hours=2), 6)
        assert score == pytest.approx(1 - 2 / 6)

    def test_zero_at_window_boundary(self):
        assert time_proximity_score(T, T - timedelta(hours=6), 6) == 0.0

    def test_zero_beyond_window(self):
        assert time_proximity_score(T, T - timedelta(hours=30), 24) == 0.0

    def test_distance_is_absolute(self):
        before = time_proximity_score(T, T - timedelta(hours=3), 24)
        after = time_proximity_score(T, T + timedelta(hours=3), 24)
        assert before == pytest.approx(after)

    def test_non_increasing_in_distance(self):
        scores = [
            time_proximity_score(T, T - timedelta(minutes=30 * i), 24)
            for i in range(60)
        ]
        assert all(a >= b for a, b in zip(scores, scores[1:]))
        assert scores[-1] == 0.0

    def test_non_positive_window_scores_zero(self):
        assert time_proximity_score(T, T, 0) == 0.0

    def test_mixed_naive_and_aware_timestamps(self):
        aware = T.replace(tzinfo=timezone.utc)
        score = time_proximity_score(aware, T - timedelta(hours=12), 24)
        assert score == pytest.approx(0.5)


class TestSurfaceMatch:
    def test_direct_match(self):
        assert surface_match_score("LCP", frozenset({"LCP", "CLS"})) == 1.0

    def test_fallback_is_weak_not_zero(self):
        assert surface_match_score("clicks", frozenset({"LCP"})) == 0.3

    def test_empty_surface_uses_fallback(self):
        assert surface_match_score("clicks", frozenset()) == 0.3

    def test_custom_fallback(self):
        assert surface_match_score("clicks", frozenset(), fallback=0.1) == 0.1


class TestCombineConfidence:
    def test_weighted_sum(self):
        assert combine_confidence(0.5, 1.0) == pytest.approx(0.4 * 0.5 + 0.6 * 1.0)

    def test_bounds(self):
        assert combine_confidence(1.0, 1.0) == pytest.approx(1.0)
        assert combine_confidence(0.0, 0.0) == 0.0

    def test_custom_weights(self):
        assert combine_confidence(1.0, 0.0, time_weight=0.7, surface_weight=0.3) == pytest.approx(0.7)


class TestTimeHelpers:
    def test_naive_is_utc(self):
        assert as_utc(T).tzinfo == timezone.utc
        assert as_utc(T).hour == 12

    def test_hours_between(self):
        assert hours_between(T, T - timedelta(minutes=90)) == pytest.approx(1.5)
