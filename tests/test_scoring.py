"""Tests for tracely.analysis.scoring — the privacy score formula."""

from __future__ import annotations

import pytest

from tracely.analysis.scoring import calculate_score, round_half_away_from_zero


class TestRoundHalfAwayFromZero:
    """Tests for round_half_away_from_zero()."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (2.5, 3),
            (3.5, 4),
            (6.5, 7),
            (2.4999, 2),
            (-2.5, -3),
            (0.0, 0),
        ],
    )
    def test_ties_round_away_from_zero(self, value: float, expected: int) -> None:
        assert round_half_away_from_zero(value) == expected

    def test_differs_from_builtin_round(self) -> None:
        assert round(2.5) == 2
        assert round_half_away_from_zero(2.5) == 3


class TestCalculateScore:
    """Tests for calculate_score()."""

    def test_no_observations_is_zero(self) -> None:
        assert calculate_score(0, 0, 0) == 0

    def test_worked_example(self) -> None:
        # √4·5 + ln 2·4 + √1·1.5 = 10 + 2.77 + 1.5 = 14.27
        assert calculate_score(4, 2, 1) == 14

    def test_single_first_party_tracker(self) -> None:
        # ln(max(0, 1)) contributes nothing.
        assert calculate_score(1, 0, 0) == 5

    def test_tie_rounds_up(self) -> None:
        # 5 + 0 + 1.5 = 6.5
        assert calculate_score(1, 1, 1) == 7

    def test_clamped_to_100(self) -> None:
        assert calculate_score(400, 0, 0) == 100
        assert calculate_score(10_000, 10_000, 10_000) == 100

    def test_negative_counts_are_floored(self) -> None:
        assert calculate_score(-5, -5, -5) == 0

    def test_bounded_over_grid(self) -> None:
        for t in (0, 1, 2, 5, 17, 100, 1_000):
            for p in (0, 1, 3, 50, 1_000):
                for c in (0, 1, 9, 400):
                    score = calculate_score(t, p, c)
                    assert isinstance(score, int)
                    assert 0 <= score <= 100

    def test_monotonic_in_trackers(self) -> None:
        scores = [calculate_score(t, 1, 0) for t in range(0, 50)]
        assert scores == sorted(scores)

    def test_deterministic(self) -> None:
        assert calculate_score(12, 7, 3) == calculate_score(12, 7, 3)
