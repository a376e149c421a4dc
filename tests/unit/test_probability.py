"""Tests for base score to win probability conversion."""

import pytest

from furlong.config import EngineSettings
from furlong.probability import calculate_win_probabilities, fair_odds

SETTINGS = EngineSettings()


class TestCalculateWinProbabilities:
    def test_sums_to_one(self):
        probs = calculate_win_probabilities({0: 180, 1: 150, 2: 120, 3: 140, 4: 95}, SETTINGS)
        assert sum(probs.values()) == pytest.approx(1.0)

    def test_proportional_when_bounds_idle(self):
        probs = calculate_win_probabilities({0: 100, 1: 100}, SETTINGS)
        assert probs == {0: pytest.approx(0.5), 1: pytest.approx(0.5)}

    def test_order_follows_scores(self):
        probs = calculate_win_probabilities({0: 120, 1: 200, 2: 160}, SETTINGS)
        assert probs[1] > probs[2] > probs[0]

    def test_ceiling_applied(self):
        probs = calculate_win_probabilities({0: 1000, 1: 10, 2: 10}, SETTINGS)
        assert probs[0] == pytest.approx(0.65)
        assert probs[1] == pytest.approx(0.175)
        assert sum(probs.values()) == pytest.approx(1.0)

    def test_floor_applied(self):
        probs = calculate_win_probabilities({0: 100, 1: 100, 2: 1}, SETTINGS)
        assert probs[2] == pytest.approx(0.02)
        assert probs[0] == pytest.approx(0.49)

    def test_all_within_bounds(self):
        scores = {i: s for i, s in enumerate([230, 40, 35, 30, 25, 20, 10, 5, 0, 0])}
        probs = calculate_win_probabilities(scores, SETTINGS)
        assert sum(probs.values()) == pytest.approx(1.0)
        for p in probs.values():
            assert 0.02 - 1e-9 <= p <= 0.65 + 1e-9

    def test_empty_field(self):
        assert calculate_win_probabilities({}, SETTINGS) == {}

    def test_single_runner(self):
        assert calculate_win_probabilities({4: 150}, SETTINGS) == {4: 1.0}

    def test_all_zero_scores_uniform(self):
        probs = calculate_win_probabilities({0: 0, 1: 0, 2: 0, 3: 0}, SETTINGS)
        assert all(p == pytest.approx(0.25) for p in probs.values())

    def test_zero_score_runner_takes_leftover_under_ceiling(self):
        probs = calculate_win_probabilities({0: 200, 1: 0}, SETTINGS)
        assert probs[0] == pytest.approx(0.65)
        assert probs[1] == pytest.approx(0.35)

    def test_large_field_floor_relaxed(self):
        probs = calculate_win_probabilities({i: 1 for i in range(60)}, SETTINGS)
        assert sum(probs.values()) == pytest.approx(1.0)


class TestFairOdds:
    def test_display(self):
        assert fair_odds(0.25) == "3-1"
        assert fair_odds(0.5) == "EVEN"
