"""Tests for Dutch booking selection and stake allocation."""

import pytest

from furlong.betting.dutch import (
    DutchCandidate,
    calculate_dutch_book,
    recommend_dutch,
    score_tier,
    select_candidates,
)
from furlong.betting.settings import DutchSettings
from furlong.odds import parse_odds


def _candidate(index: int, odds: str, base_score: float = 170, p: float = 0.2, overlay: float = 10.0) -> DutchCandidate:
    return DutchCandidate(
        index=index,
        name=f"Horse {index + 1}",
        program_number=str(index + 1),
        base_score=base_score,
        win_probability=p,
        odds=parse_odds(odds),
        overlay_percent=overlay,
    )


def _settings(**kw) -> DutchSettings:
    values = {"enabled": True, "min_edge_required": 5, "max_horses": 4, "budget_allocation": 10, "bankroll": 1000}
    values.update(kw)
    return DutchSettings(**values)


class TestRecommendDutch:
    def test_refuses_when_book_over_100_percent(self):
        candidates = [
            _candidate(0, "7-3", p=0.35),   # 30% implied
            _candidate(1, "13-7", p=0.35),  # 35% implied
            _candidate(2, "3-2", p=0.30),   # 40% implied
        ]
        result = recommend_dutch(candidates, _settings())
        assert not result.is_valid
        assert result.sum_implied == pytest.approx(1.05)
        assert result.bets == []

    def test_valid_book_equal_returns(self):
        candidates = [
            _candidate(0, "3-1", base_score=190, p=0.30),
            _candidate(1, "4-1", base_score=170, p=0.25),
            _candidate(2, "5-1", base_score=140, p=0.20),
        ]
        result = recommend_dutch(candidates, _settings())
        assert result.is_valid
        assert result.sum_implied < 1
        assert result.has_profit_potential
        returns = [b.potential_return for b in result.bets]
        assert max(returns) - min(returns) < 1.0
        assert result.total_stake == pytest.approx(100, abs=0.2)
        assert result.guaranteed_return > result.total_stake

    def test_stakes_follow_implied_probability(self):
        candidates = [_candidate(0, "3-1", base_score=190), _candidate(1, "5-1", base_score=150)]
        book = calculate_dutch_book(candidates, 100)
        assert book.bets[0].stake > book.bets[1].stake

    def test_needs_two_horses(self):
        result = recommend_dutch([_candidate(0, "5-1")], _settings())
        assert not result.is_valid
        assert "at least 2" in result.reason

    def test_edge_below_required(self):
        candidates = [
            _candidate(0, "3-1", p=0.26),
            _candidate(1, "4-1", p=0.20),
        ]
        result = recommend_dutch(candidates, _settings(min_edge_required=20))
        assert not result.is_valid
        assert "Book edge" in result.reason

    def test_disabled(self):
        result = recommend_dutch([_candidate(0, "3-1"), _candidate(1, "4-1")], DutchSettings())
        assert not result.is_valid
        assert result.reason == "Dutch booking disabled"


class TestSelection:
    def test_overlay_only_filter(self):
        candidates = [
            _candidate(0, "3-1", overlay=-5),
            _candidate(1, "4-1", overlay=12),
            _candidate(2, "6-1", overlay=30),
        ]
        chosen = select_candidates(candidates, _settings(overlay_only=True))
        assert [c.index for c in chosen] == [1, 2]

    def test_mixed_tiers_reach_down_the_field(self):
        candidates = [
            _candidate(0, "2-1", base_score=200),
            _candidate(1, "3-1", base_score=195),
            _candidate(2, "4-1", base_score=190),
            _candidate(3, "12-1", base_score=120),
        ]
        mixed = select_candidates(candidates, _settings(max_horses=2, prefer_mixed_tiers=True))
        top = select_candidates(candidates, _settings(max_horses=2, prefer_mixed_tiers=False))
        assert [c.index for c in mixed] == [0, 3]
        assert [c.index for c in top] == [0, 1]

    def test_max_horses_respected(self):
        candidates = [_candidate(i, "9-1", base_score=200 - i) for i in range(8)]
        assert len(select_candidates(candidates, _settings(max_horses=3))) == 3

    def test_score_tiers(self):
        assert score_tier(185) == 1
        assert score_tier(160) == 2
        assert score_tier(100) == 3
