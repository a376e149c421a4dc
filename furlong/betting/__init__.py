"""Bet sizing: Kelly single-horse staking and Dutch multi-horse books."""

from furlong.betting.dutch import DutchCandidate, DutchResult, calculate_dutch_book, recommend_dutch
from furlong.betting.kelly import KellyResult, calculate_kelly
from furlong.betting.settings import DutchSettings, KellySettings

__all__ = [
    "DutchCandidate",
    "DutchResult",
    "DutchSettings",
    "KellyResult",
    "KellySettings",
    "calculate_dutch_book",
    "calculate_kelly",
    "recommend_dutch",
]
