"""Overlay / value analysis: our win probability against the market price."""

import logging
from dataclasses import dataclass

from furlong.odds import DEFAULT_ODDS, Odds, fair_odds_display, parse_odds

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

MASSIVE, STRONG, GOOD, NEUTRAL, UNDERLAY = "massive", "strong", "good", "neutral", "underlay"

# (min overlay %, value class), checked in order
VALUE_TIERS = [
    (100.0, MASSIVE),
    (50.0, STRONG),
    (25.0, GOOD),
]
UNDERLAY_AT = -20.0
SMALL_BET_OVERLAY = 10.0  # neutral horses above this still merit a small bet

MAX_HEAVY_MULTIPLIER = 3.0
MAX_STANDARD_MULTIPLIER = 1.5


# ──────────────────────────────────────────────
# Result types
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Recommendation:
    action: str  # bet_heavily, bet_standard, bet_small, pass, avoid
    urgency: str  # immediate, standard, low, none
    suggested_multiplier: float
    reasoning: str = ""


@dataclass(frozen=True)
class OverlayAnalysis:
    win_probability: float
    fair_odds: str
    market_odds: str
    implied_probability: float
    decimal_odds: float
    overlay_percent: float
    ev_per_dollar: float
    ev_percent: float
    value_class: str
    recommendation: Recommendation
    odds_defaulted: bool = False

    @property
    def is_overlay(self) -> bool:
        return self.overlay_percent > 0


# ──────────────────────────────────────────────
# Analysis
# ──────────────────────────────────────────────

def classify_value(overlay_percent: float) -> str:
    for threshold, value_class in VALUE_TIERS:
        if overlay_percent >= threshold:
            return value_class
    if overlay_percent <= UNDERLAY_AT:
        return UNDERLAY
    return NEUTRAL


def recommend(value_class: str, overlay_percent: float) -> Recommendation:
    if value_class == MASSIVE:
        return Recommendation(
            "bet_heavily", "immediate",
            round(min(MAX_HEAVY_MULTIPLIER, 1 + overlay_percent / 100), 2),
            f"Massive overlay {overlay_percent:+.0f}%",
        )
    if value_class == STRONG:
        return Recommendation(
            "bet_standard", "standard",
            round(min(MAX_STANDARD_MULTIPLIER, 1 + overlay_percent / 150), 2),
            f"Strong overlay {overlay_percent:+.0f}%",
        )
    if value_class == GOOD:
        return Recommendation("bet_standard", "standard", 1.0, f"Good overlay {overlay_percent:+.0f}%")
    if value_class == UNDERLAY:
        return Recommendation("avoid", "none", 0.0, f"Underlay {overlay_percent:+.0f}%, price too short")
    if overlay_percent >= SMALL_BET_OVERLAY:
        return Recommendation("bet_small", "low", 0.75, f"Slight overlay {overlay_percent:+.0f}%")
    return Recommendation("pass", "none", 0.0, "Fairly priced")


def analyze_overlay(win_probability: float, odds: Odds | str | None, default_odds: str = DEFAULT_ODDS) -> OverlayAnalysis:
    """Compare a win probability with a market price.

    ``overlay_percent`` is how far our probability exceeds the market's
    implied probability, relative to it; ``ev_per_dollar`` is the expected
    profit per unit staked at the market price. Both share a sign.
    """
    if not isinstance(odds, Odds):
        odds = parse_odds(odds, default_odds)

    p = max(0.0, min(1.0, win_probability))
    implied = odds.implied_probability
    overlay = round((p - implied) / implied * 100, 1)
    ev = p * odds.decimal - 1
    value_class = classify_value(overlay)

    return OverlayAnalysis(
        win_probability=round(p, 4),
        fair_odds=fair_odds_display(p),
        market_odds=odds.text,
        implied_probability=round(implied, 4),
        decimal_odds=round(odds.decimal, 3),
        overlay_percent=overlay,
        ev_per_dollar=round(ev, 3),
        ev_percent=round(ev * 100, 1),
        value_class=value_class,
        recommendation=recommend(value_class, overlay),
        odds_defaulted=odds.is_default,
    )
