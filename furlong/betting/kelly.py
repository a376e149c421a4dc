"""Kelly criterion staking for a single horse.

Full Kelly: f* = (b·p − q) / b, where b is net odds, p our win probability
and q = 1 − p. The chosen fraction (quarter/half/full) scales f*, and the
result is capped at the user's maximum bet percentage.
"""

import logging
import math
from dataclasses import dataclass

from furlong.betting.settings import KellySettings
from furlong.odds import Odds, parse_odds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KellyResult:
    should_bet: bool
    reason: str
    full_kelly_fraction: float = 0.0
    applied_fraction: float = 0.0  # after fraction multiplier and cap
    suggested_stake: float = 0.0
    bet_percent: float = 0.0
    edge_percent: float = 0.0
    expected_value: float = 0.0  # per unit staked
    expected_growth: float = 0.0  # expected log growth of bankroll per bet
    capped: bool = False


def kelly_fraction(probability: float, net_odds: float) -> float:
    """Full-Kelly fraction; <= 0 means no bet."""
    if net_odds <= 0:
        return 0.0
    return (net_odds * probability - (1.0 - probability)) / net_odds


def expected_growth(probability: float, net_odds: float, fraction: float) -> float:
    if fraction <= 0 or fraction >= 1:
        return 0.0
    q = 1.0 - probability
    return probability * math.log(1 + net_odds * fraction) + q * math.log(1 - fraction)


def calculate_kelly(probability: float, odds: Odds | str, settings: KellySettings) -> KellyResult:
    if not isinstance(odds, Odds):
        odds = parse_odds(odds)

    b = odds.profit_multiple
    implied = odds.implied_probability
    edge = (probability - implied) / implied * 100
    ev = probability * odds.decimal - 1
    full = kelly_fraction(probability, b)

    base = dict(
        full_kelly_fraction=round(full, 4),
        edge_percent=round(edge, 1),
        expected_value=round(ev, 3),
    )

    if not settings.enabled:
        return KellyResult(should_bet=False, reason="Kelly staking disabled", **base)
    if full <= 0:
        return KellyResult(should_bet=False, reason="No edge at this price", **base)
    if edge < settings.min_edge_required:
        return KellyResult(
            should_bet=False,
            reason=f"Edge {edge:.1f}% below required {settings.min_edge_required:.0f}%",
            **base,
        )

    fraction = full * settings.fraction_multiplier
    cap = settings.max_bet_percent / 100
    capped = fraction > cap
    fraction = min(fraction, cap)
    # Whole dollars, never above the cap
    stake = float(min(round(settings.bankroll * fraction), math.floor(round(settings.bankroll * cap, 6))))

    if stake <= 0:
        return KellyResult(should_bet=False, reason="Stake rounds to zero", **base)

    logger.debug("Kelly: p=%.3f b=%.2f f*=%.4f applied=%.4f stake=%.0f", probability, b, full, fraction, stake)

    return KellyResult(
        should_bet=True,
        reason=f"{settings.kelly_fraction.capitalize()} Kelly on {edge:.0f}% edge" + (" (capped)" if capped else ""),
        applied_fraction=round(fraction, 4),
        suggested_stake=stake,
        bet_percent=round(stake / settings.bankroll * 100, 2),
        expected_growth=round(expected_growth(probability, b, fraction), 5),
        capped=capped,
        **base,
    )
