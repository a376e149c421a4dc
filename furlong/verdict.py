"""Race-level verdict: is there a bet in this race?

BET when a non-favourite is a big enough overlay, CAUTION when the best
edge is positive but short of that, PASS otherwise. The favourite never
qualifies as a value play on its own: backing chalk is not value hunting.
"""

import logging
from dataclasses import dataclass, field

from furlong.config import EngineSettings, get_settings
from furlong.overlay import UNDERLAY, OverlayAnalysis

logger = logging.getLogger(__name__)

BET, CAUTION, PASS = "BET", "CAUTION", "PASS"
HIGH, MEDIUM, LOW = "HIGH", "MEDIUM", "LOW"

REASON_TEXT = {
    "value_found": "Value play identified against the market",
    "below_threshold": "Positive edge found but below the betting threshold",
    "chalk": "All contenders are chalk, favourite fairly priced",
    "no_value": "No value plays identified in this race",
    "no_active_horses": "No active horses in the race",
}


@dataclass(frozen=True)
class HorseValue:
    """One horse's overlay, as fed to the verdict."""

    index: int
    name: str
    program_number: str
    overlay: OverlayAnalysis | None = None  # None for scratched horses
    is_scratched: bool = False


@dataclass(frozen=True)
class ValuePlay:
    index: int
    name: str
    program_number: str
    overlay_percent: float
    ev_percent: float
    fair_odds: str
    market_odds: str
    value_class: str
    action: str


@dataclass(frozen=True)
class RaceValueAnalysis:
    verdict: str
    confidence: str
    verdict_reason: str
    reason_text: str
    value_plays: list[ValuePlay] = field(default_factory=list)
    primary_value_play: ValuePlay | None = None
    closest_to_threshold: ValuePlay | None = None
    favorite_index: int | None = None
    best_edge: float | None = None


def _play(h: HorseValue) -> ValuePlay:
    ov = h.overlay
    return ValuePlay(
        index=h.index,
        name=h.name,
        program_number=h.program_number,
        overlay_percent=ov.overlay_percent,
        ev_percent=ov.ev_percent,
        fair_odds=ov.fair_odds,
        market_odds=ov.market_odds,
        value_class=ov.value_class,
        action=ov.recommendation.action,
    )


def find_favorite(active: list[HorseValue]) -> HorseValue | None:
    """Shortest market price; earliest on the card wins a tie."""
    if not active:
        return None
    return min(active, key=lambda h: (h.overlay.decimal_odds, h.index))


def _gap_confidence(gap: float, settings: EngineSettings) -> str:
    if gap >= settings.confidence_gap_high:
        return HIGH
    if gap >= settings.confidence_gap_medium:
        return MEDIUM
    return LOW


def analyze_race_value(horses: list[HorseValue], settings: EngineSettings | None = None) -> RaceValueAnalysis:
    settings = settings or get_settings()
    threshold = settings.verdict_overlay_threshold

    active = [h for h in horses if not h.is_scratched and h.overlay is not None]
    if not active:
        return RaceValueAnalysis(
            verdict=PASS,
            confidence=LOW,
            verdict_reason="no_active_horses",
            reason_text=REASON_TEXT["no_active_horses"],
        )

    favorite = find_favorite(active)
    by_edge = sorted(active, key=lambda h: (-h.overlay.overlay_percent, h.index))
    best_edge = by_edge[0].overlay.overlay_percent

    qualifying = [h for h in by_edge if h.index != favorite.index and h.overlay.overlay_percent >= threshold]

    if qualifying:
        plays = [_play(h) for h in qualifying]
        top = qualifying[0]
        next_best = next((h.overlay.overlay_percent for h in by_edge if h.index != top.index), None)
        gap = top.overlay.overlay_percent - next_best if next_best is not None else top.overlay.overlay_percent
        result = RaceValueAnalysis(
            verdict=BET,
            confidence=_gap_confidence(gap, settings),
            verdict_reason="value_found",
            reason_text=f"{top.name} is {top.overlay.overlay_percent:+.0f}% over the market",
            value_plays=plays,
            primary_value_play=plays[0],
            favorite_index=favorite.index,
            best_edge=best_edge,
        )
    elif best_edge > 0:
        result = RaceValueAnalysis(
            verdict=CAUTION,
            confidence=MEDIUM if best_edge >= threshold / 2 else LOW,
            verdict_reason="below_threshold",
            reason_text=REASON_TEXT["below_threshold"],
            favorite_index=favorite.index,
            best_edge=best_edge,
        )
    else:
        fav = favorite.overlay
        chalk = fav.value_class != UNDERLAY and fav.overlay_percent < threshold
        reason = "chalk" if chalk else "no_value"
        contenders = [h for h in by_edge if h.index != favorite.index] or by_edge
        result = RaceValueAnalysis(
            verdict=PASS,
            confidence=LOW,
            verdict_reason=reason,
            reason_text=REASON_TEXT[reason],
            closest_to_threshold=_play(contenders[0]),
            favorite_index=favorite.index,
            best_edge=best_edge,
        )

    logger.debug("Verdict %s/%s (%s), best edge %.1f%%", result.verdict, result.confidence, result.verdict_reason, best_edge)
    return result
