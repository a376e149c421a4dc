"""Base, trend and blended rankings for the active field.

Base rank orders horses by base score. Trend rank orders them by whether
their recent races are better or worse than their older ones. The blended
score mixes the two 60/40, falling back to base only when a horse has too
few races to read a trend.
"""

import logging
from dataclasses import dataclass
from statistics import mean

from furlong.models import HorseEntry, HorseScore

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

BASE_WEIGHT = 0.6
TREND_WEIGHT = 0.4

MIN_RACES_FOR_TREND = 3
RECENT_RACES = 2
OLDER_RACES = 3  # races after the recent window
FIGURE_POINTS_PER_POSITION = 5.0  # speed-figure gain worth one finishing place
IMPROVING_THRESHOLD = 1.0
DECLINING_THRESHOLD = -1.0
NEUTRAL_TREND_SCORE = 50.0
TREND_SCALE = 10.0  # normalised points per unit of raw trend

HIGH, MODERATE, DIVERGENT = "HIGH", "MODERATE", "DIVERGENT"


@dataclass(frozen=True)
class TrendScore:
    raw: float
    normalized: float  # 0-100, 50 = flat
    direction: str  # improving, stable, declining
    limited_data: bool = False


@dataclass(frozen=True)
class RankedHorse:
    index: int
    name: str
    program_number: str
    base_score: float
    base_rank: int
    trend_score: float
    trend_direction: str
    trend_rank: int
    blended_score: float
    blended_rank: int
    agreement: str | None  # None when the trend is unreadable
    limited_trend_data: bool = False


# ──────────────────────────────────────────────
# Trend
# ──────────────────────────────────────────────

def calculate_trend(entry: HorseEntry) -> TrendScore:
    """Compare the last two races with the three before them."""
    races = [pp for pp in entry.past_performances if pp.finish_position > 0]
    if len(races) < MIN_RACES_FOR_TREND:
        return TrendScore(raw=0.0, normalized=NEUTRAL_TREND_SCORE, direction="stable", limited_data=True)

    recent = races[:RECENT_RACES]
    older = races[RECENT_RACES:RECENT_RACES + OLDER_RACES]

    # Lower finishing position is better, so older minus recent is improvement
    raw = mean(pp.finish_position for pp in older) - mean(pp.finish_position for pp in recent)

    recent_figs = [pp.speed_figure for pp in recent if pp.speed_figure is not None]
    older_figs = [pp.speed_figure for pp in older if pp.speed_figure is not None]
    if recent_figs and older_figs:
        raw += (mean(recent_figs) - mean(older_figs)) / FIGURE_POINTS_PER_POSITION
        raw /= 2

    if raw >= IMPROVING_THRESHOLD:
        direction = "improving"
    elif raw <= DECLINING_THRESHOLD:
        direction = "declining"
    else:
        direction = "stable"

    normalized = max(0.0, min(100.0, NEUTRAL_TREND_SCORE + raw * TREND_SCALE))
    return TrendScore(raw=round(raw, 2), normalized=round(normalized, 1), direction=direction)


# ──────────────────────────────────────────────
# Ranking
# ──────────────────────────────────────────────

def _ranks(order: list[int]) -> dict[int, int]:
    return {index: rank for rank, index in enumerate(order, start=1)}


def agreement_level(base_rank: int, trend_rank: int) -> str:
    gap = abs(base_rank - trend_rank)
    if gap <= 1:
        return HIGH
    if gap == 2:
        return MODERATE
    return DIVERGENT


def rank_field(
    entries: list[HorseEntry],
    scores: list[HorseScore],
    max_score: float = 240.0,
) -> list[RankedHorse]:
    """Rank non-scratched horses; returned in blended-rank order."""
    by_index = {e.index: e for e in entries}
    active = [s for s in scores if not s.is_scratched and s.index in by_index]
    if not active:
        return []

    trends = {s.index: calculate_trend(by_index[s.index]) for s in active}
    base_order = [s.index for s in sorted(active, key=lambda s: (-s.base_score, s.index))]
    base_ranks = _ranks(base_order)
    trend_order = sorted(
        (s.index for s in active),
        key=lambda i: (-trends[i].normalized, base_ranks[i]),
    )
    trend_ranks = _ranks(trend_order)

    blended: dict[int, float] = {}
    for s in active:
        base_norm = s.base_score / max_score * 100 if max_score > 0 else 0.0
        trend = trends[s.index]
        if trend.limited_data:
            blended[s.index] = round(base_norm, 2)
        else:
            blended[s.index] = round(BASE_WEIGHT * base_norm + TREND_WEIGHT * trend.normalized, 2)
    blended_order = sorted(blended, key=lambda i: (-blended[i], base_ranks[i]))
    blended_ranks = _ranks(blended_order)

    ranked = []
    for index in blended_order:
        entry = by_index[index]
        trend = trends[index]
        score = next(s for s in active if s.index == index)
        ranked.append(RankedHorse(
            index=index,
            name=entry.name,
            program_number=entry.program_number,
            base_score=score.base_score,
            base_rank=base_ranks[index],
            trend_score=trend.normalized,
            trend_direction=trend.direction,
            trend_rank=trend_ranks[index],
            blended_score=blended[index],
            blended_rank=blended_ranks[index],
            agreement=None if trend.limited_data else agreement_level(base_ranks[index], trend_ranks[index]),
            limited_trend_data=trend.limited_data,
        ))
    return ranked
