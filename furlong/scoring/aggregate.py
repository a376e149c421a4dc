"""Composite score aggregation.

Sums the category scorers, the class and affinity bonuses and any breeding
substitution into a bounded base score (0-240), then adds a
small odds-derived market component to give the displayed total. Win
probabilities are always computed from ``base_score`` so they cannot
echo the market price back at it.
"""

import logging

from furlong.models import CategoryScore, HorseEntry, HorseScore
from furlong.odds import Odds
from furlong.scoring.affinity import score_affinity
from furlong.scoring.breeding import apply_breeding_substitution, score_breeding
from furlong.scoring.class_drop import analyze_class
from furlong.scoring.connections import score_connections
from furlong.scoring.context import FieldContext
from furlong.scoring.equipment import score_equipment
from furlong.scoring.form import score_form
from furlong.scoring.pace import score_pace
from furlong.scoring.post_position import score_post_position
from furlong.scoring.speed_class import score_speed_class

logger = logging.getLogger(__name__)

CATEGORY_SCORERS = (
    score_connections,
    score_post_position,
    score_speed_class,
    score_form,
    score_equipment,
    score_pace,
)

# (max decimal odds, points)
MARKET_POINTS = [(3.0, 8.0), (5.0, 5.0), (9.0, 2.0)]
MAX_MARKET_POINTS = 10.0


def market_points(odds: Odds | None) -> float:
    if odds is None:
        return 0.0
    for max_decimal, points in MARKET_POINTS:
        if odds.decimal <= max_decimal:
            return min(MAX_MARKET_POINTS, points)
    return 0.0


def _clamp(value: float, upper: float) -> float:
    return round(max(0.0, min(upper, value)), 2)


def score_horse(
    entry: HorseEntry,
    ctx: FieldContext,
    odds: Odds | None = None,
    is_scratched: bool = False,
) -> HorseScore:
    """Score one horse against the shared field context."""
    race = ctx.race
    max_score = ctx.settings.max_score

    categories: dict[str, CategoryScore] = {}
    for scorer in CATEGORY_SCORERS:
        category = scorer(entry, race, ctx)
        categories[category.name] = category

    starts = max(entry.lifetime.starts, len(entry.past_performances))
    breeding = score_breeding(entry, race, ctx)
    breeding = apply_breeding_substitution(breeding, categories, starts)

    klass = analyze_class(entry, race, ctx)
    affinity = score_affinity(entry, race, ctx)

    raw = sum(c.total for c in categories.values()) + breeding.contribution + klass.bonus + affinity.total
    base = _clamp(raw, max_score)
    if base != round(raw, 2):
        logger.debug("%s: raw score %.2f clamped to %.2f", entry.label, raw, base)

    market = market_points(odds)
    total = _clamp(base + market, max_score)

    return HorseScore(
        index=entry.index,
        base_score=base,
        total=total,
        breakdown=categories,
        is_scratched=is_scratched,
        market_points=market,
        class_score=klass,
        breeding_score=breeding,
        affinity_score=affinity,
    )


def score_race(
    entries: list[HorseEntry],
    ctx: FieldContext,
    odds: dict[int, Odds] | None = None,
) -> list[HorseScore]:
    """Score every horse on the card, scratched ones included."""
    odds = odds or {}
    scores = []
    for entry in entries:
        scratched = entry.index not in ctx.active_indices
        scores.append(score_horse(entry, ctx, odds.get(entry.index), is_scratched=scratched))
    return scores
