"""Hidden class drops and track-tier movement.

A horse can drop in class without the condition book saying so: a lower
claiming price behind an allowance-style label, a big purse cut at the
same nominal level, or a shipper from a major circuit. Each detected drop
earns a bonus (capped), and moving between track tiers adds or subtracts
a fixed amount per tier.
"""

import logging

from furlong.models import ClassAnalysis, HiddenDrop, HorseEntry, RaceHeader
from furlong.reference import TIER_RANK
from furlong.scoring.context import FieldContext
from furlong.scoring.speed_class import class_level

logger = logging.getLogger(__name__)

MAX_HIDDEN_BONUS = 10.0
CLAIMING_DROP_POINTS = 4.0
HIDDEN_CLAIMING_DROP_POINTS = 5.0  # price cut behind an allowance/optional label
PURSE_DROP_POINTS = 3.0
TRACK_TIER_DROP_POINTS = 2.0
TIER_STEP_POINTS = 3.0

MIN_CLAIMING_CUT = 0.25  # 25%+ lower tag
MIN_PURSE_CUT = 0.25

ALLOWANCE_LABELS = {"allowance", "optional_claiming", "starter"}


def detect_hidden_drops(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> list[HiddenDrop]:
    if not entry.past_performances:
        return []
    last = entry.past_performances[0]
    drops: list[HiddenDrop] = []

    today_tag = race.claiming_price_max
    if today_tag > 0 and last.claiming_price > 0:
        cut = (last.claiming_price - today_tag) / last.claiming_price
        if cut >= MIN_CLAIMING_CUT:
            hidden = race.classification in ALLOWANCE_LABELS
            drops.append(HiddenDrop(
                kind="claiming_price_drop",
                points=HIDDEN_CLAIMING_DROP_POINTS if hidden else CLAIMING_DROP_POINTS,
                description=(
                    f"Tag cut ${last.claiming_price:,.0f} to ${today_tag:,.0f}"
                    + (f" behind {race.classification.replace('_', ' ')} label" if hidden else "")
                ),
            ))

    if (
        race.purse > 0 and last.purse > 0
        and class_level(race.classification) == class_level(last.classification)
        and (last.purse - race.purse) / last.purse >= MIN_PURSE_CUT
    ):
        drops.append(HiddenDrop(
            kind="purse_drop",
            points=PURSE_DROP_POINTS,
            description=f"Purse down from ${last.purse:,.0f} to ${race.purse:,.0f} at same level",
        ))

    ref = ctx.reference
    from_tier = ref.track_tier(last.track)
    to_tier = ref.track_tier(race.track_code)
    if from_tier == "A" and to_tier in ("B", "C") and class_level(race.classification) >= class_level(last.classification):
        drops.append(HiddenDrop(
            kind="track_tier_drop",
            points=TRACK_TIER_DROP_POINTS,
            description=f"Shipping from {last.track} to {race.track_code} at the same nominal level",
        ))

    return drops


def tier_movement(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> int:
    """Tiers dropped since last start (negative when moving up)."""
    if not entry.past_performances:
        return 0
    from_tier = ctx.reference.track_tier(entry.past_performances[0].track)
    to_tier = ctx.reference.track_tier(race.track_code)
    if from_tier not in TIER_RANK or to_tier not in TIER_RANK:
        return 0
    return TIER_RANK[from_tier] - TIER_RANK[to_tier]


def analyze_class(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> ClassAnalysis:
    drops = detect_hidden_drops(entry, race, ctx)
    hidden = min(MAX_HIDDEN_BONUS, sum(d.points for d in drops))
    movement = tier_movement(entry, race, ctx)
    bonus = hidden + movement * TIER_STEP_POINTS

    parts = [d.description for d in drops]
    if movement > 0:
        parts.append(f"down {movement} track tier{'s' if movement > 1 else ''}")
    elif movement < 0:
        parts.append(f"up {-movement} track tier{'s' if movement < -1 else ''}")

    return ClassAnalysis(
        hidden_drops=tuple(drops),
        tier_movement=movement,
        bonus=bonus,
        reasoning="; ".join(parts),
    )
