"""Trainer / jockey / partnership scoring (0-30)."""

import logging

from furlong.models import CategoryScore, HorseEntry, RaceHeader, StatsRecord
from furlong.scoring.context import FieldContext

logger = logging.getLogger(__name__)

MAX_POINTS = 30
MIN_STARTS = 5  # below this a win rate is noise

# (min win rate, points)
TRAINER_TIERS = [(0.25, 15), (0.20, 12), (0.15, 9), (0.10, 6), (0.05, 3), (0.0, 1)]
TRAINER_DEFAULT = 4

JOCKEY_TIERS = [(0.22, 10), (0.18, 8), (0.14, 6), (0.10, 4), (0.05, 2), (0.0, 1)]
JOCKEY_DEFAULT = 3

# (min joint win rate, min starts together, points, label)
PARTNERSHIP_TIERS = [
    (0.30, 8, 5, "elite"),
    (0.25, 5, 4, "strong"),
    (0.20, 5, 3, "good"),
    (0.15, 5, 1, "regular"),
]


def _tier_points(stats: StatsRecord, tiers: list[tuple[float, int]], default: int) -> int:
    if stats.starts < MIN_STARTS:
        return default
    rate = stats.win_rate
    for threshold, points in tiers:
        if rate >= threshold:
            return points
    return tiers[-1][1]


def derive_partnership(entry: HorseEntry) -> StatsRecord | None:
    """Partnership record from this horse's past starts with today's jockey."""
    if not entry.jockey:
        return None
    jockey = entry.jockey.lower()
    rides = [pp for pp in entry.past_performances if pp.jockey.lower() == jockey and pp.finish_position > 0]
    if not rides:
        return None
    return StatsRecord(
        starts=len(rides),
        wins=sum(1 for pp in rides if pp.finish_position == 1),
        seconds=sum(1 for pp in rides if pp.finish_position == 2),
        thirds=sum(1 for pp in rides if pp.finish_position == 3),
    )


def partnership_tier(stats: StatsRecord | None) -> tuple[int, str]:
    if stats is None:
        return 0, "none"
    for rate, min_starts, points, label in PARTNERSHIP_TIERS:
        if stats.starts >= min_starts and stats.win_rate >= rate:
            return points, label
    return 0, "none"


def score_connections(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> CategoryScore:
    trainer = _tier_points(entry.trainer_stats, TRAINER_TIERS, TRAINER_DEFAULT)
    jockey = _tier_points(entry.jockey_stats, JOCKEY_TIERS, JOCKEY_DEFAULT)

    partnership_stats = entry.partnership_stats
    derived = False
    if partnership_stats is None:
        partnership_stats = derive_partnership(entry)
        derived = partnership_stats is not None
    partnership, tier = partnership_tier(partnership_stats)

    parts = [
        f"Trainer {entry.trainer or '?'} {entry.trainer_stats.win_rate:.0%} ({entry.trainer_stats.starts})",
        f"Jockey {entry.jockey or '?'} {entry.jockey_stats.win_rate:.0%} ({entry.jockey_stats.starts})",
    ]
    if partnership:
        parts.append(f"{tier} partnership")

    return CategoryScore(
        name="connections",
        total=trainer + jockey + partnership,
        max=MAX_POINTS,
        breakdown={"trainer": trainer, "jockey": jockey, "partnership": partnership},
        details={"partnership_tier": tier, "partnership_derived": derived},
        reasoning=", ".join(parts),
    )
