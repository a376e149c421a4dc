"""Speed figure and class scoring (0-85: speed 0-60, class 0-25).

Speed compares the horse's recent figures to a par for today's class and
purse. Class rewards dropping in class from the last start and proven
winning form at today's level or higher. A raced horse with no past-performance
lines is classed by its lifetime earnings per start.
"""

import logging
from statistics import mean

from furlong.models import CategoryScore, HorseEntry, PastPerformance, RaceHeader
from furlong.scoring.context import FieldContext

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

MAX_POINTS = 85
MAX_SPEED = 60
MAX_CLASS = 25

FIGURE_WINDOW = 3  # most recent figures considered
BEST_WEIGHT = 0.7  # blend of best vs average recent figure
SPEED_AT_PAR = 35.0
POINTS_PER_FIGURE = 2.5
MISSING_SPEED_DEFAULT = 20.0  # below-average when no figures exist

CLASS_LEVELS = {
    "maiden_claiming": 1,
    "claiming": 2,
    "maiden": 3,
    "starter": 3,
    "allowance": 4,
    "optional_claiming": 5,
    "stakes": 6,
    "graded_stakes": 7,
}
DEFAULT_CLASS_LEVEL = 3

CLASS_PAR = {
    "maiden_claiming": 62,
    "claiming": 70,
    "maiden": 72,
    "starter": 72,
    "allowance": 80,
    "optional_claiming": 83,
    "stakes": 88,
    "graded_stakes": 95,
}
DEFAULT_PAR = 75
PURSE_PAR_STEP = 20000.0  # every $20k above/below $30k moves par by 1
PURSE_PAR_ANCHOR = 30000.0

CLASS_DROP_POINTS = 18
CLASS_LEVEL_POINTS = 13
CLASS_RISE_POINTS = 7
CLASS_UNKNOWN_POINTS = 10
PROVEN_AT_LEVEL_BONUS = 7
MATERIAL_PURSE_CHANGE = 0.2  # same class label, purse 20%+ different

# Earnings per lifetime start, for raced horses with no past-performance lines
EARNINGS_CLASS_POINTS = [(50000.0, 18, "elite"), (20000.0, 13, "strong"), (5000.0, 10, "average")]
LOW_EARNINGS_POINTS = 7


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def class_level(classification: str) -> int:
    return CLASS_LEVELS.get(classification, DEFAULT_CLASS_LEVEL)


def class_par(race: RaceHeader) -> float:
    base = CLASS_PAR.get(race.classification, DEFAULT_PAR)
    if race.purse > 0:
        base += max(-4.0, min(6.0, (race.purse - PURSE_PAR_ANCHOR) / PURSE_PAR_STEP))
    return base


def recent_figures(entry: HorseEntry) -> list[float]:
    return [pp.speed_figure for pp in entry.past_performances[:FIGURE_WINDOW] if pp.speed_figure is not None]


def class_movement(race: RaceHeader, last: PastPerformance) -> int:
    """+1 when today is a drop from ``last``, -1 a rise, 0 level."""
    today, before = class_level(race.classification), class_level(last.classification)
    if today != before:
        return 1 if today < before else -1
    if race.purse > 0 and last.purse > 0:
        change = (race.purse - last.purse) / last.purse
        if change <= -MATERIAL_PURSE_CHANGE:
            return 1
        if change >= MATERIAL_PURSE_CHANGE:
            return -1
    return 0


# ──────────────────────────────────────────────
# Scorer
# ──────────────────────────────────────────────

def _speed_points(entry: HorseEntry, race: RaceHeader) -> tuple[float, str, dict]:
    figures = recent_figures(entry)
    par = class_par(race)
    if not figures:
        return MISSING_SPEED_DEFAULT, "No speed figures", {"par": par}

    best = max(figures)
    blended = BEST_WEIGHT * best + (1 - BEST_WEIGHT) * mean(figures)
    diff = blended - par
    points = max(0.0, min(MAX_SPEED, SPEED_AT_PAR + diff * POINTS_PER_FIGURE))
    return points, f"Best fig {best:.0f} vs par {par:.0f}", {"par": par, "best_figure": best, "blended_figure": round(blended, 1)}


def _earnings_class_points(entry: HorseEntry) -> tuple[float, str]:
    starts = entry.lifetime.starts
    if starts <= 0 or entry.lifetime_earnings <= 0:
        return CLASS_UNKNOWN_POINTS, "class untested"
    per_start = entry.lifetime_earnings / starts
    for min_earnings, points, label in EARNINGS_CLASS_POINTS:
        if per_start >= min_earnings:
            return points, f"{label} earner (${per_start:,.0f}/start)"
    return LOW_EARNINGS_POINTS, f"low earner (${per_start:,.0f}/start)"


def _class_points(entry: HorseEntry, race: RaceHeader) -> tuple[float, str]:
    if not entry.past_performances:
        return _earnings_class_points(entry)

    movement = class_movement(race, entry.past_performances[0])
    if movement > 0:
        points, text = CLASS_DROP_POINTS, "dropping in class"
    elif movement < 0:
        points, text = CLASS_RISE_POINTS, "rising in class"
    else:
        points, text = CLASS_LEVEL_POINTS, "same class"

    today = class_level(race.classification)
    if any(pp.finish_position == 1 and class_level(pp.classification) >= today for pp in entry.past_performances):
        points += PROVEN_AT_LEVEL_BONUS
        text += ", proven winner at this level"
    return min(MAX_CLASS, points), text


def score_speed_class(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> CategoryScore:
    speed, speed_text, speed_details = _speed_points(entry, race)
    klass, class_text = _class_points(entry, race)
    return CategoryScore(
        name="speed_class",
        total=speed + klass,
        max=MAX_POINTS,
        breakdown={"speed": round(speed, 2), "class": klass},
        details=speed_details,
        reasoning=f"{speed_text}, {class_text}",
    )
