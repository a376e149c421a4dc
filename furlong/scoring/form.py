"""Recent form scoring (0-30): finishes 0-15, layoff 0-10, consistency 0-5.

Unraced horses and horses back from a layoff of 60+ days also get a
workout adjustment (-4 to +8) when the card lists their works.
"""

import logging

from furlong.models import CategoryScore, HorseEntry, RaceHeader, Workout
from furlong.scoring.context import FieldContext

logger = logging.getLogger(__name__)

MAX_POINTS = 30
MAX_RECENT = 15
MAX_LAYOFF = 10
MAX_CONSISTENCY = 5

RECENT_WINDOW = 3
FINISH_POINTS = {1: 5.0, 2: 4.0, 3: 3.0, 4: 2.0, 5: 1.0}
CLOSE_BEATEN_LENGTHS = 3.0  # out of the frame but within this margin earns 1

# (max days off, points)
LAYOFF_POINTS = [(35, 10), (60, 8), (90, 5), (180, 2)]
NO_HISTORY_DEFAULT = 8.0  # whole-category default for unraced horses
YEAR_MIN_STARTS = 3  # current-year record stands in for consistency when no lines are listed

# Workouts
LAYOFF_DAYS = 60
MIN_WORKOUT_POINTS = -4.0
MAX_WORKOUT_POINTS = 8.0
RECENT_WORK_POINTS = [(7, 3), (14, 2), (21, 1)]
BULLET_POINTS = 3
RANK_PERCENT_POINTS = [(0.10, 2), (0.25, 1)]
WORK_PATTERN_DAYS = 30
NO_RECENT_WORK_PENALTY = -4  # layoff horse without a work in the last 21 days
NO_BULLET_PENALTY = -2  # unraced horse without a bullet
SLOW_WORK_PERCENT = 0.75
SLOW_WORK_PENALTY = -1
UNRACED_MULTIPLIER = 2.0
LAYOFF_MULTIPLIER = 1.5


def _finish_points(finish: int, lengths_behind: float | None) -> float:
    if finish in FINISH_POINTS:
        return FINISH_POINTS[finish]
    if finish > 0 and lengths_behind is not None and lengths_behind <= CLOSE_BEATEN_LENGTHS:
        return 1.0
    return 0.0


def layoff_points(days: int | None) -> float:
    if days is None:
        return 0.0
    for max_days, points in LAYOFF_POINTS:
        if days <= max_days:
            return float(points)
    return 0.0


def _itm_consistency(rate: float) -> float:
    if rate >= 0.5:
        return 5.0
    if rate >= 1 / 3:
        return 3.0
    return 0.0


def workout_points(works: tuple[Workout, ...], unraced: bool) -> tuple[float, str]:
    """Score published works for an unraced or freshened horse.

    Positive credit (recency, quality, pattern) is multiplied; penalties
    are not.
    """
    if not works:
        return 0.0, ""

    dated = sorted((w for w in works if w.days_ago is not None), key=lambda w: w.days_ago)
    latest = dated[0] if dated else works[0]
    notes = []

    credit = 0
    if latest.days_ago is not None:
        for max_days, points in RECENT_WORK_POINTS:
            if latest.days_ago <= max_days:
                credit += points
                break
        notes.append(f"last work {latest.days_ago} days ago")

    has_bullet = any(w.is_bullet for w in works)
    if has_bullet:
        credit += BULLET_POINTS
        notes.append("bullet")
    else:
        percents = [w.rank_percent for w in works if w.rank_percent is not None]
        if percents:
            best = min(percents)
            for max_percent, points in RANK_PERCENT_POINTS:
                if best <= max_percent:
                    credit += points
                    notes.append(f"ranked top {best:.0%}")
                    break

    in_window = sum(1 for w in dated if w.days_ago <= WORK_PATTERN_DAYS)
    if in_window >= 4:
        credit += 2
    elif in_window == 3:
        credit += 1

    penalty = 0
    if unraced and not has_bullet:
        penalty += NO_BULLET_PENALTY
    if not unraced and (latest.days_ago is None or latest.days_ago > RECENT_WORK_POINTS[-1][0]):
        penalty += NO_RECENT_WORK_PENALTY
        notes.append("no recent work")
    latest_percent = latest.rank_percent
    if latest_percent is not None and latest_percent > SLOW_WORK_PERCENT:
        penalty += SLOW_WORK_PENALTY

    multiplier = UNRACED_MULTIPLIER if unraced else LAYOFF_MULTIPLIER
    points = max(MIN_WORKOUT_POINTS, min(MAX_WORKOUT_POINTS, float(round(credit * multiplier + penalty))))
    logger.debug("Workouts: credit %d x %.1f, penalty %d -> %.0f", credit, multiplier, penalty, points)
    return points, ", ".join(notes)


def score_form(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> CategoryScore:
    recent = entry.past_performances[:RECENT_WINDOW]
    if not recent:
        works, work_text = workout_points(entry.workouts, unraced=True)
        year = entry.current_year
        consistency = _itm_consistency(year.itm_rate) if year.starts >= YEAR_MIN_STARTS else 0.0
        breakdown = {"recent": 0.0, "layoff": 0.0, "consistency": consistency, "default": NO_HISTORY_DEFAULT}
        if entry.workouts:
            breakdown["workouts"] = works
        return CategoryScore(
            name="form",
            total=NO_HISTORY_DEFAULT + consistency + works,
            max=MAX_POINTS,
            breakdown=breakdown,
            details={"has_history": False},
            reasoning=f"No recent form, works: {work_text}" if work_text else "No recent form",
        )

    recent_pts = sum(_finish_points(pp.finish_position, pp.lengths_behind) for pp in recent)
    recent_pts = min(MAX_RECENT, recent_pts)

    layoff = layoff_points(entry.days_since_last_race)

    in_the_money = sum(1 for pp in recent if 1 <= pp.finish_position <= 3)
    if in_the_money >= 3:
        consistency = 5.0
    elif in_the_money == 2:
        consistency = 3.0
    else:
        consistency = 0.0

    finishes = "-".join(str(pp.finish_position or "x") for pp in recent)
    days = entry.days_since_last_race
    reasoning = f"Last {len(recent)}: {finishes}"
    if days is not None:
        reasoning += f", {days} days off"

    breakdown = {"recent": recent_pts, "layoff": layoff, "consistency": consistency}
    works = 0.0
    if days is not None and days >= LAYOFF_DAYS and entry.workouts:
        works, work_text = workout_points(entry.workouts, unraced=False)
        breakdown["workouts"] = works
        if work_text:
            reasoning += f", works: {work_text}"

    return CategoryScore(
        name="form",
        total=recent_pts + layoff + consistency + works,
        max=MAX_POINTS,
        breakdown=breakdown,
        details={"has_history": True, "in_the_money": in_the_money},
        reasoning=reasoning,
    )
