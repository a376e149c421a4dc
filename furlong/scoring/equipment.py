"""Equipment and medication change scoring (0-25, base 10).

Changes are read against the horse's immediately prior start, then merged
with any change flags printed on the card.
"""

import logging

from furlong.models import CategoryScore, HorseEntry, RaceHeader
from furlong.scoring.context import FieldContext

logger = logging.getLogger(__name__)

MAX_POINTS = 25
BASE_POINTS = 10

CHANGE_POINTS = {
    "lasix_first": 12,
    "lasix_off": -3,
    "blinkers_on": 10,
    "blinkers_off": 8,
    "tongue_tie_on": 5,
    "cheek_pieces_on": 5,
    "shadow_roll_on": 4,
    "nasal_strip_on": 4,
    "bar_shoes_on": 3,
    "mud_caulks_on": 3,
    "other": 2,
}

CHANGE_LABELS = {
    "lasix_first": "First-time Lasix",
    "lasix_off": "Lasix off",
    "blinkers_on": "Blinkers on",
    "blinkers_off": "Blinkers off",
    "other": "Other equipment change",
}

TRAINER_MIN_STARTS = 5
TRAINER_BASELINE_RATE = 0.15
TRAINER_MULT_MIN = 0.5
TRAINER_MULT_MAX = 1.5


def detect_changes(entry: HorseEntry) -> list[str]:
    """Change codes for today vs the previous start, plus card flags."""
    changes: list[str] = []
    if entry.past_performances:
        last = entry.past_performances[0]
        for item in sorted(entry.equipment - last.equipment):
            changes.append(f"{item}_on")
        if "blinkers" in last.equipment and "blinkers" not in entry.equipment:
            changes.append("blinkers_off")
        if entry.lasix and not any(pp.lasix for pp in entry.past_performances):
            changes.append("lasix_first")
        elif last.lasix and not entry.lasix:
            changes.append("lasix_off")

    for code in entry.equipment_changes:
        if code not in changes:
            changes.append(code)
    return [c if c in CHANGE_POINTS else "other" for c in changes]


def trainer_multiplier(entry: HorseEntry) -> float:
    stats = entry.trainer_equipment_stats
    if stats is None or stats.starts < TRAINER_MIN_STARTS:
        return 1.0
    return max(TRAINER_MULT_MIN, min(TRAINER_MULT_MAX, stats.win_rate / TRAINER_BASELINE_RATE))


def score_equipment(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> CategoryScore:
    changes = detect_changes(entry)
    mult = trainer_multiplier(entry)

    breakdown: dict[str, float] = {"base": BASE_POINTS}
    for code in changes:
        delta = CHANGE_POINTS[code]
        if delta > 0:
            delta = delta * mult
        breakdown[code] = breakdown.get(code, 0.0) + round(delta, 2)

    total = sum(breakdown.values())
    if changes:
        labels = [CHANGE_LABELS.get(c, c.replace("_", " ").capitalize()) for c in changes]
        reasoning = ", ".join(labels)
        if mult != 1.0:
            reasoning += f" (trainer x{mult:.2f})"
    else:
        reasoning = "No equipment changes"

    return CategoryScore(
        name="equipment",
        total=total,
        max=MAX_POINTS,
        breakdown=breakdown,
        details={"changes": changes, "trainer_multiplier": round(mult, 2)},
        reasoning=reasoning,
    )
