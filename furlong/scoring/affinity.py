"""Surface, distance and track affinity bonus (0-20).

Win rates from the card's tallies: turf record 0-8 (turf races only),
distance record 0-6 and course record 0-6. One or two starts earn half
credit; no starts earn nothing. The bonus sits on top of the category
budget like the class bonus does.
"""

import logging

from furlong.models import CategoryScore, HorseEntry, RaceHeader, StatsRecord
from furlong.scoring.context import FieldContext

logger = logging.getLogger(__name__)

MAX_POINTS = 20
MIN_STARTS_FULL_CREDIT = 3

# (min win rate, points), best first
TURF_POINTS = [(0.30, 8), (0.20, 6), (0.15, 4), (0.10, 2)]
DISTANCE_POINTS = [(0.25, 6), (0.15, 4), (0.10, 2)]
TRACK_POINTS = [(0.25, 6), (0.15, 4), (0.10, 2)]


def record_points(record: StatsRecord, table: list[tuple[float, int]]) -> float:
    if record.starts <= 0:
        return 0.0
    points = 0
    for min_rate, value in table:
        if record.win_rate >= min_rate:
            points = value
            break
    if record.starts < MIN_STARTS_FULL_CREDIT:
        points = round(points / 2)
    return float(points)


def _describe(label: str, record: StatsRecord) -> str:
    return f"{label} {record.wins}/{record.starts}"


def score_affinity(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> CategoryScore:
    turf = record_points(entry.surface_record, TURF_POINTS) if race.surface == "turf" else 0.0
    distance = record_points(entry.distance_record, DISTANCE_POINTS)
    track = record_points(entry.track_record, TRACK_POINTS)

    notes = []
    if race.surface == "turf" and entry.surface_record.starts:
        notes.append(_describe("turf", entry.surface_record))
    if entry.distance_record.starts:
        notes.append(_describe("distance", entry.distance_record))
    if entry.track_record.starts:
        notes.append(_describe("course", entry.track_record))

    total = turf + distance + track
    if total:
        logger.debug("%s: affinity %.0f (%s)", entry.label, total, ", ".join(notes))

    return CategoryScore(
        name="affinity",
        total=total,
        max=MAX_POINTS,
        breakdown={"surface": turf, "distance": distance, "track": track},
        reasoning=", ".join(notes) or "No surface, distance or course record",
    )
