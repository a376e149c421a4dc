"""Breeding fallback scoring for lightly raced horses (0-60).

With two or fewer lifetime starts there is little form or speed evidence,
so sire, dam and damsire profiles stand in for those categories. The
substitution can only lift the horse: it replaces the conservative
defaults form and speed/class gave, never a better measured score.
"""

import logging

from furlong.models import BreedingScore, CategoryScore, HorseEntry, RaceHeader
from furlong.reference import BreedingProfile, distance_bucket
from furlong.scoring.context import FieldContext

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

MAX_POINTS = 60
MAX_SIRE = 25
MAX_DAM = 20
MAX_DAMSIRE = 15
DEBUT_BONUS = 10
SURFACE_FIT_BONUS = 5
DISTANCE_FIT_BONUS = 5

DAM_DEFAULT = 5
DAMSIRE_DEFAULT = 5
SIRE_DEFAULT = 8

ELITE_WIN_RATE = 0.20  # progeny win rate that earns full win-rate points
ELITE_EARNINGS = 5000.0  # earnings per start that earns full earnings points
ELITE_DEBUT_WIN_RATE = 0.15

# Categories breeding stands in for, and the most it can give them
SUBSTITUTED_CATEGORIES = ("form", "speed_class")
SUBSTITUTION_CAP = 70.0

# Lifetime starts → weight of the breeding signal
EXPERIENCE_WEIGHTS = {0: 1.0, 1: 0.8, 2: 0.6}


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def _profile_points(profile: BreedingProfile | None, max_points: float, default: float) -> float:
    if profile is None:
        return default
    win = min(1.0, profile.win_rate / ELITE_WIN_RATE)
    earnings = min(1.0, profile.earnings_per_start / ELITE_EARNINGS)
    return round(max_points * (0.7 * win + 0.3 * earnings), 2)


def _fits_surface(profile: BreedingProfile | None, surface: str) -> bool:
    return profile is not None and profile.surface_preference in (surface, "versatile")


def _fits_distance(profile: BreedingProfile | None, distance: float) -> bool:
    return profile is not None and profile.distance_preference in (distance_bucket(distance), "versatile")


def experience_weight(starts: int) -> float:
    return EXPERIENCE_WEIGHTS.get(starts, 0.0)


# ──────────────────────────────────────────────
# Scorer
# ──────────────────────────────────────────────

def score_breeding(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> BreedingScore:
    """Breeding rating; ``was_applied`` is False for experienced horses."""
    starts = max(entry.lifetime.starts, len(entry.past_performances))
    if starts > ctx.settings.breeding_max_starts:
        return BreedingScore(was_applied=False, reasoning=f"{starts} starts, breeding not needed")

    ref = ctx.reference
    sire = ref.breeding_profile(entry.sire, "sire")
    dam = ref.breeding_profile(entry.dam, "dam")
    damsire = ref.breeding_profile(entry.damsire, "damsire")

    breakdown = {
        "sire": _profile_points(sire, MAX_SIRE, SIRE_DEFAULT),
        "dam": _profile_points(dam, MAX_DAM, DAM_DEFAULT),
        "damsire": _profile_points(damsire, MAX_DAMSIRE, DAMSIRE_DEFAULT),
        "debut": 0.0,
        "surface_fit": 0.0,
        "distance_fit": 0.0,
    }
    notes = []
    if starts == 0 and sire is not None and sire.first_time_starter_win_rate >= ELITE_DEBUT_WIN_RATE:
        breakdown["debut"] = DEBUT_BONUS
        notes.append(f"sire wins {sire.first_time_starter_win_rate:.0%} with debutants")
    if _fits_surface(sire, race.surface) or _fits_surface(damsire, race.surface):
        breakdown["surface_fit"] = SURFACE_FIT_BONUS
        notes.append(f"bred for {race.surface}")
    if _fits_distance(sire, race.distance) or _fits_distance(damsire, race.distance):
        breakdown["distance_fit"] = DISTANCE_FIT_BONUS
        notes.append("bred for the trip")

    total = min(MAX_POINTS, sum(breakdown.values()))
    reasoning = f"By {entry.sire or '?'} out of {entry.dam or '?'}"
    if notes:
        reasoning += ": " + ", ".join(notes)

    return BreedingScore(
        was_applied=True,
        total=round(total, 2),
        breakdown=breakdown,
        reasoning=reasoning,
    )


def apply_breeding_substitution(
    breeding: BreedingScore,
    categories: dict[str, CategoryScore],
    starts: int,
) -> BreedingScore:
    """Work out how many points breeding adds over the substituted categories."""
    if not breeding.was_applied:
        return breeding

    current = sum(categories[name].total for name in SUBSTITUTED_CATEGORIES if name in categories)
    ceiling = sum(categories[name].max for name in SUBSTITUTED_CATEGORIES if name in categories)
    replacement = breeding.total / MAX_POINTS * min(SUBSTITUTION_CAP, ceiling) * experience_weight(starts)
    contribution = round(max(0.0, replacement - current), 2)

    logger.debug("Breeding substitution: %.1f over %.1f measured (+%.1f)", replacement, current, contribution)

    return BreedingScore(
        was_applied=True,
        total=breeding.total,
        max=breeding.max,
        contribution=contribution,
        breakdown=breeding.breakdown,
        reasoning=breeding.reasoning,
    )
