"""Pace category scoring (0-40).

Tactical fit (0-25) from the field's projected pace, plus a bonus for how
sure we are of the horse's style (0-5) and how much evidence backs it
(0-10).
"""

import logging

from furlong.models import CategoryScore, HorseEntry, RaceHeader
from furlong.pace import calculate_tactical_advantage
from furlong.scoring.context import FieldContext

logger = logging.getLogger(__name__)

MAX_POINTS = 40
MAX_CONFIDENCE_BONUS = 5
MAX_EVIDENCE_BONUS = 10
EVIDENCE_FULL_RACES = 5

def score_pace(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> CategoryScore:
    profile = ctx.profile_for(entry)
    scenario = ctx.pace_scenario
    tactical = calculate_tactical_advantage(profile.style, scenario.scenario)

    confidence_bonus = round(profile.confidence / 100 * MAX_CONFIDENCE_BONUS, 2)
    evidence_bonus = round(min(MAX_EVIDENCE_BONUS, profile.races_analyzed / EVIDENCE_FULL_RACES * MAX_EVIDENCE_BONUS), 2)

    return CategoryScore(
        name="pace",
        total=tactical.points + confidence_bonus + evidence_bonus,
        max=MAX_POINTS,
        breakdown={
            "tactical": tactical.points,
            "confidence": confidence_bonus,
            "evidence": evidence_bonus,
        },
        details={
            "style": profile.style,
            "scenario": scenario.scenario,
            "ppi": scenario.ppi,
            "tactical_level": tactical.level,
            "pace_fit": tactical.fit,
        },
        reasoning=f"{profile.style_name} style, {tactical.description}",
    )
