"""Pace scenario and tactical advantage analysis.

Classifies each runner's early-position habit, rolls the field up into a
Pace Pressure Index (PPI), and looks up how well each style suits the
projected pace.

Style codes:
  E: Early (needs the lead)
  P: Presser (sits just off the speed)
  C: Closer (comes from well back)
  S: Sustained (no dominant habit, or no evidence)
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from furlong.models import HorseEntry

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

EARLY, PRESSER, CLOSER, SUSTAINED = "E", "P", "C", "S"
STYLE_PRIORITY = (EARLY, PRESSER, CLOSER, SUSTAINED)  # tie-break order
STYLE_NAMES = {EARLY: "Early", PRESSER: "Presser", CLOSER: "Closer", SUSTAINED: "Sustained"}

MIN_STYLE_SAMPLE = 3  # races before ratios are trusted
DOMINANT_RATIO = 0.5  # share of races one habit needs to define the style
FULL_CONFIDENCE_SAMPLE = 5

PRESSER_PRESSURE = 0.35  # pressers add partial early pressure to the PPI

SOFT, MODERATE, CONTESTED, SPEED_DUEL = "soft", "moderate", "contested", "speed_duel"

# PPI upper bounds (inclusive except soft)
PPI_SOFT_BELOW = 20
PPI_MODERATE_MAX = 35
PPI_CONTESTED_MAX = 50

SCENARIO_DESCRIPTIONS = {
    SOFT: "Lone speed could steal on easy lead",
    MODERATE: "Honest pace, pressers and stalkers well placed",
    CONTESTED: "Several want the lead, pressure will tell late",
    SPEED_DUEL: "Speed duel likely, set up for closers",
}

# Tactical points (0-25) by scenario and style
TACTICAL_POINTS = {
    SOFT: {EARLY: 25, PRESSER: 8, CLOSER: 5, SUSTAINED: 14},
    MODERATE: {EARLY: 14, PRESSER: 20, CLOSER: 14, SUSTAINED: 15},
    CONTESTED: {EARLY: 8, PRESSER: 22, CLOSER: 20, SUSTAINED: 12},
    SPEED_DUEL: {EARLY: 0, PRESSER: 15, CLOSER: 25, SUSTAINED: 8},
}
MAX_TACTICAL_POINTS = 25

# (min points, level)
TACTICAL_LEVELS = [
    (23, "excellent"),
    (18, "good"),
    (12, "neutral"),
    (5, "poor"),
    (0, "terrible"),
]

# Tactical level -> pace-fit label
PACE_FIT = {
    "excellent": "perfect",
    "good": "good",
    "neutral": "neutral",
    "poor": "poor",
    "terrible": "poor",
}


# ──────────────────────────────────────────────
# Result types
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class PaceProfile:
    style: str
    confidence: int  # 0-100
    early_ratio: float = 0.0
    press_ratio: float = 0.0
    close_ratio: float = 0.0
    races_analyzed: int = 0
    description: str = ""

    @property
    def style_name(self) -> str:
        return STYLE_NAMES[self.style]


@dataclass(frozen=True)
class PaceScenario:
    scenario: str
    ppi: int  # 0-100
    early_count: int = 0
    presser_count: int = 0
    closer_count: int = 0
    sustained_count: int = 0
    field_size: int = 0
    lone_speed: bool = False
    description: str = ""


@dataclass(frozen=True)
class TacticalAdvantage:
    points: int  # 0-25
    level: str
    fit: str = "neutral"  # perfect, good, neutral, poor
    description: str = ""


# ──────────────────────────────────────────────
# Running style
# ──────────────────────────────────────────────

def classify_running_style(entry: HorseEntry) -> PaceProfile:
    """Classify a horse's running style from its early-position evidence."""
    ev = entry.running_style
    total = ev.total
    counts = {EARLY: ev.early_lead, PRESSER: ev.pressed, CLOSER: ev.closed}

    if total <= 0 or not any(counts.values()):
        return PaceProfile(
            style=SUSTAINED,
            confidence=0,
            description="No running-style evidence",
        )

    ratios = {style: counts[style] / total for style in counts}
    # max() keeps the first of equal keys, so iteration order is the tie-break
    leader = max((EARLY, PRESSER, CLOSER), key=lambda s: counts[s])
    sample_factor = min(1.0, total / FULL_CONFIDENCE_SAMPLE)

    if total < MIN_STYLE_SAMPLE:
        style = leader
        confidence = round(ratios[leader] * 100 * sample_factor)
        description = f"Limited evidence ({total} races), leaning {STYLE_NAMES[style]}"
    elif ratios[leader] >= DOMINANT_RATIO:
        style = leader
        confidence = round(ratios[leader] * 100 * sample_factor)
        description = f"{STYLE_NAMES[style]} in {counts[leader]} of {total} races"
    else:
        style = SUSTAINED
        confidence = round((1.0 - ratios[leader]) * 100 * sample_factor)
        description = f"No dominant habit across {total} races"

    return PaceProfile(
        style=style,
        confidence=max(0, min(100, confidence)),
        early_ratio=round(ratios[EARLY], 3),
        press_ratio=round(ratios[PRESSER], 3),
        close_ratio=round(ratios[CLOSER], 3),
        races_analyzed=total,
        description=description,
    )


# ──────────────────────────────────────────────
# Field scenario
# ──────────────────────────────────────────────

def _scenario_for_ppi(ppi: int) -> str:
    if ppi < PPI_SOFT_BELOW:
        return SOFT
    if ppi <= PPI_MODERATE_MAX:
        return MODERATE
    if ppi <= PPI_CONTESTED_MAX:
        return CONTESTED
    return SPEED_DUEL


def analyze_pace_scenario(profiles: Iterable[PaceProfile]) -> PaceScenario:
    """Project the race pace from the active field's running styles.

    Callers pass profiles for non-scratched horses only.
    """
    profiles = list(profiles)
    field_size = len(profiles)
    counts = {style: 0 for style in STYLE_PRIORITY}
    for profile in profiles:
        counts[profile.style] += 1

    if field_size == 0:
        return PaceScenario(scenario=SOFT, ppi=0, description="No active runners")

    early, pressers = counts[EARLY], counts[PRESSER]
    ppi = round(100 * (early + PRESSER_PRESSURE * pressers) / field_size)
    ppi = max(0, min(100, ppi))
    scenario = _scenario_for_ppi(ppi)

    lone_speed = early == 1 and pressers <= 1
    if lone_speed:
        scenario = SOFT
    elif early >= 3 and scenario in (SOFT, MODERATE):
        scenario = CONTESTED

    logger.debug("Pace: PPI=%d scenario=%s counts=%s", ppi, scenario, counts)

    return PaceScenario(
        scenario=scenario,
        ppi=ppi,
        early_count=early,
        presser_count=pressers,
        closer_count=counts[CLOSER],
        sustained_count=counts[SUSTAINED],
        field_size=field_size,
        lone_speed=lone_speed,
        description=SCENARIO_DESCRIPTIONS[scenario],
    )


# ──────────────────────────────────────────────
# Tactical advantage
# ──────────────────────────────────────────────

def tactical_level(points: int) -> str:
    for threshold, level in TACTICAL_LEVELS:
        if points >= threshold:
            return level
    return "terrible"


def calculate_tactical_advantage(style: str, scenario: str) -> TacticalAdvantage:
    """Fixed lookup of how well ``style`` suits ``scenario``."""
    table = TACTICAL_POINTS.get(scenario)
    if table is None or style not in table:
        logger.debug("No tactical entry for style=%s scenario=%s", style, scenario)
        return TacticalAdvantage(points=12, level="neutral", fit="neutral", description="Pace fit unknown")
    points = table[style]
    level = tactical_level(points)
    return TacticalAdvantage(
        points=points,
        level=level,
        fit=PACE_FIT[level],
        description=f"{STYLE_NAMES[style]} in a {scenario.replace('_', ' ')} pace: {level}",
    )
