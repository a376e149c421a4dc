"""Sanitized race records and score result types.

Everything here is produced by ``furlong.sanitize`` (inputs) or by the
scoring layer (outputs). Input records are frozen: the engine never edits
a horse or a race, it only derives new results from them.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Input records
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class StatsRecord:
    """Parsed racing stats (starts: wins-seconds-thirds)."""

    starts: int = 0
    wins: int = 0
    seconds: int = 0
    thirds: int = 0

    @property
    def win_rate(self) -> float:
        return self.wins / self.starts if self.starts > 0 else 0.0

    @property
    def itm_rate(self) -> float:
        return (self.wins + self.seconds + self.thirds) / self.starts if self.starts > 0 else 0.0


@dataclass(frozen=True)
class RunningStyleEvidence:
    """How often a horse has shown each early position in its races."""

    early_lead: int = 0
    pressed: int = 0
    closed: int = 0
    starts: int = 0  # races the counts were drawn from

    @property
    def total(self) -> int:
        return max(self.starts, self.early_lead + self.pressed + self.closed)


@dataclass(frozen=True)
class PastPerformance:
    """One past-performance line, most recent first in a horse's tuple."""

    date: str = ""
    track: str = ""
    distance: float = 0.0  # furlongs
    surface: str = ""
    classification: str = ""
    purse: float = 0.0
    claiming_price: float = 0.0
    field_size: int = 0
    finish_position: int = 0  # 0 = unknown / did not finish
    first_call_position: int = 0
    lengths_behind: float | None = None
    speed_figure: float | None = None
    jockey: str = ""
    equipment: frozenset[str] = frozenset()
    lasix: bool = False


@dataclass(frozen=True)
class Workout:
    date: str = ""
    track: str = ""
    distance: float = 0.0
    time_seconds: float | None = None
    rank: int = 0
    total_works: int = 0
    bullet: bool = False
    days_ago: int | None = None  # days before today's race

    @property
    def is_bullet(self) -> bool:
        return self.bullet or self.rank == 1

    @property
    def rank_percent(self) -> float | None:
        if self.rank <= 0 or self.total_works <= 0:
            return None
        return self.rank / self.total_works


@dataclass(frozen=True)
class RaceHeader:
    track_code: str = ""
    race_number: int = 0
    distance: float = 0.0  # furlongs
    surface: str = "dirt"
    track_condition: str = "fast"
    classification: str = ""
    purse: float = 0.0
    field_size: int = 0
    age_restriction: str = ""
    sex_restriction: str = ""
    claiming_price_min: float = 0.0
    claiming_price_max: float = 0.0

    @property
    def is_sprint(self) -> bool:
        return 0 < self.distance < 8.0


@dataclass(frozen=True)
class HorseEntry:
    """A single horse as it appears on the card, after sanitization."""

    index: int
    program_number: str = ""
    post_position: int = 0
    name: str = ""
    morning_line: str = ""
    age: int = 0
    sex: str = ""

    # Connections
    trainer: str = ""
    jockey: str = ""
    trainer_stats: StatsRecord = field(default_factory=StatsRecord)
    jockey_stats: StatsRecord = field(default_factory=StatsRecord)
    partnership_stats: StatsRecord | None = None
    trainer_equipment_stats: StatsRecord | None = None

    running_style: RunningStyleEvidence = field(default_factory=RunningStyleEvidence)

    # Equipment / medication as entered today
    equipment: frozenset[str] = frozenset()
    lasix: bool = False
    equipment_changes: tuple[str, ...] = ()  # explicit change codes from the card

    # Breeding
    sire: str = ""
    dam: str = ""
    damsire: str = ""

    # Records
    lifetime: StatsRecord = field(default_factory=StatsRecord)
    current_year: StatsRecord = field(default_factory=StatsRecord)
    surface_record: StatsRecord = field(default_factory=StatsRecord)
    distance_record: StatsRecord = field(default_factory=StatsRecord)
    track_record: StatsRecord = field(default_factory=StatsRecord)
    lifetime_earnings: float = 0.0
    days_since_last_race: int | None = None

    past_performances: tuple[PastPerformance, ...] = ()
    workouts: tuple[Workout, ...] = ()

    @property
    def label(self) -> str:
        return f"#{self.program_number or self.index + 1} {self.name}".strip()


# ──────────────────────────────────────────────
# Score results
# ──────────────────────────────────────────────

def _finite(value: Any) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


@dataclass(frozen=True)
class CategoryScore:
    """A bounded category subscore. ``total`` is clamped to ``[0, max]``."""

    name: str
    total: float
    max: float
    breakdown: dict[str, float] = field(default_factory=dict)
    details: dict[str, Any] = field(default_factory=dict)
    reasoning: str = ""

    def __post_init__(self):
        raw = self.total
        total = _finite(raw)
        if total != raw:
            logger.warning("Non-finite %s score %r replaced with 0", self.name, raw)
        bounded = round(max(0.0, min(float(self.max), total)), 2)
        object.__setattr__(self, "total", bounded)


@dataclass(frozen=True)
class BreedingScore:
    was_applied: bool = False
    total: float = 0.0
    max: float = 60.0
    contribution: float = 0.0  # points added to the base score by substitution
    breakdown: dict[str, float] = field(default_factory=dict)
    reasoning: str = ""


@dataclass(frozen=True)
class HiddenDrop:
    kind: str  # track_tier_drop, purse_drop, claiming_price_drop
    points: float
    description: str


@dataclass(frozen=True)
class ClassAnalysis:
    hidden_drops: tuple[HiddenDrop, ...] = ()
    tier_movement: int = 0  # positive = moving to a lower tier track
    bonus: float = 0.0
    reasoning: str = ""


@dataclass(frozen=True)
class HorseScore:
    """Composite score for one horse. ``base_score`` never depends on odds."""

    index: int
    base_score: float
    total: float
    breakdown: dict[str, CategoryScore] = field(default_factory=dict)
    is_scratched: bool = False
    market_points: float = 0.0
    class_score: ClassAnalysis | None = None
    breeding_score: BreedingScore | None = None
    affinity_score: CategoryScore | None = None
