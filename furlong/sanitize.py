"""Input sanitization boundary.

Race-card providers hand over loosely-typed dicts (or objects). Everything
is coerced here, once, into the frozen records of ``furlong.models``;
missing or malformed values become conservative defaults and are logged,
never raised. Scorers downstream can rely on clean types.
"""

import json
import logging
import math
import re
from typing import Any, Optional

from furlong.models import (
    HorseEntry,
    PastPerformance,
    RaceHeader,
    RunningStyleEvidence,
    StatsRecord,
    Workout,
)

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Vocabulary
# ──────────────────────────────────────────────

SURFACES = {"dirt", "turf", "synthetic"}

CONDITION_ALIASES = {
    "ft": "fast", "fst": "fast", "fast": "fast",
    "gd": "good", "good": "good",
    "my": "muddy", "mud": "muddy", "muddy": "muddy",
    "sy": "sloppy", "sly": "sloppy", "sloppy": "sloppy",
    "fm": "firm", "firm": "firm",
    "yl": "yielding", "yielding": "yielding",
    "sf": "soft", "soft": "soft",
    "hy": "heavy", "heavy": "heavy",
    "wf": "wet_fast", "wet fast": "wet_fast", "wet_fast": "wet_fast",
}

CLASS_ALIASES = {
    "msw": "maiden", "maiden": "maiden", "mdn": "maiden", "maiden special weight": "maiden",
    "mcl": "maiden_claiming", "maiden claiming": "maiden_claiming", "maiden_claiming": "maiden_claiming",
    "clm": "claiming", "claiming": "claiming",
    "str": "starter", "starter": "starter", "starter allowance": "starter",
    "alw": "allowance", "allowance": "allowance",
    "aoc": "optional_claiming", "optional claiming": "optional_claiming",
    "optional_claiming": "optional_claiming", "allowance optional claiming": "optional_claiming",
    "stk": "stakes", "stakes": "stakes", "handicap": "stakes", "hcp": "stakes",
    "g1": "graded_stakes", "g2": "graded_stakes", "g3": "graded_stakes",
    "graded": "graded_stakes", "graded_stakes": "graded_stakes", "graded stakes": "graded_stakes",
}

EQUIPMENT_ALIASES = {
    "b": "blinkers", "blinkers": "blinkers",
    "t": "tongue_tie", "tongue_tie": "tongue_tie", "tongue tie": "tongue_tie",
    "c": "cheek_pieces", "cheek_pieces": "cheek_pieces", "cheek pieces": "cheek_pieces",
    "s": "shadow_roll", "shadow_roll": "shadow_roll", "shadow roll": "shadow_roll",
    "n": "nasal_strip", "nasal_strip": "nasal_strip", "nasal strip": "nasal_strip",
    "r": "bar_shoes", "bar_shoes": "bar_shoes", "bar shoes": "bar_shoes",
    "m": "mud_caulks", "mud_caulks": "mud_caulks", "mud caulks": "mud_caulks",
}

CHANGE_CODES = {
    "lasix_first", "lasix_off", "blinkers_on", "blinkers_off",
    "tongue_tie_on", "cheek_pieces_on", "shadow_roll_on", "nasal_strip_on",
    "bar_shoes_on", "mud_caulks_on", "other",
}


# ──────────────────────────────────────────────
# Primitive coercion
# ──────────────────────────────────────────────

def _get(obj: Any, attr: str, default: Any = None) -> Any:
    """Get attribute from ORM-style object or dict."""
    if isinstance(obj, dict):
        return obj.get(attr, default)
    return getattr(obj, attr, default)


def _pick(obj: Any, *names: str, default: Any = None) -> Any:
    """First non-empty value among several field names."""
    for name in names:
        value = _get(obj, name)
        if value is not None and value != "":
            return value
    return default


def to_float(value: Any, default: float = 0.0, field_name: str = "") -> float:
    if value is None or value == "":
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", "").lstrip("$")
    try:
        result = float(value)
    except (TypeError, ValueError):
        logger.debug("Malformed number for %s: %r", field_name or "value", value)
        return default
    if not math.isfinite(result):
        logger.debug("Non-finite number for %s: %r", field_name or "value", value)
        return default
    return result


def to_int(value: Any, default: int = 0, field_name: str = "") -> int:
    result = to_float(value, float(default), field_name)
    return int(round(result))


def to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "l", "on")
    return bool(value)


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _optional_float(value: Any, field_name: str = "") -> Optional[float]:
    if value is None or value == "":
        return None
    result = to_float(value, math.nan, field_name)
    return None if math.isnan(result) else result


def _as_sequence(value: Any, field_name: str = "") -> tuple:
    if value is None or value == "":
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    logger.debug("Expected a list for %s, got %r", field_name or "value", value)
    return ()


# ──────────────────────────────────────────────
# Stats strings
# ──────────────────────────────────────────────

_STATS_COLON = re.compile(r"(\d+)\s*:\s*(\d+)\s*-\s*(\d+)\s*-\s*(\d+)")
_STATS_DASH4 = re.compile(r"^(\d+)\s*-\s*(\d+)\s*-\s*(\d+)\s*-\s*(\d+)$")
_STATS_PAREN = re.compile(r"(\d+)\s*-\s*(\d+)\s*-\s*(\d+)\s*\((\d+)\)")


def parse_stats_string(stats: Any) -> Optional[StatsRecord]:
    """Parse a racing stats value into a StatsRecord.

    Handles multiple formats:
      "120: 24-18-15" → StatsRecord(starts=120, wins=24, seconds=18, thirds=15)
      "12-3-2-1"      → StatsRecord(starts=12, wins=3, seconds=2, thirds=1)
      "3-2-1 (12)"    → StatsRecord(starts=12, wins=3, seconds=2, thirds=1)
      '{"starts": 12, "wins": 3, ...}' or a dict with the same keys
    """
    if not stats:
        return None

    if isinstance(stats, StatsRecord):
        return stats

    if isinstance(stats, str):
        stats = stats.strip()
        if stats.startswith("{"):
            try:
                stats = json.loads(stats)
            except (json.JSONDecodeError, ValueError):
                logger.debug("Unparseable stats JSON: %r", stats)
                return None

    if isinstance(stats, dict):
        starts = to_int(stats.get("starts", stats.get("Starts")))
        if starts <= 0:
            return None
        wins = to_int(stats.get("wins", stats.get("firsts")))
        seconds = to_int(stats.get("seconds"))
        thirds = to_int(stats.get("thirds"))
        return _bounded_record(starts, wins, seconds, thirds)

    if not isinstance(stats, str):
        return None

    # Format: "120: 24-18-15"
    m = _STATS_COLON.search(stats)
    if m:
        return _bounded_record(*(int(g) for g in m.groups()))

    # Format: "12-3-2-1"
    m = _STATS_DASH4.match(stats)
    if m:
        return _bounded_record(*(int(g) for g in m.groups()))

    # Format: "3-2-1 (12)"
    m = _STATS_PAREN.search(stats)
    if m:
        wins, seconds, thirds, starts = (int(g) for g in m.groups())
        return _bounded_record(starts, wins, seconds, thirds)

    logger.debug("Unrecognised stats string: %r", stats)
    return None


def _bounded_record(starts: int, wins: int, seconds: int, thirds: int) -> StatsRecord:
    """Clamp placings so they never exceed starts."""
    starts = max(0, starts)
    wins = min(max(0, wins), starts)
    seconds = min(max(0, seconds), starts - wins)
    thirds = min(max(0, thirds), starts - wins - seconds)
    return StatsRecord(starts=starts, wins=wins, seconds=seconds, thirds=thirds)


def _stats(value: Any) -> StatsRecord:
    return parse_stats_string(value) or StatsRecord()


# ──────────────────────────────────────────────
# Categorical fields
# ──────────────────────────────────────────────

def normalize_condition(value: Any) -> str:
    key = _text(value).lower()
    if not key:
        return "fast"
    return CONDITION_ALIASES.get(key, key)


def normalize_surface(value: Any) -> str:
    key = _text(value).lower()
    if key in ("d", "dirt"):
        return "dirt"
    if key in ("t", "turf", "inner turf", "it"):
        return "turf"
    if key in ("a", "aw", "synthetic", "tapeta", "polytrack"):
        return "synthetic"
    if key:
        logger.debug("Unknown surface %r, assuming dirt", value)
    return "dirt"


def normalize_classification(value: Any) -> str:
    key = _text(value).lower()
    if key in CLASS_ALIASES:
        return CLASS_ALIASES[key]
    # Labels like "Clm 25000" or "Alw 62000nw1x"
    for prefix, canonical in (("mcl", "maiden_claiming"), ("msw", "maiden"), ("aoc", "optional_claiming"),
                              ("clm", "claiming"), ("alw", "allowance"), ("str", "starter"),
                              ("g1", "graded_stakes"), ("g2", "graded_stakes"), ("g3", "graded_stakes"),
                              ("stk", "stakes")):
        if key.startswith(prefix):
            return canonical
    return key.replace(" ", "_")


def parse_equipment(value: Any) -> frozenset[str]:
    """Equipment as a set of canonical names.

    Accepts a code string ("bt"), a delimited string ("blinkers, tongue tie")
    or an iterable of names.
    """
    if not value:
        return frozenset()
    if isinstance(value, str):
        text = value.strip().lower()
        if re.search(r"[,;/]", text):
            parts = [p.strip() for p in re.split(r"[,;/]", text)]
        elif text in EQUIPMENT_ALIASES:
            parts = [text]
        else:
            parts = list(text)
    else:
        parts = [_text(p).lower() for p in value]

    items = set()
    for part in parts:
        if not part:
            continue
        canonical = EQUIPMENT_ALIASES.get(part)
        if canonical:
            items.add(canonical)
        else:
            logger.debug("Unknown equipment code %r ignored", part)
    return frozenset(items)


def parse_change_codes(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = re.split(r"[,;]", value)
    codes = []
    for item in value:
        code = _text(item).lower().replace(" ", "_").replace("-", "_")
        if not code:
            continue
        if code not in CHANGE_CODES:
            code = "other"
        if code not in codes:
            codes.append(code)
    return tuple(codes)


# ──────────────────────────────────────────────
# Records
# ──────────────────────────────────────────────

def sanitize_race(raw: Any) -> RaceHeader:
    """Coerce a raw race header into a RaceHeader."""
    if isinstance(raw, RaceHeader):
        return raw
    raw = raw or {}
    claiming = _pick(raw, "claiming_price", "claimingPrice")
    claim_max = to_float(_pick(raw, "claiming_price_max", "claimingPriceMax", default=claiming), field_name="claiming_price_max")
    claim_min = to_float(_pick(raw, "claiming_price_min", "claimingPriceMin", default=claim_max), field_name="claiming_price_min")
    return RaceHeader(
        track_code=_text(_pick(raw, "track_code", "trackCode", "track")).upper(),
        race_number=to_int(_pick(raw, "race_number", "raceNumber"), field_name="race_number"),
        distance=to_float(_pick(raw, "distance", "distance_furlongs"), field_name="distance"),
        surface=normalize_surface(_get(raw, "surface")),
        track_condition=normalize_condition(_pick(raw, "track_condition", "trackCondition", "condition")),
        classification=normalize_classification(_pick(raw, "classification", "race_type", "raceType")),
        purse=to_float(_get(raw, "purse"), field_name="purse"),
        field_size=to_int(_pick(raw, "field_size", "fieldSize"), field_name="field_size"),
        age_restriction=_text(_pick(raw, "age_restriction", "ageRestriction")),
        sex_restriction=_text(_pick(raw, "sex_restriction", "sexRestriction")),
        claiming_price_min=min(claim_min, claim_max) if claim_max else claim_min,
        claiming_price_max=claim_max,
    )


def sanitize_past_performance(raw: Any) -> PastPerformance:
    if isinstance(raw, PastPerformance):
        return raw
    lengths = _optional_float(_pick(raw, "lengths_behind", "lengthsBehind"), "lengths_behind")
    figure = _optional_float(_pick(raw, "speed_figure", "speedFigure", "beyer"), "speed_figure")
    return PastPerformance(
        date=_text(_get(raw, "date")),
        track=_text(_pick(raw, "track", "track_code")).upper(),
        distance=to_float(_get(raw, "distance"), field_name="pp.distance"),
        surface=normalize_surface(_get(raw, "surface")),
        classification=normalize_classification(_pick(raw, "classification", "race_type")),
        purse=to_float(_get(raw, "purse"), field_name="pp.purse"),
        claiming_price=to_float(_pick(raw, "claiming_price", "claimingPrice"), field_name="pp.claiming_price"),
        field_size=to_int(_pick(raw, "field_size", "fieldSize"), field_name="pp.field_size"),
        finish_position=max(0, to_int(_pick(raw, "finish_position", "finishPosition", "finish"), field_name="pp.finish")),
        first_call_position=max(0, to_int(_pick(raw, "first_call_position", "firstCallPosition", "first_call"))),
        lengths_behind=max(0.0, lengths) if lengths is not None else None,
        speed_figure=figure if figure is not None and figure > 0 else None,
        jockey=_text(_get(raw, "jockey")),
        equipment=parse_equipment(_get(raw, "equipment")),
        lasix=to_bool(_pick(raw, "lasix", "medication", default=False)),
    )


def sanitize_workout(raw: Any) -> Workout:
    if isinstance(raw, Workout):
        return raw
    days_ago = _optional_float(_pick(raw, "days_ago", "daysAgo"), "days_ago")
    return Workout(
        date=_text(_get(raw, "date")),
        track=_text(_get(raw, "track")).upper(),
        distance=to_float(_get(raw, "distance")),
        time_seconds=_optional_float(_pick(raw, "time_seconds", "time")),
        rank=to_int(_pick(raw, "rank", "ranking")),
        total_works=to_int(_pick(raw, "total_works", "totalWorks")),
        bullet=to_bool(_get(raw, "bullet", False)),
        days_ago=max(0, int(days_ago)) if days_ago is not None else None,
    )


def _style_evidence(raw: Any, past: tuple[PastPerformance, ...]) -> RunningStyleEvidence:
    style = _pick(raw, "running_style", "runningStyle")
    if isinstance(style, RunningStyleEvidence):
        return style
    if style:
        return RunningStyleEvidence(
            early_lead=max(0, to_int(_pick(style, "early_lead", "earlyLead"))),
            pressed=max(0, to_int(_pick(style, "pressed", "press"))),
            closed=max(0, to_int(_pick(style, "closed", "close"))),
            starts=max(0, to_int(_get(style, "starts"))),
        )
    # Derive from first-call positions when the card carries no counts
    early = pressed = closed = 0
    for pp in past:
        if pp.first_call_position <= 0:
            continue
        if pp.first_call_position == 1:
            early += 1
        elif pp.first_call_position <= 3:
            pressed += 1
        else:
            closed += 1
    return RunningStyleEvidence(early_lead=early, pressed=pressed, closed=closed, starts=early + pressed + closed)


def sanitize_horse(raw: Any, index: int) -> HorseEntry:
    """Coerce one raw horse record into a HorseEntry at card position ``index``."""
    if isinstance(raw, HorseEntry):
        return raw

    past = tuple(
        sanitize_past_performance(pp)
        for pp in _as_sequence(_pick(raw, "past_performances", "pastPerformances"), "past_performances")
    )
    works = tuple(sanitize_workout(w) for w in _as_sequence(_get(raw, "workouts"), "workouts"))

    days = _pick(raw, "days_since_last_race", "daysSinceLastRace")
    partnership = parse_stats_string(_pick(raw, "partnership_stats", "partnershipStats"))
    trainer_equipment = parse_stats_string(_pick(raw, "trainer_equipment_stats", "trainerEquipmentStats"))

    program = _text(_pick(raw, "program_number", "programNumber", default=index + 1))
    post = to_int(_pick(raw, "post_position", "postPosition"), field_name="post_position")
    if post <= 0:
        digits = re.match(r"\d+", program)
        post = int(digits.group()) if digits else index + 1

    return HorseEntry(
        index=index,
        program_number=program,
        post_position=post,
        name=_text(_get(raw, "name")),
        morning_line=_text(_pick(raw, "morning_line", "morningLine", "morning_line_odds")),
        age=to_int(_get(raw, "age")),
        sex=_text(_get(raw, "sex")),
        trainer=_text(_get(raw, "trainer")),
        jockey=_text(_get(raw, "jockey")),
        trainer_stats=_stats(_pick(raw, "trainer_stats", "trainerStats")),
        jockey_stats=_stats(_pick(raw, "jockey_stats", "jockeyStats")),
        partnership_stats=partnership,
        trainer_equipment_stats=trainer_equipment,
        running_style=_style_evidence(raw, past),
        equipment=parse_equipment(_get(raw, "equipment")),
        lasix=to_bool(_pick(raw, "lasix", "medication", default=False)),
        equipment_changes=parse_change_codes(_pick(raw, "equipment_changes", "equipmentChanges")),
        sire=_text(_get(raw, "sire")),
        dam=_text(_get(raw, "dam")),
        damsire=_text(_pick(raw, "damsire", "dam_sire", "damSire")),
        lifetime=_stats(_pick(raw, "lifetime", "lifetime_record", "lifetimeRecord")),
        current_year=_stats(_pick(raw, "current_year", "currentYear")),
        surface_record=_stats(_pick(raw, "surface_record", "surfaceRecord")),
        distance_record=_stats(_pick(raw, "distance_record", "distanceRecord")),
        track_record=_stats(_pick(raw, "track_record", "trackRecord")),
        lifetime_earnings=max(0.0, to_float(_pick(raw, "lifetime_earnings", "lifetimeEarnings"))),
        days_since_last_race=max(0, to_int(days)) if days not in (None, "") else None,
        past_performances=past,
        workouts=works,
    )


def sanitize_field(horses: Any) -> list[HorseEntry]:
    return [sanitize_horse(raw, i) for i, raw in enumerate(_as_sequence(horses, "horses"))]
