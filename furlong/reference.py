"""Collaborator interfaces: live odds/scratches and track/breeding reference data.

The engine only ever talks to these through the narrow protocols below.
``LiveOddsStore`` and ``StaticReferenceData`` are the in-memory
implementations; reference data can be loaded from a JSON file shaped as::

    {
      "track_tiers": {"SAR": "A", "PRX": "C"},
      "post_bias": {"CD": {"dry": {"sprint": {"post_win_pct": {"1": 14.2, ...},
                                               "golden_posts": [4, 5]}}}},
      "breeding": {"sire": {"Into Mischief": {"win_rate": 0.21, ...}},
                   "dam": {...}, "damsire": {...}}
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

TIER_RANK = {"A": 3, "B": 2, "C": 1}

DEFAULT_TRACK_TIERS = {
    # Tier A: major circuits
    "SAR": "A", "BEL": "A", "AQU": "A", "CD": "A", "KEE": "A", "SA": "A",
    "DMR": "A", "GP": "A", "OP": "A", "FG": "A",
    # Tier B: solid regional circuits
    "PIM": "B", "LRL": "B", "MTH": "B", "TAM": "B", "CT": "B", "IND": "B",
    "WO": "B", "DEL": "B", "PRX": "B", "TP": "B", "ELP": "B", "HAW": "B",
    "AP": "B", "LS": "B", "CBY": "B", "EMD": "B", "GG": "B", "LA": "B",
    # Tier C: everything else defaults to C through StaticReferenceData
    "PEN": "C", "FL": "C", "MNR": "C", "CNL": "C", "TDN": "C", "BTP": "C",
    "FON": "C", "RP": "C", "ZIA": "C", "SUN": "C", "RUI": "C", "ALB": "C",
}

WET_CONDITIONS = {"good", "muddy", "sloppy", "wet_fast", "yielding", "soft", "heavy"}


def condition_bucket(condition: str) -> str:
    return "wet" if condition in WET_CONDITIONS else "dry"


def distance_bucket(distance: float) -> str:
    return "sprint" if 0 < distance < 8.0 else "route"


# ──────────────────────────────────────────────
# Reference records
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class TrackBiasProfile:
    """Historical win percentage by post for one track/condition/distance."""

    post_win_pct: dict[int, float] = field(default_factory=dict)
    golden_posts: tuple[int, ...] = ()
    sample_size: int = 0

    @property
    def average_win_pct(self) -> float:
        if not self.post_win_pct:
            return 0.0
        return sum(self.post_win_pct.values()) / len(self.post_win_pct)


@dataclass(frozen=True)
class BreedingProfile:
    """Aggregate progeny statistics for a sire, dam or damsire."""

    win_rate: float = 0.0
    earnings_per_start: float = 0.0
    first_time_starter_win_rate: float = 0.0
    surface_preference: str = ""  # dirt / turf / synthetic / versatile
    distance_preference: str = ""  # sprint / route / versatile
    starters: int = 0


# ──────────────────────────────────────────────
# Protocols
# ──────────────────────────────────────────────

class OddsStore(Protocol):
    def get_odds(self, index: int, default_odds: str) -> str: ...

    def is_scratched(self, index: int) -> bool: ...


class ReferenceData(Protocol):
    def post_bias(self, track: str, condition: str, distance: float) -> TrackBiasProfile | None: ...

    def track_tier(self, track: str) -> str | None: ...

    def breeding_profile(self, name: str, role: str) -> BreedingProfile | None: ...


# ──────────────────────────────────────────────
# In-memory implementations
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class LiveOddsStore:
    """Live odds overrides and scratches keyed by horse index."""

    overrides: dict[int, str] = field(default_factory=dict)
    scratches: frozenset[int] = frozenset()

    def get_odds(self, index: int, default_odds: str) -> str:
        value = self.overrides.get(index)
        if value is None or not str(value).strip():
            return default_odds
        return str(value)

    def is_scratched(self, index: int) -> bool:
        return index in self.scratches


@dataclass(frozen=True)
class StaticReferenceData:
    track_tiers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TRACK_TIERS))
    # {track: {condition-or-bucket: {"sprint"/"route": TrackBiasProfile}}}
    bias: dict[str, dict[str, dict[str, TrackBiasProfile]]] = field(default_factory=dict)
    # {role: {name (lowercased): BreedingProfile}}
    breeding: dict[str, dict[str, BreedingProfile]] = field(default_factory=dict)

    def post_bias(self, track: str, condition: str, distance: float) -> TrackBiasProfile | None:
        by_condition = self.bias.get(track.upper())
        if not by_condition:
            return None
        bucket = distance_bucket(distance)
        for key in (condition, condition_bucket(condition), "all"):
            profile = by_condition.get(key, {}).get(bucket)
            if profile is not None and profile.post_win_pct:
                return profile
        return None

    def track_tier(self, track: str) -> str | None:
        if not track:
            return None
        return self.track_tiers.get(track.upper(), "C")

    def breeding_profile(self, name: str, role: str) -> BreedingProfile | None:
        if not name:
            return None
        return self.breeding.get(role, {}).get(name.strip().lower())

    @classmethod
    def from_dict(cls, data: dict) -> "StaticReferenceData":
        tiers = dict(DEFAULT_TRACK_TIERS)
        for track, tier in (data.get("track_tiers") or {}).items():
            tier = str(tier).upper()
            if tier in TIER_RANK:
                tiers[track.upper()] = tier

        bias: dict[str, dict[str, dict[str, TrackBiasProfile]]] = {}
        for track, conditions in (data.get("post_bias") or {}).items():
            for condition, buckets in (conditions or {}).items():
                for bucket, raw in (buckets or {}).items():
                    try:
                        profile = TrackBiasProfile(
                            post_win_pct={int(k): float(v) for k, v in (raw.get("post_win_pct") or {}).items()},
                            golden_posts=tuple(int(p) for p in raw.get("golden_posts") or ()),
                            sample_size=int(raw.get("sample_size") or 0),
                        )
                    except (TypeError, ValueError, AttributeError) as e:
                        logger.warning("Skipping bad post bias for %s/%s/%s: %s", track, condition, bucket, e)
                        continue
                    bias.setdefault(track.upper(), {}).setdefault(condition, {})[bucket] = profile

        breeding: dict[str, dict[str, BreedingProfile]] = {}
        for role, names in (data.get("breeding") or {}).items():
            for name, raw in (names or {}).items():
                try:
                    profile = BreedingProfile(
                        win_rate=float(raw.get("win_rate") or 0.0),
                        earnings_per_start=float(raw.get("earnings_per_start") or 0.0),
                        first_time_starter_win_rate=float(raw.get("first_time_starter_win_rate") or 0.0),
                        surface_preference=str(raw.get("surface_preference") or "").lower(),
                        distance_preference=str(raw.get("distance_preference") or "").lower(),
                        starters=int(raw.get("starters") or 0),
                    )
                except (TypeError, ValueError, AttributeError) as e:
                    logger.warning("Skipping bad breeding profile %s/%s: %s", role, name, e)
                    continue
                breeding.setdefault(role, {})[name.strip().lower()] = profile

        return cls(track_tiers=tiers, bias=bias, breeding=breeding)

    @classmethod
    def from_json(cls, path: Path | str) -> "StaticReferenceData":
        """Load reference data from a JSON file; unreadable files give defaults."""
        path = Path(path)
        if not path.exists():
            logger.debug("No reference data file found at %s", path)
            return cls()
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to load reference data: %s", e)
            return cls()
        if not isinstance(data, dict):
            logger.warning("Reference data at %s is not an object", path)
            return cls()
        ref = cls.from_dict(data)
        logger.info(
            "Reference data loaded: %d tracks with bias, %d breeding profiles",
            len(ref.bias), sum(len(v) for v in ref.breeding.values()),
        )
        return ref
