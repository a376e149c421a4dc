"""Whole-race analysis.

``analyze_race`` is the single entry point: it sanitizes the card, scores
every horse, converts base scores to probabilities, prices them against
the market and builds the verdict, stakes and rankings. Every call
recomputes the entire race from its inputs, so a live odds edit, a scratch
or a track-condition change is handled by simply calling it again.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any

from furlong.betting.dutch import DutchCandidate, DutchResult, recommend_dutch
from furlong.betting.kelly import KellyResult, calculate_kelly
from furlong.betting.settings import DutchSettings, KellySettings
from furlong.config import EngineSettings, get_settings
from furlong.models import HorseEntry, HorseScore, RaceHeader
from furlong.odds import Odds, parse_odds
from furlong.overlay import OverlayAnalysis, analyze_overlay
from furlong.pace import PaceProfile, PaceScenario, TacticalAdvantage, calculate_tactical_advantage
from furlong.probability import calculate_win_probabilities
from furlong.ranking import RankedHorse, rank_field
from furlong.reference import LiveOddsStore, OddsStore, ReferenceData
from furlong.sanitize import normalize_condition, sanitize_field, sanitize_race
from furlong.scoring import build_field_context, score_race
from furlong.verdict import HorseValue, RaceValueAnalysis, analyze_race_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HorseAnalysis:
    entry: HorseEntry
    score: HorseScore
    pace_profile: PaceProfile
    tactical: TacticalAdvantage
    market_odds: str
    win_probability: float | None = None  # None when scratched
    fair_odds: str | None = None
    overlay: OverlayAnalysis | None = None
    kelly: KellyResult | None = None

    @property
    def is_scratched(self) -> bool:
        return self.score.is_scratched


@dataclass(frozen=True)
class RaceAnalysis:
    race: RaceHeader
    pace_scenario: PaceScenario
    horses: list[HorseAnalysis] = field(default_factory=list)
    value: RaceValueAnalysis | None = None
    rankings: list[RankedHorse] = field(default_factory=list)
    dutch: DutchResult | None = None

    @property
    def active_horses(self) -> list[HorseAnalysis]:
        return [h for h in self.horses if not h.is_scratched]

    def horse(self, index: int) -> HorseAnalysis | None:
        return next((h for h in self.horses if h.entry.index == index), None)

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)


def analyze_race(
    race: Any,
    horses: Any,
    odds_store: OddsStore | None = None,
    track_condition: str | None = None,
    kelly_settings: KellySettings | None = None,
    dutch_settings: DutchSettings | None = None,
    reference: ReferenceData | None = None,
    settings: EngineSettings | None = None,
) -> RaceAnalysis:
    """Analyze a full race from raw or sanitized inputs.

    Inputs are never modified; the same inputs always give the same result.
    """
    settings = settings or get_settings()
    store = odds_store if odds_store is not None else LiveOddsStore()

    header = sanitize_race(race)
    if track_condition:
        header = dataclasses.replace(header, track_condition=normalize_condition(track_condition))
    entries = sanitize_field(horses)
    if not header.field_size:
        header = dataclasses.replace(header, field_size=len(entries))

    scratched = frozenset(e.index for e in entries if store.is_scratched(e.index))
    odds: dict[int, Odds] = {}
    for e in entries:
        raw = store.get_odds(e.index, e.morning_line or settings.default_odds)
        odds[e.index] = parse_odds(raw, settings.default_odds)

    ctx = build_field_context(header, entries, scratched, settings, reference)
    scores = score_race(entries, ctx, odds)
    probabilities = calculate_win_probabilities(
        {s.index: s.base_score for s in scores if not s.is_scratched},
        settings,
    )

    analyses: list[HorseAnalysis] = []
    for entry, score in zip(entries, scores):
        profile = ctx.profile_for(entry)
        tactical = calculate_tactical_advantage(profile.style, ctx.pace_scenario.scenario)
        price = odds[entry.index]
        p = probabilities.get(entry.index)
        overlay = kelly = None
        if p is not None:
            overlay = analyze_overlay(p, price, settings.default_odds)
            if kelly_settings is not None:
                kelly = calculate_kelly(p, price, kelly_settings)
        analyses.append(HorseAnalysis(
            entry=entry,
            score=score,
            pace_profile=profile,
            tactical=tactical,
            market_odds=price.text,
            win_probability=round(p, 4) if p is not None else None,
            fair_odds=overlay.fair_odds if overlay else None,
            overlay=overlay,
            kelly=kelly,
        ))

    value = analyze_race_value(
        [
            HorseValue(
                index=h.entry.index,
                name=h.entry.name,
                program_number=h.entry.program_number,
                overlay=h.overlay,
                is_scratched=h.is_scratched,
            )
            for h in analyses
        ],
        settings,
    )

    dutch = None
    if dutch_settings is not None:
        candidates = [
            DutchCandidate(
                index=h.entry.index,
                name=h.entry.name,
                program_number=h.entry.program_number,
                base_score=h.score.base_score,
                win_probability=h.win_probability or 0.0,
                odds=odds[h.entry.index],
                overlay_percent=h.overlay.overlay_percent,
            )
            for h in analyses
            if not h.is_scratched and h.overlay is not None
        ]
        dutch = recommend_dutch(candidates, dutch_settings, settings.max_score)

    rankings = rank_field(entries, scores, settings.max_score)

    logger.info(
        "Analyzed %s R%d: %d runners (%d scratched), pace %s, verdict %s",
        header.track_code or "?", header.race_number, len(entries), len(scratched),
        ctx.pace_scenario.scenario, value.verdict,
    )

    return RaceAnalysis(
        race=header,
        pace_scenario=ctx.pace_scenario,
        horses=analyses,
        value=value,
        rankings=rankings,
        dutch=dutch,
    )
