"""Shared, read-only context handed to every category scorer."""

from dataclasses import dataclass, field

from furlong.config import EngineSettings
from furlong.pace import PaceProfile, PaceScenario, classify_running_style, analyze_pace_scenario
from furlong.models import HorseEntry, RaceHeader
from furlong.reference import ReferenceData, StaticReferenceData


@dataclass(frozen=True)
class FieldContext:
    race: RaceHeader
    settings: EngineSettings
    pace_scenario: PaceScenario
    profiles: dict[int, PaceProfile] = field(default_factory=dict)
    active_indices: frozenset[int] = frozenset()
    reference: ReferenceData = field(default_factory=StaticReferenceData)

    @property
    def active_count(self) -> int:
        return len(self.active_indices)

    def profile_for(self, entry: HorseEntry) -> PaceProfile:
        profile = self.profiles.get(entry.index)
        return profile if profile is not None else classify_running_style(entry)


def build_field_context(
    race: RaceHeader,
    entries: list[HorseEntry],
    scratched: frozenset[int],
    settings: EngineSettings,
    reference: ReferenceData | None = None,
) -> FieldContext:
    """Classify every runner and project the pace from the active field."""
    profiles = {e.index: classify_running_style(e) for e in entries}
    active = frozenset(e.index for e in entries if e.index not in scratched)
    scenario = analyze_pace_scenario(profiles[i] for i in sorted(active))
    return FieldContext(
        race=race,
        settings=settings,
        pace_scenario=scenario,
        profiles=profiles,
        active_indices=active,
        reference=reference if reference is not None else StaticReferenceData(),
    )
