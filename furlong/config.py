"""Engine configuration using Pydantic settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunable engine constants loaded from environment variables.

    Instances are frozen so a settings object can be shared between
    recomputations without any call altering another's results.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FURLONG_",
        extra="ignore",
        frozen=True,
    )

    # App
    log_level: str = "INFO"
    reference_data_path: Path | None = None  # JSON file with bias/tier/breeding data

    # Scoring
    max_score: float = 240.0
    breeding_max_starts: int = 2  # lifetime starts at or below which breeding substitutes

    # Probability smoothing
    min_probability: float = 0.02
    max_probability: float = 0.65

    # Odds
    default_odds: str = "2-1"  # used when odds are missing or malformed

    # Verdict
    verdict_overlay_threshold: float = 25.0  # overlay % a non-favourite needs for BET
    confidence_gap_high: float = 25.0
    confidence_gap_medium: float = 10.0


@lru_cache
def get_settings() -> EngineSettings:
    """Get cached settings instance."""
    return EngineSettings()
