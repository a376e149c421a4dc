"""User-facing staking settings.

Validated with pydantic so bad values are rejected at the API boundary
instead of reaching the staking maths.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

KELLY_FRACTIONS = {"quarter": 0.25, "half": 0.5, "full": 1.0}
MIN_BANKROLL = 10.0


class KellySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    kelly_fraction: Literal["quarter", "half", "full"] = "quarter"
    max_bet_percent: float = Field(10.0, gt=0, le=100)
    min_edge_required: float = Field(10.0, ge=0, le=1000)
    bankroll: float = Field(1000.0, ge=MIN_BANKROLL)

    @property
    def fraction_multiplier(self) -> float:
        return KELLY_FRACTIONS[self.kelly_fraction]


class DutchSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    min_edge_required: float = Field(5.0, ge=0, le=100)
    max_horses: int = Field(4, ge=2, le=10)
    budget_allocation: float = Field(50.0, gt=0, le=100)  # % of bankroll offered to the book
    bankroll: float = Field(1000.0, ge=MIN_BANKROLL)
    overlay_only: bool = False
    prefer_mixed_tiers: bool = True

    @property
    def total_stake(self) -> float:
        return round(self.bankroll * self.budget_allocation / 100, 2)
