"""API endpoints for race analysis."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from furlong.betting.settings import DutchSettings, KellySettings
from furlong.odds import parse_odds
from furlong.overlay import analyze_overlay
from furlong.pipeline import analyze_race
from furlong.reference import LiveOddsStore

logger = logging.getLogger(__name__)

router = APIRouter()


class AnalyzeRequest(BaseModel):
    race: dict[str, Any]
    horses: list[dict[str, Any]] = Field(default_factory=list)
    odds_overrides: dict[int, str] = Field(default_factory=dict)
    scratches: list[int] = Field(default_factory=list)
    track_condition: Optional[str] = None
    kelly: Optional[KellySettings] = None
    dutch: Optional[DutchSettings] = None


class OddsRequest(BaseModel):
    odds: str
    probability: float = Field(ge=0, le=1)


def _reference(request: Request):
    return getattr(request.app.state, "reference", None)


@router.post("/analyze")
async def analyze(body: AnalyzeRequest, request: Request):
    """Score a full race and return the verdict, stakes and rankings."""
    if not body.horses:
        raise HTTPException(status_code=400, detail="Race has no horses")

    unknown = [i for i in body.scratches if not 0 <= i < len(body.horses)]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown horse index in scratches: {unknown}")

    store = LiveOddsStore(overrides=dict(body.odds_overrides), scratches=frozenset(body.scratches))
    result = analyze_race(
        body.race,
        body.horses,
        odds_store=store,
        track_condition=body.track_condition,
        kelly_settings=body.kelly,
        dutch_settings=body.dutch,
        reference=_reference(request),
    )
    return result.to_dict()


@router.post("/overlay")
async def overlay(body: OddsRequest):
    """Price a single probability against market odds."""
    odds = parse_odds(body.odds)
    if odds.is_default:
        raise HTTPException(status_code=422, detail=f"Unparseable odds: {body.odds}")
    return analyze_overlay(body.probability, odds)
