"""Field-relative win probabilities from base scores.

Each active horse's share of the summed base score is its raw probability.
Shares are then bounded to ``[min_probability, max_probability]`` and the
mass freed or consumed by the bounds is redistributed across the remaining
horses, so the active field still sums to exactly 1.
"""

import logging
from typing import Mapping

from furlong.config import EngineSettings, get_settings
from furlong.odds import fair_odds_display

logger = logging.getLogger(__name__)


BISECTION_STEPS = 100


def _normalize_bounded(raw: dict[int, float], floor: float, ceiling: float) -> dict[int, float]:
    """Find the scale ``lam`` where ``sum(clamp(lam * share)) == 1``.

    Scaling every share by one factor keeps the field's ordering; the
    clamp only flattens the extremes.
    """
    def clamp(value: float) -> float:
        return min(ceiling, max(floor, value))

    def total(lam: float) -> float:
        return sum(clamp(lam * r) for r in raw.values())

    lo, hi = 0.0, 1.0
    while total(hi) < 1.0 and hi < 1e12:
        hi *= 2
    for _ in range(BISECTION_STEPS):
        mid = (lo + hi) / 2
        if total(mid) < 1.0:
            lo = mid
        else:
            hi = mid

    probs = {k: clamp(hi * r) for k, r in raw.items()}

    # Zero-score runners stuck on the floor take whatever the ceiling leaves over
    short = 1.0 - sum(probs.values())
    if short > 1e-9:
        open_keys = [k for k, v in probs.items() if v < ceiling]
        for k in open_keys:
            probs[k] += short / len(open_keys)

    total_p = sum(probs.values())
    return {k: v / total_p for k, v in probs.items()}


def calculate_win_probabilities(
    base_scores: Mapping[int, float],
    settings: EngineSettings | None = None,
) -> dict[int, float]:
    """Convert active horses' base scores into win probabilities.

    ``base_scores`` must hold non-scratched horses only, keyed by index.
    Returns ``{}`` for an empty field.
    """
    settings = settings or get_settings()
    n = len(base_scores)
    if n == 0:
        return {}
    if n == 1:
        return {k: 1.0 for k in base_scores}

    # Bounds must leave room for a distribution that sums to 1
    floor = min(settings.min_probability, 1.0 / n)
    ceiling = max(settings.max_probability, 1.0 / n)

    scores = {k: max(0.0, float(v)) for k, v in base_scores.items()}
    total = sum(scores.values())
    if total <= 0:
        logger.debug("All-zero base scores across %d runners, using uniform probabilities", n)
        return {k: 1.0 / n for k in scores}

    raw = {k: v / total for k, v in scores.items()}
    return _normalize_bounded(raw, floor, ceiling)


def fair_odds(probability: float) -> str:
    return fair_odds_display(probability)
