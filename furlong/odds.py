"""Fractional odds handling.

Odds arrive as strings such as ``"5-2"``, ``"7/2"``, ``"EVEN"`` or a bare
``"4"`` (read as 4-1). Unparseable values fall back to a default price
rather than raising; the fallback is logged so bad tote data is visible.
"""

import logging
import math
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_ODDS = "2-1"

_FRACTIONAL = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[-/:]\s*(\d+(?:\.\d+)?)\s*$")
_EVENS = {"EVEN", "EVENS", "EVN", "EV"}


@dataclass(frozen=True)
class Odds:
    """A parsed fractional price ``numerator-denominator``."""

    numerator: float
    denominator: float
    text: str
    is_default: bool = False  # True when the raw value could not be parsed

    @property
    def implied_probability(self) -> float:
        return self.denominator / (self.numerator + self.denominator)

    @property
    def decimal(self) -> float:
        return 1.0 + self.numerator / self.denominator

    @property
    def profit_multiple(self) -> float:
        """Net profit per unit staked (the Kelly ``b``)."""
        return self.numerator / self.denominator


def _try_parse(raw) -> Odds | None:
    if raw is None:
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
        if math.isfinite(value) and value > 0:
            return Odds(value, 1.0, f"{raw}-1")
        return None

    text = str(raw).strip()
    if not text:
        return None
    if text.upper() in _EVENS:
        return Odds(1.0, 1.0, "EVEN")

    m = _FRACTIONAL.match(text)
    if m:
        num, den = float(m.group(1)), float(m.group(2))
        if num > 0 and den > 0:
            return Odds(num, den, text)
        return None

    try:
        value = float(text)
    except ValueError:
        return None
    if math.isfinite(value) and value > 0:
        return Odds(value, 1.0, text)
    return None


def parse_odds(raw, default: str = DEFAULT_ODDS) -> Odds:
    """Parse fractional odds, falling back to ``default`` when malformed."""
    odds = _try_parse(raw)
    if odds is not None:
        return odds
    if raw not in (None, ""):
        logger.warning("Malformed odds %r, using default %s", raw, default)
    fallback = _try_parse(default)
    if fallback is None:
        logger.warning("Default odds %r also malformed, using %s", default, DEFAULT_ODDS)
        fallback = _try_parse(DEFAULT_ODDS)
    return Odds(fallback.numerator, fallback.denominator, fallback.text, is_default=True)


def implied_probability(raw, default: str = DEFAULT_ODDS) -> float:
    return parse_odds(raw, default).implied_probability


def decimal_odds(raw, default: str = DEFAULT_ODDS) -> float:
    return parse_odds(raw, default).decimal


def fair_odds_display(probability: float) -> str:
    """Render a win probability as whole-number fair odds, e.g. ``"4-1"``.

    ``(1 - p) / p`` is rounded to the nearest whole number; a price that
    rounds to 1 (roughly a 50% chance or better) reads ``"EVEN"``.
    """
    if not math.isfinite(probability) or probability <= 0:
        return "99-1"
    if probability >= 1:
        return "EVEN"
    ratio = round((1.0 - probability) / probability)
    if ratio <= 1:
        return "EVEN"
    return f"{min(ratio, 99)}-1"
