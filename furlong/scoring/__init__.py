"""Category scorers and composite aggregation."""

from furlong.scoring.aggregate import score_horse, score_race
from furlong.scoring.context import FieldContext, build_field_context

__all__ = [
    "FieldContext",
    "build_field_context",
    "score_horse",
    "score_race",
]
