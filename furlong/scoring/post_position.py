"""Post draw scoring (0-30), adjusted by track bias when a profile exists."""

import logging

from furlong.models import CategoryScore, HorseEntry, RaceHeader
from furlong.scoring.context import FieldContext

logger = logging.getLogger(__name__)

MAX_POINTS = 30
MIDPOINT = 15.0
BIAS_SCALE = 15.0  # points per 100% deviation from the average post
GOLDEN_POST_BONUS = 3.0


def score_post_position(entry: HorseEntry, race: RaceHeader, ctx: FieldContext) -> CategoryScore:
    profile = ctx.reference.post_bias(race.track_code, race.track_condition, race.distance)
    post = entry.post_position

    if profile is None:
        return CategoryScore(
            name="post_position",
            total=MIDPOINT,
            max=MAX_POINTS,
            breakdown={"base": MIDPOINT},
            details={"track_bias_applied": False},
            reasoning=f"Post {post}, no track bias data",
        )

    avg = profile.average_win_pct
    post_pct = profile.post_win_pct.get(post)
    if post_pct is None or avg <= 0:
        # Post beyond the profile's range: treat as the weakest recorded post
        post_pct = min(profile.post_win_pct.values())
    deviation = (post_pct / avg - 1.0) if avg > 0 else 0.0
    adjustment = max(-MIDPOINT, min(MIDPOINT, deviation * BIAS_SCALE))
    golden = GOLDEN_POST_BONUS if post in profile.golden_posts else 0.0

    reasoning = f"Post {post} wins {post_pct:.1f}% vs {avg:.1f}% avg"
    if golden:
        reasoning += ", golden post"

    return CategoryScore(
        name="post_position",
        total=MIDPOINT + adjustment + golden,
        max=MAX_POINTS,
        breakdown={"base": MIDPOINT, "bias": round(adjustment, 2), "golden_post": golden},
        details={"track_bias_applied": True, "post_win_pct": post_pct},
        reasoning=reasoning,
    )
