"""Dutch booking: back several horses so any winner returns the same amount.

Stakes are proportional to each horse's market implied probability. The
book only makes sense when the selections' implied probabilities sum to
less than 100%; at or above that every outcome loses money.
"""

import logging
from dataclasses import dataclass, field

from furlong.betting.settings import DutchSettings
from furlong.odds import Odds

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────

MIN_DUTCH_HORSES = 2
MAX_DUTCH_HORSES = 10
MINIMUM_TOTAL_STAKE = 10.0
STAKE_INCREMENT = 0.1

# Score tiers as a share of the maximum score
TIER_1_SHARE = 0.75  # 180 of 240
TIER_2_SHARE = 0.625  # 150 of 240


# ──────────────────────────────────────────────
# Types
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class DutchCandidate:
    index: int
    name: str
    program_number: str
    base_score: float
    win_probability: float
    odds: Odds
    overlay_percent: float = 0.0


@dataclass(frozen=True)
class DutchBet:
    index: int
    name: str
    program_number: str
    odds: str
    implied_probability: float
    win_probability: float
    stake: float
    potential_return: float
    tier: int = 0


@dataclass(frozen=True)
class DutchResult:
    is_valid: bool
    reason: str
    bets: list[DutchBet] = field(default_factory=list)
    total_stake: float = 0.0
    sum_implied: float = 0.0
    combined_win_probability: float = 0.0
    edge_percent: float = 0.0
    guaranteed_return: float = 0.0
    profit: float = 0.0
    has_profit_potential: bool = False


# ──────────────────────────────────────────────
# Selection
# ──────────────────────────────────────────────

def score_tier(base_score: float, max_score: float = 240.0) -> int:
    if base_score >= max_score * TIER_1_SHARE:
        return 1
    if base_score >= max_score * TIER_2_SHARE:
        return 2
    return 3


def select_candidates(
    candidates: list[DutchCandidate],
    settings: DutchSettings,
    max_score: float = 240.0,
) -> list[DutchCandidate]:
    """Deterministic pick of up to ``max_horses`` horses.

    Top base scores first; with ``prefer_mixed_tiers`` the best of each
    tier is taken before filling from the remaining order.
    """
    pool = [c for c in candidates if not settings.overlay_only or c.overlay_percent > 0]
    pool.sort(key=lambda c: (-c.base_score, c.index))
    limit = min(settings.max_horses, MAX_DUTCH_HORSES)

    if not settings.prefer_mixed_tiers:
        return pool[:limit]

    chosen: list[DutchCandidate] = []
    for tier in (1, 2, 3):
        best = next((c for c in pool if score_tier(c.base_score, max_score) == tier), None)
        if best is not None and len(chosen) < limit:
            chosen.append(best)
    taken = {c.index for c in chosen}
    for c in pool:
        if len(chosen) >= limit:
            break
        if c.index not in taken:
            chosen.append(c)
            taken.add(c.index)
    chosen.sort(key=lambda c: (-c.base_score, c.index))
    return chosen


# ──────────────────────────────────────────────
# Book maths
# ──────────────────────────────────────────────

def _round_stake(value: float) -> float:
    return round(round(value / STAKE_INCREMENT) * STAKE_INCREMENT, 2)


def calculate_dutch_book(selections: list[DutchCandidate], total_stake: float, max_score: float = 240.0) -> DutchResult:
    """Allocate ``total_stake`` across selections, proportional to implied probability."""
    if len(selections) < MIN_DUTCH_HORSES:
        return DutchResult(is_valid=False, reason=f"Need at least {MIN_DUTCH_HORSES} horses to Dutch")

    sum_implied = sum(c.odds.implied_probability for c in selections)
    combined_p = sum(c.win_probability for c in selections)
    bets = []
    for c in selections:
        stake = _round_stake(total_stake * c.odds.implied_probability / sum_implied)
        bets.append(DutchBet(
            index=c.index,
            name=c.name,
            program_number=c.program_number,
            odds=c.odds.text,
            implied_probability=round(c.odds.implied_probability, 4),
            win_probability=round(c.win_probability, 4),
            stake=stake,
            potential_return=round(stake * c.odds.decimal, 2),
            tier=score_tier(c.base_score, max_score),
        ))

    guaranteed = round(total_stake / sum_implied, 2)
    return DutchResult(
        is_valid=sum_implied < 1.0,
        reason=f"{len(bets)} horses at {sum_implied:.0%} combined implied",
        bets=bets,
        total_stake=round(sum(b.stake for b in bets), 2),
        sum_implied=round(sum_implied, 4),
        combined_win_probability=round(combined_p, 4),
        edge_percent=round((combined_p - sum_implied) / sum_implied * 100, 1),
        guaranteed_return=guaranteed,
        profit=round(guaranteed - total_stake, 2),
        has_profit_potential=sum_implied < 1.0,
    )


def recommend_dutch(
    candidates: list[DutchCandidate],
    settings: DutchSettings,
    max_score: float = 240.0,
) -> DutchResult:
    """Pick a Dutch book from the active field, or explain why not."""
    if not settings.enabled:
        return DutchResult(is_valid=False, reason="Dutch booking disabled")

    total_stake = settings.total_stake
    if total_stake < MINIMUM_TOTAL_STAKE:
        return DutchResult(is_valid=False, reason=f"Total stake below ${MINIMUM_TOTAL_STAKE:.0f} minimum")

    selections = select_candidates(candidates, settings, max_score)
    if len(selections) < MIN_DUTCH_HORSES:
        return DutchResult(is_valid=False, reason=f"Need at least {MIN_DUTCH_HORSES} eligible horses to Dutch")

    book = calculate_dutch_book(selections, total_stake, max_score)
    if book.sum_implied >= 1.0:
        logger.debug("Dutch refused: implied sum %.3f", book.sum_implied)
        return DutchResult(
            is_valid=False,
            reason=f"Combined implied probability {book.sum_implied:.0%} leaves no Dutch edge",
            sum_implied=book.sum_implied,
            combined_win_probability=book.combined_win_probability,
            edge_percent=book.edge_percent,
        )
    if book.edge_percent < settings.min_edge_required:
        return DutchResult(
            is_valid=False,
            reason=f"Book edge {book.edge_percent:.1f}% below required {settings.min_edge_required:.0f}%",
            sum_implied=book.sum_implied,
            combined_win_probability=book.combined_win_probability,
            edge_percent=book.edge_percent,
            has_profit_potential=True,
        )

    return DutchResult(
        is_valid=True,
        reason=f"Dutch {len(book.bets)} horses at {book.sum_implied:.0%} combined",
        bets=book.bets,
        total_stake=book.total_stake,
        sum_implied=book.sum_implied,
        combined_win_probability=book.combined_win_probability,
        edge_percent=book.edge_percent,
        guaranteed_return=book.guaranteed_return,
        profit=book.profit,
        has_profit_potential=True,
    )
