"""Run the full race analysis over a JSON race card and print a report.

The card file holds {"race": {...}, "horses": [...]} in the same shape the
/api/analyze endpoint accepts.

Usage:
    python scripts/analyze_card.py card.json
    python scripts/analyze_card.py card.json --odds 3=5-1 --scratch 6
    python scripts/analyze_card.py card.json --kelly half --bankroll 500 --output result.json
"""

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from furlong.betting.settings import DutchSettings, KellySettings
from furlong.config import get_settings
from furlong.pipeline import analyze_race
from furlong.reference import LiveOddsStore, StaticReferenceData


def _parse_override(text: str) -> tuple[int, str]:
    index, _, odds = text.partition("=")
    return int(index), odds


def print_report(result) -> None:
    race = result.race
    print(f"\n{race.track_code} R{race.race_number}  {race.distance:g}f {race.surface} ({race.track_condition})")
    print(f"Pace: {result.pace_scenario.scenario} (PPI {result.pace_scenario.ppi}) - {result.pace_scenario.description}")
    print()
    print(f"{'#':>3}  {'Horse':<22} {'Base':>6} {'Prob':>6} {'Fair':>6} {'Odds':>6} {'Overlay':>8}  Action")
    for h in result.horses:
        name = h.entry.name[:22]
        if h.is_scratched:
            print(f"{h.entry.program_number:>3}  {name:<22} {h.score.base_score:>6.1f}  SCRATCHED")
            continue
        ov = h.overlay
        print(
            f"{h.entry.program_number:>3}  {name:<22} {h.score.base_score:>6.1f} {h.win_probability:>6.1%}"
            f" {h.fair_odds:>6} {h.market_odds:>6} {ov.overlay_percent:>+7.1f}%  {ov.recommendation.action}"
        )
        if h.kelly and h.kelly.should_bet:
            print(f"       Kelly: ${h.kelly.suggested_stake:.0f} ({h.kelly.bet_percent:.1f}% of bankroll)")

    value = result.value
    print(f"\nVerdict: {value.verdict} ({value.confidence}) - {value.reason_text}")
    if value.primary_value_play:
        play = value.primary_value_play
        print(f"Primary play: #{play.program_number} {play.name} {play.overlay_percent:+.0f}%")
    if value.closest_to_threshold:
        play = value.closest_to_threshold
        print(f"Closest to threshold: #{play.program_number} {play.name} {play.overlay_percent:+.0f}%")

    if result.dutch is not None:
        d = result.dutch
        if d.is_valid:
            print(f"\nDutch: {d.reason}, return ${d.guaranteed_return:.2f} on ${d.total_stake:.2f}")
            for bet in d.bets:
                print(f"   #{bet.program_number} {bet.name}: ${bet.stake:.2f} @ {bet.odds}")
        else:
            print(f"\nDutch: none ({d.reason})")

    print("\nRankings:")
    for r in result.rankings:
        print(
            f"  {r.blended_rank}. #{r.program_number} {r.name} blended {r.blended_score:.1f}"
            f" (base {r.base_rank}, trend {r.trend_rank} {r.trend_direction})"
        )


def main():
    parser = argparse.ArgumentParser(description="Analyze a race card for value")
    parser.add_argument("card", help="JSON race card")
    parser.add_argument("--odds", action="append", default=[], help="Odds override as INDEX=ODDS (repeatable)")
    parser.add_argument("--scratch", action="append", type=int, default=[], help="Scratch horse INDEX (repeatable)")
    parser.add_argument("--condition", default=None, help="Override track condition")
    parser.add_argument("--kelly", choices=["quarter", "half", "full"], default=None, help="Enable Kelly staking")
    parser.add_argument("--dutch", action="store_true", help="Enable Dutch booking")
    parser.add_argument("--bankroll", type=float, default=1000.0)
    parser.add_argument("--reference", default=None, help="Reference data JSON (bias, tiers, breeding)")
    parser.add_argument("--output", default=None, help="Save the full analysis to JSON")
    args = parser.parse_args()

    with open(args.card) as f:
        card = json.load(f)

    settings = get_settings()
    ref_path = args.reference or settings.reference_data_path
    reference = StaticReferenceData.from_json(ref_path) if ref_path else StaticReferenceData()

    kelly = KellySettings(enabled=True, kelly_fraction=args.kelly, bankroll=args.bankroll) if args.kelly else None
    dutch = DutchSettings(enabled=True, bankroll=args.bankroll) if args.dutch else None

    store = LiveOddsStore(
        overrides=dict(_parse_override(o) for o in args.odds),
        scratches=frozenset(args.scratch),
    )
    result = analyze_race(
        card.get("race", {}),
        card.get("horses", []),
        odds_store=store,
        track_condition=args.condition,
        kelly_settings=kelly,
        dutch_settings=dutch,
        reference=reference,
        settings=settings,
    )

    print_report(result)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result.to_dict(), f, indent=2, default=list)
        print(f"\nSaved to {args.output}")


if __name__ == "__main__":
    main()
