"""Tests for the category scorers."""

import math

import pytest

from furlong.config import EngineSettings
from furlong.models import CategoryScore, RaceHeader
from furlong.reference import StaticReferenceData
from furlong.sanitize import sanitize_horse
from furlong.scoring.affinity import score_affinity
from furlong.scoring.breeding import apply_breeding_substitution, score_breeding
from furlong.scoring.class_drop import analyze_class
from furlong.scoring.connections import score_connections
from furlong.scoring.context import build_field_context
from furlong.scoring.equipment import detect_changes, score_equipment
from furlong.scoring.form import score_form
from furlong.scoring.pace import score_pace
from furlong.scoring.post_position import score_post_position
from furlong.scoring.speed_class import score_speed_class


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

RACE = RaceHeader(
    track_code="CD",
    race_number=4,
    distance=6.0,
    surface="dirt",
    track_condition="fast",
    classification="allowance",
    purse=30000,
)


def _pp(**kw) -> dict:
    pp = {"track": "CD", "classification": "allowance", "purse": 30000, "finish_position": 4, "jockey": "J Jockey"}
    pp.update(kw)
    return pp


def _horse(index: int = 0, **kw):
    return sanitize_horse(kw, index)


def _ctx(entries, race=RACE, reference=None, scratched=frozenset()):
    return build_field_context(race, list(entries), scratched, EngineSettings(), reference)


def _score(scorer, horse, race=RACE, reference=None):
    return scorer(horse, race, _ctx([horse], race, reference))


# ──────────────────────────────────────────────
# CategoryScore
# ──────────────────────────────────────────────

class TestCategoryScore:
    def test_clamped_to_max(self):
        assert CategoryScore("x", 40, 25).total == 25

    def test_clamped_to_zero(self):
        assert CategoryScore("x", -3, 25).total == 0

    def test_non_finite_becomes_zero(self):
        assert CategoryScore("x", math.nan, 25).total == 0
        assert CategoryScore("x", math.inf, 25).total == 0


# ──────────────────────────────────────────────
# Connections
# ──────────────────────────────────────────────

class TestConnections:
    def test_elite_connections_max_out(self):
        horse = _horse(
            trainer_stats="100: 26-15-12",
            jockey_stats="200: 46-30-25",
            partnership_stats="10: 3-2-1",
        )
        score = _score(score_connections, horse)
        assert score.breakdown == {"trainer": 15, "jockey": 10, "partnership": 5}
        assert score.total == 30
        assert score.details["partnership_tier"] == "elite"

    def test_small_samples_use_conservative_defaults(self):
        horse = _horse(trainer_stats="3: 1-0-0")
        score = _score(score_connections, horse)
        assert score.breakdown["trainer"] == 4
        assert score.breakdown["jockey"] == 3
        assert score.breakdown["partnership"] == 0

    def test_partnership_derived_from_past_rides(self):
        horse = _horse(
            jockey="J Smith",
            past_performances=[_pp(jockey="J Smith", finish_position=f) for f in (1, 1, 2, 1, 3)],
        )
        score = _score(score_connections, horse)
        assert score.details["partnership_derived"] is True
        assert score.details["partnership_tier"] == "strong"
        assert score.breakdown["partnership"] == 4


# ──────────────────────────────────────────────
# Post position
# ──────────────────────────────────────────────

class TestPostPosition:
    def test_no_bias_profile_is_midpoint(self):
        score = _score(score_post_position, _horse(post_position=4))
        assert score.total == 15
        assert score.details["track_bias_applied"] is False

    def test_favoured_post_with_bias(self, sample_reference):
        score = _score(score_post_position, _horse(post_position=4), reference=sample_reference)
        assert score.details["track_bias_applied"] is True
        assert score.breakdown["golden_post"] == 3
        assert score.total > 20

    def test_outside_post_with_bias(self, sample_reference):
        score = _score(score_post_position, _horse(post_position=9), reference=sample_reference)
        assert score.details["track_bias_applied"] is True
        assert score.total < 15


# ──────────────────────────────────────────────
# Speed / class
# ──────────────────────────────────────────────

class TestSpeedClass:
    def test_figures_against_par(self):
        horse = _horse(past_performances=[_pp(speed_figure=f, finish_position=3) for f in (90, 85, 80)])
        score = _score(score_speed_class, horse)
        # blended 0.7 * 90 + 0.3 * 85 = 88.5 against par 80
        assert score.breakdown["speed"] == pytest.approx(56.25)
        assert score.breakdown["class"] == 13
        assert score.details["par"] == 80

    def test_missing_figures_below_average(self):
        score = _score(score_speed_class, _horse())
        assert score.breakdown["speed"] == 20
        assert score.breakdown["class"] == 10
        assert score.total == 30

    def test_class_drop_with_proven_form(self):
        horse = _horse(past_performances=[
            _pp(classification="stakes", purse=150000, speed_figure=92, finish_position=2),
            _pp(classification="stakes", purse=150000, speed_figure=94, finish_position=1),
        ])
        score = _score(score_speed_class, horse)
        assert score.breakdown["class"] == 25
        assert "dropping" in score.reasoning

    def test_class_rise(self):
        horse = _horse(past_performances=[_pp(classification="claiming", finish_position=5)])
        assert _score(score_speed_class, horse).breakdown["class"] == 7

    def test_earnings_class_without_lines(self):
        # $240,000 from 8 starts is $30,000 a start
        horse = _horse(lifetime="8: 2-1-1", lifetime_earnings=240000)
        score = _score(score_speed_class, horse)
        assert score.breakdown["class"] == 13
        assert "strong earner" in score.reasoning

    def test_low_earner_without_lines(self):
        horse = _horse(lifetime="8: 0-1-1", lifetime_earnings=16000)
        assert _score(score_speed_class, horse).breakdown["class"] == 7


# ──────────────────────────────────────────────
# Form
# ──────────────────────────────────────────────

class TestForm:
    def test_sharp_consistent_horse(self):
        horse = _horse(
            days_since_last_race=30,
            past_performances=[_pp(finish_position=f) for f in (1, 2, 3)],
        )
        score = _score(score_form, horse)
        assert score.breakdown == {"recent": 12, "layoff": 10, "consistency": 5}
        assert score.total == 27

    def test_long_layoff_penalised(self):
        horse = _horse(
            days_since_last_race=200,
            past_performances=[_pp(finish_position=f) for f in (1, 2, 3)],
        )
        assert _score(score_form, horse).breakdown["layoff"] == 0

    def test_close_beaten_earns_a_point(self):
        horse = _horse(past_performances=[_pp(finish_position=7, lengths_behind=2.0)])
        assert _score(score_form, horse).breakdown["recent"] == 1

    def test_unraced_default(self):
        score = _score(score_form, _horse())
        assert score.total == 8
        assert score.details["has_history"] is False

    def test_unraced_with_sharp_works(self):
        horse = _horse(workouts=[
            {"days_ago": 6, "rank": 1, "total_works": 30},
            {"days_ago": 13, "rank": 5, "total_works": 20},
            {"days_ago": 20, "rank": 9, "total_works": 25},
        ])
        score = _score(score_form, horse)
        # recent 3 + bullet 3 + pattern 1, doubled and capped at 8
        assert score.breakdown["workouts"] == 8
        assert score.total == 16

    def test_unraced_with_slow_stale_work(self):
        horse = _horse(workouts=[{"days_ago": 25, "rank": 18, "total_works": 20}])
        score = _score(score_form, horse)
        assert score.breakdown["workouts"] == -3
        assert score.total == 5

    def test_layoff_without_recent_work(self):
        runs = [_pp(finish_position=f) for f in (1, 2, 3)]
        fresh = _score(score_form, _horse(days_since_last_race=90, past_performances=runs))
        stale = _score(score_form, _horse(
            days_since_last_race=90,
            past_performances=runs,
            workouts=[{"days_ago": 30, "rank": 10, "total_works": 20}],
        ))
        assert fresh.total == 22
        assert stale.breakdown["workouts"] == -4
        assert stale.total == 18

    def test_layoff_with_bullet_work(self):
        horse = _horse(
            days_since_last_race=90,
            past_performances=[_pp(finish_position=f) for f in (1, 2, 3)],
            workouts=[{"days_ago": 5, "bullet": True}],
        )
        score = _score(score_form, horse)
        assert score.breakdown["workouts"] == 8
        assert score.total == 30

    def test_works_ignored_for_active_horse(self):
        horse = _horse(
            days_since_last_race=30,
            past_performances=[_pp(finish_position=f) for f in (1, 2, 3)],
            workouts=[{"days_ago": 30, "rank": 10, "total_works": 20}],
        )
        score = _score(score_form, horse)
        assert "workouts" not in score.breakdown
        assert score.total == 27

    def test_current_year_consistency_without_lines(self):
        score = _score(score_form, _horse(current_year="6: 2-1-1"))
        assert score.breakdown["consistency"] == 5
        assert score.total == 13


# ──────────────────────────────────────────────
# Equipment
# ──────────────────────────────────────────────

class TestEquipment:
    def test_first_time_lasix(self):
        horse = _horse(lasix=True, past_performances=[_pp(lasix=False)])
        score = _score(score_equipment, horse)
        assert detect_changes(horse) == ["lasix_first"]
        assert score.total == 22

    def test_stacked_changes_capped(self):
        horse = _horse(lasix=True, equipment="b", past_performances=[_pp()])
        score = _score(score_equipment, horse)
        assert set(detect_changes(horse)) == {"blinkers_on", "lasix_first"}
        assert score.total == 25

    def test_lasix_off(self):
        horse = _horse(lasix=False, past_performances=[_pp(lasix=True)])
        assert _score(score_equipment, horse).total == 7

    def test_blinkers_off(self):
        horse = _horse(equipment="", past_performances=[_pp(equipment="b")])
        assert detect_changes(horse) == ["blinkers_off"]
        assert _score(score_equipment, horse).total == 18

    def test_card_flags_without_history(self):
        horse = _horse(equipment_changes=["blinkers_on"])
        assert _score(score_equipment, horse).total == 20

    def test_trainer_pattern_scales_positive_changes(self):
        horse = _horse(
            equipment="b",
            trainer_equipment_stats="10: 3-1-1",
            past_performances=[_pp()],
        )
        score = _score(score_equipment, horse)
        assert score.details["trainer_multiplier"] == 1.5
        assert score.breakdown["blinkers_on"] == 15
        assert score.total == 25

    def test_no_changes(self):
        score = _score(score_equipment, _horse(past_performances=[_pp()]))
        assert score.total == 10
        assert score.reasoning == "No equipment changes"


# ──────────────────────────────────────────────
# Pace
# ──────────────────────────────────────────────

class TestPaceScorer:
    def test_lone_speed_in_field_of_closers(self):
        closers = [_horse(i, running_style={"early_lead": 0, "pressed": 1, "closed": 7, "starts": 8}) for i in range(1, 7)]
        speed = _horse(0, running_style={"early_lead": 7, "pressed": 1, "closed": 0, "starts": 8})
        ctx = _ctx([speed, *closers])
        score = score_pace(speed, RACE, ctx)
        assert score.details["scenario"] == "soft"
        assert score.details["pace_fit"] == "perfect"
        assert score.breakdown["tactical"] == 25
        assert score.total <= 40

    def test_scratched_speed_excluded_from_scenario(self):
        speeds = [_horse(i, running_style={"early_lead": 6, "starts": 6}) for i in range(3)]
        closer = _horse(3, running_style={"closed": 6, "starts": 6})
        all_in = _ctx([*speeds, closer])
        two_out = _ctx([*speeds, closer], scratched=frozenset({0, 1}))
        assert all_in.pace_scenario.scenario == "speed_duel"
        assert two_out.pace_scenario.scenario == "soft"


# ──────────────────────────────────────────────
# Breeding
# ──────────────────────────────────────────────

class TestBreeding:
    def _debut(self):
        return _horse(sire="Into Mischief", dam="Leslie's Lady", damsire="Tapit")

    def test_debut_with_elite_pedigree(self, sample_reference):
        horse = self._debut()
        breeding = score_breeding(horse, RACE, _ctx([horse], reference=sample_reference))
        assert breeding.was_applied
        assert breeding.breakdown["sire"] == 25
        assert breeding.breakdown["debut"] == 10
        assert breeding.breakdown["surface_fit"] == 5
        assert breeding.breakdown["distance_fit"] == 5
        assert breeding.total == 60

    def test_substitution_lifts_defaults(self, sample_reference):
        horse = self._debut()
        ctx = _ctx([horse], reference=sample_reference)
        categories = {
            "form": score_form(horse, RACE, ctx),
            "speed_class": score_speed_class(horse, RACE, ctx),
        }
        breeding = apply_breeding_substitution(score_breeding(horse, RACE, ctx), categories, starts=0)
        # 70 substitute points over 8 (form) + 30 (speed/class) defaults
        assert breeding.contribution == pytest.approx(32)

    def test_unknown_pedigree_never_lowers(self):
        horse = self._debut()
        ctx = _ctx([horse])
        categories = {
            "form": score_form(horse, RACE, ctx),
            "speed_class": score_speed_class(horse, RACE, ctx),
        }
        breeding = apply_breeding_substitution(score_breeding(horse, RACE, ctx), categories, starts=0)
        assert breeding.was_applied
        assert breeding.contribution == 0

    def test_experienced_horse_not_applied(self, sample_reference):
        horse = _horse(sire="Into Mischief", lifetime="10: 2-2-2")
        breeding = score_breeding(horse, RACE, _ctx([horse], reference=sample_reference))
        assert not breeding.was_applied
        assert breeding.contribution == 0


# ──────────────────────────────────────────────
# Class drops
# ──────────────────────────────────────────────

class TestClassDrop:
    def test_claiming_drop_hidden_behind_optional_label(self):
        race = RaceHeader(track_code="", classification="optional_claiming", claiming_price_max=25000)
        horse = _horse(past_performances=[_pp(track="", classification="claiming", claiming_price=50000, purse=0)])
        analysis = analyze_class(horse, race, _ctx([horse], race))
        assert [d.kind for d in analysis.hidden_drops] == ["claiming_price_drop"]
        assert analysis.bonus == 5

    def test_shipper_from_major_circuit(self):
        race = RaceHeader(track_code="PEN", classification="claiming", purse=20000)
        horse = _horse(past_performances=[_pp(track="SAR", classification="claiming", purse=20000)])
        analysis = analyze_class(horse, race, _ctx([horse], race, StaticReferenceData()))
        assert analysis.tier_movement == 2
        assert [d.kind for d in analysis.hidden_drops] == ["track_tier_drop"]
        assert analysis.bonus == 8

    def test_moving_up_in_tier_penalised(self):
        race = RaceHeader(track_code="SAR", classification="claiming", purse=20000)
        horse = _horse(past_performances=[_pp(track="PEN", classification="claiming", purse=20000)])
        analysis = analyze_class(horse, race, _ctx([horse], race, StaticReferenceData()))
        assert analysis.tier_movement == -2
        assert analysis.bonus == -6

    def test_purse_drop_same_level(self):
        race = RaceHeader(track_code="CD", classification="allowance", purse=50000)
        horse = _horse(past_performances=[_pp(classification="allowance", purse=100000)])
        analysis = analyze_class(horse, race, _ctx([horse], race))
        assert [d.kind for d in analysis.hidden_drops] == ["purse_drop"]
        assert analysis.bonus == 3

    def test_no_history(self):
        analysis = analyze_class(_horse(), RACE, _ctx([_horse()]))
        assert analysis.hidden_drops == ()
        assert analysis.bonus == 0


# ──────────────────────────────────────────────
# Surface, distance and course affinity
# ──────────────────────────────────────────────

TURF_RACE = RaceHeader(track_code="SAR", distance=8.5, surface="turf", classification="allowance", purse=80000)


class TestAffinity:
    def _proven(self):
        return _horse(surface_record="10: 3-2-1", distance_record="8: 2-1-1", track_record="2: 1-0-0")

    def test_turf_race_counts_surface_record(self):
        score = _score(score_affinity, self._proven(), race=TURF_RACE)
        # course record is 1 from 2, half credit
        assert score.breakdown == {"surface": 8, "distance": 6, "track": 3}
        assert score.total == 17

    def test_dirt_race_ignores_surface_record(self):
        score = _score(score_affinity, self._proven())
        assert score.breakdown["surface"] == 0
        assert score.total == 9

    def test_no_records(self):
        score = _score(score_affinity, _horse(), race=TURF_RACE)
        assert score.total == 0
        assert score.reasoning == "No surface, distance or course record"

    def test_winless_record_earns_nothing(self):
        score = _score(score_affinity, _horse(distance_record="12: 0-4-3"))
        assert score.breakdown["distance"] == 0
