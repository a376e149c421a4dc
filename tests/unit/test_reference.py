"""Tests for reference data loading and the live odds store."""

import logging

from furlong.reference import LiveOddsStore, StaticReferenceData, condition_bucket, distance_bucket


class TestBuckets:
    def test_condition_bucket(self):
        assert condition_bucket("sloppy") == "wet"
        assert condition_bucket("firm") == "dry"
        assert condition_bucket("fast") == "dry"

    def test_distance_bucket(self):
        assert distance_bucket(6) == "sprint"
        assert distance_bucket(8) == "route"


class TestStaticReferenceData:
    def test_track_tiers(self, sample_reference):
        assert sample_reference.track_tier("SAR") == "A"
        assert sample_reference.track_tier("prx") == "B"
        assert sample_reference.track_tier("ZZZ") == "C"
        assert sample_reference.track_tier("") is None

    def test_post_bias_lookup(self, sample_reference):
        dry_sprint = sample_reference.post_bias("CD", "fast", 6)
        assert dry_sprint.golden_posts == (4, 5)
        assert dry_sprint.sample_size == 412

        assert sample_reference.post_bias("CD", "sloppy", 6).golden_posts == (1,)
        assert sample_reference.post_bias("CD", "fast", 9).golden_posts == (1, 2)

    def test_missing_bias_profile(self, sample_reference):
        assert sample_reference.post_bias("CD", "muddy", 9) is None
        assert sample_reference.post_bias("SAR", "fast", 6) is None

    def test_breeding_lookup_ignores_case(self, sample_reference):
        profile = sample_reference.breeding_profile("into mischief", "sire")
        assert profile.win_rate == 0.21
        assert profile.surface_preference == "dirt"
        assert sample_reference.breeding_profile("Into Mischief", "dam") is None
        assert sample_reference.breeding_profile("", "sire") is None

    def test_bad_json_gives_defaults(self, tmp_path, caplog):
        path = tmp_path / "reference.json"
        path.write_text("{not json")
        with caplog.at_level(logging.WARNING, logger="furlong.reference"):
            ref = StaticReferenceData.from_json(path)
        assert ref.bias == {}
        assert ref.track_tier("SAR") == "A"
        assert "Failed to load reference data" in caplog.text

    def test_missing_file_gives_defaults(self, tmp_path):
        ref = StaticReferenceData.from_json(tmp_path / "missing.json")
        assert ref.breeding == {}

    def test_bad_profile_skipped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="furlong.reference"):
            ref = StaticReferenceData.from_dict({
                "post_bias": {"XX": {"dry": {"sprint": {"post_win_pct": {"one": 10}}}}},
                "track_tiers": {"XX": "Z", "YY": "b"},
            })
        assert ref.post_bias("XX", "fast", 6) is None
        assert ref.track_tier("XX") == "C"
        assert ref.track_tier("YY") == "B"
        assert "Skipping bad post bias" in caplog.text


class TestLiveOddsStore:
    def test_overrides_and_scratches(self):
        store = LiveOddsStore(overrides={0: "3-1", 1: "  "}, scratches=frozenset({2}))
        assert store.get_odds(0, "5-1") == "3-1"
        assert store.get_odds(1, "5-1") == "5-1"
        assert store.get_odds(3, "8-1") == "8-1"
        assert store.is_scratched(2)
        assert not store.is_scratched(0)
