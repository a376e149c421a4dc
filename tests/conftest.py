"""Shared test fixtures for Furlong."""

import copy
from pathlib import Path

import pytest

from furlong.config import EngineSettings
from furlong.reference import StaticReferenceData

SAMPLE_REFERENCE = Path(__file__).resolve().parent.parent / "furlong" / "data" / "reference_sample.json"


def make_horse(name: str, post: int, **overrides) -> dict:
    """Raw card record for a run-of-the-mill allowance closer."""
    pp = {
        "date": "2026-09-20",
        "track": "CD",
        "distance": 6,
        "surface": "dirt",
        "classification": "allowance",
        "purse": 80000,
        "finish_position": 4,
        "first_call_position": 6,
        "lengths_behind": 5.5,
        "speed_figure": 78,
        "jockey": "J Jockey",
    }
    horse = {
        "name": name,
        "program_number": str(post),
        "post_position": post,
        "morning_line": "5-1",
        "trainer": "T Trainer",
        "trainer_stats": "50: 6-5-5",
        "jockey": "J Jockey",
        "jockey_stats": "80: 10-9-8",
        "lifetime": "10: 2-2-2",
        "days_since_last_race": 28,
        "running_style": {"early_lead": 1, "pressed": 2, "closed": 5, "starts": 8},
        "past_performances": [dict(pp) for _ in range(3)],
    }
    horse.update(overrides)
    return horse


@pytest.fixture
def engine_settings():
    return EngineSettings()


@pytest.fixture
def sample_reference():
    return StaticReferenceData.from_json(SAMPLE_REFERENCE)


@pytest.fixture
def race_raw():
    return {
        "track_code": "CD",
        "race_number": 5,
        "distance": 6,
        "surface": "dirt",
        "track_condition": "fast",
        "classification": "allowance",
        "purse": 80000,
    }


@pytest.fixture
def field_raw():
    """Eight similar horses; #3 (index 2) is clearly best on speed and connections."""
    horses = [make_horse(f"Runner {i + 1}", i + 1) for i in range(8)]
    star = horses[2]
    star["name"] = "Star Turn"
    star["trainer_stats"] = "60: 16-10-8"
    star["jockey_stats"] = "100: 24-15-12"
    for pp in star["past_performances"]:
        pp["speed_figure"] = 95
        pp["finish_position"] = 1
        pp["lengths_behind"] = 0
    return copy.deepcopy(horses)


@pytest.fixture
def horse_factory():
    return make_horse
