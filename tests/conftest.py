"""Shared fixtures for leetcoach tests."""

import pytest

from leetcoach.analysis.models import Metric, RawProfile
from leetcoach.analysis.resources import ResourceCatalog

M = Metric

# Profile-endpoint values sitting exactly on the 10k-15k benchmarks.
# Percentage fields are whole numbers (16 = 16%), the rest are raw magnitudes.
BENCHMARK_STATS = {
    "accuracy_enemy_spotted": 16,
    "accuracy_head": 36,
    "counter_strafing_good_shots_ratio": 50,
    "ct_opening_duel_success_percentage": 35,
    "t_opening_duel_success_percentage": 35,
    "ct_opening_aggression_success_rate": 33,
    "t_opening_aggression_success_rate": 38,
    "flashbang_hit_foe_avg_duration": 1.35,
    "flashbang_hit_foe_per_flashbang": 0.5,
    "flashbang_hit_friend_per_flashbang": 0.45,
    "flashbang_leading_to_kill": 12,
    "flashbang_thrown": 0.85,
    "he_foes_damage_avg": 16,
    "he_friends_damage_avg": 6,
    "preaim": 0.45,
    "reaction_time_ms": 380,
    "spray_accuracy": 32,
    "traded_deaths_success_percentage": 42,
    "trade_kill_opportunities_per_round": 0.26,
    "trade_kills_success_percentage": 42,
    "utility_on_death_avg": 250,
}


def _payload(rating=None, stats=None, ranks=None, name="TestPlayer"):
    return {
        "name": name,
        "steam64_id": "76561198123456789",
        "rating": {
            "aim": 0.75,
            "positioning": 0.75,
            "utility": 0.75,
            "clutch": 0.75,
            "opening": 0.75,
            "ct_leetify": 0.0,
            "t_leetify": 0.0,
            **(rating or {}),
        },
        "stats": {**BENCHMARK_STATS, **(stats or {})},
        "ranks": {"premier": 12000, **(ranks or {})},
    }


@pytest.fixture
def make_payload():
    """Factory for /v3/profile payloads; overrides merge into each block."""
    return _payload


@pytest.fixture
def make_profile():
    """Factory for RawProfile built from an overridden benchmark payload."""

    def factory(rating=None, stats=None, ranks=None, name="TestPlayer"):
        return RawProfile.from_api(_payload(rating, stats, ranks, name))

    return factory


@pytest.fixture
def benchmark_stats():
    """Profile stats keyed by Metric, all exactly on the 10k-15k benchmark."""
    return {M(key): value for key, value in BENCHMARK_STATS.items()}


@pytest.fixture(scope="session")
def catalog():
    """The packaged resource catalog, loaded once per test session."""
    return ResourceCatalog.load()
