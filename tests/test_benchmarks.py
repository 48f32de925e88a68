"""Tests for the benchmarks module."""

import pytest

from leetcoach.analysis.benchmarks import (
    BENCHMARK_TIERS,
    DEFAULT_TIER,
    LOWER_IS_BETTER,
    TIER_10K,
    TIER_15K,
    TIER_BELOW_10K,
    compare,
    is_lower_better,
    meets_benchmark,
    select_tier,
)
from leetcoach.analysis.models import Category, Metric, PerformanceBand


class TestTierTable:
    """Tests for the benchmark tier table."""

    def test_every_tier_covers_every_metric(self):
        """Each tier has a benchmark for every consumed stat."""
        for tier in BENCHMARK_TIERS:
            assert set(tier.stats) == set(Metric)

    def test_tiers_sorted_by_threshold(self):
        """Tiers are ordered by ascending minimum rating."""
        thresholds = [tier.min_rating for tier in BENCHMARK_TIERS]
        assert thresholds == sorted(thresholds)

    def test_rating_benchmarks_by_category(self):
        """Category lookup returns the tier's rating benchmark."""
        assert TIER_10K.ratings.for_category(Category.AIM) == 58
        assert TIER_10K.ratings.for_category(Category.OPENING) == -1.5
        assert TIER_15K.ratings.for_category(Category.CLUTCH) == 10.49

    def test_unknown_field_has_no_benchmark(self):
        """Unknown field names have no benchmark in any tier."""
        assert TIER_10K.stat_benchmark("made_up_field") is None


class TestSelectTier:
    """Tests for tier selection by Premier rating."""

    def test_absent_rank_uses_default(self):
        """No rank falls back to the default tier."""
        assert select_tier(None) is DEFAULT_TIER
        assert DEFAULT_TIER is TIER_10K

    @pytest.mark.parametrize(
        "rank,expected",
        [
            (0, TIER_BELOW_10K),
            (9999, TIER_BELOW_10K),
            (10000, TIER_10K),
            (14999, TIER_10K),
            (15000, TIER_15K),
            (28000, TIER_15K),
        ],
    )
    def test_greatest_threshold_not_above_rank(self, rank, expected):
        """The tier with the greatest threshold <= rank wins."""
        assert select_tier(rank) is expected

    def test_rank_below_every_threshold(self):
        """A negative rank selects the lowest tier."""
        assert select_tier(-50) is TIER_BELOW_10K


class TestCompare:
    """Tests for the benchmark comparator."""

    def test_unknown_field_fails_open(self):
        """Fields without a benchmark always meet it."""
        result = compare(0, "made_up_field")
        assert result.meets is True
        assert result.delta_pct == 0.0
        assert result.band is PerformanceBand.AVERAGE

    def test_higher_is_better_boundary_is_inclusive(self):
        """A value exactly on the benchmark meets it."""
        assert meets_benchmark(16, Metric.ACCURACY_ENEMY_SPOTTED)
        assert not meets_benchmark(15.9, Metric.ACCURACY_ENEMY_SPOTTED)

    def test_lower_is_better_boundary_is_inclusive(self):
        """Lower-is-better fields meet at or below the benchmark."""
        assert meets_benchmark(380, Metric.REACTION_TIME_MS)
        assert meets_benchmark(300, Metric.REACTION_TIME_MS)
        assert not meets_benchmark(381, Metric.REACTION_TIME_MS)

    def test_delta_is_positive_when_better(self):
        """Delta is signed so that positive always means better."""
        better = compare(20, Metric.ACCURACY_ENEMY_SPOTTED)
        assert better.delta_pct == 25.0
        assert better.band is PerformanceBand.GOOD

        faster = compare(190, Metric.REACTION_TIME_MS)
        assert faster.delta_pct == 50.0
        assert faster.band is PerformanceBand.EXCELLENT

    def test_poor_band(self):
        """Values far under the benchmark land in the poor band."""
        result = compare(8, Metric.ACCURACY_ENEMY_SPOTTED)
        assert result.meets is False
        assert result.delta_pct == -50.0
        assert result.band is PerformanceBand.POOR

    def test_monotonic_for_higher_is_better(self):
        """Raising a higher-is-better value never turns a pass into a fail."""
        results = [meets_benchmark(v, Metric.SPRAY_ACCURACY) for v in range(0, 101, 4)]
        first_pass = results.index(True)
        assert all(results[first_pass:])

    def test_monotonic_for_lower_is_better(self):
        """Raising a lower-is-better value never turns a fail into a pass."""
        results = [meets_benchmark(v, Metric.UTILITY_ON_DEATH_AVG) for v in range(0, 600, 25)]
        first_fail = results.index(False)
        assert not any(results[first_fail:])

    def test_tier_changes_outcome(self):
        """The same value can pass a lower tier and fail a higher one."""
        assert meets_benchmark(34, Metric.ACCURACY_HEAD, tier=TIER_BELOW_10K)
        assert not meets_benchmark(34, Metric.ACCURACY_HEAD, tier=TIER_10K)

    def test_lower_is_better_set(self):
        """Only the four cost-style stats are lower-is-better."""
        assert len(LOWER_IS_BETTER) == 4
        assert is_lower_better("he_friends_damage_avg")
        assert not is_lower_better("accuracy_head")
        assert not is_lower_better("made_up_field")
