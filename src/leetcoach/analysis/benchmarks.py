"""
Benchmark tiers and comparison.

Tiers are keyed by Premier rating. Stat benchmarks are stored on the canonical
decimal scale produced by ``normalize``; rating benchmarks are 0-100 for
aim/positioning/utility and relative (display scale) for clutch/opening.
"""

import logging
from types import MappingProxyType

from leetcoach.analysis.models import (
    BenchmarkTier,
    Comparison,
    Endpoint,
    Metric,
    PerformanceBand,
    RatingBenchmarks,
)
from leetcoach.analysis.normalize import normalize

logger = logging.getLogger(__name__)

M = Metric

LOWER_IS_BETTER = frozenset(
    {
        M.REACTION_TIME_MS,
        M.UTILITY_ON_DEATH_AVG,
        M.HE_FRIENDS_DAMAGE_AVG,
        M.FLASHBANG_HIT_FRIEND_PER_FLASHBANG,
    }
)


def _stats(values: dict[Metric, float]) -> MappingProxyType:
    missing = set(Metric) - set(values)
    if missing:
        raise ValueError(f"Benchmark tier missing metrics: {sorted(m.value for m in missing)}")
    return MappingProxyType(dict(values))


# ============================================================================
# Tier table
# ============================================================================

TIER_BELOW_10K = BenchmarkTier(
    name="Below 10k",
    min_rating=0,
    ratings=RatingBenchmarks(aim=50, positioning=44, utility=45, clutch=2.0, opening=-3.0),
    stats=_stats(
        {
            M.ACCURACY_ENEMY_SPOTTED: 0.14,
            M.ACCURACY_HEAD: 0.32,
            M.COUNTER_STRAFING_GOOD_SHOTS_RATIO: 0.45,
            M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE: 0.33,
            M.T_OPENING_DUEL_SUCCESS_PERCENTAGE: 0.33,
            M.CT_OPENING_AGGRESSION_SUCCESS_RATE: 0.30,
            M.T_OPENING_AGGRESSION_SUCCESS_RATE: 0.35,
            M.FLASHBANG_HIT_FOE_AVG_DURATION: 1.2,
            M.FLASHBANG_HIT_FOE_PER_FLASHBANG: 0.45,
            M.FLASHBANG_HIT_FRIEND_PER_FLASHBANG: 0.5,
            M.FLASHBANG_LEADING_TO_KILL: 0.10,
            M.FLASHBANG_THROWN: 0.7,
            M.HE_FOES_DAMAGE_AVG: 12,
            M.HE_FRIENDS_DAMAGE_AVG: 7,
            M.PREAIM: 0.4,
            M.REACTION_TIME_MS: 420,
            M.SPRAY_ACCURACY: 0.28,
            M.TRADED_DEATHS_SUCCESS_PERCENTAGE: 0.38,
            M.TRADE_KILL_OPPORTUNITIES_PER_ROUND: 0.22,
            M.TRADE_KILLS_SUCCESS_PERCENTAGE: 0.38,
            M.UTILITY_ON_DEATH_AVG: 300,
        }
    ),
)

TIER_10K = BenchmarkTier(
    name="10k–15k",
    min_rating=10000,
    ratings=RatingBenchmarks(aim=58, positioning=48, utility=51, clutch=6.0, opening=-1.5),
    stats=_stats(
        {
            M.ACCURACY_ENEMY_SPOTTED: 0.16,
            M.ACCURACY_HEAD: 0.36,
            M.COUNTER_STRAFING_GOOD_SHOTS_RATIO: 0.50,
            M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE: 0.35,
            M.T_OPENING_DUEL_SUCCESS_PERCENTAGE: 0.35,
            M.CT_OPENING_AGGRESSION_SUCCESS_RATE: 0.33,
            M.T_OPENING_AGGRESSION_SUCCESS_RATE: 0.38,
            M.FLASHBANG_HIT_FOE_AVG_DURATION: 1.35,
            M.FLASHBANG_HIT_FOE_PER_FLASHBANG: 0.5,
            M.FLASHBANG_HIT_FRIEND_PER_FLASHBANG: 0.45,
            M.FLASHBANG_LEADING_TO_KILL: 0.12,
            M.FLASHBANG_THROWN: 0.85,
            M.HE_FOES_DAMAGE_AVG: 16,
            M.HE_FRIENDS_DAMAGE_AVG: 6,
            M.PREAIM: 0.45,
            M.REACTION_TIME_MS: 380,
            M.SPRAY_ACCURACY: 0.32,
            M.TRADED_DEATHS_SUCCESS_PERCENTAGE: 0.42,
            M.TRADE_KILL_OPPORTUNITIES_PER_ROUND: 0.26,
            M.TRADE_KILLS_SUCCESS_PERCENTAGE: 0.42,
            M.UTILITY_ON_DEATH_AVG: 250,
        }
    ),
)

# Premier 15k-19k averages
TIER_15K = BenchmarkTier(
    name="15k+",
    min_rating=15000,
    ratings=RatingBenchmarks(aim=66, positioning=53, utility=58, clutch=10.49, opening=0.01),
    stats=_stats(
        {
            M.ACCURACY_ENEMY_SPOTTED: 0.18,
            M.ACCURACY_HEAD: 0.40,
            M.COUNTER_STRAFING_GOOD_SHOTS_RATIO: 0.55,
            M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE: 0.37,
            M.T_OPENING_DUEL_SUCCESS_PERCENTAGE: 0.37,
            M.CT_OPENING_AGGRESSION_SUCCESS_RATE: 0.35,
            M.T_OPENING_AGGRESSION_SUCCESS_RATE: 0.40,
            M.FLASHBANG_HIT_FOE_AVG_DURATION: 1.5,
            M.FLASHBANG_HIT_FOE_PER_FLASHBANG: 0.6,
            M.FLASHBANG_HIT_FRIEND_PER_FLASHBANG: 0.4,
            M.FLASHBANG_LEADING_TO_KILL: 0.15,
            M.FLASHBANG_THROWN: 1.0,
            M.HE_FOES_DAMAGE_AVG: 20,
            M.HE_FRIENDS_DAMAGE_AVG: 5,
            M.PREAIM: 0.5,
            M.REACTION_TIME_MS: 350,
            M.SPRAY_ACCURACY: 0.35,
            M.TRADED_DEATHS_SUCCESS_PERCENTAGE: 0.45,
            M.TRADE_KILL_OPPORTUNITIES_PER_ROUND: 0.3,
            M.TRADE_KILLS_SUCCESS_PERCENTAGE: 0.45,
            M.UTILITY_ON_DEATH_AVG: 200,
        }
    ),
)

# Sorted by min_rating ascending
BENCHMARK_TIERS: tuple[BenchmarkTier, ...] = (TIER_BELOW_10K, TIER_10K, TIER_15K)

DEFAULT_TIER = TIER_10K


def select_tier(rank: float | None) -> BenchmarkTier:
    """
    Pick the tier with the greatest threshold <= rank.

    An absent rank selects DEFAULT_TIER; a rank below every threshold selects
    the lowest tier.
    """
    if rank is None:
        return DEFAULT_TIER

    selected = BENCHMARK_TIERS[0]
    for tier in BENCHMARK_TIERS:
        if tier.min_rating <= rank:
            selected = tier
    return selected


# ============================================================================
# Comparator
# ============================================================================


def _band(delta_pct: float) -> PerformanceBand:
    if delta_pct >= 30:
        return PerformanceBand.EXCELLENT
    if delta_pct >= 10:
        return PerformanceBand.GOOD
    if delta_pct >= -5:
        return PerformanceBand.AVERAGE
    if delta_pct >= -20:
        return PerformanceBand.BELOW_AVERAGE
    return PerformanceBand.POOR


def is_lower_better(field: Metric | str) -> bool:
    try:
        return Metric(field) in LOWER_IS_BETTER
    except ValueError:
        return False


def compare(
    value: float,
    field: Metric | str,
    endpoint: Endpoint | str = Endpoint.PROFILE,
    tier: BenchmarkTier = DEFAULT_TIER,
) -> Comparison:
    """
    Compare a raw API value against the tier benchmark for a field.

    Fields without a benchmark always meet it. ``delta_pct`` is the signed
    distance from the benchmark in percent, positive meaning better.
    """
    benchmark = tier.stat_benchmark(field)
    if benchmark is None:
        logger.debug(f"No benchmark for {field!s} in tier {tier.name}")
        return Comparison(meets=True, delta_pct=0.0, band=PerformanceBand.AVERAGE)

    normalized = normalize(value, field, endpoint)

    if is_lower_better(field):
        meets = normalized <= benchmark
        delta = (benchmark - normalized) / benchmark * 100 if benchmark else 0.0
    else:
        meets = normalized >= benchmark
        delta = (normalized - benchmark) / benchmark * 100 if benchmark else 0.0

    return Comparison(meets=meets, delta_pct=round(delta, 1), band=_band(delta))


def meets_benchmark(
    value: float,
    field: Metric | str,
    endpoint: Endpoint | str = Endpoint.PROFILE,
    tier: BenchmarkTier = DEFAULT_TIER,
) -> bool:
    """Boolean form of ``compare``."""
    return compare(value, field, endpoint, tier).meets
