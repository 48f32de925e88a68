"""Cross-category pattern detection."""

from collections.abc import Mapping

from leetcoach.analysis.benchmarks import DEFAULT_TIER, meets_benchmark
from leetcoach.analysis.models import BenchmarkTier, CrossInsight, Metric


def detect_cross_insights(
    ratings: Mapping[str, float],
    stats: Mapping[Metric, float],
    tier: BenchmarkTier | None = None,
) -> tuple[CrossInsight, ...]:
    """
    Evaluate the cross-category rules in declaration order.

    Args:
        ratings: Display-scale ratings keyed ``aim``, ``positioning``,
            ``utility`` (0-100) and ``clutch``, ``opening`` (relative)
        stats: Profile stats
        tier: Benchmark tier for the stat-based rules
    """
    tier = tier or DEFAULT_TIER
    aim = ratings.get("aim", 0.0)
    utility = ratings.get("utility", 0.0)
    opening = ratings.get("opening", 0.0)
    clutch = ratings.get("clutch", 0.0)
    insights: list[CrossInsight] = []

    if aim >= 55 and opening < -2.0:
        insights.append(
            CrossInsight(
                label="Good aim but poor openings",
                detail=(
                    "Your mechanics are fine but you lose opening duels. This usually means bad "
                    "positioning when taking fights, not bad aim. Peek from off-angles and use "
                    "utility to isolate 1v1s."
                ),
            )
        )

    if aim >= 55 and clutch < -6.0:
        insights.append(
            CrossInsight(
                label="Aim is there but clutches fail",
                detail=(
                    "You can shoot but struggle in 1vX. Slow down in clutch situations: check "
                    "the minimap, listen for info, and take fights one at a time instead of rushing."
                ),
            )
        )

    if utility < 40 and opening >= 0.0:
        insights.append(
            CrossInsight(
                label="Winning fights without utility",
                detail=(
                    "You win duels but don't use utility. This works at lower ranks but will "
                    "plateau. Start using flashes before every peek to make your already-good "
                    "entries even better."
                ),
            )
        )

    he_friends = stats.get(Metric.HE_FRIENDS_DAMAGE_AVG, 0.0)
    if not meets_benchmark(he_friends, Metric.HE_FRIENDS_DAMAGE_AVG, tier=tier):
        insights.append(
            CrossInsight(
                label="Friendly fire with HE grenades",
                detail=(
                    f"You deal {he_friends:.1f} avg HE damage to teammates. Check teammate "
                    "positions before throwing HEs, especially in close-quarters sites."
                ),
            )
        )

    trade_chances = stats.get(Metric.TRADE_KILL_OPPORTUNITIES_PER_ROUND, 0.0)
    if not meets_benchmark(trade_chances, Metric.TRADE_KILL_OPPORTUNITIES_PER_ROUND, tier=tier):
        insights.append(
            CrossInsight(
                label="Isolated from teammates",
                detail=(
                    f"You only get {trade_chances:.2f} trade opportunities per round, so you're "
                    "playing too far from teammates. Stay closer so deaths can be traded."
                ),
            )
        )

    return tuple(insights)
