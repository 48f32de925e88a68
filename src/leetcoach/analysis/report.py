"""
Improvement report assembly.

Runs every analyzer over a RawProfile and picks the focus areas:

1. Critically low categories with a real issue
2. Positioning, when the sides are imbalanced
3. Remaining categories under 65 with a real issue
4. Otherwise the three worst categories

Focus areas are capped at three and never empty.
"""

import logging
import math

from leetcoach.analysis.benchmarks import select_tier
from leetcoach.analysis.categories import (
    analyze_aim,
    analyze_clutch,
    analyze_opening,
    analyze_positioning,
    analyze_utility,
)
from leetcoach.analysis.insights import detect_cross_insights
from leetcoach.analysis.models import (
    Category,
    ImprovementArea,
    ImprovementReport,
    RawProfile,
    SideBalance,
)
from leetcoach.analysis.resources import ResourceCatalog, select_resources
from leetcoach.analysis.sides import analyze_side_balance, analyze_sides

logger = logging.getLogger(__name__)

MAX_FOCUS_AREAS = 3
FOCUS_RATING_CEILING = 65


def to_display_100(value: float) -> int:
    """0-1 ratings are scaled to 0-100; values already above 1 are kept. Rounds half up."""
    scaled = value if value > 1 else value * 100
    return math.floor(scaled + 0.5)


def display_ratings(profile: RawProfile) -> dict[str, float]:
    """Category ratings on their display scales, keyed by lowercase name."""
    r = profile.ratings
    return {
        "aim": to_display_100(r.aim),
        "positioning": to_display_100(r.positioning),
        "utility": to_display_100(r.utility),
        "clutch": r.clutch * 100,
        "opening": r.opening * 100,
    }


def select_focus_areas(
    areas: tuple[ImprovementArea, ...], side_balance: SideBalance
) -> tuple[ImprovementArea, ...]:
    """Pick 1-3 focus areas from areas sorted worst first."""
    focus: list[ImprovementArea] = [
        a for a in areas if a.is_critical and a.has_real_issue
    ][:MAX_FOCUS_AREAS]

    if side_balance.has_imbalance and len(focus) < MAX_FOCUS_AREAS:
        positioning = next((a for a in areas if a.category is Category.POSITIONING), None)
        if positioning is not None and positioning not in focus:
            focus.append(positioning)

    if len(focus) < MAX_FOCUS_AREAS:
        remaining = [
            a
            for a in areas
            if a not in focus and a.rating < FOCUS_RATING_CEILING and a.has_real_issue
        ]
        focus.extend(remaining[: MAX_FOCUS_AREAS - len(focus)])

    if not focus:
        focus = list(areas[:MAX_FOCUS_AREAS])

    return tuple(focus)


def build_report(
    raw_profile: RawProfile, catalog: ResourceCatalog
) -> ImprovementReport:
    """
    Build the full improvement report for one player.

    Pure function of its inputs: the same profile and catalog always give an
    equal report.
    """
    tier = select_tier(raw_profile.ranks.premier)
    stats = raw_profile.stats
    ratings = display_ratings(raw_profile)
    ct_raw = raw_profile.ratings.ct_leetify
    t_raw = raw_profile.ratings.t_leetify

    side_balance = analyze_side_balance(ct_raw, t_raw, stats)
    side_insights = analyze_sides(stats, ct_raw, t_raw, tier)
    weak_side = side_balance.weak_side

    areas = (
        analyze_aim(stats, ratings["aim"], tier),
        analyze_positioning(stats, ratings["positioning"], tier, weak_side),
        analyze_utility(stats, ratings["utility"], tier),
        analyze_opening(stats, ratings["opening"], tier, weak_side),
        analyze_clutch(stats, ratings["clutch"], tier),
    )
    areas = tuple(sorted(areas, key=lambda a: a.rating))

    focus_areas = select_focus_areas(areas, side_balance)
    cross_insights = detect_cross_insights(ratings, stats, tier)
    resources = select_resources(focus_areas, side_insights, catalog)

    logger.debug(
        f"Report for {raw_profile.name}: tier={tier.name}, "
        f"focus={[a.category.value for a in focus_areas]}"
    )

    return ImprovementReport(
        player_name=raw_profile.name,
        tier=tier,
        areas=areas,
        focus_areas=focus_areas,
        side_balance=side_balance,
        cross_insights=cross_insights,
        side_insights=side_insights,
        resources=resources,
    )
