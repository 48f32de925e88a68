"""
Data models for the improvement engine.

Defines the metric/endpoint enums, the raw profile record built from the
Leetify profile payload, benchmark tiers, and the immutable report records
produced by the analyzers.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


def coerce_number(value: Any) -> float:
    """Read a vendor value as a finite float; absent or malformed values become 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


# ============================================================================
# Enums
# ============================================================================


class Endpoint(str, Enum):
    """Leetify endpoint a value was read from; the two disagree on percentage scales."""

    PROFILE = "profile"
    MATCH = "match"


class Metric(str, Enum):
    """Profile stat fields consumed by the analyzers."""

    ACCURACY_ENEMY_SPOTTED = "accuracy_enemy_spotted"
    ACCURACY_HEAD = "accuracy_head"
    COUNTER_STRAFING_GOOD_SHOTS_RATIO = "counter_strafing_good_shots_ratio"
    CT_OPENING_DUEL_SUCCESS_PERCENTAGE = "ct_opening_duel_success_percentage"
    T_OPENING_DUEL_SUCCESS_PERCENTAGE = "t_opening_duel_success_percentage"
    CT_OPENING_AGGRESSION_SUCCESS_RATE = "ct_opening_aggression_success_rate"
    T_OPENING_AGGRESSION_SUCCESS_RATE = "t_opening_aggression_success_rate"
    FLASHBANG_HIT_FOE_AVG_DURATION = "flashbang_hit_foe_avg_duration"
    FLASHBANG_HIT_FOE_PER_FLASHBANG = "flashbang_hit_foe_per_flashbang"
    FLASHBANG_HIT_FRIEND_PER_FLASHBANG = "flashbang_hit_friend_per_flashbang"
    FLASHBANG_LEADING_TO_KILL = "flashbang_leading_to_kill"
    FLASHBANG_THROWN = "flashbang_thrown"
    HE_FOES_DAMAGE_AVG = "he_foes_damage_avg"
    HE_FRIENDS_DAMAGE_AVG = "he_friends_damage_avg"
    PREAIM = "preaim"
    REACTION_TIME_MS = "reaction_time_ms"
    SPRAY_ACCURACY = "spray_accuracy"
    TRADED_DEATHS_SUCCESS_PERCENTAGE = "traded_deaths_success_percentage"
    TRADE_KILL_OPPORTUNITIES_PER_ROUND = "trade_kill_opportunities_per_round"
    TRADE_KILLS_SUCCESS_PERCENTAGE = "trade_kills_success_percentage"
    UTILITY_ON_DEATH_AVG = "utility_on_death_avg"


class Category(str, Enum):
    """Improvement categories, valued by their display label."""

    AIM = "Aim"
    POSITIONING = "Positioning"
    UTILITY = "Utility"
    OPENING = "Opening Duels"
    CLUTCH = "Clutch"


# Clutch and opening ratings are signed deltas around zero, not 0-100 scores
RELATIVE_CATEGORIES = frozenset({Category.OPENING, Category.CLUTCH})


class Side(str, Enum):
    CT = "CT"
    T = "T"


class PerformanceBand(str, Enum):
    """Narrative severity of a benchmark comparison."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    AVERAGE = "Average"
    BELOW_AVERAGE = "Below Average"
    POOR = "Poor"


class AreaStatus(str, Enum):
    OK = "ok"
    ISSUE = "issue"


# ============================================================================
# Raw profile
# ============================================================================


@dataclass(frozen=True)
class ProfileRatings:
    """The profile ``rating`` block, in the vendor's native scale."""

    aim: float = 0.0
    positioning: float = 0.0
    utility: float = 0.0
    clutch: float = 0.0
    opening: float = 0.0
    ct_leetify: float = 0.0
    t_leetify: float = 0.0


@dataclass(frozen=True)
class ProfileRanks:
    leetify: float | None = None
    premier: int | None = None
    faceit: int | None = None
    wingman: int | None = None
    renown: int | None = None


def _optional_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _optional_int(value: Any) -> int | None:
    number = _optional_number(value)
    return None if number is None else int(number)


@dataclass(frozen=True)
class RawProfile:
    """One player's profile as returned by ``/v3/profile``; never mutated after fetch."""

    name: str
    ratings: ProfileRatings
    stats: Mapping[Metric, float]
    ranks: ProfileRanks = field(default_factory=ProfileRanks)
    steam64_id: str | None = None

    def stat(self, metric: Metric) -> float:
        return self.stats.get(metric, 0.0)

    @staticmethod
    def has_required_blocks(data: Mapping[str, Any] | None) -> bool:
        """Check that a payload carries both the rating and stats blocks."""
        if not isinstance(data, Mapping):
            return False
        return isinstance(data.get("rating"), Mapping) and isinstance(data.get("stats"), Mapping)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "RawProfile":
        """
        Build a RawProfile from the vendor JSON.

        Missing, NaN and non-numeric fields read as 0.0. Callers should check
        ``has_required_blocks`` first; absent blocks simply read as all zeros.
        """
        rating = data.get("rating") or {}
        stats = data.get("stats") or {}
        ranks = data.get("ranks") or {}

        ratings = ProfileRatings(
            aim=coerce_number(rating.get("aim")),
            positioning=coerce_number(rating.get("positioning")),
            utility=coerce_number(rating.get("utility")),
            clutch=coerce_number(rating.get("clutch")),
            opening=coerce_number(rating.get("opening")),
            ct_leetify=coerce_number(rating.get("ct_leetify")),
            t_leetify=coerce_number(rating.get("t_leetify")),
        )
        stat_values = MappingProxyType({m: coerce_number(stats.get(m.value)) for m in Metric})
        profile_ranks = ProfileRanks(
            leetify=_optional_number(ranks.get("leetify")),
            premier=_optional_int(ranks.get("premier")),
            faceit=_optional_int(ranks.get("faceit")),
            wingman=_optional_int(ranks.get("wingman")),
            renown=_optional_int(ranks.get("renown")),
        )
        steam64_id = data.get("steam64_id")

        return cls(
            name=str(data.get("name") or "Unknown Player"),
            ratings=ratings,
            stats=stat_values,
            ranks=profile_ranks,
            steam64_id=str(steam64_id) if steam64_id else None,
        )


# ============================================================================
# Benchmarks
# ============================================================================


@dataclass(frozen=True)
class RatingBenchmarks:
    """Category rating benchmarks: 0-100 for aim/positioning/utility, relative for clutch/opening."""

    aim: float
    positioning: float
    utility: float
    clutch: float
    opening: float

    def for_category(self, category: Category) -> float:
        return {
            Category.AIM: self.aim,
            Category.POSITIONING: self.positioning,
            Category.UTILITY: self.utility,
            Category.OPENING: self.opening,
            Category.CLUTCH: self.clutch,
        }[category]


@dataclass(frozen=True)
class BenchmarkTier:
    """Reference values for one skill bracket, selected by Premier rating."""

    name: str
    min_rating: int
    ratings: RatingBenchmarks
    stats: Mapping[Metric, float]

    def stat_benchmark(self, field_name: "Metric | str") -> float | None:
        try:
            metric = Metric(field_name)
        except ValueError:
            return None
        return self.stats.get(metric)


@dataclass(frozen=True)
class Comparison:
    meets: bool
    delta_pct: float  # positive = better than benchmark
    band: PerformanceBand


# ============================================================================
# Analysis results
# ============================================================================


@dataclass(frozen=True)
class ImprovementArea:
    """Findings for one category."""

    category: Category
    rating: float
    emoji: str
    issues: tuple[str, ...]
    drills: tuple[str, ...] = ()
    resource_tags: tuple[str, ...] = ()
    status: AreaStatus = AreaStatus.ISSUE

    @property
    def has_real_issue(self) -> bool:
        return self.status is AreaStatus.ISSUE

    @property
    def is_relative(self) -> bool:
        return self.category in RELATIVE_CATEGORIES

    @property
    def is_critical(self) -> bool:
        """Critically low rating: below -6.0 for relative areas, below 30 otherwise."""
        if self.is_relative:
            return self.rating < -6.0
        return self.rating < 30

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "rating": self.rating,
            "emoji": self.emoji,
            "status": self.status.value,
            "issues": list(self.issues),
            "drills": list(self.drills),
            "resource_tags": list(self.resource_tags),
        }


@dataclass(frozen=True)
class SideBalance:
    has_imbalance: bool
    weak_side: Side | None = None
    advice: str = ""


@dataclass(frozen=True)
class SideSpecificInsights:
    ct_insights: tuple[str, ...] = ()
    t_insights: tuple[str, ...] = ()
    ct_drills: tuple[str, ...] = ()
    t_drills: tuple[str, ...] = ()
    ct_resource_tags: tuple[str, ...] = ()
    t_resource_tags: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "ct_insights": list(self.ct_insights),
            "t_insights": list(self.t_insights),
            "ct_drills": list(self.ct_drills),
            "t_drills": list(self.t_drills),
            "ct_resource_tags": list(self.ct_resource_tags),
            "t_resource_tags": list(self.t_resource_tags),
        }


@dataclass(frozen=True)
class CrossInsight:
    label: str
    detail: str


@dataclass(frozen=True)
class Resource:
    """Catalog entry: ``youtube``, ``website``, ``workshop`` or other guide type."""

    type: str
    link: str
    description: str | None = None


@dataclass(frozen=True)
class SelectedResource:
    title: str
    link: str
    emoji: str
    description: str


@dataclass(frozen=True)
class ImprovementReport:
    """Everything the /improve command renders for one player."""

    player_name: str
    tier: BenchmarkTier
    areas: tuple[ImprovementArea, ...]  # worst first
    focus_areas: tuple[ImprovementArea, ...]
    side_balance: SideBalance
    cross_insights: tuple[CrossInsight, ...]
    side_insights: SideSpecificInsights
    resources: tuple[SelectedResource, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "player_name": self.player_name,
            "tier": self.tier.name,
            "areas": [a.to_dict() for a in self.areas],
            "focus_areas": [a.category.value for a in self.focus_areas],
            "side_balance": {
                "has_imbalance": self.side_balance.has_imbalance,
                "weak_side": self.side_balance.weak_side.value
                if self.side_balance.weak_side
                else None,
                "advice": self.side_balance.advice,
            },
            "cross_insights": [{"label": c.label, "detail": c.detail} for c in self.cross_insights],
            "side_insights": self.side_insights.to_dict(),
            "resources": [
                {"title": r.title, "link": r.link, "emoji": r.emoji, "description": r.description}
                for r in self.resources
            ],
        }
