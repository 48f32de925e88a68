"""
Letter grades (S, A, B, C, D, F) for summary statistics.

Used by the /stats and /recent views and by match notifications. Rate-type
stats (win rate, headshot %, first-kill, clutch, multi-kill, smoke success)
are passed as decimals and graded on their percentage value.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from leetcoach.analysis.normalize import format_percentage


@dataclass(frozen=True)
class Grade:
    letter: str
    color: int  # Discord embed color
    emoji: str
    description: str


GRADES = MappingProxyType(
    {
        "S": Grade("S", 0xFF6B00, "🔥", "Exceptional"),
        "A": Grade("A", 0x00FF00, "⭐", "Excellent"),
        "B": Grade("B", 0x90EE90, "✨", "Good"),
        "C": Grade("C", 0xFFFF00, "👍", "Average"),
        "D": Grade("D", 0xFFA500, "👎", "Below Average"),
        "F": Grade("F", 0xFF0000, "💀", "Poor"),
    }
)


class StatKind(str, Enum):
    KILL_DEATH_RATIO = "kd_ratio"
    DAMAGE_PER_ROUND = "adr"
    HEADSHOT_RATE = "headshot_rate"
    WIN_RATE = "win_rate"
    RATING = "rating"
    FIRST_KILL_RATE = "first_kill_rate"
    CLUTCH_RATE = "clutch_rate"
    MULTI_KILL_RATE = "multi_kill_rate"
    UTILITY_DAMAGE = "utility_damage"
    SMOKE_SUCCESS_RATE = "smoke_success_rate"


# S, A, B, C, D lower bounds; anything below D is F
THRESHOLDS: dict[StatKind, tuple[float, float, float, float, float]] = {
    StatKind.KILL_DEATH_RATIO: (1.50, 1.25, 1.10, 0.95, 0.80),
    StatKind.DAMAGE_PER_ROUND: (85, 75, 65, 55, 45),
    StatKind.HEADSHOT_RATE: (60, 50, 40, 30, 20),
    StatKind.WIN_RATE: (70, 60, 55, 50, 45),
    StatKind.RATING: (1.30, 1.15, 1.05, 0.95, 0.85),
    StatKind.FIRST_KILL_RATE: (15, 12, 9, 6, 3),
    StatKind.CLUTCH_RATE: (25, 20, 15, 12, 8),
    StatKind.MULTI_KILL_RATE: (25, 20, 15, 12, 8),
    StatKind.UTILITY_DAMAGE: (8, 6, 4, 3, 2),
    StatKind.SMOKE_SUCCESS_RATE: (80, 70, 60, 50, 40),
}

RATE_KINDS = frozenset(
    {
        StatKind.HEADSHOT_RATE,
        StatKind.WIN_RATE,
        StatKind.FIRST_KILL_RATE,
        StatKind.CLUTCH_RATE,
        StatKind.MULTI_KILL_RATE,
        StatKind.SMOKE_SUCCESS_RATE,
    }
)


@dataclass(frozen=True)
class GradedStat:
    value: float
    formatted: str
    grade: Grade

    def display(self) -> str:
        return f"{self.grade.emoji} **{self.formatted}** ({self.grade.letter})"


def letter_for(value: float, thresholds: tuple[float, ...]) -> Grade:
    for letter, bound in zip("SABCD", thresholds):
        if value >= bound:
            return GRADES[letter]
    return GRADES["F"]


def grade_stat(value: float, kind: StatKind | str) -> GradedStat:
    """Grade one stat; rate kinds take decimals (0.55 = 55%)."""
    kind = StatKind(kind)
    if kind in RATE_KINDS:
        return GradedStat(value, format_percentage(value, 1), letter_for(value * 100, THRESHOLDS[kind]))

    if kind in (StatKind.DAMAGE_PER_ROUND, StatKind.UTILITY_DAMAGE):
        formatted = f"{value:.1f}"
    else:
        formatted = f"{value:.2f}"
    return GradedStat(value, formatted, letter_for(value, THRESHOLDS[kind]))


def _clamp(score: float) -> float:
    return min(max(score, 0.0), 5.0)


OVERALL_WEIGHTS = MappingProxyType(
    {
        "rating": 0.25,
        "kd_ratio": 0.20,
        "adr": 0.15,
        "win_rate": 0.25,
        "headshot_rate": 0.05,
        "first_kill_rate": 0.05,
        "clutch_rate": 0.05,
    }
)


def overall_grade(
    kd_ratio: float,
    adr: float,
    rating: float,
    win_rate: float,
    headshot_rate: float,
    first_kill_rate: float | None = None,
    clutch_rate: float | None = None,
) -> GradedStat:
    """
    Weighted overall grade on a 0-5 score.

    Rates are decimals. Missing first-kill or clutch rates score a neutral 2.5.
    """
    scores = {
        "rating": _clamp((rating - 0.5) * 2.5),
        "kd_ratio": _clamp((kd_ratio - 0.5) * 2.5),
        "adr": _clamp((adr - 30) / 15),
        "win_rate": _clamp((win_rate * 100 - 20) / 12),
        "headshot_rate": _clamp((headshot_rate * 100 - 15) / 12),
        "first_kill_rate": _clamp((first_kill_rate * 100 - 2) / 6) if first_kill_rate else 2.5,
        "clutch_rate": _clamp((clutch_rate * 100 - 5) / 8) if clutch_rate else 2.5,
    }
    weighted = sum(scores[name] * weight for name, weight in OVERALL_WEIGHTS.items())

    if weighted >= 4.0:
        grade = GRADES["S"]
    elif weighted >= 3.2:
        grade = GRADES["A"]
    elif weighted >= 2.4:
        grade = GRADES["B"]
    elif weighted >= 1.8:
        grade = GRADES["C"]
    elif weighted >= 1.0:
        grade = GRADES["D"]
    else:
        grade = GRADES["F"]

    return GradedStat(weighted, f"{weighted / 5 * 100:.0f}%", grade)


def match_rating_emoji(rating: float) -> str:
    """Emoji for a single-match Leetify rating."""
    return letter_for(rating, THRESHOLDS[StatKind.RATING]).emoji


def progress_bar(value: float, maximum: float, length: int = 10) -> str:
    fraction = min(value / maximum, 1.0) if maximum else 0.0
    filled = round(max(fraction, 0.0) * length)
    return "█" * filled + "░" * (length - filled)
