"""
Unit normalization for Leetify statistics.

The Leetify endpoints disagree on percentage formats:
- Profile API (/v3/profile): most percentages as whole numbers (34.39 = 34.39%)
- Match API (/v3/profile/matches): most percentages as decimals (0.3439)
- Some fields (winrate, raw averages, relative ratings) are never percentages

Everything inside the engine works on one canonical decimal scale; the helpers
at the bottom convert back to display strings.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from leetcoach.analysis.models import Endpoint, Metric, coerce_number


@dataclass(frozen=True)
class FieldFormatSpec:
    """Which fields an endpoint returns already as decimals vs. as whole percentages."""

    decimal_fields: frozenset[str]
    percentage_fields: frozenset[str]


FIELD_FORMATS = MappingProxyType(
    {
        Endpoint.PROFILE: FieldFormatSpec(
            decimal_fields=frozenset(
                {
                    "winrate",
                    "preaim",
                    "utility_on_death_avg",
                    "he_foes_damage_avg",
                    "he_friends_damage_avg",
                    "reaction_time_ms",
                    "flashbang_hit_foe_avg_duration",
                    "flashbang_thrown",
                    "trade_kill_opportunities_per_round",
                    "flashbang_hit_foe_per_flashbang",
                    "flashbang_hit_friend_per_flashbang",
                    "clutch",
                    "opening",
                }
            ),
            percentage_fields=frozenset(
                {
                    "accuracy_enemy_spotted",
                    "accuracy_head",
                    "counter_strafing_good_shots_ratio",
                    "ct_opening_aggression_success_rate",
                    "ct_opening_duel_success_percentage",
                    "t_opening_aggression_success_rate",
                    "t_opening_duel_success_percentage",
                    "flashbang_leading_to_kill",
                    "traded_deaths_success_percentage",
                    "trade_kills_success_percentage",
                    "spray_accuracy",
                }
            ),
        ),
        Endpoint.MATCH: FieldFormatSpec(
            decimal_fields=frozenset(
                {
                    "accuracy_enemy_spotted",
                    "accuracy_head",
                    "counter_strafing_shots_good_ratio",
                    "trade_kill_attempts_percentage",
                    "trade_kills_success_percentage",
                    "traded_death_attempts_percentage",
                    "traded_deaths_success_percentage",
                    "rounds_survived_percentage",
                    "spray_accuracy",
                }
            ),
            # The match endpoint already sends these as decimals despite the name
            percentage_fields=frozenset(
                {
                    "ct_opening_duel_success_percentage",
                    "t_opening_duel_success_percentage",
                }
            ),
        ),
    }
)


def _field_key(field: Metric | str) -> str:
    return field.value if isinstance(field, Metric) else str(field)


def normalize(value: Any, field: Metric | str, endpoint: Endpoint | str = Endpoint.PROFILE) -> float:
    """
    Normalize a raw API value to the canonical decimal scale.

    Args:
        value: Raw value from the API; None/NaN/non-numeric reads as 0.0
        field: Metric or plain field name
        endpoint: Endpoint the value came from

    Returns:
        Decimal value (0.0-1.0 for percentages, raw magnitude otherwise)
    """
    number = coerce_number(value)
    endpoint = Endpoint(endpoint)
    key = _field_key(field)
    spec = FIELD_FORMATS[endpoint]

    if key in spec.decimal_fields:
        return number
    if key in spec.percentage_fields:
        return number / 100 if endpoint is Endpoint.PROFILE else number

    # Unknown field: anything above 1 is taken as percentage-scaled
    return number / 100 if number > 1 else number


# ============================================================================
# Display helpers
# ============================================================================


def format_percentage(decimal_value: float, digits: int = 1) -> str:
    """Format a decimal (0.0-1.0) as ``"34.4%"``."""
    return f"{decimal_value * 100:.{digits}f}%"


def format_api_percentage(
    value: Any,
    field: Metric | str,
    endpoint: Endpoint | str = Endpoint.PROFILE,
    digits: int = 1,
) -> str:
    """Format a raw API value as a display percentage with endpoint awareness."""
    return format_percentage(normalize(value, field, endpoint), digits)


def api_percentage_value(
    value: Any,
    field: Metric | str,
    endpoint: Endpoint | str = Endpoint.PROFILE,
    digits: int = 1,
) -> float:
    """Percentage (0-100) of a raw API value, rounded the same way it is displayed."""
    return float(format_api_percentage(value, field, endpoint, digits).rstrip("%"))


def format_relative_rating(rating: float) -> str:
    """Format a relative rating such as clutch/opening: ``+9.61`` or ``-2.14``."""
    sign = "+" if rating >= 0 else ""
    return f"{sign}{rating:.2f}"


def relative_rating_level(rating: float) -> str:
    """Performance level for a relative rating on the display scale."""
    if rating >= 8.0:
        return "Excellent"
    if rating >= 3.0:
        return "Good"
    if rating >= -2.0:
        return "Average"
    if rating >= -6.0:
        return "Below Average"
    return "Poor"
