"""Tests for letter grading."""

import pytest

from leetcoach.analysis.grading import (
    GRADES,
    StatKind,
    grade_stat,
    letter_for,
    match_rating_emoji,
    overall_grade,
    progress_bar,
)


class TestGradeStat:
    """Tests for single-stat grading."""

    @pytest.mark.parametrize(
        "value,letter",
        [(1.5, "S"), (1.3, "A"), (1.1, "B"), (0.95, "C"), (0.8, "D"), (0.79, "F")],
    )
    def test_kd_thresholds(self, value, letter):
        """Lower bounds are inclusive."""
        assert grade_stat(value, StatKind.KILL_DEATH_RATIO).grade.letter == letter

    def test_rates_take_decimals(self):
        """Rate kinds are graded on their percentage value."""
        graded = grade_stat(0.55, StatKind.WIN_RATE)
        assert graded.grade.letter == "B"
        assert graded.formatted == "55.0%"

    def test_adr_formatting(self):
        """ADR keeps one decimal place."""
        graded = grade_stat(82.345, "adr")
        assert graded.formatted == "82.3"
        assert graded.grade.letter == "A"

    def test_display(self):
        """Display combines emoji, value and letter."""
        assert grade_stat(1.6, StatKind.RATING).display() == "🔥 **1.60** (S)"

    def test_unknown_kind_raises(self):
        """Unknown stat kinds are rejected."""
        with pytest.raises(ValueError):
            grade_stat(1.0, "not_a_stat")

    def test_letter_for_falls_through_to_f(self):
        """Values under every bound get F."""
        assert letter_for(-1, (5, 4, 3, 2, 1)) is GRADES["F"]


class TestOverallGrade:
    """Tests for the weighted overall grade."""

    def test_top_player_gets_s(self):
        """Every component at its ceiling scores 5/5."""
        result = overall_grade(
            kd_ratio=3.0, adr=120, rating=3.0, win_rate=1.0, headshot_rate=0.8,
            first_kill_rate=0.5, clutch_rate=0.5,
        )
        assert result.value == pytest.approx(5.0)
        assert result.formatted == "100%"
        assert result.grade.letter == "S"

    def test_weak_player_gets_f(self):
        """Weak components with missing optional rates grade F."""
        result = overall_grade(kd_ratio=0.4, adr=30, rating=0.4, win_rate=0.2, headshot_rate=0.15)
        assert result.value == pytest.approx(0.25)
        assert result.grade.letter == "F"

    def test_better_stats_never_score_lower(self):
        """Improving a component never lowers the score."""
        base = dict(kd_ratio=1.0, adr=70, rating=1.0, win_rate=0.5, headshot_rate=0.4)
        worse = overall_grade(**base).value
        better = overall_grade(**{**base, "adr": 90}).value
        assert better > worse


class TestHelpers:
    """Tests for display helpers."""

    def test_match_rating_emoji(self):
        """Match ratings map onto the rating grade emoji."""
        assert match_rating_emoji(1.35) == "🔥"
        assert match_rating_emoji(0.5) == "💀"

    def test_progress_bar(self):
        """Bars fill proportionally and clamp at the maximum."""
        assert progress_bar(5, 10) == "█████░░░░░"
        assert progress_bar(20, 10) == "██████████"
        assert progress_bar(1, 0) == "░" * 10
