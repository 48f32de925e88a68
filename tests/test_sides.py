"""Tests for CT/T side analysis."""

from leetcoach.analysis.models import Metric, Side
from leetcoach.analysis.sides import SIDE_IMBALANCE_GAP, analyze_side_balance, analyze_sides

M = Metric


class TestSideBalance:
    """Tests for side imbalance detection."""

    def test_weak_ct_side(self, benchmark_stats):
        """A CT rating well under T flags CT as the weak side."""
        stats = {
            **benchmark_stats,
            M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE: 20,
            M.T_OPENING_DUEL_SUCCESS_PERCENTAGE: 50,
        }
        balance = analyze_side_balance(-0.05, 0.01, stats)
        assert balance.has_imbalance is True
        assert balance.weak_side is Side.CT
        assert balance.advice.startswith("Your CT side is weaker than T side (-5.00 vs +1.00).")
        assert "CT opening duel success: 20.0%" in balance.advice

    def test_weak_t_side(self, benchmark_stats):
        """A T rating under CT flags T as the weak side."""
        balance = analyze_side_balance(0.04, -0.03, benchmark_stats)
        assert balance.weak_side is Side.T
        assert "T opening duel success: 35.0%" in balance.advice

    def test_small_gap_is_noise(self, benchmark_stats):
        """Side ratings closer than the gap are balanced."""
        balance = analyze_side_balance(0.01, 0.0, benchmark_stats)
        assert balance.has_imbalance is False
        assert balance.weak_side is None
        assert balance.advice == ""

    def test_gap_boundary_is_inclusive(self, benchmark_stats):
        """A gap of exactly the threshold counts, despite float noise."""
        assert SIDE_IMBALANCE_GAP == 0.02
        assert analyze_side_balance(0.01, -0.01, benchmark_stats).has_imbalance
        # 0.03 - 0.01 is 0.019999999999999997 in binary floating point
        assert analyze_side_balance(0.03, 0.01, benchmark_stats).weak_side is Side.T


class TestSideDeepDive:
    """Tests for per-side insights."""

    def test_failing_ct_duels(self, benchmark_stats):
        """Very low CT duel success adds the severe CT notes."""
        stats = {**benchmark_stats, M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE: 20}
        insights = analyze_sides(stats, 0.0, 0.0)
        assert insights.ct_insights[0].startswith("CT opening duels are failing badly (20.0%)")
        assert "ct_angles" in insights.ct_resource_tags
        assert "crosshair_placement" in insights.ct_resource_tags

    def test_low_rating_with_reasonable_stats(self, benchmark_stats):
        """A low side rating with healthy stats triggers the diagnostic."""
        stats = {
            **benchmark_stats,
            M.CT_OPENING_DUEL_SUCCESS_PERCENTAGE: 50,
            M.CT_OPENING_AGGRESSION_SUCCESS_RATE: 50,
        }
        insights = analyze_sides(stats, -0.04, 0.0)
        assert insights.ct_insights[0].startswith(
            "CT side performance: 🟡 Below average (-4.00) despite reasonable individual stats"
        )
        assert insights.ct_resource_tags == ("ct_positioning", "ct_angles", "ct_fundamentals")

    def test_low_t_rating_with_reasonable_stats(self, benchmark_stats):
        """The T diagnostic fires before the strong-entry note is added."""
        stats = {
            **benchmark_stats,
            M.T_OPENING_DUEL_SUCCESS_PERCENTAGE: 50,
            M.T_OPENING_AGGRESSION_SUCCESS_RATE: 50,
        }
        insights = analyze_sides(stats, 0.0, -0.04)
        assert insights.t_insights[0].startswith("T side performance: 🟡 Below average (-4.00)")
        assert insights.t_resource_tags[:4] == (
            "t_positioning",
            "t_utility",
            "demo_review",
            "t_fundamentals",
        )

    def test_strong_t_side(self, benchmark_stats):
        """High T duel and aggression rates get the strong-entry note."""
        stats = {
            **benchmark_stats,
            M.T_OPENING_DUEL_SUCCESS_PERCENTAGE: 50,
            M.T_OPENING_AGGRESSION_SUCCESS_RATE: 50,
        }
        insights = analyze_sides(stats, 0.0, 0.0)
        assert insights.t_insights[0].startswith("Strong T-side entry skills (50.0% opening duels")
        assert insights.t_resource_tags == ("communication", "entry_fragger", "demo_review")

    def test_jiggle_peek_is_a_t_drill(self, benchmark_stats):
        """Weak T duels include the jiggle peek drill on the T side only."""
        stats = {**benchmark_stats, M.T_OPENING_DUEL_SUCCESS_PERCENTAGE: 30}
        insights = analyze_sides(stats, 0.0, 0.0)
        jiggle = "Practice jiggle peeking: gather info before committing to the duel"
        assert jiggle in insights.t_drills
        assert jiggle not in insights.ct_drills

    def test_he_misuse(self, benchmark_stats):
        """Low HE enemy damage with team damage adds an HE note on CT."""
        stats = {**benchmark_stats, M.HE_FOES_DAMAGE_AVG: 10, M.HE_FRIENDS_DAMAGE_AVG: 5}
        insights = analyze_sides(stats, 0.0, 0.0)
        assert any(line.startswith("HE grenades hitting teammates") for line in insights.ct_insights)
