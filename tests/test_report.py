"""Tests for improvement report assembly."""

import json

import pytest

from leetcoach.analysis.models import AreaStatus, Category, Metric, RawProfile, Side
from leetcoach.analysis.report import (
    MAX_FOCUS_AREAS,
    build_report,
    display_ratings,
    to_display_100,
)
from leetcoach.analysis.resources import ResourceCatalog


class TestRawProfile:
    """Tests for building RawProfile from the API payload."""

    def test_required_blocks(self, make_payload):
        """Both rating and stats blocks are required."""
        payload = make_payload()
        assert RawProfile.has_required_blocks(payload)
        assert not RawProfile.has_required_blocks({**payload, "stats": None})
        assert not RawProfile.has_required_blocks({"rating": {}})
        assert not RawProfile.has_required_blocks(None)

    def test_missing_values_read_as_zero(self, make_payload):
        """Missing and malformed fields become 0.0."""
        payload = make_payload(rating={"aim": None}, stats={"spray_accuracy": "n/a"})
        del payload["stats"]["preaim"]
        profile = RawProfile.from_api(payload)
        assert profile.ratings.aim == 0.0
        assert profile.stat(Metric.SPRAY_ACCURACY) == 0.0
        assert profile.stat(Metric.PREAIM) == 0.0

    def test_name_and_ranks(self, make_payload):
        """Name defaults and ranks are parsed."""
        payload = make_payload(ranks={"premier": "16500", "faceit": None})
        payload["name"] = ""
        profile = RawProfile.from_api(payload)
        assert profile.name == "Unknown Player"
        assert profile.ranks.premier == 16500
        assert profile.ranks.faceit is None
        assert profile.steam64_id == "76561198123456789"


class TestDisplayScale:
    """Tests for rating display conversion."""

    @pytest.mark.parametrize("value,expected", [(0.75, 75), (0.2, 20), (1.0, 100), (42.5, 43), (0, 0)])
    def test_to_display_100(self, value, expected):
        """Decimal ratings scale to 0-100, larger values are kept, halves round up."""
        assert to_display_100(value) == expected

    def test_relative_ratings_scale_by_100(self, make_profile):
        """Clutch and opening are multiplied by 100 but not rounded."""
        ratings = display_ratings(make_profile(rating={"clutch": 0.0961, "opening": -0.0214}))
        assert ratings["clutch"] == pytest.approx(9.61)
        assert ratings["opening"] == pytest.approx(-2.14)


class TestBuildReport:
    """Tests for build_report."""

    def test_strong_player_all_ok(self, make_profile, catalog):
        """A player above every benchmark has no real issues and three fallback focus areas."""
        report = build_report(make_profile(), catalog)
        assert len(report.areas) == 5
        assert all(area.status is AreaStatus.OK for area in report.areas)
        assert len(report.focus_areas) == MAX_FOCUS_AREAS
        assert report.side_balance.has_imbalance is False

    def test_areas_sorted_worst_first(self, make_profile, catalog):
        """Areas are ordered by ascending rating."""
        report = build_report(make_profile(rating={"aim": 0.40, "utility": 0.90, "clutch": -0.05}), catalog)
        ratings = [area.rating for area in report.areas]
        assert ratings == sorted(ratings)
        assert report.areas[0].category is Category.CLUTCH

    def test_extremely_low_clutch_is_focused(self, make_profile, catalog):
        """A critical clutch rating becomes the first focus area."""
        report = build_report(make_profile(rating={"clutch": -0.15}), catalog)
        clutch = report.focus_areas[0]
        assert clutch.category is Category.CLUTCH
        assert clutch.issues[0].startswith("Clutch rating is extremely low (-15.00)")

    def test_side_imbalance_forces_positioning(self, make_profile, catalog):
        """Positioning joins the focus areas when the sides are imbalanced."""
        report = build_report(
            make_profile(
                rating={"ct_leetify": -0.05, "t_leetify": 0.01},
                stats={"ct_opening_duel_success_percentage": 20, "t_opening_duel_success_percentage": 50},
            ),
            catalog,
        )
        assert report.side_balance.weak_side is Side.CT
        assert Category.POSITIONING in [a.category for a in report.focus_areas]
        positioning = next(a for a in report.areas if a.category is Category.POSITIONING)
        assert positioning.issues[0].startswith("Your CT side is your weak point")

    def test_issue_under_ceiling_is_focused(self, make_profile, catalog):
        """A non-critical area under 65 with a real issue is focused."""
        report = build_report(make_profile(rating={"aim": 0.50}, stats={"accuracy_enemy_spotted": 10}), catalog)
        assert [a.category for a in report.focus_areas] == [Category.AIM]

    def test_focus_count_bounds(self, make_profile, catalog):
        """Focus areas are always between one and three."""
        profiles = [
            make_profile(),
            make_profile(rating={"aim": 0.1, "positioning": 0.1, "utility": 0.1, "clutch": -0.2, "opening": -0.2}),
            make_profile(stats={"accuracy_enemy_spotted": 5, "he_foes_damage_avg": 0}),
            make_profile(rating={"ct_leetify": 0.1, "t_leetify": -0.1}),
        ]
        for profile in profiles:
            assert 1 <= len(build_report(profile, catalog).focus_areas) <= MAX_FOCUS_AREAS

    def test_tier_follows_premier_rank(self, make_profile, catalog):
        """The Premier rank picks the benchmark tier; none picks the default."""
        assert build_report(make_profile(ranks={"premier": 16000}), catalog).tier.name == "15k+"
        assert build_report(make_profile(ranks={"premier": None}), catalog).tier.name == "10k–15k"
        assert build_report(make_profile(ranks={"premier": 5000}), catalog).tier.name == "Below 10k"

    def test_resources_are_capped(self, make_profile, catalog):
        """A weak player never gets more than four resources."""
        report = build_report(
            make_profile(
                rating={"aim": 0.1, "positioning": 0.1, "utility": 0.1, "clutch": -0.2, "opening": -0.2},
                stats={"accuracy_enemy_spotted": 5, "ct_opening_duel_success_percentage": 10},
            ),
            catalog,
        )
        assert 0 < len(report.resources) <= 4

    def test_resources_come_from_given_catalog(self, make_profile):
        """Resources are drawn only from the catalog passed in."""
        weak = make_profile(rating={"aim": 0.1, "clutch": -0.2}, stats={"accuracy_enemy_spotted": 5})
        assert build_report(weak, ResourceCatalog.from_dict({})).resources == ()

        only_aim = ResourceCatalog.from_dict({"aim_accuracy": [{"type": "youtube", "link": "https://example.com/aim"}]})
        links = [r.link for r in build_report(weak, only_aim).resources]
        assert links == ["https://example.com/aim"]

    def test_report_is_deterministic(self, make_profile, catalog):
        """The same input always gives an identical serialized report."""
        profile = make_profile(rating={"clutch": -0.08, "ct_leetify": -0.04, "t_leetify": 0.02})
        first = build_report(profile, catalog).to_dict()
        second = build_report(profile, catalog).to_dict()
        assert first == second
        assert json.dumps(first, ensure_ascii=False)
