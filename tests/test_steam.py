"""Tests for Steam ID parsing."""

import pytest

from leetcoach.integrations.steam import (
    STEAM64_MAX,
    format_steam_ids,
    is_valid_steam64,
    legacy_to_steam32,
    normalize_steam_id,
    require_steam64,
    steam32_to_legacy,
)

STEAM64 = "76561198083722517"
STEAM32 = "123456789"
LEGACY = "STEAM_0:1:61728394"


class TestNormalizeSteamId:
    """Tests for normalize_steam_id."""

    @pytest.mark.parametrize(
        "text",
        [
            STEAM64,
            STEAM32,
            LEGACY,
            f"https://steamcommunity.com/profiles/{STEAM64}",
            f"https://steamcommunity.com/profiles/{STEAM64}/",
            f"  {STEAM64}  ",
        ],
    )
    def test_accepted_formats(self, text):
        """Every accepted format resolves to the same account."""
        info = normalize_steam_id(text)
        assert info.is_valid
        assert info.steam64 == STEAM64
        assert info.steam32 == STEAM32
        assert info.steam_id == LEGACY
        assert info.profile_url == f"https://steamcommunity.com/profiles/{STEAM64}"

    @pytest.mark.parametrize(
        "text",
        ["", "not-an-id", "https://steamcommunity.com/id/somevanity", "STEAM_1:1:2", "76561197960265727"],
    )
    def test_rejected_formats(self, text):
        """Vanity URLs, garbage and out-of-range ids are invalid."""
        assert not normalize_steam_id(text).is_valid

    def test_require_steam64_raises(self):
        """require_steam64 raises ValueError for invalid input."""
        assert require_steam64(LEGACY) == STEAM64
        with pytest.raises(ValueError):
            require_steam64("garbage")

    @pytest.mark.parametrize(
        "text",
        [
            str(STEAM64_MAX + 1),
            "99999999999999999",
            f"https://steamcommunity.com/profiles/{STEAM64_MAX + 1}",
            "9999999999",
        ],
    )
    def test_above_account_range(self, text):
        """Ids past the last individual account are rejected in every format."""
        info = normalize_steam_id(text)
        assert not info.is_valid
        assert info.steam32 == ""

    def test_last_account_is_valid(self):
        """The top of the individual account range is still accepted."""
        info = normalize_steam_id(str(STEAM64_MAX))
        assert info.is_valid
        assert info.steam32 == "4294967295"


class TestConversions:
    """Tests for the individual conversions."""

    def test_legacy_round_trip(self):
        """Legacy ids encode the account id parity in Y."""
        assert steam32_to_legacy(STEAM32) == LEGACY
        assert legacy_to_steam32(LEGACY) == STEAM32

    def test_legacy_invalid(self):
        """Malformed legacy ids raise."""
        with pytest.raises(ValueError):
            legacy_to_steam32("STEAM_0:2:1")

    def test_is_valid_steam64(self):
        """Steam64 ids must be 17 digits within the individual account range."""
        assert is_valid_steam64(STEAM64)
        assert not is_valid_steam64("7656119808372251")
        assert not is_valid_steam64("76561197960265727")

    def test_format_steam_ids(self):
        """All three formats are listed."""
        text = format_steam_ids(STEAM64)
        assert f"**Steam32:** {STEAM32}" in text
        assert f"**SteamID:** {LEGACY}" in text
        assert format_steam_ids("nope") == "Invalid Steam ID"
