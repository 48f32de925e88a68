"""Tests for the match monitor."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import discord

from leetcoach.core.config import MonitorConfig
from leetcoach.integrations.leetify import LeetifyAPIError, MatchSummary
from leetcoach.monitor import MatchMonitor, as_utc, eligible_matches

DISCORD_ID = "111111111111111111"
STEAM_ID = "76561198083722517"
WATCH_STARTED = datetime(2025, 3, 1, tzinfo=UTC)


def _match(match_id, day):
    finished = WATCH_STARTED + timedelta(days=day) if day is not None else None
    return MatchSummary(
        match_id=match_id,
        finished_at=finished,
        map_name="de_nuke",
        data_source="matchmaking",
        result="win",
        kills=20,
        deaths=10,
        rounds_count=20,
    )


# Newest first, as the API returns them
MATCHES = [_match("c", 2), _match("b", 1), _match("a", -1)]


class TestAsUtc:
    """Tests for timestamp coercion."""

    def test_naive_is_utc(self):
        """Naive datetimes are taken as UTC."""
        assert as_utc(datetime(2025, 3, 1)) == WATCH_STARTED

    def test_iso_string(self):
        """ISO strings, including a Z suffix, are parsed."""
        assert as_utc("2025-03-01T00:00:00Z") == WATCH_STARTED
        assert as_utc("2025-03-01T00:00:00") == WATCH_STARTED

    def test_empty(self):
        """Empty values stay None."""
        assert as_utc(None) is None
        assert as_utc("") is None


class TestEligibleMatches:
    """Tests for choosing which matches to announce."""

    def test_only_after_watch_started(self):
        """Matches finished before the watch began are ignored."""
        assert [m.match_id for m in eligible_matches(MATCHES, WATCH_STARTED)] == ["c", "b"]

    def test_after_last_match_date(self):
        """With a stored date only newer matches qualify."""
        last = WATCH_STARTED + timedelta(days=1)
        result = eligible_matches(MATCHES, WATCH_STARTED, "b", last)
        assert [m.match_id for m in result] == ["c"]

    def test_date_wins_over_id(self):
        """A stored date alone decides, even when the id differs."""
        last = WATCH_STARTED + timedelta(days=2)
        assert eligible_matches(MATCHES, WATCH_STARTED, "zzz", last) == []

    def test_id_only(self):
        """Without a stored date the last id is excluded."""
        result = eligible_matches(MATCHES, WATCH_STARTED, "c", None)
        assert [m.match_id for m in result] == ["b"]

    def test_unknown_finish_time(self):
        """Matches without a finish time are never announced."""
        assert eligible_matches([_match("x", None)], WATCH_STARTED) == []


def _monitor(db, client, channel):
    bot = MagicMock()
    bot.get_channel.return_value = channel
    bot.get_user.return_value = None
    config = MonitorConfig(interval_minutes=15, matches_per_check=5, delay_between_users_seconds=0)
    return MatchMonitor(bot, client, db, config)


def _db(last_match_id=None, last_match_date=None):
    db = MagicMock()
    db.users_for_match_monitoring.return_value = [
        {
            "discord_id": DISCORD_ID,
            "steam_id": STEAM_ID,
            "last_match_id": last_match_id,
            "last_match_date": last_match_date,
        }
    ]
    db.get_user_watches.return_value = [
        {"steam_id": STEAM_ID, "channel_id": "222", "created_at": "2025-03-01T00:00:00"},
        {"steam_id": "76561198000000000", "channel_id": "999", "created_at": "2025-01-01T00:00:00"},
    ]
    return db


def _channel():
    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock()
    return channel


class TestMatchMonitor:
    """Tests for one monitoring cycle."""

    def test_sends_new_matches_oldest_first(self):
        """New matches are announced oldest first and the newest is stored."""
        db = _db()
        client = MagicMock()
        client.get_player_matches = AsyncMock(return_value=MATCHES)
        channel = _channel()
        monitor = _monitor(db, client, channel)

        sent = asyncio.run(monitor.check_for_new_matches())

        assert sent == 2
        client.get_player_matches.assert_awaited_once_with(STEAM_ID, 5)
        urls = [call.kwargs["embed"].url for call in channel.send.call_args_list]
        assert urls == [
            "https://leetify.com/app/match-details/b/overview",
            "https://leetify.com/app/match-details/c/overview",
        ]
        db.update_last_match.assert_called_once_with(DISCORD_ID, STEAM_ID, "c", MATCHES[0].finished_at)
        db.update_last_checked.assert_called_once_with(DISCORD_ID, STEAM_ID)

    def test_nothing_new(self):
        """Already announced matches are not sent again."""
        db = _db("c", datetime(2025, 3, 3))
        client = MagicMock()
        client.get_player_matches = AsyncMock(return_value=MATCHES)
        channel = _channel()

        sent = asyncio.run(_monitor(db, client, channel).check_for_new_matches())

        assert sent == 0
        channel.send.assert_not_called()
        db.update_last_match.assert_not_called()
        db.update_last_checked.assert_called_once()

    def test_api_errors_do_not_stop_the_cycle(self):
        """A failing user is logged and still stamped as checked."""
        db = _db()
        client = MagicMock()
        client.get_player_matches = AsyncMock(side_effect=LeetifyAPIError(500, "boom"))

        sent = asyncio.run(_monitor(db, client, _channel()).check_for_new_matches())

        assert sent == 0
        db.update_last_checked.assert_called_once_with(DISCORD_ID, STEAM_ID)

    def test_no_users(self):
        """An empty watch list makes no API calls."""
        db = MagicMock()
        db.users_for_match_monitoring.return_value = []
        client = MagicMock()
        client.get_player_matches = AsyncMock()

        assert asyncio.run(_monitor(db, client, _channel()).check_for_new_matches()) == 0
        client.get_player_matches.assert_not_called()

    def test_missing_channel(self):
        """Notifications to unknown channels are skipped."""
        db = _db()
        client = MagicMock()
        client.get_player_matches = AsyncMock(return_value=MATCHES)

        assert asyncio.run(_monitor(db, client, None).check_for_new_matches()) == 0
        db.update_last_match.assert_called_once()

    def test_send_failure(self):
        """Discord errors while sending are reported as not sent."""
        channel = _channel()
        channel.send.side_effect = discord.HTTPException(MagicMock(status=403, reason="Forbidden"), "nope")
        monitor = _monitor(_db(), MagicMock(), channel)

        assert asyncio.run(monitor.send_notification("222", DISCORD_ID, MATCHES[0])) is False
