"""Tests for the SQLite persistence layer."""

from datetime import UTC, datetime, timedelta

import pytest

from leetcoach.infra import database
from leetcoach.infra.database import Database

DISCORD_ID = "111111111111111111"
STEAM_ID = "76561198083722517"


@pytest.fixture
def db(tmp_path):
    """Initialized database in a temporary directory."""
    store = Database(tmp_path / "data" / "test.db")
    store.initialize()
    yield store
    store.close()


class TestLifecycle:
    """Tests for initialization and health."""

    def test_requires_initialize(self, tmp_path):
        """Every operation raises before initialize()."""
        store = Database(tmp_path / "test.db")
        assert not store.is_initialized
        assert store.health_check() is False
        with pytest.raises(RuntimeError, match="not initialized"):
            store.get_user(DISCORD_ID)

    def test_initialize_creates_file(self, db, tmp_path):
        """initialize() creates the parent directory and database file."""
        assert (tmp_path / "data" / "test.db").exists()
        assert db.health_check() is True

    def test_close(self, db):
        """close() returns the database to the uninitialized state."""
        db.close()
        assert not db.is_initialized


class TestUsers:
    """Tests for account links."""

    def test_link_and_get(self, db):
        """A new link is created and can be read back by either id."""
        assert db.link_user(DISCORD_ID, STEAM_ID, display_name="Player") is True
        user = db.get_user(DISCORD_ID)
        assert user["steam_id"] == STEAM_ID
        assert user["display_name"] == "Player"
        assert user["preferences"] == {}
        assert db.get_user_by_steam_id(STEAM_ID)["discord_id"] == DISCORD_ID

    def test_relink_updates(self, db):
        """Linking again updates the existing row."""
        db.link_user(DISCORD_ID, STEAM_ID)
        assert db.link_user(DISCORD_ID, "76561198000000000") is False
        assert db.get_user(DISCORD_ID)["steam_id"] == "76561198000000000"

    def test_update_user(self, db):
        """Known fields update, unknown users and fields are reported."""
        db.link_user(DISCORD_ID, STEAM_ID)
        assert db.update_user(DISCORD_ID, display_name="New", preferences={"dm": True}) is True
        user = db.get_user(DISCORD_ID)
        assert user["display_name"] == "New"
        assert user["preferences"] == {"dm": True}
        assert db.update_user("nobody", display_name="x") is False
        with pytest.raises(ValueError):
            db.update_user(DISCORD_ID, is_admin=True)

    def test_failed_update_is_rolled_back(self, db):
        """An update that fails part way leaves the stored user unchanged."""
        db.link_user(DISCORD_ID, STEAM_ID, display_name="Player")
        with pytest.raises(ValueError):
            db.update_user(DISCORD_ID, display_name="Changed", is_admin=True)
        assert db.get_user(DISCORD_ID)["display_name"] == "Player"

    def test_unlink_removes_watches(self, db):
        """Unlinking also removes the user's watches."""
        db.link_user(DISCORD_ID, STEAM_ID)
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)
        assert db.unlink_user(DISCORD_ID) is True
        assert db.get_user(DISCORD_ID) is None
        assert db.get_user_watches(DISCORD_ID) == []
        assert db.unlink_user(DISCORD_ID) is False


class TestCache:
    """Tests for the API response cache."""

    def test_set_and_get(self, db):
        """Cached data round-trips through JSON."""
        db.set_cached("key", {"a": [1, 2]}, ttl_seconds=60)
        assert db.get_cached("key") == {"a": [1, 2]}
        assert db.get_cached("missing") is None

    def test_overwrite(self, db):
        """Setting a key again replaces its data."""
        db.set_cached("key", 1)
        db.set_cached("key", 2)
        assert db.get_cached("key") == 2

    def test_expired_entries(self, db):
        """Expired entries are not returned and can be cleared."""
        db.set_cached("old", {"x": 1}, ttl_seconds=-1)
        db.set_cached("new", {"x": 2}, ttl_seconds=60)
        assert db.get_cached("old") is None
        assert db.clear_expired_cache() == 1
        assert db.get_cached("new") == {"x": 2}


class TestSettingsAndUsage:
    """Tests for guild settings and command usage."""

    def test_guild_settings(self, db):
        """Unknown guilds read as empty settings."""
        assert db.get_guild_settings("g") == {}
        db.set_guild_settings("g", {"prefix": "!"})
        assert db.get_guild_settings("g") == {"prefix": "!"}

    def test_command_stats(self, db):
        """Command executions are counted per name."""
        db.log_command("improve", DISCORD_ID, execution_time_ms=120)
        db.log_command("improve", DISCORD_ID, success=False, error_message="boom")
        db.log_command("stats", DISCORD_ID)
        assert db.get_command_stats() == {"improve": 2, "stats": 1}


class TestWatches:
    """Tests for match notification watches."""

    def test_set_is_idempotent_per_channel(self, db):
        """Watching the same channel twice keeps one row."""
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)
        assert len(db.get_user_watches(DISCORD_ID)) == 1
        watch = db.get_user_watch(DISCORD_ID, "222")
        assert watch["enabled"] is True
        assert watch["created_at"] is not None

    def test_guild_filter(self, db):
        """Watches can be listed for a single guild."""
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)
        db.set_user_watch(DISCORD_ID, "444", "555", STEAM_ID)
        assert len(db.get_user_watches(DISCORD_ID)) == 2
        assert [w["channel_id"] for w in db.get_user_watches(DISCORD_ID, "555")] == ["444"]
        assert len(db.get_all_active_watches()) == 2

    def test_remove(self, db):
        """Removing reports whether a watch existed."""
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)
        assert db.remove_user_watch(DISCORD_ID, "222") is True
        assert db.remove_user_watch(DISCORD_ID, "222") is False


class TestMatchTracking:
    """Tests for last-match tracking and monitoring selection."""

    def test_update_last_match_stores_naive_utc(self, db):
        """Aware datetimes are stored as naive UTC."""
        finished = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
        db.update_last_match(DISCORD_ID, STEAM_ID, "match-1", finished)
        row = db.get_last_match(DISCORD_ID, STEAM_ID)
        assert row["last_match_id"] == "match-1"
        assert row["last_match_date"] == "2025-03-01T12:00:00"

    def test_last_checked_keeps_last_match(self, db):
        """Stamping the check time does not clear the stored match."""
        db.update_last_match(DISCORD_ID, STEAM_ID, "match-1", datetime(2025, 3, 1, tzinfo=UTC))
        db.update_last_checked(DISCORD_ID, STEAM_ID)
        row = db.get_last_match(DISCORD_ID, STEAM_ID)
        assert row["last_match_id"] == "match-1"
        assert row["last_checked"] is not None

    def test_never_checked_users_are_due(self, db):
        """A fresh watch is due once, even with several channels."""
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)
        db.set_user_watch(DISCORD_ID, "444", "555", STEAM_ID)
        due = db.users_for_match_monitoring(15)
        assert due == [
            {
                "discord_id": DISCORD_ID,
                "steam_id": STEAM_ID,
                "last_match_id": None,
                "last_match_date": None,
            }
        ]

    def test_recently_checked_users_are_skipped(self, db):
        """Users checked within the interval are not due."""
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)
        db.update_last_checked(DISCORD_ID, STEAM_ID)
        assert db.users_for_match_monitoring(15) == []
        assert len(db.users_for_match_monitoring(-1)) == 1

    def test_due_user_carries_last_match(self, db):
        """The stored last match is returned with the due user."""
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)
        finished = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
        db.update_last_match(DISCORD_ID, STEAM_ID, "match-1", finished)
        (due,) = db.users_for_match_monitoring(15)
        assert due["last_match_id"] == "match-1"
        assert due["last_match_date"] == finished.replace(tzinfo=None)

    def test_due_again_on_next_cycle(self, db, monkeypatch):
        """A user stamped just after a cycle starts is due when the next cycle starts."""
        cycle_start = datetime(2025, 3, 1, 12, 0, 0)
        db.set_user_watch(DISCORD_ID, "222", "333", STEAM_ID)

        monkeypatch.setattr(database, "_utc_now", lambda: cycle_start + timedelta(seconds=3))
        db.update_last_checked(DISCORD_ID, STEAM_ID)

        next_cycle = cycle_start + timedelta(minutes=15, milliseconds=50)
        monkeypatch.setattr(database, "_utc_now", lambda: next_cycle)
        assert [u["steam_id"] for u in db.users_for_match_monitoring(15)] == [STEAM_ID]

        monkeypatch.setattr(database, "_utc_now", lambda: cycle_start + timedelta(minutes=10))
        assert db.users_for_match_monitoring(15) == []
