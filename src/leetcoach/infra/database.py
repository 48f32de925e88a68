"""
leetcoach persistence layer.

SQLite via the SQLAlchemy ORM. Stores:
- Discord account to Steam ID links
- Cached Leetify API responses with an expiry
- Per-guild settings and a command usage log
- Match notification watches and the last match seen per watched player

Call ``initialize()`` before use; every operation raises RuntimeError until then.
"""

import json
import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
    and_,
    create_engine,
    or_,
    text,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

# A user stamped mid-cycle is due again on the next cycle
CHECK_MARGIN = timedelta(seconds=30)


def _utc_now() -> datetime:
    """Current UTC time, naive, as SQLite stores it."""
    return datetime.now(UTC).replace(tzinfo=None)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# =============================================================================
# Models
# =============================================================================


class User(Base):
    """A Discord account linked to a Steam account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    discord_id = Column(String(32), unique=True, nullable=False, index=True)
    steam_id = Column(String(20), nullable=False, index=True)
    steam_profile_url = Column(String(200))
    display_name = Column(String(100))
    created_at = Column(DateTime, default=_utc_now)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)
    preferences_json = Column(Text, default="{}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "discord_id": self.discord_id,
            "steam_id": self.steam_id,
            "steam_profile_url": self.steam_profile_url,
            "display_name": self.display_name,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "preferences": json.loads(self.preferences_json or "{}"),
        }


class ApiCache(Base):
    __tablename__ = "api_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cache_key = Column(String(300), unique=True, nullable=False, index=True)
    data = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=_utc_now)


class GuildSettings(Base):
    __tablename__ = "guild_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    guild_id = Column(String(32), unique=True, nullable=False, index=True)
    settings_json = Column(Text, default="{}")
    created_at = Column(DateTime, default=_utc_now)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)


class CommandUsage(Base):
    """One executed slash command."""

    __tablename__ = "command_usage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    command_name = Column(String(50), nullable=False, index=True)
    user_id = Column(String(32), nullable=False, index=True)
    guild_id = Column(String(32))
    executed_at = Column(DateTime, default=_utc_now, index=True)
    execution_time_ms = Column(Integer)
    success = Column(Boolean, default=True)
    error_message = Column(Text)


class UserWatch(Base):
    """A channel that receives match notifications for one user."""

    __tablename__ = "user_watches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    discord_id = Column(String(32), nullable=False, index=True)
    channel_id = Column(String(32), nullable=False)
    guild_id = Column(String(32), nullable=False)
    steam_id = Column(String(20), nullable=False)
    enabled = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime, default=_utc_now)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)

    __table_args__ = (UniqueConstraint("discord_id", "channel_id", name="uq_watch_user_channel"),)

    def to_dict(self) -> dict[str, Any]:
        return {
            "discord_id": self.discord_id,
            "channel_id": self.channel_id,
            "guild_id": self.guild_id,
            "steam_id": self.steam_id,
            "enabled": self.enabled,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class UserLastMatch(Base):
    """Newest match already announced for a watched player."""

    __tablename__ = "user_last_matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    discord_id = Column(String(32), nullable=False)
    steam_id = Column(String(20), nullable=False)
    last_match_id = Column(String(100))
    last_match_date = Column(DateTime)
    last_checked = Column(DateTime, index=True)
    updated_at = Column(DateTime, default=_utc_now, onupdate=_utc_now)

    __table_args__ = (UniqueConstraint("discord_id", "steam_id", name="uq_last_match_user_steam"),)

    def to_dict(self) -> dict[str, Any]:
        return {
            "discord_id": self.discord_id,
            "steam_id": self.steam_id,
            "last_match_id": self.last_match_id,
            "last_match_date": _iso(self.last_match_date),
            "last_checked": _iso(self.last_checked),
        }


# =============================================================================
# Database
# =============================================================================


class Database:
    """Synchronous store for links, caches, settings and watches."""

    def __init__(self, db_path: Path | str | None = None):
        if db_path is None:
            from leetcoach.core.config import get_config

            db_path = get_config().database.path
        self.db_path = Path(db_path).expanduser()
        self.engine = None
        self.SessionLocal: sessionmaker | None = None

    @property
    def is_initialized(self) -> bool:
        return self.SessionLocal is not None

    def initialize(self) -> None:
        """Create the database file and tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            connect_args={"check_same_thread": False},
        )
        with self.engine.connect() as conn:
            conn.execute(text("PRAGMA journal_mode=WAL"))
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(f"Database initialized at: {self.db_path}")

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database connection closed")
        self.engine = None
        self.SessionLocal = None

    def get_session(self) -> Session:
        if self.SessionLocal is None:
            raise RuntimeError("Database not initialized")
        return self.SessionLocal()

    def health_check(self) -> bool:
        if not self.is_initialized:
            return False
        session = self.get_session()
        try:
            session.execute(text("SELECT 1"))
            return True
        finally:
            session.close()

    # =========================================================================
    # Users
    # =========================================================================

    def get_user(self, discord_id: str) -> dict[str, Any] | None:
        session = self.get_session()
        try:
            user = session.query(User).filter(User.discord_id == discord_id).first()
            return user.to_dict() if user else None
        finally:
            session.close()

    def get_user_by_steam_id(self, steam_id: str) -> dict[str, Any] | None:
        session = self.get_session()
        try:
            user = session.query(User).filter(User.steam_id == steam_id).first()
            return user.to_dict() if user else None
        finally:
            session.close()

    def link_user(
        self,
        discord_id: str,
        steam_id: str,
        steam_profile_url: str | None = None,
        display_name: str | None = None,
        preferences: dict[str, Any] | None = None,
    ) -> bool:
        """
        Link a Discord account to a Steam ID.

        Returns:
            True when a new link was created, False when an existing one was updated
        """
        session = self.get_session()
        try:
            user = session.query(User).filter(User.discord_id == discord_id).first()
            created = user is None
            if created:
                user = User(discord_id=discord_id, preferences_json=json.dumps(preferences or {}))
                session.add(user)
            elif preferences is not None:
                user.preferences_json = json.dumps(preferences)
            user.steam_id = steam_id
            user.steam_profile_url = steam_profile_url
            user.display_name = display_name
            session.commit()
            logger.info(f"{'Linked' if created else 'Updated link for'} {discord_id} -> {steam_id}")
            return created
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def update_user(self, discord_id: str, **updates: Any) -> bool:
        """Update fields of a linked user; returns False when the user is unknown."""
        session = self.get_session()
        try:
            user = session.query(User).filter(User.discord_id == discord_id).first()
            if user is None:
                return False
            for key, value in updates.items():
                if value is None:
                    continue
                if key == "preferences":
                    user.preferences_json = json.dumps(value)
                elif key in ("steam_id", "steam_profile_url", "display_name"):
                    setattr(user, key, value)
                else:
                    raise ValueError(f"Unknown user field: {key}")
            session.commit()
            return True
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def unlink_user(self, discord_id: str) -> bool:
        """Remove a link and its watches; returns False when nothing was linked."""
        session = self.get_session()
        try:
            deleted = session.query(User).filter(User.discord_id == discord_id).delete()
            session.query(UserWatch).filter(UserWatch.discord_id == discord_id).delete()
            session.commit()
            if deleted:
                logger.info(f"Unlinked {discord_id}")
            return bool(deleted)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================================
    # API cache
    # =========================================================================

    def get_cached(self, cache_key: str) -> Any | None:
        session = self.get_session()
        try:
            record = (
                session.query(ApiCache)
                .filter(ApiCache.cache_key == cache_key, ApiCache.expires_at > _utc_now())
                .first()
            )
            return json.loads(record.data) if record else None
        finally:
            session.close()

    def set_cached(self, cache_key: str, data: Any, ttl_seconds: int = 300) -> None:
        session = self.get_session()
        try:
            expires_at = _utc_now() + timedelta(seconds=ttl_seconds)
            record = session.query(ApiCache).filter(ApiCache.cache_key == cache_key).first()
            if record is None:
                record = ApiCache(cache_key=cache_key)
                session.add(record)
            record.data = json.dumps(data)
            record.expires_at = expires_at
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def clear_expired_cache(self) -> int:
        session = self.get_session()
        try:
            removed = session.query(ApiCache).filter(ApiCache.expires_at <= _utc_now()).delete()
            session.commit()
            if removed:
                logger.debug(f"Removed {removed} expired cache entries")
            return removed
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # =========================================================================
    # Guild settings and analytics
    # =========================================================================

    def get_guild_settings(self, guild_id: str) -> dict[str, Any]:
        session = self.get_session()
        try:
            record = session.query(GuildSettings).filter(GuildSettings.guild_id == guild_id).first()
            return json.loads(record.settings_json or "{}") if record else {}
        finally:
            session.close()

    def set_guild_settings(self, guild_id: str, settings: dict[str, Any]) -> None:
        session = self.get_session()
        try:
            record = session.query(GuildSettings).filter(GuildSettings.guild_id == guild_id).first()
            if record is None:
                record = GuildSettings(guild_id=guild_id)
                session.add(record)
            record.settings_json = json.dumps(settings)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def log_command(
        self,
        command_name: str,
        user_id: str,
        guild_id: str | None = None,
        execution_time_ms: int | None = None,
        success: bool = True,
        error_message: str | None = None,
    ) -> None:
        session = self.get_session()
        try:
            session.add(
                CommandUsage(
                    command_name=command_name,
                    user_id=user_id,
                    guild_id=guild_id,
                    execution_time_ms=execution_time_ms,
                    success=success,
                    error_message=error_message,
                )
            )
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_command_stats(self) -> dict[str, int]:
        """Number of executions per command name."""
        session = self.get_session()
        try:
            counts: dict[str, int] = {}
            for (name,) in session.query(CommandUsage.command_name):
                counts[name] = counts.get(name, 0) + 1
            return counts
        finally:
            session.close()

    # =========================================================================
    # Watches
    # =========================================================================

    def set_user_watch(self, discord_id: str, channel_id: str, guild_id: str, steam_id: str) -> None:
        """Create or re-enable a watch for this user in this channel."""
        session = self.get_session()
        try:
            watch = (
                session.query(UserWatch)
                .filter(UserWatch.discord_id == discord_id, UserWatch.channel_id == channel_id)
                .first()
            )
            if watch is None:
                watch = UserWatch(discord_id=discord_id, channel_id=channel_id)
                session.add(watch)
            watch.guild_id = guild_id
            watch.steam_id = steam_id
            watch.enabled = True
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_user_watch(self, discord_id: str, channel_id: str) -> dict[str, Any] | None:
        session = self.get_session()
        try:
            watch = (
                session.query(UserWatch)
                .filter(UserWatch.discord_id == discord_id, UserWatch.channel_id == channel_id)
                .first()
            )
            return watch.to_dict() if watch else None
        finally:
            session.close()

    def get_user_watches(self, discord_id: str, guild_id: str | None = None) -> list[dict[str, Any]]:
        """Enabled watches for a user, optionally limited to one guild."""
        session = self.get_session()
        try:
            query = session.query(UserWatch).filter(
                UserWatch.discord_id == discord_id, UserWatch.enabled.is_(True)
            )
            if guild_id:
                query = query.filter(UserWatch.guild_id == guild_id)
            return [w.to_dict() for w in query.order_by(UserWatch.id)]
        finally:
            session.close()

    def remove_user_watch(self, discord_id: str, channel_id: str) -> bool:
        session = self.get_session()
        try:
            deleted = (
                session.query(UserWatch)
                .filter(UserWatch.discord_id == discord_id, UserWatch.channel_id == channel_id)
                .delete()
            )
            session.commit()
            return bool(deleted)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_all_active_watches(self) -> list[dict[str, Any]]:
        session = self.get_session()
        try:
            watches = session.query(UserWatch).filter(UserWatch.enabled.is_(True)).order_by(UserWatch.id)
            return [w.to_dict() for w in watches]
        finally:
            session.close()

    # =========================================================================
    # Last match tracking
    # =========================================================================

    def _last_match_row(self, session: Session, discord_id: str, steam_id: str) -> UserLastMatch:
        row = (
            session.query(UserLastMatch)
            .filter(UserLastMatch.discord_id == discord_id, UserLastMatch.steam_id == steam_id)
            .first()
        )
        if row is None:
            row = UserLastMatch(discord_id=discord_id, steam_id=steam_id)
            session.add(row)
        return row

    def get_last_match(self, discord_id: str, steam_id: str) -> dict[str, Any] | None:
        session = self.get_session()
        try:
            row = (
                session.query(UserLastMatch)
                .filter(UserLastMatch.discord_id == discord_id, UserLastMatch.steam_id == steam_id)
                .first()
            )
            return row.to_dict() if row else None
        finally:
            session.close()

    def update_last_match(
        self, discord_id: str, steam_id: str, match_id: str, match_date: datetime | None
    ) -> None:
        session = self.get_session()
        try:
            row = self._last_match_row(session, discord_id, steam_id)
            row.last_match_id = match_id
            if match_date is not None and match_date.tzinfo is not None:
                match_date = match_date.astimezone(UTC).replace(tzinfo=None)
            row.last_match_date = match_date
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def update_last_checked(self, discord_id: str, steam_id: str) -> None:
        """Stamp the check time, keeping the stored last match."""
        session = self.get_session()
        try:
            row = self._last_match_row(session, discord_id, steam_id)
            row.last_checked = _utc_now()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def users_for_match_monitoring(self, interval_minutes: int = 15) -> list[dict[str, Any]]:
        """
        Watched players not checked within ``interval_minutes`` (less CHECK_MARGIN).

        One entry per (discord_id, steam_id), never-checked players first.
        """
        cutoff = _utc_now() - timedelta(minutes=interval_minutes) + CHECK_MARGIN
        session = self.get_session()
        try:
            rows = (
                session.query(
                    UserWatch.discord_id,
                    UserWatch.steam_id,
                    UserLastMatch.last_match_id,
                    UserLastMatch.last_match_date,
                    UserLastMatch.last_checked,
                )
                .outerjoin(
                    UserLastMatch,
                    and_(
                        UserWatch.discord_id == UserLastMatch.discord_id,
                        UserWatch.steam_id == UserLastMatch.steam_id,
                    ),
                )
                .filter(
                    UserWatch.enabled.is_(True),
                    or_(UserLastMatch.last_checked.is_(None), UserLastMatch.last_checked < cutoff),
                )
                .distinct()
                .order_by(UserLastMatch.last_checked.asc().nulls_first())
                .all()
            )
            return [
                {
                    "discord_id": row.discord_id,
                    "steam_id": row.steam_id,
                    "last_match_id": row.last_match_id,
                    "last_match_date": row.last_match_date,
                }
                for row in rows
            ]
        finally:
            session.close()
