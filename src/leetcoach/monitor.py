"""
Match monitor.

Periodically polls Leetify for players with active watches and posts a
notification embed to every watching channel when a new match appears.
Only matches finished after the earliest watch was created, and newer than
the last announced match, are posted.
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import discord
from discord.ext import commands, tasks

from leetcoach.core.config import MonitorConfig
from leetcoach.embeds import build_match_embed
from leetcoach.infra.database import Database
from leetcoach.integrations.leetify import LeetifyClient, MatchSummary

logger = logging.getLogger(__name__)


def as_utc(value: datetime | str | None) -> datetime | None:
    """Timezone-aware UTC datetime from a stored value; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def eligible_matches(
    matches: Sequence[MatchSummary],
    watch_started: datetime,
    last_match_id: str | None = None,
    last_match_date: datetime | None = None,
) -> list[MatchSummary]:
    """Matches (newest first) that have not been announced yet."""
    eligible = []
    for match in matches:
        if match.finished_at is None or match.finished_at <= watch_started:
            continue
        if last_match_date is not None:
            if match.finished_at <= last_match_date:
                continue
        elif last_match_id is not None and match.match_id == last_match_id:
            continue
        eligible.append(match)
    return eligible


class MatchMonitor(commands.Cog):
    """Background task that announces new matches for watched players."""

    def __init__(
        self,
        bot: commands.Bot,
        client: LeetifyClient,
        db: Database,
        config: MonitorConfig | None = None,
    ):
        self.bot = bot
        self.client = client
        self.db = db
        self.config = config or MonitorConfig()
        self.check_loop.change_interval(minutes=self.config.interval_minutes)

    @property
    def is_running(self) -> bool:
        return self.check_loop.is_running()

    def start(self) -> None:
        if not self.check_loop.is_running():
            self.check_loop.start()
            logger.info(
                f"Match monitoring started (checking every {self.config.interval_minutes} minutes)"
            )

    def stop(self) -> None:
        if self.check_loop.is_running():
            self.check_loop.cancel()
            logger.info("Match monitoring stopped")

    async def cog_unload(self) -> None:
        self.stop()

    @tasks.loop(minutes=15)
    async def check_loop(self) -> None:
        await self.check_for_new_matches()

    @check_loop.before_loop
    async def _wait_for_ready(self) -> None:
        await self.bot.wait_until_ready()

    @check_loop.error
    async def _loop_error(self, error: BaseException) -> None:
        logger.error(f"Match monitoring loop failed: {error}", exc_info=error)

    async def check_for_new_matches(self) -> int:
        """
        Run one monitoring cycle.

        Returns:
            Number of notifications sent
        """
        users = self.db.users_for_match_monitoring(self.config.interval_minutes)
        if not users:
            logger.debug("No users to monitor for matches")
            return 0

        logger.info(f"Checking for new matches for {len(users)} users")
        sent = 0
        for user in users:
            try:
                sent += await self.check_user(user)
            except Exception:
                logger.exception(f"Error checking matches for user {user['discord_id']}")
            finally:
                self.db.update_last_checked(user["discord_id"], user["steam_id"])
            if self.config.delay_between_users_seconds > 0:
                await asyncio.sleep(self.config.delay_between_users_seconds)

        logger.debug("Match monitoring cycle completed")
        return sent

    async def check_user(self, user: dict[str, Any]) -> int:
        discord_id = user["discord_id"]
        steam_id = user["steam_id"]
        watches = [w for w in self.db.get_user_watches(discord_id) if w["steam_id"] == steam_id]
        if not watches:
            logger.debug(f"No active watches for user {discord_id}")
            return 0

        watch_started = min(as_utc(w["created_at"]) for w in watches)
        matches = await self.client.get_player_matches(steam_id, self.config.matches_per_check)
        new_matches = eligible_matches(
            matches,
            watch_started,
            user.get("last_match_id"),
            as_utc(user.get("last_match_date")),
        )
        if not new_matches:
            logger.debug(f"No new eligible matches for user {discord_id}")
            return 0

        logger.info(f"Found {len(new_matches)} new matches for user {discord_id}")
        latest = new_matches[0]
        self.db.update_last_match(discord_id, steam_id, latest.match_id, latest.finished_at)

        sent = 0
        for watch in watches:
            for match in reversed(new_matches):
                if await self.send_notification(watch["channel_id"], discord_id, match):
                    sent += 1
        return sent

    async def send_notification(self, channel_id: str, discord_id: str, match: MatchSummary) -> bool:
        channel = self.bot.get_channel(int(channel_id))
        if not isinstance(channel, discord.TextChannel):
            logger.warning(f"Channel {channel_id} not found or not a text channel")
            return False

        member = self.bot.get_user(int(discord_id))
        display_name = member.display_name if member else "Unknown Player"
        avatar_url = member.display_avatar.url if member else None

        try:
            await channel.send(embed=build_match_embed(match, display_name, avatar_url))
        except discord.HTTPException as e:
            logger.error(f"Failed to send match notification to {channel_id}: {e}")
            return False

        logger.info(f"Sent match notification for {discord_id} to {channel.guild.name}#{channel.name}")
        return True
