"""
Discord bot for leetcoach.

Slash commands:
    /improve [player]            - Improvement report with focus areas, drills and resources
    /stats [player]              - Graded profile statistics
    /recent [player] [matches]   - Recent match performance (1-10 matches)
    /link <steam_id>             - Link your Discord account to a Steam account
    /unlink                      - Remove the link
    /watch start|stop|status     - Match notifications in the current channel
    /help [topic]                - Command overview or grading explanation

``player`` accepts any Steam ID format; when omitted the linked account is used.

Environment Variables:
    DISCORD_TOKEN    - Discord bot token
    LEETIFY_API_KEY  - Optional Leetify API key

Usage:
    leetcoach bot
"""

import logging
import time
from typing import Literal

import discord
from discord import app_commands
from discord.ext import commands

from leetcoach.analysis.resources import ResourceCatalog
from leetcoach.core.config import LeetcoachConfig, get_config
from leetcoach.embeds import (
    build_grading_help_embed,
    build_help_embed,
    build_improvement_embed,
    build_recent_embed,
    build_stats_embed,
    build_watch_status_embed,
    error_embed,
    invalid_steam_id_embed,
    no_data_embed,
    no_linked_account_embed,
    no_matches_embed,
)
from leetcoach.infra.database import Database
from leetcoach.integrations.leetify import LeetifyAPIError, LeetifyClient, fetch_improvement_report
from leetcoach.integrations.steam import format_steam_ids, normalize_steam_id
from leetcoach.monitor import MatchMonitor

logger = logging.getLogger(__name__)

COLOR_SUCCESS = 0x00FF00


class LeetcoachBot(commands.Bot):
    """Discord bot serving Leetify stats and improvement reports."""

    def __init__(self, config: LeetcoachConfig | None = None) -> None:
        self.config = config or get_config()
        activity = discord.Game(name=self.config.discord.activity_text)
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=discord.Intents.default(),
            activity=activity,
            description="leetcoach CS2 stats and coaching bot",
        )
        self.db = Database(self.config.database.path)
        self.catalog = ResourceCatalog.load()
        self.leetify: LeetifyClient | None = None
        self.monitor: MatchMonitor | None = None

    async def setup_hook(self) -> None:
        """Open connections, start the monitor and sync slash commands."""
        self.db.initialize()
        self.leetify = LeetifyClient(
            self.config.leetify,
            cache=self.db,
            cache_ttl_seconds=self.config.database.cache_ttl_seconds,
        )
        if not await self.leetify.health_check():
            logger.warning("Leetify API health check failed, continuing anyway")

        self.monitor = MatchMonitor(self, self.leetify, self.db, self.config.monitor)
        await self.add_cog(self.monitor)
        if self.config.monitor.enabled:
            self.monitor.start()

        guild_id = self.config.discord.dev_guild_id
        if guild_id:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            synced = await self.tree.sync(guild=guild)
            logger.info(f"Synced {len(synced)} slash commands to guild {guild_id}")
        else:
            synced = await self.tree.sync()
            logger.info(f"Synced {len(synced)} global slash commands")

    async def close(self) -> None:
        """Clean up resources."""
        if self.monitor:
            self.monitor.stop()
        if self.leetify:
            await self.leetify.close()
        self.db.close()
        await super().close()

    async def on_ready(self) -> None:
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guilds")

    def log_usage(
        self,
        interaction: discord.Interaction,
        started: float,
        success: bool = True,
        error_message: str | None = None,
    ) -> None:
        command_name = interaction.command.qualified_name if interaction.command else "unknown"
        self.db.log_command(
            command_name=command_name,
            user_id=str(interaction.user.id),
            guild_id=str(interaction.guild_id) if interaction.guild_id else None,
            execution_time_ms=int((time.perf_counter() - started) * 1000),
            success=success,
            error_message=error_message,
        )

    async def resolve_steam_id(
        self, interaction: discord.Interaction, player: str | None, command: str
    ) -> str | None:
        """
        Steam64 for the ``player`` argument or the caller's linked account.

        Replies with an explanatory embed and returns None when neither works.
        """
        if player:
            info = normalize_steam_id(player)
            if not info.is_valid:
                await interaction.followup.send(embed=invalid_steam_id_embed())
                return None
            return info.steam64

        user = self.db.get_user(str(interaction.user.id))
        if user is None:
            await interaction.followup.send(embed=no_linked_account_embed(command))
            return None
        return user["steam_id"]

    async def report_failure(
        self, interaction: discord.Interaction, error: Exception, title: str, fallback: str
    ) -> str:
        """Log a command failure and reply with an error embed; returns the logged message."""
        if isinstance(error, LeetifyAPIError):
            logger.error(f"{title}: {error}")
            message = error.user_message or fallback
        else:
            logger.exception(f"{title}: {error}")
            message = fallback
        await interaction.followup.send(embed=error_embed(title, message))
        return str(error)


def create_bot(config: LeetcoachConfig | None = None) -> LeetcoachBot:
    """Create the bot and register its slash commands."""
    bot = LeetcoachBot(config)

    @bot.tree.command(name="improve", description="Personalised CS2 improvement report")
    @app_commands.describe(player="Steam ID or profile URL (defaults to your linked account)")
    async def improve(interaction: discord.Interaction, player: str | None = None) -> None:
        started = time.perf_counter()
        await interaction.response.defer()
        steam_id = await bot.resolve_steam_id(interaction, player, "improve")
        if steam_id is None:
            return
        try:
            result = await fetch_improvement_report(bot.leetify, steam_id, bot.catalog)
            if result is None:
                await interaction.followup.send(embed=no_data_embed())
            else:
                profile, report = result
                await interaction.followup.send(embed=build_improvement_embed(report, steam_id, profile))
            bot.log_usage(interaction, started)
        except Exception as e:
            message = await bot.report_failure(
                interaction,
                e,
                "Error Generating Report",
                "An error occurred while generating the improvement report.",
            )
            bot.log_usage(interaction, started, success=False, error_message=message)

    @bot.tree.command(name="stats", description="Graded CS2 statistics for a player")
    @app_commands.describe(player="Steam ID or profile URL (defaults to your linked account)")
    async def stats(interaction: discord.Interaction, player: str | None = None) -> None:
        started = time.perf_counter()
        await interaction.response.defer()
        steam_id = await bot.resolve_steam_id(interaction, player, "stats")
        if steam_id is None:
            return
        try:
            summary = await bot.leetify.get_player_profile(steam_id)
            await interaction.followup.send(embed=build_stats_embed(summary))
            bot.log_usage(interaction, started)
        except Exception as e:
            message = await bot.report_failure(
                interaction,
                e,
                "Error Fetching Stats",
                "An error occurred while fetching player statistics.",
            )
            bot.log_usage(interaction, started, success=False, error_message=message)

    @bot.tree.command(name="recent", description="Recent match performance")
    @app_commands.describe(
        player="Steam ID or profile URL (defaults to your linked account)",
        matches="Number of matches to show (1-10)",
    )
    async def recent(
        interaction: discord.Interaction,
        player: str | None = None,
        matches: app_commands.Range[int, 1, 10] = 5,
    ) -> None:
        started = time.perf_counter()
        await interaction.response.defer()
        steam_id = await bot.resolve_steam_id(interaction, player, "recent")
        if steam_id is None:
            return
        try:
            recent_matches = await bot.leetify.get_player_matches(steam_id, matches)
            if not recent_matches:
                await interaction.followup.send(embed=no_matches_embed())
            else:
                await interaction.followup.send(embed=build_recent_embed(recent_matches, steam_id))
            bot.log_usage(interaction, started)
        except Exception as e:
            message = await bot.report_failure(
                interaction,
                e,
                "Error Fetching Recent Matches",
                "An error occurred while fetching recent matches.",
            )
            bot.log_usage(interaction, started, success=False, error_message=message)

    @bot.tree.command(name="link", description="Link your Discord account to your Steam account")
    @app_commands.describe(steam_id="Steam64, Steam32, SteamID or profile URL")
    async def link(interaction: discord.Interaction, steam_id: str) -> None:
        await interaction.response.defer(ephemeral=True)
        info = normalize_steam_id(steam_id)
        if not info.is_valid:
            await interaction.followup.send(embed=invalid_steam_id_embed(), ephemeral=True)
            return

        discord_id = str(interaction.user.id)
        existing = bot.db.get_user(discord_id)
        if existing is None:
            owner = bot.db.get_user_by_steam_id(info.steam64)
            if owner is not None:
                embed = error_embed(
                    "Steam Account Already Linked",
                    "This Steam account is already linked to another Discord account.\n\n"
                    "If this is your account and you want to transfer the link, "
                    "please contact a server administrator.",
                )
                await interaction.followup.send(embed=embed, ephemeral=True)
                return

        bot.db.link_user(
            discord_id,
            info.steam64,
            steam_profile_url=info.profile_url,
            display_name=interaction.user.display_name,
        )
        title = "✅ Steam Account Updated" if existing else "✅ Steam Account Linked"
        embed = discord.Embed(
            title=title,
            color=COLOR_SUCCESS,
            description=(
                f"{format_steam_ids(info.steam64)}\n\n"
                f"**Profile:** [View Steam Profile]({info.profile_url})"
            ),
        )
        if existing is None:
            embed.add_field(
                name="🎉 What's Next?",
                value="• Use `/improve` for your improvement report\n"
                "• Use `/stats` to see your CS2 statistics\n"
                "• Try `/recent` for your latest match data",
                inline=False,
            )
        embed.set_footer(text="You can now use stat commands without specifying your Steam ID!")
        await interaction.followup.send(embed=embed, ephemeral=True)
        logger.info(f"User {interaction.user} linked Steam account {info.steam64}")

    @bot.tree.command(name="unlink", description="Remove the link between your Discord and Steam accounts")
    async def unlink(interaction: discord.Interaction) -> None:
        if not bot.db.unlink_user(str(interaction.user.id)):
            embed = discord.Embed(
                title="ℹ️ No Linked Account",
                color=0xFFAAAA,
                description="You don't have a Steam account linked to your Discord account.\n\n"
                "Use `/link <steam_id>` to link your Steam account first.",
            )
            await interaction.response.send_message(embed=embed, ephemeral=True)
            return

        embed = discord.Embed(
            title="✅ Account Unlinked",
            color=COLOR_SUCCESS,
            description="Successfully removed the link between your Discord and Steam accounts.\n\n"
            "Match notifications for this account have been stopped.",
        )
        embed.set_footer(text="Use /link <steam_id> to link an account again.")
        await interaction.response.send_message(embed=embed, ephemeral=True)
        logger.info(f"User {interaction.user} unlinked Steam account")

    watch_group = app_commands.Group(name="watch", description="Match notifications in this channel")

    @watch_group.command(name="start", description="Start match notifications in this channel")
    async def watch_start(interaction: discord.Interaction) -> None:
        user = bot.db.get_user(str(interaction.user.id))
        if user is None:
            await interaction.response.send_message(
                "❌ You need to link your Steam account first. Use `/link <steam_id>` to get started.",
                ephemeral=True,
            )
            return
        if not isinstance(interaction.channel, discord.TextChannel):
            await interaction.response.send_message(
                "❌ This command can only be used in text channels.", ephemeral=True
            )
            return

        bot.db.set_user_watch(
            str(interaction.user.id),
            str(interaction.channel_id),
            str(interaction.guild_id),
            user["steam_id"],
        )
        interval = bot.config.monitor.interval_minutes
        embed = discord.Embed(
            title="✅ Watch Started",
            color=COLOR_SUCCESS,
            description=(
                f"You're now watching for CS2 match notifications in {interaction.channel.mention}.\n\n"
                f"• New matches are checked every {interval} minutes\n"
                "• Each new match is posted here with a link to the Leetify analysis\n\n"
                "Use `/watch stop` to stop notifications in this channel."
            ),
        )
        embed.add_field(name="🔗 Linked Account", value=f"Steam ID: `{user['steam_id']}`", inline=True)
        await interaction.response.send_message(embed=embed)
        logger.info(f"User {interaction.user} started watching in channel {interaction.channel_id}")

    @watch_group.command(name="stop", description="Stop match notifications in this channel")
    async def watch_stop(interaction: discord.Interaction) -> None:
        removed = bot.db.remove_user_watch(str(interaction.user.id), str(interaction.channel_id))
        if not removed:
            await interaction.response.send_message(
                "❌ You're not currently watching for matches in this channel.", ephemeral=True
            )
            return
        embed = discord.Embed(
            title="⏹️ Watch Stopped",
            color=0xFF6600,
            description="You're no longer watching for match notifications in this channel.",
        )
        embed.set_footer(text="You can start watching again anytime with /watch start")
        await interaction.response.send_message(embed=embed)
        logger.info(f"User {interaction.user} stopped watching in channel {interaction.channel_id}")

    @watch_group.command(name="status", description="Show where you receive match notifications")
    async def watch_status(interaction: discord.Interaction) -> None:
        discord_id = str(interaction.user.id)
        user = bot.db.get_user(discord_id)
        if user is None:
            await interaction.response.send_message(
                "❌ You need to link your Steam account first. Use `/link <steam_id>` to get started.",
                ephemeral=True,
            )
            return
        guild_id = str(interaction.guild_id) if interaction.guild_id else None
        watches = bot.db.get_user_watches(discord_id, guild_id)
        embed = build_watch_status_embed(
            user["steam_id"],
            [w["channel_id"] for w in watches],
            bot.config.monitor.interval_minutes,
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    bot.tree.add_command(watch_group)

    @bot.tree.command(name="help", description="Show available commands")
    @app_commands.describe(topic="general commands or the grading system")
    async def help_command(
        interaction: discord.Interaction, topic: Literal["general", "grading"] = "general"
    ) -> None:
        embed = build_grading_help_embed() if topic == "grading" else build_help_embed()
        await interaction.response.send_message(embed=embed)

    @bot.tree.error
    async def on_app_command_error(
        interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        logger.error(f"Unhandled command error: {error}", exc_info=error)
        embed = error_embed("Error", "An unexpected error occurred. Please try again later.")
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, ephemeral=True)

    return bot


def run_bot(config: LeetcoachConfig | None = None) -> None:
    """Run the Discord bot until interrupted."""
    config = config or get_config()
    if not config.discord.token:
        raise ValueError("Discord token not configured. Set DISCORD_TOKEN or discord.token in config.")

    bot = create_bot(config)
    logger.info("Starting leetcoach Discord bot...")
    bot.run(config.discord.token, log_handler=None)
