"""
Discord embed builders.

Pure functions from analysis results and API summaries to ``discord.Embed``
objects. Commands, the match monitor and tests all go through these.
"""

import math
from collections.abc import Sequence
from datetime import UTC, datetime

import discord

from leetcoach.analysis.grading import (
    GRADES,
    OVERALL_WEIGHTS,
    StatKind,
    grade_stat,
    match_rating_emoji,
    overall_grade,
)
from leetcoach.analysis.models import (
    RELATIVE_CATEGORIES,
    BenchmarkTier,
    Category,
    ImprovementArea,
    ImprovementReport,
    RawProfile,
    Side,
)
from leetcoach.analysis.normalize import format_percentage, format_relative_rating
from leetcoach.integrations.leetify import MatchSummary, PlayerSummary
from leetcoach.integrations.steam import ACCEPTED_FORMATS_HELP

FIELD_VALUE_LIMIT = 1024
RECENT_MATCH_FIELDS = 5

COLOR_RED = 0xFF0000
COLOR_ORANGE = 0xFFA500
COLOR_YELLOW = 0xFFFF00
COLOR_GREEN = 0x00FF00
COLOR_GRAY = 0x808080
COLOR_LIGHT_RED = 0xFFAAAA
COLOR_BRAND = 0xFF6600
COLOR_INFO = 0x0099FF

LEETIFY_PROFILE_URL = "https://leetify.com/app/profile/{steam_id}"
LEETIFY_MATCH_URL = "https://leetify.com/app/match-details/{match_id}/overview"
STEAM_PROFILE_URL = "https://steamcommunity.com/profiles/{steam_id}"


def _clip(text: str, limit: int = FIELD_VALUE_LIMIT) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _now() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Improvement report
# =============================================================================


def rating_trend(value: float, category: Category, tier: BenchmarkTier) -> tuple[str, str]:
    """
    Emoji and benchmark comparison text for one category rating.

    0-100 categories read ``(+6, up 12%)``; relative categories read
    ``(+1.20 above avg)`` since percentages are meaningless near zero.
    """
    benchmark = tier.ratings.for_category(category)
    difference = value - benchmark

    if category in RELATIVE_CATEGORIES:
        direction = "above" if difference > 0 else "below"
        text = f"({format_relative_rating(difference)} {direction} avg)"
        if difference > 2.0:
            return "🔥", text
        if difference > 0:
            return "✨", text
        if difference > -3.0:
            return "👍", text
        return "📉", text

    percent = _round_half_up(abs(difference) / benchmark * 100) if benchmark else 0
    rounded = _round_half_up(difference)
    if value >= benchmark:
        text = f"(+{rounded}, up {percent}%)"
    else:
        text = f"({rounded}, down {percent}%)"

    if value >= benchmark + 20:
        return "🔥", text
    if value >= benchmark + 10:
        return "✨", text
    if value >= benchmark:
        return "👍", text
    if value >= benchmark - 10:
        return "👎", text
    return "💀", text


def _area_rating_display(area: ImprovementArea) -> str:
    if area.is_relative:
        return format_relative_rating(area.rating)
    return f"{_round_half_up(area.rating)}/100"


def _severity_color(area: ImprovementArea) -> int:
    if area.is_relative:
        bounds = (-8.0, -3.0, 2.0)
    else:
        bounds = (30, 45, 60)
    if area.rating < bounds[0]:
        return COLOR_RED
    if area.rating < bounds[1]:
        return COLOR_ORANGE
    if area.rating < bounds[2]:
        return COLOR_YELLOW
    return COLOR_GREEN


def _priority_emoji(area: ImprovementArea) -> str:
    bounds = (-8.0, -3.0) if area.is_relative else (30, 45)
    if area.rating < bounds[0]:
        return "🚨"
    if area.rating < bounds[1]:
        return "⚠️"
    return "📈"


def _side_rating_line(side: Side, raw_rating: float) -> str:
    display = raw_rating * 100
    if display >= 5.0:
        emoji, description = "🔥", "Excellent performance"
    elif display >= 0.0:
        emoji, description = "✨", "Good performance"
    elif display >= -3.0:
        emoji, description = "👍", "Average performance"
    elif display >= -6.0:
        emoji, description = "👎", "Below average"
    else:
        emoji, description = "💀", "Needs improvement"
    return f"{emoji} **{side.value} Side**: {description} ({format_relative_rating(display)})"


def build_improvement_embed(
    report: ImprovementReport, steam_id: str, raw_profile: RawProfile
) -> discord.Embed:
    """Render a full improvement report."""
    embed = discord.Embed(
        title=f"📈 {report.player_name}'s Improvement Report",
        url=LEETIFY_PROFILE_URL.format(steam_id=steam_id),
        color=_severity_color(report.areas[0]),
        timestamp=_now(),
    )

    description = ""
    ranks = raw_profile.ranks
    if ranks.premier:
        description += f"**Premier Rank:** {ranks.premier:,}\n"
    elif ranks.leetify:
        description += f"**Leetify Rating:** {ranks.leetify}\n"
    count = len(report.focus_areas)
    description += (
        f"Based on your last 30 games. **{count} key area{'s' if count != 1 else ''}** "
        "need attention:"
    )
    embed.description = description

    overview = []
    for area in report.areas:
        emoji, trend = rating_trend(area.rating, area.category, report.tier)
        overview.append(f"{emoji} **{area.category.value}**: {_area_rating_display(area)} {trend}")

    side_lines = []
    ct_raw = raw_profile.ratings.ct_leetify
    t_raw = raw_profile.ratings.t_leetify
    if ct_raw != 0:
        side_lines.append(_side_rating_line(Side.CT, ct_raw))
    if t_raw != 0:
        side_lines.append(_side_rating_line(Side.T, t_raw))
    overview_text = "\n".join(overview)
    if side_lines:
        overview_text += "\n\n**Side Ratings:**\n" + "\n".join(side_lines)
    embed.add_field(name="📊 Rating Overview", value=_clip(overview_text), inline=False)

    balance = report.side_balance
    if balance.has_imbalance:
        icon = "🛡️" if balance.weak_side is Side.CT else "⚔️"
        embed.add_field(name=f"{icon} Side Imbalance Detected", value=_clip(balance.advice), inline=False)

    sides = report.side_insights
    side_issues = [*sides.ct_insights, *sides.t_insights][:3]
    side_drills = [*sides.ct_drills, *sides.t_drills][:3]
    if side_issues:
        parts = [f"**Key Issues:** {' • '.join(side_issues)}"]
        if side_drills:
            parts.append(f"**Practice:** {' • '.join(side_drills)}")
        embed.add_field(name="🏙️ Side-Specific Analysis", value=_clip("\n\n".join(parts), 1000), inline=False)

    for area in report.focus_areas:
        value = "\n".join(f"• {issue}" for issue in area.issues[:2])
        if area.drills:
            value += "\n\n**Quick Fixes:**\n" + "\n".join(f"→ {d}" for d in area.drills[:2])
        if len(value) > 900:
            value = area.issues[0]
            if area.drills:
                value += f"\n\n**Quick Fix:** {area.drills[0]}"
        embed.add_field(
            name=f"{_priority_emoji(area)} {area.emoji} {area.category.value}: {_area_rating_display(area)}",
            value=_clip(value),
            inline=False,
        )

    if report.cross_insights:
        text = "\n\n".join(f"**{c.label}:** {c.detail}" for c in report.cross_insights[:2])
        embed.add_field(name="🔗 Connected Patterns", value=_clip(text), inline=False)

    working = [
        f"{a.emoji} {a.category.value} ({_area_rating_display(a)})"
        for a in report.areas
        if a.rating >= 60
    ]
    if working:
        embed.add_field(name="✅ What's Working", value=_clip(" • ".join(working)), inline=False)

    if report.resources:
        text = "\n".join(
            f"{r.emoji} **[{r.title}]({r.link})** - {r.description}" for r in report.resources
        )
        embed.add_field(name="📚 Practice Resources", value=_clip(text), inline=False)

    embed.set_footer(text="Last 30 competitive matches • Powered by Leetify API")
    return embed


# =============================================================================
# Stats
# =============================================================================


def build_stats_embed(summary: PlayerSummary) -> discord.Embed:
    """Graded profile summary for /stats."""
    kd = grade_stat(summary.kd_ratio, StatKind.KILL_DEATH_RATIO)
    adr = grade_stat(summary.adr, StatKind.DAMAGE_PER_ROUND)
    hs = grade_stat(summary.headshot_rate, StatKind.HEADSHOT_RATE)
    win = grade_stat(summary.win_rate, StatKind.WIN_RATE)
    rating = grade_stat(summary.leetify_rating, StatKind.RATING)
    opening = grade_stat(summary.opening_rating, StatKind.FIRST_KILL_RATE)
    clutch = grade_stat(summary.clutch_rating, StatKind.CLUTCH_RATE)
    overall = overall_grade(
        kd_ratio=summary.kd_ratio,
        adr=summary.adr,
        rating=summary.leetify_rating,
        win_rate=summary.win_rate,
        headshot_rate=summary.headshot_rate,
        first_kill_rate=summary.opening_rating,
        clutch_rate=summary.clutch_rating,
    )

    embed = discord.Embed(
        title=f"{summary.nickname}'s CS2 Performance Analysis",
        url=STEAM_PROFILE_URL.format(steam_id=summary.steam64_id),
        color=overall.grade.color,
        description=(
            f"**Leetify Rating:** {rating.display()} • {summary.total_matches:,} Total Games"
        ),
        timestamp=summary.last_updated or _now(),
    )
    embed.add_field(
        name=f"**Core Performance** (Last {summary.matches_analyzed} Games)",
        value=(
            f"**K/D Ratio:** {kd.display()}\n"
            f"**Average Damage/Round:** {adr.display()}\n"
            f"**Headshot Accuracy:** {hs.display()}"
        ),
        inline=False,
    )
    embed.add_field(
        name="**Match Impact**",
        value=(
            f"**Win Rate:** {win.display()}\n"
            f"**Opening Duels:** {format_relative_rating(summary.opening_rating * 100)} "
            f"({opening.grade.emoji} {opening.grade.letter})\n"
            f"**Clutching:** {format_relative_rating(summary.clutch_rating * 100)} "
            f"({clutch.grade.emoji} {clutch.grade.letter})"
        ),
        inline=True,
    )
    embed.add_field(
        name="**Areas to Improve**",
        value=(
            f"**Survival Rate:** {format_percentage(summary.survival_rate)}\n"
            f"**Multi-Kill Rounds:** {format_percentage(summary.multi_kill_rate)}\n"
            f"**Utility Damage:** {summary.utility_damage:.1f} per round"
        ),
        inline=True,
    )
    embed.add_field(
        name="**Overall Grade**",
        value=(
            f"{overall.grade.emoji} **Grade {overall.grade.letter}** - {overall.grade.description}\n\n"
            "*Use `/help grading` to see how this grade is calculated*"
        ),
        inline=False,
    )
    embed.set_footer(text="Based on recent competitive matches • Powered by Leetify API")
    return embed


# =============================================================================
# Recent matches
# =============================================================================


def current_streak(matches: Sequence[MatchSummary]) -> tuple[str, int]:
    """Result and length of the streak the newest match belongs to."""
    if not matches:
        return "", 0
    first = matches[0].result
    length = 0
    for match in matches:
        if match.result != first:
            break
        length += 1
    return first, length


def _result_emoji(result: str) -> str:
    return {"win": "✅", "loss": "❌"}.get(result, "⚪")


def build_recent_embed(matches: Sequence[MatchSummary], steam_id: str) -> discord.Embed:
    """Recent form summary plus per-match fields for /recent."""
    total = len(matches)
    wins = sum(1 for m in matches if m.result == "win")
    win_rate = _round_half_up(wins / total * 100) if total else 0
    avg_rating = sum(m.rating for m in matches) / total if total else 0.0
    avg_kd = sum(m.kd_ratio for m in matches) / total if total else 0.0
    avg_adr = sum(m.adr for m in matches) / total if total else 0.0

    if win_rate >= 70:
        color = COLOR_GREEN
    elif win_rate >= 50:
        color = COLOR_YELLOW
    elif win_rate < 40:
        color = COLOR_RED
    else:
        color = COLOR_GRAY

    embed = discord.Embed(
        title=f"🏆 Recent Match Performance ({total} matches)",
        url=STEAM_PROFILE_URL.format(steam_id=steam_id),
        color=color,
        timestamp=_now(),
    )
    embed.add_field(
        name="📈 **Recent Form Summary**",
        value=(
            f"**Win Rate:** {win_rate}% ({wins}W/{total - wins}L)\n"
            f"**Avg Rating:** {avg_rating:.2f}\n"
            f"**Avg K/D:** {avg_kd:.2f}\n"
            f"**Avg ADR:** {avg_adr:.1f}"
        ),
        inline=True,
    )

    for index, match in enumerate(matches[:RECENT_MATCH_FIELDS], start=1):
        played = match.finished_at.strftime("%Y-%m-%d") if match.finished_at else "Unknown"
        embed.add_field(
            name=f"{_result_emoji(match.result)} **Match {index}** - {match.map_name}",
            value=(
                f"**Score:** {match.player_score}-{match.opponent_score}\n"
                f"**K/D/A:** {match.kills}/{match.deaths}/{match.assists} ({match.kd_ratio:.1f})\n"
                f"**Rating:** {match_rating_emoji(match.rating)} {match.rating:.2f}\n"
                f"**ADR:** {match.adr:.0f} • **HS%:** {match.headshot_rate * 100:.0f}%\n"
                f"**Date:** {played}"
            ),
            inline=True,
        )

    indicators = []
    if avg_rating >= 1.10:
        indicators.append("🔥 Hot streak")
    if avg_kd >= 1.20:
        indicators.append("⚔️ High fragging")
    if win_rate >= 70:
        indicators.append("🏆 Great form")
    if avg_adr >= 75:
        indicators.append("💥 High impact")
    result, length = current_streak(matches)
    if length > 1:
        indicators.append(f"📊 {length}{'W' if result == 'win' else 'L'} streak")
    if indicators:
        embed.add_field(name="🎯 **Performance Indicators**", value=" • ".join(indicators), inline=False)

    embed.set_footer(text="Powered by Leetify API • Recent performance analysis")
    return embed


# =============================================================================
# Match notification
# =============================================================================


def build_match_embed(
    match: MatchSummary, display_name: str, avatar_url: str | None = None
) -> discord.Embed:
    """Notification posted by the match monitor for one new match."""
    kd = grade_stat(match.kd_ratio, StatKind.KILL_DEATH_RATIO)
    adr = grade_stat(match.adr, StatKind.DAMAGE_PER_ROUND)
    rating = grade_stat(match.rating, StatKind.RATING)

    color = {"win": COLOR_GREEN, "loss": 0xFF6B6B}.get(match.result, 0xFFDB4D)
    played = match.finished_at.strftime("%Y-%m-%d") if match.finished_at else "Unknown"

    embed = discord.Embed(
        title=f"{_result_emoji(match.result)} **{match.map_name}** - {display_name}",
        url=LEETIFY_MATCH_URL.format(match_id=match.match_id),
        color=color,
        description=(
            f"**Score:** {match.player_score}-{match.opponent_score} • "
            f"**Rounds:** {match.rounds_count} • **Date:** {played}"
        ),
        timestamp=_now(),
    )
    embed.add_field(
        name="🎯 **Core Performance**",
        value=(
            f"**K/D/A:** {match.kills}/{match.deaths}/{match.assists} ({kd.formatted})\n"
            f"**Rating:** {rating.display()}\n"
            f"**ADR:** {adr.display()}\n"
            f"**HS%:** {match.headshot_rate * 100:.0f}%"
        ),
        inline=True,
    )
    survival = match.rounds_survived / match.rounds_count if match.rounds_count else 0.0
    embed.add_field(
        name="⚡ **Match Impact**",
        value=(
            f"**Multi-Kill Rounds:** {match.multi_kills}\n"
            f"**Flash Assists:** {match.flash_assists}\n"
            f"**Survival:** {format_percentage(survival, 0)}"
        ),
        inline=True,
    )

    highlights = []
    if match.rating >= 1.20:
        highlights.append("🔥 Hot Performance")
    if match.kd_ratio >= 1.5:
        highlights.append("⚔️ High Fragging")
    if match.multi_kills >= 3:
        highlights.append("🎯 Multi-Kill Machine")
    if match.headshot_rate >= 0.5:
        highlights.append("💥 Headhunter")
    if highlights:
        embed.add_field(name="🌟 **Highlights**", value=" • ".join(highlights), inline=False)

    embed.set_footer(text="Click title for detailed round-by-round analysis on Leetify", icon_url=avatar_url)
    return embed


# =============================================================================
# Errors and help
# =============================================================================


def error_embed(title: str, message: str) -> discord.Embed:
    embed = discord.Embed(title=f"❌ {title}", description=message, color=COLOR_RED)
    embed.set_footer(text="If the problem persists, please contact support.")
    return embed


def invalid_steam_id_embed() -> discord.Embed:
    embed = discord.Embed(title="❌ Invalid Steam ID", description=ACCEPTED_FORMATS_HELP, color=COLOR_RED)
    embed.set_footer(text="Need help finding your Steam ID? Check your Steam profile URL!")
    return embed


def no_linked_account_embed(command: str) -> discord.Embed:
    return discord.Embed(
        title="🔗 No Linked Account",
        description=(
            "You don't have a Steam account linked. Please either:\n\n"
            "• Use `/link <steam_id>` to link your account\n"
            f"• Or specify a Steam ID: `/{command} <steam_id>`"
        ),
        color=COLOR_LIGHT_RED,
    )


def no_data_embed() -> discord.Embed:
    return discord.Embed(
        title="📊 No Data Available",
        description=(
            "Could not find enough data to generate an improvement report.\n\n"
            "Make sure this player has recent CS2 matches on Leetify."
        ),
        color=COLOR_LIGHT_RED,
    )


def no_matches_embed() -> discord.Embed:
    embed = discord.Embed(
        title="📊 No Recent Matches",
        description=(
            "No recent matches found for this player. This could mean:\n\n"
            "• No recent CS2 matches played\n"
            "• Matches not yet processed by Leetify\n"
            "• Private profile or limited data access"
        ),
        color=COLOR_LIGHT_RED,
    )
    embed.set_footer(text="Match data is provided by Leetify API")
    return embed


def build_help_embed() -> discord.Embed:
    embed = discord.Embed(
        title="🤖 leetcoach - CS2 Stats & Coaching",
        description="Counter-Strike 2 statistics and personalised improvement reports.",
        color=COLOR_BRAND,
        timestamp=_now(),
    )
    embed.add_field(
        name="🔗 **Setup Commands**",
        value="`/link <steam_id>` - Link your Steam account\n`/unlink` - Remove your linked Steam account",
        inline=False,
    )
    embed.add_field(
        name="📊 **Stats Commands**",
        value=(
            "`/improve [player]` - Improvement report with focus areas and drills\n"
            "`/stats [player]` - Graded player statistics\n"
            "`/recent [player] [matches]` - Recent match performance\n"
            "`/help grading` - How the overall grade is calculated"
        ),
        inline=False,
    )
    embed.add_field(
        name="🔔 **Match Notifications**",
        value=(
            "`/watch start` - Post your new matches in this channel\n"
            "`/watch stop` - Stop notifications in this channel\n"
            "`/watch status` - Show where you are watched"
        ),
        inline=False,
    )
    embed.add_field(
        name="💡 **Tips**",
        value=(
            "• Link your Steam account once to use commands without a Steam ID\n"
            "• Steam ID can be: Steam64, Steam32, SteamID, or profile URL\n"
            "• All statistics are powered by Leetify API"
        ),
        inline=False,
    )
    embed.set_footer(text="leetcoach • Powered by Leetify API")
    return embed


def build_grading_help_embed() -> discord.Embed:
    labels = {
        "win_rate": "Win Rate",
        "rating": "Leetify Rating",
        "kd_ratio": "K/D Ratio",
        "adr": "ADR",
        "first_kill_rate": "Opening Duels",
        "clutch_rate": "Clutching",
        "headshot_rate": "Headshot %",
    }
    factors = sorted(OVERALL_WEIGHTS.items(), key=lambda item: item[1], reverse=True)
    embed = discord.Embed(
        title="🎖️ Grading System",
        description="How your **Overall Grade** is calculated:",
        color=COLOR_BRAND,
        timestamp=_now(),
    )
    embed.add_field(
        name="**Scoring Factors**",
        value="\n".join(f"• **{labels[name]} ({weight:.0%})**" for name, weight in factors),
        inline=False,
    )
    embed.add_field(
        name="**Grades**",
        value="\n".join(f"{g.emoji} **{g.letter}** - {g.description}" for g in GRADES.values()),
        inline=False,
    )
    embed.add_field(
        name="**Analysis Period**",
        value="Grades use your **recent competitive matches** to reflect current form, not lifetime stats.",
        inline=False,
    )
    return embed


def build_watch_status_embed(steam_id: str, channel_ids: Sequence[str], interval_minutes: int) -> discord.Embed:
    embed = discord.Embed(title="📊 Watch Status", color=COLOR_INFO, timestamp=_now())
    embed.add_field(name="🔗 Linked Account", value=f"Steam ID: `{steam_id}`", inline=True)
    if not channel_ids:
        embed.description = "You're not currently watching for matches in any channels."
        embed.add_field(
            name="💡 Getting Started",
            value="Use `/watch start` in any channel to begin receiving match notifications there.",
            inline=False,
        )
    else:
        count = len(channel_ids)
        embed.description = (
            f"You're watching for match notifications in **{count}** channel{'s' if count > 1 else ''}:"
        )
        embed.add_field(
            name="📺 Active Channels",
            value=_clip("\n".join(f"<#{c}>" for c in channel_ids)),
            inline=False,
        )
    embed.set_footer(text=f"Match monitoring checks every {interval_minutes} minutes")
    return embed
