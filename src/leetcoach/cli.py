"""
leetcoach CLI - Command Line Interface

Provides commands for:
- Improvement reports, graded stats and recent matches from the terminal
- Running the Discord bot
- Writing a default configuration file
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from leetcoach import __version__
from leetcoach.analysis.grading import StatKind, grade_stat, match_rating_emoji, overall_grade
from leetcoach.analysis.models import ImprovementReport
from leetcoach.analysis.normalize import format_percentage, format_relative_rating
from leetcoach.analysis.resources import ResourceCatalog
from leetcoach.core.config import LeetcoachConfig, generate_default_config, load_config, set_config
from leetcoach.core.logging_setup import setup_logging
from leetcoach.integrations.leetify import LeetifyAPIError, LeetifyClient, fetch_improvement_report
from leetcoach.integrations.steam import require_steam64

app = typer.Typer(
    name="leetcoach",
    help="CS2 improvement coach powered by the Leetify public API",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)

_state: dict[str, LeetcoachConfig] = {}


def _config() -> LeetcoachConfig:
    if "config" not in _state:
        _state["config"] = load_config()
    return _state["config"]


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]leetcoach[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a YAML, TOML or JSON config file", exists=True, dir_okay=False
    ),
) -> None:
    """leetcoach - CS2 stats and coaching"""
    config = load_config(config_file)
    set_config(config)
    _state["config"] = config
    setup_logging(config.logging)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _steam64_or_exit(steam_id: str) -> str:
    try:
        return require_steam64(steam_id)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("Accepted: Steam64, Steam32, STEAM_0:Y:Z or a steamcommunity.com/profiles URL")
        raise typer.Exit(2)


def _run_api(coro_factory):
    """Run an API call with a fresh client, turning API errors into exit code 1."""

    async def runner():
        async with LeetifyClient(_config().leetify) as client:
            return await coro_factory(client)

    try:
        return asyncio.run(runner())
    except LeetifyAPIError as e:
        console.print(f"[red]Leetify API error:[/red] {e.user_message or e.message}")
        raise typer.Exit(1)


def _print_report(report: ImprovementReport) -> None:
    console.print(f"\n[bold blue]{report.player_name}[/bold blue] - benchmark tier {report.tier.name}\n")

    table = Table(title="Category Ratings")
    table.add_column("Category", style="cyan")
    table.add_column("Rating", justify="right")
    table.add_column("Status")
    for area in report.areas:
        rating = format_relative_rating(area.rating) if area.is_relative else f"{area.rating:g}/100"
        status = "[yellow]needs work[/yellow]" if area.has_real_issue else "[green]ok[/green]"
        table.add_row(f"{area.emoji} {area.category.value}", rating, status)
    console.print(table)

    if report.side_balance.has_imbalance:
        console.print(Panel(report.side_balance.advice, title="Side Imbalance", border_style="yellow"))

    for area in report.focus_areas:
        lines = [f"• {issue}" for issue in area.issues]
        if area.drills:
            lines.append("")
            lines.extend(f"→ {drill}" for drill in area.drills)
        console.print(Panel("\n".join(lines), title=f"Focus: {area.category.value}", border_style="red"))

    for insight in report.cross_insights:
        console.print(f"[magenta]{insight.label}:[/magenta] {insight.detail}")

    if report.resources:
        console.print("\n[bold]Practice resources[/bold]")
        for resource in report.resources:
            console.print(f"  {resource.emoji} {resource.title}: {resource.link}")
    console.print()


@app.command()
def improve(
    steam_id: str = typer.Argument(..., help="Steam64, Steam32, STEAM_0:Y:Z or profile URL"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Generate an improvement report for a player."""
    steam64 = _steam64_or_exit(steam_id)
    catalog = ResourceCatalog.load()
    result = _run_api(lambda client: fetch_improvement_report(client, steam64, catalog))
    if result is None:
        console.print("[yellow]Could not find enough data to generate an improvement report.[/yellow]")
        raise typer.Exit(1)

    _, report = result
    if as_json:
        console.print_json(json.dumps(report.to_dict()))
    else:
        _print_report(report)


@app.command()
def stats(steam_id: str = typer.Argument(..., help="Steam64, Steam32, STEAM_0:Y:Z or profile URL")) -> None:
    """Show graded statistics over recent matches."""
    steam64 = _steam64_or_exit(steam_id)
    summary = _run_api(lambda client: client.get_player_profile(steam64))

    rows = [
        ("K/D Ratio", grade_stat(summary.kd_ratio, StatKind.KILL_DEATH_RATIO)),
        ("ADR", grade_stat(summary.adr, StatKind.DAMAGE_PER_ROUND)),
        ("Headshot %", grade_stat(summary.headshot_rate, StatKind.HEADSHOT_RATE)),
        ("Win Rate", grade_stat(summary.win_rate, StatKind.WIN_RATE)),
        ("Leetify Rating", grade_stat(summary.leetify_rating, StatKind.RATING)),
    ]
    table = Table(title=f"{summary.nickname} - last {summary.matches_analyzed} matches")
    table.add_column("Stat", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Grade", justify="center")
    for label, graded in rows:
        table.add_row(label, graded.formatted, f"{graded.grade.emoji} {graded.grade.letter}")
    table.add_row("Survival Rate", format_percentage(summary.survival_rate), "")
    table.add_row("Multi-Kill Rounds", format_percentage(summary.multi_kill_rate), "")
    console.print(table)

    overall = overall_grade(
        kd_ratio=summary.kd_ratio,
        adr=summary.adr,
        rating=summary.leetify_rating,
        win_rate=summary.win_rate,
        headshot_rate=summary.headshot_rate,
        first_kill_rate=summary.opening_rating,
        clutch_rate=summary.clutch_rating,
    )
    console.print(
        f"\n[bold]Overall:[/bold] {overall.grade.emoji} Grade {overall.grade.letter} "
        f"({overall.grade.description})\n"
    )


@app.command()
def recent(
    steam_id: str = typer.Argument(..., help="Steam64, Steam32, STEAM_0:Y:Z or profile URL"),
    limit: int = typer.Option(5, "--limit", "-n", min=1, max=10, help="Number of matches"),
) -> None:
    """Show recent match results."""
    steam64 = _steam64_or_exit(steam_id)
    matches = _run_api(lambda client: client.get_player_matches(steam64, limit))
    if not matches:
        console.print("[yellow]No recent matches found for this player.[/yellow]")
        return

    table = Table(title=f"Recent matches ({len(matches)})")
    table.add_column("Date")
    table.add_column("Map", style="cyan")
    table.add_column("Result")
    table.add_column("Score", justify="center")
    table.add_column("K/D/A", justify="center")
    table.add_column("ADR", justify="right")
    table.add_column("Rating", justify="right")
    colors = {"win": "green", "loss": "red"}
    for match in matches:
        color = colors.get(match.result, "yellow")
        table.add_row(
            match.finished_at.strftime("%Y-%m-%d") if match.finished_at else "-",
            match.map_name,
            f"[{color}]{match.result}[/{color}]",
            f"{match.player_score}-{match.opponent_score}",
            f"{match.kills}/{match.deaths}/{match.assists}",
            f"{match.adr:.0f}",
            f"{match_rating_emoji(match.rating)} {match.rating:.2f}",
        )
    console.print(table)


@app.command()
def bot() -> None:
    """Run the Discord bot."""
    from leetcoach.discord_bot import run_bot

    try:
        run_bot(_config())
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path("leetcoach.yaml"), help="Where to write the config file"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        console.print(f"[red]Error:[/red] {path} already exists (use --force to overwrite)")
        raise typer.Exit(1)
    generate_default_config(path)
    console.print(f"[green]Config written to:[/green] {path}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
