"""
Decision Intelligence CLI
=========================

Operator commands over the intelligence service.

Usage:
    python -m decision_intel <command> [options]

Commands:
    db:init                         Create database tables
    db:check                        Check database connection
    profile:get                     Show a user's intelligence profile (cached)
    profile:regenerate              Force a profile rebuild
    profile:invalidate              Expire a cached profile
    graph:player                    Decision timeline for one player
    graph:season                    Season overview grouped by player
    graph:draft                     Draft picks joined against the board
    graph:multi-season              Cross-season prediction trends
    h2h:show                        Head-to-head record between two users

Examples:
    python -m decision_intel profile:get user-1 --sport nfl
    python -m decision_intel profile:regenerate user-1 --sport nfl --json
    python -m decision_intel graph:draft user-1 draft-2024
    python -m decision_intel h2h:show user-1 user-2 --sport nfl
"""

import asyncio
import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from decision_intel import __version__
from decision_intel.config import configure_logging
from decision_intel.errors import DecisionIntelError
from decision_intel.schemas import UserIntelligenceProfile

console = Console()


def get_service():
    """Service over the configured database. Replaced in tests."""
    from decision_intel.service import create_service
    return create_service()


def run(coro):
    """Run one coroutine, reporting pipeline errors as a failed command."""
    try:
        return asyncio.run(coro)
    except DecisionIntelError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", type=str, default=None, help="Override LOG_LEVEL")
def cli(log_level: Optional[str]):
    """Decision Intelligence - behavioral profiles from fantasy sports decisions."""
    configure_logging(log_level)


# =============================================================================
# DATABASE COMMANDS
# =============================================================================

@cli.command("db:init")
def cmd_db_init():
    """Create every table that does not exist yet."""
    from decision_intel.database import get_engine, init_models

    console.print("\n[bold]Decision Intelligence - Database Init[/bold]\n")
    asyncio.run(init_models(get_engine()))
    console.print("[green]Tables created.[/green]")


@cli.command("db:check")
def cmd_db_check():
    """Check database connection."""
    from decision_intel.database import check_database_connection, get_engine

    async def check() -> bool:
        engine = get_engine()
        try:
            return await check_database_connection(engine)
        finally:
            await engine.dispose()

    console.print("\n[bold]Checking database connection...[/bold]")

    if asyncio.run(check()):
        console.print("[green]Database connection successful![/green]")
    else:
        console.print("[red]Database connection failed![/red]")
        sys.exit(1)


# =============================================================================
# PROFILE COMMANDS
# =============================================================================

def _print_profile(profile: UserIntelligenceProfile) -> None:
    confidence_style = {"HIGH": "bold green", "MEDIUM": "yellow", "LOW": "red"}.get(
        profile.data_confidence.value, ""
    )
    console.print(f"[cyan]User:[/cyan] {profile.user_id}")
    console.print(f"[cyan]Sport:[/cyan] {profile.sport}")
    console.print(f"[cyan]Generated:[/cyan] {profile.generated_at.strftime('%Y-%m-%d %H:%M')}")
    console.print(f"[cyan]Data confidence:[/cyan] [{confidence_style}]{profile.data_confidence.value}[/]")
    console.print()

    table = Table(title="Insights")
    table.add_column("Kind")
    table.add_column("Area", style="cyan")
    table.add_column("Label")
    table.add_column("Value", justify="right")

    for s in profile.strengths:
        table.add_row("[green]strength[/green]", s.area, s.label, s.value or "")
    for w in profile.weaknesses:
        table.add_row(f"[red]weakness ({w.severity.value})[/red]", w.area, w.label, w.value or "")
    for t in profile.tendencies:
        table.add_row("tendency", "", t.label, t.value or "")

    if table.row_count:
        console.print(table)
    else:
        console.print("[yellow]Not enough data for insights yet.[/yellow]")

    if profile.one_thing_to_fix is not None:
        console.print(f"\n[bold]One thing to fix:[/bold] {profile.one_thing_to_fix.label}")


def _emit_profile(profile: UserIntelligenceProfile, as_json: bool) -> None:
    if as_json:
        console.print_json(profile.model_dump_json())
    else:
        _print_profile(profile)


@cli.command("profile:get")
@click.argument("user_id")
@click.option("--sport", type=str, default="nfl", help="Sport key")
@click.option("--json", "as_json", is_flag=True, help="Print the profile as JSON")
@click.option("--allow-stale", is_flag=True, help="Serve the last stored profile if the rebuild fails")
def cmd_profile_get(user_id: str, sport: str, as_json: bool, allow_stale: bool):
    """Show a user's profile, rebuilding it if missing or expired."""
    from decision_intel.errors import UpstreamUnavailable

    service = get_service()

    async def fetch():
        try:
            return await service.get_profile(user_id, sport)
        except UpstreamUnavailable:
            if not allow_stale:
                raise
            stale = await service.get_stale_profile(user_id, sport)
            if stale is None:
                raise
            console.print("[yellow]Event store unavailable, serving stale profile.[/yellow]")
            return stale

    _emit_profile(run(fetch()), as_json)


@cli.command("profile:regenerate")
@click.argument("user_id")
@click.option("--sport", type=str, default="nfl", help="Sport key")
@click.option("--json", "as_json", is_flag=True, help="Print the profile as JSON")
def cmd_profile_regenerate(user_id: str, sport: str, as_json: bool):
    """Rebuild a profile regardless of its expiry."""
    service = get_service()
    _emit_profile(run(service.regenerate_profile(user_id, sport)), as_json)


@cli.command("profile:invalidate")
@click.argument("user_id")
@click.option("--sport", type=str, default="nfl", help="Sport key")
def cmd_profile_invalidate(user_id: str, sport: str):
    """Expire a cached profile so the next read rebuilds it."""
    service = get_service()
    if run(service.invalidate_profile(user_id, sport)):
        console.print(f"[green]Invalidated profile for {user_id} ({sport}).[/green]")
    else:
        console.print(f"[yellow]No cached profile for {user_id} ({sport}).[/yellow]")


# =============================================================================
# GRAPH COMMANDS
# =============================================================================

@cli.command("graph:player")
@click.argument("user_id")
@click.argument("player_id")
def cmd_graph_player(user_id: str, player_id: str):
    """Chronological decision timeline for one player."""
    service = get_service()
    graph = run(service.build_graph("player", (user_id, player_id)))

    console.print(f"\n[bold]Player {player_id}[/bold] (watched: {'yes' if graph.is_watched else 'no'})\n")
    if not graph.timeline:
        console.print("[yellow]No decisions recorded for this player.[/yellow]")
        return

    table = Table(title=f"Timeline ({len(graph.timeline)} items)")
    table.add_column("When")
    table.add_column("Kind", style="cyan")
    table.add_column("Detail")
    for item in graph.timeline:
        table.add_row(item.at.strftime("%Y-%m-%d %H:%M"), item.kind, item.label)
    console.print(table)


@cli.command("graph:season")
@click.argument("user_id")
@click.argument("year", type=int)
@click.option("--sport", type=str, default="nfl", help="Sport key")
def cmd_graph_season(user_id: str, year: int, sport: str):
    """Everything a user did in one season, grouped by player."""
    service = get_service()
    graph = run(service.build_graph("season", (user_id, sport, year)))

    summary = graph.summary
    console.print(f"\n[bold]Season {year} ({sport})[/bold]\n")
    console.print(f"[cyan]Players:[/cyan] {summary.unique_players}")
    console.print(f"[cyan]Opinion events:[/cyan] {summary.total_events}")
    console.print(f"[cyan]Predictions:[/cyan] {summary.total_predictions}")
    console.print(f"[cyan]Draft picks:[/cyan] {summary.total_draft_picks}")
    console.print(f"[cyan]Captures:[/cyan] {summary.total_captures}")
    console.print(f"[cyan]Waiver wins:[/cyan] {summary.total_waiver_claims}")
    console.print(f"[cyan]Accepted trades:[/cyan] {summary.total_trades}")


@cli.command("graph:draft")
@click.argument("user_id")
@click.argument("draft_id")
def cmd_graph_draft(user_id: str, draft_id: str):
    """A user's picks in one draft joined against their latest board."""
    service = get_service()
    graph = run(service.build_graph("draft", (user_id, draft_id)))

    console.print(f"\n[bold]Draft {draft_id}[/bold] ({graph.sport}, {graph.total_rounds} rounds)")
    console.print(f"[cyan]Board:[/cyan] {graph.board_name or 'none'}\n")

    table = Table(title=f"Picks ({graph.deviation_summary.total_picks})")
    table.add_column("Pick", justify="right")
    table.add_column("Player", style="cyan")
    table.add_column("Board rank", justify="right")
    table.add_column("Deviation", justify="right")
    table.add_column("Reach")
    for p in graph.picks:
        table.add_row(
            str(p.pick.pick_number),
            p.pick.player_name or p.pick.player_id,
            str(p.board_rank) if p.board_rank is not None else "-",
            str(p.deviation) if p.deviation is not None else "-",
            {True: "[red]yes[/red]", False: "no", None: "-"}[p.is_reach],
        )
    console.print(table)

    if graph.deviation_summary.avg_deviation is not None:
        console.print(f"\n[cyan]Average deviation:[/cyan] {graph.deviation_summary.avg_deviation}")


@cli.command("graph:multi-season")
@click.argument("user_id")
@click.option("--sport", type=str, default="nfl", help="Sport key")
def cmd_graph_multi_season(user_id: str, sport: str):
    """Prediction accuracy and volume across seasons."""
    service = get_service()
    graph = run(service.build_graph("multi_season", (user_id, sport)))

    if graph.note:
        console.print(f"[yellow]{graph.note}[/yellow]")
        return

    table = Table(title="Seasons")
    table.add_column("Season", justify="right")
    table.add_column("Predictions", justify="right")
    table.add_column("Resolved", justify="right")
    table.add_column("Accuracy", justify="right", style="green")
    for s in graph.season_graphs:
        accuracy = f"{s.prediction_accuracy:.0%}" if s.prediction_accuracy is not None else "-"
        table.add_row(str(s.season), str(s.total_predictions), str(s.resolved), accuracy)
    console.print(table)


# =============================================================================
# HEAD-TO-HEAD COMMANDS
# =============================================================================

@cli.command("h2h:show")
@click.argument("user_id")
@click.argument("opponent_id")
@click.option("--sport", type=str, default=None, help="Restrict to one sport")
def cmd_h2h_show(user_id: str, opponent_id: str, sport: Optional[str]):
    """Head-to-head record from USER_ID's side."""
    service = get_service()
    record = run(service.head_to_head(user_id, opponent_id, sport))

    console.print(f"\n[bold]{record.user_id} vs {record.opponent_id}[/bold]\n")
    if not record.has_matchup_data:
        console.print("[yellow]These users have never played each other.[/yellow]")
        return

    console.print(f"[cyan]Record:[/cyan] {record.wins}-{record.losses}-{record.ties}")
    console.print(f"[cyan]Points:[/cyan] {record.points_for} for, {record.points_against} against")
    if record.avg_margin is not None:
        console.print(f"[cyan]Average margin:[/cyan] {record.avg_margin:+}")


if __name__ == "__main__":
    cli()
