"""Schedule assignment commands."""

from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config, load_feeds, load_schedules
from ..db import FeedManager, ScheduleManager, get_connection
from ..models import Feed
from ..scheduling import (
    MemoryAssignedSchedules,
    ScheduleAssigner,
    StaticScheduleRegistry,
    StaticSupporterRegistry,
)

console = Console()
schedules_app = typer.Typer(help="Inspect and assign schedules")


def create_assigner(config: Config, conn: Any = None) -> ScheduleAssigner:
    """Assigner backed by Postgres, or by config files when databaseless."""
    supporter_config = config.config.supporter
    if conn is None:
        return ScheduleAssigner(
            supporter_config,
            assignments=MemoryAssignedSchedules(),
            schedules=StaticScheduleRegistry(load_schedules(config.schedules_path)),
            supporters=StaticSupporterRegistry(supporter_config.guilds),
        )
    return ScheduleAssigner(supporter_config, conn=conn)


def sync_registries(config: Config, conn: Any) -> List[Feed]:
    """Push feeds.yaml and schedules.yaml into the database."""
    feeds = load_feeds(config.feeds_path)
    FeedManager().sync_feeds(conn, feeds)
    ScheduleManager().sync_schedules(conn, load_schedules(config.schedules_path))
    return feeds


def assign_all(
    assigner: ScheduleAssigner,
    feeds: List[Feed],
    shard: int,
    reassign: bool = False,
) -> Dict[str, Optional[str]]:
    """Assign every feed on a shard, fetching registries once."""
    supporter_guilds = assigner.supporter_registry.get_valid_guilds(assigner.conn)
    schedules = assigner.schedule_registry.get_all(assigner.conn)
    method = assigner.reassign_schedule if reassign else assigner.assign_schedule
    return {feed.id: method(feed, shard, supporter_guilds, schedules) for feed in feeds}


def _print_assignments(feeds: List[Feed], assigner: ScheduleAssigner, shard: int) -> None:
    table = Table(title=f"Schedule assignments (shard {shard})")
    table.add_column("Feed", style="cyan")
    table.add_column("Schedule", style="green")
    table.add_column("URL", style="blue")

    for feed in feeds:
        record = assigner.assignments.get_by_feed_and_shard(assigner.conn, feed.id, shard)
        table.add_row(feed.id, record.schedule if record else "-", feed.url)

    console.print(table)


@schedules_app.command("list")
def schedules_list() -> None:
    """List configured schedules."""
    config = Config()
    schedules = load_schedules(config.schedules_path)

    table = Table(title="Schedules")
    table.add_column("Name", style="cyan")
    table.add_column("Refresh (min)", style="yellow")
    table.add_column("Keywords", style="magenta")
    table.add_column("Feeds", style="green")

    table.add_row("default", "-", "", "")
    if config.config.supporter.enabled:
        supporter = config.config.supporter.schedule
        table.add_row(supporter.name, f"{supporter.refresh_minutes:g}", "", "")
    for schedule in schedules:
        table.add_row(
            schedule.name,
            f"{schedule.refresh_minutes:g}",
            ", ".join(schedule.keywords),
            ", ".join(schedule.feeds),
        )

    console.print(table)


@schedules_app.command("assign")
def schedules_assign(
    shard: int = typer.Option(-1, "--shard", "-s", help="Shard id"),
    reassign: bool = typer.Option(
        False,
        "--reassign",
        help="Drop existing assignments and decide again",
    ),
) -> None:
    """Assign every feed to a schedule."""
    config = Config()

    if config.databaseless:
        feeds = load_feeds(config.feeds_path)
        assigner = create_assigner(config)
        assign_all(assigner, feeds, shard, reassign)
        _print_assignments(feeds, assigner, shard)
        return

    with get_connection(config.get_db_config()) as conn:
        feeds = sync_registries(config, conn)
        assigner = create_assigner(config, conn)
        decided = assign_all(assigner, feeds, shard, reassign)
        _print_assignments(feeds, assigner, shard)

    changed = sum(1 for name in decided.values() if name)
    console.print(f"[green]✅ {changed} feeds assigned[/green]")


@schedules_app.command("reassign")
def schedules_reassign(
    feed_id: str = typer.Argument(..., help="Feed id to reassign"),
    shard: int = typer.Option(-1, "--shard", "-s", help="Shard id"),
) -> None:
    """Recompute one feed's schedule."""
    config = Config()
    if config.databaseless:
        console.print("[yellow]Assignments are not persisted in databaseless mode.[/yellow]")
        raise typer.Exit(1)

    with get_connection(config.get_db_config()) as conn:
        feed = FeedManager().get_feed(conn, feed_id)
        if feed is None:
            console.print(f"[red]Feed '{feed_id}' not found. Run 'feedcycle schedules assign' first.[/red]")
            raise typer.Exit(1)
        schedule_name = create_assigner(config, conn).reassign_schedule(feed, shard)

    console.print(f"[green]✅ {feed_id} -> {schedule_name}[/green]")
