"""Run command implementation."""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config, load_feeds, load_schedules, save_feeds
from ..db import (
    ArticleStorage,
    AssignedScheduleManager,
    FeedManager,
    get_connection,
    open_async_pool,
    setup_article_tables,
)
from ..log import configure_logging
from ..models import DEFAULT_SCHEDULE, Feed
from ..pipeline import CycleOrchestrator, CycleReport
from ..pipeline.orchestrator import FAILURE_LIMIT_REASON
from .schedules import assign_all, create_assigner, sync_registries

console = Console()

DEFAULT_REFRESH_MINUTES = 10.0


async def _with_storage(config: Config, action: Callable[[ArticleStorage], Awaitable]) -> None:
    pool = await open_async_pool(config.get_db_config(), max_size=2)
    try:
        await setup_article_tables(pool)
        await action(ArticleStorage(pool))
    finally:
        await pool.close()


def _refresh_minutes(config: Config, schedule_name: str) -> float:
    supporter = config.config.supporter.schedule
    if schedule_name == supporter.name:
        return supporter.refresh_minutes
    for schedule in load_schedules(config.schedules_path):
        if schedule.name == schedule_name:
            return schedule.refresh_minutes
    return DEFAULT_REFRESH_MINUTES


def _scheduled_feeds(config: Config, schedule_name: str, shard: int) -> List[Feed]:
    """Assign feeds and keep the ones polled by this schedule."""
    if config.databaseless:
        feeds = load_feeds(config.feeds_path)
        assigner = create_assigner(config)
        assign_all(assigner, feeds, shard)
        owned = {r.feed for r in assigner.assignments.get_by_schedule(None, schedule_name, shard)}
        return [f for f in feeds if f.id in owned]

    with get_connection(config.get_db_config()) as conn:
        feeds = sync_registries(config, conn)
        assign_all(create_assigner(config, conn), feeds, shard)
        owned = {r.feed for r in AssignedScheduleManager().get_by_schedule(conn, schedule_name, shard)}
    return [f for f in feeds if f.id in owned]


def _disable_feeds(config: Config, feeds: List[Feed], feed_ids: List[str]) -> None:
    disabled = [f for f in feeds if f.id in feed_ids]
    if not disabled:
        return
    for feed in disabled:
        feed.disable(FAILURE_LIMIT_REASON)

    all_feeds = load_feeds(config.feeds_path)
    for feed in all_feeds:
        if feed.id in feed_ids:
            feed.disable(FAILURE_LIMIT_REASON)
    save_feeds(all_feeds, config.feeds_path)

    if not config.databaseless:
        with get_connection(config.get_db_config()) as conn:
            manager = FeedManager()
            for feed in disabled:
                manager.save_feed(conn, feed)


def _print_report(report: CycleReport) -> None:
    table = Table(title=f"Cycle {report.run_num} - {report.schedule_name}")
    table.add_column("Succeeded", style="green")
    table.add_column("Failed", style="red")
    table.add_column("Articles", style="cyan")
    table.add_column("Disabled feeds", style="yellow")
    table.add_column("Aborted batches", style="magenta")
    table.add_row(
        str(len(report.succeeded)),
        str(len(report.failed)),
        str(report.articles),
        ", ".join(report.disabled_feeds) or "-",
        str(report.aborted_batches),
    )
    console.print(table)


def run_command(
    schedule_name: str = typer.Option(DEFAULT_SCHEDULE, "--schedule", "-s", help="Schedule to run"),
    shard: int = typer.Option(-1, "--shard", help="Shard id"),
    cycles: int = typer.Option(1, "--cycles", "-n", help="Number of cycles to run", min=1),
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        help="Seconds between cycles. Default: the schedule's refresh rate",
    ),
    debug_urls: List[str] = typer.Option([], "--debug-url", help="Log every step for this URL"),
) -> None:
    """Poll the feeds of one schedule."""
    try:
        config = Config()
        configure_logging(config.config.log.level)

        feeds = _scheduled_feeds(config, schedule_name, shard)
        if not feeds:
            console.print(f"[yellow]No feeds assigned to schedule '{schedule_name}'.[/yellow]")
            return

        if interval is None:
            interval = _refresh_minutes(config, schedule_name) * 60

        orchestrator = CycleOrchestrator(config.config, debug_urls=debug_urls)
        if not config.databaseless:
            asyncio.run(_with_storage(
                config, lambda storage: orchestrator.replay_pending(storage, schedule_name)
            ))

        for cycle in range(cycles):
            report = orchestrator.run_cycle(schedule_name, feeds)
            _disable_feeds(config, feeds, report.disabled_feeds)
            if not config.databaseless:
                asyncio.run(_with_storage(config, orchestrator.flush_confirmed))
            _print_report(report)

            if cycle < cycles - 1:
                time.sleep(interval)

    except KeyboardInterrupt:
        console.print("\n[yellow]Run interrupted by user[/yellow]")
        raise typer.Exit(1)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Run failed: {e}[/red]")
        raise typer.Exit(1)
