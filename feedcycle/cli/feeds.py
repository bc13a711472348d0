"""Feed subscription commands."""

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Config, load_feeds, save_feeds
from ..db import FeedManager, get_connection
from ..models import Feed

console = Console()
feeds_app = typer.Typer(help="Manage feed subscriptions")


def _load(config: Config) -> List[Feed]:
    try:
        return load_feeds(config.feeds_path)
    except FileNotFoundError:
        console.print("[red]Feeds file not found. Run 'feedcycle init' first.[/red]")
        raise typer.Exit(1)


@feeds_app.command("list")
def feeds_list() -> None:
    """List configured feeds."""
    feeds = _load(Config())

    if not feeds:
        console.print("[yellow]No feeds configured.[/yellow]")
        return

    table = Table(title="Feeds")
    table.add_column("ID", style="cyan")
    table.add_column("Guild", style="magenta")
    table.add_column("Enabled", style="yellow")
    table.add_column("Comparisons", style="green")
    table.add_column("URL", style="blue")

    for feed in feeds:
        comparisons = [f"-{c}" for c in feed.ncomparisons] + [f"+{c}" for c in feed.pcomparisons]
        table.add_row(
            feed.id,
            feed.guild,
            "✓" if feed.is_enabled else f"✗ {feed.disabled}",
            " ".join(comparisons),
            feed.url,
        )

    console.print(table)


@feeds_app.command("add")
def feeds_add(
    feed_id: str = typer.Option(..., "--id", help="Feed id"),
    url: str = typer.Option(..., "--url", "-u", help="Feed URL"),
    guild: str = typer.Option(..., "--guild", "-g", help="Owning guild id"),
    channel: str = typer.Option(..., "--channel", help="Delivery channel id"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Feed title"),
    ncomparisons: List[str] = typer.Option([], "--ncomparison", "-n", help="Negative comparison key"),
    pcomparisons: List[str] = typer.Option([], "--pcomparison", "-p", help="Positive comparison key"),
) -> None:
    """Add a feed subscription."""
    config = Config()
    try:
        feeds = load_feeds(config.feeds_path)
    except FileNotFoundError:
        feeds = []

    if any(f.id == feed_id for f in feeds):
        console.print(f"[red]Feed '{feed_id}' already exists.[/red]")
        raise typer.Exit(1)

    feeds.append(
        Feed(
            id=feed_id,
            title=title or url,
            channel=channel,
            url=url,
            guild=guild,
            ncomparisons=ncomparisons,
            pcomparisons=pcomparisons,
        )
    )
    save_feeds(feeds, config.feeds_path)
    console.print(f"[green]✅ Added feed: {feed_id}[/green]")


@feeds_app.command("remove")
def feeds_remove(
    feed_id: str = typer.Argument(..., help="Feed id to remove"),
) -> None:
    """Remove a feed, its schedule assignments and unused stored articles."""
    config = Config()
    feeds = _load(config)

    removed = [f for f in feeds if f.id == feed_id]
    if not removed:
        console.print(f"[red]Feed '{feed_id}' not found.[/red]")
        raise typer.Exit(1)

    save_feeds([f for f in feeds if f.id != feed_id], config.feeds_path)

    if not config.databaseless:
        with get_connection(config.get_db_config()) as conn:
            FeedManager().delete_feed(conn, removed[0])

    console.print(f"[green]✅ Removed feed: {feed_id}[/green]")


@feeds_app.command("enable")
def feeds_enable(
    feed_id: str = typer.Argument(..., help="Feed id to enable"),
) -> None:
    """Re-enable a disabled feed."""
    config = Config()
    feeds = _load(config)

    for feed in feeds:
        if feed.id == feed_id:
            feed.enable()
            save_feeds(feeds, config.feeds_path)
            console.print(f"[green]✅ Enabled feed: {feed_id}[/green]")
            return

    console.print(f"[red]Feed '{feed_id}' not found.[/red]")
    raise typer.Exit(1)
