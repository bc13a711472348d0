"""Supporter guild commands."""

from typing import Optional

import pendulum
import typer
from rich.console import Console

from ..config import Config
from ..db import SupporterManager, get_connection

console = Console()
supporters_app = typer.Typer(help="Manage supporter guilds")


@supporters_app.command("add")
def supporters_add(
    guild: str = typer.Argument(..., help="Guild id"),
    days: Optional[int] = typer.Option(
        None,
        "--days",
        "-d",
        help="Days until supporter status expires. Default: never",
        min=1,
    ),
) -> None:
    """Grant a guild supporter status."""
    config = Config()
    if config.databaseless:
        console.print("[yellow]Databaseless mode reads supporter guilds from config.yaml.[/yellow]")
        raise typer.Exit(1)

    expire_at = pendulum.now("UTC").add(days=days) if days else None
    with get_connection(config.get_db_config()) as conn:
        SupporterManager().add_supporter(conn, guild, expire_at)

    until = expire_at.to_date_string() if expire_at else "no expiry"
    console.print(f"[green]✅ Supporter added: {guild} ({until})[/green]")


@supporters_app.command("list")
def supporters_list() -> None:
    """List guilds with valid supporter status."""
    config = Config()
    if config.databaseless:
        guilds = config.config.supporter.guilds
    else:
        with get_connection(config.get_db_config()) as conn:
            guilds = SupporterManager().get_valid_guilds(conn)

    if not guilds:
        console.print("[yellow]No supporter guilds.[/yellow]")
        return
    for guild in guilds:
        console.print(f"  • {guild}")
