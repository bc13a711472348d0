"""Init command implementation."""

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from ..config import ConfigModel, ScheduleConfig, save_config, save_feeds, save_schedules
from ..db import init_database, validate_connection
from ..models import Schedule

console = Console()


def init_command(
    config_dir: Path = typer.Option(
        Path.home() / ".config" / "feedcycle",
        "--config-dir",
        "-c",
        help="Configuration directory",
    ),
    databaseless: bool = typer.Option(
        False,
        "--databaseless",
        help="Keep stored documents in memory instead of Postgres",
    ),
    db_host: str = typer.Option("localhost", "--db-host", help="Postgres host"),
    db_port: int = typer.Option(5432, "--db-port", help="Postgres port"),
    db_name: str = typer.Option("feedcycle", "--db-name", help="Database name"),
    db_user: str = typer.Option("feedcycle_user", "--db-user", help="Database user"),
) -> None:
    """Initialize feedcycle configuration and database."""
    console.print(Panel.fit("feedcycle - Initialization", style="bold blue"))

    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / "config.yaml"
    feeds_path = config_dir / "feeds.yaml"
    schedules_path = config_dir / "schedules.yaml"

    config = ConfigModel(
        postgres={
            "enabled": not databaseless,
            "host": db_host,
            "port": db_port,
            "database": db_name,
            "user": db_user,
            "password_env": "FEEDCYCLE_DB_PASSWORD",
        },
    )

    save_config(config, config_path)
    console.print(f"✅ Created config: {config_path}")

    if not feeds_path.exists():
        save_feeds([], feeds_path)
        console.print(f"✅ Created feeds: {feeds_path} (empty)")

    if not schedules_path.exists():
        example = ScheduleConfig(name="slow", refresh_minutes=60, keywords=["archive.org"])
        save_schedules([Schedule(**example.model_dump())], schedules_path)
        console.print(f"✅ Created schedules: {schedules_path}")

    if databaseless:
        console.print("[yellow]Databaseless mode: skipping database setup[/yellow]")
        return

    console.print("\n[bold]Testing database connection...[/bold]")
    db_config = config.postgres.model_dump()

    if not validate_connection(db_config):
        console.print(
            "[red]❌ Database connection failed![/red]\n"
            "Please ensure Postgres is running and credentials are correct.\n"
            "Set the password via environment variable: "
            "[bold]export FEEDCYCLE_DB_PASSWORD=your_password[/bold]"
        )
        raise typer.Exit(1)

    console.print("✅ Database connection successful")

    try:
        init_database(db_config)
        console.print("✅ Database schema initialized")
    except Exception as e:
        console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[green]✅ feedcycle initialized![/green]\n\n"
            f"Configuration: {config_path}\n"
            f"Feeds: {feeds_path}\n"
            f"Schedules: {schedules_path}\n\n"
            f"Next steps:\n"
            f"1. Add feeds: [bold]feedcycle feeds add --id ID --url URL --guild GUILD --channel CHANNEL[/bold]\n"
            f"2. Run: [bold]feedcycle run[/bold]",
            style="green",
        )
    )
