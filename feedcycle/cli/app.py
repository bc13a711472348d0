"""Main CLI application."""

import typer
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()

from .feeds import feeds_app
from .init import init_command
from .run import run_command
from .schedules import schedules_app
from .supporters import supporters_app

app = typer.Typer(
    name="feedcycle",
    help="feedcycle - Poll feeds on schedules and hand off new articles",
    no_args_is_help=True,
)

# Register commands
app.command("init")(init_command)
app.command("run")(run_command)
app.add_typer(feeds_app, name="feeds", help="Manage feed subscriptions")
app.add_typer(schedules_app, name="schedules", help="Inspect and assign schedules")
app.add_typer(supporters_app, name="supporters", help="Manage supporter guilds")


if __name__ == "__main__":
    app()
