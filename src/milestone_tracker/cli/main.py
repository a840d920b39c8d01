"""
CLI entry point using Typer.

Provides commands for tier and milestone progression:
- init / profile: Create, edit and show the athlete profile
- log-workout: Count a workout towards a milestone
- complete-benchmark: Mark a benchmark challenge as done
- status / milestones / requirements: Inspect the current tier
- history / delete-workout: Browse and edit the workout log
- reset / tier-up / tier-clear: Maintenance
"""

from typing import Annotated

import typer

from ..logging_config import setup_logging
from . import views
from .app import app
from .commands import maintenance  # noqa: F401  (registers reset, tier-up, tier-clear)
from .commands.history import history
from .commands.profile import init
from .commands.progress import log_workout, milestones, status


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Debug logging on stderr"),
    ] = False,
    log_json: Annotated[
        bool,
        typer.Option("--log-json", help="Write log records to stderr as JSON lines"),
    ] = False,
) -> None:
    """
    Workout milestone tracker. Run without a command for interactive mode.
    """
    setup_logging("DEBUG" if verbose else None, json_format=log_json)

    if ctx.invoked_subcommand is not None:
        return

    views.console.print()
    views.console.print("[bold cyan]milestone-tracker[/bold cyan]: tiers of workout milestones")
    views.console.print()

    menu = {
        "1": ("status", "Current tier progress"),
        "2": ("log-workout", "Log a workout"),
        "3": ("milestones", "Open milestones"),
        "4": ("history", "Workout history"),
        "i": ("init", "Setup / edit profile"),
        "0": ("quit", "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)

    chosen = {k: v[0] for k, v in menu.items()}.get(choice)
    if chosen is None:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    if chosen == "status":
        ctx.invoke(status)
    elif chosen == "log-workout":
        ctx.invoke(log_workout)
    elif chosen == "milestones":
        ctx.invoke(milestones)
    elif chosen == "history":
        ctx.invoke(history)
    elif chosen == "init":
        ctx.invoke(init)


if __name__ == "__main__":
    app()
