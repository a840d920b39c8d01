"""Maintenance commands: reset, tier-up, tier-clear."""

from typing import Annotated

import typer

from ...core.engine.progression import ProgressionError
from ...core.models import BenchmarkEvent
from .. import views
from ..app import DataDirOption, app, open_workspace

ForceOption = Annotated[
    bool,
    typer.Option("--force", "-f", help="Skip confirmation prompt"),
]


@app.command()
def reset(
    delete_profile: Annotated[
        bool,
        typer.Option("--delete-profile", help="Also delete the athlete profile"),
    ] = False,
    force: ForceOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Factory reset: clear all progress and the workout history.

    You go back to tier 1.  The profile is kept unless --delete-profile is given.
    """
    workspace = open_workspace(data_dir, require_profile=False)

    if not force and not views.confirm_action("Erase all progress and workout history?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    workspace.workouts.clear()
    if delete_profile or workspace.athletes.load_profile() is None:
        workspace.records.clear()
        workspace.athletes.delete_profile()
        views.print_success(f"Removed all data in {workspace.data_dir}")
        return

    workspace.engine.reset_all_progress()
    views.print_success("All progress reset. You are back at tier 1.")


@app.command("tier-up")
def tier_up(
    force: ForceOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Complete every milestone of the current tier at once.

    Logs the workouts and benchmarks needed, bronze first, then levels up.
    Meant for trying things out.
    """
    workspace = open_workspace(data_dir)
    engine = workspace.engine
    tier = engine.current_tier()
    if tier is None:
        views.print_error(f"No tier found for level {engine.current_tier_level()}")
        raise typer.Exit(1)

    if not force and not views.confirm_action(f"Fill all milestones of tier {tier.level + 1} ({tier.name})?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    def log_applied(event, _result) -> None:
        if isinstance(event, BenchmarkEvent):
            bench = tier.find_milestone_by_type(event.milestone_type).benchmark_workouts[event.benchmark_index]
            workspace.workouts.create_workout(
                workout_type=bench.name,
                milestone_type=event.milestone_type,
                tier=event.tier_level,
                notes="tier-up",
                benchmark_index=event.benchmark_index,
            )
        else:
            workspace.workouts.create_workout(
                workout_type=event.workout_type,
                milestone_type=event.milestone_type,
                tier=event.tier_level,
                notes="tier-up",
            )

    try:
        applied = engine.complete_current_tier(on_applied=log_applied)
    except (ProgressionError, ValueError) as e:
        views.print_error(f"Tier-up failed: {e}")
        raise typer.Exit(1)

    if not applied:
        views.print_info(f"Tier {tier.level + 1} ({tier.name}) is already complete.")
        return

    views.print_success(f"Logged {len(applied)} workouts for tier {tier.level + 1} ({tier.name})")
    views.print_progress_result(applied[-1][1])


@app.command("tier-clear")
def tier_clear(
    force: ForceOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Remove all workouts and start over at a fresh tier 1.
    """
    workspace = open_workspace(data_dir)

    if not force and not views.confirm_action("Remove all workouts and restart from tier 1?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    workspace.workouts.clear()
    workspace.engine.restart_from_first_tier()
    views.print_success("Cleared workouts. Back at tier 1.")
