"""History commands: history and delete-workout."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import PROOF_METHODS
from ...io.serializers import ValidationError, workout_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, open_workspace


@app.command()
def history(
    milestone: Annotated[
        Optional[str],
        typer.Option("--milestone", "-m", help="Only this milestone type"),
    ] = None,
    proof: Annotated[
        Optional[str],
        typer.Option("--proof", help="Only this proof method: " + ", ".join(PROOF_METHODS)),
    ] = None,
    tier: Annotated[
        Optional[int],
        typer.Option("--tier", help="Only this tier (1-based)"),
    ] = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-l", help="Show at most this many workouts"),
    ] = None,
    json_out: JsonOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show logged workouts, newest first.

    The # column is the number to pass to 'delete-workout' (without filters).
    """
    workspace = open_workspace(data_dir, require_profile=False)

    try:
        workouts = workspace.workouts.load_workouts()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if milestone is not None:
        workouts = [w for w in workouts if w.milestone_type == milestone.lower()]
    if proof is not None:
        workouts = [w for w in workouts if w.proof_method == proof]
    if tier is not None:
        workouts = [w for w in workouts if w.tier == tier - 1]
    if limit is not None:
        workouts = workouts[:limit]

    if json_out:
        print(json.dumps([workout_to_dict(w) for w in workouts], indent=2, ensure_ascii=False))
        return

    views.print_workouts(workouts)


@app.command("delete-workout")
def delete_workout(
    record_id: Annotated[
        int,
        typer.Argument(help="Workout # to delete (see # column in history)"),
    ],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Remove a workout from the history.

    Milestone progress is not rolled back.
    """
    workspace = open_workspace(data_dir, require_profile=False)

    try:
        workouts = workspace.workouts.load_workouts()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not workouts:
        views.print_error("No workouts in history.")
        raise typer.Exit(1)

    if record_id < 1 or record_id > len(workouts):
        views.print_error(f"Workout # must be between 1 and {len(workouts)}")
        raise typer.Exit(1)

    target = workouts[record_id - 1]
    views.console.print(
        f"Workout to delete: [bold]{target.workout_type}[/bold] "
        f"({target.milestone_type}, {target.date[:10]})"
    )

    if not force and not views.confirm_action("Delete this workout?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    workspace.workouts.delete_at(record_id - 1)
    views.print_success(f"Deleted workout #{record_id}: {target.workout_type}")
