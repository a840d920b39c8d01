"""Shared Typer app object, shared option types, and workspace wiring."""

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.catalog import default_configuration
from ..core.config import ATHLETE_FILE, PROGRESS_FILE, WORKOUT_LOG_FILE, get_default_data_dir
from ..core.engine.progression import ProgressionEngine
from ..io.athlete_store import AthleteStore
from ..io.record_store import JsonRecordStore
from ..io.serializers import ValidationError
from ..io.workout_log import WorkoutLog
from . import views

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--data-dir",
        "-D",
        help="Data directory (default: $MILESTONE_TRACKER_HOME or ~/.milestone-tracker)",
    ),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="milestone-tracker",
    help="Workout tracker with tiers of bronze-to-diamond milestones.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@dataclass
class Workspace:
    """Everything a command needs, rooted at one data directory."""

    data_dir: Path
    athletes: AthleteStore
    workouts: WorkoutLog
    records: JsonRecordStore
    engine: ProgressionEngine


def get_workspace(data_dir: Path | None) -> Workspace:
    """
    Wire stores and the progression engine for a data directory.

    Saved progress is loaded onto the catalog before returning.

    Raises:
        ValidationError, ValueError: If saved data or the catalog override is corrupt
    """
    root = Path(data_dir) if data_dir is not None else get_default_data_dir()
    athletes = AthleteStore(root / ATHLETE_FILE)
    records = JsonRecordStore(root / PROGRESS_FILE)
    engine = ProgressionEngine(
        records,
        athletes,
        catalog_factory=lambda: default_configuration(root),
    )
    engine.initialize()
    return Workspace(
        data_dir=root,
        athletes=athletes,
        workouts=WorkoutLog(root / WORKOUT_LOG_FILE),
        records=records,
        engine=engine,
    )


def open_workspace(data_dir: Path | None, require_profile: bool = True) -> Workspace:
    """get_workspace() for commands: report problems and exit with status 1."""
    try:
        workspace = get_workspace(data_dir)
    except (ValidationError, ValueError, OSError) as e:
        views.print_error(f"Could not load saved data: {e}")
        raise typer.Exit(1)

    if require_profile and not workspace.athletes.has_profile():
        views.print_error(f"No athlete profile found in {workspace.data_dir}")
        views.print_info("Run 'init' first to create a profile.")
        raise typer.Exit(1)
    return workspace
