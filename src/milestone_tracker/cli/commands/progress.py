"""Progress commands: log-workout, complete-benchmark, status, milestones, requirements."""

import json
from dataclasses import asdict
from typing import Annotated, Optional

import typer

from ...core.config import MILESTONE_ORDER, PROOF_METHODS
from ...core.engine.progression import ProgressionError, ProgressResult
from ...core.models import BenchmarkEvent, WorkoutEvent
from .. import views
from ..app import DataDirOption, JsonOption, Workspace, app, open_workspace

MilestoneOption = Annotated[
    Optional[str],
    typer.Option("--milestone", "-m", help="Milestone type: " + ", ".join(MILESTONE_ORDER)),
]

ProofOption = Annotated[
    str,
    typer.Option("--proof", help="Proof method: " + ", ".join(PROOF_METHODS)),
]


def result_to_dict(result: ProgressResult) -> dict:
    return asdict(result)


def _check_proof(proof: str) -> None:
    if proof not in PROOF_METHODS:
        views.print_error(f"Proof method must be one of: {', '.join(PROOF_METHODS)}")
        raise typer.Exit(1)


def _choose(prompt: str, options: list[str]) -> str:
    """Numbered interactive picker; exits on an empty or invalid answer."""
    for i, option in enumerate(options, 1):
        views.console.print(f"  \\[{i}] {option}")
    raw = views.console.input(f"{prompt} (Enter to cancel): ").strip()
    if not raw:
        views.print_info("Cancelled.")
        raise typer.Exit(0)
    try:
        return options[int(raw) - 1]
    except (ValueError, IndexError):
        views.print_error(f"Invalid choice: {raw}")
        raise typer.Exit(1)


def _pick_cumulative_milestone(workspace: Workspace) -> str:
    candidates = [
        m for m in workspace.engine.available_milestones() if not m.completed and not m.uses_benchmarks
    ]
    if not candidates:
        views.print_info("No open milestones take ordinary workouts in this tier.")
        raise typer.Exit(0)
    views.console.print("[bold]Milestone:[/bold]")
    labels = [f"{m.milestone_type} - {m.name} ({m.progress}/{m.required})" for m in candidates]
    return candidates[labels.index(_choose("Milestone #", labels))].milestone_type


@app.command("log-workout")
def log_workout(
    workout_type: Annotated[
        Optional[str],
        typer.Option("--type", "-t", help="Workout type, e.g. Walking, Running, Push-ups"),
    ] = None,
    milestone: MilestoneOption = None,
    proof: ProofOption = "record",
    notes: Annotated[
        str,
        typer.Option("--notes", "-n", help="Free-text notes"),
    ] = "",
    json_out: JsonOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Log a workout towards a milestone of your current tier.

    Without --milestone or --type you are asked to pick from the open
    milestones and the workout types they accept.
    """
    _check_proof(proof)
    workspace = open_workspace(data_dir)
    engine = workspace.engine
    tier_level = engine.current_tier_level()

    if milestone is None:
        milestone = _pick_cumulative_milestone(workspace)
    milestone = milestone.lower()

    target = engine.configuration.find_milestone(tier_level, milestone)
    if target is not None and target.uses_benchmarks:
        views.print_error(f"{target.name} ({milestone}) is completed by benchmarks, not workouts")
        views.print_info(f"Use 'complete-benchmark --milestone {milestone} --number N' instead.")
        raise typer.Exit(1)

    if workout_type is None:
        types = engine.configuration.workout_types_for_milestone(tier_level, milestone)
        if not types:
            views.print_error(f"No workout types available for milestone {milestone}")
            raise typer.Exit(1)
        views.console.print("[bold]Workout type:[/bold]")
        workout_type = _choose("Workout #", types)

    event = WorkoutEvent(workout_type=workout_type, milestone_type=milestone, tier_level=tier_level)
    try:
        result = engine.add_workout_progress(event)
    except ProgressionError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    workout = workspace.workouts.create_workout(
        workout_type=workout_type,
        milestone_type=milestone,
        tier=tier_level,
        proof_method=proof,
        notes=notes,
    )

    if json_out:
        print(json.dumps({"workout_id": workout.id, **result_to_dict(result)}, indent=2))
        return

    views.print_success(f"Logged {workout_type} ({workout.proof_label})")
    views.print_progress_result(result)


@app.command("complete-benchmark")
def complete_benchmark(
    milestone: Annotated[
        str,
        typer.Option("--milestone", "-m", help="Benchmark milestone type, e.g. platinum"),
    ],
    number: Annotated[
        int,
        typer.Option("--number", "-b", help="Benchmark # as listed by 'requirements' (1-based)"),
    ],
    proof: ProofOption = "record",
    notes: Annotated[
        str,
        typer.Option("--notes", "-n", help="Free-text notes"),
    ] = "",
    json_out: JsonOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Mark a benchmark challenge of a milestone as completed.

    Completing the same benchmark twice is accepted and changes nothing.
    """
    _check_proof(proof)
    workspace = open_workspace(data_dir)
    engine = workspace.engine
    tier_level = engine.current_tier_level()
    milestone = milestone.lower()

    event = BenchmarkEvent(milestone_type=milestone, tier_level=tier_level, benchmark_index=number - 1)
    try:
        result = engine.complete_benchmark(event)
    except ProgressionError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    benchmarks = engine.configuration.benchmark_workouts_for_milestone(tier_level, milestone)
    benchmark_name = benchmarks[event.benchmark_index].name
    workout = workspace.workouts.create_workout(
        workout_type=benchmark_name,
        milestone_type=milestone,
        tier=tier_level,
        proof_method=proof,
        notes=notes,
        benchmark_index=event.benchmark_index,
    )

    if json_out:
        print(json.dumps({"workout_id": workout.id, **result_to_dict(result)}, indent=2))
        return

    views.print_success(f"Completed benchmark: {benchmark_name}")
    views.print_progress_result(result)


@app.command()
def status(
    json_out: JsonOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show progress through the current tier.
    """
    workspace = open_workspace(data_dir)
    summary = workspace.engine.tier_progress_summary()

    if json_out:
        print(json.dumps(asdict(summary), indent=2, ensure_ascii=False))
        return

    views.print_tier_summary(summary)


@app.command()
def milestones(
    json_out: JsonOption = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    List the current tier's milestones, open ones first.
    """
    workspace = open_workspace(data_dir)
    listing = workspace.engine.available_milestones()

    if json_out:
        print(json.dumps([asdict(m) for m in listing], indent=2, ensure_ascii=False))
        return

    views.print_available_milestones(listing)


@app.command()
def requirements(
    milestone: Annotated[
        str,
        typer.Argument(help="Milestone type, e.g. bronze"),
    ],
    tier: Annotated[
        Optional[int],
        typer.Option("--tier", help="Tier number (1-based, default: current tier)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Show what a milestone asks for: workout types or benchmark challenges.
    """
    workspace = open_workspace(data_dir, require_profile=False)
    configuration = workspace.engine.configuration
    level = tier - 1 if tier is not None else workspace.engine.current_tier_level()

    tier_obj = configuration.get_tier_by_level(level)
    if tier_obj is None:
        views.print_error(f"Tier must be between 1 and {configuration.tier_count}")
        raise typer.Exit(1)

    found = tier_obj.find_milestone_by_type(milestone.lower())
    if found is None:
        types = ", ".join(configuration.milestone_types_for_tier(level))
        views.print_error(f"No {milestone} milestone in tier {level + 1} (available: {types})")
        raise typer.Exit(1)

    views.print_requirements(found, tier_obj.name)
