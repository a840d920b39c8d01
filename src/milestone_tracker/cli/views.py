"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of tier progress, milestones and
logged workouts.
"""

from rich.console import Console
from rich.table import Table

from ..core.engine.progression import (
    AvailableMilestone,
    ProgressResult,
    TierProgressSummary,
)
from ..core.models import AthleteProfile, Milestone, Workout

console = Console()


def progress_bar(percent: float, width: int = 20) -> str:
    """Text progress bar, e.g. ``[████████░░░░]``."""
    filled = int(round(width * max(0.0, min(percent, 100.0)) / 100))
    return "[" + "█" * filled + "░" * (width - filled) + "]"


def _fmt_date(iso: str) -> str:
    # 2026-03-01T10:15:00.000000+00:00 -> 2026-03-01 10:15
    return iso[:16].replace("T", " ")


def format_tier_summary_table(summary: TierProgressSummary) -> Table:
    """
    Format the current tier's milestones as a Rich table.

    Args:
        summary: Summary from ProgressionEngine.tier_progress_summary()

    Returns:
        Rich Table object
    """
    table = Table(title=f"Tier {summary.tier_level + 1}: {summary.tier_name}")
    table.add_column("", justify="center")
    table.add_column("Milestone", style="bold")
    table.add_column("Type", style="magenta")
    table.add_column("Progress", justify="right")
    table.add_column("", style="cyan")
    table.add_column("Done", justify="center")

    for m in summary.milestones:
        unit = "benchmarks" if m.uses_benchmarks else "workouts"
        table.add_row(
            m.icon,
            m.name,
            m.milestone_type,
            f"{m.progress}/{m.required} {unit}",
            progress_bar(m.progress_percent, width=12),
            "[green]✓[/green]" if m.completed else "",
        )

    return table


def print_tier_summary(summary: TierProgressSummary) -> None:
    """
    Print the current tier with overall progress.

    Args:
        summary: Summary from ProgressionEngine.tier_progress_summary()
    """
    if summary.total_milestones == 0:
        console.print("[yellow]No tier data available.[/yellow]")
        return

    console.print(format_tier_summary_table(summary))
    console.print(
        f"Overall: {progress_bar(summary.progress_percent)} "
        f"{summary.progress_percent:.1f}%  "
        f"({summary.completed_milestones}/{summary.total_milestones} milestones)"
    )


def print_available_milestones(listing: list[AvailableMilestone]) -> None:
    if not listing:
        console.print("[yellow]No milestones in the current tier.[/yellow]")
        return

    table = Table(show_header=True, header_style="dim")
    table.add_column("", justify="center")
    table.add_column("Type", style="magenta")
    table.add_column("Milestone", style="bold")
    table.add_column("Progress", justify="right")
    table.add_column("Counts")

    for entry in listing:
        if entry.uses_benchmarks:
            counts = "benchmarks only"
        elif entry.workout_types:
            counts = ", ".join(entry.workout_types)
        else:
            counts = "any workout"
        name = f"[dim]{entry.name}[/dim]" if entry.completed else entry.name
        table.add_row(entry.icon, entry.milestone_type, name, f"{entry.progress}/{entry.required}", counts)

    console.print(table)


def print_requirements(milestone: Milestone, tier_name: str) -> None:
    """
    Print what a milestone asks for.

    Benchmark milestones list their challenges with completion marks;
    cumulative milestones list the workout requirements.
    """
    console.print()
    console.print(f"{milestone.icon} [bold]{milestone.name}[/bold] ({milestone.milestone_type}, {tier_name})")

    if milestone.uses_benchmarks:
        table = Table(show_header=True, header_style="dim")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Benchmark", style="bold")
        table.add_column("Exercises")
        table.add_column("Time cap", justify="right")
        table.add_column("Done", justify="center")
        for i, bench in enumerate(milestone.benchmark_workouts):
            exercises = ", ".join(f"{ex.reps}× {ex.workout_type}" for ex in bench.exercises)
            table.add_row(
                str(i + 1),
                bench.name,
                exercises,
                f"{bench.time_cap_minutes} min" if bench.time_cap_minutes else "-",
                "[green]✓[/green]" if i in milestone.benchmarks_completed else "",
            )
        console.print(table)
        return

    console.print(f"Log {milestone.required_workouts} workouts ({milestone.progress} done).")
    if not milestone.workout_requirements:
        console.print("Any workout type counts.")
        return

    table = Table(show_header=True, header_style="dim")
    table.add_column("Workout", style="cyan")
    table.add_column("Reps", justify="right")
    table.add_column("Time", justify="right")
    for req in milestone.workout_requirements:
        table.add_row(
            req.workout_type,
            str(req.reps) if req.reps else "-",
            f"{req.time_minutes} min" if req.time_minutes else "-",
        )
    console.print(table)


def print_progress_result(result: ProgressResult) -> None:
    """Print the outcome of an accepted workout or benchmark."""
    m = result.milestone
    console.print(f"{m.name}: {m.progress}/{m.required}")
    if m.just_completed:
        console.print(f"[bold green]Milestone complete: {m.name}![/bold green]")

    advancement = result.tier_advancement
    if advancement is None:
        return
    if advancement.leveled_up:
        console.print(
            f"[bold magenta]Tier up! Welcome to tier {advancement.new_tier + 1}: "
            f"{advancement.tier_name}[/bold magenta]"
        )
    elif advancement.max_tier_reached:
        console.print("[bold magenta]All tiers complete. You reached the top![/bold magenta]")


def format_workout_table(workouts: list[Workout]) -> Table:
    """
    Format workouts as a Rich table, newest first.

    Args:
        workouts: Workouts in newest-first order

    Returns:
        Rich Table object
    """
    table = Table(title="Workout History")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Tier", justify="right")
    table.add_column("Milestone", style="magenta")
    table.add_column("Workout")
    table.add_column("Proof")
    table.add_column("Notes", style="dim")

    for i, w in enumerate(workouts, 1):
        workout = f"[bold]{w.workout_type}[/bold]" if w.is_benchmark else w.workout_type
        table.add_row(
            str(i),
            _fmt_date(w.date),
            str(w.tier + 1),
            w.milestone_type,
            workout,
            w.proof_label,
            w.notes,
        )

    return table


def print_workouts(workouts: list[Workout]) -> None:
    if not workouts:
        console.print("[yellow]No workouts logged yet.[/yellow]")
        return
    console.print(format_workout_table(workouts))


def print_profile(profile: AthleteProfile, tier_name: str | None = None) -> None:
    age = profile.age()
    console.print(f"[bold]{profile.name}[/bold]")
    console.print(f"  Birthday:  {profile.birthday or '-'}" + (f"  ({age} years)" if age is not None else ""))
    console.print(f"  Gender:    {profile.gender}")
    console.print(f"  Skin tone: {profile.skin_tone}")
    console.print(f"  Avatar:    {profile.avatar_path()}")
    tier = f"{profile.current_tier + 1}" + (f" ({tier_name})" if tier_name else "")
    console.print(f"  Tier:      {tier}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
