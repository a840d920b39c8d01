"""
Data models for milestone-tracker.

Milestones, tiers and the tier configuration that together make up the
progression state, plus the workout and athlete records that surround it.

A milestone is in exactly one of two modes, fixed when it is built:

- cumulative: completed by counting qualifying workouts up to
  ``required_workouts``;
- benchmark: completed by finishing every entry of ``benchmark_workouts``.

``build_milestone`` picks the variant from the data, so callers never need
to re-check the mode by hand.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Literal

from .config import (
    BENCHMARK_WEIGHT,
    DEFAULT_ICON,
    GENDERS,
    MILESTONE_ICONS,
    MILESTONE_ORDER,
    PROOF_LABELS,
    PROOF_METHODS,
    SKIN_TONES,
)

MilestoneType = Literal["bronze", "silver", "gold", "platinum", "diamond"]
ProofMethod = Literal["record", "video", "escrow"]


# =============================================================================
# Catalog building blocks
# =============================================================================


@dataclass(frozen=True)
class WorkoutRequirement:
    """One qualifying workout type for a cumulative milestone."""

    workout_type: str
    reps: int
    time_minutes: int

    def __post_init__(self) -> None:
        if not self.workout_type:
            raise ValueError("workout_type must be a non-empty string")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.time_minutes < 0:
            raise ValueError("time_minutes must be non-negative")


@dataclass(frozen=True)
class BenchmarkExercise:
    """A single exercise inside a benchmark challenge."""

    workout_type: str
    reps: int


@dataclass(frozen=True)
class BenchmarkWorkout:
    """A named challenge workout for a benchmark milestone."""

    name: str
    exercises: tuple[BenchmarkExercise, ...] = ()
    time_cap_minutes: int = 0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("benchmark name must be a non-empty string")
        if self.time_cap_minutes < 0:
            raise ValueError("time_cap_minutes must be non-negative")


# =============================================================================
# Milestones
# =============================================================================


@dataclass
class Milestone(ABC):
    """
    Shared state and behaviour of both milestone variants.

    Abstract; build_milestone() picks the concrete variant.
    """

    milestone_type: MilestoneType
    name: str
    required_workouts: int
    workout_requirements: list[WorkoutRequirement] = field(default_factory=list)
    benchmark_workouts: list[BenchmarkWorkout] = field(default_factory=list)
    progress: int = 0
    benchmarks_completed: set[int] = field(default_factory=set)

    def __post_init__(self) -> None:
        """Validate milestone data."""
        if self.milestone_type not in MILESTONE_ORDER:
            raise ValueError(f"Invalid milestone type: {self.milestone_type!r}")
        if self.required_workouts <= 0:
            raise ValueError("required_workouts must be positive")
        if self.progress < 0:
            raise ValueError("progress must be non-negative")
        if self.progress > self.required_workouts:
            raise ValueError(
                f"progress {self.progress} exceeds required_workouts {self.required_workouts}"
            )

    # -- shared -------------------------------------------------------------

    @property
    def icon(self) -> str:
        return MILESTONE_ICONS.get(self.milestone_type, DEFAULT_ICON)

    @property
    def workout_types(self) -> list[str]:
        """Workout types this milestone counts; empty means any type."""
        return [req.workout_type for req in self.workout_requirements]

    def requirement_for_workout_type(self, workout_type: str) -> WorkoutRequirement | None:
        """Return the requirement entry for a workout type, or None."""
        for req in self.workout_requirements:
            if req.workout_type == workout_type:
                return req
        return None

    def reset(self) -> None:
        """Zero all progress."""
        self.progress = 0
        self.benchmarks_completed = set()

    def clone(self) -> "Milestone":
        """Return a structurally identical milestone with fresh progress."""
        return type(self)(
            milestone_type=self.milestone_type,
            name=self.name,
            required_workouts=self.required_workouts,
            workout_requirements=list(self.workout_requirements),
            benchmark_workouts=list(self.benchmark_workouts),
        )

    # -- mode specific ------------------------------------------------------

    @property
    @abstractmethod
    def uses_benchmarks(self) -> bool:
        """True for benchmark milestones."""

    @property
    @abstractmethod
    def is_completed(self) -> bool:
        """Completion state for this milestone's mode."""

    @property
    @abstractmethod
    def progress_percent(self) -> float:
        """Completion in [0, 100]."""

    @abstractmethod
    def accepts_workout_type(self, workout_type: str) -> bool:
        """Whether an ordinary workout of this type counts here."""

    @abstractmethod
    def add_progress(self, count: int = 1) -> bool:
        """Count workouts; returns completion state."""

    @abstractmethod
    def complete_benchmark(self, index: int) -> bool:
        """Mark one benchmark done; returns completion state."""

    @abstractmethod
    def workouts_needed(self) -> float:
        """This milestone's share of the tier's total workouts needed."""

    @abstractmethod
    def workouts_completed(self) -> float:
        """This milestone's share of the tier's total workouts completed."""


@dataclass
class CumulativeMilestone(Milestone):
    """Milestone completed by logging ``required_workouts`` qualifying workouts."""

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.benchmark_workouts:
            raise ValueError("cumulative milestone cannot carry benchmark workouts")
        if self.benchmarks_completed:
            raise ValueError("cumulative milestone cannot have completed benchmarks")

    @property
    def uses_benchmarks(self) -> bool:
        return False

    @property
    def is_completed(self) -> bool:
        return self.progress >= self.required_workouts

    @property
    def progress_percent(self) -> float:
        return min(100.0, self.progress / self.required_workouts * 100)

    def accepts_workout_type(self, workout_type: str) -> bool:
        """True for any type when there are no requirements, else only listed types."""
        if not self.workout_requirements:
            return True
        return any(req.workout_type == workout_type for req in self.workout_requirements)

    def add_progress(self, count: int = 1) -> bool:
        """
        Count workouts towards the milestone.

        Progress is clamped at required_workouts; extra workouts are absorbed.

        Returns:
            Completion state after the update
        """
        if count < 0:
            raise ValueError("count must be non-negative")
        self.progress = min(self.progress + count, self.required_workouts)
        return self.is_completed

    def complete_benchmark(self, index: int) -> bool:
        raise TypeError(f"{self.name!r} is a cumulative milestone and has no benchmarks")

    def workouts_needed(self) -> float:
        return self.required_workouts

    def workouts_completed(self) -> float:
        return self.progress


@dataclass
class BenchmarkMilestone(Milestone):
    """
    Milestone completed by finishing every benchmark challenge.

    ``required_workouts`` is a nominal difficulty figure here; it only feeds
    the tier weighting and never decides completion.
    """

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.benchmark_workouts:
            raise ValueError("benchmark milestone needs at least one benchmark workout")
        for index in self.benchmarks_completed:
            if not self.is_valid_benchmark_index(index):
                raise ValueError(
                    f"benchmark index {index} out of range for {self.name!r}"
                )

    @property
    def uses_benchmarks(self) -> bool:
        return True

    @property
    def is_completed(self) -> bool:
        return len(self.benchmarks_completed) >= len(self.benchmark_workouts)

    @property
    def progress_percent(self) -> float:
        return min(100.0, len(self.benchmarks_completed) / len(self.benchmark_workouts) * 100)

    def is_valid_benchmark_index(self, index: int) -> bool:
        return 0 <= index < len(self.benchmark_workouts)

    def accepts_workout_type(self, workout_type: str) -> bool:
        # Benchmarks are completed by index, never by ordinary workouts.
        return False

    def add_progress(self, count: int = 1) -> bool:
        raise TypeError(f"{self.name!r} is a benchmark milestone; use complete_benchmark()")

    def complete_benchmark(self, index: int) -> bool:
        """
        Mark one benchmark as done. Completing the same index again is a no-op.

        Returns:
            Completion state after the update

        Raises:
            IndexError: If index is not a position in benchmark_workouts
        """
        if not self.is_valid_benchmark_index(index):
            raise IndexError(
                f"benchmark index {index} out of range (0–{len(self.benchmark_workouts) - 1})"
            )
        self.benchmarks_completed.add(index)
        return self.is_completed

    def workouts_needed(self) -> float:
        return math.ceil(self.required_workouts * BENCHMARK_WEIGHT)

    def workouts_completed(self) -> float:
        fraction = len(self.benchmarks_completed) / len(self.benchmark_workouts)
        return self.workouts_needed() * fraction


def build_milestone(
    milestone_type: MilestoneType,
    name: str,
    required_workouts: int,
    workout_requirements: list[WorkoutRequirement] | None = None,
    benchmark_workouts: list[BenchmarkWorkout] | None = None,
    progress: int = 0,
    benchmarks_completed: set[int] | None = None,
) -> Milestone:
    """
    Build the milestone variant matching the data.

    A non-empty benchmark list makes a BenchmarkMilestone; anything else is
    a CumulativeMilestone.
    """
    cls = BenchmarkMilestone if benchmark_workouts else CumulativeMilestone
    return cls(
        milestone_type=milestone_type,
        name=name,
        required_workouts=required_workouts,
        workout_requirements=list(workout_requirements or []),
        benchmark_workouts=list(benchmark_workouts or []),
        progress=progress,
        benchmarks_completed=set(benchmarks_completed or ()),
    )


# =============================================================================
# Tiers
# =============================================================================


@dataclass
class Tier:
    """
    One progression level holding its milestones in catalog order.
    """

    level: int
    name: str
    milestones: list[Milestone] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.level < 0:
            raise ValueError("tier level must be non-negative")

    @property
    def completed_milestones(self) -> int:
        return sum(1 for m in self.milestones if m.is_completed)

    @property
    def total_milestones(self) -> int:
        return len(self.milestones)

    @property
    def is_completed(self) -> bool:
        """True when every milestone is individually complete."""
        return all(m.is_completed for m in self.milestones)

    @property
    def progress_percent(self) -> float:
        """
        Weighted tier completion in [0, 100].

        Cumulative milestones weigh in at required_workouts; benchmark
        milestones at ceil(required_workouts * BENCHMARK_WEIGHT), scaled by the
        fraction of benchmarks done.
        """
        needed = self.total_workouts_needed()
        if needed == 0:
            return 0.0
        return min(100.0, self.total_workouts_completed() / needed * 100)

    def total_workouts_needed(self) -> float:
        return sum(m.workouts_needed() for m in self.milestones)

    def total_workouts_completed(self) -> float:
        return sum(m.workouts_completed() for m in self.milestones)

    def find_milestone_by_type(self, milestone_type: str) -> Milestone | None:
        """Return the milestone with the given type, or None."""
        for milestone in self.milestones:
            if milestone.milestone_type == milestone_type:
                return milestone
        return None

    def add_milestone(self, milestone: Milestone) -> None:
        self.milestones.append(milestone)

    def reset_progress(self) -> None:
        for milestone in self.milestones:
            milestone.reset()

    def clone(self) -> "Tier":
        """Return a copy of this tier with fresh milestone progress."""
        return Tier(
            level=self.level,
            name=self.name,
            milestones=[m.clone() for m in self.milestones],
        )


@dataclass
class TierConfiguration:
    """
    Ordered tiers of one athlete profile, plus the known workout types.

    Tier levels must equal their list position (0..N-1).
    """

    tiers: list[Tier]
    workout_types: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        for position, tier in enumerate(self.tiers):
            if tier.level != position:
                raise ValueError(
                    f"tier {tier.name!r} has level {tier.level}, expected {position}"
                )

    @property
    def tier_count(self) -> int:
        return len(self.tiers)

    def get_tier_by_level(self, level: int) -> Tier | None:
        """Return the tier at the given level, or None if out of range."""
        if 0 <= level < len(self.tiers):
            return self.tiers[level]
        return None

    def find_milestone(self, level: int, milestone_type: str) -> Milestone | None:
        tier = self.get_tier_by_level(level)
        if tier is None:
            return None
        return tier.find_milestone_by_type(milestone_type)

    def milestone_types_for_tier(self, level: int) -> list[str]:
        tier = self.get_tier_by_level(level)
        if tier is None:
            return []
        return [m.milestone_type for m in tier.milestones]

    def workout_types_for_milestone(self, level: int, milestone_type: str) -> list[str]:
        """
        Workout types that count for a milestone.

        Falls back to every known workout type when the milestone accepts
        any type or cannot be found.
        """
        milestone = self.find_milestone(level, milestone_type)
        if milestone is None or not milestone.workout_types:
            return list(self.workout_types)
        return milestone.workout_types

    def workout_requirements_for_milestone(
        self, level: int, milestone_type: str
    ) -> list[WorkoutRequirement]:
        milestone = self.find_milestone(level, milestone_type)
        return list(milestone.workout_requirements) if milestone else []

    def benchmark_workouts_for_milestone(
        self, level: int, milestone_type: str
    ) -> list[BenchmarkWorkout]:
        milestone = self.find_milestone(level, milestone_type)
        return list(milestone.benchmark_workouts) if milestone else []

    def clone_with_fresh_progress(self) -> "TierConfiguration":
        return TierConfiguration(
            tiers=[t.clone() for t in self.tiers],
            workout_types=list(self.workout_types),
        )


# =============================================================================
# Workout events and records
# =============================================================================


@dataclass(frozen=True)
class WorkoutEvent:
    """An ordinary workout to count towards a cumulative milestone."""

    workout_type: str
    milestone_type: str
    tier_level: int


@dataclass(frozen=True)
class BenchmarkEvent:
    """A finished benchmark challenge for a benchmark milestone."""

    milestone_type: str
    tier_level: int
    benchmark_index: int


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _utc_now_precise() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


@dataclass
class Workout:
    """
    A logged workout.

    Benchmark completions are logged too, with the benchmark name as
    ``workout_type`` and its position in ``benchmark_index``.
    """

    id: str
    workout_type: str
    milestone_type: str
    tier: int
    proof_method: ProofMethod = "record"
    date: str = field(default_factory=_utc_now_precise)  # ISO timestamp
    verified: bool = False
    notes: str = ""
    benchmark_index: int | None = None

    def __post_init__(self) -> None:
        """Validate workout data."""
        if not self.workout_type:
            raise ValueError("workout_type must be a non-empty string")
        if self.proof_method not in PROOF_METHODS:
            raise ValueError(f"Invalid proof_method: {self.proof_method!r}")
        if self.tier < 0:
            raise ValueError("tier must be non-negative")
        if self.benchmark_index is not None and self.benchmark_index < 0:
            raise ValueError("benchmark_index must be non-negative")
        try:
            datetime.fromisoformat(self.date)
        except ValueError as e:
            raise ValueError(f"Invalid workout date: {self.date}") from e

    @property
    def has_proof(self) -> bool:
        return self.proof_method != "record"

    @property
    def proof_label(self) -> str:
        return PROOF_LABELS[self.proof_method]

    @property
    def is_benchmark(self) -> bool:
        return self.benchmark_index is not None

    def to_event(self) -> WorkoutEvent | BenchmarkEvent:
        """Convert to the event the progression engine consumes."""
        if self.benchmark_index is not None:
            return BenchmarkEvent(
                milestone_type=self.milestone_type,
                tier_level=self.tier,
                benchmark_index=self.benchmark_index,
            )
        return WorkoutEvent(
            workout_type=self.workout_type,
            milestone_type=self.milestone_type,
            tier_level=self.tier,
        )


# =============================================================================
# Athlete
# =============================================================================


@dataclass
class AthleteProfile:
    """
    The athlete using the tracker.

    ``current_tier`` is the active tier pointer read and written by the
    progression engine.
    """

    name: str
    birthday: str | None = None  # ISO format: YYYY-MM-DD
    gender: str = "male"
    skin_tone: str = "neutral"
    current_tier: int = 0
    created_at: str = field(default_factory=_utc_now_iso)
    updated_at: str = field(default_factory=_utc_now_iso)

    def __post_init__(self) -> None:
        """Validate profile data."""
        if self.gender not in GENDERS:
            raise ValueError(f"Invalid gender: {self.gender!r}. Must be one of {GENDERS}")
        if self.skin_tone not in SKIN_TONES:
            raise ValueError(
                f"Invalid skin_tone: {self.skin_tone!r}. Must be one of {SKIN_TONES}"
            )
        if self.current_tier < 0:
            raise ValueError("current_tier must be non-negative")
        if self.birthday is not None:
            try:
                date.fromisoformat(self.birthday)
            except ValueError as e:
                raise ValueError(
                    f"Invalid birthday: {self.birthday}. Expected YYYY-MM-DD"
                ) from e

    @property
    def avatar_set(self) -> str:
        """Avatar family: trans-male maps to male, trans-female to female."""
        if self.gender in ("male", "trans-male"):
            return "male"
        return "female"

    def avatar_path(self, tier: int | None = None) -> str:
        level = self.current_tier if tier is None else tier
        return f"img/{self.avatar_set}{level}.png"

    def age(self, today: date | None = None) -> int | None:
        """Age in whole years, or None without a birthday."""
        if self.birthday is None:
            return None
        today = today or date.today()
        born = date.fromisoformat(self.birthday)
        years = today.year - born.year
        if (today.month, today.day) < (born.month, born.day):
            years -= 1
        return years

    @property
    def is_complete(self) -> bool:
        return bool(self.name.strip()) and self.birthday is not None
