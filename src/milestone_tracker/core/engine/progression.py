"""
Progression engine.

Applies workout and benchmark events to the tier configuration, detects
milestone and tier completion, advances the athlete to the next tier and
persists the whole configuration after every change.

Processing one event:

1. Resolve the tier (InvalidTier) and the milestone (InvalidMilestone).
2. Validate: the workout type must count for the milestone
   (WorkoutTypeNotAccepted), or the benchmark index must exist
   (InvalidBenchmarkIndex).  Nothing is mutated before this point.
3. Apply the update, then save the configuration.
4. If the athlete's current tier is now complete, reset the next tier,
   move the athlete's tier pointer and save again.  The completed tier
   keeps its data as history.

Calls are expected one at a time; each returns only after its writes are
done, and storage errors propagate to the caller unchanged.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from ...io.serializers import ValidationError, apply_saved_progress, configuration_to_dict
from ..catalog import default_configuration
from ..config import MILESTONE_ORDER, PROGRESS_KEY
from ..models import BenchmarkEvent, Milestone, Tier, TierConfiguration, WorkoutEvent
from ..ports import AthleteRecord, RecordStore

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


class ProgressionError(Exception):
    """Raised when an event is rejected; no state has been changed."""

    pass


class InvalidTier(ProgressionError):
    pass


class InvalidMilestone(ProgressionError):
    pass


class WorkoutTypeNotAccepted(ProgressionError):
    pass


class InvalidBenchmarkIndex(ProgressionError):
    pass


# =============================================================================
# Results and projections
# =============================================================================


@dataclass(frozen=True)
class MilestoneProgress:
    """
    Outcome of one accepted event for its milestone.

    For benchmark milestones progress/required count benchmarks.
    """

    milestone_type: str
    name: str
    progress: int
    required: int
    just_completed: bool


@dataclass(frozen=True)
class TierAdvancement:
    leveled_up: bool
    max_tier_reached: bool = False
    new_tier: int | None = None
    tier_name: str | None = None


@dataclass(frozen=True)
class ProgressResult:
    milestone: MilestoneProgress
    tier_advancement: TierAdvancement | None = None  # None while the tier is incomplete


@dataclass(frozen=True)
class MilestoneSummary:
    milestone_type: str
    name: str
    icon: str
    progress: int
    required: int
    completed: bool
    progress_percent: float
    uses_benchmarks: bool


@dataclass(frozen=True)
class TierProgressSummary:
    tier_level: int
    tier_name: str
    completed_milestones: int
    total_milestones: int
    total_workouts_needed: float
    total_workouts_completed: float
    progress_percent: float
    milestones: list[MilestoneSummary] = field(default_factory=list)


@dataclass(frozen=True)
class AvailableMilestone:
    milestone_type: str
    name: str
    icon: str
    progress: int
    required: int
    completed: bool
    uses_benchmarks: bool
    workout_types: list[str] = field(default_factory=list)  # empty = any type


def _progress_pair(milestone: Milestone) -> tuple[int, int]:
    """(done, needed) in the milestone's own unit: workouts or benchmarks."""
    if milestone.uses_benchmarks:
        return len(milestone.benchmarks_completed), len(milestone.benchmark_workouts)
    return milestone.progress, milestone.required_workouts


def _milestone_order_key(milestone: Milestone) -> int:
    try:
        return MILESTONE_ORDER.index(milestone.milestone_type)
    except ValueError:
        return len(MILESTONE_ORDER)


# =============================================================================
# Engine
# =============================================================================


class ProgressionEngine:
    """
    Owns the in-memory TierConfiguration and its persistence.

    Args:
        store: Record store holding the configuration under progress_key
        athletes: Source of truth for the athlete's current tier
        catalog_factory: Builds a fresh, zero-progress configuration
        progress_key: Key of the single configuration record
    """

    def __init__(
        self,
        store: RecordStore,
        athletes: AthleteRecord,
        catalog_factory: Callable[[], TierConfiguration] = default_configuration,
        progress_key: str = PROGRESS_KEY,
    ):
        self._store = store
        self._athletes = athletes
        self._catalog_factory = catalog_factory
        self._progress_key = progress_key
        self._configuration = catalog_factory()

    @property
    def configuration(self) -> TierConfiguration:
        return self._configuration

    # -- persistence --------------------------------------------------------

    def initialize(self) -> TierConfiguration:
        """
        Load saved progress onto a fresh catalog.

        Without a saved record the fresh catalog is kept as-is.

        Raises:
            ValidationError: If the saved record is malformed
        """
        configuration = self._catalog_factory()
        record = self._store.get(self._progress_key)
        if record is not None and not isinstance(record, dict):
            raise ValidationError(f"Record {self._progress_key!r} must be an object")
        if record and record.get("tiers"):
            restored = apply_saved_progress(configuration, record)
            logger.debug("Restored progress for %d milestones", restored)
        self._configuration = configuration
        return configuration

    def save_progress(self) -> None:
        """Write the whole configuration as one record."""
        self._store.put(self._progress_key, configuration_to_dict(self._configuration))
        logger.debug("Saved progress under %r", self._progress_key)

    # -- lookups ------------------------------------------------------------

    def current_tier_level(self) -> int:
        return self._athletes.get_current_tier_level()

    def current_tier(self) -> Tier | None:
        return self._configuration.get_tier_by_level(self.current_tier_level())

    def current_tier_milestones(self) -> list[Milestone]:
        tier = self.current_tier()
        return list(tier.milestones) if tier else []

    def _resolve(self, tier_level: int, milestone_type: str) -> tuple[Tier, Milestone]:
        tier = self._configuration.get_tier_by_level(tier_level)
        if tier is None:
            logger.warning("Rejected event: invalid tier %r", tier_level)
            raise InvalidTier(f"Invalid tier: {tier_level}")
        milestone = tier.find_milestone_by_type(milestone_type)
        if milestone is None:
            logger.warning("Rejected event: no %r milestone in tier %d", milestone_type, tier_level)
            raise InvalidMilestone(f"Invalid milestone: {milestone_type} (tier {tier_level})")
        return tier, milestone

    # -- events -------------------------------------------------------------

    def add_workout_progress(self, event: WorkoutEvent) -> ProgressResult:
        """
        Count one ordinary workout towards a cumulative milestone.

        The same event applied twice counts twice; progress stays capped at
        the milestone's requirement.

        Raises:
            InvalidTier, InvalidMilestone, WorkoutTypeNotAccepted
        """
        tier, milestone = self._resolve(event.tier_level, event.milestone_type)
        if not milestone.accepts_workout_type(event.workout_type):
            logger.warning(
                "Rejected workout: %s does not count towards %s", event.workout_type, milestone.name
            )
            raise WorkoutTypeNotAccepted(
                f"{event.workout_type} does not count towards {milestone.name}"
            )

        was_completed = milestone.is_completed
        milestone.add_progress(1)
        logger.info(
            "Workout %s counted for %s (%d/%d)",
            event.workout_type,
            milestone.name,
            milestone.progress,
            milestone.required_workouts,
        )
        return self._finish_event(tier, milestone, was_completed)

    def complete_benchmark(self, event: BenchmarkEvent) -> ProgressResult:
        """
        Mark one benchmark of a benchmark milestone as done.

        Completing an already completed benchmark changes nothing but is
        still reported (and saved) as a success.

        Raises:
            InvalidTier, InvalidMilestone, InvalidBenchmarkIndex
        """
        tier, milestone = self._resolve(event.tier_level, event.milestone_type)
        index = event.benchmark_index
        if not 0 <= index < len(milestone.benchmark_workouts):
            logger.warning("Rejected benchmark %r for %s", index, milestone.name)
            raise InvalidBenchmarkIndex(
                f"Benchmark {index} does not exist for {milestone.name}"
                f" ({len(milestone.benchmark_workouts)} benchmarks)"
            )

        was_completed = milestone.is_completed
        milestone.complete_benchmark(index)
        logger.info(
            "Benchmark %r completed for %s (%d/%d)",
            milestone.benchmark_workouts[index].name,
            milestone.name,
            len(milestone.benchmarks_completed),
            len(milestone.benchmark_workouts),
        )
        return self._finish_event(tier, milestone, was_completed)

    def _finish_event(self, tier: Tier, milestone: Milestone, was_completed: bool) -> ProgressResult:
        now_completed = milestone.is_completed
        self.save_progress()

        done, needed = _progress_pair(milestone)
        outcome = MilestoneProgress(
            milestone_type=milestone.milestone_type,
            name=milestone.name,
            progress=done,
            required=needed,
            just_completed=not was_completed and now_completed,
        )

        advancement = None
        # Passed tiers are history: only the active tier can level the athlete up.
        if tier.is_completed and tier.level == self.current_tier_level():
            advancement = self._check_tier_level_up(tier.level)
        return ProgressResult(milestone=outcome, tier_advancement=advancement)

    def _check_tier_level_up(self, current_level: int) -> TierAdvancement:
        next_level = current_level + 1
        next_tier = self._configuration.get_tier_by_level(next_level)
        if next_tier is None:
            logger.info("Tier %d complete; maximum tier reached", current_level)
            return TierAdvancement(leveled_up=False, max_tier_reached=True)

        next_tier.reset_progress()
        self._athletes.set_current_tier_level(next_level)
        self.save_progress()
        logger.info("Leveled up to tier %d (%s)", next_level, next_tier.name)
        return TierAdvancement(leveled_up=True, new_tier=next_level, tier_name=next_tier.name)

    # -- projections --------------------------------------------------------

    def tier_progress_summary(self) -> TierProgressSummary:
        """Read-only view of the current tier for display."""
        tier = self.current_tier()
        if tier is None:
            return TierProgressSummary(
                tier_level=0,
                tier_name="Unknown",
                completed_milestones=0,
                total_milestones=0,
                total_workouts_needed=0,
                total_workouts_completed=0,
                progress_percent=0.0,
            )

        milestones = []
        for m in tier.milestones:
            done, needed = _progress_pair(m)
            milestones.append(
                MilestoneSummary(
                    milestone_type=m.milestone_type,
                    name=m.name,
                    icon=m.icon,
                    progress=done,
                    required=needed,
                    completed=m.is_completed,
                    progress_percent=m.progress_percent,
                    uses_benchmarks=m.uses_benchmarks,
                )
            )

        return TierProgressSummary(
            tier_level=tier.level,
            tier_name=tier.name,
            completed_milestones=tier.completed_milestones,
            total_milestones=tier.total_milestones,
            total_workouts_needed=tier.total_workouts_needed(),
            total_workouts_completed=tier.total_workouts_completed(),
            progress_percent=tier.progress_percent,
            milestones=milestones,
        )

    def available_milestones(self) -> list[AvailableMilestone]:
        """Current tier's milestones, incomplete ones first (catalog order kept)."""
        listing = []
        for m in self.current_tier_milestones():
            done, needed = _progress_pair(m)
            listing.append(
                AvailableMilestone(
                    milestone_type=m.milestone_type,
                    name=m.name,
                    icon=m.icon,
                    progress=done,
                    required=needed,
                    completed=m.is_completed,
                    uses_benchmarks=m.uses_benchmarks,
                    workout_types=m.workout_types,
                )
            )
        return sorted(listing, key=lambda entry: entry.completed)

    # -- maintenance --------------------------------------------------------

    def reset_all_progress(self) -> None:
        """Factory reset: fresh catalog everywhere and back to tier 0."""
        self._configuration = self._catalog_factory()
        self.save_progress()
        self._athletes.set_current_tier_level(0)
        logger.info("All progress reset")

    def restart_from_first_tier(self) -> None:
        """Move the athlete back to tier 0 with tier 0 cleared."""
        self._athletes.set_current_tier_level(0)
        first = self._configuration.get_tier_by_level(0)
        if first is not None:
            first.reset_progress()
        self.save_progress()
        logger.info("Restarted from tier 0")

    def complete_current_tier(
        self,
        on_applied: Callable[[WorkoutEvent | BenchmarkEvent, ProgressResult], None] | None = None,
    ) -> list[tuple[WorkoutEvent | BenchmarkEvent, ProgressResult]]:
        """
        Feed the current tier every event it still needs, bronze first.

        Cumulative milestones get workouts of their first accepted type;
        benchmark milestones get each missing benchmark.  Events go through
        the normal paths, so the final one triggers the level-up.

        Args:
            on_applied: Called with each event and its result right after
                the event is applied and saved

        Returns:
            The applied events with their results, in order

        Raises:
            ValueError: If a milestone accepts any type and no workout
                types are known; raised before any event is applied
        """
        tier = self.current_tier()
        if tier is None:
            raise InvalidTier(f"Invalid tier: {self.current_tier_level()}")

        plan: list[tuple[Milestone, str | None]] = []
        for milestone in sorted(tier.milestones, key=_milestone_order_key):
            if milestone.uses_benchmarks or milestone.is_completed:
                plan.append((milestone, None))
                continue
            workout_types = self._configuration.workout_types_for_milestone(
                tier.level, milestone.milestone_type
            )
            if not workout_types:
                raise ValueError(f"No workout types available for milestone {milestone.name}")
            plan.append((milestone, workout_types[0]))

        applied: list[tuple[WorkoutEvent | BenchmarkEvent, ProgressResult]] = []

        def _apply(event: WorkoutEvent | BenchmarkEvent, result: ProgressResult) -> None:
            applied.append((event, result))
            if on_applied is not None:
                on_applied(event, result)

        for milestone, workout_type in plan:
            if milestone.uses_benchmarks:
                for index in range(len(milestone.benchmark_workouts)):
                    if index in milestone.benchmarks_completed:
                        continue
                    event = BenchmarkEvent(milestone.milestone_type, tier.level, index)
                    _apply(event, self.complete_benchmark(event))
                continue

            while not milestone.is_completed:
                event = WorkoutEvent(workout_type, milestone.milestone_type, tier.level)
                _apply(event, self.add_workout_progress(event))

        return applied
