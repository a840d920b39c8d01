"""
Tests for the progression engine.

The engine runs against the bundled catalog with an in-memory record store
and a minimal athlete record, so every write can be inspected.

Tier 0 (Beginner) needs 5 + 10 + 15 workouts for bronze/silver/gold and
2 + 2 benchmarks for platinum/diamond.
"""

import pytest

from milestone_tracker.core.catalog import default_configuration
from milestone_tracker.core.config import PROGRESS_KEY
from milestone_tracker.core.engine.progression import (
    InvalidBenchmarkIndex,
    InvalidMilestone,
    InvalidTier,
    ProgressionEngine,
    ProgressionError,
    WorkoutTypeNotAccepted,
)
from milestone_tracker.core.models import (
    BenchmarkEvent,
    Tier,
    TierConfiguration,
    WorkoutEvent,
    WorkoutRequirement,
    build_milestone,
)
from milestone_tracker.io.athlete_store import AthleteStore
from milestone_tracker.io.record_store import InMemoryRecordStore, JsonRecordStore
from milestone_tracker.io.serializers import ValidationError, configuration_to_dict

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


class FakeAthlete:
    def __init__(self, level: int = 0):
        self.level = level
        self.writes: list[int] = []

    def get_current_tier_level(self) -> int:
        return self.level

    def set_current_tier_level(self, level: int) -> None:
        self.level = level
        self.writes.append(level)


class FailingStore(InMemoryRecordStore):
    def put(self, key, record):
        raise OSError("disk full")


@pytest.fixture
def athlete():
    return FakeAthlete()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def engine(store, athlete, tmp_path):
    eng = ProgressionEngine(store, athlete, catalog_factory=lambda: default_configuration(tmp_path))
    eng.initialize()
    return eng


def _workout(workout_type="Walking", milestone="bronze", tier=0) -> WorkoutEvent:
    return WorkoutEvent(workout_type=workout_type, milestone_type=milestone, tier_level=tier)


def _bench(milestone="platinum", index=0, tier=0) -> BenchmarkEvent:
    return BenchmarkEvent(milestone_type=milestone, tier_level=tier, benchmark_index=index)


def _complete_all_but_last(engine: ProgressionEngine, tier: int = 0) -> None:
    """Complete every milestone of a tier except the second diamond benchmark."""
    t = engine.configuration.get_tier_by_level(tier)
    for m in t.milestones:
        if m.uses_benchmarks:
            for i in range(len(m.benchmark_workouts)):
                if m.milestone_type == "diamond" and i == len(m.benchmark_workouts) - 1:
                    continue
                engine.complete_benchmark(_bench(m.milestone_type, i, tier))
        else:
            while not m.is_completed:
                engine.add_workout_progress(_workout(m.workout_types[0], m.milestone_type, tier))


# ---------------------------------------------------------------------------
# Workout events
# ---------------------------------------------------------------------------


class TestAddWorkoutProgress:
    def test_counts_and_persists(self, engine, store):
        result = engine.add_workout_progress(_workout())

        assert result.milestone.name == "First Steps"
        assert result.milestone.progress == 1
        assert result.milestone.required == 5
        assert result.milestone.just_completed is False
        assert result.tier_advancement is None

        saved = store.get(PROGRESS_KEY)
        assert saved["tiers"][0]["milestones"][0]["progress"] == 1

    def test_just_completed_only_on_transition(self, engine):
        for _ in range(4):
            engine.add_workout_progress(_workout())
        fifth = engine.add_workout_progress(_workout("Stretching"))
        assert fifth.milestone.just_completed is True

        sixth = engine.add_workout_progress(_workout())
        assert sixth.milestone.just_completed is False
        assert sixth.milestone.progress == 5

    def test_same_event_twice_counts_twice(self, engine):
        event = _workout()
        engine.add_workout_progress(event)
        result = engine.add_workout_progress(event)
        assert result.milestone.progress == 2

    def test_invalid_tier(self, engine, store):
        with pytest.raises(InvalidTier):
            engine.add_workout_progress(_workout(tier=5))
        with pytest.raises(InvalidTier):
            engine.add_workout_progress(_workout(tier=-1))
        assert store.put_count == 0

    def test_invalid_milestone(self, engine, store):
        with pytest.raises(InvalidMilestone):
            engine.add_workout_progress(_workout(milestone="copper"))
        assert store.put_count == 0

    def test_wrong_workout_type_leaves_state_unchanged(self, engine, store):
        before = configuration_to_dict(engine.configuration)
        with pytest.raises(WorkoutTypeNotAccepted):
            engine.add_workout_progress(_workout("Running", "bronze"))
        assert configuration_to_dict(engine.configuration) == before
        assert store.put_count == 0

    def test_benchmark_milestone_rejects_ordinary_workouts(self, engine):
        with pytest.raises(WorkoutTypeNotAccepted):
            engine.add_workout_progress(_workout("Running", "platinum"))

    def test_errors_share_a_base(self):
        for exc in (InvalidTier, InvalidMilestone, WorkoutTypeNotAccepted, InvalidBenchmarkIndex):
            assert issubclass(exc, ProgressionError)


# ---------------------------------------------------------------------------
# Benchmark events
# ---------------------------------------------------------------------------


class TestCompleteBenchmark:
    def test_reports_benchmarks(self, engine):
        result = engine.complete_benchmark(_bench("platinum", 1))
        assert result.milestone.name == "Consistent"
        assert result.milestone.progress == 1
        assert result.milestone.required == 2
        assert not result.milestone.just_completed

    def test_idempotent(self, engine, store):
        engine.complete_benchmark(_bench("platinum", 0))
        again = engine.complete_benchmark(_bench("platinum", 0))
        assert again.milestone.progress == 1
        assert store.get(PROGRESS_KEY)["tiers"][0]["milestones"][3]["benchmarks_completed"] == [0]

    def test_completion_transition(self, engine):
        engine.complete_benchmark(_bench("platinum", 0))
        result = engine.complete_benchmark(_bench("platinum", 1))
        assert result.milestone.just_completed

    def test_out_of_range_index(self, engine, store):
        with pytest.raises(InvalidBenchmarkIndex):
            engine.complete_benchmark(_bench("platinum", 2))
        with pytest.raises(InvalidBenchmarkIndex):
            engine.complete_benchmark(_bench("platinum", -1))
        assert store.put_count == 0

    def test_cumulative_milestone_has_no_benchmarks(self, engine):
        with pytest.raises(InvalidBenchmarkIndex):
            engine.complete_benchmark(_bench("bronze", 0))


# ---------------------------------------------------------------------------
# Tier advancement
# ---------------------------------------------------------------------------


class TestTierAdvancement:
    def test_no_advancement_until_every_milestone_done(self, engine, athlete):
        _complete_all_but_last(engine)
        tier = engine.configuration.get_tier_by_level(0)
        assert tier.completed_milestones == 4
        assert not tier.is_completed
        assert athlete.level == 0

    def test_level_up(self, engine, athlete, store):
        _complete_all_but_last(engine)
        result = engine.complete_benchmark(_bench("diamond", 1))

        adv = result.tier_advancement
        assert adv.leveled_up is True
        assert adv.max_tier_reached is False
        assert adv.new_tier == 1
        assert adv.tier_name == "Novice"
        assert athlete.writes == [1]

        # Completed tier kept as history, next tier fresh
        saved = store.get(PROGRESS_KEY)
        assert saved["tiers"][0]["milestones"][0]["progress"] == 5
        assert all(m["progress"] == 0 for m in saved["tiers"][1]["milestones"])

    def test_level_up_resets_only_next_tier(self, engine, athlete):
        tier2_bronze = engine.configuration.get_tier_by_level(2).find_milestone_by_type("bronze")
        tier1_bronze = engine.configuration.get_tier_by_level(1).find_milestone_by_type("bronze")
        tier2_bronze.add_progress(3)
        tier1_bronze.add_progress(2)

        _complete_all_but_last(engine)
        engine.complete_benchmark(_bench("diamond", 1))

        assert tier1_bronze.progress == 0
        assert tier2_bronze.progress == 3
        assert engine.configuration.get_tier_by_level(0).is_completed

    def test_max_tier_reached(self, store, tmp_path):
        athlete = FakeAthlete(level=4)
        engine = ProgressionEngine(store, athlete, catalog_factory=lambda: default_configuration(tmp_path))
        engine.initialize()

        _complete_all_but_last(engine, tier=4)
        diamond = engine.configuration.get_tier_by_level(4).find_milestone_by_type("diamond")
        result = engine.complete_benchmark(_bench("diamond", len(diamond.benchmark_workouts) - 1, tier=4))

        assert result.tier_advancement.max_tier_reached is True
        assert result.tier_advancement.leveled_up is False
        assert athlete.level == 4
        assert athlete.writes == []

    def test_event_on_passed_tier_does_not_move_athlete(self, engine, athlete):
        _complete_all_but_last(engine)
        engine.complete_benchmark(_bench("diamond", 1))
        engine.add_workout_progress(_workout("Push-ups", "bronze", tier=1))

        result = engine.add_workout_progress(_workout("Walking", "bronze", tier=0))

        assert result.tier_advancement is None
        assert athlete.level == 1
        assert engine.configuration.get_tier_by_level(1).find_milestone_by_type("bronze").progress == 1

    def test_complete_current_tier(self, engine, athlete):
        applied = engine.complete_current_tier()

        # 5 + 10 + 15 workouts, then 2 + 2 benchmarks, bronze first
        assert len(applied) == 34
        assert applied[0][0].milestone_type == "bronze"
        assert applied[-1][0].milestone_type == "diamond"
        assert applied[-1][1].tier_advancement.leveled_up
        assert athlete.level == 1

    def test_complete_current_tier_already_done_is_noop(self, store, tmp_path):
        athlete = FakeAthlete(level=4)
        engine = ProgressionEngine(store, athlete, catalog_factory=lambda: default_configuration(tmp_path))
        engine.initialize()
        engine.complete_current_tier()
        assert engine.complete_current_tier() == []

    def test_complete_current_tier_reports_each_event(self, engine):
        seen = []
        applied = engine.complete_current_tier(on_applied=lambda event, result: seen.append((event, result)))
        assert seen == applied

    def test_complete_current_tier_without_workout_types_applies_nothing(self, store, athlete):
        def catalog():
            bronze = build_milestone(
                "bronze", "First Steps", 2, workout_requirements=[WorkoutRequirement("Walking", 10, 15)]
            )
            silver = build_milestone("silver", "Anything Goes", 3)
            return TierConfiguration(tiers=[Tier(0, "Beginner", [bronze, silver])], workout_types=[])

        engine = ProgressionEngine(store, athlete, catalog_factory=catalog)
        engine.initialize()
        seen = []
        with pytest.raises(ValueError):
            engine.complete_current_tier(on_applied=lambda event, result: seen.append(event))

        assert seen == []
        assert store.put_count == 0
        assert engine.configuration.find_milestone(0, "bronze").progress == 0


# ---------------------------------------------------------------------------
# Persistence and maintenance
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_initialize_restores_saved_progress(self, store, athlete, tmp_path):
        first = ProgressionEngine(store, athlete, catalog_factory=lambda: default_configuration(tmp_path))
        first.initialize()
        first.add_workout_progress(_workout())
        first.complete_benchmark(_bench("diamond", 1))

        second = ProgressionEngine(store, athlete, catalog_factory=lambda: default_configuration(tmp_path))
        second.initialize()
        tier = second.configuration.get_tier_by_level(0)
        assert tier.find_milestone_by_type("bronze").progress == 1
        assert tier.find_milestone_by_type("diamond").benchmarks_completed == {1}

    def test_initialize_without_record_keeps_fresh_catalog(self, engine):
        assert engine.configuration.get_tier_by_level(0).progress_percent == 0.0

    def test_initialize_rejects_malformed_record(self, store, athlete, tmp_path):
        store.put(PROGRESS_KEY, [1, 2])
        engine = ProgressionEngine(store, athlete, catalog_factory=lambda: default_configuration(tmp_path))
        with pytest.raises(ValidationError):
            engine.initialize()

        store.put(PROGRESS_KEY, {"tiers": [1]})
        with pytest.raises(ValidationError):
            engine.initialize()

    def test_persistence_failure_propagates(self, athlete, tmp_path):
        engine = ProgressionEngine(
            FailingStore(), athlete, catalog_factory=lambda: default_configuration(tmp_path)
        )
        with pytest.raises(OSError):
            engine.add_workout_progress(_workout())

    def test_works_with_file_stores(self, tmp_path):
        athletes = AthleteStore(tmp_path / "athlete.json")
        athletes.create_profile("Sam", "1990-06-15")
        records = JsonRecordStore(tmp_path / "progress.json")
        engine = ProgressionEngine(records, athletes, catalog_factory=lambda: default_configuration(tmp_path))
        engine.initialize()

        engine.complete_current_tier()

        assert athletes.get_current_tier_level() == 1
        reloaded = ProgressionEngine(records, athletes, catalog_factory=lambda: default_configuration(tmp_path))
        reloaded.initialize()
        assert reloaded.current_tier().name == "Novice"
        assert reloaded.configuration.get_tier_by_level(0).is_completed

    def test_reset_all_progress(self, engine, athlete, store):
        engine.complete_current_tier()
        engine.add_workout_progress(_workout("Push-ups", "bronze", tier=1))

        engine.reset_all_progress()

        assert athlete.level == 0
        saved = store.get(PROGRESS_KEY)
        assert all(m["progress"] == 0 for t in saved["tiers"] for m in t["milestones"])
        assert all(m["benchmarks_completed"] == [] for t in saved["tiers"] for m in t["milestones"])

    def test_restart_from_first_tier(self, engine, athlete):
        engine.complete_current_tier()
        engine.add_workout_progress(_workout("Push-ups", "bronze", tier=1))

        engine.restart_from_first_tier()

        assert athlete.level == 0
        assert engine.configuration.get_tier_by_level(0).progress_percent == 0.0
        # later tiers are left alone
        assert engine.configuration.get_tier_by_level(1).find_milestone_by_type("bronze").progress == 1


# ---------------------------------------------------------------------------
# Read-only projections
# ---------------------------------------------------------------------------


class TestProjections:
    def test_tier_progress_summary(self, engine):
        for _ in range(5):
            engine.add_workout_progress(_workout())
        engine.complete_benchmark(_bench("platinum", 0))

        summary = engine.tier_progress_summary()
        assert summary.tier_level == 0
        assert summary.tier_name == "Beginner"
        assert summary.completed_milestones == 1
        assert summary.total_milestones == 5
        assert summary.total_workouts_needed == 38
        # 5 workouts + half of platinum's 3 = 6.5 of 38
        assert summary.total_workouts_completed == pytest.approx(6.5)
        assert summary.progress_percent == pytest.approx(6.5 / 38 * 100)
        assert [m.milestone_type for m in summary.milestones] == [
            "bronze", "silver", "gold", "platinum", "diamond",
        ]
        assert summary.milestones[3].progress == 1
        assert summary.milestones[3].required == 2

    def test_summary_for_missing_tier(self, store, tmp_path):
        engine = ProgressionEngine(
            store, FakeAthlete(level=9), catalog_factory=lambda: default_configuration(tmp_path)
        )
        summary = engine.tier_progress_summary()
        assert summary.tier_name == "Unknown"
        assert summary.total_milestones == 0
        assert engine.current_tier_milestones() == []

    def test_available_milestones_incomplete_first(self, engine):
        engine.complete_benchmark(_bench("platinum", 0))
        engine.complete_benchmark(_bench("platinum", 1))
        for _ in range(5):
            engine.add_workout_progress(_workout())

        listing = engine.available_milestones()
        assert [m.milestone_type for m in listing] == [
            "silver", "gold", "diamond", "bronze", "platinum",
        ]
        assert listing[0].workout_types == ["Walking", "Yoga", "Stretching"]
        assert listing[-1].completed
