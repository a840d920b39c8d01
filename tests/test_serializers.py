"""Tests for JSON serialization of the progression state and records."""

import json

import pytest

from milestone_tracker.core.catalog import default_configuration
from milestone_tracker.core.models import AthleteProfile, Workout
from milestone_tracker.io.serializers import (
    ValidationError,
    apply_saved_progress,
    configuration_to_dict,
    dict_to_athlete,
    dict_to_configuration,
    dict_to_milestone,
    dict_to_workout,
    milestone_to_dict,
    workout_to_dict,
)


@pytest.fixture
def config(tmp_path):
    return default_configuration(tmp_path)


class TestConfigurationRoundTrip:
    def test_derived_values_survive(self, config):
        tier0 = config.get_tier_by_level(0)
        tier0.find_milestone_by_type("bronze").add_progress(3)
        tier0.find_milestone_by_type("platinum").complete_benchmark(1)

        restored = dict_to_configuration(configuration_to_dict(config))
        tier = restored.get_tier_by_level(0)

        assert tier.find_milestone_by_type("bronze").progress == 3
        assert tier.find_milestone_by_type("platinum").benchmarks_completed == {1}
        assert tier.progress_percent == pytest.approx(tier0.progress_percent)
        assert tier.is_completed == tier0.is_completed
        assert restored.workout_types == config.workout_types
        assert [t.name for t in restored.tiers] == [t.name for t in config.tiers]

    def test_snapshot_is_plain_json(self, config):
        config.tiers[0].milestones[3].complete_benchmark(0)
        data = configuration_to_dict(config)
        assert json.loads(json.dumps(data)) == data
        assert data["tiers"][0]["milestones"][3]["benchmarks_completed"] == [0]

    def test_snapshot_shares_nothing_with_live_objects(self, config):
        data = configuration_to_dict(config)
        data["tiers"][0]["milestones"][0]["workout_requirements"].clear()
        assert config.tiers[0].milestones[0].workout_requirements

    def test_missing_tiers_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_configuration({"workout_types": []})


class TestDictToMilestone:
    def _raw(self, **overrides):
        raw = {"type": "bronze", "name": "First Steps", "required_workouts": 5}
        raw.update(overrides)
        return raw

    def test_progress_above_required_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_milestone(self._raw(progress=6))

    def test_negative_progress_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_milestone(self._raw(progress=-1))

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            dict_to_milestone(self._raw(type="copper"))

    def test_round_trip(self):
        m = dict_to_milestone(self._raw(progress=2))
        assert milestone_to_dict(m)["progress"] == 2


class TestApplySavedProgress:
    def test_restores_mutable_fields_only(self, config, tmp_path):
        saved = configuration_to_dict(config)
        saved["tiers"][0]["milestones"][0]["progress"] = 4
        saved["tiers"][0]["milestones"][0]["name"] = "Renamed"

        fresh = default_configuration(tmp_path)
        restored = apply_saved_progress(fresh, saved)

        bronze = fresh.get_tier_by_level(0).find_milestone_by_type("bronze")
        assert restored == 25
        assert bronze.progress == 4
        assert bronze.name == "First Steps"

    def test_clamps_progress_and_drops_stale_indices(self, config, tmp_path):
        saved = configuration_to_dict(config)
        saved["tiers"][0]["milestones"][0]["progress"] = 99
        saved["tiers"][0]["milestones"][3]["benchmarks_completed"] = [0, 7]

        fresh = default_configuration(tmp_path)
        apply_saved_progress(fresh, saved)
        tier = fresh.get_tier_by_level(0)

        assert tier.find_milestone_by_type("bronze").progress == 5
        assert tier.find_milestone_by_type("platinum").benchmarks_completed == {0}

    def test_skips_unknown_tiers_and_milestones(self, tmp_path):
        fresh = default_configuration(tmp_path)
        saved = {
            "tiers": [
                {"level": 9, "name": "Gone", "milestones": []},
                {"level": 0, "name": "Beginner", "milestones": [{"type": "copper", "progress": 1}]},
            ]
        }
        assert apply_saved_progress(fresh, saved) == 0

    @pytest.mark.parametrize(
        "saved",
        [
            {"tiers": [1]},
            {"tiers": "Beginner"},
            {"tiers": [{"level": None, "milestones": []}]},
            {"tiers": [{"level": 0, "milestones": {"type": "bronze"}}]},
            {"tiers": [{"level": 0, "milestones": ["bronze"]}]},
            {"tiers": [{"level": 0, "milestones": [{"type": "bronze", "progress": "lots"}]}]},
            {"tiers": [{"level": 0, "milestones": [{"type": "platinum", "benchmarks_completed": [None]}]}]},
        ],
    )
    def test_malformed_record_rejected(self, saved, tmp_path):
        with pytest.raises(ValidationError):
            apply_saved_progress(default_configuration(tmp_path), saved)


class TestWorkoutAndAthlete:
    def test_workout_round_trip(self):
        w = Workout(
            id="workout-1",
            workout_type="Endurance Challenge",
            milestone_type="platinum",
            tier=0,
            proof_method="escrow",
            notes="hard",
            benchmark_index=0,
        )
        data = workout_to_dict(w)
        assert data["benchmark_index"] == 0
        assert dict_to_workout(data) == w

    def test_ordinary_workout_omits_benchmark_index(self):
        w = Workout(id="workout-2", workout_type="Walking", milestone_type="bronze", tier=0)
        assert "benchmark_index" not in workout_to_dict(w)

    def test_unknown_proof_method_falls_back(self):
        w = dict_to_workout(
            {
                "id": "x",
                "workout_type": "Walking",
                "milestone_type": "bronze",
                "tier": 0,
                "date": "2026-03-01T10:00:00+00:00",
                "proof_method": "carrier-pigeon",
            }
        )
        assert w.proof_method == "record"

    def test_workout_missing_field(self):
        with pytest.raises(ValidationError):
            dict_to_workout({"id": "x"})

    def test_athlete_invalid(self):
        with pytest.raises(ValidationError):
            dict_to_athlete({"name": "Sam", "gender": "robot"})

    def test_athlete_keeps_tier(self):
        p = dict_to_athlete({"name": "Sam", "birthday": "1990-01-01", "current_tier": 3})
        assert isinstance(p, AthleteProfile)
        assert p.current_tier == 3
