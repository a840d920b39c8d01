"""
JSON serialization for progression data models.

Handles conversion between dataclasses and JSON-compatible dicts.
Every dict produced here is built from fresh plain values (str, int,
float, bool, list, dict) and shares no references with the live objects,
so it can be handed to any storage layer as-is.
"""

import json
import logging
from typing import Any

from ..core.catalog.loader import milestone_from_dict
from ..core.models import (
    AthleteProfile,
    BenchmarkWorkout,
    Milestone,
    Tier,
    TierConfiguration,
    Workout,
    WorkoutRequirement,
)

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


# =============================================================================
# Catalog pieces
# =============================================================================


def requirement_to_dict(req: WorkoutRequirement) -> dict[str, Any]:
    return {
        "workout_type": req.workout_type,
        "reps": req.reps,
        "time_minutes": req.time_minutes,
    }


def benchmark_to_dict(benchmark: BenchmarkWorkout) -> dict[str, Any]:
    return {
        "name": benchmark.name,
        "exercises": [
            {"workout_type": e.workout_type, "reps": e.reps} for e in benchmark.exercises
        ],
        "time_cap_minutes": benchmark.time_cap_minutes,
    }


# =============================================================================
# Milestones, tiers, configuration
# =============================================================================


def milestone_to_dict(milestone: Milestone) -> dict[str, Any]:
    """
    Convert Milestone to JSON-compatible dict.

    benchmarks_completed is written as a sorted list.
    """
    return {
        "type": milestone.milestone_type,
        "name": milestone.name,
        "required_workouts": milestone.required_workouts,
        "workout_requirements": [requirement_to_dict(r) for r in milestone.workout_requirements],
        "benchmark_workouts": [benchmark_to_dict(b) for b in milestone.benchmark_workouts],
        "progress": milestone.progress,
        "benchmarks_completed": sorted(milestone.benchmarks_completed),
    }


def dict_to_milestone(data: dict[str, Any]) -> Milestone:
    """
    Convert dict to Milestone, including its saved progress.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        milestone = milestone_from_dict(data)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    progress = int(data.get("progress") or 0)
    completed = [int(i) for i in data.get("benchmarks_completed") or []]

    validate_non_negative(progress, "progress")
    if progress > milestone.required_workouts:
        raise ValidationError(
            f"progress {progress} exceeds required_workouts {milestone.required_workouts}"
            f" for {milestone.name!r}"
        )
    for index in completed:
        if not 0 <= index < len(milestone.benchmark_workouts):
            raise ValidationError(
                f"benchmark index {index} out of range for {milestone.name!r}"
            )

    milestone.progress = progress
    milestone.benchmarks_completed = set(completed)
    return milestone


def tier_to_dict(tier: Tier) -> dict[str, Any]:
    return {
        "level": tier.level,
        "name": tier.name,
        "milestones": [milestone_to_dict(m) for m in tier.milestones],
    }


def dict_to_tier(data: dict[str, Any]) -> Tier:
    """
    Convert dict to Tier.

    Raises:
        ValidationError: If data is invalid
    """
    if "level" not in data or "name" not in data:
        raise ValidationError(f"Tier record missing level/name: {sorted(data)}")
    milestones = [dict_to_milestone(m) for m in data.get("milestones") or []]
    try:
        return Tier(level=int(data["level"]), name=str(data["name"]), milestones=milestones)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def configuration_to_dict(configuration: TierConfiguration) -> dict[str, Any]:
    """
    Snapshot the whole configuration as plain data.

    This is the single record persisted under PROGRESS_KEY.
    """
    return {
        "tiers": [tier_to_dict(t) for t in configuration.tiers],
        "workout_types": list(configuration.workout_types),
    }


def dict_to_configuration(data: dict[str, Any]) -> TierConfiguration:
    """
    Rebuild a full TierConfiguration from a snapshot.

    Raises:
        ValidationError: If data is invalid
    """
    if not isinstance(data.get("tiers"), list):
        raise ValidationError("Configuration record has no 'tiers' list")
    tiers = [dict_to_tier(t) for t in data["tiers"]]
    try:
        return TierConfiguration(
            tiers=tiers,
            workout_types=[str(w) for w in data.get("workout_types") or []],
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def _as_int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{what} must be an integer, got {value!r}") from e


def _as_list(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{what} must be a list, got {type(value).__name__}")
    return value


def apply_saved_progress(configuration: TierConfiguration, data: dict[str, Any]) -> int:
    """
    Restore saved progress onto a catalog-shaped configuration.

    Only the mutable fields (progress, benchmarks_completed) are taken from
    the record; names, requirements and benchmarks always come from the
    catalog.  Entries are matched by tier level and milestone type.  Saved
    progress above the catalog's requirement is clamped and benchmark
    indices the catalog no longer has are dropped.

    Args:
        configuration: Fresh configuration to update in place
        data: Record previously produced by configuration_to_dict()

    Returns:
        Number of milestones restored

    Raises:
        ValidationError: If the record is not shaped like a saved configuration
    """
    if not isinstance(data, dict):
        raise ValidationError(f"Progress record must be an object, got {type(data).__name__}")

    restored = 0
    for raw_tier in _as_list(data.get("tiers"), "tiers"):
        if not isinstance(raw_tier, dict):
            raise ValidationError(f"Tier entry must be an object, got {raw_tier!r}")
        level = _as_int(raw_tier.get("level"), "tier level")
        tier = configuration.get_tier_by_level(level)
        if tier is None:
            logger.warning("Saved progress for unknown tier level %s skipped", level)
            continue

        for raw in _as_list(raw_tier.get("milestones"), f"milestones of tier {level}"):
            if not isinstance(raw, dict):
                raise ValidationError(f"Milestone entry in tier {level} must be an object, got {raw!r}")
            milestone = tier.find_milestone_by_type(raw.get("type", ""))
            if milestone is None:
                logger.warning(
                    "Saved progress for unknown milestone %r in tier %d skipped",
                    raw.get("type"),
                    tier.level,
                )
                continue

            progress = max(0, _as_int(raw.get("progress") or 0, "progress"))
            milestone.progress = min(progress, milestone.required_workouts)

            indices = {
                _as_int(i, "benchmark index")
                for i in _as_list(raw.get("benchmarks_completed"), "benchmarks_completed")
            }
            valid = {i for i in indices if 0 <= i < len(milestone.benchmark_workouts)}
            if valid != indices:
                logger.warning(
                    "Dropped benchmark indices %s for %r (no longer in catalog)",
                    sorted(indices - valid),
                    milestone.name,
                )
            milestone.benchmarks_completed = valid
            restored += 1

    return restored


# =============================================================================
# Workouts
# =============================================================================


def workout_to_dict(workout: Workout) -> dict[str, Any]:
    """Convert Workout to JSON-compatible dict (benchmark_index only when set)."""
    data: dict[str, Any] = {
        "id": workout.id,
        "workout_type": workout.workout_type,
        "proof_method": workout.proof_method,
        "milestone_type": workout.milestone_type,
        "tier": workout.tier,
        "date": workout.date,
        "verified": workout.verified,
        "notes": workout.notes,
    }
    if workout.benchmark_index is not None:
        data["benchmark_index"] = workout.benchmark_index
    return data


def dict_to_workout(data: dict[str, Any]) -> Workout:
    """
    Convert dict to Workout.

    Unknown proof methods fall back to "record".

    Raises:
        ValidationError: If data is invalid
    """
    try:
        proof = data.get("proof_method") or "record"
        if proof not in ("record", "video", "escrow"):
            proof = "record"
        benchmark_index = data.get("benchmark_index")
        return Workout(
            id=str(data["id"]),
            workout_type=str(data["workout_type"]),
            milestone_type=str(data["milestone_type"]),
            tier=int(data["tier"]),
            proof_method=proof,
            date=str(data["date"]),
            verified=bool(data.get("verified", False)),
            notes=str(data.get("notes") or ""),
            benchmark_index=int(benchmark_index) if benchmark_index is not None else None,
        )
    except KeyError as e:
        raise ValidationError(f"Missing required field: {e}") from e
    except ValueError as e:
        raise ValidationError(str(e)) from e


def workout_to_json_line(workout: Workout) -> str:
    """Serialize a workout to a single compact JSON line."""
    return json.dumps(workout_to_dict(workout), separators=(",", ":"), ensure_ascii=False)


# =============================================================================
# Athlete
# =============================================================================


def athlete_to_dict(profile: AthleteProfile) -> dict[str, Any]:
    return {
        "name": profile.name,
        "birthday": profile.birthday,
        "gender": profile.gender,
        "skin_tone": profile.skin_tone,
        "current_tier": profile.current_tier,
        "created_at": profile.created_at,
        "updated_at": profile.updated_at,
    }


def dict_to_athlete(data: dict[str, Any]) -> AthleteProfile:
    """
    Convert dict to AthleteProfile.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        profile = AthleteProfile(
            name=str(data.get("name") or ""),
            birthday=data.get("birthday") or None,
            gender=data.get("gender") or "male",
            skin_tone=data.get("skin_tone") or "neutral",
            current_tier=int(data.get("current_tier") or 0),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e
    if data.get("created_at"):
        profile.created_at = str(data["created_at"])
    if data.get("updated_at"):
        profile.updated_at = str(data["updated_at"])
    return profile
