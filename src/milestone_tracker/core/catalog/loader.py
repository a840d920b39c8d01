"""
YAML → TierConfiguration loader.

Loads the tier catalog from the bundled ``src/milestone_tracker/tiers.yaml``.
A user file at ``<data dir>/tiers.yaml`` is deep-merged over it, so a user
can replace ``tiers`` or ``workout_types`` wholesale.

The catalog is content, not user data: it only fixes the shape of every
tier and milestone.  Progress always starts at zero here and is restored
separately from the saved progress record.
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import CATALOG_OVERRIDE_FILE, get_default_data_dir
from ..models import (
    BenchmarkExercise,
    BenchmarkWorkout,
    Milestone,
    Tier,
    TierConfiguration,
    WorkoutRequirement,
    build_milestone,
)

logger = logging.getLogger(__name__)

_REQUIRED_MILESTONE_FIELDS: frozenset[str] = frozenset(
    {"type", "name", "required_workouts"}
)
_REQUIRED_TIER_FIELDS: frozenset[str] = frozenset({"level", "name", "milestones"})


def requirement_from_dict(d: dict) -> WorkoutRequirement:
    return WorkoutRequirement(
        workout_type=str(d["workout_type"]),
        reps=int(d.get("reps", 0)),
        time_minutes=int(d.get("time_minutes", 0)),
    )


def benchmark_from_dict(d: dict) -> BenchmarkWorkout:
    return BenchmarkWorkout(
        name=str(d["name"]),
        exercises=tuple(
            BenchmarkExercise(workout_type=str(e["workout_type"]), reps=int(e.get("reps", 0)))
            for e in d.get("exercises") or []
        ),
        time_cap_minutes=int(d.get("time_cap_minutes", 0)),
    )


def milestone_from_dict(d: dict) -> Milestone:
    """Convert a raw milestone definition to a fresh Milestone.

    Raises ValueError if any required field is absent or malformed.
    """
    missing = _REQUIRED_MILESTONE_FIELDS - set(d)
    if missing:
        raise ValueError(f"Milestone missing fields: {sorted(missing)}")
    try:
        requirements = [requirement_from_dict(r) for r in d.get("workout_requirements") or []]
        benchmarks = [benchmark_from_dict(b) for b in d.get("benchmark_workouts") or []]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed milestone {d.get('name')!r}: {e}") from e

    return build_milestone(
        milestone_type=str(d["type"]),  # type: ignore[arg-type]
        name=str(d["name"]),
        required_workouts=int(d["required_workouts"]),
        workout_requirements=requirements,
        benchmark_workouts=benchmarks,
    )


def tier_from_dict(d: dict) -> Tier:
    """Convert a raw tier definition to a Tier with fresh milestones."""
    missing = _REQUIRED_TIER_FIELDS - set(d)
    if missing:
        raise ValueError(f"Tier missing fields: {sorted(missing)}")
    milestones = [milestone_from_dict(m) for m in d["milestones"]]
    types = [m.milestone_type for m in milestones]
    if len(set(types)) != len(types):
        raise ValueError(f"Tier {d['name']!r} repeats a milestone type: {types}")
    return Tier(level=int(d["level"]), name=str(d["name"]), milestones=milestones)


def catalog_from_dict(d: dict) -> TierConfiguration:
    """Convert the whole catalog document to a TierConfiguration."""
    raw_tiers = d.get("tiers")
    if not raw_tiers:
        raise ValueError("Catalog defines no tiers")
    return TierConfiguration(
        tiers=[tier_from_dict(t) for t in raw_tiers],
        workout_types=[str(w) for w in d.get("workout_types") or []],
    )


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML mapping; raise ValueError if it is not one."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a YAML mapping")
    return data


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def get_bundled_catalog_path() -> Path:
    # loader.py lives at src/milestone_tracker/core/catalog/loader.py
    return Path(__file__).parent.parent.parent / "tiers.yaml"


def get_user_catalog_path(data_dir: Path | None = None) -> Path | None:
    """Return <data dir>/tiers.yaml if it exists, else None."""
    base = data_dir if data_dir is not None else get_default_data_dir()
    p = base / CATALOG_OVERRIDE_FILE
    return p if p.exists() else None


def load_catalog(data_dir: Path | None = None) -> TierConfiguration:
    """
    Build a fresh TierConfiguration from the YAML catalog.

    Load order (later overrides earlier):
    1. Bundled src/milestone_tracker/tiers.yaml
    2. User override at <data dir>/tiers.yaml

    A broken user override is ignored with a warning.

    Raises:
        RuntimeError: If the bundled catalog is missing or invalid
    """
    bundled = get_bundled_catalog_path()
    try:
        raw = _load_yaml_file(bundled)
        configuration = catalog_from_dict(raw)
    except (OSError, yaml.YAMLError, ValueError) as exc:
        raise RuntimeError(
            f"milestone-tracker: bundled catalog {bundled} could not be loaded: {exc}"
        ) from exc

    user = get_user_catalog_path(data_dir)
    if user is None:
        return configuration

    try:
        merged = _deep_merge(raw, _load_yaml_file(user))
        configuration = catalog_from_dict(merged)
    except (OSError, yaml.YAMLError, ValueError) as exc:
        warnings.warn(
            f"milestone-tracker: ignoring catalog override {user}: {exc}",
            stacklevel=2,
        )
        return configuration

    logger.info("Loaded catalog override from %s", user)
    return configuration
