"""
Configuration constants for the milestone progression model.

All adjustable parameters are centralized here for easy tuning.
Catalog content (tiers, milestones, workout types) lives in tiers.yaml.
"""

import os
from pathlib import Path
from typing import Final

# =============================================================================
# MILESTONE TYPES
# =============================================================================

MILESTONE_ORDER: Final[tuple[str, ...]] = (
    "bronze",
    "silver",
    "gold",
    "platinum",
    "diamond",
)

MILESTONE_ICONS: Final[dict[str, str]] = {
    "bronze": "🥉",
    "silver": "🥈",
    "gold": "🥇",
    "platinum": "💎",
    "diamond": "👑",
}
DEFAULT_ICON: Final[str] = "🏅"

# =============================================================================
# TIER WEIGHTING
# =============================================================================

# A benchmark milestone counts as this fraction of its nominal
# required_workouts when blended into the tier percentage.
BENCHMARK_WEIGHT: Final[float] = 0.15

# =============================================================================
# PERSISTENCE
# =============================================================================

PROGRESS_KEY: Final[str] = "tier-progress"  # single record for the whole configuration
PROGRESS_FILE: Final[str] = "progress.json"
ATHLETE_FILE: Final[str] = "athlete.json"
WORKOUT_LOG_FILE: Final[str] = "workouts.jsonl"
CATALOG_OVERRIDE_FILE: Final[str] = "tiers.yaml"

DATA_DIR_NAME: Final[str] = ".milestone-tracker"
DATA_DIR_ENV: Final[str] = "MILESTONE_TRACKER_HOME"
LOG_LEVEL_ENV: Final[str] = "MILESTONE_TRACKER_LOG_LEVEL"

# =============================================================================
# WORKOUT RECORDS
# =============================================================================

PROOF_METHODS: Final[tuple[str, ...]] = ("record", "video", "escrow")
PROOF_LABELS: Final[dict[str, str]] = {
    "escrow": "Escrow",
    "video": "Video Proof",
    "record": "Off Record",
}

# =============================================================================
# ATHLETE PROFILE
# =============================================================================

GENDERS: Final[tuple[str, ...]] = ("male", "female", "trans-male", "trans-female")
SKIN_TONES: Final[tuple[str, ...]] = ("neutral", "white", "brown", "black")


def get_default_data_dir() -> Path:
    """Return $MILESTONE_TRACKER_HOME, or ~/.milestone-tracker when unset."""
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / DATA_DIR_NAME
