"""
Tier catalog for milestone-tracker.

The catalog fixes which tiers exist and what every milestone asks for.
Use default_configuration() for a fresh, zero-progress configuration.
"""

from pathlib import Path

from ..models import TierConfiguration
from .loader import catalog_from_dict, load_catalog, milestone_from_dict, tier_from_dict


def default_configuration(data_dir: Path | None = None) -> TierConfiguration:
    """Return a fresh TierConfiguration built from the catalog."""
    return load_catalog(data_dir)


__all__ = [
    "catalog_from_dict",
    "default_configuration",
    "load_catalog",
    "milestone_from_dict",
    "tier_from_dict",
]
