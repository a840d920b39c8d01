"""
Athlete profile storage.

The profile lives in athlete.json next to the progress record and carries
the athlete's current tier pointer.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from ..core.models import AthleteProfile
from .serializers import ValidationError, athlete_to_dict, dict_to_athlete

logger = logging.getLogger(__name__)


class AthleteStore:
    """
    Manages the athlete profile stored as JSON.

    Satisfies the AthleteRecord port: the progression engine reads and
    writes the current tier through it.
    """

    def __init__(self, profile_path: str | Path):
        """
        Initialize the athlete store.

        Args:
            profile_path: Path to the athlete JSON file
        """
        self.profile_path = Path(profile_path)

    def has_profile(self) -> bool:
        """True if a complete profile (name and birthday) is saved."""
        profile = self.load_profile()
        return profile is not None and profile.is_complete

    def load_profile(self) -> AthleteProfile | None:
        """
        Load the athlete profile.

        Returns:
            AthleteProfile if the file exists, None otherwise

        Raises:
            ValidationError: If the file is corrupt or invalid
        """
        if not self.profile_path.exists():
            return None
        try:
            with open(self.profile_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Corrupt athlete profile {self.profile_path}: {e}") from e
        return dict_to_athlete(data)

    def save_profile(self, profile: AthleteProfile) -> AthleteProfile:
        """Save the profile, stamping updated_at."""
        profile.updated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        self.profile_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.profile_path, "w", encoding="utf-8") as f:
            json.dump(athlete_to_dict(profile), f, indent=2, ensure_ascii=False)
        return profile

    def create_profile(
        self,
        name: str,
        birthday: str | None = None,
        gender: str = "male",
        skin_tone: str = "neutral",
    ) -> AthleteProfile:
        """Create and save a new profile starting at tier 0."""
        profile = AthleteProfile(name=name, birthday=birthday, gender=gender, skin_tone=skin_tone)
        logger.info("Created athlete profile for %s", name)
        return self.save_profile(profile)

    def delete_profile(self) -> None:
        if self.profile_path.exists():
            self.profile_path.unlink()

    def get_current_tier_level(self) -> int:
        """Return the active tier level; 0 when no profile exists yet."""
        profile = self.load_profile()
        if profile is None:
            return 0
        return profile.current_tier

    def set_current_tier_level(self, level: int) -> None:
        """
        Move the athlete's tier pointer.

        Raises:
            FileNotFoundError: If no profile has been created
        """
        profile = self.load_profile()
        if profile is None:
            raise FileNotFoundError(
                f"No athlete profile found: {self.profile_path}. Run 'init' first."
            )
        profile.current_tier = level
        self.save_profile(profile)
        logger.debug("Athlete tier pointer set to %d", level)
