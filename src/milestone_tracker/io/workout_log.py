"""
JSONL-based storage for logged workouts.

Handles reading, writing, and managing the workout log file.
"""

import json
import secrets
import time
from pathlib import Path

from ..core.models import Workout
from .serializers import ValidationError, dict_to_workout, workout_to_json_line


def new_workout_id() -> str:
    """Return a unique id such as ``workout-1760000000000-3f9a1c0b2``."""
    return f"workout-{int(time.time() * 1000)}-{secrets.token_hex(5)[:9]}"


class WorkoutLog:
    """
    Manages logged workouts stored in JSONL format.

    The file contains one JSON object per line, in the order workouts were
    logged.  Readers get them newest first.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the workout log.

        Args:
            log_path: Path to the JSONL workout file
        """
        self.log_path = Path(log_path)

    def load_workouts(self) -> list[Workout]:
        """
        Load all workouts.

        Returns:
            List of Workout, newest first (empty if the file does not exist)

        Raises:
            ValidationError: If a line cannot be parsed
        """
        if not self.log_path.exists():
            return []

        workouts: list[Workout] = []
        with open(self.log_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    workouts.append(dict_to_workout(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.log_path}: {e}"
                    ) from e

        workouts.sort(key=lambda w: w.date, reverse=True)
        return workouts

    def append(self, workout: Workout) -> None:
        """Append a workout to the log, creating the file if needed."""
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(workout_to_json_line(workout) + "\n")

    def create_workout(
        self,
        workout_type: str,
        milestone_type: str,
        tier: int,
        proof_method: str = "record",
        notes: str = "",
        benchmark_index: int | None = None,
    ) -> Workout:
        """Build a workout with a fresh id and append it."""
        workout = Workout(
            id=new_workout_id(),
            workout_type=workout_type,
            milestone_type=milestone_type,
            tier=tier,
            proof_method=proof_method,  # type: ignore[arg-type]
            notes=notes,
            benchmark_index=benchmark_index,
        )
        self.append(workout)
        return workout

    def _write_workouts(self, workouts: list[Workout]) -> None:
        # Oldest first on disk.
        ordered = sorted(workouts, key=lambda w: w.date)
        with open(self.log_path, "w", encoding="utf-8") as f:
            for workout in ordered:
                f.write(workout_to_json_line(workout) + "\n")

    def get_by_id(self, workout_id: str) -> Workout | None:
        for workout in self.load_workouts():
            if workout.id == workout_id:
                return workout
        return None

    def by_tier(self, tier: int) -> list[Workout]:
        return [w for w in self.load_workouts() if w.tier == tier]

    def by_milestone(self, milestone_type: str) -> list[Workout]:
        return [w for w in self.load_workouts() if w.milestone_type == milestone_type]

    def count(self, tier: int, milestone_type: str) -> int:
        """Number of workouts logged for one milestone of one tier."""
        return sum(
            1 for w in self.load_workouts() if w.tier == tier and w.milestone_type == milestone_type
        )

    def total_for_tier(self, tier: int) -> int:
        return len(self.by_tier(tier))

    def delete_at(self, index: int) -> Workout:
        """
        Delete the workout at the given 0-based index in newest-first order.

        Returns:
            The removed workout

        Raises:
            IndexError: If index is out of range
        """
        workouts = self.load_workouts()
        if index < 0 or index >= len(workouts):
            raise IndexError(f"Workout index {index} out of range (0–{len(workouts) - 1})")
        removed = workouts.pop(index)
        self._write_workouts(workouts)
        return removed

    def delete_by_id(self, workout_id: str) -> bool:
        """Delete a workout by id; return False if no such workout."""
        workouts = self.load_workouts()
        remaining = [w for w in workouts if w.id != workout_id]
        if len(remaining) == len(workouts):
            return False
        self._write_workouts(remaining)
        return True

    def clear(self) -> None:
        """
        Clear all workouts (dangerous - use with caution).
        """
        if self.log_path.exists():
            self.log_path.write_text("")
