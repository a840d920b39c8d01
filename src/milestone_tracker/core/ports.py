"""
Storage interfaces (ports) consumed by the progression engine.

The engine only depends on these protocols; io/ provides file-backed and
in-memory implementations.
"""

from typing import Any, Protocol


class RecordStore(Protocol):
    """
    Key-value store for plain, JSON-compatible records.

    put() must replace the whole record atomically.
    """

    def get(self, key: str) -> dict[str, Any] | None:
        ...

    def put(self, key: str, record: dict[str, Any]) -> None:
        ...


class AthleteRecord(Protocol):
    """Source of truth for which tier the athlete is working on."""

    def get_current_tier_level(self) -> int:
        ...

    def set_current_tier_level(self, level: int) -> None:
        ...
