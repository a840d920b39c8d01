"""
Key-value record storage for the progress configuration.

JsonRecordStore keeps every record in one JSON file mapping keys to
records.  Each put rewrites the file via a temporary file and os.replace,
so a single record write is atomic.
"""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonRecordStore:
    """
    File-backed record store.

    Satisfies the RecordStore port used by the progression engine.
    """

    def __init__(self, path: str | Path):
        """
        Initialize the record store.

        Args:
            path: Path to the JSON file holding all records
        """
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def get(self, key: str) -> dict[str, Any] | None:
        """
        Return the record stored under key, or None.

        Raises:
            json.JSONDecodeError: If the file is corrupt
        """
        return self._read_all().get(key)

    def put(self, key: str, record: dict[str, Any]) -> None:
        """
        Store record under key, replacing any previous record.

        Raises:
            OSError: If the file cannot be written
            TypeError: If record is not JSON-serializable
        """
        data = self._read_all()
        data[key] = record
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote record %r to %s", key, self.path)

    def clear(self) -> None:
        """Remove every record (dangerous - use with caution)."""
        if self.path.exists():
            self.path.unlink()


class InMemoryRecordStore:
    """
    Dict-backed record store.

    Records are deep-copied on the way in and out, so callers never share
    state with the store.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self.put_count = 0

    def get(self, key: str) -> dict[str, Any] | None:
        record = self._records.get(key)
        return copy.deepcopy(record) if record is not None else None

    def put(self, key: str, record: dict[str, Any]) -> None:
        self._records[key] = copy.deepcopy(record)
        self.put_count += 1
