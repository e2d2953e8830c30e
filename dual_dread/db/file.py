"""
File-backed snapshot repository.

Writes the snapshot blob to a single JSON file. Writes go through a
temporary file and ``os.replace`` so a crash mid-save never leaves a
truncated save behind.
"""

from __future__ import annotations

import os
from pathlib import Path

from dual_dread.engine.models import PersistenceError


class FileSnapshotRepository:
    """SnapshotRepository storing the blob in a file on disk."""

    def __init__(self, path: str | Path | None = None) -> None:
        if path is None:
            path = os.getenv("DUAL_DREAD_SAVE_PATH", "dual_dread_save.json")
        self.path = Path(path)

    def save(self, blob: str) -> None:
        """Write the snapshot blob atomically."""
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(blob, encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceError(f"Could not write save file {self.path}: {e}") from e

    def load(self) -> str | None:
        """Read the snapshot blob, or None if no save exists."""
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Could not read save file {self.path}: {e}") from e

    def clear(self) -> None:
        """Delete the save file."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Could not delete save file {self.path}: {e}") from e
