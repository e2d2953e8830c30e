"""
In-memory snapshot repository for testing.

Keeps the blob in an attribute, making tests fast and isolated from the
filesystem. Failures can be switched on to exercise error paths.
"""

from __future__ import annotations

from dual_dread.engine.models import PersistenceError


class InMemorySnapshotRepository:
    """In-memory implementation of SnapshotRepository."""

    def __init__(self, blob: str | None = None) -> None:
        self._blob = blob
        self.fail_on_save = False
        self.fail_on_load = False

    def save(self, blob: str) -> None:
        """Store a snapshot blob."""
        if self.fail_on_save:
            raise PersistenceError("Simulated save failure")
        self._blob = blob

    def load(self) -> str | None:
        """Fetch the stored snapshot blob."""
        if self.fail_on_load:
            raise PersistenceError("Simulated load failure")
        return self._blob

    def clear(self) -> None:
        """Delete the stored snapshot."""
        self._blob = None
