"""
Persistence interface definitions for Dual Dread.

A game is saved as one opaque snapshot blob. Implementations decide
where it lives; the coordinator only needs save and load.
"""

from __future__ import annotations

from typing import Protocol


class SnapshotRepository(Protocol):
    """
    Interface for snapshot save/restore.

    Only one snapshot slot exists; saving overwrites the previous blob.
    """

    def save(self, blob: str) -> None:
        """
        Store a snapshot blob.

        Raises:
            PersistenceError: If the blob could not be written
        """
        ...

    def load(self) -> str | None:
        """
        Fetch the stored snapshot blob.

        Returns:
            The blob, or None if nothing has been saved

        Raises:
            PersistenceError: If a stored blob exists but cannot be read
        """
        ...

    def clear(self) -> None:
        """Delete the stored snapshot, if any."""
        ...
