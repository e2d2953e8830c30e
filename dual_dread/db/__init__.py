"""
Persistence layer for Dual Dread.

Provides the snapshot interface and its implementations:
- InMemory*: For testing (no filesystem)
- File*: For play sessions (one JSON save file)
"""

from __future__ import annotations

from dual_dread.db.file import FileSnapshotRepository
from dual_dread.db.interfaces import SnapshotRepository
from dual_dread.db.memory import InMemorySnapshotRepository

__all__ = [
    "FileSnapshotRepository",
    "InMemorySnapshotRepository",
    "SnapshotRepository",
]
