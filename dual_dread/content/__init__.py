"""
Static game content for Dual Dread.
"""

from __future__ import annotations

from dual_dread.content.openings import (
    INITIAL_SCENE,
    OPENING_FLAVORS,
    STATIC_CHOICES_POOL,
    STATIC_OPENING,
    OpeningFlavor,
    StaticOpening,
)

__all__ = [
    "INITIAL_SCENE",
    "OPENING_FLAVORS",
    "STATIC_CHOICES_POOL",
    "STATIC_OPENING",
    "OpeningFlavor",
    "StaticOpening",
]
