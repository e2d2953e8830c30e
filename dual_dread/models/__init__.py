"""
Core Data Models for Dual Dread.

The game has exactly one piece of canonical data: the GameState record
owned by the TurnCoordinator.
"""

from dual_dread.models.state import (
    MAX_HEALTH,
    MAX_STAMINA,
    GameState,
    create_fresh_state,
)

__all__ = [
    "MAX_HEALTH",
    "MAX_STAMINA",
    "GameState",
    "create_fresh_state",
]
