"""
GameState store for Dual Dread.

Holds the canonical GameState between turns. Reads hand out deep copies
so nothing outside the coordinator can mutate the stored record. A
loaded game enters the store as a snapshot blob, validated on restore.
"""

from __future__ import annotations

from pydantic import ValidationError

from dual_dread.models.state import GameState


class GameStateStore:
    """Container for the one canonical GameState."""

    def __init__(self, state: GameState | None = None) -> None:
        self._state = GameState()
        if state is not None:
            self.replace(state)

    def get(self) -> GameState:
        """Get a copy of the current state."""
        return self._state.model_copy(deep=True)

    def replace(self, new_state: GameState) -> None:
        """
        Replace the stored state wholesale.

        Raises:
            ValueError: If the new state breaks a cross-field invariant
        """
        # Re-validate: model_copy(update=...) skips field validation
        checked = GameState.model_validate(new_state.model_dump())
        problems = checked.invariant_violations()
        if problems:
            raise ValueError(f"Invalid game state: {'; '.join(problems)}")
        self._state = checked

    def snapshot(self) -> str:
        """Serialize the current state to an opaque JSON blob."""
        return self._state.model_dump_json()

    def restore(self, blob: str) -> None:
        """
        Replace the stored state from a snapshot blob.

        Raises:
            ValueError: If the blob is not a valid game state
        """
        try:
            state = GameState.model_validate_json(blob)
        except ValidationError as e:
            raise ValueError(f"Snapshot is not a valid game state: {e}") from e
        self.replace(state)
