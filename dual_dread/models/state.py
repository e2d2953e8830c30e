"""
Game State Model for Dual Dread.

A single mutable record describing one active game: the current scene,
the choices on offer, both parties' vitals, the shared inventory and
turn bookkeeping.

The TurnCoordinator is the only writer. Everything else reads copies.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

MAX_HEALTH = 2
MAX_STAMINA = 3


class GameState(BaseModel):
    """Canonical state of a Dual Dread game."""

    # Story
    narration: str = Field(default="", description="Last turn's narrative prose")
    scene_description: str = Field(
        default="", description="Current environment; also the image prompt"
    )
    challenge: str = Field(default="", description="Current dilemma or threat")
    available_choices: list[str] = Field(
        default_factory=list, description="Actions the player may pick this turn"
    )

    # Vitals
    player_health: int = Field(default=MAX_HEALTH, ge=0, le=MAX_HEALTH)
    companion_health: int = Field(default=MAX_HEALTH, ge=0, le=MAX_HEALTH)
    player_stamina: int = Field(default=MAX_STAMINA, ge=0, le=MAX_STAMINA)
    companion_stamina: int = Field(default=MAX_STAMINA, ge=0, le=MAX_STAMINA)

    inventory: list[str] = Field(
        default_factory=list, description="Items held, in discovery order"
    )

    # Turn bookkeeping
    turn_count: int = Field(default=0, ge=0)
    is_player_turn: bool = False
    is_game_over: bool = False
    last_error: str | None = None

    # Last turn recap (display only)
    player_choice: str | None = None
    companion_choice: str | None = None
    companion_reasoning: str | None = None
    player_lost_health: bool = False
    companion_lost_health: bool = False

    def invariant_violations(self) -> list[str]:
        """
        List the state invariants this record breaks.

        Range checks on vitals are enforced by field validation; this
        covers the cross-field rules.
        """
        problems: list[str] = []
        derived_over = self.player_health <= 0 or self.companion_health <= 0
        if derived_over and not self.is_game_over:
            problems.append("a party has no health left but the game is not over")
        if self.is_game_over:
            if self.available_choices:
                problems.append("choices are offered after game over")
            if self.is_player_turn:
                problems.append("player turn is open after game over")
        return problems


def create_fresh_state(scene_description: str = "") -> GameState:
    """
    Create a brand new game state with full vitals and an empty inventory.

    Args:
        scene_description: Initial scene to show before the opening narration

    Returns:
        GameState at turn 0, waiting on the opening narration
    """
    return GameState(scene_description=scene_description)
