"""
Engine Data Models for Dual Dread.

Defines the contracts between the TurnCoordinator and its collaborators:
- CompanionRequest / CompanionDecision: the companion's pick each turn
- NarrativeRequest / NarrativeOutcome: the narrator's resolution of a turn
- ImageRequest / SceneImage: optional scene visualization
- TurnResult: what the coordinator hands back to the shell
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from dual_dread.content import STATIC_CHOICES_POOL
from dual_dread.models.state import GameState

# Used when the companion has nothing to pick from
FALLBACK_COMPANION_CHOICE = "Observe the surroundings."
CORRECTION_NOTE = " (System corrected to a valid choice from the list.)"


class ServiceError(RuntimeError):
    """An external service call failed or returned unusable data."""


class PersistenceError(RuntimeError):
    """Saving or loading a snapshot failed."""


class TurnPhase(str, Enum):
    """Phases of the turn-resolution state machine."""

    AWAITING_PLAYER_INPUT = "awaiting_player_input"
    COMPANION_DECIDING = "companion_deciding"
    NARRATING_OUTCOME = "narrating_outcome"
    RESOLVED = "resolved"
    GAME_OVER = "game_over"
    FAILED = "failed"


# =============================================================================
# Companion
# =============================================================================


class CompanionRequest(BaseModel):
    """What the companion sees when choosing its action."""

    scene_description: str
    available_choices: list[str]
    companion_health: int
    companion_stamina: int


class CompanionDecision(BaseModel):
    """The companion's pick and why it made it."""

    chosen_option: str
    reasoning: str = ""


# =============================================================================
# Narrative
# =============================================================================


class NarrativeRequest(BaseModel):
    """Everything the narrator needs to resolve a turn."""

    player_choice: str
    companion_choice: str
    scene_description: str
    player_health: int
    companion_health: int
    player_stamina: int
    companion_stamina: int
    turn_count: int = Field(description="The turn being resolved, starting from 1")
    inventory: list[str] = Field(default_factory=list)
    tier_guidance: str = Field(
        default="", description="Escalation guidance for the current turn"
    )


class NarrativeOutcome(BaseModel):
    """
    The narrator's resolution of a turn.

    Vitals are kept as raw integers here; they come from an untrusted
    generator and are clamped by the coordinator before commit.
    """

    narration: str
    scene_description: str
    challenge: str
    updated_player_health: int
    updated_companion_health: int
    updated_player_stamina: int
    updated_companion_stamina: int
    is_game_over: bool = False
    new_item_found: str | None = None
    item_used: str | None = None
    player_lost_health: bool = False
    companion_lost_health: bool = False

    @field_validator(
        "updated_player_health",
        "updated_companion_health",
        "updated_player_stamina",
        "updated_companion_stamina",
        mode="before",
    )
    @classmethod
    def _lenient_vital(cls, value: object) -> object:
        # Accept 1.0, 1.6 or "2"; anything else is left for validation to reject
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                return value
        if isinstance(value, float) and math.isfinite(value):
            return int(value)
        return value

    @field_validator("new_item_found", "item_used", mode="before")
    @classmethod
    def _blank_item_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("new_item_found", "item_used")
    @classmethod
    def _strip_item(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None


# =============================================================================
# Imagery
# =============================================================================


class ImageRequest(BaseModel):
    """Scene to visualize."""

    scene_description: str
    turn_count: int


class SceneImage(BaseModel):
    """A generated scene image, tagged with the scene it depicts."""

    data_uri: str
    scene_description: str = ""


# =============================================================================
# Results and configuration
# =============================================================================


class TurnResult(BaseModel):
    """Result of a coordinator operation, returned to the shell."""

    accepted: bool = Field(description="False if the request was rejected as a no-op")
    phase: TurnPhase
    state: GameState
    rejection: str | None = Field(
        default=None, description="Why a submission was ignored"
    )
    error: str | None = None


class SaveGame(BaseModel):
    """Snapshot blob written by the persistence adapter."""

    state: GameState
    scene_image: SceneImage | None = None
    saved_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class GameConfig(BaseModel):
    """Game configuration."""

    # LLM settings
    companion_max_tokens: int = 512
    companion_temperature: float = 0.7
    narrator_max_tokens: int = 1024
    narrator_temperature: float = 0.9

    # Choices offered each turn
    choice_pool: list[str] = Field(default_factory=lambda: list(STATIC_CHOICES_POOL))

    # Presentation
    generate_images: bool = False

    # Persistence
    save_path: str | None = Field(
        default=None,
        description="Save file; None uses $DUAL_DREAD_SAVE_PATH or ./dual_dread_save.json",
    )

    @field_validator("choice_pool")
    @classmethod
    def _pool_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("choice_pool must contain at least one choice")
        return value
