"""
Core Engine for Dual Dread.

The engine orchestrates one turn at a time:
- Player choice (from the shuffled choice pool)
- Companion decision (external service)
- Narration (external service, escalating by turn tier)
- Commit (vitals clamping, game-over detection, inventory changes)
"""

from __future__ import annotations

from dual_dread.engine.choices import CHOICES_PER_TURN, next_choices
from dual_dread.engine.coordinator import (
    TurnCoordinator,
    apply_inventory_delta,
    reconcile_companion_choice,
)
from dual_dread.engine.difficulty import (
    HORROR_TIERS,
    HorrorTier,
    HorrorTierName,
    get_horror_tier,
    tier_guidance,
)
from dual_dread.engine.interfaces import (
    CompanionDecisionService,
    NarrativeEngine,
    SceneImageService,
)
from dual_dread.engine.models import (
    CompanionDecision,
    CompanionRequest,
    GameConfig,
    ImageRequest,
    NarrativeOutcome,
    NarrativeRequest,
    PersistenceError,
    SaveGame,
    SceneImage,
    ServiceError,
    TurnPhase,
    TurnResult,
)
from dual_dread.engine.stats import (
    clamp_health,
    clamp_stamina,
    derive_game_over,
    health_lost,
)
from dual_dread.engine.store import GameStateStore

__all__ = [
    # Coordinator
    "TurnCoordinator",
    "apply_inventory_delta",
    "reconcile_companion_choice",
    # Store
    "GameStateStore",
    # Vitals
    "clamp_health",
    "clamp_stamina",
    "derive_game_over",
    "health_lost",
    # Choices
    "CHOICES_PER_TURN",
    "next_choices",
    # Escalation
    "HORROR_TIERS",
    "HorrorTier",
    "HorrorTierName",
    "get_horror_tier",
    "tier_guidance",
    # Interfaces
    "CompanionDecisionService",
    "NarrativeEngine",
    "SceneImageService",
    # Models
    "CompanionDecision",
    "CompanionRequest",
    "GameConfig",
    "ImageRequest",
    "NarrativeOutcome",
    "NarrativeRequest",
    "PersistenceError",
    "SaveGame",
    "SceneImage",
    "ServiceError",
    "TurnPhase",
    "TurnResult",
]
