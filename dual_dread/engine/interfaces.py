"""
Collaborator interface definitions for Dual Dread.

Uses Protocol classes to define the contracts the TurnCoordinator relies
on. Implementations can call a real LLM or be scripted fakes for testing.
"""

from __future__ import annotations

from typing import Protocol

from dual_dread.engine.models import (
    CompanionDecision,
    CompanionRequest,
    ImageRequest,
    NarrativeOutcome,
    NarrativeRequest,
    SceneImage,
)


class CompanionDecisionService(Protocol):
    """Chooses the companion's action for a turn."""

    async def decide(self, request: CompanionRequest) -> CompanionDecision:
        """
        Pick one of the offered choices.

        The returned option should be one of ``request.available_choices``;
        the coordinator corrects it if not.

        Raises:
            ServiceError: If no decision could be obtained
        """
        ...


class NarrativeEngine(Protocol):
    """Resolves a turn into story text and state changes."""

    async def narrate(self, request: NarrativeRequest) -> NarrativeOutcome:
        """
        Narrate the combined outcome of both parties' choices.

        Raises:
            ServiceError: If the call fails or the response is unusable
        """
        ...


class SceneImageService(Protocol):
    """Visualizes a scene. Presentational only."""

    async def generate(self, request: ImageRequest) -> SceneImage:
        """
        Generate an image for a scene.

        Raises:
            ServiceError: If no image could be produced
        """
        ...
