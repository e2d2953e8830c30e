"""
Shared fixtures for Dual Dread tests.

The LLM-backed services are replaced by scripted fakes so that turns can
be driven deterministically.
"""

from __future__ import annotations

import asyncio
import random
from collections import deque
from typing import Any

import pytest

from dual_dread.db.memory import InMemorySnapshotRepository
from dual_dread.engine import (
    CompanionDecision,
    CompanionRequest,
    GameConfig,
    ImageRequest,
    NarrativeOutcome,
    NarrativeRequest,
    SceneImage,
    ServiceError,
    TurnCoordinator,
)


def make_outcome(**overrides: Any) -> NarrativeOutcome:
    """Build a narrator outcome with sensible defaults."""
    fields: dict[str, Any] = {
        "narration": "The dark shifts around you.",
        "scene_description": "A narrow corridor lined with peeling wallpaper.",
        "challenge": "Something scratches behind the wall.",
        "updated_player_health": 2,
        "updated_companion_health": 2,
        "updated_player_stamina": 3,
        "updated_companion_stamina": 3,
        "is_game_over": False,
        "new_item_found": None,
        "item_used": None,
    }
    fields.update(overrides)
    return NarrativeOutcome(**fields)


class ScriptedCompanion:
    """Companion that replays queued decisions, else picks the first choice."""

    def __init__(self) -> None:
        self.script: deque[CompanionDecision | Exception | None] = deque()
        self.requests: list[CompanionRequest] = []

    def queue(self, item: CompanionDecision | Exception | None) -> None:
        self.script.append(item)

    async def decide(self, request: CompanionRequest) -> CompanionDecision | None:
        self.requests.append(request)
        if self.script:
            item = self.script.popleft()
            if isinstance(item, Exception):
                raise item
            return item
        return CompanionDecision(
            chosen_option=request.available_choices[0],
            reasoning="Safety in numbers.",
        )


class ScriptedNarrator:
    """Narrator that replays queued outcomes, else keeps the vitals as they are."""

    def __init__(self) -> None:
        self.script: deque[NarrativeOutcome | Exception | None] = deque()
        self.requests: list[NarrativeRequest] = []
        self.gate: asyncio.Event | None = None

    def queue(self, item: NarrativeOutcome | Exception | None) -> None:
        self.script.append(item)

    async def narrate(self, request: NarrativeRequest) -> NarrativeOutcome | None:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.script:
            item = self.script.popleft()
            if isinstance(item, Exception):
                raise item
            return item
        return make_outcome(
            scene_description=f"Scene for turn {request.turn_count}",
            updated_player_health=request.player_health,
            updated_companion_health=request.companion_health,
            updated_player_stamina=request.player_stamina,
            updated_companion_stamina=request.companion_stamina,
        )


class ScriptedImages:
    """Image service that succeeds unless told to fail."""

    def __init__(self) -> None:
        self.fail = False
        self.requests: list[ImageRequest] = []
        self.gate: asyncio.Event | None = None

    async def generate(self, request: ImageRequest) -> SceneImage:
        self.requests.append(request)
        await asyncio.sleep(0)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ServiceError("Image generation returned no media.")
        return SceneImage(data_uri="data:image/png;base64,AAAA")


@pytest.fixture
def companion() -> ScriptedCompanion:
    return ScriptedCompanion()


@pytest.fixture
def narrator() -> ScriptedNarrator:
    return ScriptedNarrator()


@pytest.fixture
def images() -> ScriptedImages:
    return ScriptedImages()


@pytest.fixture
def repository() -> InMemorySnapshotRepository:
    return InMemorySnapshotRepository()


@pytest.fixture
def coordinator(
    companion: ScriptedCompanion,
    narrator: ScriptedNarrator,
    repository: InMemorySnapshotRepository,
) -> TurnCoordinator:
    return TurnCoordinator(
        companion=companion,
        narrator=narrator,
        config=GameConfig(),
        repository=repository,
        rng=random.Random(1234),
    )
