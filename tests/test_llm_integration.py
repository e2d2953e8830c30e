"""
Integration tests for the LLM-backed companion and narrator.

These tests require a real OpenRouter API key and make actual API calls.
They are marked with @pytest.mark.integration and skipped when no key is
configured.

To run these tests:
    1. Create ~/.env.dual-dread with:
       OPENROUTER_API_KEY=your-key-here
       OPENROUTER_MODEL=google/gemini-2.0-flash-001  # or another model

    2. Run with: pytest tests/test_llm_integration.py -v

To exclude in CI: pytest -m "not integration"
"""

from __future__ import annotations

import os
import random
from pathlib import Path

import pytest

from dual_dread.db import InMemorySnapshotRepository
from dual_dread.engine import (
    CompanionRequest,
    GameConfig,
    NarrativeRequest,
    TurnCoordinator,
    TurnPhase,
    tier_guidance,
)
from dual_dread.models import MAX_HEALTH, MAX_STAMINA
from dual_dread.services import LLMCompanionService, LLMNarrativeEngine, OpenRouterProvider

# =============================================================================
# Test Configuration
# =============================================================================

ENV_FILE_PATH = Path.home() / ".env.dual-dread"


def load_env_vars() -> dict[str, str]:
    """Load OpenRouter config from env file or environment."""
    env_vars: dict[str, str] = {}
    keys_to_load = ["OPENROUTER_API_KEY", "OPENROUTER_MODEL"]

    for key in keys_to_load:
        if value := os.environ.get(key):
            env_vars[key] = value

    if ENV_FILE_PATH.exists():
        for line in ENV_FILE_PATH.read_text().splitlines():
            line = line.strip()
            if line.startswith("#") or "=" not in line:
                continue
            for key in keys_to_load:
                if line.startswith(f"{key}=") and key not in env_vars:
                    env_vars[key] = line.split("=", 1)[1].strip().strip("\"'")

    for key, value in env_vars.items():
        os.environ[key] = value

    return env_vars


_env_vars = load_env_vars()
API_KEY = _env_vars.get("OPENROUTER_API_KEY")
pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not API_KEY, reason="OPENROUTER_API_KEY not configured"),
]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def llm_provider() -> OpenRouterProvider:
    """Create a real OpenRouter provider."""
    return OpenRouterProvider(api_key=API_KEY)


@pytest.fixture
def config() -> GameConfig:
    return GameConfig()


# =============================================================================
# Service Integration Tests
# =============================================================================


class TestServiceIntegration:
    """Real calls through each service."""

    @pytest.mark.asyncio
    async def test_basic_completion(self, llm_provider: OpenRouterProvider) -> None:
        """Test that we can get a basic completion from the API."""
        messages = [{"role": "user", "content": "Say 'hello' and nothing else."}]
        response = await llm_provider.complete(messages, max_tokens=10, temperature=0.0)
        assert "hello" in response.lower()

    @pytest.mark.asyncio
    async def test_companion_returns_a_decision(
        self, llm_provider: OpenRouterProvider, config: GameConfig
    ) -> None:
        """The companion names an action; it may not be one we offered."""
        service = LLMCompanionService(provider=llm_provider, config=config)
        decision = await service.decide(
            CompanionRequest(
                scene_description="A dark cellar. Something breathes behind the shelves.",
                available_choices=["Hide", "Search for a weapon", "Call out"],
                companion_health=2,
                companion_stamina=3,
            )
        )
        assert decision.chosen_option

    @pytest.mark.asyncio
    async def test_narrator_returns_structured_outcome(
        self, llm_provider: OpenRouterProvider, config: GameConfig
    ) -> None:
        service = LLMNarrativeEngine(provider=llm_provider, config=config)
        outcome = await service.narrate(
            NarrativeRequest(
                player_choice="Hide",
                companion_choice="Search for a weapon",
                scene_description="A dark cellar. Something breathes behind the shelves.",
                player_health=2,
                companion_health=2,
                player_stamina=3,
                companion_stamina=3,
                turn_count=2,
                inventory=["Candle"],
                tier_guidance=tier_guidance(2),
            )
        )
        assert outcome.narration
        assert outcome.scene_description
        assert outcome.challenge


# =============================================================================
# Full Turn Integration Tests
# =============================================================================


class TestTurnIntegration:
    """A real opening and turn through the coordinator."""

    @pytest.mark.asyncio
    async def test_opening_and_one_turn(
        self, llm_provider: OpenRouterProvider, config: GameConfig
    ) -> None:
        coordinator = TurnCoordinator(
            companion=LLMCompanionService(provider=llm_provider, config=config),
            narrator=LLMNarrativeEngine(provider=llm_provider, config=config),
            config=config,
            repository=InMemorySnapshotRepository(),
            rng=random.Random(7),
        )

        opening = await coordinator.restart()
        assert opening.phase == TurnPhase.RESOLVED
        assert opening.state.turn_count == 1

        result = await coordinator.submit_player_choice(opening.state.available_choices[0])
        assert result.accepted

        state = result.state
        assert 0 <= state.player_health <= MAX_HEALTH
        assert 0 <= state.companion_stamina <= MAX_STAMINA
        assert state.companion_choice in opening.state.available_choices
        if not state.is_game_over:
            assert len(state.available_choices) == 3
