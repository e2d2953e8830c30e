"""
Companion decision service for Dual Dread.

Asks the LLM to play the AI companion: given the scene, its own vitals
and the offered actions, it picks one action and explains why.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dual_dread.engine.models import (
    CompanionDecision,
    CompanionRequest,
    GameConfig,
    ServiceError,
)
from dual_dread.models.state import MAX_HEALTH, MAX_STAMINA
from dual_dread.services.llm import LLMProvider, extract_json_object

logger = logging.getLogger(__name__)

_COMPANION_SYSTEM_PROMPT = """You are an AI companion in a cooperative horror text-based adventure game. \
The game master describes the current scene and a list of possible actions. \
Your human partner has already made their choice for this turn.

Choose ONE option from the list that you think is the most sensible or strategically sound \
for YOU to take in this horror scenario, and explain your reasoning.

Consider the situation, your health, your stamina and the goal of survival. You don't always \
have to be cautious; sometimes a risk is necessary, but be intelligent. Strenuous actions cost \
stamina, and straining while exhausted can cost health.

Output a JSON object only, with keys:
- "chosenOption": the option you selected, copied exactly from the list
- "reasoning": a concise explanation of your choice"""


def build_companion_prompt(request: CompanionRequest) -> str:
    """Build the user prompt for a companion decision."""
    choices = "\n".join(f"- {c}" for c in request.available_choices) or "- (none)"
    return f"""Your Current Health: {request.companion_health}/{MAX_HEALTH}. Reckless actions could be dangerous.
Your Current Stamina: {request.companion_stamina}/{MAX_STAMINA}.

Current Scene:
{request.scene_description}

Here are the actions YOU can take:
{choices}

You MUST choose only one of the options above."""


def parse_companion_response(response: str) -> CompanionDecision:
    """
    Parse an LLM response into a CompanionDecision.

    Accepts camelCase or snake_case keys.

    Raises:
        ServiceError: If the response has no usable chosen option
    """
    try:
        data = extract_json_object(response)
    except ValueError as e:
        raise ServiceError(f"Companion response was not valid JSON: {e}") from e

    chosen = data.get("chosenOption", data.get("chosen_option"))
    if not isinstance(chosen, str) or not chosen.strip():
        raise ServiceError("Companion response did not include a chosen option")

    reasoning = data.get("reasoning")
    if not isinstance(reasoning, str):
        reasoning = ""

    return CompanionDecision(chosen_option=chosen.strip(), reasoning=reasoning.strip())


@dataclass
class LLMCompanionService:
    """CompanionDecisionService backed by an LLM provider."""

    provider: LLMProvider
    config: GameConfig

    async def decide(self, request: CompanionRequest) -> CompanionDecision:
        """Ask the LLM which offered action the companion takes."""
        response = await self.provider.complete(
            messages=[
                {"role": "system", "content": _COMPANION_SYSTEM_PROMPT},
                {"role": "user", "content": build_companion_prompt(request)},
            ],
            max_tokens=self.config.companion_max_tokens,
            temperature=self.config.companion_temperature,
            json_mode=True,
        )
        decision = parse_companion_response(response)
        logger.debug("Companion chose %r", decision.chosen_option)
        return decision
