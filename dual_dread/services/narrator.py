"""
Narrative engine for Dual Dread.

Asks the LLM to act as the storyteller: narrate the combined outcome of
both choices, move the story to a new scene, pose a new challenge, and
report the vitals and inventory changes that result.

The health and stamina rules below are policy text for the model to
interpret. Nothing here enforces them; the coordinator only clamps what
comes back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from dual_dread.engine.models import (
    GameConfig,
    NarrativeOutcome,
    NarrativeRequest,
    ServiceError,
)
from dual_dread.models.state import MAX_HEALTH, MAX_STAMINA
from dual_dread.services.llm import LLMProvider, extract_json_object

logger = logging.getLogger(__name__)

VITALS_POLICY = f"""HEALTH & STAMINA:
- Max health is {MAX_HEALTH} and max stamina is {MAX_STAMINA} for both characters.
- Stamina cost: if a character's choice is physically strenuous (running, fighting, heavy lifting, \
intense searching, prying, struggling):
  - With stamina above 0: decrease their stamina by 1 and narrate the exertion.
  - With stamina at 0 and the action CRITICAL for immediate survival (dodging an attack, fleeing \
imminent danger): the action fails from exhaustion, decrease their health by 1, set the matching \
lostHealthThisTurn flag, and narrate the failure and harm very clearly.
  - With stamina at 0 and the action NOT critical: the action fails from exhaustion. Narrate it. \
Do not decrease health.
- Health loss from choices: if a choice was reckless or foolish and led to harm, decrease that \
character's health by 1, set the matching lostHealthThisTurn flag, and state the reason clearly.
- Stamina recovery: a character who did not exert themselves recovers 1 stamina, up to {MAX_STAMINA}."""

_NARRATOR_SYSTEM_PROMPT = f"""You are the master storyteller for "Dual Dread," a cooperative horror \
text adventure played by a human and their AI companion. Weave a terrifying and unpredictable \
narrative, manage health, stamina and inventory, and present unique challenges.

DIRECTIVES:
1. Narrate the combined result of the Player's and Companion's choices. Be descriptive and evocative.
2. Describe the new scene. Randomize it; every playthrough should be distinct.
3. Present a fresh dilemma, puzzle or threat that can be acted on.
4. Apply the health and stamina rules and report ALL updated values.
5. Inventory: if the story leads to an item being found, set "newItemFound" to its name. If an item \
from the inventory is used up, set "itemUsed" to its exact name. Otherwise use null.
6. Game over: set "isGameOver" to true if either character's health reaches 0, and make the \
narration conclusive and dramatic.
7. Occasionally weave in rare hidden clues that hint at deeper lore.

{VITALS_POLICY}

Output a JSON object only, with keys: "narration", "sceneDescription", "challenge", \
"updatedPlayerHealth", "updatedCompanionHealth", "updatedPlayerStamina", "updatedCompanionStamina", \
"isGameOver", "newItemFound", "itemUsed", "playerLostHealthThisTurn", "companionLostHealthThisTurn"."""

# Response key -> NarrativeOutcome field
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "narration": ("narration",),
    "scene_description": ("sceneDescription", "scene_description"),
    "challenge": ("challenge",),
    "updated_player_health": ("updatedPlayerHealth", "updated_player_health"),
    "updated_companion_health": (
        "updatedCompanionHealth",
        "updated_companion_health",
        "updatedGeminiHealth",
    ),
    "updated_player_stamina": ("updatedPlayerStamina", "updated_player_stamina"),
    "updated_companion_stamina": (
        "updatedCompanionStamina",
        "updated_companion_stamina",
        "updatedGeminiStamina",
    ),
    "is_game_over": ("isGameOver", "is_game_over"),
    "new_item_found": ("newItemFound", "new_item_found"),
    "item_used": ("itemUsed", "item_used"),
    "player_lost_health": ("playerLostHealthThisTurn", "player_lost_health"),
    "companion_lost_health": (
        "companionLostHealthThisTurn",
        "companion_lost_health",
        "geminiLostHealthThisTurn",
    ),
}

_OPTIONAL_FLAGS = ("is_game_over", "player_lost_health", "companion_lost_health")


def build_narrator_prompt(request: NarrativeRequest) -> str:
    """Build the user prompt for a turn's narration."""
    inventory = ", ".join(request.inventory) if request.inventory else "Empty"
    return f"""Current Turn: {request.turn_count}
Current Scene: {request.scene_description}
Player Health: {request.player_health}/{MAX_HEALTH}, Player Stamina: {request.player_stamina}/{MAX_STAMINA}
Companion Health: {request.companion_health}/{MAX_HEALTH}, Companion Stamina: {request.companion_stamina}/{MAX_STAMINA}
Player's Inventory: {inventory}

Player's Choice: {request.player_choice}
Companion's Choice: {request.companion_choice}

HORROR ESCALATION FOR THIS TURN:
{request.tier_guidance or "None"}

Narrate the outcome."""


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


def parse_narrator_response(response: str) -> NarrativeOutcome:
    """
    Parse an LLM response into a NarrativeOutcome.

    Accepts camelCase or snake_case keys. Boolean flags default to False
    when absent; every other field is required.

    Raises:
        ServiceError: If the response is not JSON or misses required fields
    """
    try:
        data = extract_json_object(response)
    except ValueError as e:
        raise ServiceError(f"Narrator response was not valid JSON: {e}") from e

    fields: dict[str, Any] = {}
    for name, keys in _FIELD_ALIASES.items():
        for key in keys:
            if key in data:
                fields[name] = data[key]
                break

    for flag in _OPTIONAL_FLAGS:
        if flag in fields:
            fields[flag] = _coerce_flag(fields[flag])

    try:
        return NarrativeOutcome.model_validate(fields)
    except ValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ServiceError(
            f"Narrator response is missing or has invalid fields: {', '.join(missing)}"
        ) from e


@dataclass
class LLMNarrativeEngine:
    """NarrativeEngine backed by an LLM provider."""

    provider: LLMProvider
    config: GameConfig

    async def narrate(self, request: NarrativeRequest) -> NarrativeOutcome:
        """Ask the LLM to resolve a turn."""
        response = await self.provider.complete(
            messages=[
                {"role": "system", "content": _NARRATOR_SYSTEM_PROMPT},
                {"role": "user", "content": build_narrator_prompt(request)},
            ],
            max_tokens=self.config.narrator_max_tokens,
            temperature=self.config.narrator_temperature,
            json_mode=True,
        )
        outcome = parse_narrator_response(response)
        logger.debug(
            "Narrator resolved turn %d (game over asserted: %s)",
            request.turn_count,
            outcome.is_game_over,
        )
        return outcome
