"""
Static Content for Dual Dread.

The fixed choice pool offered to the player, the opening "flavor"
actions used to prompt the first narration, and the static opening
shown when the narrator cannot be reached.
"""

from __future__ import annotations

from dataclasses import dataclass

STATIC_CHOICES_POOL: tuple[str, ...] = (
    "Cautiously investigate the immediate surroundings.",
    "Try to find a way out of this area.",
    "Communicate with your companion about the situation.",
    "Listen carefully for any sounds or clues.",
    "Search for any useful items nearby.",
    "Examine the most unsettling feature of the room.",
)

INITIAL_SCENE = (
    "You and your AI companion awaken in a dark, eerie cellar. A palpable sense "
    "of dread hangs in the air. The only light flickers from a distant, unknown "
    "source..."
)


@dataclass(frozen=True)
class OpeningFlavor:
    """Implicit first actions for the player and companion."""

    player_action: str
    companion_action: str


OPENING_FLAVORS: tuple[OpeningFlavor, ...] = (
    OpeningFlavor(
        player_action="We've awakened in this dreadful place.",
        companion_action="I sense danger. We must be cautious.",
    ),
    OpeningFlavor(
        player_action="I push myself up off the cold floor and look around.",
        companion_action="I stay close and listen for movement.",
    ),
    OpeningFlavor(
        player_action="I call out into the dark, hoping someone answers.",
        companion_action="I grab my partner's arm. Something answered.",
    ),
    OpeningFlavor(
        player_action="I feel along the wall for a light switch.",
        companion_action="I watch the stairs. The door above just creaked.",
    ),
)


@dataclass(frozen=True)
class StaticOpening:
    """Opening text used when the first narration call fails."""

    narration: str
    scene_description: str
    challenge: str


STATIC_OPENING = StaticOpening(
    narration=(
        "Cold stone presses against your cheek. You come to slowly, your "
        "companion stirring beside you. Neither of you remembers how you got here."
    ),
    scene_description=INITIAL_SCENE,
    challenge=(
        "A wet, dragging sound echoes from somewhere beyond the stairs. "
        "You need to decide what to do before it gets closer."
    ),
)
