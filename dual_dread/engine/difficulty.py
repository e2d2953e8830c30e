"""
Horror Escalation Tiers for Dual Dread.

Difficulty escalates with the turn number. The coordinator never
branches on the tier; it only attaches the tier's guidance text to the
narrator request (and its style text to image requests), so the tiers
can be retuned without touching the state machine.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class HorrorTierName(str, Enum):
    """Escalation bands, in order."""

    B_HORROR_INTRO = "b_horror_intro"
    RISING_TENSION = "rising_tension"
    DISTURBING_HORROR = "disturbing_horror"
    EXTREME_HORROR = "extreme_horror"


class HorrorTier(BaseModel):
    """A difficulty band and its guidance profile."""

    name: HorrorTierName
    label: str
    first_turn: int = Field(ge=1)
    last_turn: int | None = Field(default=None, description="None = open-ended")
    tone: str
    threats: str
    items: str
    secrets: str = ""
    image_style: str

    def contains(self, turn_count: int) -> bool:
        """Check if a turn falls in this tier."""
        if turn_count < self.first_turn:
            return False
        return self.last_turn is None or turn_count <= self.last_turn

    @property
    def guidance(self) -> str:
        """Narrator guidance text for this tier."""
        turns = (
            f"Turns {self.first_turn}-{self.last_turn}"
            if self.last_turn is not None
            else f"Turns {self.first_turn}+"
        )
        lines = [
            f"{turns} ({self.label}):",
            f"- Tone: {self.tone}",
            f"- Threats: {self.threats}",
            f"- Items: {self.items}",
        ]
        if self.secrets:
            lines.append(f"- Secrets: {self.secrets}")
        return "\n".join(lines)


HORROR_TIERS: tuple[HorrorTier, ...] = (
    HorrorTier(
        name=HorrorTierName.B_HORROR_INTRO,
        label="B-Horror Intro",
        first_turn=1,
        last_turn=4,
        tone="Atmospheric, B-movie horror with a creeping sense of unease.",
        threats="Indirect. Shadows, fog, creaking sounds.",
        items='Simple and mundane (e.g., "Flashlight", "Crowbar").',
        image_style=(
            "Atmospheric, dark, B-movie horror: shadows, fog, old buildings, a "
            "sense of unease. No explicit gore or monsters."
        ),
    ),
    HorrorTier(
        name=HorrorTierName.RISING_TENSION,
        label="Rising Tension",
        first_turn=5,
        last_turn=9,
        tone="Unsettling and psychological.",
        threats="Direct but ambiguous. Decay, strange symbols.",
        items='Specific and strange (e.g., "Child\'s Doll", "Bloodstained Note").',
        secrets="Subtle clues about the location or its entities.",
        image_style=(
            "Unsettling: silhouettes, strange glows, glowing eyes in the dark, "
            "claustrophobic or decaying surroundings, a sense of being watched."
        ),
    ),
    HorrorTier(
        name=HorrorTierName.DISTURBING_HORROR,
        label="Disturbing Horror",
        first_turn=10,
        last_turn=14,
        tone="Genuinely disturbing.",
        threats=(
            'Complex, terrifying entities or concepts (e.g., "The Stitch-Mouthed '
            'Effigy", "a room where gravity is wrong").'
        ),
        items='Powerful, cursed or highly specialized (e.g., "Ritual Dagger").',
        secrets="Disturbing truths and a sense of a larger malevolent force.",
        image_style=(
            "Genuinely disturbing: glimpses of twisted figures and unnatural "
            "anatomy, psychological distress, hostile or corrupted places."
        ),
    ),
    HorrorTier(
        name=HorrorTierName.EXTREME_HORROR,
        label="Extreme & Creative Horror",
        first_turn=15,
        last_turn=None,
        tone="Cosmic dread, body horror, surreal nightmares.",
        threats="Grotesque monsters, sanity-bending events, impossible geometry.",
        items="Very powerful or dangerous, with bizarre reality-altering effects.",
        secrets="Alternate outcomes and hints of inescapable cycles.",
        image_style=(
            "Terrifying, grotesque or surreal: monstrous forms, nightmarish "
            "landscapes, abstract representations of madness and fear."
        ),
    ),
)


def get_horror_tier(turn_count: int) -> HorrorTier:
    """
    Get the escalation tier for a turn.

    Turns before the first tier (0 or negative) use the first tier.
    """
    for tier in HORROR_TIERS:
        if tier.contains(turn_count):
            return tier
    return HORROR_TIERS[0]


def tier_guidance(turn_count: int) -> str:
    """Narrator guidance text for a turn."""
    return get_horror_tier(turn_count).guidance
