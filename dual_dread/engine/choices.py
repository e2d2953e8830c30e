"""
Choice Pool for Dual Dread.

Draws the three actions offered to the player each turn from a fixed
pool. Choices are not derived from the story; they are shuffled so
consecutive turns plausibly differ.
"""

from __future__ import annotations

import random
import secrets
from collections.abc import Sequence

CHOICES_PER_TURN = 3


def _dedupe(pool: Sequence[str]) -> list[str]:
    """Drop duplicate and blank entries, keeping first-seen order."""
    seen: set[str] = set()
    unique: list[str] = []
    for choice in pool:
        if choice and choice not in seen:
            seen.add(choice)
            unique.append(choice)
    return unique


def next_choices(
    pool: Sequence[str],
    turn_count: int,
    rng: random.Random | None = None,
) -> list[str]:
    """
    Pick the choices offered to the player for a turn.

    Args:
        pool: Candidate action strings
        turn_count: Turn the choices are for; mixed into the default seed
        rng: Random source to use (pass a seeded one for repeatable picks)

    Returns:
        Three choices, distinct whenever the pool has three unique entries.
        When it has fewer, the remainder is padded from the start of the
        pool. An empty pool gives an empty list.
    """
    unique = _dedupe(pool)
    if not unique:
        return []

    if rng is None:
        rng = random.Random(turn_count ^ secrets.randbits(32))

    if len(unique) >= CHOICES_PER_TURN:
        return rng.sample(unique, CHOICES_PER_TURN)

    picked = list(unique)
    rng.shuffle(picked)
    index = 0
    while len(picked) < CHOICES_PER_TURN:
        picked.append(unique[index % len(unique)])
        index += 1
    return picked
