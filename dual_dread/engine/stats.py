"""
Vitals Guard for Dual Dread.

The narrator is an untrusted generator: it may return vitals that are
out of range, missing, or not numbers at all. These helpers force any
such value back into the valid range. All functions are pure and total.
"""

from __future__ import annotations

import math

from dual_dread.models.state import MAX_HEALTH, MAX_STAMINA


def _clamp(value: object, maximum: int) -> int:
    """Clamp a loosely-typed value to 0..maximum, mapping garbage and NaN to 0."""
    if isinstance(value, bool):
        value = int(value)
    if not isinstance(value, int):
        try:
            number = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return 0
        if math.isnan(number):
            return 0
        if math.isinf(number):
            return maximum if number > 0 else 0
        value = int(number)
    return max(0, min(value, maximum))


def clamp_health(value: object) -> int:
    """Clamp a health value to 0..MAX_HEALTH."""
    return _clamp(value, MAX_HEALTH)


def clamp_stamina(value: object) -> int:
    """Clamp a stamina value to 0..MAX_STAMINA."""
    return _clamp(value, MAX_STAMINA)


def derive_game_over(
    player_health: int,
    companion_health: int,
    engine_asserted_game_over: bool,
) -> bool:
    """
    Decide whether the game has ended.

    Either party at 0 health always ends the game. Otherwise the
    narrator's own flag is honored, which allows story-driven endings
    while both parties are still standing.
    """
    if player_health <= 0 or companion_health <= 0:
        return True
    return bool(engine_asserted_game_over)


def health_lost(flagged: bool, before: int, after: int) -> bool:
    """A loss only counts if the narrator flagged it and health actually dropped."""
    return bool(flagged) and after < before
