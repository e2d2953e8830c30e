"""
Turn Coordinator for Dual Dread.

The main orchestration layer of the game. One turn runs as a strictly
sequential pipeline:

    player choice -> companion decision -> narration -> commit

The coordinator owns the GameState store and is the only code that
writes to it. A failed service call aborts the turn and leaves the
previous state in place (plus an error message) so the player can simply
resubmit. Restarting or loading mid-turn bumps an epoch counter; any
service response that arrives for an older epoch is discarded.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dual_dread.content import INITIAL_SCENE, OPENING_FLAVORS, STATIC_OPENING
from dual_dread.engine.choices import next_choices
from dual_dread.engine.difficulty import tier_guidance
from dual_dread.engine.interfaces import (
    CompanionDecisionService,
    NarrativeEngine,
    SceneImageService,
)
from dual_dread.engine.models import (
    CORRECTION_NOTE,
    FALLBACK_COMPANION_CHOICE,
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
from dual_dread.models.state import GameState, create_fresh_state

if TYPE_CHECKING:
    from dual_dread.db.interfaces import SnapshotRepository

logger = logging.getLogger(__name__)


def reconcile_companion_choice(
    decision: CompanionDecision,
    available_choices: Sequence[str],
) -> tuple[str, str]:
    """
    Make sure the companion picked something that was actually offered.

    Returns:
        (chosen option, reasoning). An off-list pick is replaced by the
        first offered choice, or a static fallback when nothing was offered,
        and a correction note is appended to the reasoning.
    """
    if decision.chosen_option in available_choices:
        return decision.chosen_option, decision.reasoning

    substitute = available_choices[0] if available_choices else FALLBACK_COMPANION_CHOICE
    logger.warning(
        "Companion chose an invalid option %r; substituting %r",
        decision.chosen_option,
        substitute,
    )
    return substitute, decision.reasoning + CORRECTION_NOTE


def apply_inventory_delta(
    inventory: Sequence[str],
    new_item_found: str | None,
    item_used: str | None,
) -> list[str]:
    """
    Apply one turn's inventory changes.

    A used item loses exactly one occurrence; using an item that is not
    held does nothing. A found item is appended unless already held.
    """
    items = list(inventory)
    if item_used and item_used in items:
        items.remove(item_used)
    if new_item_found and new_item_found not in items:
        items.append(new_item_found)
    return items


@dataclass
class TurnCoordinator:
    """
    Runs the turn-resolution state machine.

    Coordinates:
    - The companion decision service (the AI co-player's pick)
    - The narrative engine (story text and vitals changes)
    - The scene image service (optional, best-effort)
    - The snapshot repository (optional save/load)
    """

    companion: CompanionDecisionService
    narrator: NarrativeEngine
    config: GameConfig = field(default_factory=GameConfig)
    images: SceneImageService | None = None
    repository: SnapshotRepository | None = None
    rng: random.Random = field(default_factory=random.Random)

    store: GameStateStore = field(init=False)
    phase: TurnPhase = field(init=False, default=TurnPhase.AWAITING_PLAYER_INPUT)

    # Presentational side channel, never part of GameState
    scene_image: SceneImage | None = field(init=False, default=None)
    image_error: str | None = field(init=False, default=None)
    persistence_error: str | None = field(init=False, default=None)

    _epoch: int = field(init=False, default=0)
    _image_task: asyncio.Task | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.store = GameStateStore(create_fresh_state(INITIAL_SCENE))

    @property
    def state(self) -> GameState:
        """A copy of the current game state."""
        return self.store.get()

    # =========================================================================
    # Game lifecycle
    # =========================================================================

    async def restart(self) -> TurnResult:
        """
        Start a new game, discarding the current one.

        Asks the narrator for an opening using a random flavor. If that
        fails, a static opening is used instead so the player can still act.
        """
        self._epoch += 1
        epoch = self._epoch
        self._reset_scene_image()

        fresh = create_fresh_state(INITIAL_SCENE)
        self.store.replace(fresh)
        self.phase = TurnPhase.NARRATING_OUTCOME

        flavor = self.rng.choice(OPENING_FLAVORS)
        request = NarrativeRequest(
            player_choice=flavor.player_action,
            companion_choice=flavor.companion_action,
            scene_description=fresh.scene_description,
            player_health=fresh.player_health,
            companion_health=fresh.companion_health,
            player_stamina=fresh.player_stamina,
            companion_stamina=fresh.companion_stamina,
            turn_count=1,
            inventory=[],
            tier_guidance=tier_guidance(1),
        )

        try:
            outcome = await self.narrator.narrate(request)
            if not isinstance(outcome, NarrativeOutcome):
                raise ServiceError("Narrator returned no opening")
        except Exception as e:
            if epoch != self._epoch:
                return self._discarded()
            message = f"Failed to initialize game narration: {e}"
            logger.error("Opening narration failed, using static opening: %s", e)
            opening = fresh.model_copy(
                update={
                    "narration": STATIC_OPENING.narration,
                    "scene_description": STATIC_OPENING.scene_description,
                    "challenge": STATIC_OPENING.challenge,
                    "available_choices": self._choices_for(0),
                    "is_player_turn": True,
                    "last_error": message,
                }
            )
            self.store.replace(opening)
            self.phase = TurnPhase.AWAITING_PLAYER_INPUT
            return TurnResult(
                accepted=True,
                phase=TurnPhase.FAILED,
                state=self.store.get(),
                error=message,
            )

        if epoch != self._epoch:
            return self._discarded()

        opening = fresh.model_copy(
            update={
                "narration": outcome.narration,
                "scene_description": outcome.scene_description,
                "challenge": outcome.challenge,
                "available_choices": self._choices_for(1),
                "turn_count": 1,
                "is_player_turn": True,
            }
        )
        self.store.replace(opening)
        self.phase = TurnPhase.AWAITING_PLAYER_INPUT
        logger.info("New game started")
        self._schedule_scene_image(opening)
        return TurnResult(accepted=True, phase=TurnPhase.RESOLVED, state=self.store.get())

    # =========================================================================
    # Turn resolution
    # =========================================================================

    async def submit_player_choice(self, choice: str) -> TurnResult:
        """
        Resolve a full turn for the player's choice.

        Submissions are ignored (accepted=False, state untouched) when the
        game is over, when a turn is already being resolved, or when the
        choice is not one of the offered ones.

        Args:
            choice: One of the state's available choices

        Returns:
            TurnResult with the committed state, or the restored state and
            an error if a service failed
        """
        previous = self.store.get()

        rejection = self._check_submission(previous, choice)
        if rejection is not None:
            logger.debug("Ignoring player choice %r: %s", choice, rejection)
            return TurnResult(
                accepted=False,
                phase=self.phase,
                state=previous,
                rejection=rejection,
            )

        epoch = self._epoch
        in_flight = previous.model_copy(
            update={
                "is_player_turn": False,
                "last_error": None,
                "player_choice": choice,
                "companion_choice": None,
                "companion_reasoning": None,
            }
        )
        self.store.replace(in_flight)

        try:
            return await self._run_turn(previous, choice, epoch)
        except asyncio.CancelledError:
            # A caller-imposed timeout must not leave the turn open
            if epoch == self._epoch:
                logger.error("Turn %d cancelled before it resolved", previous.turn_count + 1)
                self._restore(previous, "Failed to process turn: the request was cancelled")
            raise

    async def _run_turn(self, previous: GameState, choice: str, epoch: int) -> TurnResult:
        """Companion decision, narration and commit for one accepted choice."""
        # Companion decides
        self.phase = TurnPhase.COMPANION_DECIDING
        try:
            decision = await self.companion.decide(
                CompanionRequest(
                    scene_description=previous.scene_description,
                    available_choices=list(previous.available_choices),
                    companion_health=previous.companion_health,
                    companion_stamina=previous.companion_stamina,
                )
            )
            if not isinstance(decision, CompanionDecision):
                raise ServiceError("Companion returned no decision")
        except Exception as e:
            return self._abort(previous, epoch, e)

        if epoch != self._epoch:
            return self._discarded()

        companion_choice, reasoning = reconcile_companion_choice(
            decision, previous.available_choices
        )

        # Narrator resolves both choices
        self.phase = TurnPhase.NARRATING_OUTCOME
        next_turn = previous.turn_count + 1
        try:
            outcome = await self.narrator.narrate(
                NarrativeRequest(
                    player_choice=choice,
                    companion_choice=companion_choice,
                    scene_description=previous.scene_description,
                    player_health=previous.player_health,
                    companion_health=previous.companion_health,
                    player_stamina=previous.player_stamina,
                    companion_stamina=previous.companion_stamina,
                    turn_count=next_turn,
                    inventory=list(previous.inventory),
                    tier_guidance=tier_guidance(next_turn),
                )
            )
            if not isinstance(outcome, NarrativeOutcome):
                raise ServiceError("Narrator returned no outcome")
        except Exception as e:
            return self._abort(previous, epoch, e)

        if epoch != self._epoch:
            return self._discarded()

        try:
            resolved = self._resolve(previous, choice, companion_choice, reasoning, outcome)
            self.store.replace(resolved)
        except Exception as e:
            return self._abort(previous, epoch, e)

        if resolved.is_game_over:
            self.phase = TurnPhase.GAME_OVER
            logger.info("Game over on turn %d", resolved.turn_count)
        else:
            self.phase = TurnPhase.AWAITING_PLAYER_INPUT
            logger.info(
                "Turn %d resolved (player hp=%d sta=%d, companion hp=%d sta=%d)",
                resolved.turn_count,
                resolved.player_health,
                resolved.player_stamina,
                resolved.companion_health,
                resolved.companion_stamina,
            )
            self._schedule_scene_image(resolved)

        return TurnResult(
            accepted=True,
            phase=TurnPhase.GAME_OVER if resolved.is_game_over else TurnPhase.RESOLVED,
            state=self.store.get(),
        )

    def _check_submission(self, state: GameState, choice: str) -> str | None:
        """Return why a submission must be ignored, or None if it may proceed."""
        if state.is_game_over:
            return "The game is over. Restart to play again."
        if not state.is_player_turn:
            return "A turn is already being resolved."
        if choice not in state.available_choices:
            return f"'{choice}' is not one of the available choices."
        return None

    def _resolve(
        self,
        previous: GameState,
        player_choice: str,
        companion_choice: str,
        reasoning: str,
        outcome: NarrativeOutcome,
    ) -> GameState:
        """Build the next state from a narrator outcome."""
        player_health = clamp_health(outcome.updated_player_health)
        companion_health = clamp_health(outcome.updated_companion_health)
        is_game_over = derive_game_over(player_health, companion_health, outcome.is_game_over)
        turn_count = previous.turn_count + 1

        return GameState(
            narration=outcome.narration,
            scene_description=outcome.scene_description,
            challenge=outcome.challenge,
            available_choices=[] if is_game_over else self._choices_for(turn_count),
            player_health=player_health,
            companion_health=companion_health,
            player_stamina=clamp_stamina(outcome.updated_player_stamina),
            companion_stamina=clamp_stamina(outcome.updated_companion_stamina),
            inventory=apply_inventory_delta(
                previous.inventory, outcome.new_item_found, outcome.item_used
            ),
            turn_count=turn_count,
            is_player_turn=not is_game_over,
            is_game_over=is_game_over,
            last_error=None,
            player_choice=player_choice,
            companion_choice=companion_choice,
            companion_reasoning=reasoning,
            player_lost_health=health_lost(
                outcome.player_lost_health, previous.player_health, player_health
            ),
            companion_lost_health=health_lost(
                outcome.companion_lost_health, previous.companion_health, companion_health
            ),
        )

    def _abort(self, previous: GameState, epoch: int, error: Exception) -> TurnResult:
        """Roll back to the pre-turn state after a service failure."""
        if epoch != self._epoch:
            return self._discarded()

        message = f"Failed to process turn: {error}"
        logger.error("Turn %d aborted: %s", previous.turn_count + 1, error)
        self._restore(previous, message)
        return TurnResult(
            accepted=True,
            phase=TurnPhase.FAILED,
            state=self.store.get(),
            error=message,
        )

    def _restore(self, previous: GameState, message: str) -> None:
        restored = previous.model_copy(update={"last_error": message, "is_player_turn": True})
        self.store.replace(restored)
        self.phase = TurnPhase.AWAITING_PLAYER_INPUT

    def _discarded(self) -> TurnResult:
        """Result for a response that arrived after the game was reset."""
        logger.info("Discarding stale service response from a previous game")
        return TurnResult(
            accepted=True,
            phase=TurnPhase.FAILED,
            state=self.store.get(),
            error="The game was reset before this turn finished.",
        )

    def _choices_for(self, turn_count: int) -> list[str]:
        return next_choices(self.config.choice_pool, turn_count, self.rng)

    # =========================================================================
    # Scene imagery (best-effort)
    # =========================================================================

    def _schedule_scene_image(self, state: GameState) -> None:
        """Kick off image generation for the new scene, if configured."""
        if self.images is None or state.is_game_over or not state.scene_description:
            return

        if self._image_task is not None and not self._image_task.done():
            self._image_task.cancel()

        self.image_error = None
        request = ImageRequest(
            scene_description=state.scene_description,
            turn_count=state.turn_count,
        )
        self._image_task = asyncio.create_task(
            self._generate_scene_image(request, self._epoch)
        )

    async def _generate_scene_image(self, request: ImageRequest, epoch: int) -> None:
        assert self.images is not None
        try:
            image = await self.images.generate(request)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Scene image generation failed: %s", e)
            if epoch == self._epoch:
                self.image_error = f"Image generation error: {str(e)[:150]}"
            return

        current_scene = self.store.get().scene_description
        if epoch != self._epoch or current_scene != request.scene_description:
            logger.debug("Discarding image for a scene that is no longer shown")
            return
        self.scene_image = image.model_copy(
            update={"scene_description": request.scene_description}
        )

    async def wait_for_scene_image(self) -> SceneImage | None:
        """Wait for any pending image generation to finish."""
        task = self._image_task
        if task is not None and not task.done():
            try:
                await task
            except asyncio.CancelledError:
                pass
        return self.scene_image

    def _reset_scene_image(self) -> None:
        if self._image_task is not None and not self._image_task.done():
            self._image_task.cancel()
        self._image_task = None
        self.scene_image = None
        self.image_error = None

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self) -> bool:
        """
        Save the current game to the snapshot repository.

        Returns:
            True if saved. On failure ``persistence_error`` explains why;
            the live game is never affected.
        """
        self.persistence_error = None
        if self.repository is None:
            self.persistence_error = "No save slot is configured."
            return False

        state = self.store.get()
        if not state.is_player_turn and not state.is_game_over:
            self.persistence_error = "Cannot save while a turn is being resolved."
            return False

        blob = SaveGame(state=state, scene_image=self.scene_image).model_dump_json()
        try:
            self.repository.save(blob)
        except PersistenceError as e:
            logger.error("Save failed: %s", e)
            self.persistence_error = f"Failed to save game: {e}"
            return False

        logger.info("Game saved at turn %d", state.turn_count)
        return True

    def load(self) -> bool:
        """
        Replace the current game with the saved one.

        Returns:
            True if loaded. On failure ``persistence_error`` explains why
            and the current game is left exactly as it was.
        """
        self.persistence_error = None
        if self.repository is None:
            self.persistence_error = "No save slot is configured."
            return False

        try:
            blob = self.repository.load()
        except PersistenceError as e:
            logger.error("Load failed: %s", e)
            self.persistence_error = f"Failed to load game: {e}"
            return False

        if blob is None:
            self.persistence_error = "No saved game found."
            return False

        # Validate into a staging store so a bad save never touches the live game
        staging = GameStateStore()
        try:
            saved = SaveGame.model_validate_json(blob)
            staging.restore(saved.state.model_dump_json())
        except ValueError as e:
            logger.error("Saved game is corrupted: %s", e)
            self.persistence_error = "Failed to load game: the save file is corrupted."
            return False

        self._epoch += 1
        self._reset_scene_image()
        self.store.restore(staging.snapshot())
        self.scene_image = saved.scene_image
        self.phase = (
            TurnPhase.GAME_OVER if saved.state.is_game_over else TurnPhase.AWAITING_PLAYER_INPUT
        )
        logger.info("Game loaded at turn %d", saved.state.turn_count)
        return True
