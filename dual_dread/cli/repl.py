"""
Interactive REPL for Dual Dread.

A thin text shell over the TurnCoordinator: it shows the scene, lists the
numbered choices, and forwards the player's pick.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from dual_dread.db import FileSnapshotRepository
from dual_dread.engine import GameConfig, TurnCoordinator, TurnPhase, TurnResult
from dual_dread.models import MAX_HEALTH, MAX_STAMINA, GameState
from dual_dread.services import (
    LLMCompanionService,
    LLMNarrativeEngine,
    OpenAIImageService,
    OpenRouterProvider,
)

logger = logging.getLogger(__name__)


@dataclass
class Command:
    """A special REPL command."""

    name: str
    aliases: list[str]
    description: str
    handler: Callable[[list[str]], Awaitable[str | None]]


def _meter(value: int, maximum: int, full: str, empty: str) -> str:
    return full * value + empty * (maximum - value)


def format_vitals(state: GameState) -> str:
    """Render both parties' health and stamina."""
    return (
        f"You:       HP {_meter(state.player_health, MAX_HEALTH, '♥', '♡')}  "
        f"STA {_meter(state.player_stamina, MAX_STAMINA, '●', '○')}\n"
        f"Companion: HP {_meter(state.companion_health, MAX_HEALTH, '♥', '♡')}  "
        f"STA {_meter(state.companion_stamina, MAX_STAMINA, '●', '○')}"
    )


def format_state(state: GameState) -> str:
    """Render the scene, recap and choices for the player."""
    parts: list[str] = []

    if state.player_choice and state.companion_choice:
        parts.append(f"You chose: {state.player_choice}")
        parts.append(f"Your companion chose: {state.companion_choice}")
        if state.companion_reasoning:
            parts.append(f'  "{state.companion_reasoning}"')
        parts.append("")

    if state.player_lost_health or state.companion_lost_health:
        parts.append("!!! Something tears into you in the dark !!!\n")

    if state.narration:
        parts.append(state.narration)
        parts.append("")
    if state.scene_description:
        parts.append(f"[Scene] {state.scene_description}")
    if state.challenge:
        parts.append(f"[Challenge] {state.challenge}")
    parts.append("")
    parts.append(f"Turn {state.turn_count}")
    parts.append(format_vitals(state))
    parts.append(f"Inventory: {', '.join(state.inventory) if state.inventory else 'Empty'}")

    if state.last_error:
        parts.append(f"\n[Error: {state.last_error}. Please try again.]")

    if state.is_game_over:
        parts.append("\nThe End? Type /restart to descend again.")
    elif state.available_choices:
        parts.append("\nWhat do you do?")
        for index, choice in enumerate(state.available_choices, start=1):
            parts.append(f"  {index}. {choice}")

    return "\n".join(parts)


async def read_input(prompt: str = "") -> str:
    """Read a line in a worker thread, leaving the event loop free."""
    return await asyncio.to_thread(input, prompt)


class GameREPL:
    """
    Interactive REPL for playing Dual Dread.

    Handles user input, special commands, and game output.
    """

    def __init__(self, coordinator: TurnCoordinator) -> None:
        self.coordinator = coordinator
        self.running = True
        self.commands: dict[str, Command] = {}
        self._register_commands()

    def _register_commands(self) -> None:
        """Register all special commands."""
        commands = [
            Command("quit", ["exit", "q"], "Exit the game", self._cmd_quit),
            Command("help", ["?", "h"], "Show available commands", self._cmd_help),
            Command("status", ["stats", "look", "l"], "Show the current scene", self._cmd_status),
            Command("save", ["s"], "Save the current game", self._cmd_save),
            Command("load", [], "Load the saved game", self._cmd_load),
            Command("restart", ["new"], "Start a new game", self._cmd_restart),
            Command("image", ["img"], "Show the scene image status", self._cmd_image),
        ]
        for command in commands:
            self.commands[command.name] = command
            for alias in command.aliases:
                self.commands[alias] = command

    async def _cmd_quit(self, args: list[str]) -> str:
        self.running = False
        return "You turn away from the dark... for now."

    async def _cmd_help(self, args: list[str]) -> str:
        seen: set[str] = set()
        lines = ["Pick a choice by its number, or use a command:"]
        for command in self.commands.values():
            if command.name in seen:
                continue
            seen.add(command.name)
            aliases = f" ({', '.join('/' + a for a in command.aliases)})" if command.aliases else ""
            lines.append(f"  /{command.name}{aliases} - {command.description}")
        return "\n".join(lines)

    async def _cmd_status(self, args: list[str]) -> str:
        return format_state(self.coordinator.state)

    async def _cmd_save(self, args: list[str]) -> str:
        if self.coordinator.save():
            return "Game saved."
        return f"[Save failed: {self.coordinator.persistence_error}]"

    async def _cmd_load(self, args: list[str]) -> str:
        if self.coordinator.load():
            return "Game loaded.\n\n" + format_state(self.coordinator.state)
        return f"[Load failed: {self.coordinator.persistence_error}]"

    async def _cmd_restart(self, args: list[str]) -> str:
        result = await self.coordinator.restart()
        return format_state(result.state)

    async def _cmd_image(self, args: list[str]) -> str:
        if self.coordinator.images is None:
            return "Scene images are disabled."
        image = await self.coordinator.wait_for_scene_image()
        if self.coordinator.image_error:
            return f"[{self.coordinator.image_error}]"
        if image is None:
            return "No image for this scene yet."
        return f"Scene image: {image.data_uri[:80]}..."

    async def _process_input(self, text: str) -> str:
        """Process user input and return response."""
        text = text.strip()
        if not text:
            return ""

        if text.startswith("/"):
            name, *args = text[1:].split()
            command = self.commands.get(name.lower()) if name else None
            if command is None:
                return f"Unknown command: {text}. Type /help for commands."
            return await command.handler(args) or ""

        state = self.coordinator.state
        choice = text
        if text.isdigit():
            index = int(text) - 1
            if not 0 <= index < len(state.available_choices):
                return "Pick one of the numbered choices."
            choice = state.available_choices[index]

        print("\nYour companion considers its move...")
        result = await self.coordinator.submit_player_choice(choice)
        return self._format_result(result)

    def _format_result(self, result: TurnResult) -> str:
        if not result.accepted:
            return f"[{result.rejection}]"
        if result.phase == TurnPhase.FAILED and result.state.last_error is None:
            return f"[{result.error}]"
        return format_state(result.state)

    def _print_banner(self) -> None:
        print(
            "\n  D U A L   D R E A D\n"
            "  No one hears your screams in the digital void.\n"
        )
        print("Type /help for commands, or pick a choice by number.\n")

    async def run(self) -> None:
        """Run the interactive REPL."""
        self._print_banner()
        print("Descending...\n")
        result = await self.coordinator.restart()
        print(format_state(result.state))
        print()

        while self.running:
            try:
                user_input = (await read_input("> ")).strip()
                if not user_input:
                    continue
                response = await self._process_input(user_input)
                if response:
                    print()
                    print(response)
                    print()
            except (KeyboardInterrupt, EOFError):
                print("\n")
                self.running = False

        print("Thanks for playing!")


def build_coordinator(config: GameConfig) -> TurnCoordinator:
    """Wire the coordinator to the OpenRouter-backed services."""
    provider = OpenRouterProvider()
    if not provider.is_available:
        raise SystemExit("OPENROUTER_API_KEY is not set. Export it and try again.")

    images = None
    if config.generate_images:
        image_service = OpenAIImageService()
        if image_service.is_available:
            images = image_service
        else:
            logger.warning("Image generation requested but IMAGE_API_KEY is not set")

    return TurnCoordinator(
        companion=LLMCompanionService(provider=provider, config=config),
        narrator=LLMNarrativeEngine(provider=provider, config=config),
        config=config,
        images=images,
        repository=FileSnapshotRepository(config.save_path),
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Dual Dread - a cooperative horror text adventure")
    parser.add_argument(
        "--save-path",
        default=None,
        help="Save file location (default: $DUAL_DREAD_SAVE_PATH or ./dual_dread_save.json)",
    )
    parser.add_argument("--images", action="store_true", help="Generate scene images")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = GameConfig(generate_images=args.images, save_path=args.save_path)
    coordinator = build_coordinator(config)
    asyncio.run(GameREPL(coordinator).run())


if __name__ == "__main__":
    main()
