"""
Human agent: asks the person at the terminal.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from .base_agent import BaseAgent, Decision, DecisionRequest, SpeechRequest
from ..core import Player, get_role_spec
from ..config.game_config import GameConfig, default_config

InputFn = Callable[[str], Awaitable[str]]

SKIP_WORDS = {"", "skip", "pass", "none", "no"}


async def console_input(prompt: str) -> str:
    """Read a line from stdin without blocking the event loop."""
    return await asyncio.to_thread(input, prompt)


class HumanAgent(BaseAgent):
    """Prompts for choices through a caller-supplied async input function."""

    def __init__(self, player: Player, config: GameConfig = default_config,
                 input_fn: Optional[InputFn] = None, output_fn: Callable[[str], None] = print):
        super().__init__(player, config)
        self.input_fn = input_fn or console_input
        self.output_fn = output_fn

    async def choose_target(self, request: DecisionRequest) -> Decision:
        if not request.candidates:
            return Decision(None, "no legal target")

        role_name = get_role_spec(self.player.role).display_name
        self.output_fn(f"\n[{role_name}] {request.action_type.value}: choose a player")
        for index, candidate in enumerate(request.candidates, start=1):
            self.output_fn(f"  {index}. {candidate.display_name} (seat {candidate.seat_number})")
        hint = " (Enter to skip)" if request.allow_skip else ""

        while True:
            answer = (await self.input_fn(f"Your choice{hint}: ")).strip()
            if request.allow_skip and answer.lower() in SKIP_WORDS:
                return Decision(None, "skipped")
            if answer.isdigit() and 1 <= int(answer) <= len(request.candidates):
                return Decision(request.candidates[int(answer) - 1].id, "console")
            for candidate in request.candidates:
                if answer in (candidate.id, candidate.display_name):
                    return Decision(candidate.id, "console")
            self.output_fn("Not a valid choice, try again.")

    async def speak(self, request: SpeechRequest) -> str:
        label = "Your last words" if request.is_last_words else "Your speech"
        while True:
            text = (await self.input_fn(f"{label}: ")).strip()
            if text:
                return text
            self.output_fn("Say something (even just 'pass').")
