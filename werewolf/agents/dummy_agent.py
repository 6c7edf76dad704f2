"""
Dummy agent: seeded random legal choices and canned speeches.
"""

import random
from typing import Set

from .base_agent import BaseAgent, Decision, DecisionRequest, SpeechRequest
from ..core import Player, ActionType
from ..config.game_config import GameConfig, default_config

CANNED_SPEECHES = [
    "I don't have much to go on yet. Let's hear everyone out.",
    "Something about last night feels off to me.",
    "I'm a simple villager. Watch who pushes the vote too hard.",
    "I'll keep my eyes on the quiet ones.",
    "Let's not rush this. A wrong vote helps the wolves.",
]

LAST_WORDS = [
    "Remember how everyone voted today.",
    "You got the wrong one. Good luck.",
]


class DummyAgent(BaseAgent):
    """
    Random but legal behaviour:
    - night abilities and votes pick a random candidate
    - the seer prefers players it has not checked yet
    - the witch saves half the time and poisons rarely
    """

    POISON_CHANCE = 0.25
    SAVE_CHANCE = 0.5

    def __init__(self, player: Player, config: GameConfig = default_config):
        super().__init__(player, config)
        seed = config.random_seed
        if seed is not None:
            # Different but reproducible stream per seat
            self.random = random.Random(seed + player.seat_number)
        else:
            self.random = random.Random()
        self.checked_players: Set[str] = set()

    async def choose_target(self, request: DecisionRequest) -> Decision:
        candidates = request.candidates
        if not candidates:
            return Decision(None, "no legal target")

        if request.action_type == ActionType.WITCH_SAVE:
            if self.random.random() < self.SAVE_CHANCE:
                return Decision(candidates[0].id, "save")
            return Decision(None, "keep the antidote")

        if request.action_type == ActionType.WITCH_POISON and request.allow_skip:
            if self.random.random() >= self.POISON_CHANCE:
                return Decision(None, "keep the poison")

        if request.action_type == ActionType.SEER_CHECK:
            unchecked = [p for p in candidates if p.id not in self.checked_players]
            target = self.random.choice(unchecked or candidates)
            self.checked_players.add(target.id)
            return Decision(target.id, "random check")

        target = self.random.choice(candidates)
        return Decision(target.id, "random pick")

    async def speak(self, request: SpeechRequest) -> str:
        if request.is_last_words:
            return self.random.choice(LAST_WORDS)
        return self.random.choice(CANNED_SPEECHES)
