"""
Base agent interface for Werewolf players.

Agents are the decision side of the game: the orchestrator hands them a
request with the legal candidates and awaits a choice or a line of speech.
The engine never talks to agents directly.
"""

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..core import Player, GamePhase, ActionType
from ..config.game_config import GameConfig, default_config

logger = logging.getLogger(__name__)


@dataclass
class DecisionRequest:
    """A targeted decision the agent has to make."""
    player: Player
    action_type: ActionType
    candidates: List[Player]
    round: int
    phase: GamePhase
    history_summary: str = ""
    discussion: str = ""
    allow_skip: bool = False  # None is a legal answer (abstain, keep potion, hold fire)


@dataclass
class Decision:
    target_id: Optional[str]
    reason: str = ""


@dataclass
class SpeechRequest:
    """Context for a day speech or last words."""
    player: Player
    round: int
    phase: GamePhase
    history_summary: str = ""
    previous_speeches: List[str] = field(default_factory=list)
    is_last_words: bool = False


class BaseAgent(ABC):
    """
    Abstract base class for all player agents.

    This defines the interface that all agent implementations must follow.
    """

    def __init__(self, player: Player, config: GameConfig = default_config):
        """
        Initialize the agent.

        Args:
            player: The player this agent represents
            config: Game configuration
        """
        self.player = player
        self.config = config

    @abstractmethod
    async def choose_target(self, request: DecisionRequest) -> Decision:
        """
        Pick one of ``request.candidates`` (or None when skipping is allowed).

        The returned id is untrusted; callers pass it through ``resolve_choice``.
        """

    @abstractmethod
    async def speak(self, request: SpeechRequest) -> str:
        """Produce a speech for the discussion phase."""


def resolve_choice(decision: Optional[Decision], candidates: List[Player],
                   rng: random.Random, allow_skip: bool = False) -> Optional[str]:
    """
    Map an agent's answer onto a legal candidate id.

    Exact ids win, then display names (case-insensitive). Anything else is
    replaced by a uniformly random candidate.
    """
    if decision is not None:
        answer = decision.target_id
        if answer is None and allow_skip:
            return None
        if answer is not None:
            answer = str(answer).strip()
            for candidate in candidates:
                if candidate.id == answer:
                    return candidate.id
            for candidate in candidates:
                if candidate.display_name.lower() == answer.lower():
                    return candidate.id

    if not candidates:
        return None

    fallback = rng.choice(candidates)
    logger.warning(
        "Agent answer %r is not a legal choice; substituting %s",
        decision.target_id if decision else None,
        fallback.display_name,
    )
    return fallback.id
