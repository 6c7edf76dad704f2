"""
Player actions submitted to the engine and the results handed back.
"""

import time
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Dict, Any


class ActionType(Enum):
    """Action discriminant."""
    WEREWOLF_KILL = "WEREWOLF_KILL"
    SEER_CHECK = "SEER_CHECK"
    GUARD_PROTECT = "GUARD_PROTECT"
    WITCH_SAVE = "WITCH_SAVE"
    WITCH_POISON = "WITCH_POISON"
    DEATH_SHOT = "DEATH_SHOT"
    VOTE = "VOTE"
    SPEECH = "SPEECH"
    SKIP = "SKIP"


@dataclass
class Action:
    """
    An action by one player in one round.

    ``target_id`` is used by targeted actions; for VOTE and DEATH_SHOT a None
    target means abstain / decline. ``content`` carries the text of a SPEECH.
    """
    type: ActionType
    player_id: str
    round: int
    target_id: Optional[str] = None
    content: Optional[str] = None
    id: str = field(default_factory=lambda: f"action_{uuid.uuid4().hex[:12]}")
    timestamp: float = field(default_factory=time.time)


@dataclass
class ActionResult:
    """Result of an action attempt."""
    success: bool
    message: str = ""
    data: Optional[Dict[str, Any]] = None


def create_action(action_type: ActionType, player_id: str, round_number: int,
                  target_id: Optional[str] = None, content: Optional[str] = None) -> Action:
    """Create an action for the given round."""
    return Action(
        type=action_type,
        player_id=player_id,
        round=round_number,
        target_id=target_id,
        content=content,
    )
