"""
Game events and visibility rules.

Every event carries a ``VisibilityRule`` that decides which players may see it
before the game ends. The history module applies the rule; events themselves
are frozen once created.
"""

import time
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

from .game_state import GamePhase
from .roles import RoleType, Team


class EventType(Enum):
    """Kinds of entries in the game history."""
    GAME_START = "GAME_START"
    ROLE_ASSIGNED = "ROLE_ASSIGNED"
    PHASE_CHANGE = "PHASE_CHANGE"
    WEREWOLF_CHAT = "WEREWOLF_CHAT"
    WEREWOLF_KILL = "WEREWOLF_KILL"
    SEER_CHECK = "SEER_CHECK"
    GUARD_PROTECT = "GUARD_PROTECT"
    WITCH_ACTION = "WITCH_ACTION"
    NIGHT_RESULT = "NIGHT_RESULT"
    PUBLIC_SPEECH = "PUBLIC_SPEECH"
    VOTE_CAST = "VOTE_CAST"
    VOTE_RESULT = "VOTE_RESULT"
    PLAYER_DEATH = "PLAYER_DEATH"
    DEATH_SHOT = "DEATH_SHOT"
    GAME_END = "GAME_END"


class VisibilityType(Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    TEAM_BASED = "team-based"
    ROLE_BASED = "role-based"


@dataclass(frozen=True)
class VisibilityRule:
    """Who may see an event before the game is over."""
    type: VisibilityType
    allowed_players: Tuple[str, ...] = ()
    allowed_teams: Tuple[Team, ...] = ()
    allowed_roles: Tuple[RoleType, ...] = ()
    reveal_on_game_end: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "allowed_players": list(self.allowed_players),
            "allowed_teams": [t.value for t in self.allowed_teams],
            "allowed_roles": [r.value for r in self.allowed_roles],
            "reveal_on_game_end": self.reveal_on_game_end,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VisibilityRule":
        return cls(
            type=VisibilityType(data["type"]),
            allowed_players=tuple(data.get("allowed_players", ())),
            allowed_teams=tuple(Team(t) for t in data.get("allowed_teams", ())),
            allowed_roles=tuple(RoleType(r) for r in data.get("allowed_roles", ())),
            reveal_on_game_end=data.get("reveal_on_game_end", True),
        )


@dataclass(frozen=True)
class GameEvent:
    """A single immutable history entry."""
    type: EventType
    phase: GamePhase
    round: int
    data: Dict[str, Any]
    visibility: VisibilityRule
    id: str = field(default_factory=lambda: f"event_{uuid.uuid4().hex[:12]}")
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "phase": self.phase.value,
            "round": self.round,
            "timestamp": self.timestamp,
            "data": dict(self.data),
            "visibility": self.visibility.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameEvent":
        return cls(
            id=data["id"],
            type=EventType(data["type"]),
            phase=GamePhase(data["phase"]),
            round=data["round"],
            timestamp=data.get("timestamp", time.time()),
            data=dict(data.get("data", {})),
            visibility=VisibilityRule.from_dict(data["visibility"]),
        )


PUBLIC_VISIBILITY = VisibilityRule(type=VisibilityType.PUBLIC)


def create_private_visibility(player_ids: Iterable[str]) -> VisibilityRule:
    return VisibilityRule(type=VisibilityType.PRIVATE, allowed_players=tuple(player_ids))


def create_team_visibility(teams: Iterable[Team]) -> VisibilityRule:
    return VisibilityRule(type=VisibilityType.TEAM_BASED, allowed_teams=tuple(teams))


def create_role_visibility(roles: Iterable[RoleType]) -> VisibilityRule:
    return VisibilityRule(type=VisibilityType.ROLE_BASED, allowed_roles=tuple(roles))


def create_event(event_type: EventType, phase: GamePhase, round_number: int,
                 data: Optional[Dict[str, Any]] = None,
                 visibility: VisibilityRule = PUBLIC_VISIBILITY) -> GameEvent:
    """Create an event stamped with a fresh id and the current time."""
    return GameEvent(
        type=event_type,
        phase=phase,
        round=round_number,
        data=dict(data or {}),
        visibility=visibility,
    )
