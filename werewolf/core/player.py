"""
Player class representing a game participant.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
from enum import Enum

from .roles import RoleType, Team, team_of, is_werewolf_team


class PlayerStatus(Enum):
    """Player status in the game. Every value except ALIVE is a dead state."""
    ALIVE = "ALIVE"
    DEAD = "DEAD"
    KILLED_BY_WEREWOLF = "KILLED_BY_WEREWOLF"
    EXECUTED = "EXECUTED"
    POISONED = "POISONED"  # Witch poison
    SHOT = "SHOT"  # Hunter / Wolf King death shot


@dataclass
class NpcCharacter:
    """Character profile for an NPC. Opaque to the engine."""
    name: str
    age: int
    profession: str
    personality: str
    speech_style: str
    catchphrase: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NpcCharacter":
        return cls(
            name=data["name"],
            age=int(data.get("age", 30)),
            profession=data.get("profession", ""),
            personality=data.get("personality", ""),
            speech_style=data.get("speech_style", data.get("speechStyle", "")),
            catchphrase=data.get("catchphrase"),
        )


@dataclass
class Player:
    """Represents a player in the game."""
    id: str
    seat_number: int
    display_name: str
    role: RoleType
    is_human: bool = False
    status: PlayerStatus = PlayerStatus.ALIVE
    character: Optional[NpcCharacter] = None

    def __str__(self) -> str:
        return f"{self.display_name} (seat {self.seat_number})"

    @property
    def is_alive(self) -> bool:
        """Check if player is alive."""
        return self.status == PlayerStatus.ALIVE

    @property
    def team(self) -> Team:
        return team_of(self.role)

    @property
    def is_werewolf_team(self) -> bool:
        """Check if player is werewolf-aligned."""
        return is_werewolf_team(self.role)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "seat_number": self.seat_number,
            "display_name": self.display_name,
            "role": self.role.value,
            "is_human": self.is_human,
            "status": self.status.value,
            "character": self.character.to_dict() if self.character else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Player":
        character = data.get("character")
        return cls(
            id=data["id"],
            seat_number=data["seat_number"],
            display_name=data["display_name"],
            role=RoleType(data["role"]),
            is_human=data.get("is_human", False),
            status=PlayerStatus(data.get("status", PlayerStatus.ALIVE.value)),
            character=NpcCharacter.from_dict(character) if character else None,
        )


def create_player(player_id: str, seat_number: int, role: RoleType, is_human: bool,
                  character: Optional[NpcCharacter] = None) -> Player:
    """Create a player, naming it after its character profile when one is given."""
    display_name = character.name if character and character.name else f"Player {seat_number}"
    return Player(
        id=player_id,
        seat_number=seat_number,
        display_name=display_name,
        role=role,
        is_human=is_human,
        character=character,
    )
