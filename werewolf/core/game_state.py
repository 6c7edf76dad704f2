"""
Game state container.

Pure data plus accessors and mutators. Nothing in here enforces game rules;
that is the job of the action resolver and vote manager. The only checks are
invariants whose violation would mean a caller bug.
"""

import json
import time
from enum import Enum
from typing import List, Optional, Dict, Any, Set
from dataclasses import dataclass, field

from .exceptions import ensure
from .player import Player, PlayerStatus
from .roles import Team
from ..config.game_config import GameConfig


class GamePhase(Enum):
    """Current game phase."""
    INIT = "INIT"
    NIGHT_START = "NIGHT_START"
    GUARD_TURN = "GUARD_TURN"
    WEREWOLF_TURN = "WEREWOLF_TURN"
    WITCH_TURN = "WITCH_TURN"
    SEER_TURN = "SEER_TURN"
    DAY_START = "DAY_START"
    DISCUSSION = "DISCUSSION"
    VOTE = "VOTE"
    EXECUTION = "EXECUTION"
    GAME_END = "GAME_END"


@dataclass
class SeerResult:
    target_id: str
    is_werewolf: bool


@dataclass
class NightActions:
    """Scratch space for the current night. Reset wholesale at NIGHT_START."""
    werewolf_votes: Dict[str, str] = field(default_factory=dict)  # {werewolf_id: target_id}
    werewolf_target: Optional[str] = None
    seer_target: Optional[str] = None
    seer_result: Optional[SeerResult] = None
    guard_target: Optional[str] = None
    witch_saved: bool = False
    witch_poison_target: Optional[str] = None
    acted: Set[str] = field(default_factory=set)  # players who used their night action
    deaths: List[str] = field(default_factory=list)  # filled in at dawn

    def copy(self) -> "NightActions":
        return NightActions(
            werewolf_votes=dict(self.werewolf_votes),
            werewolf_target=self.werewolf_target,
            seer_target=self.seer_target,
            seer_result=self.seer_result,
            guard_target=self.guard_target,
            witch_saved=self.witch_saved,
            witch_poison_target=self.witch_poison_target,
            acted=set(self.acted),
            deaths=list(self.deaths),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "werewolf_votes": dict(self.werewolf_votes),
            "werewolf_target": self.werewolf_target,
            "seer_target": self.seer_target,
            "seer_result": (
                {"target_id": self.seer_result.target_id, "is_werewolf": self.seer_result.is_werewolf}
                if self.seer_result else None
            ),
            "guard_target": self.guard_target,
            "witch_saved": self.witch_saved,
            "witch_poison_target": self.witch_poison_target,
            "acted": sorted(self.acted),
            "deaths": list(self.deaths),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NightActions":
        seer_result = data.get("seer_result")
        return cls(
            werewolf_votes=dict(data.get("werewolf_votes", {})),
            werewolf_target=data.get("werewolf_target"),
            seer_target=data.get("seer_target"),
            seer_result=SeerResult(**seer_result) if seer_result else None,
            guard_target=data.get("guard_target"),
            witch_saved=data.get("witch_saved", False),
            witch_poison_target=data.get("witch_poison_target"),
            acted=set(data.get("acted", [])),
            deaths=list(data.get("deaths", [])),
        )


@dataclass
class GameState:
    """Complete game state."""
    config: GameConfig = field(default_factory=GameConfig)
    phase: GamePhase = GamePhase.INIT
    round: int = 0
    players: List[Player] = field(default_factory=list)

    # Day phase
    votes: Dict[str, Optional[str]] = field(default_factory=dict)  # {voter_id: target_id or None}

    # Night phase
    night_actions: NightActions = field(default_factory=NightActions)
    last_guard_target: Optional[str] = None  # survives the night reset

    # Deaths since the last NIGHT_START
    last_deaths: List[str] = field(default_factory=list)

    # Limited abilities: {player_id: {ability_name: uses}}
    ability_uses: Dict[str, Dict[str, int]] = field(default_factory=dict)

    # Dead Hunters / Wolf Kings who still owe a shot decision
    pending_death_shots: List[str] = field(default_factory=list)

    started_at: float = field(default_factory=time.time)

    # ======== Getters ========

    def get_phase(self) -> GamePhase:
        return self.phase

    def get_round(self) -> int:
        return self.round

    def get_current_round(self) -> int:
        return self.round

    def get_players(self) -> List[Player]:
        return list(self.players)

    def get_alive_players(self) -> List[Player]:
        """Get all alive players."""
        return [p for p in self.players if p.is_alive]

    def get_player(self, player_id: Optional[str]) -> Optional[Player]:
        """Get player by id."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def get_alive_players_by_team(self, team: Team) -> List[Player]:
        return [p for p in self.get_alive_players() if p.team == team]

    def get_human_player(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_human), None)

    def get_npc_players(self) -> List[Player]:
        return [p for p in self.players if not p.is_human]

    def get_votes(self) -> Dict[str, Optional[str]]:
        return dict(self.votes)

    def get_night_actions(self) -> NightActions:
        return self.night_actions.copy()

    def get_last_deaths(self) -> List[str]:
        return list(self.last_deaths)

    def get_pending_death_shots(self) -> List[str]:
        return list(self.pending_death_shots)

    def get_ability_uses(self, player_id: str, ability: str) -> int:
        return self.ability_uses.get(player_id, {}).get(ability, 0)

    def has_acted(self, player_id: str) -> bool:
        return player_id in self.night_actions.acted

    # ======== Setters ========

    def set_phase(self, phase: GamePhase) -> None:
        self.phase = phase

    def set_round(self, round_number: int) -> None:
        ensure(round_number >= 0, f"Round cannot be negative (got {round_number})")
        self.round = round_number

    def increment_round(self) -> None:
        self.round += 1

    def set_players(self, players: List[Player]) -> None:
        humans = [p for p in players if p.is_human]
        ensure(len(humans) == 1, f"Exactly one human player is required, got {len(humans)}")
        seats = sorted(p.seat_number for p in players)
        ensure(seats == list(range(1, len(players) + 1)), f"Seats must be 1..{len(players)}, got {seats}")
        self.players = list(players)

    def kill_player(self, player_id: str, status: PlayerStatus) -> None:
        """Set a dead status and remember the death for announcements. The dead stay as they are."""
        ensure(status != PlayerStatus.ALIVE, "kill_player cannot revive a player")
        player = self.get_player(player_id)
        if player is not None and player.is_alive:
            player.status = status
            self.last_deaths.append(player_id)

    # ======== Vote Management ========

    def cast_vote(self, voter_id: str, target_id: Optional[str]) -> None:
        self.votes[voter_id] = target_id

    def clear_votes(self) -> None:
        self.votes.clear()

    def get_vote_count(self) -> Dict[str, int]:
        """Tally by target, ignoring abstentions."""
        counts: Dict[str, int] = {}
        for target_id in self.votes.values():
            if target_id:
                counts[target_id] = counts.get(target_id, 0) + 1
        return counts

    # ======== Night Action Management ========

    def set_werewolf_vote(self, werewolf_id: str, target_id: str) -> None:
        self.night_actions.werewolf_votes[werewolf_id] = target_id

    def set_werewolf_target(self, target_id: Optional[str]) -> None:
        self.night_actions.werewolf_target = target_id

    def set_seer_action(self, target_id: str, is_werewolf: bool) -> None:
        self.night_actions.seer_target = target_id
        self.night_actions.seer_result = SeerResult(target_id=target_id, is_werewolf=is_werewolf)

    def set_guard_target(self, target_id: str) -> None:
        self.night_actions.guard_target = target_id

    def set_witch_save(self, saved: bool = True) -> None:
        self.night_actions.witch_saved = saved

    def set_witch_poison(self, target_id: str) -> None:
        self.night_actions.witch_poison_target = target_id

    def set_night_deaths(self, player_ids: List[str]) -> None:
        self.night_actions.deaths = list(player_ids)

    def mark_acted(self, player_id: str) -> None:
        self.night_actions.acted.add(player_id)

    def set_last_guard_target(self, target_id: Optional[str]) -> None:
        self.last_guard_target = target_id

    def record_ability_use(self, player_id: str, ability: str) -> None:
        uses = self.ability_uses.setdefault(player_id, {})
        uses[ability] = uses.get(ability, 0) + 1

    def add_pending_death_shot(self, player_id: str) -> None:
        if player_id not in self.pending_death_shots:
            self.pending_death_shots.append(player_id)

    def remove_pending_death_shot(self, player_id: str) -> None:
        if player_id in self.pending_death_shots:
            self.pending_death_shots.remove(player_id)

    def reset_night_actions(self) -> None:
        self.night_actions = NightActions()

    def clear_last_deaths(self) -> None:
        self.last_deaths = []

    # ======== Serialization ========

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "phase": self.phase.value,
            "round": self.round,
            "players": [p.to_dict() for p in self.players],
            "votes": dict(self.votes),
            "night_actions": self.night_actions.to_dict(),
            "last_guard_target": self.last_guard_target,
            "last_deaths": list(self.last_deaths),
            "ability_uses": {pid: dict(uses) for pid, uses in self.ability_uses.items()},
            "pending_death_shots": list(self.pending_death_shots),
            "started_at": self.started_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameState":
        return cls(
            config=GameConfig.from_dict(data.get("config", {})),
            phase=GamePhase(data["phase"]),
            round=data["round"],
            players=[Player.from_dict(p) for p in data.get("players", [])],
            votes=dict(data.get("votes", {})),
            night_actions=NightActions.from_dict(data.get("night_actions", {})),
            last_guard_target=data.get("last_guard_target"),
            last_deaths=list(data.get("last_deaths", [])),
            ability_uses={pid: dict(uses) for pid, uses in data.get("ability_uses", {}).items()},
            pending_death_shots=list(data.get("pending_death_shots", [])),
            started_at=data.get("started_at", time.time()),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, payload: str) -> "GameState":
        return cls.from_dict(json.loads(payload))

    def get_game_summary(self) -> Dict[str, Any]:
        """Get a summary of the current game state."""
        return {
            "phase": self.phase.value,
            "round": self.round,
            "alive_players": len(self.get_alive_players()),
            "alive_werewolves": len(self.get_alive_players_by_team(Team.WEREWOLF)),
            "alive_villagers": len(self.get_alive_players_by_team(Team.VILLAGE)),
        }
