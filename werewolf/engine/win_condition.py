"""
Win condition evaluation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.game_state import GameState
from ..core.roles import RoleType, Team, ROLE_CATALOG

WIN_CONDITION_DESCRIPTION = (
    "The village wins when every werewolf is dead. "
    "The werewolves win once they are at least as many as the living villagers."
)


@dataclass
class GameResult:
    """Final result of a finished game."""
    winner: Team
    total_rounds: int
    survivors: List[str] = field(default_factory=list)
    deceased: List[str] = field(default_factory=list)
    role_survival: Dict[str, Dict[str, int]] = field(default_factory=dict)  # {role: {alive, total}}
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner": self.winner.value,
            "total_rounds": self.total_rounds,
            "survivors": list(self.survivors),
            "deceased": list(self.deceased),
            "role_survival": {role: dict(stats) for role, stats in self.role_survival.items()},
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameResult":
        return cls(
            winner=Team(data["winner"]),
            total_rounds=data["total_rounds"],
            survivors=list(data.get("survivors", [])),
            deceased=list(data.get("deceased", [])),
            role_survival={role: dict(stats) for role, stats in data.get("role_survival", {}).items()},
            summary=data.get("summary", ""),
        )


class WinConditionChecker:
    """Decides whether either team has won."""

    def check_game_end(self, state: GameState) -> Optional[GameResult]:
        alive = state.get_alive_players()
        werewolves = [p for p in alive if p.team == Team.WEREWOLF]
        villagers = [p for p in alive if p.team == Team.VILLAGE]

        # Checked first so an empty board counts as a village win
        if not werewolves:
            return self._create_game_result(state, Team.VILLAGE)
        if len(werewolves) >= len(villagers):
            return self._create_game_result(state, Team.WEREWOLF)
        return None

    def _create_game_result(self, state: GameState, winner: Team) -> GameResult:
        players = state.get_players()
        role_survival: Dict[str, Dict[str, int]] = {}
        for player in players:
            stats = role_survival.setdefault(player.role.value, {"alive": 0, "total": 0})
            stats["total"] += 1
            if player.is_alive:
                stats["alive"] += 1

        return GameResult(
            winner=winner,
            total_rounds=state.get_round(),
            survivors=[p.id for p in players if p.is_alive],
            deceased=[p.id for p in players if not p.is_alive],
            role_survival=role_survival,
            summary=self._generate_summary(state, winner, role_survival),
        )

    def _generate_summary(self, state: GameState, winner: Team,
                          role_survival: Dict[str, Dict[str, int]]) -> str:
        team_name = "Werewolf" if winner == Team.WEREWOLF else "Village"
        lines = [
            f"After {state.get_round()} rounds the {team_name} team wins!",
            f"Survivors: {len(state.get_alive_players())}/{len(state.get_players())}",
            "Roles:",
        ]
        for role_tag, stats in role_survival.items():
            display = ROLE_CATALOG[RoleType(role_tag)].display_name
            lines.append(f"  {display}: {stats['alive']}/{stats['total']} alive")
        return "\n".join(lines)

    def get_win_condition_description(self) -> str:
        return WIN_CONDITION_DESCRIPTION
