"""
Day vote collection, tally and execution.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core.game_state import GameState
from ..core.player import PlayerStatus
from .action_resolver import queue_death_shots

logger = logging.getLogger(__name__)


@dataclass
class VoteResult:
    """Outcome of a day vote."""
    has_elimination: bool
    eliminated_player_id: Optional[str] = None
    eliminated_player_name: Optional[str] = None
    is_tie: bool = False
    vote_counts: Dict[str, int] = field(default_factory=dict)
    message: str = ""


class VoteManager:
    """Collects votes and executes the outcome. Ties eliminate nobody."""

    def cast_vote(self, state: GameState, voter_id: str, target_id: Optional[str]) -> bool:
        """Record a vote. A None target is an abstention."""
        voter = state.get_player(voter_id)
        if voter is None or not voter.is_alive:
            return False

        if target_id is not None:
            target = state.get_player(target_id)
            if target is None or not target.is_alive or target_id == voter_id:
                return False

        state.cast_vote(voter_id, target_id)
        return True

    def has_all_players_voted(self, state: GameState) -> bool:
        votes = state.get_votes()
        return all(p.id in votes for p in state.get_alive_players())

    def calculate_result(self, state: GameState) -> VoteResult:
        vote_counts = state.get_vote_count()

        if not vote_counts:
            return VoteResult(has_elimination=False, vote_counts=vote_counts, message="Nobody voted")

        top = max(vote_counts.values())
        leaders = [pid for pid, count in vote_counts.items() if count == top]

        if len(leaders) > 1:
            return VoteResult(
                has_elimination=False,
                is_tie=True,
                vote_counts=vote_counts,
                message=f"Tie! {len(leaders)} players have {top} votes each. Nobody is executed.",
            )

        eliminated = state.get_player(leaders[0])
        return VoteResult(
            has_elimination=True,
            eliminated_player_id=eliminated.id,
            eliminated_player_name=eliminated.display_name,
            vote_counts=vote_counts,
            message=f"{eliminated.display_name} is voted out with {top} votes!",
        )

    def execute_vote_result(self, state: GameState, result: VoteResult) -> List[str]:
        """
        Apply the result and clear the ballot.

        Returns:
            Ids of players who now owe a death shot (an executed Hunter or Wolf King)
        """
        queued: List[str] = []
        if result.has_elimination and result.eliminated_player_id:
            state.kill_player(result.eliminated_player_id, PlayerStatus.EXECUTED)
            queued = queue_death_shots(state, [result.eliminated_player_id])
            logger.info("Executed %s", result.eliminated_player_name)
        state.clear_votes()
        return queued

    def get_vote_summary(self, state: GameState) -> str:
        lines = []
        for voter_id, target_id in state.get_votes().items():
            voter = state.get_player(voter_id)
            target = state.get_player(target_id) if target_id else None
            target_name = target.display_name if target else "abstain"
            lines.append(f"{voter.display_name if voter else voter_id} -> {target_name}")
        return "\n".join(lines)
