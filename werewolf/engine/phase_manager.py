"""
Phase state machine.

INIT -> NIGHT_START -> night turns -> DAY_START -> DISCUSSION -> VOTE
-> EXECUTION -> NIGHT_START ... GAME_END is absorbing.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from ..core.game_state import GameState, GamePhase
from ..core.roles import RoleType

logger = logging.getLogger(__name__)


@dataclass
class PhaseTransitionResult:
    """Result of a phase transition attempt."""
    success: bool
    new_phase: GamePhase
    message: str = ""


# Night turns in the order they are played, with the roles that act in each
NIGHT_TURNS: List[Tuple[GamePhase, Tuple[RoleType, ...]]] = [
    (GamePhase.GUARD_TURN, (RoleType.GUARD,)),
    (GamePhase.WEREWOLF_TURN, (RoleType.WEREWOLF, RoleType.WOLF_KING)),
    (GamePhase.WITCH_TURN, (RoleType.WITCH,)),
    (GamePhase.SEER_TURN, (RoleType.SEER,)),
]

NIGHT_PHASES = {GamePhase.NIGHT_START} | {phase for phase, _ in NIGHT_TURNS}
DAY_PHASES = {GamePhase.DAY_START, GamePhase.DISCUSSION, GamePhase.VOTE, GamePhase.EXECUTION}

_DAY_SEQUENCE = {
    GamePhase.INIT: GamePhase.NIGHT_START,
    GamePhase.DAY_START: GamePhase.DISCUSSION,
    GamePhase.DISCUSSION: GamePhase.VOTE,
    GamePhase.VOTE: GamePhase.EXECUTION,
    GamePhase.EXECUTION: GamePhase.NIGHT_START,
    GamePhase.GAME_END: GamePhase.GAME_END,
}

PHASE_MESSAGES = {
    GamePhase.NIGHT_START: "Night {round} falls. Everyone, close your eyes...",
    GamePhase.GUARD_TURN: "Guard, open your eyes and choose someone to protect...",
    GamePhase.WEREWOLF_TURN: "Werewolves, open your eyes and choose tonight's victim...",
    GamePhase.WITCH_TURN: "Witch, open your eyes. Will you use a potion tonight?",
    GamePhase.SEER_TURN: "Seer, open your eyes and choose someone to check...",
    GamePhase.DAY_START: "Day breaks. Everyone, open your eyes...",
    GamePhase.DISCUSSION: "Discussion begins. Say what you think...",
    GamePhase.VOTE: "Discussion is over. Time to vote...",
    GamePhase.EXECUTION: "The votes are in...",
    GamePhase.GAME_END: "The game is over!",
}


class PhaseManager:
    """Controls the order of phases and the side effects of entering one."""

    def get_next_phase(self, current_phase: GamePhase, state: GameState) -> GamePhase:
        if current_phase in NIGHT_PHASES:
            return self._next_night_turn(current_phase, state)
        return _DAY_SEQUENCE.get(current_phase, current_phase)

    def _next_night_turn(self, current_phase: GamePhase, state: GameState) -> GamePhase:
        turn_phases = [phase for phase, _ in NIGHT_TURNS]
        start = 0 if current_phase == GamePhase.NIGHT_START else turn_phases.index(current_phase) + 1
        alive_roles = {p.role for p in state.get_alive_players()}
        for phase, roles in NIGHT_TURNS[start:]:
            if alive_roles.intersection(roles):
                return phase
        return GamePhase.DAY_START

    def transition_to_next_phase(self, state: GameState) -> PhaseTransitionResult:
        current_phase = state.get_phase()
        next_phase = self.get_next_phase(current_phase, state)

        if next_phase == current_phase:
            return PhaseTransitionResult(False, current_phase, "Cannot advance the phase")

        state.set_phase(next_phase)

        if next_phase == GamePhase.NIGHT_START:
            state.increment_round()
            state.clear_votes()
            state.reset_night_actions()
            state.clear_last_deaths()

        logger.debug("Phase %s -> %s (round %d)", current_phase.value, next_phase.value, state.get_round())
        return PhaseTransitionResult(True, next_phase, self.get_phase_message(next_phase, state.get_round()))

    def get_phase_message(self, phase: GamePhase, round_number: int) -> str:
        return PHASE_MESSAGES.get(phase, "").format(round=round_number)

    def is_night_phase(self, phase: GamePhase) -> bool:
        return phase in NIGHT_PHASES

    def is_day_phase(self, phase: GamePhase) -> bool:
        return phase in DAY_PHASES

    def get_active_roles_for_phase(self, phase: GamePhase) -> List[RoleType]:
        """Roles that act during a night turn; empty for every other phase."""
        for turn, roles in NIGHT_TURNS:
            if turn == phase:
                return list(roles)
        return []
