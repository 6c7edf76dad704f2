"""
Game engine: owns the state, the history and the rule managers.

The engine is synchronous. Callers drive it by calling ``next_phase`` and
submitting one ``Action`` per actor with ``execute_action``; anything that
needs a human or an LLM happens outside, between those calls.
"""

import logging
import random
from typing import Any, Callable, Dict, List, Optional

from ..config.game_config import GameConfig
from ..core.actions import Action, ActionType, ActionResult
from ..core.events import (
    EventType,
    GameEvent,
    VisibilityRule,
    PUBLIC_VISIBILITY,
    create_event,
    create_private_visibility,
    create_team_visibility,
)
from ..core.exceptions import InvalidPhaseError
from ..core.game_state import GameState, GamePhase
from ..core.history import HistoryManager
from ..core.player import Player, NpcCharacter
from ..core.role_distribution import distribute_roles, validate_game_config
from ..core.roles import RoleType, Team, ROLE_CATALOG, get_valid_targets, get_death_shot_targets
from .action_resolver import ActionResolver, NightResolutionResult
from .phase_manager import PhaseManager, PhaseTransitionResult
from .vote_manager import VoteManager, VoteResult
from .win_condition import WinConditionChecker, GameResult

logger = logging.getLogger(__name__)

# Phase in which each night action is accepted
NIGHT_ACTION_PHASES = {
    ActionType.WEREWOLF_KILL: GamePhase.WEREWOLF_TURN,
    ActionType.SEER_CHECK: GamePhase.SEER_TURN,
    ActionType.GUARD_PROTECT: GamePhase.GUARD_TURN,
    ActionType.WITCH_SAVE: GamePhase.WITCH_TURN,
    ActionType.WITCH_POISON: GamePhase.WITCH_TURN,
}


class GameEngine:
    """One game. Independent engines share no state."""

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng or random.Random(seed)
        self.state = GameState()
        self.history = HistoryManager()
        self.phase_manager = PhaseManager()
        self.action_resolver = ActionResolver(self.rng)
        self.vote_manager = VoteManager()
        self.win_checker = WinConditionChecker()
        self.game_result: Optional[GameResult] = None
        self.last_night_result: Optional[NightResolutionResult] = None

        self._handlers: Dict[ActionType, Callable[[Player, Action], ActionResult]] = {
            ActionType.WEREWOLF_KILL: self._handle_werewolf_kill,
            ActionType.SEER_CHECK: self._handle_seer_check,
            ActionType.GUARD_PROTECT: self._handle_guard_protect,
            ActionType.WITCH_SAVE: self._handle_witch_save,
            ActionType.WITCH_POISON: self._handle_witch_poison,
            ActionType.DEATH_SHOT: self._handle_death_shot,
            ActionType.VOTE: self._handle_vote,
            ActionType.SPEECH: self._handle_speech,
            ActionType.SKIP: self._handle_skip,
        }

    # ======== Initialization ========

    def initialize(self, config: GameConfig, human_player_id: str = "human_player",
                   npc_profiles: Optional[List[NpcCharacter]] = None,
                   forced_human_role: Optional[RoleType] = None,
                   human_name: Optional[str] = None) -> List[Player]:
        """
        Deal roles and start a fresh game.

        Raises:
            GameConfigError: if the board cannot be played; the engine is left untouched
        """
        validate_game_config(config)
        players = distribute_roles(
            config.player_count,
            config,
            human_player_id,
            npc_profiles,
            forced_human_role=forced_human_role,
            rng=self.rng,
            human_name=human_name,
        )

        state = GameState(config=config)
        state.set_players(players)
        self.state = state
        self.history = HistoryManager()
        self.game_result = None
        self.last_night_result = None

        self._record(EventType.GAME_START, {
            "player_count": len(players),
            "players": [
                {"id": p.id, "seat_number": p.seat_number, "display_name": p.display_name}
                for p in players
            ],
        })

        for player in players:
            spec = ROLE_CATALOG[player.role]
            self._record(EventType.ROLE_ASSIGNED, {
                "player_id": player.id,
                "role": player.role.value,
                "role_name": spec.display_name,
                "team": spec.team.value,
            }, create_private_visibility([player.id]))

        pack = [p for p in players if p.is_werewolf_team]
        self._record(EventType.WEREWOLF_CHAT, {
            "teammate_ids": [p.id for p in pack],
            "teammate_names": [p.display_name for p in pack],
        }, create_team_visibility([Team.WEREWOLF]))

        logger.info("Game initialized with %d players", len(players))
        return state.get_players()

    def _record(self, event_type: EventType, data: Dict[str, Any],
                visibility: VisibilityRule = PUBLIC_VISIBILITY) -> GameEvent:
        event = create_event(event_type, self.state.get_phase(), self.state.get_round(), data, visibility)
        self.history.add_event(event)
        return event

    # ======== Phases ========

    def next_phase(self) -> PhaseTransitionResult:
        """Advance one phase. Refuses while a death shot is still owed."""
        current = self.state.get_phase()
        pending = self.state.get_pending_death_shots()
        if pending and current != GamePhase.GAME_END:
            names = ", ".join(self.state.get_player(pid).display_name for pid in pending)
            return PhaseTransitionResult(False, current, f"Waiting for {names} to take their shot")

        result = self.phase_manager.transition_to_next_phase(self.state)
        if not result.success:
            return result

        self._record(EventType.PHASE_CHANGE, {"phase": result.new_phase.value, "message": result.message})

        if result.new_phase == GamePhase.DAY_START:
            self._resolve_night()
        return result

    def _resolve_night(self) -> NightResolutionResult:
        if self.state.night_actions.werewolf_target is None:
            # Some werewolf never voted; go with the votes that were cast
            self.action_resolver.finalize_werewolf_target(self.state, require_all=False)

        result = self.action_resolver.resolve_night(self.state)
        self.last_night_result = result

        self._record(EventType.NIGHT_RESULT, {
            "message": result.message,
            "deaths": list(result.deaths),
            "death_names": [self.state.get_player(pid).display_name for pid in result.deaths],
        })
        for player_id in result.deaths:
            self._record_death(player_id)

        logger.info("Night %d resolved: %s", self.state.get_round(), result.message)
        return result

    def _record_death(self, player_id: str) -> None:
        player = self.state.get_player(player_id)
        self._record(EventType.PLAYER_DEATH, {
            "player_id": player.id,
            "player_name": player.display_name,
            "cause": player.status.value,
        })

    # ======== Actions ========

    def execute_action(self, action: Action) -> ActionResult:
        """Validate and apply one player's action."""
        result = self._execute(action)
        if not result.success:
            logger.info("Rejected %s from %s: %s", action.type.value, action.player_id, result.message)
        return result

    def _execute(self, action: Action) -> ActionResult:
        if self.game_result is not None or self.state.get_phase() == GamePhase.GAME_END:
            return ActionResult(False, "The game is over")
        if action.round != self.state.get_round():
            return ActionResult(
                False,
                f"Action is for round {action.round} but the current round is {self.state.get_round()}",
            )

        actor = self.state.get_player(action.player_id)
        if actor is None:
            return ActionResult(False, "Player not found")

        expected_phase = NIGHT_ACTION_PHASES.get(action.type)
        if expected_phase is not None and self.state.get_phase() != expected_phase:
            return ActionResult(
                False,
                f"{action.type.value} is only allowed during {expected_phase.value}",
            )

        return self._handlers[action.type](actor, action)

    def _target_name(self, target_id: Optional[str]) -> Optional[str]:
        target = self.state.get_player(target_id) if target_id else None
        return target.display_name if target else None

    def _handle_werewolf_kill(self, actor: Player, action: Action) -> ActionResult:
        result = self.action_resolver.handle_werewolf_action(self.state, actor.id, action.target_id)
        if result.success:
            self._record(EventType.WEREWOLF_KILL, {
                "actor_id": actor.id,
                "actor_name": actor.display_name,
                "target_id": action.target_id,
                "target_name": self._target_name(action.target_id),
            }, create_team_visibility([Team.WEREWOLF]))
            final_target = self.action_resolver.finalize_werewolf_target(self.state)
            result.data["final_target_id"] = final_target
        return result

    def _handle_seer_check(self, actor: Player, action: Action) -> ActionResult:
        result = self.action_resolver.handle_seer_action(self.state, actor.id, action.target_id)
        if result.success:
            self._record(EventType.SEER_CHECK, {
                "actor_id": actor.id,
                "target_id": action.target_id,
                "target_name": result.data["target_name"],
                "is_werewolf": result.data["is_werewolf"],
            }, create_private_visibility([actor.id]))
        return result

    def _handle_guard_protect(self, actor: Player, action: Action) -> ActionResult:
        result = self.action_resolver.handle_guard_action(self.state, actor.id, action.target_id)
        if result.success:
            self._record(EventType.GUARD_PROTECT, {
                "actor_id": actor.id,
                "target_id": action.target_id,
                "target_name": self._target_name(action.target_id),
            }, create_private_visibility([actor.id]))
        return result

    def _handle_witch_save(self, actor: Player, action: Action) -> ActionResult:
        result = self.action_resolver.handle_witch_save(self.state, actor.id)
        if result.success:
            target_id = result.data["target_id"]
            self._record(EventType.WITCH_ACTION, {
                "actor_id": actor.id,
                "potion": "antidote",
                "target_id": target_id,
                "target_name": self._target_name(target_id),
            }, create_private_visibility([actor.id]))
        return result

    def _handle_witch_poison(self, actor: Player, action: Action) -> ActionResult:
        result = self.action_resolver.handle_witch_poison(self.state, actor.id, action.target_id)
        if result.success:
            self._record(EventType.WITCH_ACTION, {
                "actor_id": actor.id,
                "potion": "poison",
                "target_id": action.target_id,
                "target_name": self._target_name(action.target_id),
            }, create_private_visibility([actor.id]))
        return result

    def _handle_death_shot(self, actor: Player, action: Action) -> ActionResult:
        result = self.action_resolver.handle_death_shot(self.state, actor.id, action.target_id)
        if result.success:
            self._record(EventType.DEATH_SHOT, {
                "shooter_id": actor.id,
                "shooter_name": actor.display_name,
                "shooter_role": actor.role.value,
                "target_id": action.target_id,
                "target_name": self._target_name(action.target_id),
            })
            if action.target_id is not None:
                self._record_death(action.target_id)
        return result

    def _handle_vote(self, actor: Player, action: Action) -> ActionResult:
        if self.state.get_phase() != GamePhase.VOTE:
            return ActionResult(False, "Votes are only accepted during VOTE")
        if not self.vote_manager.cast_vote(self.state, actor.id, action.target_id):
            if not actor.is_alive:
                return ActionResult(False, f"{actor.display_name} is dead and cannot vote")
            return ActionResult(False, "That player cannot be voted for")

        target_name = self._target_name(action.target_id)
        self._record(EventType.VOTE_CAST, {
            "voter_id": actor.id,
            "voter_name": actor.display_name,
            "target_id": action.target_id,
            "target_name": target_name,
        })
        message = f"{actor.display_name} voted for {target_name}" if target_name else f"{actor.display_name} abstained"
        return ActionResult(True, message, {"target_id": action.target_id, "action_type": "VOTE"})

    def _handle_speech(self, actor: Player, action: Action) -> ActionResult:
        if not self.phase_manager.is_day_phase(self.state.get_phase()):
            return ActionResult(False, "Speeches are only allowed during the day")
        # Players killed since nightfall may still give last words
        if not actor.is_alive and actor.id not in self.state.get_last_deaths():
            return ActionResult(False, f"{actor.display_name} is dead and cannot speak")
        content = (action.content or "").strip()
        if not content:
            return ActionResult(False, "A speech needs some content")

        self._record(EventType.PUBLIC_SPEECH, {
            "speaker_id": actor.id,
            "speaker_name": actor.display_name,
            "content": content,
        })
        return ActionResult(True, f"{actor.display_name}: {content}", {"action_type": "SPEECH"})

    def _handle_skip(self, actor: Player, action: Action) -> ActionResult:
        if not actor.is_alive:
            return ActionResult(False, f"{actor.display_name} is dead")
        phase = self.state.get_phase()
        if actor.role not in self.phase_manager.get_active_roles_for_phase(phase):
            return ActionResult(False, f"{actor.display_name} has nothing to pass on during {phase.value}")
        if self.state.has_acted(actor.id):
            return ActionResult(False, f"{actor.display_name} has already acted tonight")
        self.state.mark_acted(actor.id)
        return ActionResult(True, f"{actor.display_name} passes", {"action_type": "SKIP"})

    # ======== Resolution ========

    def resolve_vote(self) -> VoteResult:
        """
        Tally the day vote and execute the result.

        Raises:
            InvalidPhaseError: outside VOTE / EXECUTION
        """
        phase = self.state.get_phase()
        if phase not in (GamePhase.VOTE, GamePhase.EXECUTION):
            raise InvalidPhaseError("resolve_vote", phase.value)

        result = self.vote_manager.calculate_result(self.state)
        self._record(EventType.VOTE_RESULT, {
            "has_elimination": result.has_elimination,
            "eliminated_id": result.eliminated_player_id,
            "eliminated_name": result.eliminated_player_name,
            "is_tie": result.is_tie,
            "vote_counts": dict(result.vote_counts),
            "message": result.message,
        })
        self.vote_manager.execute_vote_result(self.state, result)
        if result.has_elimination:
            self._record_death(result.eliminated_player_id)
        return result

    def check_game_end(self) -> Optional[GameResult]:
        """Return the result once a team has won. The first result is cached."""
        if self.game_result is not None:
            return self.game_result

        result = self.win_checker.check_game_end(self.state)
        if result is None:
            return None

        self.state.set_phase(GamePhase.GAME_END)
        self.state.pending_death_shots.clear()
        self.history.set_game_ended(True)
        self._record(EventType.GAME_END, result.to_dict())
        self.game_result = result
        logger.info("Game over: %s wins after %d rounds", result.winner.value, result.total_rounds)
        return result

    # ======== Queries ========

    def get_state(self) -> GameState:
        return self.state

    def get_phase(self) -> GamePhase:
        return self.state.get_phase()

    def get_players(self) -> List[Player]:
        return self.state.get_players()

    def get_alive_players(self) -> List[Player]:
        return self.state.get_alive_players()

    def get_current_round(self) -> int:
        return self.state.get_current_round()

    def get_history_for_player(self, player_id: str) -> List[GameEvent]:
        player = self.state.get_player(player_id)
        if player is None:
            return []
        return self.history.get_events_for_player(player)

    def get_full_history(self) -> List[GameEvent]:
        return self.history.get_all_events()

    def get_game_summary_for_player(self, player_id: str) -> str:
        player = self.state.get_player(player_id)
        if player is None:
            return ""
        return self.history.generate_summary_for_player(player)

    def get_discussion_context(self, current_speaker_index: int) -> List[str]:
        return self.history.get_discussion_context(current_speaker_index, self.state.get_round())

    def get_full_discussion_for_voting(self) -> str:
        return self.history.get_full_discussion(self.state.get_round())

    def get_round_summary(self, round_number: Optional[int] = None) -> str:
        """Night deaths and the execution for a round, the current one by default."""
        if round_number is None:
            round_number = self.state.get_round()
        return self.history.get_round_summary(round_number)

    def get_last_night_deaths(self) -> List[Player]:
        if self.last_night_result is None:
            return []
        return [self.state.get_player(pid) for pid in self.last_night_result.deaths]

    def get_night_result_message(self) -> str:
        if self.last_night_result is None:
            return ""
        return self.last_night_result.message

    def get_pending_death_shots(self) -> List[Player]:
        return [self.state.get_player(pid) for pid in self.state.get_pending_death_shots()]

    def has_all_players_voted(self) -> bool:
        return self.vote_manager.has_all_players_voted(self.state)

    def get_valid_targets(self, player_id: str) -> List[Player]:
        """Legal targets for the player's action in the current phase."""
        player = self.state.get_player(player_id)
        if player is None:
            return []
        if player_id in self.state.get_pending_death_shots():
            return get_death_shot_targets(player, self.state)
        if not player.is_alive:
            return []

        phase = self.state.get_phase()
        if phase == GamePhase.VOTE:
            return [p for p in self.state.get_alive_players() if p.id != player_id]
        if self.state.has_acted(player_id):
            return []
        if phase == GamePhase.WEREWOLF_TURN and player.is_werewolf_team:
            return get_valid_targets(player, self.state)
        if phase == GamePhase.SEER_TURN and player.role == RoleType.SEER:
            return get_valid_targets(player, self.state)
        if phase == GamePhase.GUARD_TURN and player.role == RoleType.GUARD:
            return self.action_resolver.get_guard_targets(self.state, player_id)
        if phase == GamePhase.WITCH_TURN and player.role == RoleType.WITCH:
            return self.action_resolver.get_witch_poison_targets(self.state, player_id)
        return []

    def get_valid_targets_for_human(self) -> List[Player]:
        human = self.state.get_human_player()
        return self.get_valid_targets(human.id) if human else []

    def get_witch_save_target(self, witch_id: str) -> Optional[Player]:
        return self.action_resolver.get_witch_save_target(self.state, witch_id)

    def get_players_needing_action(self) -> List[Player]:
        """Players the caller still has to ask for a decision in this phase."""
        pending = self.get_pending_death_shots()
        if pending:
            return pending

        phase = self.state.get_phase()
        if phase == GamePhase.VOTE:
            votes = self.state.get_votes()
            return [p for p in self.state.get_alive_players() if p.id not in votes]

        roles = self.phase_manager.get_active_roles_for_phase(phase)
        return [
            p for p in self.state.get_alive_players()
            if p.role in roles and not self.state.has_acted(p.id)
        ]

    # ======== Snapshots ========

    def snapshot(self) -> Dict[str, Any]:
        return {
            "state": self.state.to_dict(),
            "history": self.history.to_dict(),
            "game_result": self.game_result.to_dict() if self.game_result else None,
        }

    @classmethod
    def restore(cls, snapshot: Dict[str, Any], rng: Optional[random.Random] = None) -> "GameEngine":
        engine = cls(rng=rng)
        engine.state = GameState.from_dict(snapshot["state"])
        engine.history = HistoryManager.from_dict(snapshot["history"])
        result = snapshot.get("game_result")
        engine.game_result = GameResult.from_dict(result) if result else None
        return engine
