"""
Night action validation and dawn resolution.

Every ``handle_*`` method validates the actor and target, writes the accepted
choice into ``GameState.night_actions`` and returns an ``ActionResult``. Rule
violations come back as ``success=False``; nothing in here raises for them.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..core.actions import ActionResult
from ..core.game_state import GameState
from ..core.player import Player, PlayerStatus
from ..core.roles import (
    RoleType,
    ROLE_CATALOG,
    ANTIDOTE,
    POISON,
    DEATH_SHOT,
    get_valid_targets,
    execute_night_action,
    execute_death_shot,
    use_antidote,
    use_poison,
)

logger = logging.getLogger(__name__)

PEACEFUL_NIGHT_MESSAGE = "Last night was peaceful. Nobody died."


@dataclass
class NightResolutionResult:
    """Outcome of one dawn resolution."""
    deaths: List[str] = field(default_factory=list)
    seer_result: Optional[Dict[str, Any]] = None  # {target_id, target_name, is_werewolf}
    message: str = PEACEFUL_NIGHT_MESSAGE
    protected: bool = False  # werewolf victim survived via guard or antidote
    pending_death_shots: List[str] = field(default_factory=list)


def _ability_available(state: GameState, player: Player, ability_name: str) -> bool:
    ability = ROLE_CATALOG[player.role].get_ability(ability_name)
    if ability is None:
        return False
    if ability.usage_limit is None:
        return True
    return state.get_ability_uses(player.id, ability_name) < ability.usage_limit


def queue_death_shots(state: GameState, player_ids: Iterable[str]) -> List[str]:
    """
    Queue a death shot for each newly dead Hunter or Wolf King.

    A poisoned holder does not get to shoot.
    """
    queued = []
    for player_id in player_ids:
        player = state.get_player(player_id)
        if player is None or player.is_alive:
            continue
        if not ROLE_CATALOG[player.role].has_death_shot:
            continue
        if player.status == PlayerStatus.POISONED:
            logger.info("%s was poisoned and cannot shoot", player.display_name)
            continue
        if not _ability_available(state, player, DEATH_SHOT):
            continue
        state.add_pending_death_shot(player_id)
        queued.append(player_id)
    return queued


class ActionResolver:
    """Validates night actions and resolves the night at dawn."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @staticmethod
    def _lookup(state: GameState, actor_id: str, target_id: Optional[str]):
        actor = state.get_player(actor_id)
        target = state.get_player(target_id) if target_id else None
        return actor, target

    @staticmethod
    def _check_actor(state: GameState, actor: Optional[Player], role: RoleType) -> Optional[ActionResult]:
        if actor is None:
            return ActionResult(False, "Player not found")
        if actor.role != role:
            return ActionResult(False, f"Only the {ROLE_CATALOG[role].display_name} can do that")
        if not actor.is_alive:
            return ActionResult(False, f"{actor.display_name} is dead")
        if state.has_acted(actor.id):
            return ActionResult(False, f"{actor.display_name} has already acted tonight")
        return None

    # ======== Werewolves ========

    def handle_werewolf_action(self, state: GameState, werewolf_id: str, target_id: Optional[str]) -> ActionResult:
        werewolf, target = self._lookup(state, werewolf_id, target_id)
        if werewolf is None or target is None:
            return ActionResult(False, "Player not found")
        if not werewolf.is_werewolf_team:
            return ActionResult(False, "Only werewolves can choose a victim")
        if not werewolf.is_alive:
            return ActionResult(False, f"{werewolf.display_name} is dead")
        if werewolf_id in state.night_actions.werewolf_votes or state.has_acted(werewolf_id):
            return ActionResult(False, f"{werewolf.display_name} has already acted tonight")

        result = execute_night_action(werewolf, target, state)
        if result.success:
            state.set_werewolf_vote(werewolf_id, target.id)
            state.mark_acted(werewolf_id)
            logger.debug("%s voted to kill %s", werewolf.display_name, target.display_name)
        return result

    def finalize_werewolf_target(self, state: GameState, require_all: bool = True) -> Optional[str]:
        """
        Commit the pack's victim.

        Returns None until every living werewolf-aligned player has voted
        (unless ``require_all`` is False). Ties are broken uniformly at random.
        """
        votes = state.night_actions.werewolf_votes
        pack = [p for p in state.get_alive_players() if p.is_werewolf_team]

        if require_all and not all(w.id in votes for w in pack):
            return None
        if not votes:
            return None

        counts: Dict[str, int] = {}
        for target_id in votes.values():
            counts[target_id] = counts.get(target_id, 0) + 1
        top = max(counts.values())
        tied = [target_id for target_id, count in counts.items() if count == top]
        final_target = tied[0] if len(tied) == 1 else self.rng.choice(tied)

        state.set_werewolf_target(final_target)
        logger.info("Werewolf target finalized: %s (tied candidates: %d)", final_target, len(tied))
        return final_target

    # ======== Seer ========

    def handle_seer_action(self, state: GameState, seer_id: str, target_id: Optional[str]) -> ActionResult:
        seer, target = self._lookup(state, seer_id, target_id)
        rejection = self._check_actor(state, seer, RoleType.SEER)
        if rejection:
            return rejection
        if target is None:
            return ActionResult(False, "Player not found")

        result = execute_night_action(seer, target, state)
        if result.success:
            state.set_seer_action(target.id, result.data["is_werewolf"])
            state.mark_acted(seer_id)
        return result

    # ======== Guard ========

    def get_guard_targets(self, state: GameState, guard_id: str) -> List[Player]:
        guard = state.get_player(guard_id)
        if guard is None or guard.role != RoleType.GUARD:
            return []
        return [p for p in get_valid_targets(guard, state) if p.id != state.last_guard_target]

    def handle_guard_action(self, state: GameState, guard_id: str, target_id: Optional[str]) -> ActionResult:
        guard, target = self._lookup(state, guard_id, target_id)
        rejection = self._check_actor(state, guard, RoleType.GUARD)
        if rejection:
            return rejection
        if target is None:
            return ActionResult(False, "Player not found")
        if target.id == state.last_guard_target:
            return ActionResult(False, f"The guard cannot protect {target.display_name} two nights in a row")

        result = execute_night_action(guard, target, state)
        if result.success:
            state.set_guard_target(target.id)
            state.mark_acted(guard_id)
        return result

    # ======== Witch ========

    def get_witch_save_target(self, state: GameState, witch_id: str) -> Optional[Player]:
        """Tonight's werewolf victim, if the witch can still save them."""
        witch = state.get_player(witch_id)
        if witch is None or witch.role != RoleType.WITCH or not _ability_available(state, witch, ANTIDOTE):
            return None
        target = state.get_player(state.night_actions.werewolf_target)
        if target is None or not target.is_alive:
            return None
        return target

    def get_witch_poison_targets(self, state: GameState, witch_id: str) -> List[Player]:
        witch = state.get_player(witch_id)
        if witch is None or witch.role != RoleType.WITCH or not _ability_available(state, witch, POISON):
            return []
        return get_valid_targets(witch, state)

    def handle_witch_save(self, state: GameState, witch_id: str) -> ActionResult:
        witch = state.get_player(witch_id)
        rejection = self._check_actor(state, witch, RoleType.WITCH)
        if rejection:
            return rejection
        if not _ability_available(state, witch, ANTIDOTE):
            return ActionResult(False, "The antidote has already been used")

        result = use_antidote(witch, state.night_actions.werewolf_target, state)
        if result.success:
            state.set_witch_save(True)
            state.record_ability_use(witch_id, ANTIDOTE)
            state.mark_acted(witch_id)
        return result

    def handle_witch_poison(self, state: GameState, witch_id: str, target_id: Optional[str]) -> ActionResult:
        witch, target = self._lookup(state, witch_id, target_id)
        rejection = self._check_actor(state, witch, RoleType.WITCH)
        if rejection:
            return rejection
        if not _ability_available(state, witch, POISON):
            return ActionResult(False, "The poison has already been used")
        if target is None:
            return ActionResult(False, "Player not found")

        result = use_poison(witch, target, state)
        if result.success:
            state.set_witch_poison(target.id)
            state.record_ability_use(witch_id, POISON)
            state.mark_acted(witch_id)
        return result

    # ======== Death shots ========

    def queue_death_shots(self, state: GameState, player_ids: Iterable[str]) -> List[str]:
        return queue_death_shots(state, player_ids)

    def handle_death_shot(self, state: GameState, shooter_id: str, target_id: Optional[str]) -> ActionResult:
        """Fire (or decline, with a None target) a pending death shot."""
        shooter = state.get_player(shooter_id)
        if shooter is None:
            return ActionResult(False, "Player not found")
        if shooter_id not in state.get_pending_death_shots():
            return ActionResult(False, f"{shooter.display_name} has no shot to take")

        if target_id is None:
            state.remove_pending_death_shot(shooter_id)
            state.record_ability_use(shooter_id, DEATH_SHOT)
            return ActionResult(
                True,
                f"{shooter.display_name} holds their fire",
                {"target_id": None, "action_type": "DEATH_SHOT"},
            )

        target = state.get_player(target_id)
        if target is None:
            return ActionResult(False, "Player not found")

        result = execute_death_shot(shooter, target, state)
        if not result.success:
            return result

        state.remove_pending_death_shot(shooter_id)
        state.record_ability_use(shooter_id, DEATH_SHOT)
        state.kill_player(target.id, PlayerStatus.SHOT)
        chained = queue_death_shots(state, [target.id])
        logger.info("%s shot %s", shooter.display_name, target.display_name)
        result.data["chained_shots"] = chained
        return result

    # ======== Dawn ========

    def resolve_night(self, state: GameState) -> NightResolutionResult:
        """Apply the night's kills. Called once, on entering DAY_START."""
        night = state.night_actions
        deaths: List[str] = []
        protected = False

        if night.werewolf_target:
            target = state.get_player(night.werewolf_target)
            if target is not None and target.is_alive:
                if night.guard_target == target.id:
                    protected = True
                    logger.info("%s was protected by the guard", target.display_name)
                elif night.witch_saved:
                    protected = True
                    logger.info("%s was saved by the witch", target.display_name)
                else:
                    state.kill_player(target.id, PlayerStatus.KILLED_BY_WEREWOLF)
                    deaths.append(target.id)

        if night.witch_poison_target:
            target = state.get_player(night.witch_poison_target)
            if target is not None and target.is_alive:
                state.kill_player(target.id, PlayerStatus.POISONED)
                deaths.append(target.id)

        seer_result = None
        if night.seer_result:
            target = state.get_player(night.seer_result.target_id)
            if target is not None:
                seer_result = {
                    "target_id": target.id,
                    "target_name": target.display_name,
                    "is_werewolf": night.seer_result.is_werewolf,
                }

        state.set_last_guard_target(night.guard_target)
        state.set_night_deaths(deaths)
        shots = queue_death_shots(state, deaths)

        if deaths:
            names = ", ".join(state.get_player(pid).display_name for pid in deaths)
            message = f"Last night {names} died."
        else:
            message = PEACEFUL_NIGHT_MESSAGE

        return NightResolutionResult(
            deaths=deaths,
            seer_result=seer_result,
            message=message,
            protected=protected,
            pending_death_shots=shots,
        )
