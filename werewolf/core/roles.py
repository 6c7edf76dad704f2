"""
Role catalog: teams, abilities and targeting rules for every role.

Each role is a tag with a static ``RoleSpec``. Behaviour (valid targets,
night action, death shot) is looked up in capability tables keyed by tag.
None of these functions mutate the game state; callers apply the returned
``ActionResult.data`` through the action resolver.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

from .actions import ActionResult

if TYPE_CHECKING:
    from .player import Player
    from .game_state import GameState


class Team(Enum):
    """Player team affiliation."""
    WEREWOLF = "WEREWOLF"
    VILLAGE = "VILLAGE"


class RoleType(Enum):
    """Player role types."""
    WEREWOLF = "WEREWOLF"
    WOLF_KING = "WOLF_KING"
    SEER = "SEER"
    WITCH = "WITCH"
    HUNTER = "HUNTER"
    GUARD = "GUARD"
    VILLAGER = "VILLAGER"


@dataclass(frozen=True)
class Ability:
    """A single role ability."""
    name: str
    description: str
    is_night_action: bool
    requires_target: bool
    usage_limit: Optional[int] = None
    death_triggered: bool = False


@dataclass(frozen=True)
class RoleSpec:
    """Static description of a role."""
    role_type: RoleType
    team: Team
    display_name: str
    description: str
    abilities: Tuple[Ability, ...] = ()

    def __str__(self) -> str:
        return f"{self.display_name} (Team: {self.team.value})"

    @property
    def can_act_at_night(self) -> bool:
        return any(a.is_night_action for a in self.abilities)

    @property
    def has_death_shot(self) -> bool:
        return any(a.death_triggered for a in self.abilities)

    def get_ability(self, name: str) -> Optional[Ability]:
        for ability in self.abilities:
            if ability.name == name:
                return ability
        return None


# Ability names double as keys in GameState.ability_uses
KILL = "kill"
CHECK = "check"
PROTECT = "protect"
ANTIDOTE = "antidote"
POISON = "poison"
DEATH_SHOT = "death_shot"


ROLE_CATALOG: Dict[RoleType, RoleSpec] = {
    RoleType.WEREWOLF: RoleSpec(
        role_type=RoleType.WEREWOLF,
        team=Team.WEREWOLF,
        display_name="Werewolf",
        description="Each night the werewolves jointly pick one player to kill.",
        abilities=(
            Ability(KILL, "Vote with the pack on tonight's victim", True, True),
        ),
    ),
    RoleType.WOLF_KING: RoleSpec(
        role_type=RoleType.WOLF_KING,
        team=Team.WEREWOLF,
        display_name="Wolf King",
        description="Leader of the pack. When he dies he may take anyone down with him, teammates included.",
        abilities=(
            Ability(KILL, "Vote with the pack on tonight's victim", True, True),
            Ability(DEATH_SHOT, "On death, shoot any living player", False, True,
                    usage_limit=1, death_triggered=True),
        ),
    ),
    RoleType.SEER: RoleSpec(
        role_type=RoleType.SEER,
        team=Team.VILLAGE,
        display_name="Seer",
        description="Each night the seer learns whether one player is a werewolf.",
        abilities=(
            Ability(CHECK, "Learn one player's alignment", True, True),
        ),
    ),
    RoleType.WITCH: RoleSpec(
        role_type=RoleType.WITCH,
        team=Team.VILLAGE,
        display_name="Witch",
        description="Holds one antidote and one poison for the whole game.",
        abilities=(
            Ability(ANTIDOTE, "Save tonight's werewolf victim", True, False, usage_limit=1),
            Ability(POISON, "Poison one player", True, True, usage_limit=1),
        ),
    ),
    RoleType.HUNTER: RoleSpec(
        role_type=RoleType.HUNTER,
        team=Team.VILLAGE,
        display_name="Hunter",
        description="When the hunter dies he may shoot one player. A poisoned hunter cannot shoot.",
        abilities=(
            Ability(DEATH_SHOT, "On death, shoot one living player", False, True,
                    usage_limit=1, death_triggered=True),
        ),
    ),
    RoleType.GUARD: RoleSpec(
        role_type=RoleType.GUARD,
        team=Team.VILLAGE,
        display_name="Guard",
        description="Each night protects one player from the werewolves, never the same player two nights running.",
        abilities=(
            Ability(PROTECT, "Protect one player tonight", True, True),
        ),
    ),
    RoleType.VILLAGER: RoleSpec(
        role_type=RoleType.VILLAGER,
        team=Team.VILLAGE,
        display_name="Villager",
        description="No special ability. Finds the werewolves by watching and talking.",
    ),
}


def get_role_spec(role: RoleType) -> RoleSpec:
    return ROLE_CATALOG[role]


def team_of(role: RoleType) -> Team:
    return ROLE_CATALOG[role].team


def is_werewolf_team(role: RoleType) -> bool:
    """Check if role is werewolf-aligned."""
    return ROLE_CATALOG[role].team == Team.WEREWOLF


def werewolf_aligned_roles() -> List[RoleType]:
    return [r for r, spec in ROLE_CATALOG.items() if spec.team == Team.WEREWOLF]


# ---------------------------------------------------------------------------
# Target rules
# ---------------------------------------------------------------------------

def _pack_targets(actor: "Player", state: "GameState") -> List["Player"]:
    return [p for p in state.get_alive_players() if not is_werewolf_team(p.role)]


def _others_alive(actor: "Player", state: "GameState") -> List["Player"]:
    return [p for p in state.get_alive_players() if p.id != actor.id]


def _anyone_alive(actor: "Player", state: "GameState") -> List["Player"]:
    return state.get_alive_players()


def _nobody(actor: "Player", state: "GameState") -> List["Player"]:
    return []


TargetRule = Callable[["Player", "GameState"], List["Player"]]

_NIGHT_TARGETS: Dict[RoleType, TargetRule] = {
    RoleType.WEREWOLF: _pack_targets,
    RoleType.WOLF_KING: _pack_targets,
    RoleType.SEER: _others_alive,
    RoleType.WITCH: _others_alive,  # poison
    RoleType.GUARD: _anyone_alive,  # repeat rule is enforced by the resolver
    RoleType.HUNTER: _nobody,
    RoleType.VILLAGER: _nobody,
}


def get_valid_targets(actor: "Player", state: "GameState") -> List["Player"]:
    """Players the actor may pick with their night ability."""
    return _NIGHT_TARGETS[actor.role](actor, state)


def get_death_shot_targets(actor: "Player", state: "GameState") -> List["Player"]:
    """Players a dying Hunter or Wolf King may shoot."""
    if not ROLE_CATALOG[actor.role].has_death_shot:
        return []
    return _others_alive(actor, state)


# ---------------------------------------------------------------------------
# Night actions
# ---------------------------------------------------------------------------

def _pack_kill(actor: "Player", target: "Player", state: "GameState") -> ActionResult:
    if not target.is_alive:
        return ActionResult(False, f"{target.display_name} is already dead")
    if is_werewolf_team(target.role):
        return ActionResult(False, "Werewolves cannot kill their own teammates")
    return ActionResult(
        True,
        f"{actor.display_name} picked {target.display_name} as tonight's target",
        {"target_id": target.id, "action_type": "WEREWOLF_KILL"},
    )


def _seer_check(actor: "Player", target: "Player", state: "GameState") -> ActionResult:
    if not target.is_alive:
        return ActionResult(False, f"{target.display_name} is already dead and cannot be checked")
    if target.id == actor.id:
        return ActionResult(False, "The seer cannot check themselves")
    is_werewolf = is_werewolf_team(target.role)
    verdict = "a WEREWOLF" if is_werewolf else "GOOD"
    return ActionResult(
        True,
        f"You checked {target.display_name}: they are {verdict}",
        {
            "target_id": target.id,
            "target_name": target.display_name,
            "is_werewolf": is_werewolf,
            "team": team_of(target.role).value,
            "action_type": "SEER_CHECK",
        },
    )


def _guard_protect(actor: "Player", target: "Player", state: "GameState") -> ActionResult:
    if not target.is_alive:
        return ActionResult(False, f"{target.display_name} is already dead and cannot be protected")
    return ActionResult(
        True,
        f"The guard protects {target.display_name} tonight",
        {"target_id": target.id, "action_type": "GUARD_PROTECT"},
    )


def _no_night_action(actor: "Player", target: "Player", state: "GameState") -> ActionResult:
    return ActionResult(False, f"The {ROLE_CATALOG[actor.role].display_name} has no night action")


def _witch_dispatch(actor: "Player", target: "Player", state: "GameState") -> ActionResult:
    return ActionResult(False, "The witch acts through use_antidote or use_poison")


NightRule = Callable[["Player", "Player", "GameState"], ActionResult]

_NIGHT_ACTIONS: Dict[RoleType, NightRule] = {
    RoleType.WEREWOLF: _pack_kill,
    RoleType.WOLF_KING: _pack_kill,
    RoleType.SEER: _seer_check,
    RoleType.GUARD: _guard_protect,
    RoleType.WITCH: _witch_dispatch,
    RoleType.HUNTER: _no_night_action,
    RoleType.VILLAGER: _no_night_action,
}


def execute_night_action(actor: "Player", target: "Player", state: "GameState") -> ActionResult:
    """Evaluate the actor's night ability against a target."""
    return _NIGHT_ACTIONS[actor.role](actor, target, state)


def use_antidote(actor: "Player", target_id: Optional[str], state: "GameState") -> ActionResult:
    """Witch antidote: saves tonight's werewolf victim, if there is one."""
    if actor.role != RoleType.WITCH:
        return ActionResult(False, "Only the witch holds an antidote")
    if not target_id:
        return ActionResult(False, "Nobody was attacked tonight")
    target = state.get_player(target_id)
    if target is None or not target.is_alive:
        return ActionResult(False, "Tonight's victim cannot be saved")
    return ActionResult(
        True,
        f"The witch used the antidote on {target.display_name}",
        {"target_id": target.id, "action_type": "WITCH_SAVE"},
    )


def use_poison(actor: "Player", target: "Player", state: "GameState") -> ActionResult:
    """Witch poison: any living player except the witch."""
    if actor.role != RoleType.WITCH:
        return ActionResult(False, "Only the witch holds a poison")
    if not target.is_alive:
        return ActionResult(False, f"{target.display_name} is already dead")
    if target.id == actor.id:
        return ActionResult(False, "The witch cannot poison themselves")
    return ActionResult(
        True,
        f"The witch poisoned {target.display_name}",
        {"target_id": target.id, "action_type": "WITCH_POISON"},
    )


def execute_death_shot(actor: "Player", target: "Player", state: "GameState") -> ActionResult:
    """Hunter / Wolf King shot on death. The Wolf King may hit teammates."""
    spec = ROLE_CATALOG[actor.role]
    if not spec.has_death_shot:
        return ActionResult(False, f"The {spec.display_name} has no death shot")
    if not target.is_alive:
        return ActionResult(False, f"{target.display_name} is already dead")
    if target.id == actor.id:
        return ActionResult(False, "You cannot shoot yourself")
    return ActionResult(
        True,
        f"The {spec.display_name} shot {target.display_name}",
        {"target_id": target.id, "action_type": f"{actor.role.value}_SHOT"},
    )
