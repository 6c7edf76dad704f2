"""
Core game data: roles, players, actions, events, state and history.
"""

from .roles import RoleType, Team, RoleSpec, Ability, ROLE_CATALOG, get_role_spec, team_of, is_werewolf_team
from .player import Player, PlayerStatus, NpcCharacter, create_player
from .actions import Action, ActionType, ActionResult, create_action
from .game_state import GameState, GamePhase, NightActions
from .events import (
    GameEvent,
    EventType,
    VisibilityRule,
    VisibilityType,
    PUBLIC_VISIBILITY,
    create_event,
    create_private_visibility,
    create_team_visibility,
    create_role_visibility,
)
from .history import HistoryManager
from .role_distribution import (
    distribute_roles,
    generate_role_list,
    validate_game_config,
    generate_default_npc_characters,
)
from .exceptions import WerewolfError, GameConfigError, InvariantViolationError, InvalidPhaseError

__all__ = [
    'RoleType',
    'Team',
    'RoleSpec',
    'Ability',
    'ROLE_CATALOG',
    'get_role_spec',
    'team_of',
    'is_werewolf_team',
    'Player',
    'PlayerStatus',
    'NpcCharacter',
    'create_player',
    'Action',
    'ActionType',
    'ActionResult',
    'create_action',
    'GameState',
    'GamePhase',
    'NightActions',
    'GameEvent',
    'EventType',
    'VisibilityRule',
    'VisibilityType',
    'PUBLIC_VISIBILITY',
    'create_event',
    'create_private_visibility',
    'create_team_visibility',
    'create_role_visibility',
    'HistoryManager',
    'distribute_roles',
    'generate_role_list',
    'validate_game_config',
    'generate_default_npc_characters',
    'WerewolfError',
    'GameConfigError',
    'InvariantViolationError',
    'InvalidPhaseError',
]
