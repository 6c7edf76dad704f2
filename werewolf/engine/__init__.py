"""
Rules engine: phase flow, action resolution, voting and win checks.
"""

from .phase_manager import PhaseManager, PhaseTransitionResult, NIGHT_TURNS
from .action_resolver import ActionResolver, NightResolutionResult, queue_death_shots
from .vote_manager import VoteManager, VoteResult
from .win_condition import WinConditionChecker, GameResult
from .game_engine import GameEngine

__all__ = [
    'PhaseManager',
    'PhaseTransitionResult',
    'NIGHT_TURNS',
    'ActionResolver',
    'NightResolutionResult',
    'queue_death_shots',
    'VoteManager',
    'VoteResult',
    'WinConditionChecker',
    'GameResult',
    'GameEngine',
]
