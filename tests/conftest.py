"""
Pytest fixtures for Werewolf engine tests.
"""

import pytest
from dataclasses import replace
from typing import List, Optional
from unittest.mock import AsyncMock, patch

from werewolf.agents import LLMAgent
from werewolf.config.game_config import GameConfig, ADVANCED_BOARD
from werewolf.core import GameState, GamePhase, RoleType, create_player
from werewolf.engine import GameEngine


@pytest.fixture(autouse=True)
def mock_llm_calls():
    """
    Automatically mock all LLM API calls for all tests.

    Even a test that builds LLM agents by accident never reaches the network:
    every prompt gets an answer with no usable target, so callers fall back to
    a random legal choice.
    """
    with patch.object(LLMAgent, '_call_llm', new_callable=AsyncMock,
                      return_value='{"target_id": null, "reason": "mocked"}'):
        yield


@pytest.fixture
def game_config():
    """Test game configuration: basic board, seeded, quiet."""
    return GameConfig(random_seed=42, use_announcements=False)


@pytest.fixture
def advanced_config():
    """9-player board with every special role."""
    return replace(ADVANCED_BOARD, random_seed=7, use_announcements=False)


@pytest.fixture
def engine(game_config):
    """A freshly initialized engine on the basic board."""
    engine = GameEngine(seed=42)
    engine.initialize(game_config)
    return engine


def build_state(roles: List[RoleType], config: Optional[GameConfig] = None) -> GameState:
    """
    Seat one player per role, in order. Seat 1 is the human.

    Player ids are ``p1``..``pN`` so tests can refer to seats directly.
    """
    players = [
        create_player(f"p{seat}", seat, role, is_human=(seat == 1))
        for seat, role in enumerate(roles, start=1)
    ]
    state = GameState(config=config or GameConfig(player_count=len(roles)))
    state.set_players(players)
    state.set_round(1)
    return state


def build_engine(roles: List[RoleType], phase: GamePhase = GamePhase.NIGHT_START, seed: int = 1) -> GameEngine:
    """Engine with a hand-built table, already inside round 1."""
    engine = GameEngine(seed=seed)
    engine.state = build_state(roles)
    engine.state.set_phase(phase)
    return engine


def advance_to(engine: GameEngine, phase: GamePhase, limit: int = 20) -> None:
    """Call next_phase until the engine reaches the given phase."""
    for _ in range(limit):
        if engine.get_phase() == phase:
            return
        result = engine.next_phase()
        assert result.success, result.message
    assert engine.get_phase() == phase


@pytest.fixture
def make_state():
    return build_state


@pytest.fixture
def make_engine():
    return build_engine

