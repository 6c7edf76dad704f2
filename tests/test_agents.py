"""
Tests for agents and answer resolution.
"""

import asyncio
import logging
import random
from unittest.mock import AsyncMock, Mock, patch

import pytest

from werewolf.agents import (
    AgentDecisionError,
    Decision,
    DecisionRequest,
    DummyAgent,
    HumanAgent,
    LLMAgent,
    SpeechRequest,
    generate_npc_profiles,
    resolve_choice,
)
from werewolf.agents.llm_agent import parse_decision
from werewolf.config.game_config import GameConfig
from werewolf.core import ActionType, GamePhase, NpcCharacter, RoleType, create_player

# Captured before the autouse fixture swaps it for a mock
REAL_CALL_LLM = LLMAgent._call_llm

SEER = create_player("npc_1", 1, RoleType.SEER, is_human=False)
CANDIDATES = [
    create_player("npc_2", 2, RoleType.WEREWOLF, is_human=False),
    create_player("human_player", 3, RoleType.VILLAGER, is_human=True),
    create_player("npc_4", 4, RoleType.VILLAGER, is_human=False),
]


def request_for(player, action_type, candidates=CANDIDATES, allow_skip=False):
    return DecisionRequest(
        player=player,
        action_type=action_type,
        candidates=list(candidates),
        round=1,
        phase=GamePhase.VOTE,
        allow_skip=allow_skip,
    )


def scripted_input(*answers):
    replies = iter(answers)

    async def input_fn(prompt):
        return next(replies)

    return input_fn


# ======== resolve_choice ========

def test_resolve_choice_matches_id_then_name():
    rng = random.Random(0)

    assert resolve_choice(Decision("npc_4"), CANDIDATES, rng) == "npc_4"
    assert resolve_choice(Decision(" player 2 "), CANDIDATES, rng) == "npc_2"


def test_resolve_choice_falls_back_to_a_legal_target(caplog):
    with caplog.at_level(logging.WARNING):
        choice = resolve_choice(Decision("Player 9"), CANDIDATES, random.Random(0))

    assert choice in {p.id for p in CANDIDATES}
    assert "not a legal choice" in caplog.text


def test_resolve_choice_skip_rules():
    """None is only honoured when skipping is allowed."""
    rng = random.Random(0)

    assert resolve_choice(Decision(None), CANDIDATES, rng, allow_skip=True) is None
    assert resolve_choice(Decision(None), CANDIDATES, rng) in {p.id for p in CANDIDATES}
    assert resolve_choice(None, [], rng) is None


# ======== DummyAgent ========

def test_dummy_agent_is_reproducible():
    config = GameConfig(random_seed=5)
    voter = create_player("npc_5", 5, RoleType.VILLAGER, is_human=False)

    first = asyncio.run(DummyAgent(voter, config).choose_target(request_for(voter, ActionType.VOTE)))
    second = asyncio.run(DummyAgent(voter, config).choose_target(request_for(voter, ActionType.VOTE)))

    assert first.target_id == second.target_id
    assert first.target_id in {p.id for p in CANDIDATES}


def test_dummy_seer_checks_new_players_first():
    agent = DummyAgent(SEER, GameConfig(random_seed=1))

    async def check_all():
        picks = []
        for _ in range(len(CANDIDATES)):
            decision = await agent.choose_target(request_for(SEER, ActionType.SEER_CHECK))
            picks.append(decision.target_id)
        return picks

    assert sorted(asyncio.run(check_all())) == sorted(p.id for p in CANDIDATES)


def test_dummy_agent_without_candidates():
    agent = DummyAgent(SEER, GameConfig(random_seed=1))

    decision = asyncio.run(agent.choose_target(request_for(SEER, ActionType.SEER_CHECK, candidates=[])))

    assert decision.target_id is None


def test_dummy_agent_speaks():
    agent = DummyAgent(SEER, GameConfig(random_seed=1))
    request = SpeechRequest(player=SEER, round=1, phase=GamePhase.DISCUSSION)

    assert asyncio.run(agent.speak(request))


# ======== LLMAgent ========

def test_parse_decision():
    reply = 'Sure. {"target_id": "npc_2", "reason": "too quiet"} Hope that helps.'

    assert parse_decision(reply) == Decision("npc_2", "too quiet")
    assert parse_decision('{"target_id": null}') == Decision(None, "")
    assert parse_decision('"Player 4"') == Decision("Player 4", "")


@patch.object(LLMAgent, '_call_llm', new_callable=AsyncMock)
def test_llm_agent_choose_target(mock_call):
    """The prompt lists every candidate id and the reply is parsed into a Decision."""
    mock_call.return_value = '{"target_id": "npc_4", "reason": "voted oddly"}'
    agent = LLMAgent(SEER, GameConfig())

    decision = asyncio.run(agent.choose_target(request_for(SEER, ActionType.VOTE, allow_skip=True)))

    assert decision == Decision("npc_4", "voted oddly")
    prompt, max_tokens, action_type = mock_call.call_args.args
    assert all(p.id in prompt for p in CANDIDATES)
    assert "or null" in prompt
    assert max_tokens == 300
    assert action_type == "VOTE"


@patch.object(LLMAgent, '_call_llm', new_callable=AsyncMock)
def test_llm_agent_last_words_prompt(mock_call):
    mock_call.return_value = "I was the seer!"
    agent = LLMAgent(SEER, GameConfig())
    request = SpeechRequest(player=SEER, round=2, phase=GamePhase.EXECUTION,
                            previous_speeches=["Ann: hi"], is_last_words=True)

    assert asyncio.run(agent.speak(request)) == "I was the seer!"
    prompt = mock_call.call_args.args[0]
    assert "last words" in prompt
    assert "Ann: hi" in prompt


@patch('werewolf.agents.llm_agent._complete', new_callable=AsyncMock)
def test_llm_empty_reply_raises(mock_complete):
    mock_complete.return_value = ""
    agent = LLMAgent(SEER, GameConfig(), client=Mock())

    with pytest.raises(AgentDecisionError) as exc_info:
        asyncio.run(REAL_CALL_LLM(agent, "prompt", 10, "VOTE"))

    assert exc_info.value.player_id == "npc_1"
    assert exc_info.value.action_type == "VOTE"


@patch('werewolf.agents.llm_agent._complete', new_callable=AsyncMock)
def test_llm_api_failure_is_wrapped(mock_complete):
    mock_complete.side_effect = RuntimeError("rate limited")
    agent = LLMAgent(SEER, GameConfig(), client=Mock())

    with pytest.raises(AgentDecisionError) as exc_info:
        asyncio.run(REAL_CALL_LLM(agent, "prompt", 10, "SEER_CHECK"))

    assert "rate limited" in exc_info.value.message


@patch('werewolf.agents.llm_agent._complete', new_callable=AsyncMock)
def test_generate_npc_profiles(mock_complete):
    mock_complete.return_value = (
        '[{"name": "Vera", "age": 31, "profession": "Baker", "personality": "Warm",'
        ' "speech_style": "Chatty", "catchphrase": "Fresh today!"},'
        ' {"name": "Otto", "age": 60, "profession": "Ferryman", "personality": "Gruff",'
        ' "speech_style": "Terse"}]'
    )

    profiles = asyncio.run(generate_npc_profiles(2, GameConfig(), client=Mock()))

    assert [p.name for p in profiles] == ["Vera", "Otto"]
    assert isinstance(profiles[0], NpcCharacter)
    assert profiles[1].catchphrase is None


@patch('werewolf.agents.llm_agent._complete', new_callable=AsyncMock)
def test_generate_npc_profiles_rejects_short_reply(mock_complete):
    mock_complete.return_value = "Sorry, I can't help with that."

    with pytest.raises(AgentDecisionError):
        asyncio.run(generate_npc_profiles(3, GameConfig(), client=Mock()))


# ======== HumanAgent ========

def test_human_agent_retries_until_valid():
    output = []
    agent = HumanAgent(CANDIDATES[1], GameConfig(), input_fn=scripted_input("9", "bogus", "1"),
                       output_fn=output.append)

    decision = asyncio.run(agent.choose_target(request_for(CANDIDATES[1], ActionType.VOTE)))

    assert decision.target_id == "npc_2"
    assert output.count("Not a valid choice, try again.") == 2


def test_human_agent_accepts_names_and_skips():
    agent = HumanAgent(CANDIDATES[1], GameConfig(), input_fn=scripted_input("Player 4", "skip"),
                       output_fn=lambda line: None)

    named = asyncio.run(agent.choose_target(request_for(CANDIDATES[1], ActionType.VOTE)))
    skipped = asyncio.run(agent.choose_target(request_for(CANDIDATES[1], ActionType.VOTE, allow_skip=True)))

    assert named.target_id == "npc_4"
    assert skipped.target_id is None


def test_human_agent_speech_needs_text():
    agent = HumanAgent(CANDIDATES[1], GameConfig(), input_fn=scripted_input("  ", "I trust Player 4."),
                       output_fn=lambda line: None)
    request = SpeechRequest(player=CANDIDATES[1], round=1, phase=GamePhase.DISCUSSION)

    assert asyncio.run(agent.speak(request)) == "I trust Player 4."
