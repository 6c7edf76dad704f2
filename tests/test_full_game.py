"""
End-to-end games driven by the terminal game loop.
"""

import asyncio
import json
import sys
from dataclasses import replace
from unittest.mock import AsyncMock, patch

import pytest

import main
from main import WerewolfGame
from werewolf.agents import AgentDecisionError, HumanAgent, LLMAgent
from werewolf.core import EventType, RoleType
from werewolf.engine import GameEngine


def always(answer):
    async def input_fn(prompt):
        return answer
    return input_fn


def simulation(config, **overrides):
    return replace(config, play_mode="simulation", **overrides)


def test_simulated_basic_game_finishes(game_config):
    game = WerewolfGame(simulation(game_config), record=False)

    result = asyncio.run(game.run())

    assert result is not None
    assert game.engine.get_phase().value == "GAME_END"
    assert len(game.engine.history.get_events_by_type(EventType.GAME_END)) == 1
    assert set(result.survivors) == {p.id for p in game.engine.get_alive_players()}


def test_simulated_advanced_game_finishes(advanced_config):
    game = WerewolfGame(simulation(advanced_config), record=False)

    result = asyncio.run(game.run())

    assert result is not None
    roles = {p.role for p in game.engine.get_players()}
    assert roles == set(RoleType)


def test_same_seed_replays_the_same_game(game_config):
    """Seeded dummy games are fully reproducible."""
    first = WerewolfGame(simulation(game_config, random_seed=99), record=False)
    second = WerewolfGame(simulation(game_config, random_seed=99), record=False)

    first_result = asyncio.run(first.run())
    second_result = asyncio.run(second.run())

    assert first_result.winner == second_result.winner
    assert first_result.total_rounds == second_result.total_rounds
    assert first_result.survivors == second_result.survivors
    assert ([e.type for e in first.engine.get_full_history()]
            == [e.type for e in second.engine.get_full_history()])


def test_human_seat_with_scripted_input(game_config):
    """The human always answers '1' and is dealt the seer."""
    game = WerewolfGame(game_config, record=False, human_role=RoleType.SEER, human_input=always("1"))

    result = asyncio.run(game.run())

    human = game.engine.get_state().get_human_player()
    assert human.role == RoleType.SEER
    assert human.display_name == "You"
    assert isinstance(game.agents[human.id], HumanAgent)
    assert result is not None


def test_round_limit_stops_the_game(game_config):
    game = WerewolfGame(simulation(game_config, max_rounds=0), record=False)

    result = asyncio.run(game.run())

    assert result is None
    assert game.engine.get_current_round() == 1


def test_announcements_are_collected(game_config, capsys):
    game = WerewolfGame(simulation(game_config, use_announcements=True), record=False)

    asyncio.run(game.run())

    assert game.announcements[0] == "Night 1 falls. Everyone, close your eyes..."
    assert "[MODERATOR]" in capsys.readouterr().out
    vote_rounds = {e.round for e in game.engine.history.get_events_by_type(EventType.VOTE_RESULT)}
    for round_number in vote_rounds:
        assert game.engine.get_round_summary(round_number) in game.announcements


def test_unknown_agent_type(game_config):
    game = WerewolfGame(simulation(game_config, agent_type="oracle"), record=False)

    with pytest.raises(ValueError):
        asyncio.run(game.setup())


@patch.object(main, 'generate_npc_profiles', new_callable=AsyncMock)
def test_llm_game_falls_back_when_the_model_says_nothing_useful(mock_profiles, game_config):
    """No usable LLM answers: default roster, random votes, kept potions."""
    mock_profiles.side_effect = AgentDecisionError("system", "GENERATE_PROFILES", "offline")
    game = WerewolfGame(simulation(game_config, agent_type="llm_agent"), record=False)

    result = asyncio.run(game.run())

    assert result is not None
    npcs = game.engine.get_state().get_npc_players()
    assert all(p.character is not None for p in npcs)
    assert all(isinstance(game.agents[p.id], LLMAgent) for p in npcs)
    assert LLMAgent._call_llm.await_count > 0


@patch.object(LLMAgent, 'speak', new_callable=AsyncMock)
@patch.object(main, 'generate_npc_profiles', new_callable=AsyncMock)
def test_failed_speech_uses_fallback_line(mock_profiles, mock_speak, game_config):
    mock_profiles.return_value = []
    mock_speak.side_effect = AgentDecisionError("npc", "SPEECH", "timeout")
    game = WerewolfGame(simulation(game_config, agent_type="llm_agent"), record=False)

    asyncio.run(game.run())

    speeches = game.engine.history.get_events_by_type(EventType.PUBLIC_SPEECH)
    assert speeches
    assert all(e.data["content"] == main.FALLBACK_SPEECH for e in speeches)


def test_recorded_game_can_be_restored(game_config, tmp_path):
    game = WerewolfGame(simulation(game_config), run_name="replay", runs_dir=str(tmp_path))

    result = asyncio.run(game.run())

    run_dir = tmp_path / "replay"
    lines = (run_dir / "events.jsonl").read_text().splitlines()
    assert len(lines) == len(game.engine.get_full_history())
    assert json.loads(lines[-1])["type"] == "GAME_END"
    assert json.loads((run_dir / "metadata.json").read_text())["config"]["random_seed"] == 42

    restored = GameEngine.restore(game.run_recorder.load_snapshot())
    assert restored.check_game_end().winner == result.winner


def test_cli_runs_a_simulated_game(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["main.py", "--simulate", "--seed", "3", "--run-name", "cli"])

    main.main()

    out = capsys.readouterr().out
    assert "Random Seed: 3" in out
    assert (tmp_path / "runs" / "cli" / "snapshot.json").exists()
