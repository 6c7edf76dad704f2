"""
Tests for YAML configuration loading.
"""

import logging
from pathlib import Path

import pytest

from werewolf.config import GameConfig, default_config, load_config, load_config_from_yaml
from werewolf.core import validate_game_config

CONFIGS_DIR = Path(__file__).resolve().parent.parent / "configs"


def test_default_config_is_a_copy():
    config = load_config()

    assert config == default_config
    assert config is not default_config


def test_yaml_overrides_defaults(tmp_path):
    path = tmp_path / "board.yaml"
    path.write_text("player_count: 7\nvillager_count: 4\nrandom_seed: 3\n")

    config = load_config(str(path))

    assert config.player_count == 7
    assert config.villager_count == 4
    assert config.random_seed == 3
    assert config.werewolf_count == 2
    validate_game_config(config)


def test_unknown_keys_are_reported(tmp_path, caplog):
    path = tmp_path / "board.yaml"
    path.write_text("player_count: 6\nsheriff_count: 1\n")

    with caplog.at_level(logging.WARNING):
        config = load_config_from_yaml(str(path))

    assert "sheriff_count" in caplog.text
    assert not hasattr(config, "sheriff_count")


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_config_from_yaml(str(path)) == GameConfig()


def test_non_mapping_file_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- player_count\n- 6\n")

    with pytest.raises(ValueError):
        load_config_from_yaml(str(path))


def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config_from_yaml("does/not/exist.yaml")


@pytest.mark.parametrize("name", ["basic_6.yaml", "advanced_9.yaml", "llm_agent.yaml"])
def test_shipped_configs_are_playable(name):
    validate_game_config(load_config(str(CONFIGS_DIR / name)))
