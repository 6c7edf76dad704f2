"""
Board configuration from YAML files.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .game_config import GameConfig, default_config

logger = logging.getLogger(__name__)


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    with open(config_file, 'r') as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_file} must hold a mapping of settings, got {type(data).__name__}")
    return data


def load_config_from_yaml(config_path: str) -> GameConfig:
    """
    Build a GameConfig from a YAML file of overrides.

    Keys left out keep their default values; unknown keys are logged and ignored.

    Raises:
        FileNotFoundError: the file does not exist
        ValueError: the file is not a mapping
        yaml.YAMLError: the file is not valid YAML
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    overrides = _read_yaml(config_file)
    unknown = sorted(set(overrides) - set(GameConfig.__dataclass_fields__))
    for key in unknown:
        logger.warning("Unknown config key '%s' in %s", key, config_path)

    config = GameConfig.from_dict(overrides)
    logger.debug("Loaded %d settings from %s", len(overrides) - len(unknown), config_path)
    return config


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """YAML config when a path is given, otherwise a copy of the default board."""
    if config_path is None:
        return replace(default_config)
    return load_config_from_yaml(config_path)
