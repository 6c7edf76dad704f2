"""
Game configuration and constants.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any


@dataclass
class GameConfig:
    """Configuration for board composition and game parameters."""

    # Board
    player_count: int = 6
    werewolf_count: int = 2
    wolf_king_count: int = 0
    seer_count: int = 1
    witch_count: int = 0
    hunter_count: int = 0
    guard_count: int = 0
    villager_count: int = 3

    # LLM settings
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    max_action_tokens: int = 300
    max_speech_tokens: int = 400

    # Game settings
    human_name: str = "You"
    play_mode: str = "player"  # "player" (human seat takes input) or "simulation"
    log_level: str = "WARNING"
    max_rounds: int = 20  # Safety stop for simulations
    use_announcements: bool = True

    # Agent settings
    agent_type: str = "dummy_agent"  # Options: "dummy_agent" or "llm_agent"
    random_seed: Optional[int] = None  # Random seed for reproducible role assignment and dummy agents

    def role_counts(self) -> Dict[str, int]:
        """Per-role counts keyed by role tag."""
        return {
            "WEREWOLF": self.werewolf_count,
            "WOLF_KING": self.wolf_king_count,
            "SEER": self.seer_count,
            "WITCH": self.witch_count,
            "HUNTER": self.hunter_count,
            "GUARD": self.guard_count,
            "VILLAGER": self.villager_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameConfig":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


# Default configuration instance: 6-player basic board
default_config = GameConfig()

# 9-player board with every special role
ADVANCED_BOARD = GameConfig(
    player_count=9,
    werewolf_count=2,
    wolf_king_count=1,
    seer_count=1,
    witch_count=1,
    hunter_count=1,
    guard_count=1,
    villager_count=2,
)
