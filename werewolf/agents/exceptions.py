"""
Exceptions for agent-related errors.
"""


class AgentDecisionError(Exception):
    """Raised when an agent cannot produce a decision (LLM failure, empty reply)."""

    def __init__(self, player_id: str, action_type: str, message: str = ""):
        self.player_id = player_id
        self.action_type = action_type
        self.message = message or f"Agent for {player_id} failed to decide during {action_type}"
        super().__init__(self.message)
