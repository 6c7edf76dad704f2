"""
Agent implementations for Werewolf players.
"""

from .base_agent import BaseAgent, Decision, DecisionRequest, SpeechRequest, resolve_choice
from .dummy_agent import DummyAgent
from .llm_agent import LLMAgent, generate_npc_profiles
from .human_agent import HumanAgent, console_input
from .exceptions import AgentDecisionError

__all__ = [
    'BaseAgent',
    'Decision',
    'DecisionRequest',
    'SpeechRequest',
    'resolve_choice',
    'DummyAgent',
    'LLMAgent',
    'generate_npc_profiles',
    'HumanAgent',
    'console_input',
    'AgentDecisionError',
]
