"""
LLM agent backed by the OpenAI chat completions API.
"""

import json
import logging
import os
import re
import time
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from .base_agent import BaseAgent, Decision, DecisionRequest, SpeechRequest
from .exceptions import AgentDecisionError
from ..core import Player, ActionType, NpcCharacter, get_role_spec
from ..config.game_config import GameConfig, default_config

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a player in a game of Werewolf. Stay in character, keep your role "
    "secret unless revealing it helps your team, and answer exactly in the requested format."
)

ACTION_INSTRUCTIONS = {
    ActionType.WEREWOLF_KILL: "Choose tonight's victim together with your pack.",
    ActionType.SEER_CHECK: "Choose a player to check. You will learn whether they are a werewolf.",
    ActionType.GUARD_PROTECT: "Choose a player to protect tonight. You cannot protect the same player two nights running.",
    ActionType.WITCH_SAVE: "The player below was attacked tonight. Answer with their id to use your antidote, or null to keep it.",
    ActionType.WITCH_POISON: "Choose a player to poison, or null to keep the poison.",
    ActionType.DEATH_SHOT: "You are dying. Choose a player to take down with you, or null to hold your fire.",
    ActionType.VOTE: "Vote for the player you want executed, or null to abstain.",
}


def _token_params(model: str, max_tokens: int, temperature: float) -> Dict[str, Any]:
    # Newer models take max_completion_tokens and only the default temperature
    if model.startswith(("gpt-5", "o1", "o3", "o4")):
        return {"max_completion_tokens": max_tokens}
    return {"max_completion_tokens": max_tokens, "temperature": temperature}


async def _complete(client: AsyncOpenAI, model: str, messages: List[Dict[str, str]],
                    max_tokens: int, temperature: float) -> str:
    """Run one chat completion and return the stripped text."""
    start_time = time.time()
    response = await client.chat.completions.create(
        model=model,
        messages=messages,
        **_token_params(model, max_tokens, temperature),
    )
    latency_ms = (time.time() - start_time) * 1000
    if response.usage:
        logger.debug("LLM call: %d prompt / %d completion tokens, %.0f ms",
                     response.usage.prompt_tokens, response.usage.completion_tokens, latency_ms)
    content = response.choices[0].message.content or ""
    return content.strip()


class LLMAgent(BaseAgent):
    """Asks an OpenAI model for targets and speeches."""

    def __init__(self, player: Player, config: GameConfig = default_config,
                 client: Optional[AsyncOpenAI] = None):
        super().__init__(player, config)
        self.model = config.llm_model
        self.temperature = config.llm_temperature
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        # Built on first use so agents can be created without a key in tests
        if self._client is None:
            self._client = AsyncOpenAI(api_key=os.getenv("OPENAI_API_KEY"))
        return self._client

    async def _call_llm(self, prompt: str, max_tokens: int, action_type: str) -> str:
        """
        Send one prompt to the model.

        Raises:
            AgentDecisionError: on API failure or an empty reply
        """
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        try:
            content = await _complete(self.client, self.model, messages, max_tokens, self.temperature)
        except Exception as e:
            raise AgentDecisionError(self.player.id, action_type, f"LLM call failed for {self.player.id}: {e}") from e

        if not content:
            raise AgentDecisionError(
                self.player.id,
                action_type,
                f"LLM returned an empty response for {self.player.id}. Model: {self.model}",
            )
        return content

    def _identity(self) -> str:
        spec = get_role_spec(self.player.role)
        lines = [f"You are {self.player.display_name} (seat {self.player.seat_number}), the {spec.display_name}."]
        lines.append(spec.description)
        character = self.player.character
        if character:
            lines.append(
                f"Persona: {character.age}-year-old {character.profession}. "
                f"{character.personality}. Speaks: {character.speech_style}."
            )
        return "\n".join(lines)

    def build_decision_prompt(self, request: DecisionRequest) -> str:
        candidates = "\n".join(f"- {p.id}: {p.display_name} (seat {p.seat_number})" for p in request.candidates)
        parts = [
            self._identity(),
            f"Round {request.round}, phase {request.phase.value}.",
            ACTION_INSTRUCTIONS.get(request.action_type, "Choose a player."),
            f"Candidates:\n{candidates}",
        ]
        if request.history_summary:
            parts.append(f"What you know so far:\n{request.history_summary}")
        if request.discussion:
            parts.append(f"Today's discussion:\n{request.discussion}")
        null_hint = " (or null)" if request.allow_skip else ""
        parts.append(f'Reply with JSON only: {{"target_id": "<candidate id>"{null_hint}, "reason": "<one sentence>"}}')
        return "\n\n".join(parts)

    def build_speech_prompt(self, request: SpeechRequest) -> str:
        parts = [self._identity(), f"Round {request.round}."]
        if request.history_summary:
            parts.append(f"What you know so far:\n{request.history_summary}")
        if request.previous_speeches:
            parts.append("Earlier speakers today:\n" + "\n".join(request.previous_speeches))
        if request.is_last_words:
            parts.append("You have just died. Give your last words in two sentences or fewer.")
        else:
            parts.append("It is your turn to speak. Say two to four sentences in character.")
        return "\n\n".join(parts)

    async def choose_target(self, request: DecisionRequest) -> Decision:
        prompt = self.build_decision_prompt(request)
        reply = await self._call_llm(prompt, self.config.max_action_tokens, request.action_type.value)
        return parse_decision(reply)

    async def speak(self, request: SpeechRequest) -> str:
        return await self._call_llm(self.build_speech_prompt(request), self.config.max_speech_tokens, "SPEECH")


def parse_decision(reply: str) -> Decision:
    """
    Parse ``{"target_id": ..., "reason": ...}`` out of a model reply.

    A reply without valid JSON is passed through as the raw target so the
    caller can still match it against candidate names.
    """
    match = re.search(r"\{.*\}", reply, re.DOTALL)
    if match:
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            data = None
        if isinstance(data, dict):
            target = data.get("target_id")
            return Decision(str(target) if target is not None else None, str(data.get("reason", "")))
    return Decision(reply.strip().strip('"'), "")


PROFILE_PROMPT = (
    "Invent {count} distinct characters for a Werewolf party game. Reply with a JSON array only. "
    "Each item has: name, age (integer), profession, personality, speech_style, catchphrase."
)


async def generate_npc_profiles(count: int, config: GameConfig = default_config,
                                client: Optional[AsyncOpenAI] = None) -> List[NpcCharacter]:
    """
    Ask the model for ``count`` NPC personas.

    Raises:
        AgentDecisionError: when the call fails or the reply is not a usable list;
            callers fall back to the built-in roster
    """
    messages = [{"role": "user", "content": PROFILE_PROMPT.format(count=count)}]
    try:
        client = client or AsyncOpenAI(api_key=os.getenv("OPENAI_API_KEY"))
        reply = await _complete(client, config.llm_model, messages, 300 * count, config.llm_temperature)
    except Exception as e:
        raise AgentDecisionError("system", "GENERATE_PROFILES", f"Profile generation failed: {e}") from e

    match = re.search(r"\[.*\]", reply, re.DOTALL)
    try:
        items = json.loads(match.group(0)) if match else None
        profiles = [NpcCharacter.from_dict(item) for item in items or []]
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise AgentDecisionError("system", "GENERATE_PROFILES", f"Unusable profile reply: {e}") from e

    if len(profiles) < count:
        raise AgentDecisionError("system", "GENERATE_PROFILES",
                                 f"Expected {count} profiles, got {len(profiles)}")
    return profiles[:count]
