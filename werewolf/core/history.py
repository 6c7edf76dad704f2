"""
Append-only event history with per-player visibility filtering.
"""

import json
from typing import List, Optional, Dict, Any

from .events import GameEvent, EventType, VisibilityType
from .game_state import GamePhase
from .player import Player

NO_SPEECHES_PLACEHOLDER = "(Nobody has spoken yet.)"


class HistoryManager:
    """Records game events and hands out the slice each player may see."""

    def __init__(self):
        self.events: List[GameEvent] = []
        self.is_game_ended = False

    def add_event(self, event: GameEvent) -> None:
        self.events.append(event)

    def get_all_events(self) -> List[GameEvent]:
        """Unfiltered log. Only meant for post-game review."""
        return list(self.events)

    def get_events_for_player(self, player: Player) -> List[GameEvent]:
        return [e for e in self.events if self.can_player_see_event(player, e)]

    def can_player_see_event(self, player: Player, event: GameEvent) -> bool:
        """Apply the event's visibility rule to a viewer."""
        visibility = event.visibility

        if self.is_game_ended and visibility.reveal_on_game_end:
            return True

        if visibility.type == VisibilityType.PUBLIC:
            return True
        if visibility.type == VisibilityType.PRIVATE:
            return player.id in visibility.allowed_players
        if visibility.type == VisibilityType.TEAM_BASED:
            return player.team in visibility.allowed_teams
        if visibility.type == VisibilityType.ROLE_BASED:
            return player.role in visibility.allowed_roles
        return False

    def set_game_ended(self, ended: bool = True) -> None:
        self.is_game_ended = ended

    # ======== Queries ========

    def get_events_by_type(self, event_type: EventType) -> List[GameEvent]:
        return [e for e in self.events if e.type == event_type]

    def get_events_by_round(self, round_number: int) -> List[GameEvent]:
        return [e for e in self.events if e.round == round_number]

    def clear(self) -> None:
        self.events = []
        self.is_game_ended = False

    def get_event_count(self) -> int:
        return len(self.events)

    # ======== Summaries ========

    def generate_summary_for_player(self, player: Player) -> str:
        """One line per event the player can see, oldest first."""
        lines = []
        for event in self.get_events_for_player(player):
            line = format_event(event)
            if line:
                lines.append(line)
        return "\n".join(lines)

    def _speeches(self, round_number: Optional[int]) -> List[GameEvent]:
        speeches = self.get_events_by_type(EventType.PUBLIC_SPEECH)
        if round_number is not None:
            speeches = [e for e in speeches if e.round == round_number]
        return speeches

    def get_discussion_context(self, current_speaker_index: int,
                               round_number: Optional[int] = None) -> List[str]:
        """
        Speeches made before the given speaker slot.

        Args:
            current_speaker_index: 0-based position of the speaker about to talk
            round_number: restrict to one round's discussion

        Returns:
            "Name: text" lines for the earlier DISCUSSION speakers only; last words are left out
        """
        if current_speaker_index <= 0:
            return []
        discussion = [e for e in self._speeches(round_number) if e.phase == GamePhase.DISCUSSION]
        previous = discussion[:current_speaker_index]
        return [f"{e.data.get('speaker_name')}: {e.data.get('content')}" for e in previous]

    def get_full_discussion(self, round_number: Optional[int] = None) -> str:
        speeches = self._speeches(round_number)
        if not speeches:
            return NO_SPEECHES_PLACEHOLDER
        return "\n\n".join(f"{e.data.get('speaker_name')}: {e.data.get('content')}" for e in speeches)

    def get_round_summary(self, round_number: int) -> str:
        """Night deaths and the day's execution for one round."""
        lines = []
        for event in self.get_events_by_round(round_number):
            if event.type == EventType.NIGHT_RESULT:
                lines.append(f"Last night: {event.data.get('message')}")
            elif event.type == EventType.VOTE_RESULT and event.data.get("has_elimination"):
                lines.append(f"Executed by vote: {event.data.get('eliminated_name')}")
        return "\n".join(lines)

    # ======== Serialization ========

    def to_dict(self) -> Dict[str, Any]:
        return {
            "events": [e.to_dict() for e in self.events],
            "is_game_ended": self.is_game_ended,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryManager":
        manager = cls()
        manager.events = [GameEvent.from_dict(e) for e in data.get("events", [])]
        manager.is_game_ended = data.get("is_game_ended", False)
        return manager

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, payload: str) -> "HistoryManager":
        return cls.from_dict(json.loads(payload))


def format_event(event: GameEvent) -> str:
    """Render an event as a single line of text. Unknown kinds render as ''."""
    data = event.data
    t = event.type

    if t == EventType.GAME_START:
        return f"[Game start] {data.get('player_count')} players joined"
    if t == EventType.ROLE_ASSIGNED:
        return f"[Role] You are the {data.get('role_name')}"
    if t == EventType.PHASE_CHANGE:
        return f"[Phase] {data.get('phase')}"
    if t == EventType.WEREWOLF_CHAT:
        return f"[Pack] Your fellow werewolves: {', '.join(data.get('teammate_names', []))}"
    if t == EventType.WEREWOLF_KILL:
        return f"[Werewolves] {data.get('actor_name')} chose {data.get('target_name')}"
    if t == EventType.SEER_CHECK:
        verdict = "a werewolf" if data.get("is_werewolf") else "good"
        return f"[Seer] {data.get('target_name')} is {verdict}"
    if t == EventType.GUARD_PROTECT:
        return f"[Guard] Protected {data.get('target_name')}"
    if t == EventType.WITCH_ACTION:
        return f"[Witch] Used the {data.get('potion')} on {data.get('target_name')}"
    if t == EventType.NIGHT_RESULT:
        return f"[Night] {data.get('message')}"
    if t == EventType.PUBLIC_SPEECH:
        return f"[Speech] {data.get('speaker_name')}: {data.get('content')}"
    if t == EventType.VOTE_CAST:
        return f"[Vote] {data.get('voter_name')} voted for {data.get('target_name') or 'nobody (abstain)'}"
    if t == EventType.VOTE_RESULT:
        return f"[Vote result] {data.get('eliminated_name') or 'Nobody'} was voted out"
    if t == EventType.PLAYER_DEATH:
        return f"[Death] {data.get('player_name')} died"
    if t == EventType.DEATH_SHOT:
        if data.get("target_name"):
            return f"[Shot] {data.get('shooter_name')} shot {data.get('target_name')}"
        return f"[Shot] {data.get('shooter_name')} held their fire"
    if t == EventType.GAME_END:
        winner = "Werewolf" if data.get("winner") == "WEREWOLF" else "Village"
        return f"[Game over] The {winner} team wins!"
    return ""
