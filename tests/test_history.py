"""
Tests for event history and visibility filtering.
"""

from werewolf.core import (
    EventType,
    GamePhase,
    HistoryManager,
    RoleType,
    Team,
    VisibilityRule,
    VisibilityType,
    create_event,
    create_player,
    create_private_visibility,
    create_role_visibility,
    create_team_visibility,
)
from werewolf.core.history import NO_SPEECHES_PLACEHOLDER, format_event

HUMAN = create_player("p1", 1, RoleType.VILLAGER, is_human=True)
WOLF = create_player("p2", 2, RoleType.WEREWOLF, is_human=False)
SEER = create_player("p3", 3, RoleType.SEER, is_human=False)


def speech(round_number, name, content):
    return create_event(EventType.PUBLIC_SPEECH, GamePhase.DISCUSSION, round_number,
                        {"speaker_id": name.lower(), "speaker_name": name, "content": content})


def test_private_event_only_visible_to_listed_players():
    history = HistoryManager()
    history.add_event(create_event(EventType.SEER_CHECK, GamePhase.SEER_TURN, 1,
                                   {"target_name": "Player 2", "is_werewolf": True},
                                   create_private_visibility(["p3"])))

    assert len(history.get_events_for_player(SEER)) == 1
    assert history.get_events_for_player(HUMAN) == []


def test_team_and_role_visibility():
    history = HistoryManager()
    history.add_event(create_event(EventType.WEREWOLF_CHAT, GamePhase.INIT, 0, {},
                                   create_team_visibility([Team.WEREWOLF])))
    history.add_event(create_event(EventType.SEER_CHECK, GamePhase.SEER_TURN, 1, {},
                                   create_role_visibility([RoleType.SEER])))

    assert [e.type for e in history.get_events_for_player(WOLF)] == [EventType.WEREWOLF_CHAT]
    assert [e.type for e in history.get_events_for_player(SEER)] == [EventType.SEER_CHECK]
    assert history.get_events_for_player(HUMAN) == []


def test_everything_revealed_after_game_end():
    """Hidden events open up at game end unless the rule says otherwise."""
    history = HistoryManager()
    history.add_event(create_event(EventType.WEREWOLF_KILL, GamePhase.WEREWOLF_TURN, 1, {},
                                   create_team_visibility([Team.WEREWOLF])))
    history.add_event(create_event(EventType.ROLE_ASSIGNED, GamePhase.INIT, 0, {},
                                   VisibilityRule(type=VisibilityType.PRIVATE, allowed_players=("p2",),
                                                  reveal_on_game_end=False)))

    history.set_game_ended()

    visible = history.get_events_for_player(HUMAN)
    assert [e.type for e in visible] == [EventType.WEREWOLF_KILL]
    assert len(history.get_all_events()) == 2


def test_discussion_context_only_shows_earlier_speakers():
    history = HistoryManager()
    history.add_event(speech(1, "Old", "from yesterday"))
    history.add_event(speech(2, "Ann", "I'm a villager."))
    history.add_event(speech(2, "Bob", "So am I."))

    assert history.get_discussion_context(0, 2) == []
    assert history.get_discussion_context(1, 2) == ["Ann: I'm a villager."]
    assert history.get_discussion_context(5, 2) == ["Ann: I'm a villager.", "Bob: So am I."]


def test_last_words_take_no_discussion_slot():
    history = HistoryManager()
    history.add_event(create_event(EventType.PUBLIC_SPEECH, GamePhase.DAY_START, 2,
                                   {"speaker_name": "Eve", "content": "Avenge me."}))
    history.add_event(speech(2, "Ann", "I'm a villager."))

    assert history.get_discussion_context(1, 2) == ["Ann: I'm a villager."]
    assert "Eve: Avenge me." in history.get_full_discussion(2)


def test_full_discussion():
    history = HistoryManager()
    assert history.get_full_discussion(1) == NO_SPEECHES_PLACEHOLDER

    history.add_event(speech(1, "Ann", "Hello."))
    history.add_event(speech(1, "Bob", "Hi."))

    assert history.get_full_discussion(1) == "Ann: Hello.\n\nBob: Hi."
    assert history.get_full_discussion(2) == NO_SPEECHES_PLACEHOLDER


def test_round_summary():
    history = HistoryManager()
    history.add_event(create_event(EventType.NIGHT_RESULT, GamePhase.DAY_START, 1,
                                   {"message": "Last night Player 3 died."}))
    history.add_event(create_event(EventType.VOTE_RESULT, GamePhase.EXECUTION, 1,
                                   {"has_elimination": True, "eliminated_name": "Player 2"}))
    history.add_event(create_event(EventType.VOTE_RESULT, GamePhase.EXECUTION, 2,
                                   {"has_elimination": False, "eliminated_name": None}))

    assert history.get_round_summary(1) == "Last night: Last night Player 3 died.\nExecuted by vote: Player 2"
    assert history.get_round_summary(2) == ""


def test_summary_for_player_respects_visibility():
    history = HistoryManager()
    history.add_event(create_event(EventType.ROLE_ASSIGNED, GamePhase.INIT, 0,
                                   {"role_name": "Seer"}, create_private_visibility(["p3"])))
    history.add_event(speech(1, "Ann", "Hello."))

    assert history.generate_summary_for_player(SEER) == "[Role] You are the Seer\n[Speech] Ann: Hello."
    assert history.generate_summary_for_player(HUMAN) == "[Speech] Ann: Hello."


def test_serialization_keeps_visibility():
    history = HistoryManager()
    history.add_event(create_event(EventType.WEREWOLF_CHAT, GamePhase.INIT, 0,
                                   {"teammate_names": ["Player 2"]},
                                   create_team_visibility([Team.WEREWOLF])))
    history.add_event(speech(1, "Ann", "Hello."))

    restored = HistoryManager.from_json(history.to_json())

    assert restored.get_event_count() == 2
    assert restored.events[0].visibility.allowed_teams == (Team.WEREWOLF,)
    assert restored.get_events_for_player(HUMAN)[0].data["content"] == "Hello."


def test_format_death_shot():
    fired = create_event(EventType.DEATH_SHOT, GamePhase.EXECUTION, 1,
                         {"shooter_name": "Hunter Joe", "target_name": "Player 2"})
    held = create_event(EventType.DEATH_SHOT, GamePhase.EXECUTION, 1,
                        {"shooter_name": "Hunter Joe", "target_name": None})

    assert format_event(fired) == "[Shot] Hunter Joe shot Player 2"
    assert format_event(held) == "[Shot] Hunter Joe held their fire"
