"""
Tests for board validation and role dealing.
"""

import random
from collections import Counter

import pytest

from werewolf.config.game_config import GameConfig, ADVANCED_BOARD
from werewolf.core import (
    GameConfigError,
    RoleType,
    distribute_roles,
    generate_role_list,
    validate_game_config,
    generate_default_npc_characters,
)
from werewolf.core.role_distribution import shuffle


def test_generate_role_list_expands_counts():
    roles = generate_role_list(GameConfig())

    assert Counter(roles) == Counter({RoleType.WEREWOLF: 2, RoleType.SEER: 1, RoleType.VILLAGER: 3})


def test_shuffle_is_seeded_and_non_destructive():
    """Same seed gives the same order; the input list is left alone."""
    items = list(range(10))

    first = shuffle(items, random.Random(3))
    second = shuffle(items, random.Random(3))

    assert first == second
    assert sorted(first) == items
    assert items == list(range(10))


@pytest.mark.parametrize("overrides, field", [
    ({"villager_count": -1, "player_count": 2}, "villager_count"),
    ({"villager_count": 4}, "player_count"),
    ({"werewolf_count": 0, "villager_count": 5}, "werewolf_count"),
    ({"werewolf_count": 3, "villager_count": 2}, "werewolf_count"),
    ({"seer_count": 2, "villager_count": 2}, "seer_count"),
    ({"witch_count": 2, "villager_count": 1}, "witch_count"),
])
def test_validate_rejects_unplayable_boards(overrides, field):
    """Each rejection names the offending field."""
    with pytest.raises(GameConfigError) as exc_info:
        validate_game_config(GameConfig(**overrides))

    assert exc_info.value.field == field


def test_validate_accepts_shipped_boards():
    validate_game_config(GameConfig())
    validate_game_config(ADVANCED_BOARD)


def test_distribute_roles_deals_every_role_once():
    """Seats 1..N, one human, NPC ids derived from the seat."""
    players = distribute_roles(6, GameConfig(), "human", rng=random.Random(5))

    assert sorted(p.seat_number for p in players) == [1, 2, 3, 4, 5, 6]
    assert Counter(p.role for p in players) == Counter(generate_role_list(GameConfig()))
    humans = [p for p in players if p.is_human]
    assert len(humans) == 1
    assert humans[0].id == "human"
    for npc in (p for p in players if not p.is_human):
        assert npc.id == f"npc_{npc.seat_number}"
        assert npc.display_name == f"Player {npc.seat_number}"


def test_distribute_roles_is_deterministic_for_a_seed():
    first = distribute_roles(9, ADVANCED_BOARD, "human", rng=random.Random(11))
    second = distribute_roles(9, ADVANCED_BOARD, "human", rng=random.Random(11))

    assert [(p.id, p.role) for p in first] == [(p.id, p.role) for p in second]


def test_distribute_roles_attaches_profiles_in_seat_order():
    profiles = generate_default_npc_characters(5)

    players = distribute_roles(6, GameConfig(), "human", profiles, rng=random.Random(2), human_name="Alex")

    npcs = [p for p in players if not p.is_human]
    assert [p.display_name for p in npcs] == [c.name for c in profiles]
    assert [p.character for p in npcs] == profiles
    assert next(p for p in players if p.is_human).display_name == "Alex"


def test_forced_human_role_keeps_the_board():
    """Forcing the human's role swaps seats instead of changing the role multiset."""
    expected = Counter(generate_role_list(ADVANCED_BOARD))
    for seed in range(20):
        players = distribute_roles(9, ADVANCED_BOARD, "human",
                                   forced_human_role=RoleType.WITCH, rng=random.Random(seed))

        human = next(p for p in players if p.is_human)
        assert human.role == RoleType.WITCH
        assert Counter(p.role for p in players) == expected


def test_forced_role_missing_from_board():
    with pytest.raises(GameConfigError):
        distribute_roles(6, GameConfig(), "human", forced_human_role=RoleType.WITCH, rng=random.Random(1))


def test_default_roster():
    """The built-in roster hands out copies with unique names."""
    roster = generate_default_npc_characters(6)

    assert len({c.name for c in roster}) == 6
    assert len(generate_default_npc_characters(3)) == 3

    roster[0].name = "Changed"
    assert generate_default_npc_characters(1)[0].name != "Changed"
