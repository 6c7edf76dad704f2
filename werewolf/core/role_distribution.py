"""
Role distribution: config validation, shuffling and seat assignment.
"""

import logging
import random
from dataclasses import replace
from typing import List, Optional, Sequence, TypeVar

from .exceptions import GameConfigError, ensure
from .player import Player, NpcCharacter, create_player
from .roles import RoleType, is_werewolf_team
from ..config.game_config import GameConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Expansion order for generate_role_list
ROLE_ORDER = [
    RoleType.WEREWOLF,
    RoleType.WOLF_KING,
    RoleType.SEER,
    RoleType.WITCH,
    RoleType.HUNTER,
    RoleType.GUARD,
    RoleType.VILLAGER,
]

UNIQUE_ROLES = (RoleType.SEER, RoleType.WITCH, RoleType.GUARD)


def generate_role_list(config: GameConfig) -> List[RoleType]:
    """Expand per-role counts into a flat list of roles."""
    counts = config.role_counts()
    roles: List[RoleType] = []
    for role in ROLE_ORDER:
        roles.extend([role] * counts[role.value])
    return roles


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Fisher-Yates shuffle into a new list."""
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def validate_game_config(config: GameConfig) -> None:
    """
    Check that a board can be played.

    Raises:
        GameConfigError: naming the offending field
    """
    counts = config.role_counts()

    for role_tag, count in counts.items():
        if count < 0:
            raise GameConfigError(f"Role count for {role_tag} cannot be negative (got {count})",
                                  field=f"{role_tag.lower()}_count")

    total = sum(counts.values())
    if total != config.player_count:
        raise GameConfigError(
            f"Role total ({total}) does not match player count ({config.player_count})",
            field="player_count",
        )

    wolves = sum(count for tag, count in counts.items() if is_werewolf_team(RoleType(tag)))
    if wolves < 1:
        raise GameConfigError("At least one werewolf is required", field="werewolf_count")
    if wolves >= config.player_count / 2:
        raise GameConfigError(
            f"Werewolves ({wolves}) must be fewer than half of {config.player_count} players",
            field="werewolf_count",
        )

    for role in UNIQUE_ROLES:
        if counts[role.value] > 1:
            raise GameConfigError(f"At most one {role.value.title()} is allowed",
                                  field=f"{role.value.lower()}_count")


def distribute_roles(player_count: int, config: GameConfig, human_player_id: str,
                     npc_profiles: Optional[List[NpcCharacter]] = None,
                     forced_human_role: Optional[RoleType] = None,
                     rng: Optional[random.Random] = None,
                     human_name: Optional[str] = None) -> List[Player]:
    """
    Deal roles and seats.

    The human sits at a uniformly random seat; NPCs get ``npc_<seat>`` ids and
    the profiles in order. With ``forced_human_role`` the human's role is swapped
    with the first seat holding that role, so the role multiset is unchanged.
    The human is shown as ``human_name`` when one is given.
    """
    rng = rng or random.Random()
    npc_profiles = npc_profiles or []

    roles = shuffle(generate_role_list(config), rng)
    if len(roles) != player_count:
        raise GameConfigError(
            f"Role total ({len(roles)}) does not match player count ({player_count})",
            field="player_count",
        )

    human_seat = rng.randint(1, player_count)

    if forced_human_role is not None and roles[human_seat - 1] != forced_human_role:
        if forced_human_role not in roles:
            raise GameConfigError(f"Role {forced_human_role.value} is not on this board",
                                  field="forced_human_role")
        swap_index = roles.index(forced_human_role)
        roles[human_seat - 1], roles[swap_index] = roles[swap_index], roles[human_seat - 1]

    players: List[Player] = []
    npc_index = 0
    for seat in range(1, player_count + 1):
        role = roles[seat - 1]
        if seat == human_seat:
            human = create_player(human_player_id, seat, role, is_human=True)
            if human_name:
                human.display_name = human_name
            players.append(human)
            continue
        profile = npc_profiles[npc_index] if npc_index < len(npc_profiles) else None
        npc_index += 1
        players.append(create_player(f"npc_{seat}", seat, role, is_human=False, character=profile))

    ensure(sum(1 for p in players if p.is_human) == 1, "Exactly one human seat is required")
    ensure(sorted(p.seat_number for p in players) == list(range(1, player_count + 1)),
           "Seat numbers must cover 1..N exactly once")
    logger.debug("Distributed roles: %s", [(p.seat_number, p.role.value) for p in players])
    return players


DEFAULT_NPC_CHARACTERS = [
    NpcCharacter(
        name="Marcus Hale",
        age=35,
        profession="Debt collector",
        personality="Calm and sharp-eyed, slow to trust anyone",
        speech_style="Blunt street talk, short sentences",
        catchphrase="You can run from a debt, but not forever.",
    ),
    NpcCharacter(
        name="Rosa Lin",
        age=26,
        profession="Roadside kiosk vendor",
        personality="Fiery and outspoken, quick to read a room",
        speech_style="Sweet tone with a sharp edge, full of slang",
        catchphrase="Hey handsome, buying anything today?",
    ),
    NpcCharacter(
        name="Big Long",
        age=42,
        profession="Motorbike repair shop owner",
        personality="Loyal to friends, hot-tempered, sentimental",
        speech_style="Loud and brotherly, calls everyone 'bro'",
        catchphrase="Brothers stand by brothers!",
    ),
    NpcCharacter(
        name="Andy",
        age=22,
        profession="Livestreamer",
        personality="Chatty and vain but secretly naive",
        speech_style="Influencer speak, memes and rapid-fire delivery",
        catchphrase="Fam, you have to hear this!",
    ),
    NpcCharacter(
        name="Auntie Hua",
        age=48,
        profession="Night market stall keeper",
        personality="Shrewd, gossipy, soft-hearted under a tough shell",
        speech_style="Rambling and motherly, always has the latest rumor",
        catchphrase="Oh please, I knew that ages ago!",
    ),
    NpcCharacter(
        name="Tai",
        age=29,
        profession="Tattoo artist",
        personality="Cool on the outside, observant and artistic",
        speech_style="Few words, the occasional philosophical line",
        catchphrase="A heart is harder to read than skin.",
    ),
]


def generate_default_npc_characters(count: int) -> List[NpcCharacter]:
    """Built-in roster used when profile generation is unavailable."""
    if count > len(DEFAULT_NPC_CHARACTERS):
        logger.warning("Only %d default NPC profiles exist, %d requested",
                       len(DEFAULT_NPC_CHARACTERS), count)
    return [replace(c) for c in DEFAULT_NPC_CHARACTERS[:max(count, 0)]]
