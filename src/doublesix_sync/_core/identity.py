# Area: Core
"""
doublesix_sync._core.identity — Autoplay identity recognition
=============================================================

Decides whether a seat is played by the autoplay opponent.

Order of evidence:
1. Seats of the accounts signed in on this client are human.
2. The seat's explicit ``role`` tag, when the service sends one.
3. The autoplay identity this client holds (account id or name).
4. Legacy fallback: the display name starts with one of the generated
   name prefixes. Human accounts whose names collide with a prefix are
   misclassified by this rule, which is why it only applies to seats
   without a role tag.
"""

import random
import secrets
from typing import Collection, Optional

from ..types import AutoplayIdentity, GameRecord, Player

NAME_PREFIXES = (
    "Shadow", "Neon", "Cyber", "Quantum", "Nova", "Vortex", "Phantom", "Echo",
    "Blaze", "Storm", "Frost", "Thunder", "Cosmic", "Astral", "Mystic", "Razor",
    "Swift", "Iron", "Steel", "Crystal",
)

NAME_SUFFIXES = (
    "Dice", "Roller", "Master", "Champion", "Legend", "Warrior", "Hunter",
    "Striker", "Slayer", "Guardian", "Sentinel", "Vanguard", "Ace", "Pro",
    "Elite", "Prime", "Alpha", "Omega", "Nexus", "Core",
)


def generate_name(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    return f"{rng.choice(NAME_PREFIXES)}{rng.choice(NAME_SUFFIXES)}"


def generate_password() -> str:
    return f"ai_{secrets.token_urlsafe(12)}"


def has_autoplay_name(username: str) -> bool:
    return username.startswith(NAME_PREFIXES)


def is_autoplay_player(
    player: Player,
    identity: Optional[AutoplayIdentity] = None,
    humans: Collection[str] = (),
) -> bool:
    """Whether this seat is played by the autoplay opponent.

    ``humans`` holds the account ids signed in locally as people.
    """
    if player.user_id in humans:
        return False
    if player.role is not None:
        return player.role == "autoplay"
    if identity is not None and (
        player.user_id == identity.account_id or player.username == identity.display_name
    ):
        return True
    return has_autoplay_name(player.username)


def autoplay_seat(
    record: GameRecord,
    identity: Optional[AutoplayIdentity] = None,
    humans: Collection[str] = (),
) -> Optional[Player]:
    """The autoplay seat of a game, if it has one."""
    for player in record.players:
        if is_autoplay_player(player, identity, humans):
            return player
    return None


def has_autoplay_opponent(
    record: GameRecord,
    identity: Optional[AutoplayIdentity] = None,
    humans: Collection[str] = (),
) -> bool:
    """Whether the invited seat (player 2) is played by the autoplay opponent."""
    return is_autoplay_player(record.player2, identity, humans)
