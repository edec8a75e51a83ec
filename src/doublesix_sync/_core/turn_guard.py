# Area: Core
"""Turn ownership checks. Always evaluate against freshly fetched state."""

from typing import Optional

from ..types import GameRecord


def owns_turn(
    actor_account_id: str,
    fallback_account_id: Optional[str],
    record: GameRecord,
) -> bool:
    """True if the turn owner's account is the actor or the co-located second human."""
    if record.status != "active":
        return False
    owner_account = record.current_player.user_id
    if owner_account == actor_account_id:
        return True
    return fallback_account_id is not None and owner_account == fallback_account_id
