# Area: Core
"""
doublesix_sync._core.game_result — Finalize result dataclass
============================================================

Returned by the end-game reconciler. Carries the final record and who
decided it, so that a locally computed result is never mistaken for a
server-confirmed one.
"""

from dataclasses import dataclass
from typing import Optional

from ..types import GameRecord, Player
from .enums import FinalizeSource


@dataclass
class FinalizeResult:
    """
    Outcome of ending a game.

    Attributes:
        record: Final game record (server response, or the local fallback copy)
        source: SERVER when the service decided, LOCAL_FALLBACK otherwise
        via_bank: True if the pre-finalize bank alone finished the game
    """

    record: GameRecord
    source: FinalizeSource = FinalizeSource.SERVER
    via_bank: bool = False

    @property
    def is_tie(self) -> bool:
        return self.record.status == "finished" and self.record.winner_id is None

    @property
    def is_provisional(self) -> bool:
        return self.source is FinalizeSource.LOCAL_FALLBACK

    @property
    def winner(self) -> Optional[Player]:
        if self.record.winner_id is None:
            return None
        return self.record.player_by_id(self.record.winner_id)
