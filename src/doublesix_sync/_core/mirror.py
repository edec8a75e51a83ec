# Area: Core
"""
doublesix_sync._core.mirror — Canonical state mirror
====================================================

Last known authoritative record for the game in view, plus the last
dice outcome. Only server responses are written here (the local
fallback finalize is the one documented exception). Writes replace the
whole record; subscribers are told after every write.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..types import DiceOutcome, GameRecord

logger = logging.getLogger("doublesix_sync.mirror")

Subscriber = Callable[[GameRecord], None]


class CanonicalStateMirror:
    def __init__(self) -> None:
        self.record: Optional[GameRecord] = None
        self.last_dice: Optional[DiceOutcome] = None
        self._subscribers: List[Subscriber] = []

    @property
    def game_id(self) -> Optional[str]:
        return self.record.id if self.record else None

    def subscribe(self, callback: Subscriber) -> None:
        self._subscribers.append(callback)

    def publish(self, record: GameRecord, dice: Optional[DiceOutcome] = None) -> None:
        """Replace the mirrored record and notify subscribers."""
        if self.record is not None and self.record.id != record.id:
            logger.info("Mirror switched from game %s to %s", self.record.id, record.id)
            self.last_dice = None
        self.record = record
        if dice is not None:
            self.last_dice = dice
        for callback in list(self._subscribers):
            callback(record)

    def clear_dice(self) -> None:
        self.last_dice = None

    def clear(self) -> None:
        """Forget the game in view (abandon, back to menu, teardown)."""
        self.record = None
        self.last_dice = None
