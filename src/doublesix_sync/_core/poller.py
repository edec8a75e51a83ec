# Area: Core
"""
doublesix_sync._core.poller — Canonical state poller
====================================================

While a game is active and in view, re-fetches it every interval and
publishes the record to the mirror. Read-only; failures are logged and
polling carries on at the next interval.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from ..errors import ServiceError
from .dispatcher import ActionDispatcher

logger = logging.getLogger("doublesix_sync.poller")

DEFAULT_INTERVAL_SECONDS = 2.0


class StatePoller:
    def __init__(self, dispatcher: ActionDispatcher, interval_seconds: float = DEFAULT_INTERVAL_SECONDS):
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds
        self.in_view = True
        self._next_due: Optional[float] = None

    def pause(self) -> None:
        """The game left the view (menu, game list)."""
        self.in_view = False

    def resume(self) -> None:
        self.in_view = True
        self._next_due = None

    def tick(self) -> bool:
        """Poll if due. Returns True when a fetch was made."""
        record = self.dispatcher.mirror.record
        if record is None or record.status != "active" or not self.in_view:
            self._next_due = None
            return False
        now = time.monotonic()
        if self._next_due is not None and now < self._next_due:
            return False
        self._next_due = now + self.interval_seconds
        try:
            self.dispatcher.refresh(record.id)
        except ServiceError as e:
            logger.warning("Failed to refresh game state: %s", e.user_message)
        return True
