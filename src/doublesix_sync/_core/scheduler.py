# Area: Core
"""
doublesix_sync._core.scheduler — Cancellable delayed continuations
==================================================================

Holds continuations (autoplay think delay, double-six display window)
keyed by a tuple whose first element is the game id. The runner calls
run_due() on every tick; nothing fires on its own, so tearing down a
game is a matter of cancelling its keys.

Scheduling under an existing key replaces the previous continuation.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Tuple

logger = logging.getLogger("doublesix_sync.scheduler")

Key = Tuple[Hashable, ...]


@dataclass
class Continuation:
    key: Key
    due_at: float
    callback: Callable[..., Any]
    args: Tuple[Any, ...] = field(default_factory=tuple)

    @property
    def game_id(self) -> Hashable:
        return self.key[0]


class ContinuationScheduler:
    """Monotonic-clock continuation table keyed by (game_id, ...)."""

    def __init__(self) -> None:
        self._pending: Dict[Key, Continuation] = {}

    def schedule(
        self, key: Key, delay_seconds: float, callback: Callable[..., Any], *args: Any,
    ) -> None:
        """Schedule (or replace) the continuation stored under key."""
        due_at = time.monotonic() + max(0.0, delay_seconds)
        self._pending[key] = Continuation(key, due_at, callback, args)
        logger.debug("Scheduled %s in %.2fs", key, delay_seconds)

    def is_pending(self, key: Key) -> bool:
        return key in self._pending

    def cancel(self, key: Key) -> None:
        """Cancel one continuation. No-op if not found."""
        if self._pending.pop(key, None) is not None:
            logger.debug("Cancelled %s", key)

    def cancel_game(self, game_id: Hashable) -> None:
        """Cancel every continuation belonging to a game."""
        keys = [k for k in self._pending if k[0] == game_id]
        for key in keys:
            del self._pending[key]
        if keys:
            logger.debug("Cancelled %d continuation(s) for game %s", len(keys), game_id)

    def run_due(self) -> int:
        """
        Run every continuation that was due when this call started.

        Continuations scheduled by a callback wait for the next call, so a
        zero-delay reschedule cannot spin inside one tick. Returns the
        number of callbacks run.
        """
        now = time.monotonic()
        due: List[Continuation] = sorted(
            (c for c in self._pending.values() if now >= c.due_at),
            key=lambda c: c.due_at,
        )
        ran = 0
        for continuation in due:
            # an earlier callback may have cancelled or replaced this one
            if self._pending.get(continuation.key) is not continuation:
                continue
            del self._pending[continuation.key]
            ran += 1
            try:
                continuation.callback(*continuation.args)
            except Exception as e:
                logger.error(
                    "Continuation %s failed: %s", continuation.key, e, exc_info=True,
                )
        return ran

    def clear(self) -> None:
        """Remove all pending continuations."""
        self._pending.clear()
        logger.debug("All continuations cleared")

    def __len__(self) -> int:
        return len(self._pending)
