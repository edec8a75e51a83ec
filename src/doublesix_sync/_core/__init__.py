# Area: Core
"""
Core sync engine: keeps the local view of a game consistent with the
authoritative service and drives the autoplay opponent.

This package handles:
- Canonical state mirror and polling
- Turn ownership checks and action dispatch
- Autoplay decisions
- Double-six forfeiture windows
- End-game reconciliation
"""

from .enums import (
    ActionKind,
    AutoplayEvent,
    AutoplayState,
    FinalizeSource,
    ForfeitureEvent,
    ForfeitureState,
)
from .mirror import CanonicalStateMirror
from .scheduler import ContinuationScheduler
from .turn_guard import owns_turn
from .dispatcher import ActionDispatcher, LocalSeats
from .forfeiture import ForfeitureHandler
from .autoplay import AutoplayController, decide_action
from .end_game import EndGameReconciler
from .game_result import FinalizeResult
from .poller import StatePoller
from .session import GameSession

__all__ = [
    "ActionKind",
    "AutoplayEvent",
    "AutoplayState",
    "FinalizeSource",
    "ForfeitureEvent",
    "ForfeitureState",
    "CanonicalStateMirror",
    "ContinuationScheduler",
    "owns_turn",
    "ActionDispatcher",
    "LocalSeats",
    "ForfeitureHandler",
    "AutoplayController",
    "decide_action",
    "EndGameReconciler",
    "FinalizeResult",
    "StatePoller",
    "GameSession",
]
