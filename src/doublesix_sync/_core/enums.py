# Area: Core
"""
doublesix_sync._core.enums — Core state machine enums
=====================================================

States and events for the two per-game state machines (autoplay and
double-six forfeiture), plus the action kinds the dispatcher issues.
"""

from enum import Enum


class AutoplayState(Enum):
    """
    States of the autoplay controller.

    State transitions:
    IDLE -> DECIDING (on TURN_OBSERVED, new signature, no forfeiture window)
    DECIDING -> ACTING (on DECISION_MADE)
    DECIDING -> IDLE (on DECISION_ABORTED: owner changed or fetch failed)
    ACTING -> IDLE (on ACTION_SETTLED)
    Any state -> IDLE (on RESET)
    """
    IDLE = "IDLE"
    DECIDING = "DECIDING"
    ACTING = "ACTING"


class AutoplayEvent(Enum):
    TURN_OBSERVED = "TURN_OBSERVED"
    DECISION_MADE = "DECISION_MADE"
    DECISION_ABORTED = "DECISION_ABORTED"
    ACTION_SETTLED = "ACTION_SETTLED"


class ForfeitureState(Enum):
    """
    States of the double-six forfeiture handler.

    QUIET -> ACTIVE (on DOUBLE_SIX)
    ACTIVE -> QUIET (on WINDOW_ELAPSED or DISMISSED)
    """
    QUIET = "QUIET"
    ACTIVE = "ACTIVE"


class ForfeitureEvent(Enum):
    DOUBLE_SIX = "DOUBLE_SIX"
    WINDOW_ELAPSED = "WINDOW_ELAPSED"
    DISMISSED = "DISMISSED"


class ActionKind(Enum):
    """Mutating calls routed through the dispatcher."""
    ROLL = "roll"
    BANK = "bank"
    NEW_GAME = "new_game"
    END_GAME = "end_game"
    DELETE_GAME = "delete_game"


class FinalizeSource(Enum):
    """Who decided the final result of a game."""
    SERVER = "server"
    LOCAL_FALLBACK = "local_fallback"
