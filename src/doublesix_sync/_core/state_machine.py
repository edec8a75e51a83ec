# Area: Core
"""
doublesix_sync._core.state_machine — Table-driven state machines
================================================================

Both per-game machines (autoplay controller and forfeiture handler)
are small transition tables. This module holds the tables and one
machine class that validates and executes transitions against them.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from .enums import (
    AutoplayEvent,
    AutoplayState,
    ForfeitureEvent,
    ForfeitureState,
)

logger = logging.getLogger("doublesix_sync.state_machine")


# Valid transitions: {current_state: {event: next_state}}
AUTOPLAY_TRANSITIONS = {
    AutoplayState.IDLE: {
        AutoplayEvent.TURN_OBSERVED: AutoplayState.DECIDING,
    },
    AutoplayState.DECIDING: {
        AutoplayEvent.DECISION_MADE: AutoplayState.ACTING,
        AutoplayEvent.DECISION_ABORTED: AutoplayState.IDLE,
    },
    AutoplayState.ACTING: {
        AutoplayEvent.ACTION_SETTLED: AutoplayState.IDLE,
    },
}

FORFEITURE_TRANSITIONS = {
    ForfeitureState.QUIET: {
        ForfeitureEvent.DOUBLE_SIX: ForfeitureState.ACTIVE,
    },
    ForfeitureState.ACTIVE: {
        ForfeitureEvent.WINDOW_ELAPSED: ForfeitureState.QUIET,
        ForfeitureEvent.DISMISSED: ForfeitureState.QUIET,
    },
}


class StateMachine:
    """
    Tracks the current state and validates/executes transitions.

    Attributes:
        name: Label used in log lines
        current_state: The current state
        initial_state: State restored by reset()
    """

    def __init__(self, name: str, transitions: Dict[Enum, Dict[Enum, Enum]], initial_state: Enum):
        self.name = name
        self.transitions = transitions
        self.initial_state = initial_state
        self.current_state = initial_state

    def can_transition(self, event: Enum) -> bool:
        """
        Check if a transition is valid from current state.

        Args:
            event: The event to check

        Returns:
            True if the transition is valid, False otherwise
        """
        return event in self.transitions.get(self.current_state, {})

    def transition(self, event: Enum) -> Enum:
        """
        Execute a state transition.

        Raises:
            ValueError: If the transition is not valid from the current state
        """
        if not self.can_transition(event):
            raise ValueError(
                f"{self.name}: invalid transition {event.value} from {self.current_state.value}"
            )
        previous = self.current_state
        self.current_state = self.transitions[self.current_state][event]
        logger.debug(
            "%s: %s --%s--> %s",
            self.name, previous.value, event.value, self.current_state.value,
        )
        return self.current_state

    def reset(self) -> None:
        """Return to the initial state."""
        self.current_state = self.initial_state

    def is_in(self, state: Enum) -> bool:
        return self.current_state == state


def autoplay_machine(game_id: Optional[str] = None) -> StateMachine:
    return StateMachine(f"autoplay[{game_id}]", AUTOPLAY_TRANSITIONS, AutoplayState.IDLE)


def forfeiture_machine(game_id: str) -> StateMachine:
    return StateMachine(f"forfeiture[{game_id}]", FORFEITURE_TRANSITIONS, ForfeitureState.QUIET)
