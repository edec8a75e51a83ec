# Area: Core
"""
doublesix_sync._core.forfeiture — Double-six forfeiture handler
===============================================================

Watches every roll the dispatcher issues. A double six opens a display
window on that game during which all other mutating actions are
suppressed. When the window elapses, or the user dismisses it early, the
handler banks on the roller's behalf if the roller still owns the turn.
The server is expected to have switched the turn already; if it did
not, that is logged as a consistency warning and the forced bank is
what moves the game on.

Each outcome (game, dice, timestamp) triggers the handler at most once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Set, Tuple

from ..errors import ActionInProgressError, ConsistencyWarning, ServiceError, StaleTurnError
from ..types import Credential, GameRecord, RollResponse
from .._shared.logging_config import log_consistency_warning
from .dispatcher import ActionDispatcher
from .enums import ForfeitureEvent, ForfeitureState
from .scheduler import ContinuationScheduler
from .state_machine import StateMachine, forfeiture_machine

logger = logging.getLogger("doublesix_sync.forfeiture")

OutcomeKey = Tuple[str, int, int, int]
ExitListener = Callable[[str], None]

DEFAULT_WINDOW_SECONDS = 3.0


@dataclass(frozen=True)
class ForfeitureWindow:
    outcome: OutcomeKey
    roller_player_id: str
    roller_credential: Credential


def check_forfeit_response(before: GameRecord, response: RollResponse) -> List[str]:
    """List the ways a double-six response breaks the forfeiture rule."""
    after = response.game_state
    roller_id = before.current_player_id
    problems = []
    if not response.is_double_six:
        problems.append("isDoubleSix flag is false for a 6+6 roll")
    if after.round_score_of(roller_id) != 0:
        problems.append(
            f"roller round score is {after.round_score_of(roller_id)}, expected 0"
        )
    if after.current_player_id == roller_id:
        problems.append("turn did not switch away from the roller")
    if before.status == "active" and after.status != "active":
        problems.append(f"status changed from active to {after.status}")
    return problems


class ForfeitureHandler:
    def __init__(
        self,
        dispatcher: ActionDispatcher,
        scheduler: ContinuationScheduler,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
    ):
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.window_seconds = window_seconds
        self._machines: Dict[str, StateMachine] = {}
        self._windows: Dict[str, ForfeitureWindow] = {}
        self._triggered: Set[OutcomeKey] = set()
        self._exit_listeners: List[ExitListener] = []
        dispatcher.add_roll_observer(self.on_roll)
        dispatcher.add_suppressor(self.is_active)

    def add_exit_listener(self, listener: ExitListener) -> None:
        self._exit_listeners.append(listener)

    def state(self, game_id: str) -> ForfeitureState:
        return self._machine(game_id).current_state

    def is_active(self, game_id: str) -> bool:
        return self._machine(game_id).is_in(ForfeitureState.ACTIVE)

    def on_roll(
        self,
        game_id: str,
        before: GameRecord,
        response: RollResponse,
        credential: Credential,
    ) -> None:
        dice = response.dice
        if not dice.is_double_six:
            if response.is_double_six:
                log_consistency_warning(ConsistencyWarning(
                    game_id, "double_six_flag",
                    [f"isDoubleSix set for {dice.die1}+{dice.die2}"],
                ))
            return

        outcome = (game_id, dice.die1, dice.die2, dice.timestamp)
        if outcome in self._triggered:
            logger.debug("Outcome %s already handled", outcome)
            return
        self._triggered.add(outcome)

        problems = check_forfeit_response(before, response)
        if problems:
            log_consistency_warning(ConsistencyWarning(
                game_id, "double_six_forfeit", problems,
                payload=response.model_dump(mode="json", by_alias=True),
            ))

        machine = self._machine(game_id)
        if not machine.can_transition(ForfeitureEvent.DOUBLE_SIX):
            logger.warning("Double six on %s while a window is already open", game_id)
            return
        machine.transition(ForfeitureEvent.DOUBLE_SIX)
        self._windows[game_id] = ForfeitureWindow(
            outcome=outcome,
            roller_player_id=before.current_player_id,
            roller_credential=credential,
        )
        logger.info(
            "Double six on %s by %s, window open for %.1fs",
            game_id, before.current_player.username, self.window_seconds,
            extra={"game_id": game_id},
        )
        self.scheduler.schedule(
            self._key(game_id), self.window_seconds, self._on_window_elapsed, game_id, outcome,
        )

    def dismiss(self, game_id: str) -> bool:
        """User acknowledged the double six early. Returns False if no window was open."""
        if not self.is_active(game_id):
            return False
        self.scheduler.cancel(self._key(game_id))
        self._close(game_id, ForfeitureEvent.DISMISSED)
        return True

    def cancel(self, game_id: str) -> None:
        """Drop any window on this game without banking (abandon, teardown)."""
        self.scheduler.cancel(self._key(game_id))
        self._windows.pop(game_id, None)
        self._machines.pop(game_id, None)
        self._triggered = {key for key in self._triggered if key[0] != game_id}

    def _on_window_elapsed(self, game_id: str, outcome: OutcomeKey) -> None:
        window = self._windows.get(game_id)
        if window is None or window.outcome != outcome:
            logger.debug("Stale window timer for %s ignored", game_id)
            return
        self._close(game_id, ForfeitureEvent.WINDOW_ELAPSED)

    def _close(self, game_id: str, event: ForfeitureEvent) -> None:
        window = self._windows[game_id]
        try:
            self._bank_if_roller_still_owns(game_id, window)
        finally:
            self._windows.pop(game_id, None)
            self._machine(game_id).transition(event)
        for listener in list(self._exit_listeners):
            listener(game_id)

    def _bank_if_roller_still_owns(self, game_id: str, window: ForfeitureWindow) -> None:
        try:
            record = self.dispatcher.refresh(game_id)
            if record.status != "active" or record.current_player_id != window.roller_player_id:
                return
            logger.warning(
                "Roller still owns %s after double six, forcing bank", game_id,
                extra={"game_id": game_id},
            )
            self.dispatcher.bank(game_id, credential_override=window.roller_credential, forced=True)
        except StaleTurnError:
            logger.debug("Turn moved on %s before the forced bank", game_id)
        except ActionInProgressError:
            logger.info("Forced bank on %s skipped, another action in flight", game_id)
        except ServiceError as e:
            logger.warning("Forced bank on %s failed: %s", game_id, e.user_message)

    def _machine(self, game_id: str) -> StateMachine:
        if game_id not in self._machines:
            self._machines[game_id] = forfeiture_machine(game_id)
        return self._machines[game_id]

    @staticmethod
    def _key(game_id: str) -> Tuple[str, str]:
        return (game_id, "forfeiture")
