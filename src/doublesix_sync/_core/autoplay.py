# Area: Core
"""
doublesix_sync._core.autoplay — Autoplay controller
===================================================

Plays the autoplay opponent's turns with a fixed policy: bank once the
round score reaches the threshold, otherwise roll.

The controller reacts to mirror updates. Each distinct state signature
(turn owner, updatedAt) is reacted to at most once: when the autoplay
seat owns the turn, the controller moves IDLE -> DECIDING and schedules
its decision after a short think delay. The decision re-reads the game
straight from the service, re-checks the owner, and dispatches with the
autoplay credential (ACTING). A plain roll keeps the turn, so the
controller goes back to IDLE and immediately re-qualifies on the new
signature; a bank or a double six passes the turn and clears the marker.
"""

from __future__ import annotations

import logging
from typing import Optional, Set, Tuple

from ..errors import ActionInProgressError, ServiceError, StaleTurnError
from ..types import AutoplayIdentity, GameRecord, Player, StateSignature
from .._shared.api_client import GameServiceClient
from .._shared.storage import CredentialVault
from .dispatcher import ActionDispatcher
from .enums import ActionKind, AutoplayEvent, AutoplayState
from .forfeiture import ForfeitureHandler
from .identity import generate_name, generate_password, is_autoplay_player
from .mirror import CanonicalStateMirror
from .scheduler import ContinuationScheduler
from .state_machine import autoplay_machine

logger = logging.getLogger("doublesix_sync.autoplay")

DEFAULT_BANK_THRESHOLD = 87
DEFAULT_DELAY_SECONDS = 1.0


def decide_action(round_score: int, bank_threshold: int = DEFAULT_BANK_THRESHOLD) -> ActionKind:
    """Bank at or above the threshold, roll below it."""
    if round_score >= bank_threshold:
        return ActionKind.BANK
    return ActionKind.ROLL


class AutoplayController:
    def __init__(
        self,
        client: GameServiceClient,
        mirror: CanonicalStateMirror,
        dispatcher: ActionDispatcher,
        forfeiture: ForfeitureHandler,
        scheduler: ContinuationScheduler,
        vault: CredentialVault,
        bank_threshold: int = DEFAULT_BANK_THRESHOLD,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
    ):
        self.client = client
        self.mirror = mirror
        self.dispatcher = dispatcher
        self.forfeiture = forfeiture
        self.scheduler = scheduler
        self.vault = vault
        self.bank_threshold = bank_threshold
        self.delay_seconds = delay_seconds
        self.machine = autoplay_machine()
        self.processed_signature: Optional[StateSignature] = None
        self._game_id: Optional[str] = None
        self._owner_player_id: Optional[str] = None
        self._recovery_attempted: Set[str] = set()
        mirror.subscribe(self.on_state)
        forfeiture.add_exit_listener(self._on_forfeiture_closed)

    @property
    def state(self) -> AutoplayState:
        return self.machine.current_state

    @property
    def identity(self) -> Optional[AutoplayIdentity]:
        return self.dispatcher.seats.autoplay

    @identity.setter
    def identity(self, value: Optional[AutoplayIdentity]) -> None:
        self.dispatcher.seats.autoplay = value

    # ── identity lifecycle ─────────────────────────────────────

    def register_identity(self) -> AutoplayIdentity:
        """Create a fresh autoplay account and remember its credentials."""
        name = generate_name()
        password = generate_password()
        auth = self.client.register(name, password)
        self.vault.save_autoplay(name, password)
        self.identity = AutoplayIdentity(
            account_id=auth.user.id,
            token=auth.token,
            display_name=auth.user.username,
            password=password,
        )
        logger.info("Registered autoplay opponent %s", self.identity.display_name)
        return self.identity

    def recover(self, seat: Player) -> bool:
        """
        Re-acquire a credential for an autoplay seat after a restart.

        Tries the persisted credentials first when they match the seat's
        name, then registers a new identity. Never raises.
        """
        saved = self.vault.load_autoplay()
        if saved and saved["username"] == seat.username:
            try:
                auth = self.client.login(saved["username"], saved["password"])
                self.identity = AutoplayIdentity(
                    account_id=auth.user.id,
                    token=auth.token,
                    display_name=auth.user.username,
                    password=saved["password"],
                )
                logger.info("Autoplay opponent %s restored by login", seat.username)
                return True
            except ServiceError as e:
                logger.info("Autoplay login as %s failed, registering: %s", seat.username, e)
        try:
            self.register_identity()
        except ServiceError as e:
            logger.error("Could not restore autoplay opponent: %s", e.user_message)
            return False
        return True

    def clear(self) -> None:
        """Forget the autoplay identity (human opponent chosen, game abandoned)."""
        if self._game_id is not None:
            self.cancel(self._game_id)
        self.identity = None
        self._recovery_attempted.clear()

    def cancel(self, game_id: str) -> None:
        """Drop pending decisions for a game and return to IDLE."""
        self.scheduler.cancel(self._key(game_id))
        if self._game_id == game_id:
            self._reset()

    # ── state reactions ────────────────────────────────────────

    def on_state(self, record: GameRecord) -> None:
        if self._game_id is not None and record.id != self._game_id:
            self.cancel(self._game_id)
        # the settle step re-evaluates once the action returns
        if self.machine.is_in(AutoplayState.ACTING):
            return
        if record.status != "active":
            self._reset()
            return

        owner = record.current_player
        if not is_autoplay_player(owner, self.identity, self.dispatcher.seats.human_ids()):
            self._reset()
            return

        if self.identity is None and record.id not in self._recovery_attempted:
            self._recovery_attempted.add(record.id)
            self.recover(owner)
        if self.identity is None or self.identity.account_id != owner.user_id:
            return

        if self.forfeiture.is_active(record.id):
            return
        if not self.machine.is_in(AutoplayState.IDLE):
            return
        signature = record.signature
        if signature == self.processed_signature:
            return

        self.machine.transition(AutoplayEvent.TURN_OBSERVED)
        self.processed_signature = signature
        self._game_id = record.id
        self._owner_player_id = owner.id
        self.scheduler.schedule(
            self._key(record.id), self.delay_seconds, self._decide, record.id, signature,
        )

    def _on_forfeiture_closed(self, game_id: str) -> None:
        record = self.mirror.record
        if record is not None and record.id == game_id:
            self.on_state(record)

    def _decide(self, game_id: str, signature: StateSignature) -> None:
        if (
            game_id != self._game_id
            or signature != self.processed_signature
            or not self.machine.is_in(AutoplayState.DECIDING)
        ):
            logger.debug("Stale autoplay decision for %s ignored", game_id)
            if self.machine.is_in(AutoplayState.DECIDING):
                self._abort()
            return
        identity = self.identity
        if identity is None or self.forfeiture.is_active(game_id):
            self._abort()
            return

        try:
            record = self.client.get_game(game_id, identity.token)
        except ServiceError as e:
            logger.warning("Autoplay could not fetch %s: %s", game_id, e.user_message)
            self._abort()
            return
        if record.status != "active" or record.current_player_id != self._owner_player_id:
            self._abort()
            return

        action = decide_action(record.current_round_score, self.bank_threshold)
        self.machine.transition(AutoplayEvent.DECISION_MADE)
        logger.info(
            "Autoplay %s decides %s at round score %d",
            identity.display_name, action.value, record.current_round_score,
            extra={"game_id": game_id, "action": action.value},
        )

        turn_passed = True
        try:
            if action is ActionKind.BANK:
                self.dispatcher.bank(game_id, credential_override=identity)
            else:
                response = self.dispatcher.roll(game_id, credential_override=identity)
                after = response.game_state
                turn_passed = (
                    response.dice.is_double_six
                    or after.status != "active"
                    or after.current_player_id != self._owner_player_id
                )
        except StaleTurnError:
            logger.info("Autoplay turn on %s went stale", game_id)
        except ActionInProgressError as e:
            logger.debug("Autoplay action dropped: %s", e)
        except ServiceError as e:
            logger.warning("Autoplay %s failed on %s: %s", action.value, game_id, e.user_message)
        finally:
            # cancel() may already have reset the machine mid-action
            if self.machine.can_transition(AutoplayEvent.ACTION_SETTLED):
                self.machine.transition(AutoplayEvent.ACTION_SETTLED)

        if turn_passed:
            self.processed_signature = None
        if self.mirror.record is not None and self.mirror.record.id == game_id:
            self.on_state(self.mirror.record)

    def _abort(self) -> None:
        self.machine.transition(AutoplayEvent.DECISION_ABORTED)
        self.processed_signature = None

    def _reset(self) -> None:
        if self._game_id is not None:
            self.scheduler.cancel(self._key(self._game_id))
        self.machine.reset()
        self.processed_signature = None
        self._game_id = None
        self._owner_player_id = None

    @staticmethod
    def _key(game_id: str) -> Tuple[str, str]:
        return (game_id, "autoplay")
