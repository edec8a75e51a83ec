# Area: Core
"""
doublesix_sync._core.session — Game session
===========================================

Wires the sync engine together for one signed-in account and exposes the
operations a front end calls: sign in, manage the second local player,
create / load / list games, roll, bank, new game, end, abandon.

Failures never escape these operations. The session leaves the mirror at
its last good state and puts a short message in ``last_error``; an action
rejected because another one is in flight is dropped without a message.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from ..errors import ActionInProgressError, ServiceError, StaleTurnError, TreatAsAbandon
from ..types import Credential, GameRecord, HoldResponse, RollResponse
from .._shared.api_client import GameServiceClient
from .._shared.storage import CredentialVault, InMemoryStore, KeyValueStore, WinLedger
from .autoplay import AutoplayController
from .dispatcher import ActionDispatcher
from .end_game import EndGameReconciler
from .forfeiture import ForfeitureHandler
from .game_result import FinalizeResult
from .identity import autoplay_seat
from .mirror import CanonicalStateMirror
from .poller import StatePoller
from .scheduler import ContinuationScheduler

logger = logging.getLogger("doublesix_sync.session")

DEFAULT_WINNING_SCORE = 100


def auth_error_message(error: ServiceError) -> str:
    """Short text for a failed login or registration."""
    if error.status_code == 401:
        return "Invalid credentials"
    if error.status_code == 409:
        return "Username already taken"
    if error.status_code is None:
        return error.user_message
    return "Authentication failed"


class GameSession:
    def __init__(
        self,
        client: GameServiceClient,
        store: Optional[KeyValueStore] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        config = config or {}
        store = store if store is not None else InMemoryStore()
        self.client = client
        self.winning_score = config.get("winning_score", DEFAULT_WINNING_SCORE)
        self.last_error: Optional[str] = None

        self.mirror = CanonicalStateMirror()
        self.scheduler = ContinuationScheduler()
        self.dispatcher = ActionDispatcher(client, self.mirror)
        self.forfeiture = ForfeitureHandler(
            self.dispatcher, self.scheduler,
            window_seconds=config.get("forfeiture_window_seconds", 3.0),
        )
        self.vault = CredentialVault(store)
        self.ledger = WinLedger(store)
        self.autoplay = AutoplayController(
            client, self.mirror, self.dispatcher, self.forfeiture,
            self.scheduler, self.vault,
            bank_threshold=config.get("autoplay_bank_threshold", 87),
            delay_seconds=config.get("autoplay_delay_seconds", 1.0),
        )
        self.poller = StatePoller(
            self.dispatcher, interval_seconds=config.get("poll_interval_seconds", 2.0),
        )
        self.reconciler = EndGameReconciler(self.dispatcher)
        self._finalizing = False
        self.mirror.subscribe(self._on_state)

    @property
    def seats(self):
        return self.dispatcher.seats

    @property
    def game(self) -> Optional[GameRecord]:
        return self.mirror.record

    # ── accounts ───────────────────────────────────────────────

    def sign_in(self, username: str, password: str, register: bool = False) -> bool:
        self.last_error = None
        try:
            if register:
                auth = self.client.register(username, password)
            else:
                auth = self.client.login(username, password)
        except ServiceError as e:
            self.last_error = auth_error_message(e)
            logger.warning("Sign-in as %s failed: %s", username, e)
            return False
        self.seats.primary = Credential.from_auth(auth)
        logger.info("Signed in as %s", auth.user.username)
        return True

    def attach_second_player(self, username: str, password: str, register: bool = False) -> bool:
        """Authenticate a second human sharing this device and persist the session."""
        self.last_error = None
        try:
            if register:
                auth = self.client.register(username, password)
            else:
                auth = self.client.login(username, password)
        except ServiceError as e:
            self.last_error = auth_error_message(e)
            return False
        credential = Credential.from_auth(auth)
        self.seats.secondary = credential
        self.vault.save_second_player(credential)
        logger.info("Second player %s attached", credential.display_name)
        return True

    def restore_second_player(self) -> bool:
        """Bring back a persisted second player if the stored token still works."""
        stored = self.vault.load_second_player()
        if stored is None:
            return False
        try:
            user = self.client.me(stored.token)
        except ServiceError as e:
            logger.info("Stored second player session dropped: %s", e)
            self.vault.clear_second_player()
            return False
        self.seats.secondary = Credential(
            account_id=user.id, token=stored.token, display_name=user.username,
        )
        return True

    def detach_second_player(self) -> None:
        self.seats.secondary = None
        self.vault.clear_second_player()

    # ── games ──────────────────────────────────────────────────

    def list_games(self) -> List[GameRecord]:
        self.last_error = None
        self.poller.pause()
        try:
            return self.client.list_games(self.seats.read_token())
        except ServiceError as e:
            self.last_error = e.user_message
            return []

    def create_game(
        self,
        opponent: Optional[str] = None,
        winning_score: Optional[int] = None,
        autoplay: bool = False,
    ) -> Optional[GameRecord]:
        self.last_error = None
        if self.seats.primary is None:
            self.last_error = "Sign in first"
            return None
        token = self.seats.primary.token
        if autoplay:
            try:
                opponent = self.autoplay.register_identity().display_name
            except ServiceError as e:
                self.last_error = f"Failed to create autoplay opponent: {e.user_message}"
                return None
        else:
            self.autoplay.clear()
            if not opponent:
                self.last_error = "Choose an opponent"
                return None
            secondary = self.seats.secondary
            if secondary is not None and secondary.display_name == opponent:
                token = secondary.token

        try:
            record = self.client.create_game(
                self.seats.primary.display_name,
                opponent,
                winning_score or self.winning_score,
                token,
            )
        except ServiceError as e:
            self.last_error = e.user_message
            return None
        logger.info(
            "Created game %s: %s vs %s", record.id,
            record.player1.username, record.player2.username,
            extra={"game_id": record.id},
        )
        self._leave_current_game()
        self.poller.resume()
        self.mirror.publish(record)
        return record

    def load_game(self, game_id: str) -> Optional[GameRecord]:
        self.last_error = None
        try:
            record = self.client.get_game(game_id, self.seats.read_token())
        except ServiceError as e:
            self.last_error = e.user_message
            return None
        self._leave_current_game()
        self._restore_autoplay(record)
        self.poller.resume()
        self.mirror.publish(record)
        return record

    def roll(self) -> Optional[RollResponse]:
        game_id = self._current_game_id()
        if game_id is None:
            return None
        return self._guarded(self.dispatcher.roll, game_id)

    def bank(self) -> Optional[HoldResponse]:
        game_id = self._current_game_id()
        if game_id is None:
            return None
        return self._guarded(self.dispatcher.bank, game_id)

    def new_game(self, winning_score: Optional[int] = None) -> Optional[GameRecord]:
        game_id = self._current_game_id()
        if game_id is None:
            return None
        # the old game keeps its timers until the replacement exists
        record = self._guarded(self.dispatcher.start_new_game, game_id, winning_score)
        if record is None:
            return None
        self.forfeiture.cancel(game_id)
        self.autoplay.cancel(game_id)
        self.scheduler.cancel_game(game_id)
        self._restore_autoplay(record)
        # the replacement may already be on the autoplay seat's turn
        self.autoplay.on_state(record)
        return record

    def end_game(self) -> Optional[FinalizeResult]:
        game_id = self._current_game_id()
        if game_id is None:
            return None
        self._finalizing = True
        try:
            result = self._guarded(self.reconciler.end_game, game_id)
        except TreatAsAbandon:
            result = None
            self.abandon(game_id)
        finally:
            self._finalizing = False
        if result is not None:
            self._settle(result.record, provisional=result.is_provisional)
        return result

    def abandon(self, game_id: Optional[str] = None) -> bool:
        game_id = game_id or self.mirror.game_id
        if game_id is None:
            return False
        self.forfeiture.cancel(game_id)
        self.scheduler.cancel_game(game_id)
        is_current = game_id == self.mirror.game_id
        if is_current:
            self.autoplay.clear()
        self.last_error = None
        try:
            self.dispatcher.delete_game(game_id)
        except ActionInProgressError as e:
            logger.debug("Dropped: %s", e)
            return False
        except ServiceError as e:
            self.last_error = f"Failed to delete game: {e.user_message}"
            return False
        if is_current:
            self.mirror.clear()
            self.poller.pause()
        logger.info("Abandoned game %s", game_id, extra={"game_id": game_id})
        return True

    def dismiss_forfeiture(self) -> bool:
        game_id = self.mirror.game_id
        if game_id is None:
            return False
        return self.forfeiture.dismiss(game_id)

    def leave(self) -> None:
        """Back to the menu. Timers stop, the game stays on the service."""
        self._leave_current_game()
        self.mirror.clear()
        self.poller.pause()

    def teardown(self) -> None:
        self._leave_current_game()
        self.scheduler.clear()
        self.mirror.clear()
        self.client.close()

    # ── helpers ────────────────────────────────────────────────

    def _guarded(self, action: Callable[..., Any], *args: Any) -> Any:
        self.last_error = None
        try:
            return action(*args)
        except ActionInProgressError as e:
            logger.debug("Dropped: %s", e)
        except StaleTurnError as e:
            self.last_error = e.user_message
        except ServiceError as e:
            logger.warning("%s failed: %s", getattr(action, "__name__", "action"), e)
            self.last_error = e.user_message
        return None

    def _current_game_id(self) -> Optional[str]:
        game_id = self.mirror.game_id
        if game_id is None:
            self.last_error = "No game loaded"
        return game_id

    def _leave_current_game(self) -> None:
        game_id = self.mirror.game_id
        if game_id is None:
            return
        self.forfeiture.cancel(game_id)
        self.autoplay.cancel(game_id)
        self.scheduler.cancel_game(game_id)

    def _restore_autoplay(self, record: GameRecord) -> None:
        seat = autoplay_seat(record, self.autoplay.identity, self.seats.human_ids())
        if seat is None:
            return
        identity = self.autoplay.identity
        if identity is None or identity.account_id != seat.user_id:
            self.autoplay.recover(seat)

    def _on_state(self, record: GameRecord) -> None:
        # results decided by the reconciler are settled once it returns
        if record.status == "finished" and not self._finalizing:
            self._settle(record, provisional=False)

    def _settle(self, record: GameRecord, provisional: bool) -> None:
        if record.status != "finished":
            return
        winner = record.player_by_id(record.winner_id) if record.winner_id else None
        if winner is None:
            self.ledger.mark_seen(record.id)
            return
        self.ledger.credit(record.id, winner.user_id, provisional=provisional)
