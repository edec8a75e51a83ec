# Area: Core
"""
doublesix_sync._core.dispatcher — Action dispatcher
===================================================

The single gateway for mutating calls on an existing game (roll, bank,
new game, end game, delete). Nothing else in the package mutates a game.

Per call:
1. Reject immediately if another mutating call is in flight for the same
   game, or a double-six window is open (unless it is the window's own
   forced bank). No network request is made in that case.
2. Refresh canonical state and publish it to the mirror.
3. Re-check turn ownership against the refreshed record (roll and bank).
4. Pick the credential of the current turn owner.
5. Issue exactly one mutating call, notify roll observers, publish its record.
The in-flight marker is cleared whether the call succeeds or fails.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Set

from ..errors import ActionInProgressError, ForfeitureActiveError, StaleTurnError
from ..types import (
    AutoplayIdentity,
    Credential,
    GameRecord,
    HoldResponse,
    RollResponse,
    StateSignature,
)
from .._shared.api_client import GameServiceClient
from .enums import ActionKind
from .mirror import CanonicalStateMirror
from .turn_guard import owns_turn

logger = logging.getLogger("doublesix_sync.dispatcher")

# (game_id, record before the roll, response, credential that rolled)
RollObserver = Callable[[str, GameRecord, RollResponse, Credential], None]
Suppressor = Callable[[str], bool]


@dataclass
class LocalSeats:
    """
    The acting sides this client can authenticate as.

    Attributes:
        primary: The signed-in user
        secondary: A second human sharing this device, if any
        autoplay: The autoplay opponent's identity, if any
    """

    primary: Optional[Credential] = None
    secondary: Optional[Credential] = None
    autoplay: Optional[AutoplayIdentity] = None

    def credential_for_account(self, account_id: str) -> Optional[Credential]:
        for credential in (self.primary, self.secondary, self.autoplay):
            if credential is not None and credential.account_id == account_id:
                return credential
        return None

    def human_ids(self) -> Set[str]:
        """Account ids signed in here as people."""
        return {c.account_id for c in (self.primary, self.secondary) if c is not None}

    def read_token(self) -> str:
        for credential in (self.primary, self.secondary, self.autoplay):
            if credential is not None:
                return credential.token
        raise RuntimeError("no signed-in account to read game state with")


class InFlightGuard:
    """Per-game in-flight marker plus the last state signature acted upon."""

    def __init__(self) -> None:
        self._in_flight: Dict[str, ActionKind] = {}
        self._last_acted: Dict[str, StateSignature] = {}

    def is_in_flight(self, game_id: str) -> bool:
        return game_id in self._in_flight

    @contextmanager
    def hold(self, game_id: str, action: ActionKind) -> Iterator[None]:
        """Mark game_id busy for the duration of the block."""
        if game_id in self._in_flight:
            logger.debug(
                "Rejected %s on %s: %s in flight",
                action.value, game_id, self._in_flight[game_id].value,
            )
            raise ActionInProgressError(game_id, action.value)
        self._in_flight[game_id] = action
        try:
            yield
        finally:
            del self._in_flight[game_id]

    def mark_acted(self, game_id: str, signature: StateSignature) -> None:
        self._last_acted[game_id] = signature

    def is_repeat(self, game_id: str, signature: StateSignature) -> bool:
        """True if an action already succeeded against this exact state."""
        return self._last_acted.get(game_id) == signature

    def forget(self, game_id: str) -> None:
        self._last_acted.pop(game_id, None)


class ActionDispatcher:
    def __init__(
        self,
        client: GameServiceClient,
        mirror: CanonicalStateMirror,
        seats: Optional[LocalSeats] = None,
    ):
        self.client = client
        self.mirror = mirror
        self.seats = seats or LocalSeats()
        self.guard = InFlightGuard()
        self._suppressors: List[Suppressor] = []
        self._roll_observers: List[RollObserver] = []

    def add_suppressor(self, suppressor: Suppressor) -> None:
        """Register a predicate that blocks mutating calls on a game while true."""
        self._suppressors.append(suppressor)

    def add_roll_observer(self, observer: RollObserver) -> None:
        self._roll_observers.append(observer)

    # ── reads ──────────────────────────────────────────────────

    def refresh(self, game_id: str) -> GameRecord:
        """Fetch the canonical record and publish it. Not a mutation."""
        record = self.client.get_game(game_id, self.seats.read_token())
        self.mirror.publish(record)
        return record

    def credential_for(self, record: GameRecord) -> Credential:
        """The turn owner's credential if held locally, else the primary one."""
        owner = self.seats.credential_for_account(record.current_player.user_id)
        if owner is not None:
            return owner
        if self.seats.primary is None:
            raise RuntimeError("no signed-in account")
        return self.seats.primary

    # ── turn actions ───────────────────────────────────────────

    def roll(
        self, game_id: str, credential_override: Optional[Credential] = None,
    ) -> RollResponse:
        self._check_suppressed(game_id, ActionKind.ROLL, forced=False)
        with self.guard.hold(game_id, ActionKind.ROLL):
            before = self.refresh(game_id)
            credential = self._acting_credential(game_id, before, credential_override)
            self._warn_if_repeat(game_id, before, ActionKind.ROLL)
            logger.info(
                "Roll on %s as %s", game_id, credential.display_name or credential.account_id,
                extra={"game_id": game_id, "action": "roll"},
            )
            response = self.client.roll(game_id, credential.token)
            self.guard.mark_acted(game_id, before.signature)
            # a double six opens its window before mirror subscribers see the record
            for observer in list(self._roll_observers):
                observer(game_id, before, response, credential)
            self.mirror.publish(response.game_state, response.dice)
        return response

    def bank(
        self,
        game_id: str,
        credential_override: Optional[Credential] = None,
        forced: bool = False,
    ) -> HoldResponse:
        """Bank the round score. ``forced`` is reserved for the double-six window close."""
        self._check_suppressed(game_id, ActionKind.BANK, forced=forced)
        with self.guard.hold(game_id, ActionKind.BANK):
            before = self.refresh(game_id)
            credential = self._acting_credential(game_id, before, credential_override)
            self._warn_if_repeat(game_id, before, ActionKind.BANK)
            logger.info(
                "Bank %d on %s as %s%s",
                before.current_round_score, game_id,
                credential.display_name or credential.account_id,
                " (forced)" if forced else "",
                extra={"game_id": game_id, "action": "bank"},
            )
            response = self.client.hold(game_id, credential.token)
            self.guard.mark_acted(game_id, before.signature)
            self.mirror.clear_dice()
            self.mirror.publish(response.game_state)
        return response

    # ── game lifecycle actions ─────────────────────────────────

    def start_new_game(self, game_id: str, winning_score: Optional[int] = None) -> GameRecord:
        self._check_suppressed(game_id, ActionKind.NEW_GAME, forced=False)
        with self.guard.hold(game_id, ActionKind.NEW_GAME):
            record = self.client.new_game(game_id, self.seats.read_token(), winning_score)
            logger.info("New game %s replaces %s", record.id, game_id)
            self.mirror.clear_dice()
            self.mirror.publish(record)
        return record

    def end_game(self, game_id: str) -> GameRecord:
        """Ask the service to finalize. CapabilityMissingError propagates to the caller."""
        self._check_suppressed(game_id, ActionKind.END_GAME, forced=False)
        with self.guard.hold(game_id, ActionKind.END_GAME):
            before = self.refresh(game_id)
            credential = self.credential_for(before)
            record = self.client.end_game(game_id, credential.token)
            self.mirror.publish(record)
        return record

    def delete_game(self, game_id: str) -> None:
        with self.guard.hold(game_id, ActionKind.DELETE_GAME):
            self.client.delete_game(game_id, self.seats.read_token())
            logger.info("Deleted game %s", game_id)
        self.guard.forget(game_id)

    # ── helpers ────────────────────────────────────────────────

    def _check_suppressed(self, game_id: str, action: ActionKind, forced: bool) -> None:
        if forced:
            return
        if any(suppressor(game_id) for suppressor in self._suppressors):
            raise ForfeitureActiveError(game_id, action.value)

    def _warn_if_repeat(self, game_id: str, record: GameRecord, action: ActionKind) -> None:
        if self.guard.is_repeat(game_id, record.signature):
            logger.warning(
                "%s on %s against a state already acted on (updatedAt %s)",
                action.value, game_id, record.updated_at,
                extra={"game_id": game_id, "action": action.value},
            )

    def _acting_credential(
        self,
        game_id: str,
        record: GameRecord,
        override: Optional[Credential],
    ) -> Credential:
        owner_account = record.current_player.user_id
        if override is not None:
            actor_ids = [override.account_id]
            if owns_turn(override.account_id, None, record):
                return override
        else:
            primary = self.seats.primary
            secondary = self.seats.secondary
            actor_ids = [c.account_id for c in (primary, secondary) if c is not None]
            if primary is not None and owns_turn(
                primary.account_id,
                secondary.account_id if secondary is not None else None,
                record,
            ):
                return self.seats.credential_for_account(owner_account)
        logger.info(
            "Stale turn on %s: owner %s, actors %s", game_id, owner_account, actor_ids,
            extra={"game_id": game_id},
        )
        raise StaleTurnError(game_id, actor_ids, owner_account)
