# Area: Core
"""
doublesix_sync._core.end_game — End-game reconciler
===================================================

Ends a game on request:
1. Refresh. A human-vs-human game whose second player never played, with
   the creator still on turn, is an abandonment, not a result.
2. Bank any unbanked round score once; stop if that bank ends the game.
3. Refresh again and ask the service to finalize.
4. Without a finalize route on the service, decide locally: higher total
   wins, equal totals tie. That result is marked LOCAL_FALLBACK.
"""

from __future__ import annotations

import logging

from ..errors import (
    ActionInProgressError,
    CapabilityMissingError,
    ServiceError,
    StaleTurnError,
    TreatAsAbandon,
)
from ..types import GameRecord
from .dispatcher import ActionDispatcher
from .enums import FinalizeSource
from .game_result import FinalizeResult
from .identity import has_autoplay_opponent

logger = logging.getLogger("doublesix_sync.end_game")


def second_player_never_played(record: GameRecord) -> bool:
    return (
        record.player2_score == 0
        and record.player2_round_score == 0
        and record.current_player_id == record.player1.id
    )


def finalize_locally(record: GameRecord) -> GameRecord:
    """Winner by total score; equal totals leave winner_id empty."""
    if record.player1_score > record.player2_score:
        winner_id = record.player1.id
    elif record.player2_score > record.player1_score:
        winner_id = record.player2.id
    else:
        winner_id = None
    return record.model_copy(update={"status": "finished", "winner_id": winner_id})


class EndGameReconciler:
    def __init__(self, dispatcher: ActionDispatcher):
        self.dispatcher = dispatcher

    def end_game(self, game_id: str) -> FinalizeResult:
        record = self.dispatcher.refresh(game_id)
        if record.status == "finished":
            return FinalizeResult(record)

        seats = self.dispatcher.seats
        against_autoplay = has_autoplay_opponent(record, seats.autoplay, seats.human_ids())
        if not against_autoplay and second_player_never_played(record):
            logger.info("Second player never played %s, treating end as abandon", game_id)
            raise TreatAsAbandon(game_id)

        if record.current_round_score > 0:
            owner = self.dispatcher.credential_for(record)
            try:
                hold = self.dispatcher.bank(game_id, credential_override=owner)
            except (StaleTurnError, ActionInProgressError, ServiceError) as e:
                # finalize still settles the game on the totals the server has
                logger.warning("Bank before end failed on %s: %s", game_id, e)
            else:
                if hold.is_game_over or hold.game_state.status == "finished":
                    logger.info("Bank finished %s before finalize", game_id)
                    return FinalizeResult(hold.game_state, via_bank=True)

        # dispatcher.end_game refreshes before it issues the finalize call
        try:
            final = self.dispatcher.end_game(game_id)
        except CapabilityMissingError:
            return self._fallback(game_id)
        logger.info("Game %s finalized by service, winner %s", game_id, final.winner_id)
        return FinalizeResult(final)

    def _fallback(self, game_id: str) -> FinalizeResult:
        # dispatcher.end_game refreshed the mirror right before the route failed
        final = finalize_locally(self.dispatcher.mirror.record)
        logger.warning(
            "Service has no finalize route, %s decided locally (winner %s, provisional)",
            game_id, final.winner_id,
            extra={"game_id": game_id},
        )
        self.dispatcher.mirror.publish(final)
        return FinalizeResult(final, source=FinalizeSource.LOCAL_FALLBACK)
