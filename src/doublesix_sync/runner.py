# Area: Runner
"""
doublesix_sync.runner — Poll-loop runner
========================================

Drives a GameSession from a terminal: signs in, opens a game, optionally
performs one action, then ticks the poller and the continuation
scheduler until there is nothing left to wait for.
"""

from __future__ import annotations

import logging
import signal
import time
from typing import Any, Dict, Optional

from ._client_config import validate_config
from ._core.session import GameSession
from ._shared import GameServiceClient, JsonFileStore, KeyValueStore, setup_logging
from .types import GameRecord

logger = logging.getLogger("doublesix_sync")

ACTIONS = ("roll", "bank", "end", "new", "abandon")


class GameRunner:
    """
    Terminal runner for one game.

    Without an action the runner watches the game (polling, autoplay
    turns, double-six windows) until it finishes or is interrupted. With
    an action it performs it and waits only for the timers it started.
    """

    def __init__(
        self,
        config: Dict[str, Any],
        client: Optional[GameServiceClient] = None,
        store: Optional[KeyValueStore] = None,
    ):
        self.config = config
        self._running = False

        log_file = config.get("log_file", "doublesix_sync.log")
        setup_logging(log_file_path=log_file)

        validate_config(config)

        self.client = client or GameServiceClient(
            config["api_base_url"],
            timeout_seconds=config.get("request_timeout_seconds", 10.0),
        )
        if store is None:
            store = JsonFileStore(config.get("storage_path", "doublesix_state.json"))
        self.session = GameSession(self.client, store=store, config=config)
        self.tick_seconds = config.get("tick_seconds", 0.25)

    def run(
        self,
        game_id: Optional[str] = None,
        opponent: Optional[str] = None,
        autoplay: bool = False,
        winning_score: Optional[int] = None,
        action: Optional[str] = None,
    ) -> int:
        """Open a game and run until done. Returns a process exit code."""
        if action is not None and action not in ACTIONS:
            raise ValueError(f"Unknown action {action!r}, expected one of {ACTIONS}")
        self._running = True
        signal.signal(signal.SIGINT, lambda s, f: setattr(self, "_running", False))

        self._log_startup()
        session = self.session
        try:
            if not session.sign_in(self.config["username"], self.config["password"]):
                logger.error(f"Sign-in failed: {session.last_error}")
                return 1
            session.restore_second_player()

            record = self._open_game(game_id, opponent, autoplay, winning_score)
            if record is None:
                logger.error(f"Could not open a game: {session.last_error}")
                return 1
            self._log_status(record)

            if action is not None:
                self._perform(action)
                if session.last_error:
                    logger.error(session.last_error)
                self._loop(until_idle=True)
            else:
                self._loop(until_idle=False)

            if session.game is not None:
                self._log_status(session.game)
            return 1 if session.last_error else 0
        finally:
            session.teardown()
            logger.info("Game runner stopped.")

    def tick(self) -> None:
        """One iteration: poll if due, then fire due continuations."""
        self.session.poller.tick()
        self.session.scheduler.run_due()

    def _loop(self, until_idle: bool) -> None:
        while self._running and self._should_continue(until_idle):
            try:
                self.tick()
                time.sleep(self.tick_seconds)
            except KeyboardInterrupt:
                break
            except Exception as e:
                logger.error(f"Loop error: {e}", exc_info=True)
                time.sleep(self.tick_seconds)

    def _should_continue(self, until_idle: bool) -> bool:
        if until_idle:
            return len(self.session.scheduler) > 0
        record = self.session.game
        return record is not None and record.status != "finished"

    def _open_game(
        self,
        game_id: Optional[str],
        opponent: Optional[str],
        autoplay: bool,
        winning_score: Optional[int],
    ) -> Optional[GameRecord]:
        if game_id:
            return self.session.load_game(game_id)
        if opponent or autoplay:
            return self.session.create_game(opponent, winning_score, autoplay=autoplay)
        games = [g for g in self.session.list_games() if g.status != "finished"]
        if not games:
            self.session.last_error = "No open games; pass --opponent or --autoplay"
            return None
        latest = max(games, key=lambda g: g.updated_at)
        return self.session.load_game(latest.id)

    def _perform(self, action: str) -> None:
        session = self.session
        if action == "roll":
            response = session.roll()
            if response is not None:
                logger.info(
                    f"Rolled {response.dice.die1}+{response.dice.die2}, "
                    f"round score {response.round_score}"
                )
        elif action == "bank":
            session.bank()
        elif action == "end":
            result = session.end_game()
            if result is not None:
                winner = result.winner
                outcome = "tie" if result.is_tie else f"winner {winner.username if winner else '?'}"
                suffix = " (decided locally)" if result.is_provisional else ""
                logger.info(f"Game ended: {outcome}{suffix}")
        elif action == "new":
            session.new_game()
        elif action == "abandon":
            session.abandon()

    def _log_startup(self) -> None:
        """Log startup information."""
        logger.info("=" * 60)
        logger.info("  Double Six Sync — Starting")
        logger.info(f"  Service: {self.config.get('api_base_url')}")
        logger.info(f"  User:    {self.config.get('username')}")
        logger.info(f"  Poll:    every {self.session.poller.interval_seconds}s")
        logger.info("=" * 60)

    def _log_status(self, record: GameRecord) -> None:
        logger.info(
            f"{record.player1.username} {record.player1_score} "
            f"(+{record.player1_round_score}) vs "
            f"{record.player2.username} {record.player2_score} "
            f"(+{record.player2_round_score}), "
            f"{record.status}, turn: {record.current_player.username}",
            extra={"game_id": record.id},
        )
