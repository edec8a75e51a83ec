# Area: Shared
"""
doublesix_sync.errors — Custom exception classes
================================================

Defines the exception hierarchy for the sync engine.

Recovery policy per error type:
- StaleTurnError:        refresh + re-check, never retried blindly
- ActionInProgressError: dropped quietly by callers, no retry
- ServiceError:          surfaced to the user as a transient message
- TreatAsAbandon:        caller abandons the game instead of finalizing
- ConsistencyWarning:    logged only, execution continues on server data
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import json


class DoubleSixError(Exception):
    """Base exception for all doublesix_sync errors."""
    pass


class StaleTurnError(DoubleSixError):
    """Raised when the acting side no longer owns the turn after a refresh."""

    def __init__(self, game_id: str, actor_ids: List[str], owner_id: Optional[str]):
        self.game_id = game_id
        self.actor_ids = actor_ids
        self.owner_id = owner_id
        super().__init__(
            f"Game '{game_id}': turn belongs to {owner_id!r}, not {actor_ids}"
        )

    @property
    def user_message(self) -> str:
        return "It is not your turn"


class ActionInProgressError(DoubleSixError):
    """Raised when a mutating call is already outstanding for the game."""

    def __init__(self, game_id: str, action: str, reason: str = "another action is in flight"):
        self.game_id = game_id
        self.action = action
        self.reason = reason
        super().__init__(f"Game '{game_id}': '{action}' rejected, {reason}")


class ForfeitureActiveError(ActionInProgressError):
    """Raised when a double-six forfeiture window suppresses actions."""

    def __init__(self, game_id: str, action: str):
        super().__init__(game_id, action, reason="double-six window is open")


class ServiceError(DoubleSixError):
    """Network or remote service failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        route: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.route = route
        super().__init__(message)

    @property
    def user_message(self) -> str:
        if self.status_code is None:
            return f"Could not reach the game service: {self.message}"
        return self.message


class CapabilityMissingError(ServiceError):
    """Raised when the service does not implement an optional route."""
    pass


class TreatAsAbandon(DoubleSixError):
    """End-game request must be handled as an abandonment instead."""

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(
            f"Game '{game_id}': second player never played, abandon instead of finalize"
        )


class ConsistencyWarning(DoubleSixError):
    """
    A server response violated an expected invariant.

    Never raised by the engine. Instances are built and passed to
    ``log_consistency_warning`` so the details end up in the log file.
    """

    def __init__(
        self,
        game_id: str,
        check: str,
        problems: List[str],
        payload: Optional[Dict[str, Any]] = None,
    ):
        self.game_id = game_id
        self.check = check
        self.problems = problems
        self.payload = payload or {}
        super().__init__(f"Game '{game_id}': {check} inconsistent: {problems}")

    def format_warning_log(self) -> str:
        return _format_warning_block(
            check=self.check,
            game_id=self.game_id,
            problems=self.problems,
            payload=self.payload,
        )


def _format_warning_block(
    check: str,
    game_id: str,
    problems: List[str],
    payload: Dict[str, Any],
) -> str:
    """Format a structured consistency warning block."""
    from datetime import datetime, timezone

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    lines = [
        "",
        "=" * 64,
        " CONSISTENCY WARNING — CONTINUING WITH SERVER STATE",
        "=" * 64,
        f" Timestamp:    {timestamp}",
        f" Check:        {check}",
        f" Game:         {game_id}",
        "",
        " ── PROBLEMS " + "─" * 51,
    ]
    for problem in problems:
        lines.append(f" • {problem}")

    if payload:
        lines.append("")
        lines.append(" ── SERVER PAYLOAD " + "─" * 45)
        lines.append(_indent_json(payload))

    lines.append("")
    lines.append("=" * 64)
    lines.append("")

    return "\n".join(lines)


def _indent_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format JSON with indentation for warning logs."""
    try:
        formatted = json.dumps(data, indent=indent, default=str)
        return "\n".join(" " + line for line in formatted.split("\n"))
    except (TypeError, ValueError):
        return f" {repr(data)}"
