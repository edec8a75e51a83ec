"""
doublesix_sync — Double Six client sync engine
==============================================

Keeps a client's view of a two-player dice game consistent with the
authoritative game service, dispatches turn actions with the right
credential, plays the autoplay opponent and handles double-six
forfeitures and end-of-game reconciliation.

Quick Start:
    from doublesix_sync import GameServiceClient, GameSession
    session = GameSession(GameServiceClient("http://localhost:3000/api"))
    session.sign_in("alice", "secret")
    session.create_game(autoplay=True)
    session.roll()

Terminal use:
    python -m doublesix_sync --config config.json --autoplay

Type Definitions
----------------
Service payloads are pydantic models:

    from doublesix_sync import GameRecord, DiceOutcome, RollResponse, HoldResponse
"""

from ._core import (
    ActionDispatcher,
    AutoplayController,
    CanonicalStateMirror,
    ContinuationScheduler,
    EndGameReconciler,
    FinalizeResult,
    FinalizeSource,
    ForfeitureHandler,
    GameSession,
    StatePoller,
)
from ._shared import GameServiceClient, InMemoryStore, JsonFileStore, setup_logging
from .runner import GameRunner
from .errors import (
    DoubleSixError,
    StaleTurnError,
    ActionInProgressError,
    ForfeitureActiveError,
    ServiceError,
    CapabilityMissingError,
    TreatAsAbandon,
    ConsistencyWarning,
)
from .types import (
    User,
    AuthResponse,
    Player,
    GameRecord,
    DiceOutcome,
    RollResponse,
    HoldResponse,
    Credential,
    AutoplayIdentity,
    StateSignature,
)

__all__ = [
    # Main classes
    "GameSession",
    "GameRunner",
    "GameServiceClient",
    "InMemoryStore",
    "JsonFileStore",
    "setup_logging",
    # Engine parts
    "ActionDispatcher",
    "AutoplayController",
    "CanonicalStateMirror",
    "ContinuationScheduler",
    "EndGameReconciler",
    "FinalizeResult",
    "FinalizeSource",
    "ForfeitureHandler",
    "StatePoller",
    # Errors
    "DoubleSixError",
    "StaleTurnError",
    "ActionInProgressError",
    "ForfeitureActiveError",
    "ServiceError",
    "CapabilityMissingError",
    "TreatAsAbandon",
    "ConsistencyWarning",
    # Types
    "User",
    "AuthResponse",
    "Player",
    "GameRecord",
    "DiceOutcome",
    "RollResponse",
    "HoldResponse",
    "Credential",
    "AutoplayIdentity",
    "StateSignature",
]
__version__ = "1.0.0"
