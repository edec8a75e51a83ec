"""
doublesix_sync.types — Game service data model
==============================================

Pydantic models for every payload exchanged with the game service.
The service speaks camelCase JSON; fields are snake_case in Python and
accept either spelling on input:

    >>> GameRecord.model_validate(payload).current_player_id
    'p-1'

Records are treated as immutable snapshots. The engine replaces them
wholesale with each server response and never edits them in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


GameStatus = Literal["waiting", "active", "finished"]
PlayerRole = Literal["human", "autoplay"]

MAX_FACE = 6


class ServiceModel(BaseModel):
    """Base model: camelCase aliases, populate by field name too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ============================================
# Accounts
# ============================================

class User(ServiceModel):
    """An account on the game service."""
    id: str
    username: str


class AuthResponse(ServiceModel):
    """Response of /auth/register and /auth/login."""
    token: str
    user: User


# ============================================
# Game state
# ============================================

class Player(ServiceModel):
    """One seat in a game.

    Fields
    ------
    id : str
        Stable player id inside the game (what ``current_player_id`` points at).
    user_id : str
        Owning account id.
    username : str
        Display name of the owning account.
    role : str, optional
        ``"human"`` or ``"autoplay"`` when the service tags seats explicitly.
        Legacy services omit it.
    """
    id: str
    user_id: str
    username: str
    role: Optional[PlayerRole] = None


@dataclass(frozen=True)
class StateSignature:
    """Identifies one (turn owner, update time) state for exactly-once reactions."""
    current_player_id: str
    updated_at: int


class GameRecord(ServiceModel):
    """Authoritative game record as returned by the service."""

    id: str
    player1: Player
    player2: Player
    current_player_id: str
    player1_score: int = 0
    player2_score: int = 0
    player1_round_score: int = 0
    player2_round_score: int = 0
    winning_score: int = 100
    status: GameStatus
    winner_id: Optional[str] = None
    created_at: int = 0
    updated_at: int = 0

    @model_validator(mode="after")
    def check_player_pointers(self) -> "GameRecord":
        ids = {self.player1.id, self.player2.id}
        if self.status == "active" and self.current_player_id not in ids:
            raise ValueError(
                f"currentPlayerId {self.current_player_id!r} is not a player of game {self.id!r}"
            )
        if self.winner_id is not None and self.winner_id not in ids:
            raise ValueError(
                f"winnerId {self.winner_id!r} is not a player of game {self.id!r}"
            )
        return self

    @property
    def players(self) -> List[Player]:
        return [self.player1, self.player2]

    @property
    def current_player(self) -> Player:
        if self.current_player_id == self.player1.id:
            return self.player1
        return self.player2

    @property
    def signature(self) -> StateSignature:
        return StateSignature(self.current_player_id, self.updated_at)

    def player_by_id(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_by_account(self, account_id: str) -> Optional[Player]:
        for player in self.players:
            if player.user_id == account_id:
                return player
        return None

    def opponent_of(self, player_id: str) -> Player:
        return self.player2 if player_id == self.player1.id else self.player1

    def round_score_of(self, player_id: str) -> int:
        if player_id == self.player1.id:
            return self.player1_round_score
        return self.player2_round_score

    def total_score_of(self, player_id: str) -> int:
        if player_id == self.player1.id:
            return self.player1_score
        return self.player2_score

    @property
    def current_round_score(self) -> int:
        return self.round_score_of(self.current_player_id)


class DiceOutcome(ServiceModel):
    """Two die values and the server capture timestamp."""
    die1: int = Field(ge=1, le=MAX_FACE)
    die2: int = Field(ge=1, le=MAX_FACE)
    timestamp: int = 0

    @property
    def is_double_six(self) -> bool:
        return self.die1 == MAX_FACE and self.die2 == MAX_FACE

    @property
    def total(self) -> int:
        return self.die1 + self.die2


# ============================================
# Action responses
# ============================================

class RollResponse(ServiceModel):
    """Response of POST /games/{id}/roll."""
    dice: DiceOutcome
    round_score: int
    is_double_six: bool
    game_state: GameRecord


class HoldResponse(ServiceModel):
    """Response of POST /games/{id}/hold."""
    game_state: GameRecord
    is_game_over: bool = False
    winner_id: Optional[str] = None


class CreateGameRequest(ServiceModel):
    """Body of POST /games."""
    player1_username: str
    player2_username: str
    winning_score: int = Field(default=100, gt=0)


# ============================================
# Local acting sides
# ============================================

class Credential(ServiceModel):
    """An authenticated acting side: account id plus bearer token."""
    account_id: str
    token: str
    display_name: str = ""

    @classmethod
    def from_auth(cls, auth: AuthResponse) -> "Credential":
        return cls(
            account_id=auth.user.id,
            token=auth.token,
            display_name=auth.user.username,
        )


class AutoplayIdentity(Credential):
    """Credential of the non-human opponent, with the password used to re-login."""
    password: str = ""
