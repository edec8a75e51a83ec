# Area: Shared
"""
doublesix_sync._shared.api_client — Game service HTTP client
============================================================

Thin httpx wrapper around the game service request/response contract.
Every call takes the bearer token of the side that is acting, because
either local human or the autoplay identity may be the one playing.

The client is stateless apart from the underlying connection pool.
It does not cache records; the core decides when to refresh.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..errors import CapabilityMissingError, ServiceError
from ..types import (
    AuthResponse,
    CreateGameRequest,
    GameRecord,
    HoldResponse,
    RollResponse,
    User,
)

logger = logging.getLogger("doublesix_sync.api")

# Status codes meaning "this route does not exist on this server"
MISSING_ROUTE_STATUSES = {404, 405, 501}


class GameServiceClient:
    """HTTP client for the game service."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the service client.

        Args:
            base_url: Service root, e.g. ``http://localhost:3000/api``
            timeout_seconds: Per-request timeout
            client: Pre-built httpx client (tests inject a MockTransport)
        """
        if not isinstance(base_url, str) or not base_url.strip():
            raise ValueError("base_url must be a non-empty string")
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = float(timeout_seconds)
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=self.base_url, timeout=self.timeout_seconds,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ── transport ──────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        route = f"{method} {path}"
        try:
            response = self._client.request(method, path, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Transport failure on %s: %s", route, e)
            raise ServiceError(str(e), route=route) from e

        if response.status_code >= 400:
            raise ServiceError(
                _error_message(response), status_code=response.status_code, route=route,
            )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServiceError(
                "service returned invalid JSON", status_code=response.status_code, route=route,
            ) from e

    @staticmethod
    def _parse(model, data: Any, route: str):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.error("Unexpected payload from %s: %s", route, e)
            raise ServiceError(f"unexpected response from {route}", route=route) from e

    # ── auth ───────────────────────────────────────────────────

    def register(self, username: str, password: str) -> AuthResponse:
        data = self._request("POST", "/auth/register", payload={
            "username": username, "password": password,
        })
        return self._parse(AuthResponse, data, "POST /auth/register")

    def login(self, username: str, password: str) -> AuthResponse:
        data = self._request("POST", "/auth/login", payload={
            "username": username, "password": password,
        })
        return self._parse(AuthResponse, data, "POST /auth/login")

    def me(self, token: str) -> User:
        data = self._request("GET", "/auth/me", token=token)
        return self._parse(User, data, "GET /auth/me")

    # ── games ──────────────────────────────────────────────────

    def create_game(
        self,
        player1_username: str,
        player2_username: str,
        winning_score: int,
        token: str,
    ) -> GameRecord:
        body = CreateGameRequest(
            player1_username=player1_username,
            player2_username=player2_username,
            winning_score=winning_score,
        )
        data = self._request("POST", "/games", token=token, payload=body.model_dump(by_alias=True))
        return self._parse(GameRecord, data, "POST /games")

    def get_game(self, game_id: str, token: str) -> GameRecord:
        data = self._request("GET", f"/games/{game_id}", token=token)
        return self._parse(GameRecord, data, f"GET /games/{game_id}")

    def list_games(self, token: str) -> List[GameRecord]:
        data = self._request("GET", "/games/mine", token=token)
        if not isinstance(data, list):
            raise ServiceError("expected a list of games", route="GET /games/mine")
        return [self._parse(GameRecord, item, "GET /games/mine") for item in data]

    def roll(self, game_id: str, token: str) -> RollResponse:
        data = self._request("POST", f"/games/{game_id}/roll", token=token)
        return self._parse(RollResponse, data, f"POST /games/{game_id}/roll")

    def hold(self, game_id: str, token: str) -> HoldResponse:
        data = self._request("POST", f"/games/{game_id}/hold", token=token)
        return self._parse(HoldResponse, data, f"POST /games/{game_id}/hold")

    def new_game(
        self, game_id: str, token: str, winning_score: Optional[int] = None,
    ) -> GameRecord:
        payload = {"winningScore": winning_score} if winning_score is not None else {}
        data = self._request("POST", f"/games/{game_id}/new-game", token=token, payload=payload)
        return self._parse(GameRecord, data, f"POST /games/{game_id}/new-game")

    def end_game(self, game_id: str, token: str) -> GameRecord:
        """Ask the service to finalize. Raises CapabilityMissingError if unsupported."""
        route = f"POST /games/{game_id}/end"
        try:
            data = self._request("POST", f"/games/{game_id}/end", token=token)
        except ServiceError as e:
            if e.status_code in MISSING_ROUTE_STATUSES:
                raise CapabilityMissingError(
                    "service has no finalize route", status_code=e.status_code, route=route,
                ) from e
            raise
        return self._parse(GameRecord, data, route)

    def delete_game(self, game_id: str, token: str) -> None:
        self._request("DELETE", f"/games/{game_id}", token=token)


def _error_message(response: httpx.Response) -> str:
    """Pull the service's error text out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        text = body.get("error") or body.get("message") or body.get("detail")
        if text:
            return str(text)
    return f"HTTP error! status: {response.status_code}"
