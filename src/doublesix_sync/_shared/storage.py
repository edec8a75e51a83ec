# Area: Shared
"""
doublesix_sync._shared.storage — Injected key-value persistence
===============================================================

Everything the client remembers between runs goes through a
``KeyValueStore``: the best-effort win ledger, persisted autoplay
credentials and the second local player's session. The core never
touches module-level state, so tests run against ``InMemoryStore``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from ..types import Credential

logger = logging.getLogger("doublesix_sync.storage")

WINS_KEY = "doublesix_wins"
CREDITED_GAMES_KEY = "doublesix_credited_games"
AUTOPLAY_CREDENTIALS_KEY = "doublesix_autoplay_credentials"
SECOND_PLAYER_KEY = "doublesix_second_player"


class KeyValueStore(ABC):
    """Minimal get/set/clear store holding JSON-serializable values."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def clear(self, key: str) -> None:
        pass


class InMemoryStore(KeyValueStore):
    def __init__(self) -> None:
        self._data: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Store backed by a single JSON file, rewritten on every change."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable store %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _flush(self) -> None:
        # write beside the target, then swap it in; readers never see half a file
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def clear(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()


class WinLedger:
    """
    Best-effort win counter keyed by account id.

    Server-confirmed wins and wins computed by the local fallback
    finalize are kept in separate buckets so they are never confused.
    Each game id is credited at most once.
    """

    CONFIRMED = "confirmed"
    PROVISIONAL = "provisional"

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def credit(self, game_id: str, account_id: str, provisional: bool = False) -> bool:
        """Credit a win. Returns False if this game was already credited."""
        credited = list(self.store.get(CREDITED_GAMES_KEY, []))
        if game_id in credited:
            return False
        wins = dict(self.store.get(WINS_KEY, {}))
        entry = dict(wins.get(account_id, {self.CONFIRMED: 0, self.PROVISIONAL: 0}))
        bucket = self.PROVISIONAL if provisional else self.CONFIRMED
        entry[bucket] = entry.get(bucket, 0) + 1
        wins[account_id] = entry
        credited.append(game_id)
        self.store.set(WINS_KEY, wins)
        self.store.set(CREDITED_GAMES_KEY, credited)
        logger.info(
            "Win credited to %s for game %s (%s)", account_id, game_id, bucket,
        )
        return True

    def mark_seen(self, game_id: str) -> None:
        """Record a game as settled without crediting anyone (tie)."""
        credited = list(self.store.get(CREDITED_GAMES_KEY, []))
        if game_id not in credited:
            credited.append(game_id)
            self.store.set(CREDITED_GAMES_KEY, credited)

    def wins_for(self, account_id: str) -> Dict[str, int]:
        entry = self.store.get(WINS_KEY, {}).get(account_id, {})
        return {
            self.CONFIRMED: entry.get(self.CONFIRMED, 0),
            self.PROVISIONAL: entry.get(self.PROVISIONAL, 0),
        }


class CredentialVault:
    """Persisted autoplay credentials and the second local player's session."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def save_autoplay(self, username: str, password: str) -> None:
        self.store.set(AUTOPLAY_CREDENTIALS_KEY, {"username": username, "password": password})

    def load_autoplay(self) -> Optional[Dict[str, str]]:
        data = self.store.get(AUTOPLAY_CREDENTIALS_KEY)
        if not data or "username" not in data or "password" not in data:
            return None
        return data

    def save_second_player(self, credential: Credential) -> None:
        self.store.set(SECOND_PLAYER_KEY, credential.model_dump())

    def load_second_player(self) -> Optional[Credential]:
        data = self.store.get(SECOND_PLAYER_KEY)
        if not data:
            return None
        return Credential.model_validate(data)

    def clear_second_player(self) -> None:
        self.store.clear(SECOND_PLAYER_KEY)
