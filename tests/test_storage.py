# Area: Shared Tests
"""Tests for the key-value stores, win ledger and credential vault."""

from unittest.mock import patch

import pytest

from doublesix_sync._shared.storage import (
    CredentialVault,
    InMemoryStore,
    JsonFileStore,
    WinLedger,
)
from doublesix_sync.types import Credential


class TestJsonFileStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "state" / "store.json"
        JsonFileStore(str(path)).set("k", {"a": 1})
        assert JsonFileStore(str(path)).get("k") == {"a": 1}

    def test_clear(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonFileStore(str(path))
        store.set("k", 1)
        store.clear("k")
        assert JsonFileStore(str(path)).get("k", "missing") == "missing"

    def test_unreadable_file_starts_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        assert JsonFileStore(str(path)).get("k") is None

    def test_failed_write_keeps_previous_file(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonFileStore(str(path))
        store.set("k", 1)

        with patch("doublesix_sync._shared.storage.json.dump", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.set("k", 2)

        assert JsonFileStore(str(path)).get("k") == 1
        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]


class TestWinLedger:
    """Confirmed and provisional wins, each game credited once."""

    def test_credit_once_per_game(self):
        ledger = WinLedger(InMemoryStore())
        assert ledger.credit("g-1", "u-1") is True
        assert ledger.credit("g-1", "u-1") is False
        assert ledger.wins_for("u-1") == {"confirmed": 1, "provisional": 0}

    def test_provisional_bucket(self):
        ledger = WinLedger(InMemoryStore())
        ledger.credit("g-1", "u-1")
        ledger.credit("g-2", "u-1", provisional=True)
        assert ledger.wins_for("u-1") == {"confirmed": 1, "provisional": 1}

    def test_tie_seen_blocks_later_credit(self):
        ledger = WinLedger(InMemoryStore())
        ledger.mark_seen("g-1")
        assert ledger.credit("g-1", "u-1") is False
        assert ledger.wins_for("u-1") == {"confirmed": 0, "provisional": 0}


class TestCredentialVault:
    def test_autoplay_credentials(self):
        vault = CredentialVault(InMemoryStore())
        assert vault.load_autoplay() is None
        vault.save_autoplay("NovaAce", "ai_secret")
        assert vault.load_autoplay() == {"username": "NovaAce", "password": "ai_secret"}

    def test_second_player_round_trip(self):
        vault = CredentialVault(InMemoryStore())
        credential = Credential(account_id="u-2", token="tok", display_name="bob")
        vault.save_second_player(credential)
        assert vault.load_second_player() == credential
        vault.clear_second_player()
        assert vault.load_second_player() is None
