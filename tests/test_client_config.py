# Area: Shared Tests
"""Tests for client configuration loading and validation."""

import json
import os
from unittest.mock import patch

import pytest

from doublesix_sync._client_config import DEFAULTS, load_config, validate_config


ENV_KEYS = [
    "DOUBLESIX_API_URL",
    "DOUBLESIX_USERNAME",
    "DOUBLESIX_PASSWORD",
    "POLL_INTERVAL_SECONDS",
    "FORFEITURE_WINDOW_SECONDS",
    "AUTOPLAY_DELAY_SECONDS",
    "DOUBLESIX_STORAGE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # keep load_dotenv away from any developer .env
    monkeypatch.chdir(tmp_path)


def valid_config(**overrides):
    config = dict(DEFAULTS, api_base_url="http://x/api", username="alice", password="pw")
    config.update(overrides)
    return config


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(None)
        assert config["poll_interval_seconds"] == 2.0
        assert config["forfeiture_window_seconds"] == 3.0
        assert config["autoplay_bank_threshold"] == 87

    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"username": "alice", "winning_score": 50}), encoding="utf-8")

        config = load_config(str(path))

        assert config["username"] == "alice"
        assert config["winning_score"] == 50
        assert config["tick_seconds"] == 0.25

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"username": "alice"}), encoding="utf-8")
        monkeypatch.setenv("DOUBLESIX_USERNAME", "carol")
        monkeypatch.setenv("POLL_INTERVAL_SECONDS", "0.5")

        config = load_config(str(path))

        assert config["username"] == "carol"
        assert config["poll_interval_seconds"] == 0.5

    def test_dotenv_file_is_read(self, tmp_path):
        (tmp_path / ".env").write_text("DOUBLESIX_API_URL=http://from-dotenv/api\n", encoding="utf-8")
        with patch.dict(os.environ):
            config = load_config(None)
        assert config["api_base_url"] == "http://from-dotenv/api"

    def test_missing_file_keeps_defaults(self):
        config = load_config("does-not-exist.json")
        assert config["storage_path"] == "doublesix_state.json"


class TestValidateConfig:
    def test_valid(self):
        validate_config(valid_config())

    def test_missing_required(self):
        with pytest.raises(ValueError, match="api_base_url"):
            validate_config(valid_config(api_base_url=""))

    def test_non_positive_timing(self):
        with pytest.raises(ValueError, match="poll_interval_seconds"):
            validate_config(valid_config(poll_interval_seconds=0))

    def test_zero_autoplay_delay_allowed(self):
        validate_config(valid_config(autoplay_delay_seconds=0))

    def test_negative_autoplay_delay(self):
        with pytest.raises(ValueError):
            validate_config(valid_config(autoplay_delay_seconds=-1))
