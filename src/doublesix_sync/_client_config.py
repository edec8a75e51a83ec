# Area: Shared
"""
doublesix_sync._client_config — Client configuration
====================================================

Defaults, environment overrides and validation for the runner and CLI.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger("doublesix_sync")

DEFAULTS: Dict[str, Any] = {
    "poll_interval_seconds": 2.0,
    "forfeiture_window_seconds": 3.0,
    "autoplay_delay_seconds": 1.0,
    "autoplay_bank_threshold": 87,
    "winning_score": 100,
    "request_timeout_seconds": 10.0,
    "tick_seconds": 0.25,
    "storage_path": "doublesix_state.json",
    "log_file": "doublesix_sync.log",
}

REQUIRED_CONFIG_KEYS = [
    "api_base_url",
    "username",
    "password",
]

POSITIVE_KEYS = [
    "poll_interval_seconds",
    "forfeiture_window_seconds",
    "request_timeout_seconds",
    "tick_seconds",
    "winning_score",
    "autoplay_bank_threshold",
]

ENV_MAPPINGS = {
    "DOUBLESIX_API_URL": "api_base_url",
    "DOUBLESIX_USERNAME": "username",
    "DOUBLESIX_PASSWORD": "password",
    "POLL_INTERVAL_SECONDS": "poll_interval_seconds",
    "FORFEITURE_WINDOW_SECONDS": "forfeiture_window_seconds",
    "AUTOPLAY_DELAY_SECONDS": "autoplay_delay_seconds",
    "DOUBLESIX_STORAGE": "storage_path",
}

FLOAT_KEYS = {
    "poll_interval_seconds",
    "forfeiture_window_seconds",
    "autoplay_delay_seconds",
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Defaults, then the JSON config file, then .env / environment variables."""
    config: Dict[str, Any] = dict(DEFAULTS)

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path, encoding="utf-8") as f:
                config.update(json.load(f))
        else:
            logger.warning(f"Config file not found: {config_path}")

    load_dotenv(find_dotenv(usecwd=True))
    for env_key, config_key in ENV_MAPPINGS.items():
        if env_key in os.environ:
            value: Any = os.environ[env_key]
            if config_key in FLOAT_KEYS:
                value = float(value)
            config[config_key] = value

    return config


def validate_config(config: dict) -> None:
    """
    Validate required configuration keys and timing values.

    Args:
        config: Configuration dict

    Raises:
        ValueError: If required keys are missing or a value is not positive
    """
    missing = [k for k in REQUIRED_CONFIG_KEYS if not config.get(k)]
    if missing:
        raise ValueError(f"Missing required config keys: {missing}")
    bad = [k for k in POSITIVE_KEYS if k in config and not config[k] > 0]
    if bad:
        raise ValueError(f"Config values must be positive: {bad}")
    if config.get("autoplay_delay_seconds", 0) < 0:
        raise ValueError("autoplay_delay_seconds must not be negative")
