# Area: Shared
"""
Shared utilities used by the core and the runner.

This package contains:
- Game service HTTP client
- Logging configuration
- Key-value persistence (win ledger, credential vault)
"""

from .api_client import GameServiceClient
from .logging_config import setup_logging, log_consistency_warning
from .storage import (
    KeyValueStore,
    InMemoryStore,
    JsonFileStore,
    WinLedger,
    CredentialVault,
)

__all__ = [
    "GameServiceClient",
    "setup_logging",
    "log_consistency_warning",
    "KeyValueStore",
    "InMemoryStore",
    "JsonFileStore",
    "WinLedger",
    "CredentialVault",
]
