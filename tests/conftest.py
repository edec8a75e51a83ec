# Area: Test Support
"""Shared fixtures: a fake service with two accounts and a signed-in session."""

import pytest

from doublesix_sync._core.session import GameSession
from doublesix_sync._shared.storage import InMemoryStore

from fakes import FAST_CONFIG, FakeGameService


@pytest.fixture
def service():
    svc = FakeGameService()
    svc.add_account("alice")
    svc.add_account("bob")
    return svc


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def session(service, store):
    s = GameSession(service, store=store, config=FAST_CONFIG)
    assert s.sign_in("alice", "pw")
    return s


@pytest.fixture
def human_game(session):
    """alice vs bob, alice to move, bob not attached locally."""
    return session.create_game(opponent="bob")
