"""Shared pytest fixtures for the marketplace inbox test suite."""

from __future__ import annotations

import pytest

from marketplace.domain.models import Message
from tests.fakes import FakeMessageStore, make_message


@pytest.fixture
def sample_messages() -> list[Message]:
    """Five messages for bob across two contacts, three of them unread by bob."""
    return [
        make_message("1", "alice", "bob", minute=0),
        make_message("2", "bob", "alice", minute=5, read=True),
        make_message("3", "alice", "bob", minute=10),
        make_message("4", "carol", "bob", minute=2),
        make_message("5", "carol", "bob", minute=3, read=True),
    ]


@pytest.fixture
def fake_store(sample_messages: list[Message]) -> FakeMessageStore:
    """A FakeMessageStore preloaded with ``sample_messages``."""
    return FakeMessageStore(sample_messages)
