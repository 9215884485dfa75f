"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- In-memory repositories sharing one backend
- A mocked mailer that reports successful delivery
- A helper to create users directly in the backend
"""

from collections.abc import Callable
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest

from src.adapters.repository.memory import (
    InMemoryBackend,
    InMemorySocialAccountRepository,
    InMemoryTokenStore,
    InMemoryUserRepository,
)
from src.domain.events import EventDispatcher
from src.domain.models import User
from tests.support import FixedClock


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def backend(clock: FixedClock) -> InMemoryBackend:
    return InMemoryBackend(clock=clock)


@pytest.fixture
def users(backend: InMemoryBackend) -> InMemoryUserRepository:
    return InMemoryUserRepository(backend)


@pytest.fixture
def tokens(backend: InMemoryBackend) -> InMemoryTokenStore:
    return InMemoryTokenStore(backend)


@pytest.fixture
def accounts(backend: InMemoryBackend) -> InMemorySocialAccountRepository:
    return InMemorySocialAccountRepository(backend)


@pytest.fixture
def events() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture
def mailer() -> Mock:
    """Mailer whose sends succeed."""
    sender = Mock()
    sender.send_welcome.return_value = True
    sender.send_confirmation.return_value = True
    return sender


@pytest.fixture
def make_user(users: InMemoryUserRepository, clock: FixedClock) -> Callable[..., User]:
    """Create a stored user; unconfirmed unless confirmed=True."""

    def _make(email: str = "user@example.com", username: str = "user", confirmed: bool = False) -> User:
        user = users.create(
            User(
                username=username,
                email=email,
                password_hash="$2b$04$notarealhashnotarealhashnotarealhashnotarealhashnot",
                confirmed_at=clock() if confirmed else None,
            )
        )
        assert user is not None
        return user

    return _make
