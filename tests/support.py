"""Test helpers shared across suites."""

from datetime import datetime, timedelta

from fastapi import FastAPI

from src.adapters.repository.memory import (
    InMemoryBackend,
    InMemorySocialAccountRepository,
    InMemoryTokenStore,
    InMemoryUserRepository,
)
from src.api.dependencies import (
    get_social_account_repository,
    get_token_store,
    get_user_repository,
)
from src.api.v1 import router
from src.config.settings import Settings, get_settings
from src.domain.events import EventDispatcher

# Lowest bcrypt cost keeps the suite fast; the default cost is asserted separately
FAST_BCRYPT_COST = 4
TTL = timedelta(hours=24)


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def build_app(backend: InMemoryBackend, settings: Settings) -> FastAPI:
    """v1 application wired to in-memory repositories and the given settings."""
    app = FastAPI()
    app.include_router(router, prefix="/v1")
    app.state.events = EventDispatcher()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_user_repository] = lambda: InMemoryUserRepository(backend)
    app.dependency_overrides[get_token_store] = lambda: InMemoryTokenStore(backend)
    app.dependency_overrides[get_social_account_repository] = lambda: InMemorySocialAccountRepository(backend)
    return app
