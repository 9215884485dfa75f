"""Repository adapters - Database and in-memory implementations."""

from .memory import (
    InMemoryBackend,
    InMemorySocialAccountRepository,
    InMemoryTokenStore,
    InMemoryUserRepository,
)
from .postgres import (
    PostgresSocialAccountRepository,
    PostgresTokenStore,
    PostgresUserRepository,
    run_migrations,
)

__all__ = [
    "InMemoryBackend",
    "InMemorySocialAccountRepository",
    "InMemoryTokenStore",
    "InMemoryUserRepository",
    "PostgresSocialAccountRepository",
    "PostgresTokenStore",
    "PostgresUserRepository",
    "run_migrations",
]
