"""
Domain entities - Users, tokens and social-network accounts.

Plain dataclasses with no persistence concerns. Adapters map rows to and
from these types.
"""

from dataclasses import dataclass
from datetime import datetime

from .ports import TokenType


@dataclass
class User:
    """Identity record. The core only reads and writes confirmation status."""

    username: str
    email: str
    password_hash: str
    id: int | None = None
    confirmed_at: datetime | None = None
    blocked_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    @property
    def is_blocked(self) -> bool:
        return self.blocked_at is not None


@dataclass(frozen=True)
class Token:
    """
    Opaque, time-bounded credential owned by a user.

    A token is live while it is neither consumed nor expired. Consumed
    tokens are never reset in place; issuing a new token for the same
    user and type replaces the row with a fresh code.
    """

    user_id: int
    code: str
    type: TokenType
    created_at: datetime
    expires_at: datetime
    consumed_at: datetime | None = None

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_live(self, now: datetime) -> bool:
        return not self.is_consumed and not self.is_expired(now)


@dataclass
class SocialNetworkAccount:
    """Account created after an OAuth handshake, linked to a user by connect."""

    provider: str
    client_id: str
    code: str
    id: int | None = None
    user_id: int | None = None
    username: str | None = None
    email: str | None = None

    @property
    def is_connected(self) -> bool:
        return self.user_id is not None
