"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .models import SocialNetworkAccount, Token, User


class TokenType(str, Enum):
    """Purpose of a token. Only CONFIRMATION is issued by this service."""

    CONFIRMATION = "confirmation"
    RECOVERY = "recovery"
    RESEND = "resend"


class Outcome(Enum):
    """
    Result of a registration, connect, confirm or resend operation.

    Token failures (INVALID_TOKEN, EXPIRED_TOKEN, ALREADY_CONSUMED) exist
    for internal decisions and tests. Callers collapse them into one
    generic message so responses reveal nothing about which check failed.
    """

    SUCCESS = "success"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    ALREADY_CONSUMED = "already_consumed"
    ALREADY_LINKED = "already_linked"
    DISPATCH_FAILED = "dispatch_failed"
    NOT_RESENDABLE = "not_resendable"

    @property
    def is_token_failure(self) -> bool:
        return self in (Outcome.INVALID_TOKEN, Outcome.EXPIRED_TOKEN, Outcome.ALREADY_CONSUMED)


class UserRepository(Protocol):
    """Port interface for user persistence."""

    def find_by_id(self, user_id: int) -> User | None: ...

    def find_by_email(self, email: str) -> User | None: ...

    def find_by_username(self, username: str) -> User | None: ...

    def create(self, user: User) -> User | None:
        """
        Insert a new user.

        Returns:
            The stored user with id and created_at filled in, or None if
            the email or username is already taken
        """
        ...


class TokenStore(Protocol):
    """Port interface for token persistence and lookup."""

    def issue(self, user_id: int, token_type: TokenType, ttl: timedelta) -> Token:
        """
        Mint a fresh token for the user, replacing any previous token of
        the same type in the same atomic write.

        Args:
            user_id: Owning user
            token_type: Token purpose
            ttl: Lifetime; expires_at = now + ttl

        Returns:
            The newly persisted token
        """
        ...

    def resolve(self, code: str) -> Token | None:
        """Exact-match lookup. Performs no expiry or consumption checks."""
        ...

    def consume(self, token: Token) -> Outcome:
        """
        Compare-and-set the consumed flag.

        Returns:
            SUCCESS for the single winning caller, ALREADY_CONSUMED otherwise
        """
        ...

    def consume_and_confirm(self, token: Token) -> Outcome:
        """
        Consume the token and mark its owner confirmed as one atomic unit.

        Returns:
            SUCCESS for the single winning caller, ALREADY_CONSUMED otherwise
        """
        ...

    def purge_expired(self, now: datetime) -> int:
        """Delete tokens that expired before now. Returns the count removed."""
        ...


class SocialAccountRepository(Protocol):
    """Port interface for social-network account persistence."""

    def find_by_code(self, code: str) -> SocialNetworkAccount | None: ...

    def save(self, account: SocialNetworkAccount) -> SocialNetworkAccount:
        """
        Insert the account when it has no id, otherwise update it in place.

        Raises:
            AlreadyTaken: If another account has the same (provider, client_id)
                or the same code; nothing is written
        """
        ...

    def connect_new_user(self, account: SocialNetworkAccount, user: User) -> User | None:
        """
        Insert the user and link the account to it in one transaction.

        The link only applies while the account is still unlinked. If the
        account was linked concurrently, or the user conflicts with an
        existing one, nothing is written.

        Returns:
            The stored user, or None if nothing was written
        """
        ...


class Mailer(Protocol):
    """Port interface for email delivery."""

    def send_welcome(
        self, user: User, token: Token | None = None, password: str | None = None
    ) -> bool:
        """
        Send the welcome message, with a confirmation link when a token is
        given and the generated password when one is given.

        Returns:
            True if the message was handed off for delivery
        """
        ...

    def send_confirmation(self, user: User, token: Token) -> bool:
        """
        Send a message containing the confirmation link.

        Returns:
            True if the message was handed off for delivery
        """
        ...
