"""
In-memory repository adapters - Implement the domain ports with dicts.

Used by tests and local development without PostgreSQL. All repositories
built on one InMemoryBackend share a single re-entrant lock, so the
compound writes (consume + confirm, user insert + account link) are as
atomic here as their SQL counterparts.
"""

import itertools
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from src.domain.exceptions import AlreadyTaken
from src.domain.models import SocialNetworkAccount, Token, User
from src.domain.ports import Outcome, TokenType
from src.domain.security import Clock, generate_token_code, utc_now
from src.domain.social import ACCOUNT_TAKEN, CODE_TAKEN


@dataclass
class InMemoryBackend:
    """Shared tables and lock for the in-memory adapters."""

    clock: Clock = utc_now
    users: dict[int, User] = field(default_factory=dict)
    tokens: dict[tuple[int, TokenType], Token] = field(default_factory=dict)
    accounts: dict[int, SocialNetworkAccount] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock)
    _user_ids: itertools.count = field(default_factory=lambda: itertools.count(1))
    _account_ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def insert_user(self, user: User) -> User | None:
        with self.lock:
            for existing in self.users.values():
                if existing.email == user.email or existing.username == user.username:
                    return None
            stored = replace(user, id=next(self._user_ids), created_at=self.clock())
            self.users[stored.id] = stored
            return replace(stored)


class InMemoryUserRepository:
    """Implements UserRepository protocol over an InMemoryBackend."""

    def __init__(self, backend: InMemoryBackend) -> None:
        self._backend = backend

    def find_by_id(self, user_id: int) -> User | None:
        with self._backend.lock:
            user = self._backend.users.get(user_id)
            return replace(user) if user else None

    def find_by_email(self, email: str) -> User | None:
        return self._find(lambda u: u.email == email)

    def find_by_username(self, username: str) -> User | None:
        return self._find(lambda u: u.username == username)

    def create(self, user: User) -> User | None:
        return self._backend.insert_user(user)

    def _find(self, predicate) -> User | None:
        with self._backend.lock:
            for user in self._backend.users.values():
                if predicate(user):
                    return replace(user)
        return None


class InMemoryTokenStore:
    """Implements TokenStore protocol over an InMemoryBackend."""

    def __init__(self, backend: InMemoryBackend) -> None:
        self._backend = backend

    def issue(self, user_id: int, token_type: TokenType, ttl: timedelta) -> Token:
        now = self._backend.clock()
        token = Token(
            user_id=user_id,
            code=generate_token_code(),
            type=token_type,
            created_at=now,
            expires_at=now + ttl,
        )
        with self._backend.lock:
            # One slot per (user, type): the previous token is replaced
            self._backend.tokens[(user_id, token_type)] = token
        return token

    def resolve(self, code: str) -> Token | None:
        with self._backend.lock:
            for token in self._backend.tokens.values():
                if token.code == code:
                    return token
        return None

    def consume(self, token: Token) -> Outcome:
        with self._backend.lock:
            return self._consume_locked(token)

    def consume_and_confirm(self, token: Token) -> Outcome:
        with self._backend.lock:
            outcome = self._consume_locked(token)
            if outcome is Outcome.SUCCESS:
                user = self._backend.users.get(token.user_id)
                if user is not None and user.confirmed_at is None:
                    user.confirmed_at = self._backend.clock()
            return outcome

    def purge_expired(self, now: datetime) -> int:
        with self._backend.lock:
            expired = [key for key, token in self._backend.tokens.items() if token.is_expired(now)]
            for key in expired:
                del self._backend.tokens[key]
            return len(expired)

    def _consume_locked(self, token: Token) -> Outcome:
        key = (token.user_id, token.type)
        current = self._backend.tokens.get(key)
        if current is None or current.code != token.code or current.is_consumed:
            return Outcome.ALREADY_CONSUMED
        self._backend.tokens[key] = replace(current, consumed_at=self._backend.clock())
        return Outcome.SUCCESS


class InMemorySocialAccountRepository:
    """Implements SocialAccountRepository protocol over an InMemoryBackend."""

    def __init__(self, backend: InMemoryBackend) -> None:
        self._backend = backend

    def find_by_code(self, code: str) -> SocialNetworkAccount | None:
        with self._backend.lock:
            for account in self._backend.accounts.values():
                if account.code == code:
                    return replace(account)
        return None

    def save(self, account: SocialNetworkAccount) -> SocialNetworkAccount:
        with self._backend.lock:
            errors = {}
            for existing in self._backend.accounts.values():
                if existing.id == account.id:
                    continue
                if (existing.provider, existing.client_id) == (account.provider, account.client_id):
                    errors["client_id"] = ACCOUNT_TAKEN
                if existing.code == account.code:
                    errors["code"] = CODE_TAKEN
            if errors:
                raise AlreadyTaken(errors)
            if account.id is None:
                account = replace(account, id=next(self._backend._account_ids))
            self._backend.accounts[account.id] = replace(account)
            return account

    def connect_new_user(self, account: SocialNetworkAccount, user: User) -> User | None:
        with self._backend.lock:
            current = self._backend.accounts.get(account.id)
            if current is None or current.is_connected:
                return None
            stored = self._backend.insert_user(user)
            if stored is None:
                return None
            current.user_id = stored.id
            account.user_id = stored.id
            return stored
