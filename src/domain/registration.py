"""
Registration domain service - Account creation and first confirmation token.

Registration Flow
=================

1. Reject the request outright when registration is disabled (NotFound).
2. Normalize the email and check email/username availability
   (AlreadyTaken with field-level messages). A missing password is a
   plain ValidationFailed.
3. Hash the password, generating one first when the deployment does so.
4. Persist the user:
   - confirmation required: stored unconfirmed, a confirmation token is
     issued and sent with the welcome message
   - confirmation not required: stored confirmed, welcome message only
5. Report SUCCESS, or DISPATCH_FAILED when the welcome message could not be
   sent. The user row is kept in that case so a resend stays possible.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from .events import Event, EventDispatcher
from .exceptions import AlreadyTaken, NotFound, ValidationFailed
from .models import User
from .ports import Mailer, Outcome, TokenStore, TokenType, UserRepository
from .security import Clock, generate_password, hash_password, normalize_email, utc_now

logger = logging.getLogger(__name__)

EMAIL_TAKEN = "This email address has already been taken"
USERNAME_TAKEN = "This username has already been taken"
PASSWORD_BLANK = "Password cannot be blank"
EMAIL_BLANK = "Email cannot be blank"
USERNAME_BLANK = "Username cannot be blank"


@dataclass(frozen=True)
class RegistrationResult:
    """Outcome of register/connect plus the user the caller may log in."""

    outcome: Outcome
    user: User | None = None
    auto_login: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


def check_availability(users: UserRepository, email: str, username: str) -> None:
    """
    Raise AlreadyTaken listing every field that is already taken.

    Args:
        users: User repository
        email: Normalized email address
        username: Requested username
    """
    errors = {}
    if users.find_by_email(email) is not None:
        errors["email"] = EMAIL_TAKEN
    if users.find_by_username(username) is not None:
        errors["username"] = USERNAME_TAKEN
    if errors:
        raise AlreadyTaken(errors)


@dataclass
class RegistrationService:
    """
    Domain service for user registration.

    Composes user creation, token issuance and mail dispatch into one
    operation reporting a single outcome.
    """

    users: UserRepository
    tokens: TokenStore
    mailer: Mailer
    events: EventDispatcher = field(default_factory=EventDispatcher)
    registration_enabled: bool = True
    confirmation_required: bool = True
    confirmation_ttl: timedelta = timedelta(days=1)
    generate_passwords: bool = False
    auto_login: bool = True
    bcrypt_cost: int = 10
    clock: Clock = utc_now

    def register(self, email: str, username: str, password: str | None = None) -> RegistrationResult:
        """
        Register a new user.

        Args:
            email: User's email address (will be normalized)
            username: Requested username
            password: Plaintext password, optional when passwords are generated

        Returns:
            RegistrationResult with SUCCESS or DISPATCH_FAILED

        Raises:
            NotFound: If registration is disabled
            AlreadyTaken: If email/username are taken
            ValidationFailed: If the password is missing
        """
        if not self.registration_enabled:
            raise NotFound("registration is disabled")

        normalized_email = normalize_email(email)
        generated = None
        if self.generate_passwords:
            generated = password = generate_password()
        elif not password:
            raise ValidationFailed({"password": PASSWORD_BLANK})

        check_availability(self.users, normalized_email, username)
        self.events.trigger(Event.BEFORE_REGISTER, email=normalized_email, username=username)

        user = User(
            username=username,
            email=normalized_email,
            password_hash=hash_password(password, self.bcrypt_cost),
            confirmed_at=None if self.confirmation_required else self.clock(),
        )
        stored = self.users.create(user)
        if stored is None:
            # Lost a race against a concurrent registration
            check_availability(self.users, normalized_email, username)
            raise AlreadyTaken({"email": EMAIL_TAKEN})

        token = None
        if self.confirmation_required:
            token = self.tokens.issue(stored.id, TokenType.CONFIRMATION, self.confirmation_ttl)

        if not self.mailer.send_welcome(stored, token, generated):
            logger.warning("Welcome message could not be sent to user %s", stored.id)
            return RegistrationResult(Outcome.DISPATCH_FAILED, stored)

        logger.info("Registered user %s (confirmation required: %s)", stored.id, token is not None)
        self.events.trigger(Event.AFTER_REGISTER, user=stored)
        return RegistrationResult(
            Outcome.SUCCESS,
            stored,
            auto_login=self.auto_login and stored.is_confirmed,
        )
