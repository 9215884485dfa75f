"""
Social connect domain service - Links a post-OAuth account to a new user.

The OAuth handshake happens elsewhere and leaves behind an unlinked
SocialNetworkAccount addressed by a random code. Connecting creates the
local user and links the account in one transaction, so a failure can never
leave the account half-linked. Email and username default to the hints the
provider returned. The caller authenticates the returned user.
"""

import logging
from dataclasses import dataclass, field

from .events import Event, EventDispatcher
from .exceptions import NotFound, ValidationFailed
from .models import User
from .ports import Mailer, Outcome, SocialAccountRepository, UserRepository
from .registration import EMAIL_BLANK, USERNAME_BLANK, RegistrationResult, check_availability
from .security import Clock, generate_password, hash_password, normalize_email, utc_now

logger = logging.getLogger(__name__)

ACCOUNT_TAKEN = "This social account has already been registered"
CODE_TAKEN = "This connect code is already in use"


@dataclass
class SocialConnectService:
    """Domain service finishing a social-network sign up."""

    users: UserRepository
    accounts: SocialAccountRepository
    mailer: Mailer
    events: EventDispatcher = field(default_factory=EventDispatcher)
    bcrypt_cost: int = 10
    clock: Clock = utc_now

    def connect(
        self,
        code: str,
        email: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> RegistrationResult:
        """
        Create a user for the social account identified by code.

        Args:
            code: Lookup code of the unlinked social account
            email: Email for the new user, defaults to the provider's hint
            username: Username for the new user, defaults to the provider's hint
            password: Optional password, generated when omitted

        Returns:
            RegistrationResult with SUCCESS or ALREADY_LINKED

        Raises:
            NotFound: If no social account has this code
            AlreadyTaken: If email/username are taken
            ValidationFailed: If neither the request nor the provider supplies
                an email or username
        """
        account = self.accounts.find_by_code(code)
        if account is None:
            raise NotFound("social account not found")
        if account.is_connected:
            return RegistrationResult(Outcome.ALREADY_LINKED)

        email = email or account.email
        username = username or account.username
        errors = {}
        if not email:
            errors["email"] = EMAIL_BLANK
        if not username:
            errors["username"] = USERNAME_BLANK
        if errors:
            raise ValidationFailed(errors)

        normalized_email = normalize_email(email)
        check_availability(self.users, normalized_email, username)
        self.events.trigger(Event.BEFORE_CONNECT, account=account, email=normalized_email)

        generated = None
        if not password:
            generated = password = generate_password()

        # The provider vouches for the address, no confirmation round trip
        user = User(
            username=username,
            email=normalized_email,
            password_hash=hash_password(password, self.bcrypt_cost),
            confirmed_at=self.clock(),
        )
        stored = self.accounts.connect_new_user(account, user)
        if stored is None:
            current = self.accounts.find_by_code(code)
            if current is not None and not current.is_connected:
                # The user insert lost a uniqueness race instead
                check_availability(self.users, normalized_email, username)
            logger.info("Social account %s was linked concurrently", account.id)
            return RegistrationResult(Outcome.ALREADY_LINKED)

        if not self.mailer.send_welcome(stored, None, generated):
            logger.warning("Welcome message could not be sent to user %s", stored.id)

        logger.info("Social account %s (%s) connected to user %s", account.id, account.provider, stored.id)
        self.events.trigger(Event.AFTER_CONNECT, account=account, user=stored)
        return RegistrationResult(Outcome.SUCCESS, stored, auto_login=True)
