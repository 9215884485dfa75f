"""
Resend domain service - Rotates the confirmation token and re-sends it.

Users are addressed by email, never by id. Callers must present
SUCCESS, NOT_RESENDABLE and DISPATCH_FAILED identically so the response
does not reveal whether an account exists or is already confirmed.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from .events import Event, EventDispatcher
from .ports import Mailer, Outcome, TokenStore, TokenType, UserRepository
from .security import normalize_email

logger = logging.getLogger(__name__)


@dataclass
class ResendService:
    """Domain service for re-sending confirmation messages."""

    users: UserRepository
    tokens: TokenStore
    mailer: Mailer
    events: EventDispatcher = field(default_factory=EventDispatcher)
    confirmation_enabled: bool = True
    confirmation_ttl: timedelta = timedelta(days=1)

    def resend(self, email: str) -> Outcome:
        """
        Issue a new confirmation token and mail it.

        Issuing replaces the previous confirmation token, so older links stop
        working. When mail dispatch fails the new token stays valid and a
        later retry simply rotates it again.

        Args:
            email: Address the account was registered with

        Returns:
            SUCCESS, NOT_RESENDABLE (unknown, confirmed or blocked account,
            or confirmation disabled) or DISPATCH_FAILED
        """
        normalized_email = normalize_email(email)
        self.events.trigger(Event.BEFORE_RESEND, email=normalized_email)

        if not self.confirmation_enabled:
            return Outcome.NOT_RESENDABLE

        user = self.users.find_by_email(normalized_email)
        if user is None or user.is_confirmed or user.is_blocked:
            return Outcome.NOT_RESENDABLE

        token = self.tokens.issue(user.id, TokenType.CONFIRMATION, self.confirmation_ttl)
        if not self.mailer.send_confirmation(user, token):
            logger.warning("Confirmation message could not be re-sent to user %s", user.id)
            return Outcome.DISPATCH_FAILED

        logger.info("Confirmation message re-sent to user %s", user.id)
        self.events.trigger(Event.AFTER_RESEND, user=user)
        return Outcome.SUCCESS
