"""
Confirmation domain service - Verifies emailed confirmation tokens.

Check order:
    user exists and confirmation enabled  -> else NotFound (request-fatal)
    code resolves                         -> else INVALID_TOKEN
    token owned by user, right type       -> else INVALID_TOKEN
    not expired                           -> else EXPIRED_TOKEN
    not consumed                          -> else ALREADY_CONSUMED
    consume + confirm (atomic, CAS)       -> SUCCESS, or ALREADY_CONSUMED for the loser

The user is looked up by an id supplied independently of the code, so a
valid code for one account cannot confirm another.
"""

import logging
from dataclasses import dataclass, field

from .events import Event, EventDispatcher
from .exceptions import NotFound
from .ports import Outcome, TokenStore, TokenType, UserRepository
from .security import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ConfirmationService:
    """Domain service for account confirmation."""

    users: UserRepository
    tokens: TokenStore
    events: EventDispatcher = field(default_factory=EventDispatcher)
    confirmation_enabled: bool = True
    clock: Clock = utc_now

    def confirm(self, user_id: int, code: str) -> Outcome:
        """
        Confirm the user's email address with a presented token code.

        Args:
            user_id: Target user, taken from the confirmation link
            code: Token code, taken from the confirmation link

        Returns:
            Outcome.SUCCESS or one of the token failure outcomes

        Raises:
            NotFound: If the user does not exist or confirmation is disabled
        """
        user = self.users.find_by_id(user_id)
        if user is None or not self.confirmation_enabled:
            raise NotFound("user or confirmation not available")

        self.events.trigger(Event.BEFORE_CONFIRMATION, user=user)

        outcome = self._check_and_consume(user.id, code)
        if outcome is Outcome.SUCCESS:
            logger.info("User %s confirmed", user.id)
            self.events.trigger(Event.AFTER_CONFIRMATION, user=user)
        else:
            logger.info("Confirmation for user %s rejected: %s", user.id, outcome.value)
        return outcome

    def _check_and_consume(self, user_id: int, code: str) -> Outcome:
        token = self.tokens.resolve(code)
        if token is None:
            return Outcome.INVALID_TOKEN
        if token.user_id != user_id or token.type is not TokenType.CONFIRMATION:
            return Outcome.INVALID_TOKEN
        now = self.clock()
        if token.is_live(now):
            return self.tokens.consume_and_confirm(token)
        if token.is_expired(now):
            return Outcome.EXPIRED_TOKEN
        return Outcome.ALREADY_CONSUMED
