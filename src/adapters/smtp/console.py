"""
Console mailer adapter - Implements Mailer protocol.

This module provides a console-based implementation of the domain's
mailer port, logging message bodies to stdout for demo purposes.
"""

import logging

from src.domain.models import Token, User

logger = logging.getLogger(__name__)


def confirmation_url(base_url: str, token: Token) -> str:
    """Absolute link the user follows to confirm the account."""
    return f"{base_url.rstrip('/')}/v1/confirm/{token.user_id}/{token.code}"


class ConsoleMailer:
    """
    Implements Mailer protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints messages to stdout.
    """

    def __init__(
        self,
        app_name: str = "registra",
        base_url: str = "http://localhost:8000",
        allow_password_recovery: bool = True,
    ) -> None:
        self.app_name = app_name
        self.base_url = base_url
        self.allow_password_recovery = allow_password_recovery

    def send_welcome(
        self, user: User, token: Token | None = None, password: str | None = None
    ) -> bool:
        """
        Log the welcome message (simulates email delivery).

        Args:
            user: Newly created user
            token: Confirmation token, when confirmation is required
            password: Generated password, when one was generated

        Returns:
            Always True
        """
        lines = ["Hello,", "", f"Your account on {self.app_name} has been created."]
        if password is not None:
            lines += ["We have generated a password for you:", password]
        if self.allow_password_recovery:
            lines += [
                "If you haven't received a password, you can reset it at:",
                f"{self.base_url.rstrip('/')}/user/recovery/request",
            ]
        if token is not None:
            lines += [
                "",
                "In order to complete your registration, please click the link below.",
                confirmation_url(self.base_url, token),
                "If you cannot click the link, please try pasting the text into your browser.",
            ]
        lines += [
            "",
            "You received this email because someone, possibly you or someone on your behalf, "
            f"have created an account at {self.app_name}.",
        ]
        return self._deliver(user.email, f"Welcome to {self.app_name}", "\n".join(lines))

    def send_confirmation(self, user: User, token: Token) -> bool:
        """
        Log the confirmation message (simulates email delivery).

        The link is logged at INFO level to be visible in docker-compose logs.
        """
        body = "\n".join(
            [
                "Hello,",
                "",
                f"Thank you for signing up on {self.app_name}.",
                "In order to complete your registration, please click the link below.",
                confirmation_url(self.base_url, token),
                "If you cannot click the link, please try pasting the text into your browser.",
            ]
        )
        return self._deliver(user.email, f"Confirm account on {self.app_name}", body)

    def _deliver(self, email: str, subject: str, body: str) -> bool:
        logger.info("[MAIL] To: %s Subject: %s\n%s", email, subject, body)
        return True
