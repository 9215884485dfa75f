"""
Domain layer - Pure business logic with zero framework imports.

This package contains the account registration and confirmation token
lifecycle. It defines its own port interfaces for infrastructure
abstraction; adapters implement them structurally.
"""

from .confirmation import ConfirmationService
from .events import Event, EventDispatcher
from .exceptions import AlreadyTaken, NotFound, RegistrationError, ValidationFailed
from .models import SocialNetworkAccount, Token, User
from .ports import (
    Mailer,
    Outcome,
    SocialAccountRepository,
    TokenStore,
    TokenType,
    UserRepository,
)
from .registration import RegistrationResult, RegistrationService
from .resend import ResendService
from .social import SocialConnectService

__all__ = [
    "AlreadyTaken",
    "ConfirmationService",
    "Event",
    "EventDispatcher",
    "Mailer",
    "NotFound",
    "Outcome",
    "RegistrationError",
    "RegistrationResult",
    "RegistrationService",
    "ResendService",
    "SocialAccountRepository",
    "SocialConnectService",
    "SocialNetworkAccount",
    "Token",
    "TokenStore",
    "TokenType",
    "User",
    "UserRepository",
    "ValidationFailed",
]
