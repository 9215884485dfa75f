"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, Request
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import (
    PostgresSocialAccountRepository,
    PostgresTokenStore,
    PostgresUserRepository,
)
from src.adapters.smtp.console import ConsoleMailer
from src.config.settings import Settings, get_settings
from src.domain.confirmation import ConfirmationService
from src.domain.events import EventDispatcher
from src.domain.ports import Mailer, SocialAccountRepository, TokenStore, UserRepository
from src.domain.registration import RegistrationService
from src.domain.resend import ResendService
from src.domain.social import SocialConnectService


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_user_repository(request: Request) -> UserRepository:
    return PostgresUserRepository(get_pool(request))


def get_token_store(request: Request) -> TokenStore:
    return PostgresTokenStore(get_pool(request))


def get_social_account_repository(request: Request) -> SocialAccountRepository:
    return PostgresSocialAccountRepository(get_pool(request))


def get_events(request: Request) -> EventDispatcher:
    """Get the application-wide event dispatcher, created with the app."""
    return request.app.state.events


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    """Get console mailer configured from settings."""
    return ConsoleMailer(
        app_name=settings.app_name,
        base_url=settings.base_url,
        allow_password_recovery=settings.allow_password_recovery,
    )


def get_registration_service(
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenStore = Depends(get_token_store),
    mailer: Mailer = Depends(get_mailer),
    events: EventDispatcher = Depends(get_events),
    settings: Settings = Depends(get_settings),
) -> RegistrationService:
    """Create registration service with injected dependencies."""
    return RegistrationService(
        users=users,
        tokens=tokens,
        mailer=mailer,
        events=events,
        registration_enabled=settings.enable_registration,
        confirmation_required=settings.enable_email_confirmation,
        confirmation_ttl=settings.confirmation_ttl,
        generate_passwords=settings.generate_passwords,
        auto_login=settings.enable_auto_login,
        bcrypt_cost=settings.bcrypt_cost,
    )


def get_confirmation_service(
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenStore = Depends(get_token_store),
    events: EventDispatcher = Depends(get_events),
    settings: Settings = Depends(get_settings),
) -> ConfirmationService:
    """Create confirmation service with injected dependencies."""
    return ConfirmationService(
        users=users,
        tokens=tokens,
        events=events,
        confirmation_enabled=settings.enable_email_confirmation,
    )


def get_resend_service(
    users: UserRepository = Depends(get_user_repository),
    tokens: TokenStore = Depends(get_token_store),
    mailer: Mailer = Depends(get_mailer),
    events: EventDispatcher = Depends(get_events),
    settings: Settings = Depends(get_settings),
) -> ResendService:
    """Create resend service with injected dependencies."""
    return ResendService(
        users=users,
        tokens=tokens,
        mailer=mailer,
        events=events,
        confirmation_enabled=settings.enable_email_confirmation,
        confirmation_ttl=settings.confirmation_ttl,
    )


def get_social_connect_service(
    users: UserRepository = Depends(get_user_repository),
    accounts: SocialAccountRepository = Depends(get_social_account_repository),
    mailer: Mailer = Depends(get_mailer),
    events: EventDispatcher = Depends(get_events),
    settings: Settings = Depends(get_settings),
) -> SocialConnectService:
    """Create social connect service with injected dependencies."""
    return SocialConnectService(
        users=users,
        accounts=accounts,
        mailer=mailer,
        events=events,
        bcrypt_cost=settings.bcrypt_cost,
    )
