"""
API v1 routes.

Defines REST endpoints for registration, social connect, confirmation and
resend. Routes translate domain outcomes into fixed messages; token failures
and resend results are indistinguishable from the outside.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import (
    get_confirmation_service,
    get_registration_service,
    get_resend_service,
    get_social_connect_service,
)
from src.api.models import (
    ConnectRequest,
    ErrorResponse,
    FieldErrorResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    ResendRequest,
)
from src.config.settings import Settings, get_settings
from src.domain.confirmation import ConfirmationService
from src.domain.exceptions import AlreadyTaken, NotFound, ValidationFailed
from src.domain.ports import Outcome
from src.domain.registration import RegistrationService
from src.domain.resend import ResendService
from src.domain.social import SocialConnectService

router = APIRouter(tags=["v1"])

ACCOUNT_CREATED = "Your account has been created"
INSTRUCTIONS_SENT = (
    "Your account has been created and a message with further instructions "
    "has been sent to your email"
)
DISPATCH_FAILED = (
    "Your account has been created but we couldn't send the message with further "
    "instructions. Please request a new confirmation message."
)
ACCOUNT_CONNECTED = "Your account has been created and connected"
CONFIRMATION_TITLE = "Account confirmation"
CONFIRMED = "Thank you, registration is now complete."
INVALID_OR_EXPIRED = "The confirmation link is invalid or expired. Please try requesting a new one."
RESEND_TITLE = "A new confirmation link has been sent"
RESEND_SENT = (
    "If this address belongs to an account awaiting confirmation, a message "
    "containing a new confirmation link has been sent to it."
)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


def _field_errors(exc: ValidationFailed) -> HTTPException:
    """409 for values colliding with existing records, 422 for anything else."""
    if isinstance(exc, AlreadyTaken):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    return HTTPException(
        status_code=status_code,
        detail={"message": "Registration failed", "errors": exc.errors},
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Registration disabled"},
        409: {"model": FieldErrorResponse, "description": "Email or username taken"},
        422: {"description": "Validation error or missing password"},
        503: {"model": ErrorResponse, "description": "Welcome message not sent"},
    },
    summary="Register a new user",
    description="Create an account. When email confirmation is enabled, a "
    "confirmation link is sent to the provided address.",
)
async def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> RegisterResponse:
    """
    Register a new user and send the welcome message.

    - **email**: Valid email address to register
    - **username**: Unique username
    - **password**: Password (6-72 characters), optional when generated
    """
    try:
        result = service.register(
            request_data.email, request_data.username, request_data.password
        )
    except NotFound:
        raise _not_found() from None
    except ValidationFailed as exc:
        raise _field_errors(exc) from None

    if result.outcome is Outcome.DISPATCH_FAILED:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DISPATCH_FAILED)

    message = ACCOUNT_CREATED if result.user.is_confirmed else INSTRUCTIONS_SENT
    return RegisterResponse(message=message, user_id=result.user.id, auto_login=result.auto_login)


@router.post(
    "/connect/{code}",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse, "description": "Unknown or already connected account"},
        409: {"model": FieldErrorResponse, "description": "Email or username taken"},
        422: {"description": "Validation error or no email/username from request or provider"},
    },
    summary="Finish a social-network sign up",
    description="Create a local account for a social-network account that "
    "completed the OAuth handshake and link the two.",
)
async def connect(
    code: str,
    request_data: ConnectRequest,
    service: SocialConnectService = Depends(get_social_connect_service),
) -> RegisterResponse:
    """
    Create and link the user; the caller logs the returned user in.

    Omitted email and username are taken from the provider's account data.
    """
    try:
        result = service.connect(
            code, request_data.email, request_data.username, request_data.password
        )
    except NotFound:
        raise _not_found() from None
    except ValidationFailed as exc:
        raise _field_errors(exc) from None

    if result.outcome is Outcome.ALREADY_LINKED:
        raise _not_found()

    return RegisterResponse(message=ACCOUNT_CONNECTED, user_id=result.user.id, auto_login=result.auto_login)


@router.get(
    "/confirm/{user_id}/{code}",
    response_model=MessageResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired link"},
        404: {"model": ErrorResponse, "description": "Unknown user or confirmation disabled"},
    },
    summary="Confirm account",
    description="Target of the link sent by email.",
)
async def confirm(
    user_id: int,
    code: str,
    service: ConfirmationService = Depends(get_confirmation_service),
) -> MessageResponse:
    """Confirm the account; every token failure gets the same message."""
    try:
        outcome = service.confirm(user_id, code)
    except NotFound:
        raise _not_found() from None

    if outcome is not Outcome.SUCCESS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_OR_EXPIRED)

    return MessageResponse(title=CONFIRMATION_TITLE, message=CONFIRMED)


@router.post(
    "/resend",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        404: {"model": ErrorResponse, "description": "Confirmation disabled"},
        422: {"description": "Validation error"},
    },
    summary="Re-send confirmation message",
    description="Always answers the same way for a well-formed email so the "
    "response does not reveal whether the account exists.",
)
async def resend(
    request_data: ResendRequest,
    service: ResendService = Depends(get_resend_service),
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """
    Rotate the confirmation token and mail it.

    Unknown, confirmed, blocked and mail-failure cases all get the same 202.
    Only a deployment with email confirmation switched off answers 404; that
    is the same for every address, so it reveals nothing about accounts.
    """
    if not settings.enable_email_confirmation:
        raise _not_found()

    service.resend(request_data.email)
    return MessageResponse(title=RESEND_TITLE, message=RESEND_SENT)
