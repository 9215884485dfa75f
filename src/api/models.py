"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, EmailStr, Field

USERNAME_PATTERN = r"^[-a-zA-Z0-9_\.@\+]+$"


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    email: EmailStr
    username: str = Field(
        ...,
        min_length=3,
        max_length=255,
        pattern=USERNAME_PATTERN,
        description="Letters, digits and -_.@+ only",
    )
    password: str | None = Field(
        None,
        min_length=6,
        max_length=72,
        description="User password, may be omitted when passwords are generated",
    )


class ConnectRequest(BaseModel):
    """
    Request model for finishing a social-network sign up.

    Email and username fall back to the values the provider returned.
    """

    email: EmailStr | None = None
    username: str | None = Field(
        None,
        min_length=3,
        max_length=255,
        pattern=USERNAME_PATTERN,
        description="Letters, digits and -_.@+ only, defaults to the provider's username",
    )
    password: str | None = Field(
        None,
        min_length=6,
        max_length=72,
        description="User password, generated when omitted",
    )


class RegisterResponse(BaseModel):
    """Response model for successful registration or connect."""

    message: str
    user_id: int
    auto_login: bool


class ResendRequest(BaseModel):
    """Request model for re-sending the confirmation message."""

    email: EmailStr


class MessageResponse(BaseModel):
    """Response model carrying a user-facing message."""

    title: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str


class FieldErrors(BaseModel):
    """Business-rule rejection with per-field messages."""

    message: str
    errors: dict[str, str]


class FieldErrorResponse(BaseModel):
    """Error response model for field-level conflicts."""

    detail: FieldErrors
