"""
Domain exceptions - Request-fatal error types for registration.

Recoverable results (token failures, mail failures, linked accounts) are
reported through the Outcome enum. Exceptions are reserved for conditions
that end the request before any mutation happens.
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class NotFound(RegistrationError):
    """Entity absent or feature disabled for this deployment."""

    pass


class ValidationFailed(RegistrationError):
    """Business-rule rejection of submitted data (field -> message)."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = errors
        super().__init__(", ".join(sorted(errors)))


class AlreadyTaken(ValidationFailed):
    """Submitted value collides with a unique field of an existing record."""

    pass
