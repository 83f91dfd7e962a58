"""Exceptions raised by server services and converted to JSON by routes."""

from aiohttp import web

from notekeep.models.base import create_error_response

NOT_VERIFIED_MESSAGE = (
    "Your account is not verified. Please check your email and click the "
    "confirmation link to verify your account."
)


class NotekeepError(Exception):
    """Base class for errors that map to an HTTP error response."""

    status: int = 500

    def __init__(self, error_msg: str, details: list[str] | None = None) -> None:
        super().__init__(error_msg)
        self.error_msg = error_msg
        self.details = details

    def to_response(self) -> web.Response:
        """Convert the error into a JSON response."""
        return web.json_response(
            create_error_response(self.error_msg, self.details).to_dict(),
            status=self.status,
        )

    @classmethod
    def uncaught(cls, err: Exception) -> "InternalError":
        """Wrap an unexpected exception without leaking its details."""
        return InternalError("Internal server error")


class ValidationError(NotekeepError):
    """Malformed, missing or out of range request fields."""

    status = 400

    def __init__(
        self, error_msg: str = "Validation failed", details: list[str] | None = None
    ) -> None:
        super().__init__(error_msg, details)


class AuthenticationError(NotekeepError):
    """Missing session or bad credentials."""

    status = 401


class UserNotFoundError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("User not found. Please check your email address.")


class InvalidPasswordError(AuthenticationError):
    def __init__(self) -> None:
        super().__init__("Invalid password. Please try again.")


class AccountNotVerifiedError(AuthenticationError):
    """Correct credentials for an account that was never confirmed."""

    def __init__(self) -> None:
        super().__init__(NOT_VERIFIED_MESSAGE)


class VerificationRequiredError(NotekeepError):
    """Valid session for an account that is not verified."""

    status = 403

    def __init__(self) -> None:
        super().__init__(NOT_VERIFIED_MESSAGE)


class AuthorizationError(NotekeepError):
    """Valid session, but the caller does not own the resource."""

    status = 403


class NotFoundError(NotekeepError):
    status = 404


class ConflictError(NotekeepError):
    status = 409


class InternalError(NotekeepError):
    status = 500
