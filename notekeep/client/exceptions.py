"""Exceptions raised by the notekeep client library."""


class NotekeepException(Exception):
    """Base exception for the client library."""


class NetworkException(NotekeepException):
    """The request never produced an HTTP response (connection or timeout)."""


class ApiException(NotekeepException):
    """The server answered with an error response."""

    def __init__(
        self, message: str, status: int | None = None, details: list[str] | None = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.details = details or []

    def field_errors(self) -> dict[str, list[str]]:
        """Group `field: message` details by field name.

        Details without a field prefix are ignored; callers show the main
        message for those instead.
        """
        errors: dict[str, list[str]] = {}
        for detail in self.details:
            field, sep, message = detail.partition(": ")
            if not sep:
                continue
            errors.setdefault(field, []).append(message)
        return errors


class BadRequestException(ApiException):
    """400: the request failed validation."""


class UnauthorizedException(ApiException):
    """401: missing session or bad credentials."""


class ForbiddenException(ApiException):
    """403: account not verified or not the resource owner."""


class NotFoundException(ApiException):
    """404: unknown resource."""


class ConflictException(ApiException):
    """409: duplicate unique value."""
