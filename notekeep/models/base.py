"""Module for API base classes."""

from dataclasses import dataclass
from enum import Enum
from typing import Self

from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin


@dataclass
class ErrorResponse(DataClassJSONMixin):
    """Body returned for every failed request."""

    error: str
    """Human readable error message."""

    details: list[str] | None = None
    """Per-field validation messages formatted as `field: message`."""

    class Config(BaseConfig):
        serialize_by_alias = True
        omit_none = True


@dataclass
class MessageResponse(DataClassJSONMixin):
    """Body returned by endpoints that only acknowledge an action."""

    message: str

    class Config(BaseConfig):
        serialize_by_alias = True
        omit_none = True


def create_error_response(
    error: str, details: list[str] | None = None
) -> ErrorResponse:
    """Create an error response."""
    return ErrorResponse(error=error, details=details)


class BaseEnum(Enum):
    """Base enum class."""

    @classmethod
    def from_value(cls, value: str) -> Self:
        for member in cls:
            if member.value == value:
                return member
        raise ValueError(f"Invalid {cls.__name__} value: {value}")

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class RequestConfig(BaseConfig):
    """Config shared by request DTOs: unknown keys are rejected."""

    serialize_by_alias = True
    omit_none = True
    forbid_extra_keys = True
