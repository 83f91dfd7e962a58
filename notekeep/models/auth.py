"""Data models for account related API calls.

The following endpoints are supported:
- /auth/register (POST)
- /auth/confirm/{token} (GET)
- /auth/auto-verify (POST)
- /auth/login (POST)
- /auth/logout (POST)
- /auth/me (GET)
"""

from dataclasses import dataclass, field

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin

from .base import RequestConfig

MIN_PASSWORD_LENGTH = 6
"""Minimum password length enforced by clients before registering."""


@dataclass
class RegisterDTO(DataClassJSONMixin):
    """Request to register a new account.

    Used by:
        /auth/register (POST)
    """

    email: str
    password: str

    class Config(RequestConfig):
        pass


@dataclass
class LoginDTO(DataClassJSONMixin):
    """Request to log in.

    Used by:
        /auth/login (POST)
    """

    email: str
    password: str

    class Config(RequestConfig):
        pass


@dataclass
class AutoVerifyDTO(DataClassJSONMixin):
    """Request to verify an account without the confirmation email.

    Used by:
        /auth/auto-verify (POST)
    """

    email: str

    class Config(RequestConfig):
        pass


@dataclass
class UserRefVO(DataClassJSONMixin):
    """Short reference to a user account."""

    id: int
    email: str

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class UserVO(DataClassJSONMixin):
    """Account details visible to the account owner."""

    id: int
    email: str
    is_verified: bool = field(metadata=field_options(alias="isVerified"), default=False)

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class RegisterVO(DataClassJSONMixin):
    """Response for a successful registration.

    Used by:
        /auth/register (POST)
    """

    message: str
    user: UserRefVO

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class LoginVO(DataClassJSONMixin):
    """Response for a successful login or auto-verify.

    Used by:
        /auth/login (POST)
        /auth/auto-verify (POST)
    """

    message: str
    user: UserVO

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class UserQueryVO(DataClassJSONMixin):
    """Response describing the current session's account.

    Used by:
        /auth/me (GET)
    """

    user: UserVO

    class Config(BaseConfig):
        serialize_by_alias = True
