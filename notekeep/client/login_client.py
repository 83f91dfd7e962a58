"""Client for account and session APIs."""

import logging

from notekeep.models.auth import (
    AutoVerifyDTO,
    LoginDTO,
    LoginVO,
    RegisterDTO,
    RegisterVO,
    UserQueryVO,
    UserVO,
)
from notekeep.models.base import MessageResponse

from .client import Client

_LOGGER = logging.getLogger(__name__)


class LoginClient:
    """A client library for registering and logging in."""

    def __init__(self, client: Client):
        """Initialize the client."""
        self._client = client

    async def register(self, email: str, password: str) -> RegisterVO:
        """Register a new, unverified account."""
        dto = RegisterDTO(email=email, password=password)
        return await self._client.post_json(
            "/auth/register", RegisterVO, json=dto.to_dict()
        )

    async def confirm(self, token: str) -> str:
        """Confirm an account with the token from the confirmation email."""
        response = await self._client.get_json(
            f"/auth/confirm/{token}", MessageResponse
        )
        return response.message

    async def auto_verify(self, email: str) -> UserVO:
        """Verify an account without email (development servers only)."""
        dto = AutoVerifyDTO(email=email)
        response = await self._client.post_json(
            "/auth/auto-verify", LoginVO, json=dto.to_dict()
        )
        return response.user

    async def login(self, email: str, password: str) -> UserVO:
        """Log in; the session cookie is kept by the underlying session."""
        dto = LoginDTO(email=email, password=password)
        response = await self._client.post_json(
            "/auth/login", LoginVO, json=dto.to_dict()
        )
        _LOGGER.debug("Logged in as %s", response.user.email)
        return response.user

    async def logout(self) -> None:
        await self._client.post_json("/auth/logout", MessageResponse)

    async def me(self) -> UserVO:
        """Return the account behind the current session."""
        response = await self._client.get_json("/auth/me", UserQueryVO)
        return response.user
