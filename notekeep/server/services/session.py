"""Login sessions and the per-request caller context."""

import logging
import time
import uuid
from dataclasses import dataclass

import jwt

from notekeep.models.auth import UserVO
from notekeep.server.exceptions import (
    AccountNotVerifiedError,
    AuthenticationError,
    InvalidPasswordError,
    UserNotFoundError,
    VerificationRequiredError,
)
from notekeep.server.services.coordination import CoordinationService
from notekeep.server.services.user import UserService

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
SESSION_KEY_PREFIX = "session:"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password. Please try again."


@dataclass(frozen=True)
class RequestContext:
    """The authenticated caller of a single request.

    `is_verified` is read from the database when the request starts, so a
    change in verification state applies to the very next request.
    """

    user_id: int
    email: str
    is_verified: bool

    def require_verified(self) -> None:
        if not self.is_verified:
            raise VerificationRequiredError()


class SessionService:
    """Creates, resolves and revokes login sessions."""

    def __init__(
        self,
        user_service: UserService,
        coordination_service: CoordinationService,
        secret_key: str,
        session_ttl: int,
    ) -> None:
        self._user_service = user_service
        self._coordination_service = coordination_service
        self._secret_key = secret_key
        self._session_ttl = session_ttl

    async def login(self, email: str, password: str) -> tuple[str, UserVO]:
        """Check credentials and open a session.

        Returns the session token and the logged in user. Unverified accounts
        are rejected before any session exists.
        """
        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
        user = await self._user_service.get_user_by_email(email.strip())
        if user is None:
            logger.info("Login failed: user not found: %s", email)
            raise UserNotFoundError()
        if not await self._user_service.check_password(user.email, password):
            logger.info("Login failed: bad password for %s", email)
            raise InvalidPasswordError()
        if not user.is_verified:
            logger.info("Login refused: account not verified: %s", email)
            raise AccountNotVerifiedError()

        now = int(time.time())
        payload = {
            "sub": str(user.id),
            "iat": now,
            "exp": now + self._session_ttl,
            "jti": uuid.uuid4().hex,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=JWT_ALGORITHM)
        await self._coordination_service.set_value(
            SESSION_KEY_PREFIX + token, str(user.id), ttl=self._session_ttl
        )
        logger.info("User %s logged in", user.email)
        return token, user

    async def resolve(self, token: str | None) -> RequestContext | None:
        """Return the caller for a session token, or None if it is not valid."""
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[JWT_ALGORITHM])
        except jwt.InvalidTokenError:
            logger.debug("Rejected invalid session token")
            return None

        stored = await self._coordination_service.get_value(SESSION_KEY_PREFIX + token)
        if stored is None or stored != payload.get("sub"):
            return None

        user = await self._user_service.get_user(int(stored))
        if user is None:
            return None
        return RequestContext(
            user_id=user.id, email=user.email, is_verified=user.is_verified
        )

    async def logout(self, token: str | None) -> None:
        """Revoke a session. Unknown tokens are ignored."""
        if not token:
            return
        if await self._coordination_service.pop_value(SESSION_KEY_PREFIX + token):
            logger.info("Session closed")
