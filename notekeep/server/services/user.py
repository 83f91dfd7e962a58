"""Account lifecycle: registration, email confirmation and verification."""

import asyncio
import logging
import re
import secrets
import time

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from notekeep.models.auth import UserRefVO, UserVO
from notekeep.server.db.models.user import UserDO
from notekeep.server.db.session import DatabaseSessionManager
from notekeep.server.exceptions import ConflictError, NotFoundError, ValidationError
from notekeep.server.services.coordination import CoordinationService
from notekeep.server.services.email import EmailService
from notekeep.server.utils.password import PasswordHasher

logger = logging.getLogger(__name__)

CONFIRMATION_TOKEN_BYTES = 32
CONFIRMATION_TOKEN_TTL_MS = 24 * 60 * 60 * 1000
CONSUMED_TOKEN_TTL = 30 * 24 * 60 * 60
CONSUMED_TOKEN_PREFIX = "confirmed-token:"

EMAIL_MAX_LENGTH = 180
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

CONFIRMED_MESSAGE = "Account confirmed successfully"
ALREADY_CONFIRMED_MESSAGE = "Account is already confirmed"


def now_ms() -> int:
    return int(time.time() * 1000)


def _to_user_vo(do: UserDO) -> UserVO:
    return UserVO(id=do.id, email=do.email, is_verified=do.is_verified)


def _validate_registration(email: str | None, password: str | None) -> list[str]:
    details = []
    if not isinstance(email, str) or not email.strip():
        details.append("email: This value should not be blank.")
    elif len(email) > EMAIL_MAX_LENGTH:
        details.append(
            f"email: This value is too long. It should have {EMAIL_MAX_LENGTH} "
            "characters or less."
        )
    elif not EMAIL_PATTERN.match(email):
        details.append("email: This value is not a valid email address.")
    if not isinstance(password, str) or not password.strip():
        details.append("password: This value should not be blank.")
    return details


class UserService:
    """Owns user accounts and their confirmation tokens."""

    def __init__(
        self,
        session_manager: DatabaseSessionManager,
        coordination_service: CoordinationService,
        email_service: EmailService,
        password_hasher: PasswordHasher,
    ) -> None:
        self._session_manager = session_manager
        self._coordination_service = coordination_service
        self._email_service = email_service
        self._password_hasher = password_hasher
        self._pending_emails: set[asyncio.Task] = set()

    async def register(self, email: str, password: str) -> UserRefVO:
        """Create an unverified account and send its confirmation link.

        The email is sent in the background; a delivery failure is logged and
        never affects the result.
        """
        if details := _validate_registration(email, password):
            raise ValidationError(details=details)
        email = email.strip()

        token = secrets.token_hex(CONFIRMATION_TOKEN_BYTES)
        async with self._session_manager.session() as session:
            if await self._find_by_email(session, email):
                raise ConflictError("User with this email already exists")
            user = UserDO(
                email=email,
                password_hash=self._password_hasher.hash(password),
                is_verified=False,
                confirmation_token=token,
                confirmation_token_expires_at=now_ms() + CONFIRMATION_TOKEN_TTL_MS,
            )
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as err:
                raise ConflictError("User with this email already exists") from err
            await session.refresh(user)
            result = UserRefVO(id=user.id, email=user.email)

        logger.info("Registered user %s", email)
        self._schedule_confirmation_email(email, token)
        return result

    async def confirm(self, token: str) -> str:
        """Verify the account holding `token` and return a status message."""
        async with self._session_manager.session() as session:
            stmt = select(UserDO).where(UserDO.confirmation_token == token)
            user = (await session.execute(stmt)).scalar_one_or_none()
            if user is None:
                if await self._coordination_service.get_value(
                    CONSUMED_TOKEN_PREFIX + token
                ):
                    return ALREADY_CONFIRMED_MESSAGE
                raise ValidationError("Invalid confirmation token")

            expires_at = user.confirmation_token_expires_at
            if expires_at is not None and now_ms() > expires_at:
                raise ValidationError("Confirmation token has expired")

            if user.is_verified:
                return ALREADY_CONFIRMED_MESSAGE

            self._mark_verified(user)
            await session.commit()
            logger.info("Confirmed user %s", user.email)

        await self._remember_consumed_token(token, user.id)
        return CONFIRMED_MESSAGE

    async def auto_verify(self, email: str) -> UserVO:
        """Verify an account without its confirmation token.

        This is a development and testing bypass for email delivery, separate
        from `confirm`. Deployments disable the route through configuration.
        """
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("Email is required")
        async with self._session_manager.session() as session:
            user = await self._find_by_email(session, email.strip())
            if user is None:
                raise NotFoundError("User not found")
            token = user.confirmation_token
            if not user.is_verified:
                self._mark_verified(user)
                await session.commit()
                logger.warning("Auto-verified user %s", user.email)
            result = _to_user_vo(user)

        if token:
            await self._remember_consumed_token(token, result.id)
        return result

    async def get_user(self, user_id: int) -> UserVO | None:
        """Load the current state of a user."""
        async with self._session_manager.session() as session:
            user = await session.get(UserDO, user_id)
            return _to_user_vo(user) if user else None

    async def get_user_by_email(self, email: str) -> UserVO | None:
        async with self._session_manager.session() as session:
            user = await self._find_by_email(session, email)
            return _to_user_vo(user) if user else None

    async def check_password(self, email: str, password: str) -> bool:
        """Check a password for an existing account."""
        async with self._session_manager.session() as session:
            user = await self._find_by_email(session, email)
            if user is None:
                return False
            return self._password_hasher.verify(password, user.password_hash)

    async def wait_for_notifications(self) -> None:
        """Wait for confirmation emails that are still being sent."""
        if self._pending_emails:
            await asyncio.gather(*self._pending_emails, return_exceptions=True)

    def _schedule_confirmation_email(self, email: str, token: str) -> None:
        task = asyncio.create_task(self._send_confirmation_email(email, token))
        self._pending_emails.add(task)
        task.add_done_callback(self._pending_emails.discard)

    async def _send_confirmation_email(self, email: str, token: str) -> None:
        try:
            await self._email_service.send_confirmation_email(email, token)
        except Exception:
            logger.exception("Failed to send confirmation email to %s", email)

    async def _remember_consumed_token(self, token: str, user_id: int) -> None:
        await self._coordination_service.set_value(
            CONSUMED_TOKEN_PREFIX + token, str(user_id), ttl=CONSUMED_TOKEN_TTL
        )

    @staticmethod
    def _mark_verified(user: UserDO) -> None:
        user.is_verified = True
        user.confirmation_token = None
        user.confirmation_token_expires_at = None

    @staticmethod
    async def _find_by_email(session: AsyncSession, email: str) -> UserDO | None:
        stmt = select(UserDO).where(UserDO.email == email)
        return (await session.execute(stmt)).scalar_one_or_none()
