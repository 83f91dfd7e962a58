"""Outgoing email.

Delivery is an external concern. The outbox implementation writes each
message to a text file so a developer can open the confirmation link.
"""

import datetime
import logging
import uuid
from abc import ABC, abstractmethod
from pathlib import Path

import aiofiles

logger = logging.getLogger(__name__)

CONFIRMATION_SUBJECT = "Confirm your account"

CONFIRMATION_BODY = """Hello,

Please confirm your account by clicking the following link:

{confirmation_url}

If you did not register for this account, please ignore this email.
"""


class EmailService(ABC):
    """Interface for sending account emails."""

    @abstractmethod
    async def send_confirmation_email(self, to: str, token: str) -> None:
        """Send the account confirmation link to a new user."""


class OutboxEmailService(EmailService):
    """Writes emails as `.txt` files into an outbox directory."""

    def __init__(self, outbox_dir: Path | str, public_url: str) -> None:
        self._outbox_dir = Path(outbox_dir)
        self._public_url = public_url.rstrip("/")

    def confirmation_url(self, token: str) -> str:
        return f"{self._public_url}/auth/confirm/{token}"

    async def send_confirmation_email(self, to: str, token: str) -> None:
        body = CONFIRMATION_BODY.format(confirmation_url=self.confirmation_url(token))
        await self._save(to, CONFIRMATION_SUBJECT, body)

    async def _save(self, to: str, subject: str, body: str) -> None:
        self._outbox_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        path = self._outbox_dir / f"{stamp}_{uuid.uuid4().hex[:12]}.txt"
        async with aiofiles.open(path, "w") as f:
            await f.write(f"To: {to}\nSubject: {subject}\n\n{body}")
        logger.info("Wrote email for %s to %s", to, path)
