import time
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from notekeep.server.db.base import Base


class UserDO(Base):
    """User database model."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    email: Mapped[str] = mapped_column(String(180), unique=True, index=True)
    """Login email, compared exactly as stored."""

    password_hash: Mapped[str] = mapped_column(String, nullable=False)

    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    confirmation_token: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, index=True, nullable=True
    )
    """Pending confirmation token. Cleared once the account is verified."""

    confirmation_token_expires_at: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True
    )
    """Token expiry in milliseconds since the epoch."""

    create_time: Mapped[int] = mapped_column(
        BigInteger, default=lambda: int(time.time() * 1000)
    )

    def __repr__(self) -> str:
        return f"<UserDO(id={self.id}, email='{self.email}')>"
