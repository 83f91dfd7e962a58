from sqlalchemy import BigInteger, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notekeep.server.db.base import Base


class NoteDO(Base):
    """Database model for a note.

    Timestamps are written explicitly by the note service on every mutation.
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), index=True, nullable=False
    )
    """Owner user ID. Never changes after creation."""

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(20), index=True, nullable=False)

    create_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    """Creation time in milliseconds since the epoch."""

    update_time: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    """Last modification time in milliseconds since the epoch."""
