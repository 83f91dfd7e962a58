from sqlalchemy import Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notekeep.server.db.base import Base


class KeyValueDO(Base):
    """Expiring key-value entry used for sessions and consumed tokens."""

    __tablename__ = "kv_store"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    expiry: Mapped[float] = mapped_column(Float, nullable=False)
    """Expiry as seconds since the epoch."""
