import logging
import time
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import delete, select

from notekeep.server.db.models.kv import KeyValueDO
from notekeep.server.db.session import DatabaseSessionManager

logger = logging.getLogger(__name__)

DEFAULT_TTL = 31536000


class CoordinationService(ABC):
    """Interface for expiring key-value state.

    Holds server side state that must outlive a single request:
    1. Session tokens (stateful JWT validity, revoked on logout).
    2. Consumed confirmation tokens.
    """

    @abstractmethod
    async def set_value(self, key: str, value: str, ttl: int | None = None) -> None:
        """Set a key-value pair with optional TTL."""

    @abstractmethod
    async def get_value(self, key: str) -> Optional[str]:
        """Get a value by key."""

    @abstractmethod
    async def delete_value(self, key: str) -> None:
        """Delete a key."""

    @abstractmethod
    async def pop_value(self, key: str) -> Optional[str]:
        """Get and delete a value."""


class LocalCoordinationService(CoordinationService):
    """In-memory implementation, used by tests and single process setups."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[str, float]] = {}

    async def set_value(self, key: str, value: str, ttl: int | None = None) -> None:
        self._store[key] = (value, time.time() + (ttl if ttl else DEFAULT_TTL))

    async def get_value(self, key: str) -> Optional[str]:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expiry = entry
        if time.time() > expiry:
            del self._store[key]
            return None
        return value

    async def delete_value(self, key: str) -> None:
        self._store.pop(key, None)

    async def pop_value(self, key: str) -> Optional[str]:
        value = await self.get_value(key)
        self._store.pop(key, None)
        return value


class SqliteCoordinationService(CoordinationService):
    """Database-backed implementation for key-value state."""

    def __init__(self, session_manager: DatabaseSessionManager) -> None:
        self._session_manager = session_manager

    async def set_value(self, key: str, value: str, ttl: int | None = None) -> None:
        """Set a key-value pair with optional TTL."""
        async with self._session_manager.session() as session:
            expiry = time.time() + (ttl if ttl else DEFAULT_TTL)

            # Upsert
            stmt = select(KeyValueDO).where(KeyValueDO.key == key)
            result = await session.execute(stmt)
            existing = result.scalar_one_or_none()

            if existing:
                existing.value = value
                existing.expiry = expiry
            else:
                session.add(KeyValueDO(key=key, value=value, expiry=expiry))

            await session.commit()

    async def get_value(self, key: str) -> Optional[str]:
        """Get a value by key."""
        async with self._session_manager.session() as session:
            stmt = select(KeyValueDO).where(KeyValueDO.key == key)
            result = await session.execute(stmt)
            kv = result.scalar_one_or_none()

            if not kv:
                return None

            if time.time() > kv.expiry:
                # Lazy delete
                await session.execute(delete(KeyValueDO).where(KeyValueDO.key == key))
                await session.commit()
                return None

            return kv.value

    async def delete_value(self, key: str) -> None:
        """Delete a key."""
        async with self._session_manager.session() as session:
            await session.execute(delete(KeyValueDO).where(KeyValueDO.key == key))
            await session.commit()

    async def pop_value(self, key: str) -> Optional[str]:
        """Get and delete a value atomically."""
        async with self._session_manager.session() as session:
            stmt = (
                delete(KeyValueDO)
                .where(KeyValueDO.key == key)
                .returning(KeyValueDO.value, KeyValueDO.expiry)
            )
            result = await session.execute(stmt)
            row = result.first()
            await session.commit()

            if not row:
                return None

            value, expiry = row
            if time.time() > expiry:
                return None
            return str(value)
