import asyncio

import freezegun

from notekeep.server.services.coordination import SqliteCoordinationService
from tests.server.services.fakes import FakeCoordinationService


async def test_key_expiry() -> None:
    service = FakeCoordinationService()
    await service.set_value("foo", "bar", ttl=1)

    assert await service.get_value("foo") == "bar"

    await asyncio.sleep(1.1)
    assert await service.get_value("foo") is None


async def test_pop_value() -> None:
    service = FakeCoordinationService()
    await service.set_value("foo", "bar")

    assert await service.pop_value("foo") == "bar"
    assert await service.pop_value("foo") is None
    assert await service.get_value("foo") is None


async def test_sqlite_set_get_delete(
    coordination_service: SqliteCoordinationService,
) -> None:
    key = "session:abc"
    assert await coordination_service.get_value(key) is None

    await coordination_service.set_value(key, "1", ttl=60)
    assert await coordination_service.get_value(key) == "1"

    # Overwrite
    await coordination_service.set_value(key, "2", ttl=60)
    assert await coordination_service.get_value(key) == "2"

    await coordination_service.delete_value(key)
    assert await coordination_service.get_value(key) is None


async def test_sqlite_pop_value(
    coordination_service: SqliteCoordinationService,
) -> None:
    await coordination_service.set_value("session:abc", "7", ttl=60)

    assert await coordination_service.pop_value("session:abc") == "7"
    assert await coordination_service.pop_value("session:abc") is None


async def test_sqlite_expiry(coordination_service: SqliteCoordinationService) -> None:
    with freezegun.freeze_time("2024-01-01 12:00:00"):
        await coordination_service.set_value("confirmed-token:abc", "1", ttl=10)
        assert await coordination_service.get_value("confirmed-token:abc") == "1"

    with freezegun.freeze_time("2024-01-01 12:00:11"):
        assert await coordination_service.get_value("confirmed-token:abc") is None
