"""Shared pytest fixtures for server tests."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient

from notekeep.server.app import create_app
from notekeep.server.config import AuthConfig, ServerConfig
from notekeep.server.db.session import DatabaseSessionManager
from notekeep.server.services.coordination import SqliteCoordinationService
from notekeep.server.services.note import NoteService
from notekeep.server.services.session import SessionService
from notekeep.server.services.user import UserService
from notekeep.server.utils.password import PasswordHasher
from tests.conftest import TEST_SECRET_KEY, AiohttpClient
from tests.server.services.fakes import FakeEmailService

# Keep hashing fast in tests
TEST_PASSWORD_ITERATIONS = 1000
TEST_SESSION_TTL = 3600


@pytest.fixture
def mock_trace_log(tmp_path: Path) -> str | None:
    """Trace logging is off unless a test module enables it."""
    return None


@pytest.fixture
def outbox_dir(tmp_path: Path) -> Path:
    return tmp_path / "outbox"


@pytest.fixture
def server_config(
    tmp_path: Path, mock_trace_log: str | None, outbox_dir: Path
) -> ServerConfig:
    """Create a ServerConfig object for testing."""
    return ServerConfig(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'notekeep.db'}",
        trace_log_file=mock_trace_log,
        outbox_dir=str(outbox_dir),
        public_url="http://notes.test",
        auth=AuthConfig(
            secret_key=TEST_SECRET_KEY,
            password_iterations=TEST_PASSWORD_ITERATIONS,
        ),
    )


@pytest_asyncio.fixture
async def session_manager(
    server_config: ServerConfig,
) -> AsyncGenerator[DatabaseSessionManager, None]:
    manager = DatabaseSessionManager(server_config.database_url)
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def coordination_service(
    session_manager: DatabaseSessionManager,
) -> SqliteCoordinationService:
    return SqliteCoordinationService(session_manager)


@pytest.fixture
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def user_service(
    session_manager: DatabaseSessionManager,
    coordination_service: SqliteCoordinationService,
    email_service: FakeEmailService,
) -> UserService:
    return UserService(
        session_manager,
        coordination_service,
        email_service,
        PasswordHasher(TEST_PASSWORD_ITERATIONS),
    )


@pytest.fixture
def session_service(
    user_service: UserService, coordination_service: SqliteCoordinationService
) -> SessionService:
    return SessionService(
        user_service,
        coordination_service,
        secret_key=TEST_SECRET_KEY,
        session_ttl=TEST_SESSION_TTL,
    )


@pytest.fixture
def note_service(session_manager: DatabaseSessionManager) -> NoteService:
    return NoteService(session_manager)


@pytest_asyncio.fixture
async def client(
    aiohttp_client: AiohttpClient, server_config: ServerConfig
) -> TestClient:
    """Test client for the full application."""
    return await aiohttp_client(create_app(server_config))


async def verified_user(user_service: UserService, email: str, password: str) -> int:
    """Register and verify an account, returning its id."""
    user = await user_service.register(email, password)
    await user_service.auto_verify(email)
    return user.id


async def login_headers(client: TestClient, email: str, password: str) -> dict:
    """Register, auto-verify and log in through the API.

    Returns Authorization headers for the session. The cookie jar is cleared
    so several users can share one test client.
    """
    resp = await client.post(
        "/auth/register", json={"email": email, "password": password}
    )
    assert resp.status == 201, await resp.text()
    resp = await client.post("/auth/auto-verify", json={"email": email})
    assert resp.status == 200, await resp.text()
    resp = await client.post(
        "/auth/login", json={"email": email, "password": password}
    )
    assert resp.status == 200, await resp.text()
    token = resp.cookies["notekeep_session"].value
    client.session.cookie_jar.clear()
    return {"Authorization": f"Bearer {token}"}
