"""Root conftest for all tests."""

from typing import Awaitable, Callable

from aiohttp.test_utils import TestClient
from aiohttp.web import Application

# Shared test constants
TEST_EMAIL = "test@example.com"
TEST_PASSWORD = "testpassword"
OTHER_EMAIL = "other@example.com"
OTHER_PASSWORD = "otherpassword"
TEST_SECRET_KEY = "test-secret-key"

# Type alias for the aiohttp_client fixture - shared across all tests
AiohttpClient = Callable[[Application], Awaitable[TestClient]]
