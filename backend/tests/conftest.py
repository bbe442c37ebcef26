"""
Pytest configuration and shared fixtures.

The app runs in-process against a throwaway SQLite database. Any test that
touches the API gets fresh tables, dropped again afterwards. Environment is
set before the app modules are imported because settings are read at
import time.
"""

import os
import tempfile
from typing import Optional

import pytest
from httpx import AsyncClient, ASGITransport

_tmp_dir = tempfile.mkdtemp(prefix="bugtracker-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-testing"
os.environ["LOG_DIR"] = os.path.join(_tmp_dir, "logs")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from main import app  # noqa: E402
from models import Base  # noqa: E402
from database import async_engine  # noqa: E402
from client.api_client import TrackerClient  # noqa: E402
from tests.helpers import APIClient, TEST_BASE_URL, unique_email  # noqa: E402


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "client: tests that drive the API through the client package"
    )


# ═══════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════


@pytest.fixture
async def database():
    """Fresh schema for one test."""
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def http(database):
    """Unauthenticated httpx client bound to the app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url=TEST_BASE_URL) as client:
        yield client


@pytest.fixture
def api_client(http):
    """Unauthenticated APIClient."""
    return APIClient(http)


@pytest.fixture
def register_user(http):
    """Factory that registers a fresh user and returns an authenticated APIClient."""
    async def _register(name: str = "Test User", role: Optional[str] = None) -> APIClient:
        client = APIClient(http)
        resp = await client.register(name, unique_email(name.split()[0].lower()), role=role)
        assert resp.status_code == 200, f"Registration failed: {resp.text}"
        return client

    return _register


@pytest.fixture
async def alice(register_user):
    return await register_user("Alice Developer")


@pytest.fixture
async def bob(register_user):
    return await register_user("Bob Tester", role="tester")


@pytest.fixture
async def tracker(database):
    """TrackerClient talking to the in-process app."""
    client = TrackerClient(base_url=TEST_BASE_URL, transport=ASGITransport(app=app))
    yield client
    await client.aclose()
