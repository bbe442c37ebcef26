"""
AuthSession tests: restore on load, register/login/logout, token stores
and adoption of refreshed tokens.
"""

import time
from datetime import timedelta

import httpx
import pytest
from jose import jwt

from client.api_client import TrackerClient
from client.session import AuthSession, FileTokenStore, MemoryTokenStore, token_is_expired
from services.auth_service import create_access_token
from tests.helpers import TEST_BASE_URL, TEST_PASSWORD, unique_email

pytestmark = pytest.mark.client


def recording_client(calls: list) -> TrackerClient:
    """TrackerClient whose transport records every request and answers 500."""
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, json={"detail": "Server Error"})

    return TrackerClient(base_url=TEST_BASE_URL, transport=httpx.MockTransport(handler))


def unsigned_token(claims: dict) -> str:
    return jwt.encode(claims, "not-the-server-key", algorithm="HS256")


# ═══════════════════════════════════════════════════════════════════════════
# Token helpers
# ═══════════════════════════════════════════════════════════════════════════


class TestTokenHelpers:

    def test_token_is_expired(self):
        now = time.time()
        assert token_is_expired(unsigned_token({"exp": int(now) - 10}), now=now)
        assert not token_is_expired(unsigned_token({"exp": int(now) + 600}), now=now)

    def test_token_without_exp_is_not_expired(self):
        assert not token_is_expired(unsigned_token({"sub": "a@x.com"}))

    def test_garbage_counts_as_expired(self):
        assert token_is_expired("garbage")

    def test_memory_store(self):
        store = MemoryTokenStore()
        assert store.get() is None
        store.set("abc")
        assert store.get() == "abc"
        store.clear()
        assert store.get() is None

    def test_file_store(self, tmp_path):
        store = FileTokenStore(tmp_path / "nested" / "token")
        assert store.get() is None
        store.set("abc")
        assert FileTokenStore(tmp_path / "nested" / "token").get() == "abc"
        store.clear()
        assert store.get() is None
        store.clear()


# ═══════════════════════════════════════════════════════════════════════════
# Session lifecycle
# ═══════════════════════════════════════════════════════════════════════════


class TestLoad:

    async def test_no_token(self):
        calls = []
        session = AuthSession(recording_client(calls))
        assert await session.load() is False
        assert not session.is_authenticated
        assert calls == []

    async def test_expired_token_discarded_without_request(self):
        calls = []
        store = MemoryTokenStore(unsigned_token({"user_id": 1, "exp": int(time.time()) - 60}))
        session = AuthSession(recording_client(calls), store)

        assert await session.load() is False
        assert calls == []
        assert store.get() is None
        assert session.user is None

    async def test_restores_user_from_stored_token(self, tracker):
        store = MemoryTokenStore()
        first = AuthSession(tracker, store)
        assert await first.register("Rita Reporter", unique_email("rita"), TEST_PASSWORD)

        restored = AuthSession(tracker, store)
        tracker.token = None
        assert await restored.load() is True
        assert restored.is_authenticated
        assert restored.user["name"] == "Rita Reporter"
        assert tracker.token == store.get()

    async def test_rejected_token_signs_out(self, tracker):
        token = create_access_token({"sub": "ghost@example.com", "user_id": 9999, "role": "developer"})
        store = MemoryTokenStore(token)
        session = AuthSession(tracker, store)

        assert await session.load() is False
        assert store.get() is None
        assert tracker.token is None

    async def test_adopts_refreshed_token(self, tracker):
        store = MemoryTokenStore()
        session = AuthSession(tracker, store)
        email = unique_email("old")
        assert await session.register("Old Token", email, TEST_PASSWORD)

        aging = create_access_token(
            {"sub": email, "user_id": session.user["id"], "role": "developer",
             "iat": int(time.time()) - 55 * 60},
            expires_delta=timedelta(minutes=60),
        )
        store.set(aging)

        reloaded = AuthSession(tracker, store)
        assert await reloaded.load() is True
        assert store.get() != aging
        assert tracker.token == store.get()


class TestRegisterLoginLogout:

    async def test_register_signs_in(self, tracker):
        store = MemoryTokenStore()
        session = AuthSession(tracker, store)

        assert await session.register("Dana Dev", unique_email("dana"), TEST_PASSWORD, role="developer") is True
        assert session.is_authenticated
        assert session.user["name"] == "Dana Dev"
        assert session.error is None
        assert store.get() and tracker.token == store.get()

    async def test_register_duplicate_records_error(self, tracker):
        email = unique_email("dup")
        assert await AuthSession(tracker).register("First", email, TEST_PASSWORD)

        session = AuthSession(tracker)
        assert await session.register("Second", email, TEST_PASSWORD) is False
        assert session.error == "User already exists"
        assert not session.is_authenticated

    async def test_login_and_logout(self, tracker):
        email = unique_email("lena")
        await AuthSession(tracker).register("Lena Login", email, TEST_PASSWORD)

        store = MemoryTokenStore()
        session = AuthSession(tracker, store)
        assert await session.login(email, TEST_PASSWORD) is True
        assert session.user["email"] == email

        session.logout()
        assert not session.is_authenticated
        assert session.user is None
        assert store.get() is None
        assert tracker.token is None

    async def test_bad_login_records_error(self, tracker):
        session = AuthSession(tracker)
        assert await session.login(unique_email("nobody"), "wrong-password") is False
        assert session.error == "Invalid credentials"
        assert not session.is_authenticated
