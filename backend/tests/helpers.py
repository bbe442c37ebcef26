"""
Shared test helpers: the APIClient wrapper and small factories used by
several test modules.
"""

import uuid
from typing import Optional

from httpx import AsyncClient, Response

TEST_BASE_URL = "http://test"
TEST_PASSWORD = "TestPass123!"


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ═══════════════════════════════════════════════════════════════════════════
# APIClient: HTTP client for flow tests
# ═══════════════════════════════════════════════════════════════════════════


class APIClient:
    """httpx.AsyncClient wrapper with auth helpers."""

    def __init__(self, http: AsyncClient):
        self.http = http
        self.token: Optional[str] = None
        self.user: Optional[dict] = None

    def _headers(self) -> dict:
        return auth_header(self.token) if self.token else {}

    def _with_auth(self, kwargs: dict) -> dict:
        """Request kwargs with the bearer header merged into any caller headers."""
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        return {**kwargs, "headers": headers}

    @property
    def user_id(self) -> Optional[int]:
        return self.user["id"] if self.user else None

    async def register(self, name: str, email: str, password: str = TEST_PASSWORD, role: Optional[str] = None) -> Response:
        """POST /api/auth/register (JSON body)."""
        body = {"name": name, "email": email, "password": password}
        if role:
            body["role"] = role
        resp = await self.http.post("/api/auth/register", json=body)
        if resp.status_code == 200:
            data = resp.json()
            self.token = data.get("access_token")
            self.user = data.get("user")
        return resp

    async def login(self, email: str, password: str = TEST_PASSWORD) -> Response:
        """POST /api/auth/login (JSON body)."""
        resp = await self.http.post("/api/auth/login", json={"email": email, "password": password})
        if resp.status_code == 200:
            data = resp.json()
            self.token = data.get("access_token")
            self.user = data.get("user")
        return resp

    async def get(self, path: str, **kwargs) -> Response:
        return await self.http.get(path, **self._with_auth(kwargs))

    async def post(self, path: str, **kwargs) -> Response:
        return await self.http.post(path, **self._with_auth(kwargs))

    async def put(self, path: str, **kwargs) -> Response:
        return await self.http.put(path, **self._with_auth(kwargs))

    async def delete(self, path: str, **kwargs) -> Response:
        return await self.http.delete(path, **self._with_auth(kwargs))

    async def create_report(self, **overrides) -> dict:
        body = {
            "title": "Login fails",
            "description": "Submitting the login form returns a blank page",
            "severity": "high",
            "reporterEmail": "a@x.com",
        }
        body.update(overrides)
        resp = await self.post("/api/reports", json=body)
        assert resp.status_code == 200, f"Report creation failed: {resp.text}"
        return resp.json()
