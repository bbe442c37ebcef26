"""
Async HTTP client for the bug tracker API.

Wraps every REST route in a coroutine returning the decoded JSON body.
Non-2xx responses raise ApiError carrying the server's message.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
NEW_TOKEN_HEADER = "X-New-Token"


class ApiError(Exception):
    """A request the server answered with an error status (or never answered)."""

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = None

        message = None
        if isinstance(body, dict):
            errors = body.get("errors")
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                message = errors[0].get("msg")
            if not message and isinstance(body.get("detail"), str):
                message = body["detail"]
        return cls(response.status_code, message or response.reason_phrase or "Request failed")


class TrackerClient:
    """
    Thin async wrapper over httpx for the tracker's REST surface.

    The bearer token lives on the client; responses carrying X-New-Token
    replace it and notify `on_token_refresh` so the session can persist it.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.base_url = (base_url or os.getenv("BUGTRACKER_API_URL", DEFAULT_BASE_URL)).rstrip("/")
        self.token = token
        self.on_token_refresh = None
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=httpx.Timeout(timeout),
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TrackerClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json, headers=self._headers())
        except httpx.RequestError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError(None, f"Request failed: {e}") from e

        new_token = response.headers.get(NEW_TOKEN_HEADER)
        if new_token:
            self.token = new_token
            if self.on_token_refresh is not None:
                self.on_token_refresh(new_token)

        if response.is_error:
            error = ApiError.from_response(response)
            logger.info(f"{method} {path} -> {response.status_code}: {error.message}")
            raise error
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{method} {path} -> {response.status_code}: body is not JSON")
            raise ApiError(response.status_code, "Invalid response from server") from e

    # ==================== Auth ====================

    async def register(self, name: str, email: str, password: str, role: Optional[str] = None) -> Dict[str, Any]:
        body = {"name": name, "email": email, "password": password}
        if role:
            body["role"] = role
        return await self._request("POST", "/api/auth/register", json=body)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/api/auth/login", json={"email": email, "password": password})

    async def get_current_user(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/auth/user")

    async def list_users(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/users")

    # ==================== Reports ====================

    async def list_reports(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/reports")

    async def list_assigned_reports(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/reports/assigned")

    async def list_assigned_open_reports(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/reports/assigned/open")

    async def list_assigned_closed_reports(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/reports/assigned/closed")

    async def get_report(self, report_id) -> Dict[str, Any]:
        return await self._request("GET", f"/api/reports/{report_id}")

    async def create_report(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/reports", json=data)

    async def update_report(self, report_id, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/reports/{report_id}", json=data)

    async def delete_report(self, report_id) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/reports/{report_id}")

    # ==================== Comments ====================

    async def list_comments(self, report_id) -> List[Dict[str, Any]]:
        return await self._request("GET", f"/api/comments/bug-report/{report_id}")

    async def add_comment(self, report_id, text: str) -> Dict[str, Any]:
        return await self._request("POST", "/api/comments", json={"bugReport": report_id, "text": text})

    async def delete_comment(self, comment_id) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/comments/{comment_id}")
