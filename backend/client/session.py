"""
Client auth session.

AuthSession holds who is signed in for a TrackerClient. It is created
explicitly, initialized with load() and torn down with logout(); nothing
about the signed-in user is kept in module globals. The bearer token is
persisted through a token store so a later process can pick it up again.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jose import JWTError, jwt

from client.api_client import ApiError, TrackerClient

logger = logging.getLogger(__name__)


# ============================================================================
# Token stores
# ============================================================================


class MemoryTokenStore:
    """Keeps the token for the life of the process."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Keeps the token in a file, e.g. ~/.bugtracker/token."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def get(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def set(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def token_is_expired(token: str, now: Optional[float] = None) -> bool:
    """
    Check the token's own exp claim without verifying the signature.

    A token that can't be decoded counts as expired. A token without an
    exp claim never expires on the client side; the server still decides.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return True
    exp = claims.get("exp")
    if exp is None:
        return False
    if now is None:
        now = time.time()
    try:
        return float(exp) < now
    except (TypeError, ValueError):
        return True


# ============================================================================
# Session
# ============================================================================


class AuthSession:
    """Signed-in identity for one TrackerClient."""

    def __init__(self, client: TrackerClient, store=None):
        self.client = client
        self.store = store if store is not None else MemoryTokenStore()
        self.user: Optional[Dict[str, Any]] = None
        self.is_authenticated = False
        self.loading = False
        self.error: Optional[str] = None
        client.on_token_refresh = self._on_token_refresh

    def _on_token_refresh(self, token: str) -> None:
        logger.debug("Adopting refreshed token")
        self.store.set(token)

    def _sign_in(self, token: str, user: Dict[str, Any]) -> None:
        self.store.set(token)
        self.client.token = token
        self.user = user
        self.is_authenticated = True
        self.error = None

    def _reset(self) -> None:
        self.store.clear()
        self.client.token = None
        self.user = None
        self.is_authenticated = False

    async def load(self) -> bool:
        """
        Restore the session from the token store.

        An expired token is dropped without contacting the server. Otherwise
        the current user is fetched; any failure leaves the session signed out.
        """
        token = self.store.get()
        if not token:
            return False

        self.loading = True
        try:
            if token_is_expired(token):
                logger.info("Stored token has expired, discarding it")
                self._reset()
                return False

            self.client.token = token
            try:
                self.user = await self.client.get_current_user()
            except ApiError as e:
                logger.info(f"Could not restore session: {e.message}")
                self._reset()
                return False

            self.is_authenticated = True
            return True
        finally:
            self.loading = False

    async def register(self, name: str, email: str, password: str, role: Optional[str] = None) -> bool:
        try:
            result = await self.client.register(name, email, password, role)
        except ApiError as e:
            self._reset()
            self.error = e.message or "Registration failed"
            return False
        self._sign_in(result["access_token"], result["user"])
        return True

    async def login(self, email: str, password: str) -> bool:
        try:
            result = await self.client.login(email, password)
        except ApiError as e:
            self._reset()
            self.error = e.message or "Invalid credentials"
            return False
        self._sign_in(result["access_token"], result["user"])
        return True

    def logout(self) -> None:
        self._reset()
        self.error = None
