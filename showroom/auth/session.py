"""Admin console session.

The session is an explicit object handed to the admin view and the API. It
is initialized from a persisted flag on load and cleared on logout.
"""

import json
import secrets
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from ..errors import AuthenticationError
from .verifier import CredentialVerifier


class SessionStore:
    """JSON file holding the persisted admin session flag."""

    def __init__(self, path: str):
        self.path = Path(path)

    def read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def write(self, data: Dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def clear(self):
        if self.path.exists():
            self.path.unlink()


class AdminSession:
    """Tracks whether an administrator is logged in."""

    def __init__(self, store: SessionStore, verifier: CredentialVerifier):
        self.store = store
        self.verifier = verifier
        self.username: Optional[str] = None
        self.token: Optional[str] = None
        self.logged_in_at: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.token is not None

    def load(self) -> bool:
        """Restore the session from the store.

        Returns:
            True if a logged-in session was restored
        """
        data = self.store.read()
        if data.get("admin_logged_in") and data.get("token"):
            self.username = data.get("username")
            self.token = data["token"]
            self.logged_in_at = data.get("logged_in_at")
            logger.info(f"Restored admin session for {self.username}")
            return True
        self._reset()
        return False

    async def login(self, username: str, password: str) -> str:
        """Verify credentials and persist the session.

        Returns:
            Session token

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        if not username or not password:
            raise AuthenticationError("username and password are required")

        if not await self.verifier.verify(username, password):
            logger.warning(f"Rejected admin login for {username}")
            raise AuthenticationError("invalid username or password")

        self.username = username
        self.token = secrets.token_urlsafe(32)
        self.logged_in_at = datetime.utcnow().isoformat()
        self.store.write(
            {
                "admin_logged_in": True,
                "username": self.username,
                "token": self.token,
                "logged_in_at": self.logged_in_at,
            }
        )
        logger.info(f"Admin {username} logged in")
        return self.token

    def logout(self):
        if self.active:
            logger.info(f"Admin {self.username} logged out")
        self._reset()
        self.store.clear()

    def require(self, token: Optional[str] = None):
        """Raise unless a session is active (and ``token`` matches, if given).

        Raises:
            AuthenticationError: If no matching session is active
        """
        if not self.active:
            raise AuthenticationError("admin login required")
        if token is not None and not secrets.compare_digest(token, self.token):
            raise AuthenticationError("invalid session token")

    def _reset(self):
        self.username = None
        self.token = None
        self.logged_in_at = None
