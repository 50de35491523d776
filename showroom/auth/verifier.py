"""Admin credential verification against an external identity service."""

from typing import Optional, Protocol

import httpx
from loguru import logger

from ..errors import AuthenticationError


class CredentialVerifier(Protocol):
    async def verify(self, username: str, password: str) -> bool:
        """Return True when the credentials identify an administrator."""
        ...


class HttpCredentialVerifier:
    """Verify credentials by POSTing them to an identity service.

    The service answers 2xx for valid administrator credentials and 401/403
    for rejected ones. Anything else is treated as the service being
    unavailable.
    """

    def __init__(self, url: str, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize HTTP verifier.

        Args:
            url: Identity service endpoint
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used for testing)
        """
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def verify(self, username: str, password: str) -> bool:
        if not self.url:
            raise AuthenticationError("identity service URL not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.url, json={"username": username, "password": password}
                )
        except httpx.HTTPError as e:
            logger.error(f"Identity service request failed: {e}")
            raise AuthenticationError("identity service unavailable") from e

        if response.status_code in (401, 403):
            return False
        if response.is_success:
            return True

        logger.error(f"Identity service returned {response.status_code}")
        raise AuthenticationError("identity service unavailable")
