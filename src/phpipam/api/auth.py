#!/usr/bin/env python3
"""Session Management for the phpIPAM API.

phpIPAM accepts two incompatible credentials:

    - token mode: a static app token, sent as-is on every request
    - password mode: a session token obtained by POSTing HTTP Basic
      credentials to ``/api/{app_id}/user/``

SessionManager hides the difference behind ``credential()``.

Features:
    - Session tokens cached until one hour before their nominal 6h lifetime
    - Logins serialized with asyncio.Lock; concurrent callers share one login
    - Token and expiry replaced together as one immutable SessionToken
    - ``invalidate()`` drops a token the server rejected (HTTP 401)

Security Notes:
    - Tokens are cached in memory only (never persisted to disk)
    - Password, static token and session tokens are registered with the
      transport's LogSanitizer; the login response body is never logged
    - Logs identify tokens by SHA-256 prefix only

Example:
    >>> manager = SessionManager(settings, transport)
    >>> token = await manager.credential()

Author: phpIPAM MCP Team
"""
import asyncio
import base64
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .config import AuthMode, PhpIpamSettings, effective_auth_mode
from .exceptions import AuthenticationError
from .transport import HttpTransport

logger = logging.getLogger(__name__)

# phpIPAM sessions nominally last 6 hours; refresh an hour early
SESSION_LIFETIME_SECONDS = 6 * 60 * 60
REFRESH_MARGIN_SECONDS = 60 * 60


@dataclass(frozen=True)
class SessionToken:
    """Immutable pairing of a session token with its tracked expiry.

    Attributes:
        token: The phpIPAM session token.
        expires_at: Timestamp after which the token is no longer used.
    """
    token: str
    expires_at: float

    @property
    def token_id(self) -> str:
        """Safe identifier for logging (SHA-256 hash, first 8 chars)."""
        return hashlib.sha256(self.token.encode()).hexdigest()[:8]

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def time_remaining(self, now: float) -> float:
        return max(0.0, self.expires_at - now)


class SessionManager:
    """Supplies the credential for each request under either auth scheme.

    Thread Safety:
        ``credential()`` may be awaited from any number of concurrent tasks.
        Logins are serialized and double-checked, so at most one login is
        in flight and every waiter receives its result.
    """

    LOGIN_PATH = "/user/"

    def __init__(
        self,
        settings: PhpIpamSettings,
        transport: HttpTransport,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.transport = transport
        self._clock = clock
        self._session: Optional[SessionToken] = None
        self._lock = asyncio.Lock()
        self.login_count = 0

        transport.sanitizer.add_secret(settings.token)
        transport.sanitizer.add_secret(settings.password)

    @property
    def auth_mode(self) -> AuthMode:
        return effective_auth_mode(self.settings)

    @property
    def login_url(self) -> str:
        return f"{self.settings.base_url}/api/{self.settings.app_id}{self.LOGIN_PATH}"

    async def credential(self) -> str:
        """Return a credential usable for the next request.

        Returns:
            The static token (token mode) or a live session token

        Raises:
            AuthenticationError: If the login is rejected
            RetryableError: If the login exchange itself fails transiently
        """
        if self.auth_mode is AuthMode.TOKEN:
            return self.settings.token

        session = self._session
        if session and session.is_valid(self._clock()):
            return session.token

        async with self._lock:
            # Another task may have logged in while we waited
            session = self._session
            if session and session.is_valid(self._clock()):
                return session.token

            self._session = await self._login()
            return self._session.token

    def invalidate(self, stale_token: Optional[str] = None) -> None:
        """Drop the cached session token so the next call logs in again.

        Args:
            stale_token: When given, only drop the cache if it still holds
                this token (a rejection of an old token must not discard a
                newer one).
        """
        session = self._session
        if session is None:
            return
        if stale_token is not None and session.token != stale_token:
            return
        self._session = None
        logger.info(f"Session invalidated (id={session.token_id})")

    async def _login(self) -> SessionToken:
        """Exchange username/password for a session token."""
        basic = base64.b64encode(
            f"{self.settings.username}:{self.settings.password}".encode("utf-8")
        ).decode("ascii")

        self.login_count += 1
        response = await self.transport.execute(
            "POST",
            self.login_url,
            headers={
                "Authorization": f"Basic {basic}",
                "Content-Type": "application/json",
            },
            log_body=False,
        )

        data = response.data if isinstance(response.data, dict) else {}
        token = data.get("token")
        if not response.success or not token:
            raise AuthenticationError(
                f"Authentication failed: {response.message or 'Unknown error'}",
                status_code=response.code,
            )

        self.transport.sanitizer.add_secret(token)
        session = SessionToken(
            token=token,
            expires_at=self._clock() + SESSION_LIFETIME_SECONDS - REFRESH_MARGIN_SECONDS,
        )
        logger.info(
            f"Session established (id={session.token_id}), "
            f"refresh in {SESSION_LIFETIME_SECONDS - REFRESH_MARGIN_SECONDS}s"
        )
        return session

    @property
    def session_info(self) -> Optional[dict]:
        """Debug view of the cached session; never includes the token itself."""
        session = self._session
        if not session:
            return None
        now = self._clock()
        return {
            "token_id": session.token_id,
            "is_valid": session.is_valid(now),
            "time_remaining_seconds": session.time_remaining(now),
        }
