#!/usr/bin/env python3
"""HTTP Client for the phpIPAM REST API.

This module composes the pieces every phpIPAM call needs:

    - A credential from SessionManager (static token or session login)
    - Plain JSON transport, or the encrypted ("crypt") transport
    - Classification of ``{code, success, message}`` replies into typed errors
    - Bounded exponential-backoff retry of transient failures
    - An opt-in short-lived cache for read responses

Design Philosophy:
    This client knows HOW to talk to phpIPAM, but not WHAT to fetch.
    Sections, subnets and addresses live in the manager classes that
    compose this client.

Usage:
    async with PhpIpamClient(settings) as client:
        sections = await client.request("GET", "/sections/")

Author: phpIPAM MCP Team
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import unquote

from .auth import SessionManager
from .cache import ResponseCache
from .config import AuthMode, PhpIpamSettings
from .crypto import encrypt_request
from .exceptions import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    PhpIpamError,
    ServerError,
    ValidationError,
)
from .models import ApiResponse
from .resilience import RetryPolicy, retry_async
from .transport import HttpTransport

logger = logging.getLogger(__name__)

# Parameter names phpIPAM reads from an encrypted request, in path order
CRYPT_PATH_KEYS = ("controller", "id", "id2", "id3")


class PhpIpamClient:
    """Async client for one phpIPAM API application.

    Use as an async context manager so the HTTP session is closed:

        async with PhpIpamClient(settings) as client:
            data = await client.request("GET", "/sections/")

    Every public method may be awaited concurrently from many tasks.

    Attributes:
        settings: Validated PhpIpamSettings
        transport: HttpTransport performing single exchanges
        session: SessionManager supplying credentials
        cache: ResponseCache used when ``settings.enable_cache`` is set
        retry_policy: RetryPolicy built from max_retries / retry_delay
    """

    def __init__(
        self,
        settings: PhpIpamSettings,
        transport: Optional[HttpTransport] = None,
        session: Optional[SessionManager] = None,
        cache: Optional[ResponseCache] = None,
    ):
        self.settings = settings
        self.transport = transport or HttpTransport(
            timeout=settings.timeout,
            verify_tls=settings.verify_tls,
            debug=settings.debug_http,
        )
        self.session = session or SessionManager(settings, self.transport)
        self.cache = cache or ResponseCache(ttl=settings.cache_ttl)
        self.retry_policy = RetryPolicy(
            max_retries=settings.max_retries,
            base_delay=settings.retry_delay,
        )

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "PhpIpamClient":
        await self.transport.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.transport.close()

    # ----------------------------------------
    # Modes
    # ----------------------------------------

    @property
    def auth_mode(self) -> AuthMode:
        return self.session.auth_mode

    @property
    def use_crypt(self) -> bool:
        """Encrypted transport applies only to static-token deployments."""
        return self.settings.encrypt_requests and self.auth_mode is AuthMode.TOKEN

    # ----------------------------------------
    # Requests
    # ----------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make an authenticated API request with retry.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            path: Endpoint path below the app, e.g. "/sections/"
            body: Request parameters for write operations

        Returns:
            The ``data`` member of a successful reply (None for void operations)

        Raises:
            PhpIpamError: One of the seven error kinds; RETRYABLE only once
                the retry policy is exhausted
        """
        return await retry_async(
            self._attempt,
            method,
            path,
            body,
            policy=self.retry_policy,
        )

    async def _attempt(
        self,
        method: str,
        path: str,
        body: Optional[dict[str, Any]],
    ) -> Any:
        """One attempt: credential, transport, classification."""
        try:
            return await self._send(method, path, body)
        except PhpIpamError:
            raise
        except Exception as e:
            raise InternalError(f"Unexpected error: {e}", cause=e)

    async def _send(
        self,
        method: str,
        path: str,
        body: Optional[dict[str, Any]],
    ) -> Any:
        credential = await self.session.credential()
        if not path.startswith("/"):
            path = f"/{path}"

        if self.use_crypt:
            params = self.build_crypt_params(path, body)
            url = (
                f"{self.settings.base_url}/api/{self.settings.app_id}/"
                f"?enc_request={encrypt_request(params, credential)}"
            )
            # The encrypted channel carries every verb as a GET
            response = await self.transport.execute(
                "GET",
                url,
                headers={"Content-Type": "application/json"},
            )
        else:
            url = f"{self.settings.base_url}/api/{self.settings.app_id}{path}"
            response = await self.transport.execute(
                method,
                url,
                headers={
                    "Content-Type": "application/json",
                    "token": credential,
                },
                body=json.dumps(body) if body is not None else None,
            )

        if response.success:
            # Create replies carry the new id at top level; data may hold
            # something else (first_free puts the allocated IP there)
            if response.id is not None:
                return {"id": response.id}
            return response.data

        raise self._map_api_error(response, credential)

    @staticmethod
    def build_crypt_params(path: str, body: Optional[dict[str, Any]]) -> dict[str, Any]:
        """Turn a REST path and body into phpIPAM's encrypted parameter object."""
        segments = [unquote(part) for part in path.split("/") if part]
        params: dict[str, Any] = {"controller": segments[0] if segments else ""}
        for key, value in zip(CRYPT_PATH_KEYS[1:], segments[1:]):
            params[key] = value
        if body:
            params.update(body)
        return params

    def _map_api_error(self, response: ApiResponse, credential: str) -> PhpIpamError:
        """Classify an unsuccessful reply by its status code."""
        code = response.code
        message = response.message or "Unknown error"

        if code == 401:
            self.session.invalidate(credential)
            return AuthenticationError(message, status_code=code)

        if code == 403:
            return ForbiddenError(message, status_code=code)

        if code == 404:
            return NotFoundError(message, status_code=code)

        if code == 409:
            return ConflictError(message, status_code=code)

        if code >= 500:
            return ServerError(message, status_code=code)

        return ValidationError(message, status_code=code)

    # ----------------------------------------
    # Helpers for resource managers
    # ----------------------------------------

    async def cached(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return ``loader()``'s result, through the cache when enabled.

        Failed loads are never cached.
        """
        if not self.settings.enable_cache:
            return await loader()

        hit = self.cache.get(key)
        if hit is not None:
            logger.debug(f"Cache hit: {key}")
            return hit

        value = await loader()
        if value is not None:
            self.cache.set(key, value)
        return value

    def invalidate_cache(self, prefix: str) -> None:
        if self.settings.enable_cache:
            self.cache.invalidate(prefix)

    def require_write(self, operation: str, toggle: Optional[str] = None) -> None:
        """Reject a write before any network call unless the toggles allow it.

        Args:
            operation: Name used in the error message
            toggle: Additional settings flag the operation needs, e.g.
                "allow_section_create"

        Raises:
            ForbiddenError: If writes (or the specific toggle) are disabled
        """
        if not self.settings.write_enabled:
            raise ForbiddenError(
                f"{operation} requires write access (PHPIPAM_WRITE_ENABLED is off)",
                toggle="write_enabled",
            )
        if toggle and not getattr(self.settings, toggle):
            raise ForbiddenError(
                f"{operation} is disabled ({toggle} is off)",
                toggle=toggle,
            )

    async def health(self) -> dict[str, Any]:
        """Verify connectivity and credentials with a real API call."""
        try:
            await self.request("GET", "/sections/")
            return {"healthy": True, "message": "Connected to phpIPAM"}
        except PhpIpamError as e:
            logger.warning(f"Health check failed: {e}")
            return {"healthy": False, "message": e.message}

    @property
    def session_info(self) -> Optional[dict]:
        return self.session.session_info


# ============================================
# Standalone Test
# ============================================

if __name__ == "__main__":
    async def demo():
        """Quick connectivity check using PHPIPAM_* environment variables."""
        settings = PhpIpamSettings.from_env()
        async with PhpIpamClient(settings) as client:
            print(await client.health())

    asyncio.run(demo())
