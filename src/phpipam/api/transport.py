#!/usr/bin/env python3
"""Single-exchange HTTP transport for the phpIPAM API.

HttpTransport performs exactly one HTTP exchange per call and turns whatever
comes back into an ApiResponse. It never retries; that is the client's job.

Contract:
    - Any received response, whatever its status, becomes an ApiResponse.
      Bodies that are not the ``{code, success, data?, message?}`` shape are
      replaced by a synthesized failure carrying the HTTP status and the
      first 200 characters of the raw body.
    - Timeouts and connection-level failures raise RETRYABLE errors. This is
      the only path where the transport raises instead of returning.
    - Debug traces never contain credentials. Headers are never logged and
      every logged line passes through LogSanitizer.

Usage:
    async with HttpTransport(timeout=30, verify_tls=True) as transport:
        response = await transport.execute("GET", url, {"token": token})

Author: phpIPAM MCP Team
"""
import asyncio
import json
import logging
from typing import Optional

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConnectionError, NetworkError, TimeoutError
from .log_sanitizer import LogSanitizer
from .models import ApiResponse

logger = logging.getLogger(__name__)

# Raw body prefix kept in synthesized error messages
PARSE_ERROR_EXCERPT = 200
# Body prefix shown in debug traces
DEBUG_EXCERPT = 500


class HttpTransport:
    """Async HTTP transport owning one pooled aiohttp session.

    Attributes:
        timeout: Seconds allowed for a single exchange
        verify_tls: Verify server certificates (disable only for lab installs)
        debug: Emit sanitized request/response traces at DEBUG level
        sanitizer: Redactor applied to every debug line
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify_tls: bool = True,
        debug: bool = False,
        sanitizer: Optional[LogSanitizer] = None,
    ):
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.debug = debug
        self.sanitizer = sanitizer or LogSanitizer()
        self._session: Optional[aiohttp.ClientSession] = None

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "HttpTransport":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def open(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(
                    limit=10,
                    ssl=self.verify_tls,
                ),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            if not self.verify_tls:
                logger.warning("TLS certificate verification is disabled")

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    @property
    def is_open(self) -> bool:
        return self._session is not None

    # ----------------------------------------
    # Exchange
    # ----------------------------------------

    async def execute(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: Optional[str] = None,
        *,
        log_body: bool = True,
    ) -> ApiResponse:
        """Perform one HTTP exchange.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Request headers (never logged)
            body: Serialized request body, if any
            log_body: Include body excerpts in debug traces

        Returns:
            ApiResponse, parsed or synthesized

        Raises:
            TimeoutError: The exchange exceeded ``timeout``
            ConnectionError: Connection refused, reset, or DNS failure
            NetworkError: The response body could not be read completely
            RuntimeError: If used before open()
        """
        if not self._session:
            raise RuntimeError(
                "HttpTransport must be opened first: "
                "async with HttpTransport(...) as transport:"
            )

        self._trace(f"[HTTP] {method} {url}")
        if body and log_body:
            self._trace(f"[HTTP] Body: {body[:DEBUG_EXCERPT]}")

        try:
            async with self._session.request(
                method=method,
                url=url,
                headers=headers,
                data=body,
            ) as response:
                status = response.status
                # Proxy error pages are not always UTF-8
                text = await response.text(errors="replace")

        except asyncio.TimeoutError as e:
            raise TimeoutError(
                "Request timeout",
                timeout_seconds=self.timeout,
                cause=e,
            )

        except aiohttp.ClientConnectionError as e:
            raise ConnectionError(
                f"HTTP request failed: {e}",
                host=_host_of(url),
                cause=e,
            )

        except aiohttp.ClientPayloadError as e:
            raise NetworkError(f"HTTP response truncated: {e}", cause=e)

        if log_body:
            self._trace(f"[HTTP] Response {status}: {text[:DEBUG_EXCERPT]}")
        else:
            self._trace(f"[HTTP] Response {status} (body not logged)")

        return self.parse_response(status, text)

    @staticmethod
    def parse_response(status: int, text: str) -> ApiResponse:
        """Validate a raw body into ApiResponse, synthesizing one on mismatch."""
        try:
            payload = json.loads(text)
            if isinstance(payload, dict):
                payload.setdefault("code", status)
            return ApiResponse.model_validate(payload)
        except (ValueError, PydanticValidationError):
            return ApiResponse(
                code=status,
                success=False,
                message=f"Failed to parse response: {text[:PARSE_ERROR_EXCERPT]}",
            )

    def _trace(self, line: str) -> None:
        if self.debug:
            logger.debug(self.sanitizer.sanitize(line))


def _host_of(url: str) -> str:
    return url.split("://", 1)[-1].split("/", 1)[0]
