#!/usr/bin/env python3
"""Exception Hierarchy for the phpIPAM API client.

Every failure that leaves the client is a PhpIpamError. Each concrete class
carries a fixed ErrorKind, so callers can branch either on the class or on
``error.kind`` (the value the outer tool layer reports).

Design Principles:
    - All exceptions inherit from PhpIpamError
    - Exceptions preserve context (status code, details, original cause)
    - Retryability is decided by the class, never by the caller
    - kind / status_code / retryable are read-only once constructed

Exception Hierarchy:
    PhpIpamError (base)
    ├── ConfigurationError  (VALIDATION - fix settings)
    ├── AuthenticationError (AUTH - credential rejected, session invalidated)
    ├── ValidationError     (VALIDATION - bad input or unrecognized response)
    ├── NotFoundError       (NOT_FOUND)
    ├── ConflictError       (CONFLICT - uniqueness violation)
    ├── ForbiddenError      (FORBIDDEN - permission or write toggle)
    ├── RetryableError      (RETRYABLE - transient)
    │   ├── ServerError     (5xx)
    │   └── NetworkError
    │       ├── ConnectionError
    │       └── TimeoutError
    └── InternalError       (INTERNAL - anything outside the taxonomy)

Author: phpIPAM MCP Team
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

# ============================================
# Error Kinds
# ============================================

class ErrorKind(str, Enum):
    """Exhaustive classification of client failures."""
    AUTH = "AUTH"
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    FORBIDDEN = "FORBIDDEN"
    RETRYABLE = "RETRYABLE"
    INTERNAL = "INTERNAL"


# ============================================
# Base Exception
# ============================================

class PhpIpamError(Exception):
    """Base exception for all phpIPAM client errors.

    Attributes:
        message: Human-readable error description
        kind: ErrorKind classification (fixed per subclass)
        status_code: HTTP / API status code when one was received
        retryable: Whether the retry policy may attempt the call again
        details: Additional context as a dictionary
        timestamp: When the error occurred (UTC)
        cause: The original exception that caused this error
    """

    kind_default: ErrorKind = ErrorKind.INTERNAL
    retryable_default: bool = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause
        self._kind = self.kind_default
        self._status_code = status_code
        self._retryable = self.retryable_default

        if cause:
            self.__cause__ = cause

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def code(self) -> str:
        """Machine-readable code (the ErrorKind value)."""
        return self._kind.value

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    @property
    def retryable(self) -> bool:
        return self._retryable

    def __str__(self) -> str:
        parts = [f"[{self.code}]", self.message]
        context = dict(self.details)
        if self._status_code is not None:
            context.setdefault("status_code", self._status_code)
        if context:
            detail_str = ", ".join(f"{k}={v}" for k, v in context.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"kind={self.code!r}, "
            f"status_code={self._status_code!r}, "
            f"retryable={self._retryable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.code,
            "message": self.message,
            "status_code": self._status_code,
            "retryable": self._retryable,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration Errors
# ============================================

class ConfigurationError(PhpIpamError):
    """Raised when settings are missing or invalid."""

    kind_default = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details=details, **kwargs)
        self.missing_keys = missing_keys or []


# ============================================
# Non-retryable API Errors
# ============================================

class AuthenticationError(PhpIpamError):
    """Credential rejected (login failure or HTTP 401)."""

    kind_default = ErrorKind.AUTH


class ValidationError(PhpIpamError):
    """Malformed input or a response the client does not recognize."""

    kind_default = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)


class NotFoundError(PhpIpamError):
    """Requested resource does not exist (HTTP 404)."""

    kind_default = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id
        kwargs.setdefault("status_code", 404)
        super().__init__(message, details=details, **kwargs)


class ConflictError(PhpIpamError):
    """Uniqueness violation or resource in use (HTTP 409)."""

    kind_default = ErrorKind.CONFLICT


class ForbiddenError(PhpIpamError):
    """Operation not permitted by the server (403) or by a write toggle."""

    kind_default = ErrorKind.FORBIDDEN

    def __init__(self, message: str, toggle: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if toggle:
            details["toggle"] = toggle
        super().__init__(message, details=details, **kwargs)


# ============================================
# Retryable Errors
# ============================================

class RetryableError(PhpIpamError):
    """Base class for transient failures the retry policy may repeat."""

    kind_default = ErrorKind.RETRYABLE
    retryable_default = True


class ServerError(RetryableError):
    """Server returned a 5xx response."""

    def __init__(self, message: str = "Server error", **kwargs):
        kwargs.setdefault("status_code", 500)
        super().__init__(message, **kwargs)


class NetworkError(RetryableError):
    """The HTTP exchange failed before a complete response arrived."""


class ConnectionError(NetworkError):
    """Connection refused, reset, or host could not be resolved."""

    def __init__(
        self,
        message: str = "Failed to connect to server",
        host: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if host:
            details["host"] = host
        super().__init__(message, details=details, **kwargs)


class TimeoutError(NetworkError):
    """The HTTP attempt exceeded the configured timeout."""

    def __init__(
        self,
        message: str = "Request timeout",
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(message, details=details, **kwargs)


# ============================================
# Internal Errors
# ============================================

class InternalError(PhpIpamError):
    """Anything that escaped the taxonomy above. Never retried."""

    kind_default = ErrorKind.INTERNAL


# ============================================
# Exports
# ============================================

__all__ = [
    "ErrorKind",
    "PhpIpamError",
    "ConfigurationError",
    "AuthenticationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ForbiddenError",
    "RetryableError",
    "ServerError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "InternalError",
]
