"""phpIPAM API modules.

This package provides an async client for the phpIPAM REST API and the
resource managers built on it.

Classes:
    PhpIpamClient: Request orchestrator (credentials, retry, classification, cache)
    PhpIpamSettings: Validated client configuration (PHPIPAM_* environment)
    SessionManager: Static-token or session-login credential handling
    HttpTransport: Single-exchange aiohttp transport with sanitized debug traces
    ResponseCache: Short-lived TTL cache for read responses
    SectionManager / SubnetManager / AddressManager: Resource operations
    IpamProvisioner: Ensure / upsert / release helpers

Exceptions:
    PhpIpamError: Base exception; ``kind`` is one of the ErrorKind values
    ConfigurationError: Missing or invalid settings
    AuthenticationError: Credential rejected (AUTH)
    ValidationError: Bad input or unrecognized response (VALIDATION)
    NotFoundError: Resource does not exist (NOT_FOUND)
    ConflictError: Uniqueness violation (CONFLICT)
    ForbiddenError: Server permission or disabled write toggle (FORBIDDEN)
    RetryableError: Transient failure (RETRYABLE)
    InternalError: Anything outside the taxonomy (INTERNAL)

Resilience:
    RetryPolicy: Bounded exponential backoff
    retry_async: Retry loop honoring ``PhpIpamError.retryable``
"""
from .addresses import AddressManager
from .auth import SessionManager, SessionToken
from .cache import CacheEntry, ResponseCache
from .client import PhpIpamClient
from .config import AuthMode, PhpIpamSettings, effective_auth_mode
from .crypto import encrypt_request
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    ConnectionError,
    ErrorKind,
    ForbiddenError,
    InternalError,
    NetworkError,
    NotFoundError,
    PhpIpamError,
    RetryableError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from .log_sanitizer import LogSanitizer
from .models import Address, ApiResponse, SearchResult, Section, Subnet
from .provisioning import EnsureResult, IpamProvisioner
from .resilience import RetryPolicy, retry_async
from .sections import SectionManager
from .subnets import SubnetManager
from .transport import HttpTransport

__all__ = [
    # Configuration
    "AuthMode",
    "PhpIpamSettings",
    "effective_auth_mode",
    # Client
    "PhpIpamClient",
    "HttpTransport",
    "SessionManager",
    "SessionToken",
    "ResponseCache",
    "CacheEntry",
    "LogSanitizer",
    "encrypt_request",
    # Models
    "ApiResponse",
    "Section",
    "Subnet",
    "Address",
    "SearchResult",
    # Exceptions
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
    # Resilience
    "RetryPolicy",
    "retry_async",
    # Resource managers
    "SectionManager",
    "SubnetManager",
    "AddressManager",
    "IpamProvisioner",
    "EnsureResult",
]
