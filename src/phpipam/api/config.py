#!/usr/bin/env python3
"""Settings for the phpIPAM API client.

The client consumes a PhpIpamSettings object that has already been
validated. ``PhpIpamSettings.from_env()`` builds one from ``PHPIPAM_*``
environment variables (a ``.env`` file is loaded first), which is how the
server process wires it up.

Environment Variables:
    - PHPIPAM_URL: Base URL of the phpIPAM installation (required)
    - PHPIPAM_APP_ID: API application id (required)
    - PHPIPAM_AUTH_MODE: token | password | auto (default: auto)
    - PHPIPAM_TOKEN: Static app token (token mode)
    - PHPIPAM_USERNAME / PHPIPAM_PASSWORD: User credentials (password mode)
    - PHPIPAM_VERIFY_TLS: Verify server certificates (default: true)
    - PHPIPAM_ENABLE_CACHE / PHPIPAM_CACHE_TTL: Read cache toggle and TTL seconds
    - PHPIPAM_DEBUG_HTTP: Log HTTP traces at DEBUG (credentials always redacted)
    - PHPIPAM_TIMEOUT: Seconds per HTTP attempt (default: 30)
    - PHPIPAM_MAX_RETRIES / PHPIPAM_RETRY_DELAY: Retry bound and base delay seconds
    - PHPIPAM_ENCRYPT_REQUESTS: Use the encrypted ("crypt") transport in token mode
    - PHPIPAM_WRITE_ENABLED: Allow any write operation
    - PHPIPAM_ALLOW_SECTION_CREATE / PHPIPAM_ALLOW_SUBNET_CREATE: Creation toggles

Author: phpIPAM MCP Team
"""
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class AuthMode(str, Enum):
    """Authentication schemes understood by phpIPAM."""
    TOKEN = "token"
    PASSWORD = "password"
    AUTO = "auto"


@dataclass(frozen=True)
class PhpIpamSettings:
    """Validated, read-only client configuration.

    Durations are in seconds. Credentials are excluded from repr so a
    logged settings object never leaks them.
    """
    base_url: str
    app_id: str
    auth_mode: AuthMode = AuthMode.AUTO
    token: Optional[str] = field(default=None, repr=False)
    username: Optional[str] = None
    password: Optional[str] = field(default=None, repr=False)

    verify_tls: bool = True
    enable_cache: bool = False
    cache_ttl: float = 60.0
    debug_http: bool = False
    encrypt_requests: bool = False

    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0

    # Write toggles
    write_enabled: bool = False
    allow_section_create: bool = False
    allow_subnet_create: bool = False

    def __post_init__(self):
        # Accept plain strings for the mode and tolerate a trailing slash
        if not isinstance(self.auth_mode, AuthMode):
            object.__setattr__(self, "auth_mode", _parse_auth_mode(self.auth_mode))
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def effective_auth_mode(self) -> AuthMode:
        return effective_auth_mode(self)

    def validate(self) -> "PhpIpamSettings":
        """Check the settings are usable; returns self for chaining.

        Raises:
            ConfigurationError: Listing every offending key.
        """
        missing = []
        if not self.base_url:
            missing.append("PHPIPAM_URL")
        if not self.app_id:
            missing.append("PHPIPAM_APP_ID")

        has_password = bool(self.username and self.password)
        if self.auth_mode is AuthMode.TOKEN and not self.token:
            missing.append("PHPIPAM_TOKEN")
        elif self.auth_mode is AuthMode.PASSWORD and not has_password:
            if not self.username:
                missing.append("PHPIPAM_USERNAME")
            if not self.password:
                missing.append("PHPIPAM_PASSWORD")
        elif self.auth_mode is AuthMode.AUTO and not (self.token or has_password):
            missing.extend(["PHPIPAM_TOKEN", "PHPIPAM_USERNAME", "PHPIPAM_PASSWORD"])

        if missing:
            raise ConfigurationError(
                f"Missing required phpIPAM settings: {', '.join(missing)}",
                missing_keys=missing,
            )

        if self.timeout <= 0:
            raise ConfigurationError("PHPIPAM_TIMEOUT must be positive")
        if self.max_retries < 0:
            raise ConfigurationError("PHPIPAM_MAX_RETRIES must not be negative")
        if self.retry_delay < 0:
            raise ConfigurationError("PHPIPAM_RETRY_DELAY must not be negative")

        if self.encrypt_requests and self.effective_auth_mode is not AuthMode.TOKEN:
            logger.warning(
                "PHPIPAM_ENCRYPT_REQUESTS is only used with token authentication; ignoring"
            )
        return self

    @classmethod
    def from_env(cls) -> "PhpIpamSettings":
        """Build and validate settings from PHPIPAM_* environment variables.

        Raises:
            ConfigurationError: If required variables are missing or malformed.
        """
        load_dotenv()

        settings = cls(
            base_url=os.getenv("PHPIPAM_URL", ""),
            app_id=os.getenv("PHPIPAM_APP_ID", ""),
            auth_mode=_parse_auth_mode(os.getenv("PHPIPAM_AUTH_MODE", "auto")),
            token=os.getenv("PHPIPAM_TOKEN") or None,
            username=os.getenv("PHPIPAM_USERNAME") or None,
            password=os.getenv("PHPIPAM_PASSWORD") or None,
            verify_tls=_env_bool("PHPIPAM_VERIFY_TLS", True),
            enable_cache=_env_bool("PHPIPAM_ENABLE_CACHE", False),
            cache_ttl=_env_float("PHPIPAM_CACHE_TTL", 60.0),
            debug_http=_env_bool("PHPIPAM_DEBUG_HTTP", False),
            encrypt_requests=_env_bool("PHPIPAM_ENCRYPT_REQUESTS", False),
            timeout=_env_float("PHPIPAM_TIMEOUT", 30.0),
            max_retries=int(_env_float("PHPIPAM_MAX_RETRIES", 3)),
            retry_delay=_env_float("PHPIPAM_RETRY_DELAY", 1.0),
            write_enabled=_env_bool("PHPIPAM_WRITE_ENABLED", False),
            allow_section_create=_env_bool("PHPIPAM_ALLOW_SECTION_CREATE", False),
            allow_subnet_create=_env_bool("PHPIPAM_ALLOW_SUBNET_CREATE", False),
        )
        return settings.validate()


def effective_auth_mode(settings: PhpIpamSettings) -> AuthMode:
    """Resolve the auth mode actually used at runtime.

    A configured static token always wins; everything else is password auth.
    """
    if settings.token:
        return AuthMode.TOKEN
    return AuthMode.PASSWORD


# ----------------------------------------
# Environment parsing helpers
# ----------------------------------------

def _parse_auth_mode(value: str) -> AuthMode:
    try:
        return AuthMode(str(value).strip().lower())
    except ValueError:
        raise ConfigurationError(
            f"Invalid PHPIPAM_AUTH_MODE {value!r} (expected token, password or auto)",
            details={"key": "PHPIPAM_AUTH_MODE"},
        )


def _env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        f"{key} must be a boolean, got {raw!r}",
        details={"key": key},
    )


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{key} must be a number, got {raw!r}",
            details={"key": key},
        )


__all__ = [
    "AuthMode",
    "PhpIpamSettings",
    "effective_auth_mode",
]
