"""
Credential Scrubbing for HTTP Debug Logs.

With PHPIPAM_DEBUG_HTTP enabled the transport logs method, URL and body
excerpts. Those lines must never contain the static app token, the user
password or a session token, in any mode. Every debug line goes through
LogSanitizer before it reaches the logging system.

Two layers of redaction are applied:

1. Literal secrets. The session manager registers the password, the static
   token and every session token it obtains with ``add_secret()``. Any
   occurrence of a registered value is replaced, wherever it appears.

2. Patterns. Generic shapes that carry credentials even when the value was
   never registered (for example a token echoed back in a login response):

   - Authorization headers: Authorization: Basic dXNlcjpwYXNz -> Authorization: [REDACTED]
   - JSON token fields: "token": "abc123" -> "token": "[REDACTED]"
   - Password fields: password=hunter2 -> password=[REDACTED]
   - Encrypted payloads: enc_request=AbC%2B... -> enc_request=[ENCRYPTED]

Usage:
    sanitizer = LogSanitizer()
    sanitizer.add_secret(settings.password)
    logger.debug(sanitizer.sanitize(f"[HTTP] Body: {body}"))
"""

from __future__ import annotations

import re
import threading
from typing import Optional

REDACTED = "[REDACTED]"


class LogSanitizer:
    """Redacts credentials from log lines.

    Attributes:
        patterns: List of (regex_pattern, replacement) tuples
        max_message_length: Lines longer than this are truncated after redaction
    """

    # Order matters - more specific patterns first
    DEFAULT_PATTERNS: list[tuple[str, str]] = [
        (r'authorization[:\s]+(basic|bearer)\s+[^\s\n,;"]+', 'Authorization: [REDACTED]'),
        (r'"(token|phpipam-token|password)"\s*:\s*"[^"]*"', r'"\1": "[REDACTED]"'),
        (r'\b(token|phpipam-token)[=:]\s*[^\s\n,;&"]+', r'\1=[REDACTED]'),
        (r'password[=:\s]+[^\s\n,;&"]+', 'password=[REDACTED]'),
        (r'enc_request=[^\s&]+', 'enc_request=[ENCRYPTED]'),
    ]

    def __init__(
        self,
        patterns: Optional[list[tuple[str, str]]] = None,
        max_message_length: int = 2000,
    ):
        self.patterns = list(patterns or self.DEFAULT_PATTERNS)
        self.max_message_length = max_message_length
        self._compiled_patterns = [
            (re.compile(pattern, re.IGNORECASE), replacement)
            for pattern, replacement in self.patterns
        ]
        self._secrets: set[str] = set()
        self._lock = threading.Lock()

    def add_secret(self, value: Optional[str]) -> None:
        """Register a literal value that must never be logged."""
        if value:
            with self._lock:
                self._secrets.add(value)

    def add_pattern(self, pattern: str, replacement: str) -> None:
        self.patterns.append((pattern, replacement))
        self._compiled_patterns.append(
            (re.compile(pattern, re.IGNORECASE), replacement)
        )

    def sanitize(self, message: str) -> str:
        """Return ``message`` with every known credential replaced."""
        if not message:
            return message

        sanitized = message
        with self._lock:
            # Longest first so a secret containing another is fully replaced
            secrets = sorted(self._secrets, key=len, reverse=True)
        for secret in secrets:
            sanitized = sanitized.replace(secret, REDACTED)

        for pattern, replacement in self._compiled_patterns:
            sanitized = pattern.sub(replacement, sanitized)

        if len(sanitized) > self.max_message_length:
            sanitized = sanitized[: self.max_message_length] + "... [TRUNCATED]"
        return sanitized

    def is_safe(self, message: str) -> bool:
        """True if sanitizing would leave ``message`` unchanged."""
        with self._lock:
            if any(secret in message for secret in self._secrets):
                return False
        return not any(pattern.search(message) for pattern, _ in self._compiled_patterns)
