"""
=============================================================================
CLIENT CONFIGURATION
=============================================================================

Centralized configuration for the HTTP client.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments (demo CLI only)                         │
    │      └── python -m httpclient --http-version 1.0 URL                │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPCLIENT_CONNECT_TIMEOUT=5 python -m httpclient URL      │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from . import __version__
from .http.request import HTTPVersion


DEFAULT_USER_AGENT = f"httpclient/{__version__}"


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value not in (None, "") else None


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value not in (None, "") else None


@dataclass
class ClientConfig:
    """
    Configuration for HTTPClient.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    PROTOCOL
    - http_version, user_agent

    NETWORK
    - connect_timeout, read_timeout, buffer_size, max_response_size

    LOGGING
    - log_level (used by the demo CLI; the library never configures logging)

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # PROTOCOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    http_version: str = "1.1"
    """
    Protocol version for requests: "1.0" or "1.1" (or "HTTP/1.x").
    1.0 frames request bodies with Content-Length, 1.1 always chunks them.
    """

    user_agent: str = DEFAULT_USER_AGENT
    """
    Default User-Agent header. Only used if the caller hasn't set one on
    the client's headers.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    connect_timeout: Optional[float] = 30.0
    """
    Seconds allowed for TCP connect plus TLS handshake.
    None = wait forever.
    """

    read_timeout: Optional[float] = None
    """
    Socket timeout while sending and receiving.
    None = block until the server closes the connection.
    """

    buffer_size: int = 8192
    """Bytes requested per recv() call (8 KB default)."""

    max_response_size: Optional[int] = None
    """
    Abort if the response exceeds this many bytes.
    None = no limit (the whole response is buffered in memory either way).
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level for the demo CLI (DEBUG shows raw request/response bytes)."""

    @property
    def version(self) -> HTTPVersion:
        """http_version as an HTTPVersion enum member."""
        return HTTPVersion.parse(self.http_version)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPCLIENT_HTTP_VERSION        "1.0" or "1.1" (default: 1.1)
        HTTPCLIENT_CONNECT_TIMEOUT     Seconds (default: 30)
        HTTPCLIENT_READ_TIMEOUT        Seconds (default: none)
        HTTPCLIENT_MAX_RESPONSE_SIZE   Bytes (default: unlimited)
        HTTPCLIENT_USER_AGENT          Default User-Agent
        HTTPCLIENT_LOG_LEVEL           Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            http_version=os.getenv("HTTPCLIENT_HTTP_VERSION", "1.1"),
            connect_timeout=_optional_float(os.getenv("HTTPCLIENT_CONNECT_TIMEOUT", "30")),
            read_timeout=_optional_float(os.getenv("HTTPCLIENT_READ_TIMEOUT")),
            max_response_size=_optional_int(os.getenv("HTTPCLIENT_MAX_RESPONSE_SIZE")),
            user_agent=os.getenv("HTTPCLIENT_USER_AGENT", DEFAULT_USER_AGENT),
            log_level=os.getenv("HTTPCLIENT_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by HTTPClient on construction so a bad value fails
        immediately instead of on the first request.
        """
        HTTPVersion.parse(self.http_version)

        if self.connect_timeout is not None and self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be > 0")

        if self.read_timeout is not None and self.read_timeout <= 0:
            raise ValueError("read_timeout must be > 0")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.max_response_size is not None and self.max_response_size <= 0:
            raise ValueError("max_response_size must be > 0")

        if not self.user_agent:
            raise ValueError("user_agent must not be empty")
