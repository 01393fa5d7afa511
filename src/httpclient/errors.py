"""
=============================================================================
CLIENT ERRORS
=============================================================================

Every failure the client can hit while issuing a request maps to one of
four exception types. All of them derive from HTTPClientError, so callers
that don't care about the details can catch a single class.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ERROR TAXONOMY                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTPClientError                                                    │
    │       │                                                              │
    │       ├── URLError          "ftp://x", "http://" (no host)          │
    │       │                                                              │
    │       ├── ConnectError      DNS failure, connect timeout,           │
    │       │                     TLS handshake / certificate failure     │
    │       │                                                              │
    │       ├── TransportError    send/recv failures on an open stream    │
    │       │                                                              │
    │       └── HTTPParseError    bad status line, bad header line,       │
    │                             unknown Transfer-Encoding, broken       │
    │                             chunk framing, truncated body           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

None of these are retried. They are raised where the problem is detected,
chained to the low-level exception that caused them (raise ... from e),
and propagate straight up to whoever called HTTPClient.send().

=============================================================================
"""

from typing import Optional


class HTTPClientError(Exception):
    """Base class for every error raised by the client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class URLError(HTTPClientError):
    """
    Raised when the target URL can't be used.

    Examples: missing host, a scheme other than http/https, a port that
    isn't a number in 0-65535.
    """

    def __init__(self, message: str, url: str = ""):
        super().__init__(message)
        self.url = url


class ConnectError(HTTPClientError):
    """
    Raised when no usable stream to the server could be opened.

    Covers name resolution, TCP connect (including the connect timeout)
    and the TLS handshake.
    """

    def __init__(self, message: str, host: str = "", port: Optional[int] = None):
        super().__init__(message)
        self.host = host
        self.port = port


class TransportError(HTTPClientError):
    """Raised when writing the request or reading the response fails."""


class HTTPParseError(HTTPClientError):
    """
    Raised when the response bytes are not a valid HTTP/1.x response.

    The offset (when known) points at the byte in the response buffer
    where parsing gave up. Handy when dumping the raw response to debug a
    misbehaving server.
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.offset = offset
