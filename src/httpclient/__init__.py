"""
=============================================================================
HTTPCLIENT - Minimal HTTP/1.0 and HTTP/1.1 Client Built From Scratch
=============================================================================

This package implements an HTTP client on top of raw Python sockets: it
writes requests byte by byte, reads the response until the server closes
the connection, and parses it back, chunked transfer encoding included.

=============================================================================
PROJECT STRUCTURE
=============================================================================

    httpclient/
    ├── __init__.py          # Package exports (you are here)
    ├── __main__.py          # Demo CLI: python -m httpclient URL
    ├── client.py            # HTTPClient: URL → request → response
    ├── config.py            # ClientConfig dataclass
    ├── errors.py            # Exception hierarchy
    ├── core/
    │   └── connection.py    # TCP / TLS connection, read-to-end
    └── http/
        ├── headers.py       # Case-insensitive header map
        ├── request.py       # Request serialization (1.0 / 1.1)
        └── response.py      # Response parsing

=============================================================================
QUICK START
=============================================================================

    from httpclient import HTTPClient, HTTPVersion

    client = HTTPClient(HTTPVersion.HTTP_1_1)
    client.headers.set("Accept", "application/json")

    response = client.get("https://example.com/")
    print(response.status_code, response.status_message)
    for name, value in response.headers.entries():
        print(f"{name}: {value}")
    print(response.text())

=============================================================================
"""

__version__ = "1.0.0"

from .errors import (
    HTTPClientError,
    URLError,
    ConnectError,
    TransportError,
    HTTPParseError,
)
from .http import Headers, HTTPRequest, HTTPResponse, HTTPVersion, parse_response
from .config import ClientConfig
from .client import HTTPClient, ConnectionParams, parse_url

__all__ = [
    "HTTPClient",
    "ClientConfig",
    "ConnectionParams",
    "parse_url",
    "Headers",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPVersion",
    "parse_response",
    "HTTPClientError",
    "URLError",
    "ConnectError",
    "TransportError",
    "HTTPParseError",
    "__version__",
]
