"""
=============================================================================
HTTP CLIENT
=============================================================================

Ties the pieces together for a single request:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        REQUEST FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   client.get("https://example.com/search?q=x")                      │
    │       │                                                              │
    │       ├──► parse_url()          host, port, scheme, path            │
    │       │                                                              │
    │       ├──► _prepare_headers()   Host, User-Agent, Connection        │
    │       │                                                              │
    │       ├──► HTTPRequest.write()  wire bytes (1.0 or 1.1 framing)     │
    │       │                                                              │
    │       ├──► Connection.open()    TCP (+ TLS for https)               │
    │       │    conn.exchange()      send all, read until close          │
    │       │                                                              │
    │       └──► parse_response()     HTTPResponse                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every call opens a fresh connection and closes it before returning. There
is no pooling, no redirects, no retries: one call, one request, one
response (or one exception).

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, Optional, Union
from urllib.parse import urlsplit
import logging
import time

from .config import ClientConfig
from .core.connection import Connection
from .errors import URLError
from .http.headers import Headers
from .http.request import HTTPRequest, HTTPVersion
from .http.response import HTTPResponse, ResponseParser


logger = logging.getLogger(__name__)


# (direction, raw bytes): direction is ">>>" for requests, "<<<" for responses
TrafficHook = Callable[[str, bytes], None]


DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
}


@dataclass(frozen=True)
class ConnectionParams:
    """
    Where a URL points: computed once per request from the target URL.

    Attributes:
        scheme: "http" or "https"
        host:   Host name or IP (IPv6 without brackets)
        port:   Explicit port, or 80/443 by scheme
        path:   Path plus "?query", "/" when the URL has no path
    """

    scheme: str
    host: str
    port: int
    path: str = "/"

    @property
    def use_tls(self) -> bool:
        return self.scheme == "https"

    @property
    def host_header(self) -> str:
        """Host as sent in the Host header (IPv6 literals get brackets)."""
        return f"[{self.host}]" if ":" in self.host else self.host


def parse_url(url: str) -> ConnectionParams:
    """
    Split a URL into connection parameters.

    Examples:
        parse_url("http://example.com")
        # ConnectionParams(scheme="http", host="example.com", port=80, path="/")

        parse_url("https://example.com:8443/a/b?x=1")
        # ConnectionParams(scheme="https", host="example.com", port=8443, path="/a/b?x=1")

    Raises:
        URLError: Unknown scheme, missing host, or invalid port.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()

    if scheme not in DEFAULT_PORTS:
        raise URLError(f"Unknown scheme: {parts.scheme or '(none)'}", url)

    if not parts.hostname:
        raise URLError("Given URL does not contain a host", url)

    try:
        port = parts.port
    except ValueError as e:
        raise URLError(f"Invalid port in URL: {e}", url) from e

    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"

    return ConnectionParams(
        scheme=scheme,
        host=parts.hostname,
        port=port if port is not None else DEFAULT_PORTS[scheme],
        path=path,
    )


def prefix_lines(text: str, prefix: str) -> str:
    """Prefix every line of text, for dumping raw traffic to logs or stdout."""
    return "\n".join(f"{prefix}{line}" for line in text.splitlines())


class HTTPClient:
    """
    Minimal blocking HTTP/1.0 and HTTP/1.1 client.

    Usage:
        client = HTTPClient(HTTPVersion.HTTP_1_1)
        client.headers.set("Accept", "text/html")

        response = client.get("https://example.com/")
        print(response.status_code, response.status_message)
        print(response.text())

    The headers on the client are defaults copied into every request; a
    request never modifies them.
    """

    def __init__(
        self,
        version: Optional[HTTPVersion] = None,
        config: Optional[ClientConfig] = None,
        on_traffic: Optional[TrafficHook] = None,
    ):
        """
        Initialize the client.

        Args:
            version:    Protocol version. Overrides config.http_version.
            config:     Client configuration (defaults to ClientConfig()).
            on_traffic: Optional callback receiving the raw bytes of every
                        exchange: on_traffic(">>>", request_bytes) before
                        sending, on_traffic("<<<", response_bytes) after
                        reading. The demo CLI uses it to print the traffic.
        """
        self.config = config or ClientConfig()
        self.config.validate()

        self.version = version or self.config.version
        self.headers = Headers()
        self.on_traffic = on_traffic
        self._parser = ResponseParser()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get(self, url: str) -> HTTPResponse:
        """Send a GET request."""
        return self.send("GET", url)

    def post(self, url: str, body: Union[bytes, str]) -> HTTPResponse:
        """Send a POST request with body (str is UTF-8 encoded)."""
        return self.send("POST", url, body)

    def send(
        self,
        method: str,
        url: str,
        body: Optional[Union[bytes, str]] = None,
    ) -> HTTPResponse:
        """
        Send one request and return the parsed response.

        Args:
            method: HTTP verb, sent as given ("GET", "POST", ...)
            url:    Absolute http:// or https:// URL
            body:   Optional body; str is encoded as UTF-8

        Returns:
            The parsed HTTPResponse.

        Raises:
            URLError:       Bad URL.
            ConnectError:   DNS, connect or TLS handshake failure.
            TransportError: Send/receive failure.
            HTTPParseError: The server's response is malformed.
        """
        params = parse_url(url)

        if isinstance(body, str):
            body = body.encode("utf-8")

        request = HTTPRequest(
            method=method,
            path=params.path,
            headers=self._prepare_headers(params),
            body=body,
        )
        request_bytes = request.to_bytes(self.version)

        self._trace(">>>", request_bytes)

        started = time.time()
        response_bytes = self._transmit(params, request_bytes)

        self._trace("<<<", response_bytes)

        response = self._parser.parse(response_bytes)

        logger.info(
            f"{method} {url} {self.version.value} → {response.status_code} "
            f"{response.status_message} ({len(response.body)} bytes, "
            f"{(time.time() - started) * 1000:.1f}ms)"
        )
        return response

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _prepare_headers(self, params: ConnectionParams) -> Headers:
        """
        Build the header set for one request.

        - Host: always the target host (overrides any default)
        - User-Agent: config.user_agent, unless the caller set one
        - Connection: close, for HTTP/1.1 only (1.0 closes by default)
        """
        headers = self.headers.copy()
        headers.set("Host", params.host_header)

        if not headers.contains("User-Agent"):
            headers.set("User-Agent", self.config.user_agent)

        if self.version is HTTPVersion.HTTP_1_1:
            headers.set("Connection", "close")

        return headers

    def _trace(self, direction: str, data: bytes) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{direction} {len(data)} bytes")
            logger.debug(prefix_lines(data.decode("utf-8", errors="replace"), f"{direction} "))

        if self.on_traffic is not None:
            self.on_traffic(direction, data)

    def _transmit(self, params: ConnectionParams, request_bytes: bytes) -> bytes:
        """Open a connection, exchange bytes, close. Returns the raw response."""
        with self._open_connection(params) as conn:
            return conn.exchange(request_bytes)

    def _open_connection(self, params: ConnectionParams) -> Connection:
        return Connection.open(
            params.host,
            params.port,
            use_tls=params.use_tls,
            connect_timeout=self.config.connect_timeout,
            read_timeout=self.config.read_timeout,
            buffer_size=self.config.buffer_size,
            max_response_size=self.config.max_response_size,
        )
