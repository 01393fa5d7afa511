"""
=============================================================================
HTTP REQUEST BUILDER
=============================================================================

Serializes an HTTPRequest into the exact bytes that go on the wire, for
either HTTP/1.0 or HTTP/1.1.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /api/users?page=1 HTTP/1.1\r\n      ← request line          │
    │   ─┬── ──────────┬────── ────┬────                                  │
    │  Method     Path + query   Version                                  │
    │                                                                      │
    │   connection: close\r\n                     ← headers, sorted by   │
    │   host: example.com\r\n                       lowercase name        │
    │   transfer-encoding: chunked\r\n                                    │
    │   user-agent: httpclient/1.0.0\r\n                                  │
    │   \r\n                                      ← end of headers        │
    │                                                                      │
    │   body (framing depends on the version, see below)                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
BODY FRAMING: HTTP/1.0 vs HTTP/1.1
=============================================================================

HTTP/1.0 - length-prefixed via header:

    GET / HTTP/1.0\r\n
    content-length: 5\r\n        ← always present, "0" when there's no body
    \r\n
    hello                        ← raw bytes, nothing after

HTTP/1.1 - always chunked:

    POST / HTTP/1.1\r\n
    transfer-encoding: chunked\r\n
    \r\n
    5\r\n                        ← chunk size in lowercase hex
    hello\r\n                    ← chunk data + CRLF
    0\r\n                        ← zero-size chunk ends the body
    \r\n

HTTP/1.0 has no chunked encoding, so it has to announce the length up
front. For HTTP/1.1 we always send a single chunk (or no chunk at all for
an empty body) followed by the terminating zero chunk, even when the body
size is known. A smarter client would send Content-Length here; this one
keeps a single code path for 1.1 bodies.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from io import BytesIO
from typing import BinaryIO, Optional

from .headers import Headers


CRLF = b"\r\n"
LAST_CHUNK = b"0\r\n\r\n"


class HTTPVersion(Enum):
    """Protocol versions the client can speak."""

    HTTP_1_0 = "HTTP/1.0"
    HTTP_1_1 = "HTTP/1.1"

    @classmethod
    def parse(cls, value: str) -> "HTTPVersion":
        """
        Accept either the bare number or the full token.

            HTTPVersion.parse("1.1")       → HTTPVersion.HTTP_1_1
            HTTPVersion.parse("HTTP/1.0")  → HTTPVersion.HTTP_1_0
        """
        token = value.strip().upper()
        if not token.startswith("HTTP/"):
            token = f"HTTP/{token}"
        for version in cls:
            if version.value == token:
                return version
        raise ValueError(f"Unsupported HTTP version: {value!r}")


@dataclass
class HTTPRequest:
    """
    A request waiting to be serialized.

    Built by the client for a single call, written to the wire exactly once
    by write_http10() or write_http11(), then thrown away. Serialization
    adds framing headers (Content-Length or Transfer-Encoding) to
    self.headers, which is why a request can't be written twice.

    Attributes:
        method:  HTTP verb ("GET", "POST", ...)
        path:    Path plus optional "?query", e.g. "/search?q=x"
        headers: Header map (the client fills in Host, User-Agent, ...)
        body:    Optional body bytes
    """

    method: str
    path: str = "/"
    headers: Headers = field(default_factory=Headers)
    body: Optional[bytes] = None

    _consumed: bool = field(default=False, init=False, repr=False)

    @property
    def request_line(self) -> str:
        """Request line without the version, e.g. "GET /x?y=1"."""
        return f"{self.method} {self.path}"

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def write(self, writer: BinaryIO, version: HTTPVersion) -> None:
        """Serialize with the framing that matches version."""
        if version is HTTPVersion.HTTP_1_0:
            self.write_http10(writer)
        else:
            self.write_http11(writer)

    def write_http10(self, writer: BinaryIO) -> None:
        """
        Write the request using HTTP/1.0 framing.

        Steps:
        1. content-length = body length (always set, even for no body)
        2. request line + headers + blank line
        3. raw body bytes, if any

        Args:
            writer: Anything with a write(bytes) method (BytesIO, socket file)
        """
        self._consume()
        body = self.body or b""

        self.headers.set("Content-Length", len(body))
        self._write_head(writer, HTTPVersion.HTTP_1_0)

        if body:
            writer.write(body)

    def write_http11(self, writer: BinaryIO) -> None:
        """
        Write the request using HTTP/1.1 chunked framing.

        Steps:
        1. transfer-encoding: chunked (unconditionally)
        2. request line + headers + blank line
        3. one chunk holding the whole body, if the body is non-empty
        4. the terminating "0\\r\\n\\r\\n" chunk, always

        Args:
            writer: Anything with a write(bytes) method (BytesIO, socket file)
        """
        self._consume()
        body = self.body or b""

        self.headers.set("Transfer-Encoding", "chunked")
        self._write_head(writer, HTTPVersion.HTTP_1_1)

        if body:
            writer.write(f"{len(body):x}".encode("ascii") + CRLF)
            writer.write(body)
            writer.write(CRLF)

        writer.write(LAST_CHUNK)

    def to_bytes(self, version: HTTPVersion = HTTPVersion.HTTP_1_1) -> bytes:
        """
        Serialize into an in-memory buffer and return the bytes.

        Convenience wrapper around write(); consumes the request just like
        write_http10() / write_http11().
        """
        buffer = BytesIO()
        self.write(buffer, version)
        return buffer.getvalue()

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _write_head(self, writer: BinaryIO, version: HTTPVersion) -> None:
        lines = [f"{self.method} {self.path} {version.value}"]
        for name, value in self.headers.entries():
            lines.append(f"{name}: {value}")
        lines.append("")

        writer.write("\r\n".join(lines).encode("utf-8") + CRLF)

    def _consume(self) -> None:
        if self._consumed:
            raise RuntimeError("HTTPRequest has already been serialized")
        self._consumed = True


def build_request(
    method: str,
    path: str,
    headers: Optional[Headers] = None,
    body: Optional[bytes] = None,
    version: HTTPVersion = HTTPVersion.HTTP_1_1,
) -> bytes:
    """
    Build the wire bytes for a request in one call.

    The headers are copied, so the caller's map isn't touched by the
    framing headers serialization adds.

    Example:
        build_request("GET", "/", Headers({"Host": "example.com"}),
                      version=HTTPVersion.HTTP_1_0)
        # b"GET / HTTP/1.0\\r\\ncontent-length: 0\\r\\nhost: example.com\\r\\n\\r\\n"
    """
    request = HTTPRequest(
        method=method,
        path=path,
        headers=headers.copy() if headers is not None else Headers(),
        body=body,
    )
    return request.to_bytes(version)
