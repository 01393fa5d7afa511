"""
=============================================================================
HTTP RESPONSE PARSER
=============================================================================

Turns the raw bytes read from the server into a structured HTTPResponse.
Implements the response side of RFC 7230 (HTTP/1.1 Message Syntax), as
far as a one-request-per-connection client needs it.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 404 Not Found\r\n                                  │ │
    │  │    ────┬─── ─┬─ ────┬────                                      │ │
    │  │    Version  Code  Reason phrase (may contain spaces)           │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Type: text/html\r\n                                 │ │
    │  │    Content-Length: 27\r\n       ← OR Transfer-Encoding: chunked│ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                         ← body starts right after this │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    <html>...</html>                                            │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHERE DOES THE BODY END?
=============================================================================

Three ways, checked in this order:

    1. Transfer-Encoding: chunked
       ──────────────────────────
       Body arrives as size-prefixed chunks, sizes in hex:

           5\r\n          ← 5 bytes follow
           hello\r\n
           6\r\n          ← 6 bytes follow
            world\r\n
           0\r\n          ← zero-size chunk = end of body
           \r\n

       Wins over Content-Length if both are present.

    2. Content-Length: N
       ─────────────────
       Exactly N bytes after the empty line.

    3. Neither (close-delimited)
       ─────────────────────────
       Everything up to the end of the buffer is body. This is the
       HTTP/1.0 default: the server just closes the connection when done.

=============================================================================
PARSING MODEL
=============================================================================

The parser is NOT incremental. The connection reads until the server
closes the stream, and only then is the complete buffer handed to
parse(). This keeps the parser a pure function of its input:

    parse_response(data) == parse_response(data)    # always

The status line and headers must be valid UTF-8 text; only the body may be
arbitrary binary.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional
import logging
import re

from ..errors import HTTPParseError
from .headers import Headers


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HTTPResponse:
    """
    A parsed HTTP response.

    Only the fields are frozen: the Headers map itself is still mutable, so
    the response is neither deeply immutable nor hashable.

    Attributes:
        status_code:    Numeric status (not range-checked; 200, 404, ...)
        status_message: Reason phrase ("OK", "Not Found", ...)
        headers:        Header map with lowercase names
        body:           Decoded body bytes (b"" when empty, never None)
        version:        Protocol token from the status line ("HTTP/1.1")
    """

    status_code: int
    status_message: str
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    version: str = "HTTP/1.1"

    __hash__ = None

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def status_line(self) -> str:
        """The status line as it would appear on the wire (without CRLF)."""
        return f"{self.version} {self.status_code} {self.status_message}"

    @property
    def content_length(self) -> Optional[int]:
        """
        Content-Length header as an integer.

        Returns None if the header is missing. The parser has already
        rejected non-numeric values, so this never raises for a parsed
        response.
        """
        value = self.headers.get("content-length")
        return int(value) if value is not None else None

    @property
    def content_type(self) -> Optional[str]:
        """
        Content-Type without parameters, lowercased.

        "text/html; charset=utf-8" → "text/html"
        """
        value = self.headers.get("content-type")
        if value is None:
            return None
        return value.split(";")[0].strip().lower() or None

    @property
    def is_chunked(self) -> bool:
        """True if the body was sent with chunked transfer encoding."""
        return self.headers.get("transfer-encoding", "").lower() == "chunked"

    @property
    def is_informational(self) -> bool:
        return 100 <= self.status_code < 200

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status_code < 600

    @property
    def is_error(self) -> bool:
        """4xx or 5xx."""
        return self.status_code >= 400

    def text(self, encoding: str = "utf-8", errors: str = "replace") -> str:
        """Decode the body. Lossy by default, since bodies can be binary."""
        return self.body.decode(encoding, errors=errors)


class ResponseParser:
    """
    Parses a complete response buffer into an HTTPResponse.

    ==========================================================================
    PARSER ARCHITECTURE
    ==========================================================================

        Raw response bytes
              │
              ▼
        ┌───────────────────────────────────────────────────────────────────┐
        │  1. Status line ──────────────────────────────────────────────────│
        │     │  VERSION SP CODE SP REASON                                  │
        │     │  < 3 parts or non-numeric code → HTTPParseError            │
        │     ▼                                                             │
        │  2. Header lines until the empty line ────────────────────────────│
        │     │  "Name: Value", split on the first ": "                     │
        │     │  remember Content-Length / Transfer-Encoding                │
        │     │  track byte offset → body_start                             │
        │     ▼                                                             │
        │  3. Body ─────────────────────────────────────────────────────────│
        │        chunked?        → _decode_chunked()                        │
        │        Content-Length? → exactly N bytes                          │
        │        otherwise       → rest of the buffer                       │
        └───────────────────────────────────────────────────────────────────┘
              │
              ▼
        HTTPResponse (frozen dataclass)

    ==========================================================================
    """

    # Chunk sizes are bare hex digits. int(x, 16) alone would also accept
    # "0x1f", "+5" and "1_0", none of which are valid on the wire.
    CHUNK_SIZE_PATTERN = re.compile(r"[0-9A-Fa-f]+")

    def parse(self, data: bytes) -> HTTPResponse:
        """
        Parse raw HTTP response bytes.

        Args:
            data: The entire response as read from the connection.

        Returns:
            Parsed HTTPResponse.

        Raises:
            HTTPParseError: If the status line, a header line or the body
                            framing is malformed, or the body is truncated.
        """
        if not data:
            raise HTTPParseError("Empty response", offset=0)

        # =====================================================================
        # STEP 1: Status line
        # =====================================================================
        line, pos = self._next_line(data, 0)
        version, status_code, status_message = self._parse_status_line(
            self._decode(line, 0)
        )

        # =====================================================================
        # STEP 2: Headers
        # =====================================================================
        # We walk the buffer line by line (instead of splitting the whole
        # thing) so we know exactly where the header block ends: the body
        # begins right after the empty line, and may contain anything.
        # A buffer that ends before the empty line is a truncated response,
        # never a response with an empty body.
        headers = Headers()
        content_length: Optional[int] = None
        is_chunked = False

        while True:
            line_start = pos
            line, pos = self._next_line(data, pos)

            if not line:
                body_start = pos
                break

            name, value = self._parse_header_line(self._decode(line, line_start), line_start)
            headers.set(name, value)

            key = name.lower()
            if key == "content-length":
                content_length = self._parse_content_length(value, line_start)
            elif key == "transfer-encoding":
                if value.strip().lower() != "chunked":
                    raise HTTPParseError(
                        f"Unknown transfer-encoding value: {value}",
                        offset=line_start,
                    )
                is_chunked = True

        # =====================================================================
        # STEP 3: Body
        # =====================================================================
        if is_chunked:
            body = self._decode_chunked(data, body_start)
        elif content_length:
            body_end = body_start + content_length
            if body_end > len(data):
                raise HTTPParseError(
                    f"Truncated body: expected {content_length} bytes, "
                    f"got {len(data) - body_start}",
                    offset=len(data),
                )
            body = data[body_start:body_end]
        else:
            # No Content-Length (or Content-Length: 0): the body is whatever
            # is left, which is nothing in the common zero-length case.
            body = data[body_start:]

        logger.debug(
            f"Parsed response: {status_code} {status_message}, "
            f"{len(headers)} headers, {len(body)} body bytes"
            f"{' (chunked)' if is_chunked else ''}"
        )

        return HTTPResponse(
            status_code=status_code,
            status_message=status_message,
            headers=headers,
            body=bytes(body),
            version=version,
        )

    # =========================================================================
    # LINE-LEVEL HELPERS
    # =========================================================================

    @staticmethod
    def _next_line(data: bytes, pos: int) -> tuple[bytes, int]:
        """
        Return the line starting at pos and the offset of the next line.

        Lines end at LF; a trailing CR is stripped, so both CRLF and bare
        LF line endings are accepted.

        Raises:
            HTTPParseError: If the buffer ends before the next LF. Only the
                            head is read line by line, so this means the
                            connection dropped mid-head.
        """
        newline = data.find(b"\n", pos)
        if newline == -1:
            raise HTTPParseError("Truncated response head", offset=len(data))

        line, next_pos = data[pos:newline], newline + 1
        if line.endswith(b"\r"):
            line = line[:-1]
        return line, next_pos

    @staticmethod
    def _decode(line: bytes, offset: int) -> str:
        try:
            return line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise HTTPParseError(f"Invalid UTF-8 in response head: {e}", offset=offset) from e

    def _parse_status_line(self, line: str) -> tuple[str, int, str]:
        """
        Parse "HTTP/1.1 200 OK" into ("HTTP/1.1", 200, "OK").

        Split into at most 3 parts so the reason phrase keeps its spaces:
        "HTTP/1.1 404 Not Found" → reason "Not Found".
        """
        parts = line.split(" ", 2)
        if len(parts) < 3:
            raise HTTPParseError(f"Invalid status line: {line!r}", offset=0)

        version, code, message = parts
        if not (code.isascii() and code.isdigit()):
            raise HTTPParseError(f"Invalid status code: {code!r}", offset=0)

        return version, int(code), message

    @staticmethod
    def _parse_header_line(line: str, offset: int) -> tuple[str, str]:
        name, separator, value = line.partition(": ")
        if not separator:
            raise HTTPParseError(f"Invalid header: {line!r}", offset=offset)
        return name, value

    @staticmethod
    def _parse_content_length(value: str, offset: int) -> int:
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise HTTPParseError(f"Invalid Content-Length: {value!r}", offset=offset)
        return int(value)

    # =========================================================================
    # CHUNKED TRANSFER ENCODING
    # =========================================================================

    def _decode_chunked(self, data: bytes, pos: int) -> bytes:
        """
        Decode a chunked body starting at pos.

        =====================================================================
        CHUNK FORMAT (RFC 7230 section 4.1)
        =====================================================================

            chunk-size [; extensions] CRLF
            chunk-data CRLF
            ...
            0 CRLF
            [trailers]          ← ignored
            CRLF

        =====================================================================

        Raises:
            HTTPParseError: Missing CRLF, bad hex size, or a chunk that runs
                            past the end of the buffer.
        """
        body = bytearray()

        while True:
            line_end = data.find(b"\r\n", pos)
            if line_end == -1:
                raise HTTPParseError("Invalid chunk: missing CRLF after chunk size", offset=pos)

            size = self._parse_chunk_size(data[pos:line_end], pos)
            pos = line_end + 2

            if size == 0:
                break

            chunk_end = pos + size
            if chunk_end > len(data):
                raise HTTPParseError(
                    f"Truncated chunk: expected {size} bytes, got {len(data) - pos}",
                    offset=pos,
                )
            body += data[pos:chunk_end]

            if data[chunk_end:chunk_end + 2] != b"\r\n":
                raise HTTPParseError("Invalid chunk: missing CRLF after chunk data", offset=chunk_end)
            pos = chunk_end + 2

        return bytes(body)

    def _parse_chunk_size(self, raw: bytes, offset: int) -> int:
        # Chunk extensions ("1a;name=value") carry nothing we use.
        token = raw.split(b";", 1)[0].strip()
        try:
            text = token.decode("ascii")
        except UnicodeDecodeError as e:
            raise HTTPParseError(f"Invalid chunk size: {raw!r}", offset=offset) from e

        if not self.CHUNK_SIZE_PATTERN.fullmatch(text):
            raise HTTPParseError(f"Invalid chunk size: {raw!r}", offset=offset)
        return int(text, 16)


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_response(data: bytes) -> HTTPResponse:
    """
    Parse an HTTP response in one call.

    Example:
        response = parse_response(b"HTTP/1.1 200 OK\\r\\nContent-Length: 5\\r\\n\\r\\nhello")
        response.status_code    # 200
        response.body           # b"hello"
    """
    return ResponseParser().parse(data)
