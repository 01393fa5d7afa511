"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module opens the byte stream a single request travels over, plain TCP
or TLS-wrapped, and performs the one write-then-read-to-end exchange the
client needs.

=============================================================================
ONE REQUEST, ONE CONNECTION
=============================================================================

The client never reuses connections. Every call goes through the same
short lifecycle:

    ┌─────────────────────────────────────────────────────────────────┐
    │                                                                  │
    │   getaddrinfo("example.com", 443)     DNS                       │
    │       │                                                          │
    │       ▼                                                          │
    │   connect() (30s timeout)             TCP 3-way handshake       │
    │       │                                                          │
    │       ▼                                                          │
    │   wrap_socket(server_hostname=...)    TLS handshake (https only)│
    │       │                                                          │
    │       ▼                                                          │
    │   sendall(request_bytes)              whole request at once     │
    │       │                                                          │
    │       ▼                                                          │
    │   while recv(): buffer += chunk       until the server closes   │
    │       │                                                          │
    │       ▼                                                          │
    │   close()                                                        │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

Because we always send "Connection: close" (or speak HTTP/1.0, where that
is the default), the server closing the stream is what tells us the
response is complete. Reading "to end of stream" is enough; the parser
sorts out the framing afterwards.

=============================================================================
TCP IS A BYTE STREAM
=============================================================================

recv() returns whatever bytes happen to have arrived, in arbitrary chunks:

    recv() → b"HTTP/1.1 200 OK\\r\\nCont"
    recv() → b"ent-Length: 5\\r\\n\\r\\nhel"
    recv() → b"lo"
    recv() → b""                 ← peer closed, we're done

So we accumulate everything into one buffer and only parse at the end.

=============================================================================
TLS AND "UNEXPECTED EOF"
=============================================================================

TLS has its own close message (close_notify). A well-behaved server sends
it before closing TCP. Many servers don't bother: they send the full
response and just drop the connection. Python reports that as
ssl.SSLEOFError ("EOF occurred in violation of protocol").

We turn off the ssl module's blanket suppression (suppress_ragged_eofs)
and instead treat exactly that one error, and only while reading the
response, as a normal end of stream. Every other SSL or socket error
still aborts the request.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► CONNECTED ──► WRITING ──► READING ──► CLOSED
     │          │            │           │           ▲
     └──────────┴────────────┴───────────┴───────────┘
                    (any error → close())

=============================================================================
"""

import socket
import ssl
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..errors import ConnectError, TransportError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and guarding close()."""
    NEW = "new"              # Object created, nothing sent yet
    CONNECTED = "connected"  # TCP (and TLS) handshake done
    WRITING = "writing"      # Sending the request
    READING = "reading"      # Reading the response
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    A client connection to one server, used for exactly one exchange.

    Normally created with Connection.open(), which resolves the host,
    connects and (for https) performs the TLS handshake. The constructor
    takes an already-connected socket, which is what tests use to plug in
    socket pairs and fakes.

    Usage:
        with Connection.open("example.com", 443, use_tls=True) as conn:
            raw = conn.exchange(request_bytes)

    Attributes:
        socket: Connected socket (an ssl.SSLSocket for TLS).
        host: Server host name, for logging.
        port: Server port.
        is_tls: Whether socket is TLS-wrapped (enables the EOF tolerance).
        id: Short connection identifier for log lines.
        state: Current connection state.
        buffer_size: Bytes requested per recv() call.
        max_response_size: Abort if the response grows past this (None = no limit).
    """

    socket: socket.socket
    host: str = ""
    port: int = 0
    is_tls: bool = False

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.CONNECTED
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    max_response_size: Optional[int] = None

    bytes_sent: int = 0
    bytes_received: int = 0

    # =========================================================================
    # OPENING
    # =========================================================================

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        use_tls: bool = False,
        connect_timeout: Optional[float] = 30.0,
        read_timeout: Optional[float] = None,
        buffer_size: int = 8192,
        max_response_size: Optional[int] = None,
        ssl_context: Optional[ssl.SSLContext] = None,
    ) -> "Connection":
        """
        Resolve, connect and optionally wrap in TLS.

        Args:
            host: Host name or IP address.
            port: TCP port.
            use_tls: Wrap the socket in TLS, verifying the certificate
                     against the default trusted roots and host.
            connect_timeout: Seconds allowed for connect + TLS handshake.
            read_timeout: Socket timeout while exchanging data
                          (None = block until the server closes).
            buffer_size: recv() size.
            max_response_size: Optional cap on response bytes.
            ssl_context: Override the default TLS context (tests, custom CAs).

        Returns:
            A connected Connection.

        Raises:
            ConnectError: DNS failure, connect timeout/refusal, TLS failure.
        """
        sock = cls._connect(host, port, connect_timeout)

        if use_tls:
            sock = cls._wrap_tls(sock, host, port, ssl_context)

        sock.settimeout(read_timeout)

        conn = cls(
            socket=sock,
            host=host,
            port=port,
            is_tls=use_tls,
            buffer_size=buffer_size,
            max_response_size=max_response_size,
        )
        logger.debug(
            f"[{conn.id}] Connected to {host}:{port}"
            f"{' (TLS ' + sock.version() + ')' if use_tls else ''}"
        )
        return conn

    @staticmethod
    def _connect(host: str, port: int, timeout: Optional[float]) -> socket.socket:
        """
        Try every address the name resolves to until one accepts.

        A host can resolve to several addresses (IPv6 + IPv4, multiple A
        records). We try them in the order getaddrinfo returns them and
        report the last failure if none works.
        """
        try:
            addresses = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise ConnectError(f"Failed to resolve {host}:{port}: {e}", host, port) from e

        if not addresses:
            raise ConnectError(f"Failed to resolve {host}:{port}", host, port)

        last_error: Optional[OSError] = None
        for family, socktype, proto, _, address in addresses:
            sock = socket.socket(family, socktype, proto)
            try:
                sock.settimeout(timeout)
                sock.connect(address)
                return sock
            except OSError as e:
                last_error = e
                sock.close()
                logger.debug(f"Connect to {address} failed: {e}")

        if isinstance(last_error, socket.timeout):
            message = f"Connect to {host}:{port} timed out after {timeout}s"
        else:
            message = f"Failed to connect to {host}:{port}: {last_error}"
        raise ConnectError(message, host, port) from last_error

    @staticmethod
    def _wrap_tls(
        sock: socket.socket,
        host: str,
        port: int,
        context: Optional[ssl.SSLContext],
    ) -> ssl.SSLSocket:
        """Perform the TLS handshake, using host for SNI and certificate checks."""
        if context is None:
            context = ssl.create_default_context()

        try:
            return context.wrap_socket(
                sock,
                server_hostname=host,
                suppress_ragged_eofs=False,  # handled explicitly in read_to_end()
            )
        except (ssl.SSLError, ssl.CertificateError, OSError) as e:
            sock.close()
            raise ConnectError(f"TLS handshake with {host}:{port} failed: {e}", host, port) from e

    # =========================================================================
    # EXCHANGE
    # =========================================================================

    def exchange(self, request: bytes) -> bytes:
        """
        Send the whole request, then read the response until end of stream.

        Raises:
            TransportError: If writing or reading fails.
        """
        self.send_request(request)
        return self.read_to_end()

    def send_request(self, data: bytes) -> None:
        """
        Send all of data.

        sendall() keeps calling send() until every byte is written; a plain
        send() may write only part of the buffer.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            raise TransportError(f"[{self.id}] Send failed: {e}") from e

        self.bytes_sent += len(data)
        logger.debug(f"[{self.id}] Sent {len(data)} bytes")

    def read_to_end(self) -> bytes:
        """
        Read until the server closes the stream.

        Returns:
            Every byte received.

        Raises:
            TransportError: On a socket error, a read timeout, or a response
                            larger than max_response_size.
        """
        self.state = ConnectionState.READING
        buffer = bytearray()

        while True:
            try:
                chunk = self.socket.recv(self.buffer_size)
            except ssl.SSLEOFError as e:
                if not self.is_tls:
                    raise TransportError(f"[{self.id}] Receive failed: {e}") from e
                # Server dropped TCP without close_notify after sending
                # the response.
                logger.debug(f"[{self.id}] TLS stream ended without close_notify")
                break
            except socket.timeout as e:
                raise TransportError(f"[{self.id}] Read timed out") from e
            except OSError as e:
                raise TransportError(f"[{self.id}] Receive failed: {e}") from e

            if not chunk:
                break

            buffer += chunk
            if self.max_response_size is not None and len(buffer) > self.max_response_size:
                raise TransportError(
                    f"[{self.id}] Response too large: more than {self.max_response_size} bytes"
                )

        self.bytes_received += len(buffer)
        logger.debug(f"[{self.id}] Received {len(buffer)} bytes")
        return bytes(buffer)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """
        Release the socket. Safe to call more than once.

        By the time we get here the server has usually closed already, so
        shutdown() failing with "not connected" is expected and ignored.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed ({self.bytes_sent} bytes sent, "
            f"{self.bytes_received} received, {time.time() - self.created_at:.3f}s)"
        )

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
