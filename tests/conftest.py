"""
pytest configuration and fixtures.
"""

import re
import socket
import threading
from typing import Callable, Generator, List, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def sample_response() -> bytes:
    """Simple Content-Length framed response."""
    return (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: text/plain; charset=utf-8\r\n"
        b"Content-Length: 13\r\n"
        b"Server: pytest\r\n"
        b"\r\n"
        b"Hello, World!"
    )


@pytest.fixture
def sample_chunked_response() -> bytes:
    """Chunked response with two data chunks."""
    return (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: application/json\r\n"
        b"Transfer-Encoding: chunked\r\n"
        b"\r\n"
        b"7\r\n"
        b'{"a": 1\r\n'
        b"1\r\n"
        b"}\r\n"
        b"0\r\n"
        b"\r\n"
    )


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class FakeSocket:
    """
    Stand-in for a connected socket.

    recv() replays the given items in order: bytes are returned, exceptions
    are raised. Once the script runs out, recv() returns b"" (end of stream).
    """

    def __init__(self, recv_script: Optional[List] = None, send_error: Optional[Exception] = None):
        self.recv_script = list(recv_script or [])
        self.send_error = send_error
        self.sent = b""
        self.closed = False
        self.shutdown_called = False

    def sendall(self, data: bytes) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent += data

    def recv(self, size: int) -> bytes:
        if not self.recv_script:
            return b""
        item = self.recv_script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def shutdown(self, how: int) -> None:
        self.shutdown_called = True
        raise OSError("not connected")

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_socket() -> Callable[..., FakeSocket]:
    """Factory for FakeSocket instances."""
    return FakeSocket


class CannedServer:
    """
    One-shot loopback server that runs in a background thread.

    Accepts a single connection, reads one complete HTTP request (headers,
    then a Content-Length or chunked body), stores it in .received, sends
    the canned response and closes the connection.

    With read_request=False it sends the response immediately without
    reading anything, which is handy for feeding garbage to a TLS client.
    """

    def __init__(self, response: bytes, read_request: bool = True):
        self.response = response
        self.read_request = read_request
        self.received = b""

        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(1)
        self._sock.settimeout(5.0)
        self.port = self._sock.getsockname()[1]

        self._thread = threading.Thread(target=self._serve, daemon=True)

    def url(self, path: str = "/") -> str:
        return f"http://127.0.0.1:{self.port}{path}"

    def start(self) -> "CannedServer":
        self._thread.start()
        return self

    def stop(self) -> None:
        self._sock.close()
        if self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def _serve(self) -> None:
        try:
            conn, _ = self._sock.accept()
        except OSError:
            return

        with conn:
            conn.settimeout(5.0)
            try:
                if self.read_request:
                    self.received = self._read_request(conn)
                conn.sendall(self.response)
            except OSError:
                pass

    @staticmethod
    def _read_request(conn: socket.socket) -> bytes:
        data = b""
        while b"\r\n\r\n" not in data:
            chunk = conn.recv(4096)
            if not chunk:
                return data
            data += chunk

        head, _, body = data.partition(b"\r\n\r\n")
        lowered = head.lower()

        if b"transfer-encoding: chunked" in lowered:
            while not body.endswith(b"0\r\n\r\n"):
                chunk = conn.recv(4096)
                if not chunk:
                    break
                body += chunk
        else:
            match = re.search(rb"content-length: (\d+)", lowered)
            length = int(match.group(1)) if match else 0
            while len(body) < length:
                chunk = conn.recv(4096)
                if not chunk:
                    break
                body += chunk

        return head + b"\r\n\r\n" + body


@pytest.fixture
def canned_server() -> Generator[Callable[..., CannedServer], None, None]:
    """Start one-shot servers on demand; all are stopped after the test."""
    servers: List[CannedServer] = []

    def start(response: bytes, read_request: bool = True) -> CannedServer:
        server = CannedServer(response, read_request=read_request).start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()
