"""
Unit tests for URL parsing and the HTTP client.
"""

import pytest

from httpclient.client import ConnectionParams, HTTPClient, parse_url, prefix_lines
from httpclient.config import ClientConfig, DEFAULT_USER_AGENT
from httpclient.errors import ConnectError, HTTPParseError, URLError
from httpclient.http.request import HTTPVersion


class TestParseURL:
    """Tests for parse_url()."""

    @pytest.mark.parametrize("url,expected", [
        ("http://example.com", ConnectionParams("http", "example.com", 80, "/")),
        ("https://example.com/", ConnectionParams("https", "example.com", 443, "/")),
        ("http://example.com:8080/a/b", ConnectionParams("http", "example.com", 8080, "/a/b")),
        ("https://example.com/x?y=1", ConnectionParams("https", "example.com", 443, "/x?y=1")),
        ("http://example.com?q=1", ConnectionParams("http", "example.com", 80, "/?q=1")),
        ("HTTP://Example.COM/", ConnectionParams("http", "example.com", 80, "/")),
        ("http://[::1]:8000/", ConnectionParams("http", "::1", 8000, "/")),
    ])
    def test_valid_urls(self, url: str, expected: ConnectionParams):
        """Scheme, host, port and path are extracted."""
        assert parse_url(url) == expected

    def test_fragment_dropped(self):
        """Fragments never go on the wire."""
        assert parse_url("http://example.com/page#section").path == "/page"

    @pytest.mark.parametrize("url", ["ftp://example.com/", "example.com/path", "file:///etc/hosts"])
    def test_unknown_scheme(self, url: str):
        """Only http and https are supported."""
        with pytest.raises(URLError) as exc_info:
            parse_url(url)

        assert "Unknown scheme" in str(exc_info.value)
        assert exc_info.value.url == url

    @pytest.mark.parametrize("url", ["http://", "https:///path"])
    def test_missing_host(self, url: str):
        """A URL without a host is rejected."""
        with pytest.raises(URLError) as exc_info:
            parse_url(url)

        assert "does not contain a host" in str(exc_info.value)

    @pytest.mark.parametrize("url", ["http://example.com:99999/", "http://example.com:abc/"])
    def test_invalid_port(self, url: str):
        """Out-of-range or non-numeric ports are rejected."""
        with pytest.raises(URLError):
            parse_url(url)


class TestConnectionParams:
    """Tests for ConnectionParams properties."""

    def test_use_tls(self):
        """Only https uses TLS."""
        assert ConnectionParams("https", "example.com", 443).use_tls
        assert not ConnectionParams("http", "example.com", 80).use_tls

    def test_host_header(self):
        """IPv6 literals are bracketed in the Host header."""
        assert ConnectionParams("http", "example.com", 80).host_header == "example.com"
        assert ConnectionParams("http", "::1", 80).host_header == "[::1]"


class TestPrepareHeaders:
    """Tests for per-request header defaults."""

    def test_http11_defaults(self):
        """Host, User-Agent and Connection: close are added."""
        client = HTTPClient(HTTPVersion.HTTP_1_1)
        headers = client._prepare_headers(parse_url("http://example.com/"))

        assert dict(headers.entries()) == {
            "connection": "close",
            "host": "example.com",
            "user-agent": DEFAULT_USER_AGENT,
        }

    def test_http10_has_no_connection_header(self):
        """HTTP/1.0 closes by default, so no Connection header."""
        client = HTTPClient(HTTPVersion.HTTP_1_0)
        headers = client._prepare_headers(parse_url("http://example.com/"))

        assert not headers.contains("connection")

    def test_host_always_from_url(self):
        """A default Host header is overridden by the target."""
        client = HTTPClient()
        client.headers.set("Host", "wrong.example")

        headers = client._prepare_headers(parse_url("http://right.example:8080/"))

        assert headers.get("host") == "right.example"

    def test_custom_user_agent_kept(self):
        """A caller-set User-Agent is not replaced."""
        client = HTTPClient()
        client.headers.set("user-agent", "custom/2.0")

        headers = client._prepare_headers(parse_url("http://example.com/"))

        assert headers.get("User-Agent") == "custom/2.0"

    def test_config_user_agent(self):
        """The configured User-Agent is the default."""
        client = HTTPClient(config=ClientConfig(user_agent="configured/1.0"))
        headers = client._prepare_headers(parse_url("http://example.com/"))

        assert headers.get("user-agent") == "configured/1.0"

    def test_client_headers_not_modified(self):
        """Preparing a request leaves the client's defaults untouched."""
        client = HTTPClient()
        client.headers.set("Accept", "*/*")

        client._prepare_headers(parse_url("http://example.com/"))

        assert dict(client.headers.entries()) == {"accept": "*/*"}


class TestClientConstruction:
    """Tests for version and config handling."""

    def test_version_from_config(self):
        """Without an explicit version, the config decides."""
        assert HTTPClient(config=ClientConfig(http_version="1.0")).version is HTTPVersion.HTTP_1_0

    def test_explicit_version_wins(self):
        """An explicit version overrides the config."""
        client = HTTPClient(HTTPVersion.HTTP_1_1, config=ClientConfig(http_version="1.0"))

        assert client.version is HTTPVersion.HTTP_1_1

    def test_invalid_config_rejected(self):
        """A bad config fails at construction."""
        with pytest.raises(ValueError):
            HTTPClient(config=ClientConfig(connect_timeout=0))


class TestSendWithStubTransport:
    """Tests for send() with the network stubbed out."""

    def test_get(self, monkeypatch, sample_response: bytes):
        """The request bytes go out and the parsed response comes back."""
        client = HTTPClient(HTTPVersion.HTTP_1_0)
        sent = []

        def transmit(params, request_bytes):
            sent.append((params, request_bytes))
            return sample_response

        monkeypatch.setattr(client, "_transmit", transmit)
        response = client.get("http://example.com/x?y=1")

        params, request_bytes = sent[0]
        assert params == ConnectionParams("http", "example.com", 80, "/x?y=1")
        assert request_bytes == (
            b"GET /x?y=1 HTTP/1.0\r\n"
            b"content-length: 0\r\n"
            b"host: example.com\r\n"
            b"user-agent: " + DEFAULT_USER_AGENT.encode() + b"\r\n"
            b"\r\n"
        )
        assert response.status_code == 200
        assert response.body == b"Hello, World!"

    def test_post_str_body_is_utf8(self, monkeypatch, sample_response: bytes):
        """String bodies are encoded as UTF-8 before framing."""
        client = HTTPClient(HTTPVersion.HTTP_1_0)
        sent = []
        monkeypatch.setattr(client, "_transmit", lambda params, data: sent.append(data) or sample_response)

        client.post("http://example.com/", "héllo")

        assert b"content-length: 6\r\n" in sent[0]
        assert sent[0].endswith("héllo".encode("utf-8"))

    def test_on_traffic_hook(self, monkeypatch, sample_response: bytes):
        """The hook sees the request bytes, then the response bytes."""
        seen = []
        client = HTTPClient(on_traffic=lambda direction, data: seen.append((direction, data)))
        monkeypatch.setattr(client, "_transmit", lambda params, data: sample_response)

        client.get("http://example.com/")

        assert [direction for direction, _ in seen] == [">>>", "<<<"]
        assert seen[0][1].startswith(b"GET / HTTP/1.1\r\n")
        assert seen[1][1] == sample_response

    def test_malformed_response(self, monkeypatch):
        """Parse errors reach the caller."""
        client = HTTPClient()
        monkeypatch.setattr(client, "_transmit", lambda params, data: b"not http at all")

        with pytest.raises(HTTPParseError):
            client.get("http://example.com/")

    def test_bad_url_sends_nothing(self, monkeypatch):
        """URL errors are raised before any I/O."""
        client = HTTPClient()
        calls = []
        monkeypatch.setattr(client, "_transmit", lambda params, data: calls.append(data))

        with pytest.raises(URLError):
            client.get("ftp://example.com/")

        assert calls == []

    def test_requests_are_independent(self, monkeypatch, sample_response: bytes):
        """Two sends produce identical bytes; no state leaks between them."""
        client = HTTPClient()
        sent = []
        monkeypatch.setattr(client, "_transmit", lambda params, data: sent.append(data) or sample_response)

        client.post("http://example.com/", b"abc")
        client.post("http://example.com/", b"abc")

        assert sent[0] == sent[1]


class TestSendOverLoopback:
    """End-to-end tests against a local one-shot server."""

    def test_http11_get_chunked_response(self, canned_server, sample_chunked_response: bytes):
        """HTTP/1.1 GET decodes a chunked reply."""
        server = canned_server(sample_chunked_response)
        client = HTTPClient(HTTPVersion.HTTP_1_1, config=ClientConfig(read_timeout=5.0))

        response = client.get(server.url("/data?id=7"))

        assert response.status_code == 200
        assert response.content_type == "application/json"
        assert response.body == b'{"a": 1}'
        assert server.received.startswith(b"GET /data?id=7 HTTP/1.1\r\n")
        assert b"connection: close\r\n" in server.received
        assert b"host: 127.0.0.1\r\n" in server.received
        assert server.received.endswith(b"\r\n\r\n0\r\n\r\n")

    def test_http10_post(self, canned_server, sample_response: bytes):
        """HTTP/1.0 POST sends Content-Length framing."""
        server = canned_server(sample_response)
        client = HTTPClient(HTTPVersion.HTTP_1_0, config=ClientConfig(read_timeout=5.0))

        response = client.post(server.url("/submit"), b"name=value")

        assert response.text() == "Hello, World!"
        assert server.received.startswith(b"POST /submit HTTP/1.0\r\n")
        assert b"content-length: 10\r\n" in server.received
        assert server.received.endswith(b"\r\n\r\nname=value")

    def test_http11_post_chunked_request(self, canned_server, sample_response: bytes):
        """HTTP/1.1 request bodies go out as one chunk."""
        server = canned_server(sample_response)
        client = HTTPClient(HTTPVersion.HTTP_1_1, config=ClientConfig(read_timeout=5.0))

        client.post(server.url("/"), b"hello")

        assert b"transfer-encoding: chunked\r\n" in server.received
        assert server.received.endswith(b"\r\n\r\n5\r\nhello\r\n0\r\n\r\n")

    def test_connection_refused(self, closed_port: int):
        """An unreachable server is a ConnectError."""
        client = HTTPClient(config=ClientConfig(connect_timeout=5.0))

        with pytest.raises(ConnectError):
            client.get(f"http://127.0.0.1:{closed_port}/")


def test_prefix_lines():
    """Every line gets the prefix."""
    assert prefix_lines("a\r\nb\nc", ">>> ") == ">>> a\n>>> b\n>>> c"
