"""
HTTP message handling: header map, request serialization, response parsing.

Key points:
- Lines end with CRLF (\\r\\n); the parser also tolerates bare LF
- Headers and body are separated by an empty line (\\r\\n\\r\\n)
- Header names are case-insensitive, stored lowercase
- Response bodies are framed by chunked encoding, Content-Length, or
  connection close, in that order of precedence
"""

from .headers import Headers
from .request import HTTPRequest, HTTPVersion, build_request
from .response import HTTPResponse, ResponseParser, parse_response

__all__ = [
    # Headers
    "Headers",

    # Request serialization
    "HTTPRequest",
    "HTTPVersion",
    "build_request",

    # Response parsing
    "HTTPResponse",
    "ResponseParser",
    "parse_response",
]
