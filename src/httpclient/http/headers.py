"""
=============================================================================
HTTP HEADER MAP
=============================================================================

A small case-insensitive mapping for HTTP header fields.

=============================================================================
CASE INSENSITIVITY
=============================================================================

Header names are case-insensitive (RFC 7230 section 3.2):

    Content-Length: 5
    content-length: 5        ← all the same field
    CONTENT-LENGTH: 5

We normalize every name to lowercase on the way in, so lookups never have
to care about case:

    headers.set("Content-Type", "text/html")
    headers.get("CONTENT-TYPE")              # "text/html"
    "content-type" in headers                # True

=============================================================================
ORDERING
=============================================================================

Iteration is by ascending (lowercase) name, NOT insertion order:

    headers.set("User-Agent", "x")
    headers.set("Host", "example.com")
    headers.set("Connection", "close")

    list(headers.entries())
    # [("connection", "close"), ("host", "example.com"), ("user-agent", "x")]

This is the order headers are written on the wire, so a request's bytes
are fully determined by its contents.

=============================================================================
KNOWN LIMITATION: ONE VALUE PER NAME
=============================================================================

Setting a name twice keeps only the last value. Real HTTP allows repeated
fields (several Set-Cookie lines, for instance) and those collapse to the
last one here. Good enough for a one-request-per-connection client that
only needs Content-Length and Transfer-Encoding to frame the body.

=============================================================================
"""

from collections.abc import MutableMapping
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple, Union


HeaderSource = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


class Headers(MutableMapping):
    """
    Case-insensitive, name-ordered map of header name → value.

    Besides the explicit set/get/contains/remove/entries API, this is a
    regular MutableMapping, so dict-style access works too:

        headers["Host"] = "example.com"
        headers["HOST"]            # "example.com"
        del headers["host"]
    """

    def __init__(self, initial: Optional[HeaderSource] = None):
        self._fields: dict[str, str] = {}
        if initial is not None:
            items = initial.items() if isinstance(initial, Mapping) else initial
            for name, value in items:
                self.set(name, value)

    @staticmethod
    def normalize(name: str) -> str:
        """Return the canonical (lowercase) form of a header name."""
        return name.lower()

    # =========================================================================
    # EXPLICIT API
    # =========================================================================

    def set(self, name: str, value: Any) -> None:
        """
        Store a header, replacing any previous value for the same name.

        Non-string values are converted with str(), so
        headers.set("Content-Length", 42) stores "42".
        """
        self._fields[self.normalize(name)] = str(value)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive lookup. Returns default if the header is absent."""
        return self._fields.get(self.normalize(name), default)

    def contains(self, name: str) -> bool:
        """Check if a header is present (case-insensitive)."""
        return self.normalize(name) in self._fields

    def remove(self, name: str) -> None:
        """Delete a header. Does nothing if it isn't there."""
        self._fields.pop(self.normalize(name), None)

    def entries(self) -> Iterator[Tuple[str, str]]:
        """
        Yield (name, value) pairs in ascending name order.

        Each call returns a fresh generator, so the sequence can be walked
        as many times as needed.
        """
        for name in sorted(self._fields):
            yield name, self._fields[name]

    def copy(self) -> "Headers":
        """Return an independent clone."""
        clone = Headers()
        clone._fields = dict(self._fields)
        return clone

    # =========================================================================
    # MAPPING PROTOCOL
    # =========================================================================

    def __getitem__(self, name: str) -> str:
        return self._fields[self.normalize(name)]

    def __setitem__(self, name: str, value: Any) -> None:
        self.set(name, value)

    def __delitem__(self, name: str) -> None:
        del self._fields[self.normalize(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains(name)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._fields))

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._fields == other._fields
        return NotImplemented

    def __repr__(self) -> str:
        return f"Headers({dict(self.entries())!r})"
