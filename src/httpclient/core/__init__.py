"""
Networking core: opening the stream a request travels over.
"""

from .connection import Connection, ConnectionState

__all__ = ["Connection", "ConnectionState"]
