"""
Transport layer: the listening socket and per-client connections.
"""

from .connection import Connection, ConnectionState, RequestTooLarge
from .socket_server import SocketServer

__all__ = ["Connection", "ConnectionState", "RequestTooLarge", "SocketServer"]
