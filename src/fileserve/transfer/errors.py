"""
=============================================================================
TRANSFER ERRORS
=============================================================================

Exceptions raised by the file transfer engine.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ERROR TAXONOMY                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   NotFound      path is not a regular file under the root  → 404    │
    │   StatFailed    metadata unreadable → serve without validators      │
    │   IOFailure     open/seek/read/write failed mid-stream → abort      │
    │                                                                      │
    │   An unsatisfiable Range is NOT an exception. It is a normal        │
    │   parse outcome that maps to 416.                                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Like HTTPParseError in the request parser, errors that map to a response
carry the status code the transport should send.
=============================================================================
"""

from typing import Optional


class TransferError(Exception):
    """Base class for all file transfer errors."""

    status_code: int = 500


class NotFound(TransferError):
    """
    The requested path does not resolve to a regular file inside the root.

    The message is deliberately generic: it never contains the on-disk path,
    so a 404 body cannot leak the layout of the filesystem.
    """

    status_code = 404

    def __init__(self, message: str = "File not found"):
        super().__init__(message)


class StatFailed(TransferError):
    """File metadata could not be read. Validators are unavailable."""

    def __init__(self, message: str, cause: Optional[OSError] = None):
        super().__init__(message)
        self.cause = cause


class IOFailure(TransferError):
    """
    Reading the file or writing to the client failed during streaming.

    Bytes may already be on the wire, so this can't be turned into a
    corrected HTTP response. The transport aborts the connection.
    """

    def __init__(self, message: str, bytes_sent: int = 0, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.bytes_sent = bytes_sent
        self.cause = cause
