"""
=============================================================================
FILE HANDLER
=============================================================================

Maps an HTTP request onto the transfer engine and back into an
HTTPResponse.

=============================================================================
FLOW
=============================================================================

    GET /files/docs/report.pdf          Range: bytes=0-1023
        │
        ├── method not GET/HEAD?          → 405 + Allow
        ├── strip url_prefix              → "docs/report.pdf"
        ├── engine.open(...)              → NotFound → 404 (generic body)
        ├── transfer.plan(headers)        → 206 PARTIAL [0, 1023]
        ├── transfer.headers(decision)    → Content-Range, Content-Length, ...
        └── partial(transfer.emit, decision) → body writer (not for HEAD)

The handler builds the response but does not send it. The body writer
has not opened the file yet; the server calls it with the connection's
write function once the headers are on the wire.
=============================================================================
"""

import logging
from functools import partial
from typing import Optional

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, method_not_allowed, not_found
from ..http.status_codes import HTTPStatus
from ..transfer.engine import TransferEngine
from ..transfer.errors import NotFound


logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "HEAD"]


class FileHandler:
    """
    Serves files from a TransferEngine under a URL prefix.

    Args:
        engine: The shared transfer engine (root, policy, chunk size).
        url_prefix: URL path the files live under, e.g. "/files".
                    "" or "/" serves from the URL root.

    Usage:
        handler = FileHandler(TransferEngine("/srv/files"), url_prefix="/files")
        response = handler.handle(request)
    """

    def __init__(self, engine: TransferEngine, url_prefix: str = ""):
        self.engine = engine
        self.url_prefix = url_prefix.rstrip("/")

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        if request.method not in ALLOWED_METHODS:
            return method_not_allowed(ALLOWED_METHODS)

        user_path = self._user_path(request.path)
        if user_path is None:
            return not_found()

        try:
            transfer = self.engine.open(user_path)
        except NotFound:
            logger.debug(f"Not found: {request.path!r}")
            return not_found()

        decision = transfer.plan(request.headers)

        builder = (ResponseBuilder()
            .status(HTTPStatus(decision.status_code))
            .headers(transfer.headers(decision)))

        if decision.has_body and not request.is_head:
            builder.writer(partial(transfer.emit, decision))

        if decision.content_length is None:
            # Only closing the connection ends the body
            builder.unknown_length()

        return builder.build()

    def _user_path(self, url_path: str) -> Optional[str]:
        """The part of the URL path after the prefix, or None if it doesn't match."""
        if not self.url_prefix:
            return url_path

        if url_path == self.url_prefix:
            return ""
        if url_path.startswith(self.url_prefix + "/"):
            return url_path[len(self.url_prefix) + 1:]
        return None
