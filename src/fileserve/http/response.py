"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses. A response body is either a bytes object (error
pages) or a body writer that streams a file straight to the connection.

=============================================================================
BYTES BODY VS STREAMED BODY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    TWO KINDS OF BODY                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   BYTES                            WRITER                           │
    │   ─────                            ──────                           │
    │   {"error": "Not Found"}           8 KB, 8 KB, 8 KB, ... of a file  │
    │   already in memory                read while sending               │
    │   Content-Length = len(body)       Content-Length from the planner  │
    │   to_bytes() sends it all          head_bytes(), then writer(write) │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A writer is called once with the connection's write function and pushes
the file through it chunk by chunk (FileTransfer.emit). It returns the
number of bytes written, or raises IOFailure carrying the count when the
transfer breaks off.

=============================================================================
CONTENT-LENGTH
=============================================================================

head_bytes() adds Content-Length = len(body) for bytes bodies, except:

    1xx, 204, 304        never carry a body, so no length is invented
    writer bodies        the planner's headers say what the length is
    unknown_length()     the file size couldn't be read; the body (if
                         any) ends when the connection closes

=============================================================================
BUILDER PATTERN
=============================================================================

    response = (ResponseBuilder()
        .status(HTTPStatus.PARTIAL_CONTENT)
        .headers(transfer.headers(decision))
        .writer(partial(transfer.emit, decision))
        .build())
=============================================================================
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Union

from .status_codes import HTTPStatus
from ..transfer.validators import format_http_date


BodyWriter = Callable[[Callable[[bytes], Any]], int]


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be sent.

    Attributes:
        status: Status code.
        headers: Header name → value (case preserved).
        body: In-memory body; ignored when `writer` is set.
        writer: Streams the body through a write function, or None.
        length_unknown: Never add an automatic Content-Length.
        version: HTTP version for the status line.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    writer: Optional[BodyWriter] = None
    length_unknown: bool = False
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 206 Partial Content"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def is_streamed(self) -> bool:
        return self.writer is not None

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def head_bytes(self, server_name: str = "fileserve/1.0") -> bytes:
        """
        Serialize the status line and headers, including the blank line.

        Date and Server are added if missing.
        """
        response_headers = dict(self.headers)

        if (
            not self.is_streamed
            and not self.length_unknown
            and self.status.allows_body
            and "Content-Length" not in response_headers
        ):
            response_headers["Content-Length"] = str(len(self.body))

        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("latin-1") + b"\r\n"

    def to_bytes(self, server_name: str = "fileserve/1.0") -> bytes:
        """
        Serialize a bytes-body response in one piece.

        Raises:
            ValueError: For streamed responses, whose body is written by
                        their writer.
        """
        if self.is_streamed:
            raise ValueError("Streamed responses cannot be serialized in one piece")
        if not self.status.allows_body:
            return self.head_bytes(server_name)
        return self.head_bytes(server_name) + self.body


class ResponseBuilder:
    """Fluent builder for HTTPResponse. Every method but build() returns self."""

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._writer: Optional[BodyWriter] = None
        self._length_unknown = False

    def status(self, status: Union[HTTPStatus, int]) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        self._body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = "application/json; charset=utf-8"
        return self

    def writer(self, writer: BodyWriter) -> "ResponseBuilder":
        """
        Stream the body with `writer(write)`.

        Set Content-Length through header()/headers() if the length is
        known; otherwise also call unknown_length().
        """
        self._writer = writer
        return self

    def unknown_length(self) -> "ResponseBuilder":
        """No Content-Length at all; the connection closes after the response."""
        self._length_unknown = True
        self._headers.pop("Content-Length", None)
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
            writer=self._writer,
            length_unknown=self._length_unknown,
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def error_response(status: Union[HTTPStatus, int], message: Optional[str] = None) -> HTTPResponse:
    """
    A small JSON error response.

    The message is generic by default (the reason phrase). File errors never
    include on-disk paths.
    """
    status = HTTPStatus(status)
    return ResponseBuilder().status(status).json({"error": message or status.phrase}).build()


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """405 with the Allow header RFC 7231 requires."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .json({"error": "Method Not Allowed", "allowed": allowed_methods})
        .build())


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
