"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can send, with their reason phrases.

    ┌────────────┬──────────────────────────────────────────────────────┐
    │ Code       │ When a file server sends it                          │
    ├────────────┼──────────────────────────────────────────────────────┤
    │ 200        │ Whole file follows                                   │
    │ 206        │ Only the requested byte range follows                │
    │ 304        │ Client's cached copy is current, no body             │
    │ 400        │ Request could not be parsed                          │
    │ 404        │ No such file under the root                          │
    │ 405        │ Anything other than GET / HEAD                       │
    │ 408        │ Client connected but never finished its request      │
    │ 413        │ Request headers/body too large                       │
    │ 416        │ Range outside the file, malformed, or multi-range    │
    │ 500        │ Unexpected handler failure                           │
    │ 503        │ All workers busy                                     │
    │ 505        │ Not HTTP/1.0 or HTTP/1.1                             │
    └────────────┴──────────────────────────────────────────────────────┘

HTTPStatus is an IntEnum, so HTTPStatus.OK == 200 and it formats as "200"
in the status line.
=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

        >>> HTTPStatus.PARTIAL_CONTENT.phrase
        'Partial Content'
    """

    # 2xx
    OK = 200
    PARTIAL_CONTENT = 206

    # 3xx
    NOT_MODIFIED = 304

    # 4xx
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    RANGE_NOT_SATISFIABLE = 416

    # 5xx
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line: 'HTTP/1.1 206 Partial Content'."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_error(self) -> bool:
        """4xx or 5xx."""
        return self >= 400

    @property
    def allows_body(self) -> bool:
        """1xx, 204 and 304 responses never carry a body (RFC 7230 §3.3.3)."""
        return not (100 <= self < 200 or self in (204, 304))


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.NOT_MODIFIED: "Not Modified",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
