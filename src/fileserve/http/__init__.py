"""
HTTP protocol pieces used by the server: request parsing, response
building and status codes.
"""

from .status_codes import HTTPStatus
from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    not_found,
    method_not_allowed,
    internal_error,
)

__all__ = [
    "HTTPStatus",
    "HTTPRequest", "RequestParser", "HTTPParseError", "parse_request",
    "HTTPResponse", "ResponseBuilder",
    "error_response", "not_found", "method_not_allowed", "internal_error",
]
