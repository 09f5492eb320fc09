"""
=============================================================================
TRANSFER PACKAGE
=============================================================================

The range-aware conditional file transfer engine. Nothing in here knows
about sockets: it decides status, headers and byte window, and produces
body chunks. The transport (fileserve.server) writes them.

    paths.py       PathResolver     user path → canonical file under root
    mime.py        MimeResolver     extension → MIME type
    validators.py  Validator        ETag + Last-Modified from stat()
    ranges.py      RangeParser      Range header → one byte interval
    planner.py     TransferPlanner  304 / 416 / 206 / 200 + headers
    stream.py      StreamEmitter    bounded-memory chunk loop
    engine.py      TransferEngine   all of the above for one request
=============================================================================
"""

from .errors import TransferError, NotFound, StatFailed, IOFailure
from .paths import PathResolver, normalize_user_path, resolve_path
from .mime import MimeResolver, MIME_TYPES, default_resolver, content_type_for
from .validators import ServedFile, Validator, compute_validator, make_etag, format_http_date
from .ranges import ByteRange, RangeOutcome, RangeResult, RangeParser, parse_range
from .planner import (
    DecisionKind, TransferDecision, TransferPlanner, ResponsePolicy,
    build_headers, plan_transfer,
)
from .stream import StreamEmitter, DEFAULT_CHUNK_SIZE
from .engine import TransferEngine, FileTransfer

__all__ = [
    "TransferError", "NotFound", "StatFailed", "IOFailure",
    "PathResolver", "normalize_user_path", "resolve_path",
    "MimeResolver", "MIME_TYPES", "default_resolver", "content_type_for",
    "ServedFile", "Validator", "compute_validator", "make_etag", "format_http_date",
    "ByteRange", "RangeOutcome", "RangeResult", "RangeParser", "parse_range",
    "DecisionKind", "TransferDecision", "TransferPlanner", "ResponsePolicy",
    "build_headers", "plan_transfer",
    "StreamEmitter", "DEFAULT_CHUNK_SIZE",
    "TransferEngine", "FileTransfer",
]
