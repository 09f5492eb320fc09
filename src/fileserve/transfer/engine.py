"""
=============================================================================
FILE TRANSFER ENGINE
=============================================================================

Ties the transfer components together for one request.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ONE FILE REQUEST                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   engine.open("videos/intro.mp4")                                   │
    │        │                                                             │
    │        ├── PathResolver      → /srv/files/videos/intro.mp4          │
    │        ├── Validator         → ETag, Last-Modified, size            │
    │        └── MimeResolver      → video/mp4                            │
    │                                                                      │
    │   transfer.plan(request.headers)                                    │
    │        ├── RangeParser       → RANGE 0-1023                         │
    │        └── TransferPlanner   → 206 PARTIAL                          │
    │                                                                      │
    │   transfer.headers(decision) → Content-Range, Content-Length, ...   │
    │   transfer.iter_body(decision) → 8 KB chunks                        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

FileTransfer resolves its path in the constructor. If the path is bad,
NotFound is raised and no FileTransfer object ever exists, so nothing can
be planned or streamed for it.

The engine is built once per server and shared by all worker threads. It
holds only immutable configuration and stateless helpers; every
FileTransfer belongs to exactly one request.
=============================================================================
"""

import logging
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Union

from .errors import StatFailed
from .mime import MimeResolver, content_type_for, default_resolver
from .paths import PathResolver
from .planner import ResponsePolicy, TransferDecision, TransferPlanner, build_headers
from .ranges import ABSENT, RangeParser
from .stream import DEFAULT_CHUNK_SIZE, StreamEmitter, Writer
from .validators import Validator, compute_validator


logger = logging.getLogger(__name__)


class TransferEngine:
    """
    Shared, read-only configuration for serving files from one root.

    Args:
        root: Directory files are served from.
        policy: Caching/range/disposition choices.
        chunk_size: Streaming chunk size in bytes.
        mime_resolver: Defaults to the process-wide resolver.
    """

    def __init__(
        self,
        root: Union[str, Path],
        policy: ResponsePolicy = ResponsePolicy(),
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        mime_resolver: Optional[MimeResolver] = None,
    ):
        self.resolver = PathResolver(root)
        self.policy = policy
        self.mime = mime_resolver or default_resolver()
        self.ranges = RangeParser(enabled=policy.accept_ranges)
        self.planner = TransferPlanner()
        self.emitter = StreamEmitter(chunk_size)

    @property
    def root(self) -> Path:
        return self.resolver.root

    def open(self, user_path: str) -> "FileTransfer":
        """
        Start a transfer for a user-supplied path.

        Raises:
            NotFound: If the path does not resolve to a file under the root.
        """
        return FileTransfer(self, user_path)


class FileTransfer:
    """
    One file, prepared for one request.

    Attributes:
        path: Canonical path of the file.
        mime_type: Resolved MIME type.
        validator: ETag/Last-Modified/size, or None if stat failed.
    """

    def __init__(self, engine: TransferEngine, user_path: str):
        self.engine = engine
        self.path = engine.resolver.resolve(user_path)
        self.mime_type = engine.mime.resolve_path(self.path)

        try:
            self.validator: Optional[Validator] = compute_validator(self.path)
        except StatFailed as e:
            # Serve without validators rather than failing the request
            logger.warning(f"Serving {self.path.name} without validators: {e}")
            self.validator = None

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def content_type(self) -> str:
        return content_type_for(self.mime_type)

    def plan(self, request_headers: Mapping[str, str]) -> TransferDecision:
        """
        Decide the response for this file and these request headers.

        Header names are matched case-insensitively.
        """
        headers = {name.lower(): value for name, value in request_headers.items()}

        if self.validator is None:
            range_result = ABSENT
        else:
            range_result = self.engine.ranges.parse(headers.get("range"), self.validator.size)

        decision = self.engine.planner.plan(headers, self.validator, range_result)
        logger.debug(f"{self.filename}: {decision.kind.name} (range {range_result.kind.value})")
        return decision

    def headers(self, decision: TransferDecision) -> Dict[str, str]:
        """Response headers for `decision`."""
        return build_headers(
            decision,
            self.validator,
            self.content_type,
            self.filename,
            self.engine.policy,
        )

    def iter_body(self, decision: TransferDecision) -> Iterator[bytes]:
        """Lazy body chunks for `decision`. See StreamEmitter.iter_chunks."""
        return self.engine.emitter.iter_chunks(self.path, decision)

    def emit(self, decision: TransferDecision, write: Writer) -> int:
        """Write the body for `decision` through `write`. See StreamEmitter.emit."""
        return self.engine.emitter.emit(self.path, decision, write)
