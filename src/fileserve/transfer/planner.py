"""
=============================================================================
TRANSFER PLANNING
=============================================================================

Decides what a file response looks like before a single byte is read:
which status code, which headers, and which byte window goes in the body.

=============================================================================
DECISION PRECEDENCE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ONE REQUEST → ONE DECISION                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   If-Modified-Since == Last-Modified ?  ──yes──► 304 NOT_MODIFIED   │
    │   If-None-Match matches ETag ?          ──yes──► 304 NOT_MODIFIED   │
    │        │ no                                                          │
    │        ▼                                                             │
    │   Range UNSATISFIABLE ?                 ──yes──► 416 UNSATISFIABLE  │
    │        │ no                                                          │
    │        ▼                                                             │
    │   Range valid ?                         ──yes──► 206 PARTIAL        │
    │        │ no (absent / ignored)                                       │
    │        ▼                                                             │
    │   200 FULL                                                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The conditional check runs BEFORE the range check: a client whose cached
copy is current gets 304 even if it also sent a Range header.

If-Modified-Since is compared as an exact string, not as a date. Clients
echo back the Last-Modified value they were given, so equality is the
common case; anything else is treated as "modified".

=============================================================================
HEADERS PER DECISION
=============================================================================

    304  ETag                    (no Last-Modified, no body)
    416  Content-Range: bytes */<size>
    206  Content-Range: bytes <start>-<end>/<size>, Content-Length, Accept-Ranges
    200  Content-Length, Accept-Ranges, Last-Modified, ETag

200 and 206 also carry Content-Type, Content-Disposition and the caching
headers chosen by ResponsePolicy.
=============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional
from urllib.parse import quote

from .ranges import ByteRange, RangeResult, RangeOutcome
from .validators import Validator, etag_matches


class DecisionKind(Enum):
    NOT_MODIFIED = 304
    UNSATISFIABLE = 416
    PARTIAL = 206
    FULL = 200


@dataclass(frozen=True)
class TransferDecision:
    """
    The single outcome of planning a file transfer.

    Attributes:
        kind: Which of the four outcomes this is.
        size: Total file size. None only for FULL when the file could not
              be stat'ed (no validator).
        byte_range: The window to send for PARTIAL.
    """

    kind: DecisionKind
    size: Optional[int] = None
    byte_range: Optional[ByteRange] = None

    # ─────────────────────────────────────────────────────────────────────
    # CONSTRUCTORS
    # ─────────────────────────────────────────────────────────────────────

    @classmethod
    def not_modified(cls) -> "TransferDecision":
        return cls(DecisionKind.NOT_MODIFIED)

    @classmethod
    def unsatisfiable(cls, size: int) -> "TransferDecision":
        return cls(DecisionKind.UNSATISFIABLE, size=size)

    @classmethod
    def partial(cls, byte_range: ByteRange, size: int) -> "TransferDecision":
        return cls(DecisionKind.PARTIAL, size=size, byte_range=byte_range)

    @classmethod
    def full(cls, size: Optional[int]) -> "TransferDecision":
        return cls(DecisionKind.FULL, size=size)

    # ─────────────────────────────────────────────────────────────────────
    # DERIVED VALUES
    # ─────────────────────────────────────────────────────────────────────

    @property
    def status_code(self) -> int:
        return self.kind.value

    @property
    def has_body(self) -> bool:
        """True for 200 and 206. 304 and 416 never carry file bytes."""
        return self.kind in (DecisionKind.FULL, DecisionKind.PARTIAL)

    @property
    def last_byte(self) -> Optional[int]:
        """Index of the last byte of the file (size - 1), if the size is known."""
        return None if self.size is None else self.size - 1

    @property
    def window(self) -> Optional[ByteRange]:
        """
        The byte window the body covers.

        None when there is no body, when the file is empty, or when the
        size is unknown (stream until EOF).
        """
        if self.kind is DecisionKind.PARTIAL:
            return self.byte_range
        if self.kind is DecisionKind.FULL and self.size:
            return ByteRange(0, self.size - 1)
        return None

    @property
    def content_length(self) -> Optional[int]:
        """Body length in bytes, or None if it is not known up front."""
        if self.kind is DecisionKind.PARTIAL:
            return self.byte_range.length
        if self.kind is DecisionKind.FULL:
            return self.size
        return 0


class TransferPlanner:
    """
    Turns request headers, validators and a parsed Range into a decision.

    This never touches file bytes. It only reads header values.
    """

    def plan(
        self,
        conditional_headers: Mapping[str, str],
        validator: Optional[Validator],
        range_result: RangeResult,
    ) -> TransferDecision:
        """
        Decide the response for one request.

        Args:
            conditional_headers: Request headers (any case); only
                                 If-Modified-Since and If-None-Match are read.
            validator: The file's validators, or None if stat failed.
            range_result: Output of RangeParser.parse().

        Returns:
            Exactly one TransferDecision.
        """
        # Without validators there is no size to check ranges against and
        # nothing to compare conditional headers with.
        if validator is None:
            return TransferDecision.full(None)

        headers = {name.lower(): value for name, value in conditional_headers.items()}

        if_modified_since = headers.get("if-modified-since")
        if if_modified_since is not None and if_modified_since == validator.last_modified:
            return TransferDecision.not_modified()

        if etag_matches(headers.get("if-none-match", ""), validator.etag):
            return TransferDecision.not_modified()

        if range_result.kind is RangeOutcome.UNSATISFIABLE:
            return TransferDecision.unsatisfiable(validator.size)

        if range_result.kind is RangeOutcome.RANGE:
            return TransferDecision.partial(range_result.byte_range, validator.size)

        return TransferDecision.full(validator.size)


def plan_transfer(
    conditional_headers: Mapping[str, str],
    validator: Optional[Validator],
    range_result: RangeResult,
) -> TransferDecision:
    return TransferPlanner().plan(conditional_headers, validator, range_result)


# =============================================================================
# RESPONSE HEADERS
# =============================================================================

NO_CACHE_HEADERS = {
    "Pragma": "public",
    "Expires": "0",
    "Cache-Control": "must-revalidate, post-check=0, pre-check=0",
}


@dataclass(frozen=True)
class ResponsePolicy:
    """
    Server-wide choices that shape file response headers.

    Attributes:
        cache_max_age: Cache-Control max-age in seconds for cacheable files.
        disable_cache: Send no-cache directives and no ETag instead.
        accept_ranges: Advertise and honor byte ranges.
        download: Send Content-Disposition: attachment instead of inline.
        disable_proxy_buffering: Ask reverse proxies not to buffer the body.
    """

    cache_max_age: int = 3600
    disable_cache: bool = False
    accept_ranges: bool = True
    download: bool = False
    disable_proxy_buffering: bool = True


def content_disposition(filename: str, attachment: bool = False) -> str:
    """
    Build a Content-Disposition header value.

    Non-ASCII names get an RFC 6266 filename* parameter with an ASCII
    fallback, since plain filename="..." cannot carry them reliably.

    Examples:
        >>> content_disposition("report.pdf", attachment=True)
        'attachment; filename="report.pdf"'
    """
    disposition = "attachment" if attachment else "inline"
    safe = filename.replace("\\", "_").replace('"', "_")

    try:
        safe.encode("ascii")
    except UnicodeEncodeError:
        fallback = safe.encode("ascii", "replace").decode("ascii").replace("?", "_")
        return f"{disposition}; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"

    return f'{disposition}; filename="{safe}"'


def build_headers(
    decision: TransferDecision,
    validator: Optional[Validator],
    content_type: str,
    filename: str,
    policy: ResponsePolicy = ResponsePolicy(),
) -> Dict[str, str]:
    """
    Compute the response headers a decision requires.

    Args:
        decision: The planner's decision.
        validator: The file's validators, or None if stat failed.
        content_type: Content-Type header value.
        filename: Name used in Content-Disposition.
        policy: Caching/range/disposition choices.

    Returns:
        Header name → value. Content-Length is included whenever the body
        length is known, and never for 304.
    """
    headers: Dict[str, str] = {}

    if decision.kind is DecisionKind.NOT_MODIFIED:
        if validator is not None and not policy.disable_cache:
            headers["ETag"] = validator.etag
        return headers

    if decision.kind is DecisionKind.UNSATISFIABLE:
        headers["Content-Range"] = f"bytes */{decision.size}"
        headers["Content-Length"] = "0"
        return headers

    # ─────────────────────────────────────────────────────────────────────
    # 200 / 206
    # ─────────────────────────────────────────────────────────────────────
    headers["Content-Type"] = content_type
    headers["Content-Disposition"] = content_disposition(filename, policy.download)
    headers["Accept-Ranges"] = "bytes" if policy.accept_ranges else "none"

    if decision.content_length is not None:
        headers["Content-Length"] = str(decision.content_length)

    if decision.kind is DecisionKind.PARTIAL:
        headers["Content-Range"] = decision.byte_range.content_range(decision.size)

    if validator is not None:
        headers["Last-Modified"] = validator.last_modified

    if policy.disable_cache:
        headers.update(NO_CACHE_HEADERS)
    else:
        if validator is not None:
            headers["ETag"] = validator.etag
        headers["Cache-Control"] = f"public, max-age={policy.cache_max_age}"

    if policy.disable_proxy_buffering:
        headers["X-Accel-Buffering"] = "no"

    return headers
