"""
=============================================================================
RANGE HEADER PARSING
=============================================================================

Parses an HTTP Range request header into one validated byte interval.

=============================================================================
WHAT IS A RANGE REQUEST?
=============================================================================

A client that already has part of a file (an interrupted download, a video
player seeking) asks for just the bytes it needs:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    RANGE FORMS (file of 1000 bytes)                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Range: bytes=0-99      first 100 bytes        → [0, 99]           │
    │   Range: bytes=500-      from 500 to the end    → [500, 999]        │
    │   Range: bytes=-10       last 10 bytes          → [990, 999]        │
    │   Range: bytes=900-5000  end past EOF, clamped  → [900, 999]        │
    │                                                                      │
    │   Range: bytes=1200-1300 starts past EOF        → 416               │
    │   Range: bytes=0-10,20-30 multiple ranges       → 416 (unsupported) │
    │   Range: items=0-10      unknown unit           → 416               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The parser returns exactly one of four outcomes. It never returns a range
whose bounds are outside the file: anything that cannot be clamped into
0 <= start <= end < size becomes UNSATISFIABLE.

=============================================================================
RULES, IN ORDER
=============================================================================

    1. No header                      → ABSENT
    2. Range support disabled          → FULL (header ignored)
    3. Unit is not exactly "bytes="    → UNSATISFIABLE
    4. Comma in the range-spec (multi-range) → UNSATISFIABLE
    5. "-N"   → start = max(0, size - N), end = size - 1
    6. "A-B"  → start = A, end = B (or size - 1 when B is missing)
    7. end is capped at size - 1
    8. 0 <= start <= end < size, else  → UNSATISFIABLE

A suffix larger than the file ("bytes=-5000" on 1000 bytes) means "the
whole file", so the start is clamped to 0 instead of going negative.
=============================================================================
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


RANGE_UNIT_PREFIX = "bytes="

_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class ByteRange:
    """
    An inclusive byte interval inside a file.

    Attributes:
        start: First byte offset.
        end: Last byte offset (inclusive).
    """

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid byte range: {self.start}-{self.end}")

    @property
    def length(self) -> int:
        """Number of bytes in the range."""
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        """Content-Range header value: 'bytes 0-99/1000'."""
        return f"bytes {self.start}-{self.end}/{size}"


class RangeOutcome(Enum):
    """What a Range header asked for."""

    ABSENT = "absent"
    FULL = "full"
    RANGE = "range"
    UNSATISFIABLE = "unsatisfiable"


@dataclass(frozen=True)
class RangeResult:
    """Result of parsing a Range header. byte_range is set only for RANGE."""

    kind: RangeOutcome
    byte_range: Optional[ByteRange] = None

    @property
    def is_range(self) -> bool:
        return self.kind is RangeOutcome.RANGE

    @property
    def is_unsatisfiable(self) -> bool:
        return self.kind is RangeOutcome.UNSATISFIABLE


ABSENT = RangeResult(RangeOutcome.ABSENT)
FULL = RangeResult(RangeOutcome.FULL)
UNSATISFIABLE = RangeResult(RangeOutcome.UNSATISFIABLE)


def satisfiable(start: int, end: int) -> RangeResult:
    return RangeResult(RangeOutcome.RANGE, ByteRange(start, end))


class RangeParser:
    """
    Parses Range headers against a known file size.

    Args:
        enabled: When False, any Range header is ignored and the whole file
                 is served (FULL). Used when the server is configured not
                 to advertise byte ranges.

    Usage:
        parser = RangeParser()
        parser.parse("bytes=0-99", 1000)    # RangeResult(RANGE, ByteRange(0, 99))
        parser.parse(None, 1000)            # ABSENT
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def parse(self, header: Optional[str], size: int) -> RangeResult:
        """
        Parse a raw Range header value.

        Args:
            header: The header value, or None if the request had none.
            size: Length of the file in bytes.

        Returns:
            ABSENT, FULL, UNSATISFIABLE, or a RANGE with a validated ByteRange.
        """
        if header is None:
            return ABSENT

        if not self.enabled:
            return FULL

        header = header.strip()
        if not header.startswith(RANGE_UNIT_PREFIX):
            return UNSATISFIABLE

        spec = header[len(RANGE_UNIT_PREFIX):].strip()

        # Multiple ranges would need a multipart/byteranges body
        if "," in spec or "-" not in spec:
            return UNSATISFIABLE

        first, last = (part.strip() for part in spec.split("-", 1))

        # ─────────────────────────────────────────────────────────────────
        # SUFFIX FORM: "-N" means the last N bytes
        # ─────────────────────────────────────────────────────────────────
        if not first:
            if not _DIGITS.fullmatch(last):
                return UNSATISFIABLE
            suffix = int(last)
            start = max(0, size - suffix)
            end = size - 1 if suffix > 0 else -1

        # ─────────────────────────────────────────────────────────────────
        # "A-B" and "A-"
        # ─────────────────────────────────────────────────────────────────
        else:
            if not _DIGITS.fullmatch(first):
                return UNSATISFIABLE
            start = int(first)

            if last:
                if not _DIGITS.fullmatch(last):
                    return UNSATISFIABLE
                end = int(last)
            else:
                end = size - 1

        end = min(end, size - 1)

        if start < 0 or start > end or start > size - 1 or end >= size:
            return UNSATISFIABLE

        return satisfiable(start, end)


def parse_range(header: Optional[str], size: int) -> RangeResult:
    """Parse a Range header with range support enabled. See RangeParser."""
    return RangeParser().parse(header, size)
