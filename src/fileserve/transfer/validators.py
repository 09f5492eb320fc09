"""
=============================================================================
CACHE VALIDATORS
=============================================================================

Computes the values a client uses to ask "has this file changed?".

=============================================================================
ETAG AND LAST-MODIFIED
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    VALIDATORS FROM ONE stat() CALL                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   os.stat(path)                                                      │
    │      st_ino   = 0x1a2b                                               │
    │      st_size  = 0x4d2                                                │
    │      st_mtime = 0x66b1f0c0                                           │
    │          │                                                           │
    │          ├──► ETag:          "1a2b-4d2-66b1f0c0"                     │
    │          │                                                           │
    │          └──► Last-Modified: Tue, 06 Aug 2024 09:45:36 GMT           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The ETag is built only from (inode, size, mtime). Two stats of an
unchanged file produce the same ETag byte for byte, which is what makes it
usable as a strong validator for one served root.

Last-Modified has one-second precision. If-Modified-Since is compared
against it as an exact string, so both sides must be formatted the same
way (see format_http_date).
=============================================================================
"""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from .errors import StatFailed


_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    Naive datetimes are taken to be UTC already.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def http_date_from_timestamp(timestamp: float) -> str:
    """Format a Unix timestamp as an HTTP-date, truncated to the second."""
    return format_http_date(datetime.fromtimestamp(int(timestamp), tz=timezone.utc))


def make_etag(inode: int, size: int, mtime: float) -> str:
    """
    Build a quoted ETag from file identity, length and modification time.

    Examples:
        >>> make_etag(0x1a2b, 1234, 1722937536.75)
        '"1a2b-4d2-66b1f0c0"'
    """
    return f'"{inode:x}-{size:x}-{int(mtime):x}"'


@dataclass(frozen=True)
class ServedFile:
    """
    A file about to be served, as the filesystem describes it right now.

    Re-read for every request. Nothing caches it across requests.
    """

    path: Path
    size: int
    mtime: float
    inode: int

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ServedFile":
        """
        Stat a file.

        Raises:
            StatFailed: If the metadata cannot be read.
        """
        path = Path(path)
        try:
            st = os.stat(path)
        except OSError as e:
            raise StatFailed(f"Cannot stat file: {e.strerror}", cause=e) from e

        return cls(path=path, size=st.st_size, mtime=st.st_mtime, inode=st.st_ino)


@dataclass(frozen=True)
class Validator:
    """Cache validators for one ServedFile."""

    etag: str
    last_modified: str
    size: int

    @classmethod
    def from_file(cls, served: ServedFile) -> "Validator":
        return cls(
            etag=make_etag(served.inode, served.size, served.mtime),
            last_modified=http_date_from_timestamp(served.mtime),
            size=served.size,
        )


def compute_validator(path: Union[str, Path]) -> Validator:
    """
    Stat `path` and compute its validators.

    Raises:
        StatFailed: If the metadata cannot be read.
    """
    return Validator.from_file(ServedFile.from_path(path))


def etag_matches(if_none_match: str, etag: str) -> bool:
    """
    Check an If-None-Match header against an ETag.

    Uses the weak comparison RFC 7232 requires for If-None-Match: a W/
    prefix on either side is ignored. "*" matches any current file.

    Examples:
        >>> etag_matches('"a-b-c"', '"a-b-c"')
        True

        >>> etag_matches('"x", W/"a-b-c"', '"a-b-c"')
        True
    """
    if not if_none_match:
        return False

    if if_none_match.strip() == "*":
        return True

    wanted = _strip_weak(etag)
    for candidate in if_none_match.split(","):
        if _strip_weak(candidate.strip()) == wanted:
            return True
    return False


def _strip_weak(tag: str) -> str:
    return tag[2:] if tag.startswith("W/") else tag
