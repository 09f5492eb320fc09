"""
=============================================================================
PATH RESOLUTION
=============================================================================

Turns a user-supplied relative path into an absolute on-disk path that is
guaranteed to live inside the serving root.

=============================================================================
TWO STAGES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    PATH RESOLUTION PIPELINE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   "  //docs/../..//secret.txt/ "                                    │
    │            │                                                         │
    │            ▼                                                         │
    │   1. LEXICAL NORMALIZATION (string only, no filesystem)             │
    │      - backslashes become "/"                                       │
    │      - strip whitespace, separators and dots at both ends           │
    │      - remove every ".." until none is left                         │
    │      - collapse "//" and drop "." segments                          │
    │            │                                                         │
    │            ▼                                                         │
    │   "docs/secret.txt"                                                 │
    │            │                                                         │
    │            ▼                                                         │
    │   2. CANONICALIZATION (filesystem is the authority)                 │
    │      - (root / cleaned).resolve()  follows symlinks                 │
    │      - relative_to(root)           must not escape                  │
    │      - is_file()                   must be a regular file           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Stage 1 alone is not enough: a symlink inside the root can still point
outside it. Stage 2 alone trusts the resolver with crafted strings. The
textual pass runs first and the filesystem check runs last and decides.

Removing ".." runs to a fixed point: a single replace turns "....//" into
"..//", which would survive a one-pass filter.
=============================================================================
"""

import logging
import re
from pathlib import Path
from typing import Union

from .errors import NotFound


logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"/{2,}")
_EDGE_CHARS = " \t\r\n/."


def normalize_user_path(user_path: str) -> str:
    """
    Lexically clean a user-supplied relative path.

    The result never contains "..", never starts or ends with a separator
    or a dot, and never contains empty or "." segments.

    Examples:
        >>> normalize_user_path("  /docs//report.pdf/ ")
        'docs/report.pdf'

        >>> normalize_user_path("../../etc/passwd")
        'etc/passwd'

        >>> normalize_user_path("....//....//secret")
        'secret'
    """
    cleaned = user_path.replace("\\", "/")

    while True:
        previous = cleaned
        cleaned = cleaned.strip(_EDGE_CHARS)
        cleaned = cleaned.replace("..", "")
        cleaned = _SEPARATORS.sub("/", cleaned)
        if cleaned == previous:
            break

    segments = [s for s in cleaned.split("/") if s and s != "."]
    return "/".join(segments)


class PathResolver:
    """
    Resolves request paths against a fixed serving root.

    The root is canonicalized once, up front. Every resolved path is compared
    against that canonical root, so a root given as a symlink or with
    relative segments still confines correctly.

    Usage:
        resolver = PathResolver("/srv/files")
        path = resolver.resolve("reports/2024.pdf")   # Path or NotFound
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

        if not self.root.is_dir():
            raise ValueError(f"Serving root is not a directory: {root}")

    def resolve(self, user_path: str) -> Path:
        """
        Resolve a user path to an absolute file path inside the root.

        Args:
            user_path: Relative path from the request (already URL-decoded).

        Returns:
            Canonical absolute path of an existing regular file.

        Raises:
            NotFound: If the path is empty, escapes the root, does not exist,
                      or is not a regular file.
        """
        if "\x00" in user_path:
            logger.warning("Rejected path containing NUL byte")
            raise NotFound()

        cleaned = normalize_user_path(user_path)
        if not cleaned:
            raise NotFound()

        try:
            candidate = (self.root / cleaned).resolve()
        except (OSError, RuntimeError):
            # RuntimeError: symlink loop on older interpreters
            raise NotFound()

        try:
            candidate.relative_to(self.root)
        except ValueError:
            logger.warning(f"Path traversal attempt: {user_path!r}")
            raise NotFound()

        if not candidate.is_file():
            raise NotFound()

        return candidate


def resolve_path(root: Union[str, Path], user_path: str) -> Path:
    """Resolve `user_path` under `root` in one call. See PathResolver."""
    return PathResolver(root).resolve(user_path)
