"""
=============================================================================
MIME TYPE RESOLUTION
=============================================================================

Maps a file extension to the MIME type sent in the Content-Type header.

=============================================================================
LOOKUP ORDER
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    MIME LOOKUP                                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   extension ("PDF", "pdf", ".pdf" all the same)                     │
    │        │                                                             │
    │        ├── empty? ──────────────────────────► unknown/unknown       │
    │        │                                                             │
    │        ▼                                                             │
    │   1. static table (MIME_TYPES) ──── hit ────► application/pdf       │
    │        │ miss                                                        │
    │        ▼                                                             │
    │   2. OS mime database (mimetypes) ─ hit ────► whatever the OS says  │
    │        │ miss                                                        │
    │        ▼                                                             │
    │   3. sentinel ─────────────────────────────► unknown/<ext>          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A missing mapping is a normal outcome, never an exception.

=============================================================================
SHARED STATE
=============================================================================

MIME_TYPES is built once when this module is imported and exposed as a
read-only mapping. Every request reads it, none writes it, so no lock is
needed. The OS database is loaded once per MimeResolver (the default
resolver is a process-wide singleton) rather than once per request.
=============================================================================
"""

import logging
import mimetypes
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Union


logger = logging.getLogger(__name__)


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Keys are lowercase extensions WITHOUT the leading dot.
#
# =============================================================================

_TABLE = {
    # -------------------------------------------------------------------------
    # TEXT / WEB
    # -------------------------------------------------------------------------
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "mjs": "text/javascript",
    "json": "application/json",
    "xml": "application/xml",
    "txt": "text/plain",
    "md": "text/markdown",
    "csv": "text/csv",

    # -------------------------------------------------------------------------
    # IMAGES
    # -------------------------------------------------------------------------
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "jpe": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "webp": "image/webp",
    "avif": "image/avif",

    # -------------------------------------------------------------------------
    # FONTS
    # -------------------------------------------------------------------------
    "ttf": "font/ttf",
    "otf": "font/otf",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "sfnt": "font/sfnt",
    "eot": "application/vnd.ms-fontobject",

    # -------------------------------------------------------------------------
    # AUDIO
    # -------------------------------------------------------------------------
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "aif": "audio/aiff",
    "aiff": "audio/aiff",
    "ogg": "audio/ogg",
    "m4a": "audio/mp4",
    "flac": "audio/flac",

    # -------------------------------------------------------------------------
    # VIDEO
    # -------------------------------------------------------------------------
    # Range requests matter most here: players seek by asking for byte ranges
    "mp4": "video/mp4",
    "m4v": "video/mp4",
    "webm": "video/webm",
    "mpeg": "video/mpeg",
    "mpg": "video/mpeg",
    "mpe": "video/mpeg",
    "avi": "video/x-msvideo",
    "wmv": "video/x-ms-wmv",
    "mov": "video/quicktime",
    "mkv": "video/x-matroska",

    # -------------------------------------------------------------------------
    # DOCUMENTS
    # -------------------------------------------------------------------------
    "pdf": "application/pdf",
    "rtf": "application/rtf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlt": "application/vnd.ms-excel",
    "xla": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pps": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",

    # -------------------------------------------------------------------------
    # ARCHIVES
    # -------------------------------------------------------------------------
    "zip": "application/zip",
    "tar": "application/x-tar",
    "gz": "application/gzip",
    "7z": "application/x-7z-compressed",
    "rar": "application/vnd.rar",

    # -------------------------------------------------------------------------
    # OTHER
    # -------------------------------------------------------------------------
    "wasm": "application/wasm",
    "swf": "application/x-shockwave-flash",
}

MIME_TYPES: Mapping[str, str] = MappingProxyType(_TABLE)

UNKNOWN_MIME_TYPE = "unknown/unknown"

# Types that get "; charset=..." in the Content-Type header
_TEXT_APPLICATION_TYPES = frozenset({
    "application/json",
    "application/xml",
    "application/javascript",
    "image/svg+xml",
})

Sniffer = Callable[[str], Optional[str]]


def os_mime_database() -> Sniffer:
    """
    Build a lookup backed by the platform MIME database.

    mimetypes reads the OS tables (/etc/mime.types and friends) when the
    MimeTypes object is created, so this is done once and the returned
    function only does dictionary lookups afterwards.
    """
    database = mimetypes.MimeTypes()
    for known_file in mimetypes.knownfiles:
        if Path(known_file).is_file():
            try:
                database.read(known_file)
            except (OSError, UnicodeDecodeError):
                logger.debug(f"Skipping unreadable mime database {known_file}")

    def lookup(name: str) -> Optional[str]:
        mime_type, _ = database.guess_type(name, strict=False)
        return mime_type

    return lookup


def normalize_extension(extension: str) -> str:
    """Lowercase an extension and drop any leading dots: ".PNG" → "png"."""
    return extension.strip().lstrip(".").lower()


class MimeResolver:
    """
    Resolves extensions to MIME types.

    Args:
        table: Extension → MIME type mapping (lowercase keys, no dot).
        sniffer: Fallback collaborator called with a file name or path.
                 Returns a MIME type or None. Pass None to disable.
    """

    def __init__(
        self,
        table: Mapping[str, str] = MIME_TYPES,
        sniffer: Optional[Sniffer] = None,
    ):
        self.table = table
        self.sniffer = sniffer

    def resolve(self, extension: str, path: Optional[Union[str, Path]] = None) -> str:
        """
        Get the MIME type for an extension.

        Args:
            extension: File extension, with or without a leading dot.
            path: Optional path of the actual file, handed to the sniffer
                  so it can look at more than the extension.

        Returns:
            A MIME type. Never raises.
        """
        ext = normalize_extension(extension)
        if not ext:
            return UNKNOWN_MIME_TYPE

        mime_type = self.table.get(ext)
        if mime_type:
            return mime_type

        if self.sniffer is not None:
            name = str(path) if path is not None else f"file.{ext}"
            try:
                sniffed = self.sniffer(name)
            except Exception as e:
                logger.debug(f"MIME sniffer failed for .{ext}: {e}")
                sniffed = None
            if sniffed:
                return sniffed

        return f"unknown/{ext}"

    def resolve_path(self, path: Union[str, Path]) -> str:
        """Get the MIME type for a file path from its extension."""
        path = Path(path)
        return self.resolve(path.suffix, path)


@lru_cache(maxsize=None)
def default_resolver() -> MimeResolver:
    """
    The process-wide resolver: static table plus the OS database.

    lru_cache makes this a build-once singleton; concurrent first calls may
    both build a resolver, but both are identical and one wins.
    """
    return MimeResolver(MIME_TYPES, os_mime_database())


def is_text_type(mime_type: str) -> bool:
    """Check whether a MIME type is text and should carry a charset."""
    return mime_type.startswith("text/") or mime_type in _TEXT_APPLICATION_TYPES


def content_type_for(mime_type: str, charset: str = "utf-8") -> str:
    """
    Build the Content-Type header value for a MIME type.

    Examples:
        >>> content_type_for("text/html")
        'text/html; charset=utf-8'

        >>> content_type_for("image/png")
        'image/png'
    """
    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"
    return mime_type
