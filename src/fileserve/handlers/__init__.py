"""
Request handlers.

    FileHandler: serves files from the transfer engine under a URL prefix.
"""

from .file import FileHandler, ALLOWED_METHODS

__all__ = ["FileHandler", "ALLOWED_METHODS"]
