"""
Unit tests for MIME type resolution.
"""

import pytest

from fileserve.transfer.mime import (
    MIME_TYPES,
    UNKNOWN_MIME_TYPE,
    MimeResolver,
    content_type_for,
    default_resolver,
    is_text_type,
)


class TestMimeResolver:
    """Static table, sniffer fallback and the unknown sentinel."""

    @pytest.mark.parametrize("extension,expected", [
        ("mp4", "video/mp4"),
        ("txt", "text/plain"),
        ("pdf", "application/pdf"),
        ("html", "text/html"),
        ("json", "application/json"),
        ("png", "image/png"),
        ("jpg", "image/jpeg"),
    ])
    def test_table_lookup(self, extension, expected):
        assert MimeResolver().resolve(extension) == expected

    def test_case_and_dot_insensitive(self):
        resolver = MimeResolver()
        assert resolver.resolve(".PDF") == "application/pdf"
        assert resolver.resolve("Mp4") == "video/mp4"

    def test_empty_extension(self):
        assert MimeResolver().resolve("") == UNKNOWN_MIME_TYPE

    def test_unmapped_without_sniffer(self):
        assert MimeResolver().resolve("xyz") == "unknown/xyz"

    def test_sniffer_fallback(self):
        seen = []

        def sniffer(name):
            seen.append(name)
            return "application/x-custom"

        resolver = MimeResolver(sniffer=sniffer)

        assert resolver.resolve("xyz") == "application/x-custom"
        assert resolver.resolve("pdf") == "application/pdf"
        assert seen == ["file.xyz"]

    def test_sniffer_gets_real_path(self, served_root):
        seen = []
        resolver = MimeResolver(table={}, sniffer=lambda name: seen.append(name))

        resolver.resolve_path(served_root / "hello.txt")

        assert seen == [str(served_root / "hello.txt")]

    def test_sniffer_errors_fall_through(self):
        def broken(name):
            raise RuntimeError("magic database missing")

        assert MimeResolver(sniffer=broken).resolve("xyz") == "unknown/xyz"

    def test_sniffer_miss(self):
        assert MimeResolver(sniffer=lambda name: None).resolve("xyz") == "unknown/xyz"

    def test_resolve_path(self, served_root):
        resolver = MimeResolver()
        assert resolver.resolve_path(served_root / "docs" / "report.pdf") == "application/pdf"
        assert resolver.resolve_path(served_root / "noext") == UNKNOWN_MIME_TYPE

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            MIME_TYPES["new"] = "x/y"

    def test_default_resolver_is_shared(self):
        assert default_resolver() is default_resolver()
        assert default_resolver().resolve("mp4") == "video/mp4"


class TestContentType:
    """Charset handling for the Content-Type header."""

    def test_text_gets_charset(self):
        assert content_type_for("text/html") == "text/html; charset=utf-8"
        assert content_type_for("application/json") == "application/json; charset=utf-8"

    def test_binary_has_no_charset(self):
        assert content_type_for("video/mp4") == "video/mp4"
        assert not is_text_type("application/pdf")
