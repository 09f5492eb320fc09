"""
Unit tests for ETag / Last-Modified computation.
"""

import os
from datetime import datetime, timezone

import pytest

from fileserve.transfer.errors import StatFailed
from fileserve.transfer.validators import (
    ServedFile,
    Validator,
    compute_validator,
    etag_matches,
    format_http_date,
    http_date_from_timestamp,
    make_etag,
)


class TestMakeEtag:
    """ETags are a pure function of inode, size and mtime."""

    def test_format(self):
        assert make_etag(0x1a2b, 1234, 1722937536.75) == '"1a2b-4d2-66b1f0c0"'

    def test_changes_with_inputs(self):
        base = make_etag(1, 100, 1000.0)
        assert make_etag(2, 100, 1000.0) != base
        assert make_etag(1, 101, 1000.0) != base
        assert make_etag(1, 100, 1001.0) != base


class TestComputeValidator:
    """Tests against real files."""

    def test_stable_for_unchanged_file(self, served_root):
        path = served_root / "data.bin"
        first = compute_validator(path)
        second = compute_validator(path)

        assert first.etag == second.etag
        assert first == second

    def test_reflects_file_metadata(self, served_root):
        path = served_root / "data.bin"
        st = os.stat(path)
        validator = compute_validator(path)

        assert validator.size == 1000
        assert validator.etag == make_etag(st.st_ino, st.st_size, st.st_mtime)
        assert validator.last_modified == http_date_from_timestamp(st.st_mtime)

    def test_changes_when_modified(self, served_root):
        path = served_root / "hello.txt"
        before = compute_validator(path)
        os.utime(path, (1_000_000_000, 1_000_000_000))
        after = compute_validator(path)

        assert before.etag != after.etag
        assert after.last_modified == "Sun, 09 Sep 2001 01:46:40 GMT"

    def test_missing_file_raises_stat_failed(self, tmp_path):
        with pytest.raises(StatFailed) as exc_info:
            compute_validator(tmp_path / "gone.bin")
        assert isinstance(exc_info.value.cause, OSError)

    def test_from_file(self):
        served = ServedFile(path=None, size=16, mtime=0.0, inode=255)
        validator = Validator.from_file(served)

        assert validator.etag == '"ff-10-0"'
        assert validator.last_modified == "Thu, 01 Jan 1970 00:00:00 GMT"


class TestHTTPDate:
    """Tests for HTTP-date formatting."""

    def test_format(self):
        dt = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Thu, 15 Jan 2026 12:30:45 GMT"

    def test_truncates_fractional_seconds(self):
        assert http_date_from_timestamp(0.999) == "Thu, 01 Jan 1970 00:00:00 GMT"


class TestEtagMatches:
    """If-None-Match comparison."""

    def test_exact(self):
        assert etag_matches('"a-b-c"', '"a-b-c"')

    def test_list_and_weak(self):
        assert etag_matches('"x", W/"a-b-c"', '"a-b-c"')

    def test_star(self):
        assert etag_matches("*", '"a-b-c"')

    def test_no_match(self):
        assert not etag_matches('"other"', '"a-b-c"')
        assert not etag_matches("", '"a-b-c"')
