"""
Unit tests for access log entries.
"""

import json
import logging

from fileserve.access_log import AccessLogger, RequestLog


def entry(**overrides) -> RequestLog:
    values = dict(
        request_id="1f3a9c2e",
        method="GET",
        path="/video.mp4",
        client_ip="127.0.0.1",
        user_agent="pytest",
        status_code=206,
        bytes_sent=1024,
        duration_ms=12.3456,
        timestamp="2026-01-15T12:30:45Z",
        range="bytes=0-1023",
    )
    values.update(overrides)
    return RequestLog(**values)


class TestRequestLog:
    def test_to_text(self):
        assert entry().to_text() == (
            '127.0.0.1 - - [2026-01-15T12:30:45Z] "GET /video.mp4" 206 1024 12.35ms '
            'range="bytes=0-1023"'
        )

    def test_to_text_aborted(self):
        assert entry(range=None, completed=False).to_text().endswith("12.35ms aborted")

    def test_to_dict(self):
        data = entry().to_dict()
        assert data["duration_ms"] == 12.35
        assert data["bytes_sent"] == 1024


class TestAccessLogger:
    def test_text_format(self, caplog):
        with caplog.at_level(logging.INFO, logger="fileserve.access"):
            AccessLogger("text").log(entry())

        assert caplog.records[-1].levelno == logging.INFO
        assert '"GET /video.mp4" 206' in caplog.records[-1].getMessage()

    def test_json_format(self, caplog):
        with caplog.at_level(logging.INFO, logger="fileserve.access"):
            AccessLogger("json").log(entry(status_code=416, bytes_sent=0))

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert json.loads(record.getMessage())["status_code"] == 416
