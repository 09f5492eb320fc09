"""
=============================================================================
ACCESS LOG
=============================================================================

One log line per request, written after the body has been sent so the byte
count is what actually went out (a client that disconnects halfway through
a 2 GB download logs the bytes it got, not 2 GB).

    text:  127.0.0.1 - - [2026-01-15T12:30:45Z] "GET /video.mp4" 206 1048576 12.34ms
    json:  {"request_id": "1f3a9c2e", "method": "GET", "path": "/video.mp4", ...}

Logger name: "fileserve.access". Configure it separately to send access
lines to their own file:

    logging.getLogger("fileserve.access").addHandler(file_handler)
=============================================================================
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional


logger = logging.getLogger("fileserve.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one request.

    Attributes:
        request_id: Short id, also used in the server's error logs.
        range: The Range header the client sent, if any.
        bytes_sent: Body bytes actually written.
        completed: False if the body stream was aborted.
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    bytes_sent: int
    duration_ms: float
    timestamp: str
    range: Optional[str] = None
    completed: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        line = (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.bytes_sent} {self.duration_ms:.2f}ms'
        )
        if self.range:
            line += f' range="{self.range}"'
        if not self.completed:
            line += " aborted"
        return line


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class AccessLogger:
    """
    Writes RequestLog entries in the configured format.

    Errors (4xx/5xx) and aborted transfers are logged at WARNING so they
    stand out; everything else at INFO.
    """

    def __init__(self, log_format: str = "text"):
        self.log_format = log_format

    def log(self, entry: RequestLog) -> None:
        level = logging.INFO
        if entry.status_code >= 400 or not entry.completed:
            level = logging.WARNING

        if self.log_format == "json":
            logger.log(level, json.dumps(entry.to_dict()))
        else:
            logger.log(level, entry.to_text())
