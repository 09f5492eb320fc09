"""
Unit tests for FileHandler (HTTP request → response, no sockets).
"""

import pytest

from fileserve.handlers import FileHandler
from fileserve.http import HTTPRequest, HTTPResponse, HTTPStatus
from fileserve.transfer import IOFailure, StatFailed, TransferEngine
from fileserve.transfer import engine as engine_module


def request(method="GET", path="/data.bin", **headers) -> HTTPRequest:
    return HTTPRequest(
        method=method,
        path=path,
        headers={name.replace("_", "-").lower(): value for name, value in headers.items()},
    )


def body_of(response: HTTPResponse) -> bytes:
    chunks = []
    sent = response.writer(chunks.append)
    body = b"".join(chunks)
    assert sent == len(body)
    return body


@pytest.fixture
def handler(served_root) -> FileHandler:
    return FileHandler(TransferEngine(served_root, chunk_size=128))


class TestFileHandler:
    """Status codes, headers and bodies."""

    def test_get_full(self, handler, served_root):
        response = handler.handle(request())

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Length"] == "1000"
        assert body_of(response) == (served_root / "data.bin").read_bytes()

    def test_get_range(self, handler, served_root):
        response = handler.handle(request(range="bytes=200-299"))

        assert response.status == HTTPStatus.PARTIAL_CONTENT
        assert response.headers["Content-Range"] == "bytes 200-299/1000"
        assert body_of(response) == (served_root / "data.bin").read_bytes()[200:300]

    def test_unsatisfiable(self, handler):
        response = handler.handle(request(range="bytes=5000-"))

        assert response.status == HTTPStatus.RANGE_NOT_SATISFIABLE
        assert response.headers["Content-Range"] == "bytes */1000"
        assert not response.is_streamed

    def test_not_modified(self, handler):
        first = handler.handle(request(method="HEAD"))

        response = handler.handle(request(if_none_match=first.headers["ETag"]))

        assert response.status == HTTPStatus.NOT_MODIFIED
        assert not response.is_streamed
        assert response.body == b""
        assert "Content-Length" not in response.headers
        assert b"Content-Length" not in response.to_bytes()

    def test_head_has_headers_but_no_body(self, handler):
        response = handler.handle(request(method="HEAD"))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Length"] == "1000"
        assert not response.is_streamed

    def test_head_with_unknown_size_sends_no_length(self, handler, monkeypatch):
        def fail(path):
            raise StatFailed("Cannot stat file: Permission denied")

        monkeypatch.setattr(engine_module, "compute_validator", fail)

        response = handler.handle(request(method="HEAD"))
        head = response.to_bytes()

        assert response.status == HTTPStatus.OK
        assert not response.is_streamed
        assert b"Content-Length" not in head
        assert b"Connection: close\r\n" in head

    def test_get_with_unknown_size_streams_to_eof(self, handler, served_root, monkeypatch):
        def fail(path):
            raise StatFailed("Cannot stat file: Permission denied")

        monkeypatch.setattr(engine_module, "compute_validator", fail)

        response = handler.handle(request(range="bytes=0-9"))

        assert response.status == HTTPStatus.OK
        assert b"Content-Length" not in response.head_bytes()
        assert body_of(response) == (served_root / "data.bin").read_bytes()

    def test_writer_reports_bytes_sent_on_write_failure(self, handler):
        response = handler.handle(request(range="bytes=0-499"))
        written = []

        def write(chunk):
            if len(written) == 2:
                raise BrokenPipeError("client went away")
            written.append(chunk)

        with pytest.raises(IOFailure) as exc_info:
            response.writer(write)

        assert exc_info.value.bytes_sent == 256
        assert sum(len(c) for c in written) == 256

    def test_not_found(self, handler):
        response = handler.handle(request(path="/missing.bin"))
        assert response.status == HTTPStatus.NOT_FOUND

    def test_traversal_is_not_found(self, handler):
        response = handler.handle(request(path="/../secret.txt"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert b"secret" not in response.body

    def test_directory_is_not_found(self, handler):
        assert handler.handle(request(path="/docs")).status == HTTPStatus.NOT_FOUND

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
    def test_other_methods_rejected(self, handler, method):
        response = handler.handle(request(method=method))

        assert response.status == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.headers["Allow"] == "GET, HEAD"


class TestUrlPrefix:
    """Files served under a URL prefix."""

    @pytest.fixture
    def prefixed(self, served_root) -> FileHandler:
        return FileHandler(TransferEngine(served_root), url_prefix="/files/")

    def test_under_prefix(self, prefixed):
        response = prefixed.handle(request(path="/files/docs/report.pdf"))

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "application/pdf"

    def test_outside_prefix(self, prefixed):
        assert prefixed.handle(request(path="/other/data.bin")).status == HTTPStatus.NOT_FOUND

    def test_prefix_lookalike(self, prefixed):
        assert prefixed.handle(request(path="/filesdata.bin")).status == HTTPStatus.NOT_FOUND

    def test_prefix_alone(self, prefixed):
        assert prefixed.handle(request(path="/files")).status == HTTPStatus.NOT_FOUND
