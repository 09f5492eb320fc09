"""
Unit tests for chunked streaming.
"""

import io
import math

import pytest

from fileserve.transfer.errors import IOFailure
from fileserve.transfer.planner import TransferDecision
from fileserve.transfer.ranges import ByteRange
from fileserve.transfer.stream import StreamEmitter


class CountingFile(io.BytesIO):
    """BytesIO that records every read() size."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.reads = []

    def read(self, size=-1):
        self.reads.append(size)
        return super().read(size)


class FailingFile(io.BytesIO):
    """Fails on the second read."""

    def __init__(self, data: bytes):
        super().__init__(data)
        self.count = 0

    def read(self, size=-1):
        self.count += 1
        if self.count == 2:
            raise OSError(5, "Input/output error")
        return super().read(size)


def counting_opener(data: bytes):
    handles = []

    def opener(path):
        handle = CountingFile(data)
        handles.append(handle)
        return handle

    return opener, handles


class TestIterChunks:
    """Byte counts, chunk bounds and window positions."""

    def test_full_read_count(self, served_root):
        data = (served_root / "data.bin").read_bytes()
        opener, handles = counting_opener(data)
        emitter = StreamEmitter(chunk_size=64, opener=opener)

        chunks = list(emitter.iter_chunks(served_root / "data.bin", TransferDecision.full(1000)))

        assert b"".join(chunks) == data
        assert len(handles[0].reads) == math.ceil(1000 / 64)
        assert all(size <= 64 for size in handles[0].reads)
        assert all(len(chunk) <= 64 for chunk in chunks)

    def test_exact_multiple_needs_no_extra_read(self):
        opener, handles = counting_opener(b"x" * 256)
        emitter = StreamEmitter(chunk_size=64, opener=opener)

        list(emitter.iter_chunks("f", TransferDecision.full(256)))

        assert len(handles[0].reads) == 4

    def test_partial_bytes(self, served_root):
        path = served_root / "data.bin"
        data = path.read_bytes()
        emitter = StreamEmitter(chunk_size=64)

        body = b"".join(emitter.iter_chunks(path, TransferDecision.partial(ByteRange(200, 999), 1000)))

        assert len(body) == 800
        assert body[0] == data[200]
        assert body == data[200:]

    def test_full_prefix_equals_partial(self, served_root):
        path = served_root / "data.bin"
        emitter = StreamEmitter(chunk_size=33)

        full = b"".join(emitter.iter_chunks(path, TransferDecision.full(1000)))
        partial = b"".join(emitter.iter_chunks(path, TransferDecision.partial(ByteRange(0, 99), 1000)))

        assert full[:100] == partial

    def test_single_byte(self, served_root):
        path = served_root / "data.bin"
        body = b"".join(StreamEmitter().iter_chunks(path, TransferDecision.partial(ByteRange(999, 999), 1000)))
        assert body == path.read_bytes()[999:]

    @pytest.mark.parametrize("decision", [
        TransferDecision.not_modified(),
        TransferDecision.unsatisfiable(1000),
        TransferDecision.full(0),
    ])
    def test_no_body_decisions_never_open(self, decision):
        opened = []
        emitter = StreamEmitter(opener=lambda path: opened.append(path))

        assert list(emitter.iter_chunks("f", decision)) == []
        assert opened == []

    def test_unknown_size_reads_to_eof(self):
        opener, _ = counting_opener(b"a" * 100)
        emitter = StreamEmitter(chunk_size=30, opener=opener)

        body = b"".join(emitter.iter_chunks("f", TransferDecision.full(None)))
        assert body == b"a" * 100

    def test_file_shrunk_stops_at_eof(self, caplog):
        opener, _ = counting_opener(b"abc")
        emitter = StreamEmitter(chunk_size=2, opener=opener)

        with caplog.at_level("WARNING", logger="fileserve.transfer.stream"):
            body = b"".join(emitter.iter_chunks("f", TransferDecision.full(10)))

        assert body == b"abc"
        assert "before planned end" in caplog.text

    def test_handle_closed_when_abandoned(self):
        opener, handles = counting_opener(b"z" * 100)
        chunks = StreamEmitter(chunk_size=10, opener=opener).iter_chunks("f", TransferDecision.full(100))

        next(chunks)
        chunks.close()

        assert handles[0].closed

    def test_open_failure(self, tmp_path):
        chunks = StreamEmitter().iter_chunks(tmp_path / "missing", TransferDecision.full(10))
        with pytest.raises(IOFailure):
            next(chunks)

    def test_read_failure(self):
        emitter = StreamEmitter(chunk_size=4, opener=lambda path: FailingFile(b"x" * 16))
        with pytest.raises(IOFailure) as exc_info:
            list(emitter.iter_chunks("f", TransferDecision.full(16)))
        assert exc_info.value.bytes_sent == 4

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            StreamEmitter(chunk_size=0)


class TestEmit:
    """Writing through a callback."""

    def test_returns_bytes_written(self, served_root):
        written = []
        sent = StreamEmitter(chunk_size=100).emit(
            served_root / "data.bin", TransferDecision.partial(ByteRange(10, 59), 1000), written.append
        )

        assert sent == 50
        assert len(b"".join(written)) == 50

    def test_write_error_aborts(self):
        opener, handles = counting_opener(b"q" * 100)
        calls = []

        def write(chunk):
            calls.append(chunk)
            if len(calls) == 2:
                raise BrokenPipeError(32, "Broken pipe")

        with pytest.raises(IOFailure) as exc_info:
            StreamEmitter(chunk_size=10, opener=opener).emit("f", TransferDecision.full(100), write)

        assert exc_info.value.bytes_sent == 10
        assert len(calls) == 2
        assert handles[0].closed

    def test_write_returning_false_aborts(self):
        opener, _ = counting_opener(b"q" * 100)
        with pytest.raises(IOFailure) as exc_info:
            StreamEmitter(chunk_size=10, opener=opener).emit(
                "f", TransferDecision.full(100), lambda chunk: False
            )
        assert exc_info.value.bytes_sent == 0
