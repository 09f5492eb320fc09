"""
=============================================================================
BOUNDED-MEMORY FILE STREAMING
=============================================================================

Reads the decided byte window of a file in fixed-size chunks and hands
each chunk to the caller before reading the next one.

=============================================================================
WHY NOT read_bytes()?
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    MEMORY PER REQUEST                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   path.read_bytes()          4 GB video  →  4 GB in RAM             │
    │                              10 clients  → 40 GB in RAM             │
    │                                                                      │
    │   chunked generator          4 GB video  →  8 KB in RAM             │
    │                              10 clients  → 80 KB in RAM             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE READ LOOP
=============================================================================

    open(path, "rb") ──► seek(start)
                              │
                 ┌────────────▼────────────┐
                 │ position > end ?  ──yes──┼──► done
                 │ read(min(C, end-pos+1))  │
                 │ empty read (EOF)? ──yes──┼──► done
                 │ yield chunk              │◄── caller writes it, then
                 └────────────┬────────────┘    asks for the next one
                              └── loop

The last read is shrunk so it never crosses `end`: a window of N bytes
with chunk size C takes exactly ceil(N / C) reads, and no chunk is ever
larger than C.

The loop lives in a generator, so it suspends after every chunk. A worker
thread writing to a socket gets the next chunk only after the previous one
is on the wire, and the file handle is closed by the `with` block whether
the loop finishes, the consumer stops early (generator.close()), or a read
fails.
=============================================================================
"""

import logging
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional, Union

from .errors import IOFailure
from .planner import TransferDecision


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8192

Opener = Callable[[Path], BinaryIO]
Writer = Callable[[bytes], Optional[bool]]


def _open_binary(path: Path) -> BinaryIO:
    return open(path, "rb")


class StreamEmitter:
    """
    Streams file bytes for a TransferDecision.

    Args:
        chunk_size: Maximum bytes per read (and per yielded chunk).
        opener: Opens a path for binary reading. Injectable for tests.

    Usage:
        emitter = StreamEmitter(chunk_size=8192)
        for chunk in emitter.iter_chunks(path, decision):
            sock.sendall(chunk)
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, opener: Opener = _open_binary):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.chunk_size = chunk_size
        self.opener = opener

    def iter_chunks(self, path: Union[str, Path], decision: TransferDecision) -> Iterator[bytes]:
        """
        Yield the body bytes for `decision`, one chunk at a time.

        Yields nothing for decisions without a body (304, 416) and for
        empty files. A FULL decision with an unknown size reads to EOF.

        Raises:
            IOFailure: If the file cannot be opened, positioned or read.
        """
        if not decision.has_body:
            return

        path = Path(path)

        if decision.size is None:
            yield from self._read(path, 0, None)
            return

        window = decision.window
        if window is None:
            return

        yield from self._read(path, window.start, window.end)

    def _read(self, path: Path, start: int, end: Optional[int]) -> Iterator[bytes]:
        try:
            handle = self.opener(path)
        except OSError as e:
            raise IOFailure(f"Cannot open file: {e.strerror}", cause=e) from e

        with handle:
            position = start
            try:
                if start:
                    handle.seek(start)
            except OSError as e:
                raise IOFailure(f"Cannot seek to byte {start}: {e.strerror}", cause=e) from e

            while end is None or position <= end:
                want = self.chunk_size if end is None else min(self.chunk_size, end - position + 1)

                try:
                    chunk = handle.read(want)
                except OSError as e:
                    raise IOFailure(
                        f"Read failed at byte {position}: {e.strerror}",
                        bytes_sent=position - start,
                        cause=e,
                    ) from e

                if not chunk:
                    if end is not None:
                        # File shrank after it was stat'ed
                        logger.warning(
                            f"EOF at byte {position} before planned end {end} of {path.name}"
                        )
                    break

                position += len(chunk)
                yield chunk

    def emit(self, path: Union[str, Path], decision: TransferDecision, write: Writer) -> int:
        """
        Stream the body for `decision` into `write`.

        `write` is called once per chunk. It may raise OSError or return
        False to signal that the client is gone; either stops the transfer
        at once with no retry.

        Returns:
            Number of bytes written.

        Raises:
            IOFailure: On any read or write failure. Bytes already written
                       stay written; e.bytes_sent says how many.
        """
        sent = 0
        chunks = self.iter_chunks(path, decision)

        try:
            for chunk in chunks:
                try:
                    ok = write(chunk)
                except OSError as e:
                    raise IOFailure("Client write failed", bytes_sent=sent, cause=e) from e
                if ok is False:
                    raise IOFailure("Client write failed", bytes_sent=sent)
                sent += len(chunk)
        except IOFailure as e:
            e.bytes_sent = sent
            logger.error(f"Streaming {Path(path).name} aborted after {sent} bytes: {e}")
            raise
        finally:
            chunks.close()

        return sent
