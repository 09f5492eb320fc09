"""
=============================================================================
FILE SERVER
=============================================================================

Ties the pieces together: listening socket, worker pool, request parser,
file handler and access log.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         HTTPServer                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    SocketServer ──accept──► _handle_connection ──submit──► pool     │
    │                                                              │      │
    │                                                              ▼      │
    │    _process_connection (one worker, whole keep-alive session)       │
    │        │                                                            │
    │        ├── conn.read_request()                                      │
    │        ├── RequestParser.parse()          400/405/413/505 on error  │
    │        ├── FileHandler.handle()           200/206/304/404/405/416   │
    │        ├── conn.send_response(head)                                 │
    │        ├── response.writer(conn.write)    FileTransfer.emit         │
    │        └── AccessLogger.log(bytes actually sent)                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WORKERS
=============================================================================

Connections run on a concurrent.futures.ThreadPoolExecutor. A download
keeps its worker busy until the last chunk is written, so the pool size
is the number of simultaneous transfers. When every worker is busy the
connection gets an immediate 503 instead of waiting in an unbounded queue.

=============================================================================
ABORTED TRANSFERS
=============================================================================

Once the status line and headers are on the wire there is no way to
report an error to the client. If a read or a write fails mid-body the
connection is closed; the client sees fewer bytes than Content-Length
and knows the transfer failed.
=============================================================================
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

from . import __version__
from .access_log import AccessLogger, RequestLog, utc_timestamp
from .config import ServerConfig
from .core import Connection, RequestTooLarge, SocketServer
from .handlers import FileHandler
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    error_response,
    internal_error,
)
from .transfer import IOFailure, TransferEngine


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Range-aware static file server.

    Usage:
        config = ServerConfig(root_dir="/srv/files", port=8080)
        HTTPServer(config).run()

    Raises:
        ValueError: From the constructor, if the configuration is invalid.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.engine = TransferEngine(
            self.config.root_dir,
            policy=self.config.response_policy(),
            chunk_size=self.config.chunk_size,
        )
        self.handler = FileHandler(self.engine, url_prefix=self.config.url_prefix)

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._access_log = AccessLogger(self.config.log_format)

        self._executor: Optional[ThreadPoolExecutor] = None
        self._slots = threading.BoundedSemaphore(self.config.max_workers)
        self._running = False

    @property
    def address(self):
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start serving. Blocks until shutdown() or SIGINT/SIGTERM.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._running = True
        self._setup_logging()

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="fileserve-worker",
        )

        logger.info(
            f"Serving {self.engine.root} on {self.config.host}:{self.config.port} "
            f"(fileserve {__version__}, {self.config.max_workers} workers, "
            f"chunk {self.config.chunk_size} bytes)"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Stop accepting connections. run() returns once workers finish."""
        self._running = False
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("fileserve").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        logger.info("Server stopped")

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION HANDLING
    # ─────────────────────────────────────────────────────────────────────

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread: hand the connection to a worker."""
        if not self._slots.acquire(blocking=False):
            logger.warning(f"[{conn.id}] All workers busy, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()
            return

        try:
            self._executor.submit(self._run_connection, conn)
        except RuntimeError:
            # Executor already shut down
            self._slots.release()
            conn.close()

    def _run_connection(self, conn: Connection):
        try:
            self._process_connection(conn)
        finally:
            self._slots.release()

    def _process_connection(self, conn: Connection):
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLarge:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, "Request too large")
                    break
                except OSError as e:
                    logger.debug(f"[{conn.id}] Read failed: {e}")
                    break

                if raw_request is None:
                    break

                started = time.perf_counter()

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.debug(f"[{conn.id}] Bad request: {e}")
                    self._send_error(conn, e.status_code, str(e))
                    break

                keep_open = self._serve(conn, request, started)
                if not keep_open:
                    break

                conn.set_keep_alive()

    def _serve(self, conn: Connection, request: HTTPRequest, started: float) -> bool:
        """
        Handle one request and write the response.

        Returns:
            True if the connection can carry another request.
        """
        try:
            response = self.handler.handle(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            response = internal_error()

        keep_alive = (
            self.config.keep_alive
            and request.is_keep_alive
            and response.headers.get("Connection") != "close"
        )
        if keep_alive:
            response.headers.setdefault("Connection", "keep-alive")
            response.headers.setdefault("Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}")
        else:
            response.headers["Connection"] = "close"

        bytes_sent, completed = self._write(conn, response)

        self._access_log.log(RequestLog(
            request_id=conn.id,
            method=request.method,
            path=request.path,
            client_ip=conn.client_ip,
            user_agent=request.user_agent,
            status_code=int(response.status),
            bytes_sent=bytes_sent,
            duration_ms=(time.perf_counter() - started) * 1000,
            timestamp=utc_timestamp(),
            range=request.get_header("range"),
            completed=completed,
        ))

        return keep_alive and completed

    def _write(self, conn: Connection, response: HTTPResponse) -> Tuple[int, bool]:
        """Send head and body. Returns (body bytes sent, finished cleanly)."""
        if not response.is_streamed:
            sent = conn.send_response(response.to_bytes(self.config.server_name))
            return (len(response.body) if sent else 0), sent

        if not conn.send_response(response.head_bytes(self.config.server_name)):
            return 0, False

        try:
            return response.writer(conn.write), True
        except IOFailure as e:
            logger.warning(f"[{conn.id}] Transfer aborted after {e.bytes_sent} bytes: {e}")
            return e.bytes_sent, False

    def _send_error(self, conn: Connection, status: int, message: str):
        response = error_response(status, message).set_header("Connection", "close")
        conn.send_response(response.to_bytes(self.config.server_name))
