"""
=============================================================================
FILESERVE - RANGE-AWARE STATIC FILE SERVER
=============================================================================

Serves files from one directory over HTTP/1.1 with the parts that make
large downloads and media playback work:

    - Byte ranges (206 Partial Content, 416 Range Not Satisfiable)
    - Conditional requests (ETag / Last-Modified, 304 Not Modified)
    - Streaming in fixed-size chunks, so memory use does not grow with
      file size
    - Path confinement: nothing outside the root directory is reachable

=============================================================================
PACKAGE LAYOUT
=============================================================================

    fileserve/
    ├── transfer/       The transfer engine (no sockets, no HTTP parsing)
    │   ├── paths.py        PathResolver: URL path → file inside root
    │   ├── mime.py         MimeResolver: extension → content type
    │   ├── validators.py   ETag / Last-Modified
    │   ├── ranges.py       RangeParser: Range header → byte window
    │   ├── planner.py      TransferPlanner: 304 / 416 / 206 / 200 + headers
    │   ├── stream.py       StreamEmitter: chunked reads of the window
    │   └── engine.py       TransferEngine / FileTransfer: the above, wired
    ├── http/           Request parsing, response building, status codes
    ├── core/           Listening socket and client connections
    ├── handlers/       FileHandler: HTTP request → FileTransfer
    ├── access_log.py   One line per request
    ├── config.py       ServerConfig
    └── server.py       HTTPServer

The transfer package can be used on its own from any other server:

    engine = TransferEngine("/srv/media")
    transfer = engine.open("videos/intro.mp4")      # NotFound → 404
    decision = transfer.plan({"Range": "bytes=0-1023"})
    status, headers = decision.status_code, transfer.headers(decision)
    for chunk in transfer.iter_body(decision):
        send(chunk)
=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig
from .transfer import TransferEngine, FileTransfer

__all__ = ["HTTPServer", "ServerConfig", "TransferEngine", "FileTransfer", "__version__"]
