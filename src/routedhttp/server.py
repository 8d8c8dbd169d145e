"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         REQUEST FLOW                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer.accept()                                              │
    │        │                                                             │
    │        ▼                                                             │
    │   ThreadPool.submit() ──► queue full? 503, close                     │
    │        │                                                             │
    │        ▼                                                             │
    │   Connection.read_request() ──► bytes                                │
    │        │                                                             │
    │        ▼                                                             │
    │   RequestParser.parse() ──────► HTTPRequest                          │
    │        │            └── HTTPParseError → error response, close       │
    │        ▼                                                             │
    │   Router.route(request, conn) ─► handler ─► response written         │
    │        │                                                             │
    │        ▼                                                             │
    │   Connection.close()                                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Each connection carries exactly one request. A malformed or oversized
request, a slow client, or a crashing handler only ever costs that one
connection its response; the accept loop keeps running. At most
max_workers connections are served at once and queue_size more wait;
anything beyond that is answered 503.

=============================================================================
"""

import logging
import time
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .core.connection import ConnectionState
from .handlers import StaticPageHandler, PageNotFoundHandler, WebServiceHandler
from .http import RequestParser, HTTPParseError, HTTPStatus, Router
from .http.response import error_response


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("routedhttp.access")


def create_router(config: ServerConfig) -> Router:
    """Build the router with the three stock handlers for this config."""
    return Router(
        web_service=WebServiceHandler(config.data_dir),
        static_page=StaticPageHandler(config.public_dir),
        not_found=PageNotFoundHandler(config.public_dir),
        server_name=config.server_name,
    )


class HTTPServer:
    """
    The HTTP server.

    Usage:
        server = HTTPServer(ServerConfig(port=3000))
        server.run()  # Blocks until Ctrl+C / SIGTERM

    A custom Router (for example with stub handlers) can be passed in;
    otherwise one is built from the config's public and data directories.
    """

    def __init__(self, config: Optional[ServerConfig] = None, router: Optional[Router] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = router or create_router(self.config)

        self._running = False

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once the server is listening."""
        return self._socket_server.address

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True) -> None:
        """
        Start serving (blocking).

        Args:
            setup_logging: Configure the root logger from config.log_level.
                           Pass False when the host application already
                           configures logging.
        """
        if setup_logging:
            self._setup_logging()

        self._running = True
        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")
        self._thread_pool.start()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._running = False
            # Queued connections get up to one read timeout to finish
            self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
            logger.info("Server stopped")

    def shutdown(self) -> None:
        """Ask the accept loop to stop. In-flight connections finish."""
        self._socket_server.shutdown()

    def _setup_logging(self) -> None:
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("routedhttp").setLevel(level)

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        """
        Called by the accept loop; queues the connection for a worker.

        When every worker is busy and the queue is full the client gets
        503 straight from the accept thread.
        """
        if not self._thread_pool.submit(self._process_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] Worker pool full, rejecting {conn.client_ip}")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection) -> None:
        """Read, parse and route one request, then close (worker thread)."""
        with conn:
            try:
                raw_request = conn.read_request()
                if raw_request is None:
                    return

                try:
                    request = self._parser.parse(raw_request)
                except HTTPParseError as e:
                    logger.warning(f"[{conn.id}] Rejected request from {conn.client_ip}: {e}")
                    self._send_error(conn, HTTPStatus(e.status_code), str(e))
                    return

                conn.state = ConnectionState.PROCESSING
                start = time.time()
                self._router.route(request, conn)

                access_logger.info(
                    f'{conn.client_ip} "{request.method.value} {request.path} '
                    f'{request.version.value}" {(time.time() - start) * 1000:.2f}ms'
                )

            except HTTPParseError as e:
                # Raised while reading: the request outgrew max_request_size
                logger.warning(f"[{conn.id}] {e}")
                self._send_error(conn, HTTPStatus(e.status_code), str(e))
            except TimeoutError:
                self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                self._send_error(conn, HTTPStatus.INTERNAL_SERVER_ERROR, "Internal Server Error")

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str) -> None:
        """Best-effort error response for failures outside the router."""
        response = error_response(status, message)
        response.set_header("Connection", "close")
        response.send_response(conn, self.config.server_name)


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Factory for HTTPServer instances.

    Example:
        app = create_app(ServerConfig(port=8080))
        app.run()
    """
    return HTTPServer(config)
