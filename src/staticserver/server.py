"""
=============================================================================
STATIC FILE SERVER
=============================================================================

Ties the pieces together: accepts connections, parses requests, runs
them through the middleware and the router, and streams responses back.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   asyncio.start_server ──► handle_connection (one task per client)  │
    │                                   │                                  │
    │                     ┌─────────────▼─────────────┐                   │
    │                     │ Connection.read_request() │  head bytes       │
    │                     └─────────────┬─────────────┘                   │
    │                     ┌─────────────▼─────────────┐                   │
    │                     │ RequestParser.parse()     │  HTTPRequest      │
    │                     └─────────────┬─────────────┘                   │
    │                     ┌─────────────▼─────────────┐                   │
    │                     │ LoggingMiddleware         │                   │
    │                     │  └► method check          │                   │
    │                     │  └► resolve_path()        │                   │
    │                     │  └► RequestRouter.route() │  HTTPResponse     │
    │                     └─────────────┬─────────────┘                   │
    │                     ┌─────────────▼─────────────┐                   │
    │                     │ Connection.send_response()│  streamed bytes   │
    │                     └─────────────┬─────────────┘                   │
    │                                   │ keep-alive? loop : close         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONCURRENCY MODEL
=============================================================================

Single process, single event loop. Each connection is a task; it only
yields at awaits (socket reads and writes, and filesystem calls that run
in the loop's thread pool). Nothing is shared between tasks except the
frozen ServerConfig, so no locks are needed.

Reading and handling each request runs under a deadline
(config.timeout). If it expires while the request is still being read,
the client gets 408; if it expires while the response is being
produced, the connection is dropped. Sending the body is not bounded by
the deadline: a slow client may take as long as it needs to download a
large file, and drain() keeps it from piling up in memory.

=============================================================================
"""

import asyncio
import logging
from typing import Optional, Set, Tuple

from .config import ServerConfig
from .core.connection import Connection, ConnectionState
from .core.filesystem import resolve_path
from .handlers.router import RequestRouter
from .http.request import HTTPParseError, HTTPRequest, RequestParser
from .http.response import (
    HTTPResponse, HTTPStatus,
    error_response, internal_error, method_not_allowed,
)
from .middleware import LoggingMiddleware, Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


ALLOWED_METHODS = ("GET", "HEAD")


class StaticServer:
    """
    Asynchronous HTTP/1.1 static file server.

    Usage:
        server = StaticServer(ServerConfig(root="./public", port=3000))
        server.run()                  # blocks until Ctrl+C

    Or inside a running event loop:
        await server.start()
        ...
        await server.stop()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()

        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = RequestRouter(self.config)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))
        self._handler = None

        self._server: Optional[asyncio.AbstractServer] = None
        self._connections: Set[Connection] = set()

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "StaticServer":
        """Add middleware inside the access log. Returns self for chaining."""
        self._middleware.add(middleware)
        self._handler = None
        return self

    @property
    def handler(self):
        """The router wrapped in every middleware."""
        if self._handler is None:
            self._handler = self._middleware.wrap(self.handle)
        return self._handler

    @property
    def port(self) -> int:
        """Port actually bound (useful with port=0)."""
        if self._server is None or not self._server.sockets:
            return self.config.port
        return self._server.sockets[0].getsockname()[1]

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    async def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Innermost handler: method check, path resolution, routing."""
        if request.method not in ALLOWED_METHODS:
            # The request body (if any) is never read, so the
            # connection cannot be reused.
            return method_not_allowed(ALLOWED_METHODS).set_header("Connection", "close")

        path = resolve_path(self.config.root, request.path)
        return await self._router.route(path, request)

    async def dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """Run a request through the full chain; never raises."""
        try:
            return await self.handler(request)
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.target}: {e}")
            return internal_error()

    async def handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """
        Serve one client connection until it closes.

        This is the callback handed to asyncio.start_server.
        """
        connection = Connection(
            reader,
            writer,
            keep_alive=self.config.keep_alive,
            keep_alive_timeout=self.config.keep_alive_timeout,
            server_name=self.config.server_name,
        )
        self._connections.add(connection)
        logger.debug(f"[{connection.id}] Accepted {connection.address}")

        try:
            while True:
                try:
                    exchange = await asyncio.wait_for(
                        self._receive(connection),
                        self.config.timeout,
                    )
                except asyncio.TimeoutError:
                    await self._on_timeout(connection)
                    break
                if exchange is None:
                    break

                # The body is streamed outside the deadline.
                request, response = exchange
                if not await connection.send_response(response, request):
                    break
        finally:
            self._connections.discard(connection)
            await connection.close()

    async def _receive(
        self,
        connection: Connection,
    ) -> Optional[Tuple[Optional[HTTPRequest], HTTPResponse]]:
        """
        Read one request and produce its response.

        Returns:
            (request, response), with request None when the head was
            rejected, or None when the client went away.
        """
        try:
            data = await connection.read_request()
            if data is None:
                return None
            request = self._parser.parse(data, connection.address)
        except HTTPParseError as e:
            logger.info(f"[{connection.id}] Rejected request: {e}")
            return None, self._error(HTTPStatus(e.status_code), str(e))

        return request, await self.dispatch(request)

    async def _on_timeout(self, connection: Connection) -> None:
        if connection.state is ConnectionState.READING:
            logger.info(f"[{connection.id}] Request read timed out")
            await connection.send_response(
                self._error(HTTPStatus.REQUEST_TIMEOUT, "Request Timeout")
            )
        else:
            logger.warning(f"[{connection.id}] Request deadline exceeded, dropping connection")
            connection.abort()

    def _error(self, status: HTTPStatus, message: str) -> HTTPResponse:
        """Response for a failure detected before a request could be routed."""
        response = error_response(status, message)
        if status == HTTPStatus.METHOD_NOT_ALLOWED:
            response.set_header("Allow", ", ".join(ALLOWED_METHODS))
        return response

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    async def start(self) -> asyncio.AbstractServer:
        """Bind and start accepting connections."""
        self._server = await asyncio.start_server(
            self.handle_connection,
            self.config.host,
            self.config.port,
            limit=self.config.max_request_size,
        )
        logger.info(
            f"Serving {self.config.root_path} on "
            f"http://{self.config.host}:{self.port}"
        )
        return self._server

    async def stop(self) -> None:
        """Stop accepting, drop open connections, and wait for the listener."""
        if self._server is None:
            return
        self._server.close()
        for connection in list(self._connections):
            connection.abort()
        await self._server.wait_closed()
        self._server = None
        logger.info("Server stopped")

    async def serve_forever(self) -> None:
        await self.start()
        self._print_startup_banner()
        try:
            await self._server.serve_forever()
        finally:
            await self.stop()

    def run(self) -> None:
        """Start the server and block until interrupted."""
        self._setup_logging()
        try:
            asyncio.run(self.serve_forever())
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

    def _print_startup_banner(self):
        config = self.config
        url = f"http://{config.host}:{self.port}"
        print()
        print("╔══════════════════════════════════════════════════════════════╗")
        print(f"║  {config.server_name} running".ljust(63) + "║")
        print(f"║  {url}".ljust(63) + "║")
        print(f"║  root: {config.root_path}".ljust(63) + "║")
        print("║  Press Ctrl+C to stop".ljust(63) + "║")
        print("╚══════════════════════════════════════════════════════════════╝")
        print()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("staticserver").setLevel(level)
