"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted TCP connection (an asyncio StreamReader/StreamWriter
pair): reads request heads off it and writes responses onto it.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ─┐      │
    │              ▲                                               │      │
    │              └───────────────────────────────────────────────┘      │
    │                                                                      │
    │   Any state ──► CLOSED  (client gone, error, timeout, "close")      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The first request may take up to the per-request deadline to arrive. A
kept-alive connection only waits keep_alive_timeout for the next one,
then closes quietly.

=============================================================================
RESPONSE FRAMING
=============================================================================

The client must be able to tell where the body ends:

    ┌───────────────────────────────┬─────────────────────────────────────┐
    │ Body                          │ Framing                             │
    ├───────────────────────────────┼─────────────────────────────────────┤
    │ in memory / known length      │ Content-Length: N                   │
    │ streamed, length unknown,     │ Transfer-Encoding: chunked          │
    │   HTTP/1.1 client             │   <hex size>\r\n<data>\r\n ... 0\r\n│
    │ streamed, length unknown,     │ no length; the connection closes    │
    │   HTTP/1.0 client             │   after the body                    │
    └───────────────────────────────┴─────────────────────────────────────┘

Unknown length only happens with on-the-fly compression.

=============================================================================
BACKPRESSURE
=============================================================================

Every write is followed by `await writer.drain()`. If the client reads
slowly, the transport buffer fills and drain() suspends this connection
until it empties, so a large file never piles up in memory.

=============================================================================
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Optional

from ..http.request import HTTPParseError, HTTPRequest
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


HEAD_TERMINATOR = b"\r\n\r\n"


class ConnectionState(Enum):
    """Connection lifecycle states."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSED = "closed"


@dataclass(eq=False)
class Connection:
    """
    One client connection.

    Attributes:
        reader: Incoming byte stream.
        writer: Outgoing byte stream.
        id: Short identifier for log lines.
        state: Current lifecycle state.
        requests_handled: Requests read so far on this connection.
    """

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    server_name: str = "StaticServer/1.0"

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def address(self) -> tuple:
        """Peer (ip, port); ("", 0) when the transport cannot tell."""
        peer = self.writer.get_extra_info("peername")
        if not peer:
            return ("", 0)
        return tuple(peer[:2])

    @property
    def is_closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    async def read_request(self) -> Optional[bytes]:
        """
        Read one request head, up to and including the blank line.

        Returns:
            The head bytes, or None if the client closed the connection
            or a kept-alive connection stayed idle too long.

        Raises:
            HTTPParseError: 413 if the head exceeds the reader's limit,
                400 if the client hung up in the middle of a head.
        """
        self.state = ConnectionState.READING
        try:
            if self.requests_handled > 0:
                data = await asyncio.wait_for(
                    self.reader.readuntil(HEAD_TERMINATOR),
                    self.keep_alive_timeout,
                )
            else:
                data = await self.reader.readuntil(HEAD_TERMINATOR)
        except asyncio.IncompleteReadError as e:
            if e.partial.strip():
                raise HTTPParseError("Incomplete request head") from e
            return None
        except asyncio.LimitOverrunError as e:
            raise HTTPParseError(
                "Request head too large",
                status_code=HTTPStatus.PAYLOAD_TOO_LARGE,
            ) from e
        except asyncio.TimeoutError:
            logger.debug(f"[{self.id}] Keep-alive timeout")
            return None
        except ConnectionError as e:
            logger.debug(f"[{self.id}] Read failed: {e}")
            return None

        self.requests_handled += 1
        self.state = ConnectionState.PROCESSING
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def wants_keep_alive(
        self,
        response: HTTPResponse,
        request: Optional[HTTPRequest],
    ) -> bool:
        """Whether the connection may carry another request after this one."""
        if not self.keep_alive or request is None:
            return False
        if response.headers.get("Connection", "").lower() == "close":
            return False
        return request.is_keep_alive

    async def send_response(
        self,
        response: HTTPResponse,
        request: Optional[HTTPRequest] = None,
    ) -> bool:
        """
        Write a response and release its body stream.

        HEAD requests and 304 responses get the head only. A failure part
        way through aborts the connection; nothing is retried.

        Args:
            response: Response to send.
            request: The request it answers (None for errors raised
                before a request could be parsed).

        Returns:
            True if the connection can be reused for another request.
        """
        self.state = ConnectionState.WRITING

        keep_alive = self.wants_keep_alive(response, request)
        head_only = (request is not None and request.is_head) or not response.status.allows_body

        chunked = False
        if response.is_streamed and response.content_length is None:
            if request is not None and request.version == "HTTP/1.1":
                response.set_header("Transfer-Encoding", "chunked")
                chunked = True
            elif not head_only:
                keep_alive = False

        response.set_header("Connection", "keep-alive" if keep_alive else "close")

        try:
            self.writer.write(response.head_bytes(self.server_name))
            await self.writer.drain()

            if not head_only:
                if response.is_streamed:
                    complete = await self._write_stream(
                        response.stream,
                        chunked,
                        response.content_length,
                    )
                    if not complete:
                        self.abort()
                        return False
                elif response.body:
                    self.writer.write(response.body)
                    await self.writer.drain()
        except OSError as e:
            # ConnectionResetError, BrokenPipeError and disk read errors
            # raised from inside the body stream all land here.
            logger.warning(f"[{self.id}] Send failed: {e}")
            self.abort()
            return False
        finally:
            await response.aclose()

        if keep_alive:
            self.state = ConnectionState.KEEP_ALIVE
        return keep_alive

    async def _write_stream(
        self,
        stream: AsyncIterator[bytes],
        chunked: bool,
        expected: Optional[int],
    ) -> bool:
        sent = 0
        async for chunk in stream:
            if not chunk:
                continue
            if chunked:
                self.writer.write(b"%x\r\n%s\r\n" % (len(chunk), chunk))
            else:
                self.writer.write(chunk)
            sent += len(chunk)
            await self.writer.drain()

        if chunked:
            self.writer.write(b"0\r\n\r\n")
            await self.writer.drain()

        if expected is not None and sent != expected:
            # The file changed size under us; the declared length is a lie.
            logger.warning(
                f"[{self.id}] Body length mismatch: sent {sent}, declared {expected}"
            )
            return False
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def abort(self) -> None:
        """Drop the connection immediately, discarding buffered output."""
        if self.is_closed:
            return
        self.state = ConnectionState.CLOSED
        self.writer.transport.abort()

    async def close(self) -> None:
        """Flush and close the connection."""
        if self.is_closed:
            return
        self.state = ConnectionState.CLOSED
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            logger.debug(f"[{self.id}] Close failed: {e}")
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")
