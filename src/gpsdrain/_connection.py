"""TCP line connection to a GPS server."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from gpsdrain._constants import MAX_LINE_BYTES
from gpsdrain.exceptions import ConnectionLostError, MalformedRecordError

_logger = logging.getLogger(__name__)

#: Seconds to wait for the transport to finish closing.
_CLOSE_TIMEOUT = 1.0


class Connection(Protocol):
    """Structural connection interface used by the scanner and stream client.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`StreamConnection`) concrete.
    """

    host: str
    port: int

    async def write_line(self, data: bytes) -> None:
        ...

    async def read_line(self) -> str:
        ...

    async def close(self) -> None:
        ...


Connector = Callable[[str, int, float], Awaitable[Connection]]
"""``connector(host, port, timeout)`` opening a :class:`Connection`."""


class StreamConnection:
    """asyncio stream pair wrapped as a line-oriented :class:`Connection`."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        host: str,
        port: int,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self.host = host
        self.port = port
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _lost(self, reason: str) -> ConnectionLostError:
        return ConnectionLostError(
            f"Connection to {self.host}:{self.port} lost: {reason}",
            host=self.host,
            port=self.port,
        )

    async def write_line(self, data: bytes) -> None:
        """Send *data* and wait until it is flushed to the socket."""
        if self._closed:
            raise self._lost("connection already closed")
        try:
            self._writer.write(data)
            await self._writer.drain()
        except (OSError, RuntimeError) as exc:
            raise self._lost(str(exc) or type(exc).__name__) from exc

    async def _skip_rest_of_line(self, pending: int) -> None:
        """Discard buffered bytes of an over-long line up to and including its newline."""
        try:
            while True:
                await self._reader.readexactly(pending)
                try:
                    await self._reader.readuntil(b"\n")
                    return
                except asyncio.LimitOverrunError as exc:
                    pending = exc.consumed
        except asyncio.IncompleteReadError as exc:
            raise self._lost("end of stream") from exc
        except OSError as exc:
            raise self._lost(str(exc) or type(exc).__name__) from exc

    async def read_line(self) -> str:
        """Read one newline-terminated line, decoded as ASCII.

        A final unterminated line before end-of-stream is returned as is;
        the following call then reports the end of stream.  A line longer
        than the reader limit is consumed in full and reported as malformed,
        so the next read returns the next line.
        """
        if self._closed:
            raise self._lost("connection already closed")
        try:
            data = await self._reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as exc:
            data = exc.partial
        except asyncio.LimitOverrunError as exc:
            await self._skip_rest_of_line(exc.consumed)
            raise MalformedRecordError(f"response line exceeds {MAX_LINE_BYTES} bytes") from exc
        except OSError as exc:
            raise self._lost(str(exc) or type(exc).__name__) from exc
        if not data:
            raise self._lost("end of stream")
        return data.decode("ascii", errors="replace").rstrip("\r\n")

    async def close(self) -> None:
        """Close the transport.  Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        _logger.debug("Closing connection to %s:%s", self.host, self.port)
        self._writer.close()
        with contextlib.suppress(OSError, TimeoutError):
            await asyncio.wait_for(self._writer.wait_closed(), _CLOSE_TIMEOUT)


async def open_tcp_connection(host: str, port: int, timeout: float) -> StreamConnection:
    """Open a TCP connection to ``host:port`` within *timeout* seconds.

    Raises :class:`TimeoutError` or :class:`OSError` on failure.
    """
    reader, writer = await asyncio.wait_for(
        asyncio.open_connection(host, port, limit=MAX_LINE_BYTES),
        timeout,
    )
    return StreamConnection(reader, writer, host, port)
