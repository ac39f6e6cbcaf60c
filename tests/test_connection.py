from __future__ import annotations

import asyncio
import socket
from collections.abc import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio

from gpsdrain._connection import StreamConnection, open_tcp_connection
from gpsdrain.exceptions import ConnectionLostError, MalformedRecordError

Handler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


@pytest_asyncio.fixture
async def serve() -> AsyncIterator[Callable[[Handler], Awaitable[int]]]:
    servers: list[asyncio.Server] = []

    async def _start(handler: Handler) -> int:
        server = await asyncio.start_server(handler, "127.0.0.1", 0)
        servers.append(server)
        return int(server.sockets[0].getsockname()[1])

    yield _start

    for server in servers:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_request_response_round_trip(serve: Callable[[Handler], Awaitable[int]]) -> None:
    received: list[bytes] = []

    async def _handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        received.append(await reader.readline())
        writer.write(b"GPS:12.5,-98.25\r\n")
        await writer.drain()
        writer.close()

    port = await serve(_handle)
    connection = await open_tcp_connection("127.0.0.1", port, 2.0)

    await connection.write_line(b"Give me GPS\n")
    assert await connection.read_line() == "GPS:12.5,-98.25"
    with pytest.raises(ConnectionLostError, match="end of stream"):
        await connection.read_line()
    assert received == [b"Give me GPS\n"]

    await connection.close()


@pytest.mark.asyncio
async def test_unterminated_final_line_is_returned(serve: Callable[[Handler], Awaitable[int]]) -> None:
    async def _handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.write(b"GPS:1.0,2.0")
        await writer.drain()
        writer.close()

    port = await serve(_handle)
    connection = await open_tcp_connection("127.0.0.1", port, 2.0)

    assert await connection.read_line() == "GPS:1.0,2.0"
    with pytest.raises(ConnectionLostError):
        await connection.read_line()
    await connection.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [10_000, 200_000])
async def test_oversized_line_is_consumed_whole(serve: Callable[[Handler], Awaitable[int]], length: int) -> None:
    async def _handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.write(b"X" * length + b"\n" + b"GPS:1.0,2.0\n")
        await writer.drain()
        await reader.read()
        writer.close()

    port = await serve(_handle)
    connection = await open_tcp_connection("127.0.0.1", port, 2.0)

    with pytest.raises(MalformedRecordError):
        await connection.read_line()
    assert await connection.read_line() == "GPS:1.0,2.0"
    await connection.close()


@pytest.mark.asyncio
async def test_oversized_line_cut_by_eof_is_connection_lost(serve: Callable[[Handler], Awaitable[int]]) -> None:
    async def _handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.write(b"X" * 200_000)
        await writer.drain()
        writer.close()

    port = await serve(_handle)
    connection = await open_tcp_connection("127.0.0.1", port, 2.0)

    with pytest.raises(ConnectionLostError):
        await connection.read_line()
    await connection.close()


@pytest.mark.asyncio
async def test_close_is_idempotent_and_blocks_io(serve: Callable[[Handler], Awaitable[int]]) -> None:
    async def _handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await reader.read()
        writer.close()

    port = await serve(_handle)
    connection = await open_tcp_connection("127.0.0.1", port, 2.0)
    assert isinstance(connection, StreamConnection)

    await connection.close()
    await connection.close()

    assert connection.closed
    with pytest.raises(ConnectionLostError):
        await connection.write_line(b"Give me GPS\n")
    with pytest.raises(ConnectionLostError):
        await connection.read_line()


@pytest.mark.asyncio
async def test_refused_connect_raises_oserror() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]

    with pytest.raises(OSError):
        await open_tcp_connection("127.0.0.1", port, 2.0)
