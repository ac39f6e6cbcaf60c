from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from gpsdrain._connection import StreamConnection
from gpsdrain.exceptions import DiscoveryNotFoundError
from gpsdrain.models.address_range import AddressRange
from gpsdrain.scanner import SubnetScanner


@dataclass
class _FakeConnection:
    host: str
    port: int
    close_calls: int = 0

    async def write_line(self, data: bytes) -> None:  # pragma: no cover
        return None

    async def read_line(self) -> str:  # pragma: no cover
        return ""

    async def close(self) -> None:
        self.close_calls += 1


@dataclass
class _FakeConnector:
    reachable: set[str] = field(default_factory=set)
    timeouts: set[str] = field(default_factory=set)
    attempts: list[tuple[str, int, float]] = field(default_factory=list)

    async def __call__(self, host: str, port: int, timeout: float) -> _FakeConnection:
        self.attempts.append((host, port, timeout))
        if host in self.timeouts:
            raise TimeoutError
        if host not in self.reachable:
            raise ConnectionRefusedError(111, "Connection refused")
        return _FakeConnection(host, port)


@dataclass
class _RecordingLogSink:
    messages: list[str] = field(default_factory=list)

    def emit(self, text: str) -> None:
        self.messages.append(text)


def _range(start: int, end: int) -> AddressRange:
    return AddressRange(subnet_prefix="10.0.0", start_octet=start, end_octet=end, port=2768)


@pytest.mark.asyncio
async def test_probe_returns_first_reachable_and_stops() -> None:
    connector = _FakeConnector(reachable={"10.0.0.103", "10.0.0.105"})
    scanner = SubnetScanner(connector=connector, connect_timeout=0.5)

    connection = await scanner.probe(_range(100, 110))

    assert connection.host == "10.0.0.103"
    assert connection.port == 2768
    assert [host for host, _, _ in connector.attempts] == [
        "10.0.0.100",
        "10.0.0.101",
        "10.0.0.102",
        "10.0.0.103",
    ]
    assert all(timeout == 0.5 for _, _, timeout in connector.attempts)


@pytest.mark.asyncio
async def test_probe_skips_timeouts_and_refusals() -> None:
    connector = _FakeConnector(reachable={"10.0.0.3"}, timeouts={"10.0.0.1"})
    log_sink = _RecordingLogSink()
    scanner = SubnetScanner(log_sink, connector=connector)

    connection = await scanner.probe(_range(1, 5))

    assert connection.host == "10.0.0.3"
    assert log_sink.messages[0] == "Trying server 10.0.0.1:2768"
    assert "timed out" in log_sink.messages[1]
    assert "Connection refused" in log_sink.messages[3]
    assert log_sink.messages[-1] == "Found GPS server at 10.0.0.3:2768"


@pytest.mark.asyncio
async def test_probe_exhausted_range_raises_not_found() -> None:
    connector = _FakeConnector()
    log_sink = _RecordingLogSink()
    scanner = SubnetScanner(log_sink, connector=connector)
    rng = _range(1, 3)

    with pytest.raises(DiscoveryNotFoundError) as exc_info:
        await scanner.probe(rng)

    assert exc_info.value.address_range == rng
    assert len(connector.attempts) == 3
    assert log_sink.messages[-1].startswith("No GPS server found")


@pytest.mark.asyncio
async def test_probe_inverted_range_makes_no_attempts() -> None:
    connector = _FakeConnector(reachable={"10.0.0.5"})
    scanner = SubnetScanner(connector=connector)
    rng = AddressRange.model_construct(subnet_prefix="10.0.0", start_octet=6, end_octet=5, port=2768)

    with pytest.raises(DiscoveryNotFoundError):
        await scanner.probe(rng)

    assert connector.attempts == []


@pytest.mark.asyncio
async def test_probe_survives_failing_log_sink() -> None:
    class _BrokenSink:
        def emit(self, text: str) -> None:
            raise RuntimeError("display gone")

    connector = _FakeConnector(reachable={"10.0.0.2"})
    scanner = SubnetScanner(_BrokenSink(), connector=connector)

    connection = await scanner.probe(_range(1, 2))

    assert connection.host == "10.0.0.2"


@pytest.mark.asyncio
async def test_probe_cancellation_interrupts_connect() -> None:
    started = asyncio.Event()

    async def _hanging_connector(host: str, port: int, timeout: float) -> _FakeConnection:
        started.set()
        await asyncio.sleep(3600)
        raise AssertionError("unreachable")

    scanner = SubnetScanner(connector=_hanging_connector, connect_timeout=3600)
    task = asyncio.create_task(scanner.probe(_range(1, 254)))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await asyncio.wait_for(task, timeout=1.0)


@pytest.mark.asyncio
async def test_probe_real_loopback_server() -> None:
    async def _handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writer.close()

    server = await asyncio.start_server(_handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        scanner = SubnetScanner(connect_timeout=2.0)
        rng = AddressRange(subnet_prefix="127.0.0", start_octet=1, end_octet=1, port=port)
        connection = await scanner.probe(rng)
        assert isinstance(connection, StreamConnection)
        assert (connection.host, connection.port) == ("127.0.0.1", port)
        await connection.close()
        assert connection.closed
    finally:
        server.close()
        await server.wait_closed()
