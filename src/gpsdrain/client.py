"""Polling client for a discovered GPS server."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from gpsdrain._connection import Connection
from gpsdrain._constants import DEFAULT_ACCURACY, DEFAULT_POLL_INTERVAL
from gpsdrain._protocol import encode_request, parse_response
from gpsdrain.exceptions import ConnectionLostError, InjectionError, MalformedRecordError
from gpsdrain.models.coordinate import Coordinate
from gpsdrain.sinks import LocationSink, LogSink, emit_safely

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


@dataclass
class PollStats:
    """Counters for one :meth:`GpsStreamClient.run` call."""

    ticks: int = 0
    fixes: int = 0
    malformed: int = 0
    injection_failures: int = 0


class GpsStreamClient:
    """Request/response polling loop over one connection.

    Usage::

        client = GpsStreamClient(location_sink, log_sink)
        stats = await client.run(connection)

    ``run`` returns when the connection is lost.  Cancel the task running
    it to stop earlier; the connection is closed either way.

    Parameters
    ----------
    location_sink : LocationSink
        Receives every decoded fix.
    log_sink : LogSink or None
        Receives human-readable progress messages.
    poll_interval : float
        Seconds between receiving a response and sending the next request.
    accuracy : float
        Accuracy in metres passed along with each fix.
    clock : callable
        Epoch-milliseconds source for fix timestamps.
    monotonic : callable
        Monotonic seconds source used for pacing.
    sleep : callable
        Awaitable sleep used for pacing; swap for a fake in tests.
    """

    def __init__(
        self,
        location_sink: LocationSink,
        log_sink: LogSink | None = None,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        accuracy: float = DEFAULT_ACCURACY,
        clock: Callable[[], int] = _now_ms,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._location_sink = location_sink
        self._log_sink = log_sink
        self._poll_interval = poll_interval
        self._accuracy = accuracy
        self._clock = clock
        self._monotonic = monotonic
        self._sleep = sleep

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    def _emit(self, text: str) -> None:
        emit_safely(self._log_sink, text, _logger)

    def _inject(self, coordinate: Coordinate) -> None:
        try:
            self._location_sink.inject(
                coordinate.latitude,
                coordinate.longitude,
                self._accuracy,
                self._clock(),
            )
        except Exception as exc:
            raise InjectionError(f"Location injection failed: {exc}", coordinate=coordinate) from exc

    async def _poll_once(self, connection: Connection, stats: PollStats) -> float:
        """One request/response/parse/inject cycle.

        Returns the monotonic time the response arrived.  Raises
        :class:`ConnectionLostError`; every other failure is logged here.
        """
        stats.ticks += 1
        await connection.write_line(encode_request())
        try:
            line = await connection.read_line()
            received_at = self._monotonic()
            coordinate = parse_response(line)
        except MalformedRecordError as exc:
            stats.malformed += 1
            _logger.debug("Skipping tick %d: %s", stats.ticks, exc)
            self._emit(f"Malformed response skipped: {exc}")
            return self._monotonic()

        try:
            self._inject(coordinate)
        except InjectionError as exc:
            stats.injection_failures += 1
            _logger.warning("%s", exc, exc_info=exc.__cause__)
            self._emit(f"Mocking failed: {exc.__cause__ or exc}")
            return received_at

        stats.fixes += 1
        self._emit(f"GPS: {coordinate}")
        return received_at

    async def _pace(self, received_at: float) -> None:
        remaining = self._poll_interval - (self._monotonic() - received_at)
        if remaining > 0:
            await self._sleep(remaining)

    async def run(self, connection: Connection) -> PollStats:
        """Poll *connection* until it is lost or the task is cancelled."""
        stats = PollStats()
        lost: ConnectionLostError | None = None
        _logger.info("Polling GPS server at %s:%s", connection.host, connection.port)
        try:
            while True:
                try:
                    received_at = await self._poll_once(connection, stats)
                except ConnectionLostError as exc:
                    lost = exc
                    break
                await self._pace(received_at)
        finally:
            await connection.close()

        _logger.warning("%s", lost)
        self._emit(f"Lost connection: {lost}")
        return stats
