"""Linear TCP probe over a range of addresses on one subnet."""

from __future__ import annotations

import logging

from gpsdrain._connection import Connection, Connector, open_tcp_connection
from gpsdrain._constants import DEFAULT_CONNECT_TIMEOUT
from gpsdrain.exceptions import CandidateUnreachableError, DiscoveryNotFoundError
from gpsdrain.models.address_range import AddressRange
from gpsdrain.sinks import LogSink, emit_safely

_logger = logging.getLogger(__name__)


class SubnetScanner:
    """Find the first address in a range that accepts a TCP connection.

    Candidates are tried one at a time, lowest octet first, each bounded by
    *connect_timeout*.  Worst-case scan time is therefore roughly
    ``address_range.size * connect_timeout``.

    Parameters
    ----------
    log_sink : LogSink or None
        Receives one message per attempt and the scan outcome.
    connect_timeout : float
        Seconds allowed for each connect attempt.
    connector : Connector or None
        Replacement for :func:`open_tcp_connection`, mainly for tests.
    """

    def __init__(
        self,
        log_sink: LogSink | None = None,
        *,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        connector: Connector | None = None,
    ) -> None:
        self._log_sink = log_sink
        self._connect_timeout = connect_timeout
        self._connector: Connector = connector or open_tcp_connection

    @property
    def connect_timeout(self) -> float:
        return self._connect_timeout

    def _emit(self, text: str) -> None:
        emit_safely(self._log_sink, text, _logger)

    async def _try_candidate(self, host: str, port: int) -> Connection:
        try:
            return await self._connector(host, port, self._connect_timeout)
        except TimeoutError as exc:
            raise CandidateUnreachableError(
                f"Connect to {host}:{port} timed out after {self._connect_timeout}s",
                host=host,
                port=port,
            ) from exc
        except OSError as exc:
            raise CandidateUnreachableError(
                f"Connect to {host}:{port} failed: {exc.strerror or exc}",
                host=host,
                port=port,
            ) from exc

    async def probe(self, address_range: AddressRange) -> Connection:
        """Return a connection to the first reachable candidate.

        Raises :class:`DiscoveryNotFoundError` when no candidate answered.
        An inverted range makes no attempts at all.
        """
        port = address_range.port
        if address_range.start_octet > address_range.end_octet:
            raise DiscoveryNotFoundError(
                f"Empty probe range {address_range.start_octet}-{address_range.end_octet}",
                address_range=address_range,
            )

        _logger.debug("Scanning %s (%d candidates)", address_range, address_range.size)
        for host in address_range.candidates():
            self._emit(f"Trying server {host}:{port}")
            try:
                connection = await self._try_candidate(host, port)
            except CandidateUnreachableError as exc:
                _logger.debug("%s", exc)
                self._emit(f"Connect failed: {exc}")
                continue
            _logger.info("Found GPS server at %s:%s", host, port)
            self._emit(f"Found GPS server at {host}:{port}")
            return connection

        self._emit(f"No GPS server found in {address_range}")
        raise DiscoveryNotFoundError(
            f"No GPS server answered in {address_range}",
            address_range=address_range,
        )
