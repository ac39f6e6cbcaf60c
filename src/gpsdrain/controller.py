"""Start/stop control for the single discovery-and-polling worker."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from gpsdrain.client import GpsStreamClient
from gpsdrain.config import DrainConfig
from gpsdrain.exceptions import DiscoveryNotFoundError, LocationAccessError
from gpsdrain.models.address_range import AddressRange
from gpsdrain.scanner import SubnetScanner
from gpsdrain.session import DrainSession, SessionState
from gpsdrain.sinks import LocationSink, LogSink, emit_safely

_logger = logging.getLogger(__name__)


class SessionController:
    """Owns at most one running session at a time.

    Usage::

        controller = SessionController(location_sink, log_sink)
        controller.start(address_range, location_access=True)
        ...
        await controller.stop()

    Failures inside the worker never propagate to the caller.  They show up
    in the log sink and as the session reaching ``STOPPED``.
    """

    def __init__(
        self,
        location_sink: LocationSink,
        log_sink: LogSink | None = None,
        *,
        config: DrainConfig | None = None,
        scanner: SubnetScanner | None = None,
        client: GpsStreamClient | None = None,
    ) -> None:
        self._config = config or DrainConfig()
        self._log_sink = log_sink
        self._scanner = scanner or SubnetScanner(
            log_sink,
            connect_timeout=self._config.connect_timeout,
        )
        self._client = client or GpsStreamClient(
            location_sink,
            log_sink,
            poll_interval=self._config.poll_interval,
            accuracy=self._config.accuracy,
        )
        self._session: DrainSession | None = None

    @property
    def session(self) -> DrainSession | None:
        """Most recent session, active or finished."""
        return self._session

    @property
    def is_running(self) -> bool:
        return self._session is not None and self._session.is_active

    @property
    def state(self) -> SessionState:
        if self._session is None:
            return SessionState.NOT_RUNNING
        return self._session.state

    def _emit(self, text: str) -> None:
        emit_safely(self._log_sink, text, _logger)

    def start(self, address_range: AddressRange, *, location_access: bool) -> bool:
        """Spawn the worker for *address_range* unless one is already running.

        Must be called from the event loop thread.  Returns ``True`` when a
        new session was started and ``False`` when one was already active.

        Raises :class:`LocationAccessError` when *location_access* is false.
        """
        if not location_access:
            self._emit("Location access not granted, not starting")
            raise LocationAccessError("Location-override access is required to start a session")

        # No await between the check and the assignment, so two callers on
        # the loop cannot both pass.
        if self.is_running:
            _logger.debug("start() ignored, session already running")
            return False

        session = DrainSession(address_range=address_range)
        session.task = asyncio.get_running_loop().create_task(
            self._work(session),
            name=f"gpsdrain-{address_range}",
        )
        self._session = session
        _logger.info("Session started for %s", address_range)
        self._emit("GPS client started")
        return True

    async def stop(self) -> None:
        """Cancel the running worker and wait until it released its connection."""
        session = self._session
        if session is None or session.task is None or session.task.done():
            return
        self._emit("GPS client stopping")
        session.task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await session.task
        # A task cancelled before its first step never ran its own cleanup.
        session.state = SessionState.STOPPED

    async def wait(self) -> DrainSession | None:
        """Wait for the current worker to finish on its own."""
        session = self._session
        if session is not None and session.task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await session.task
        return session

    async def _work(self, session: DrainSession) -> None:
        try:
            session.state = SessionState.SCANNING
            try:
                connection = await self._scanner.probe(session.address_range)
            except DiscoveryNotFoundError as exc:
                _logger.info("%s", exc)
                return

            session.peer = f"{connection.host}:{connection.port}"
            session.state = SessionState.POLLING
            session.stats = await self._client.run(connection)
        except asyncio.CancelledError:
            _logger.info("Session cancelled")
            raise
        except Exception:
            _logger.exception("GPS session failed")
            self._emit("GPS session failed unexpectedly")
        finally:
            session.state = SessionState.STOPPED
