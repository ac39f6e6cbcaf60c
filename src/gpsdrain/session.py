"""Per-run session state."""

from __future__ import annotations

import asyncio
import enum
import time
from dataclasses import dataclass, field

from gpsdrain.client import PollStats
from gpsdrain.models.address_range import AddressRange


class SessionState(enum.Enum):
    """Lifecycle of one :class:`DrainSession`.

    ``NOT_RUNNING`` -> ``SCANNING`` -> ``POLLING`` -> ``STOPPED``.
    ``STOPPED`` is terminal; starting again creates a new session.
    """

    NOT_RUNNING = "not_running"
    SCANNING = "scanning"
    POLLING = "polling"
    STOPPED = "stopped"


@dataclass(slots=True)
class DrainSession:
    """One discovery-then-polling run, from ``start()`` to worker exit.

    Parameters
    ----------
    address_range : AddressRange
        Range the session scans.
    state : SessionState
        Current lifecycle state.
    peer : str or None
        ``host:port`` of the server once discovery succeeded.
    stats : PollStats or None
        Polling counters, set once polling ends.
    task : asyncio.Task or None
        The worker task.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) of creation.
    """

    address_range: AddressRange
    state: SessionState = SessionState.NOT_RUNNING
    peer: str | None = None
    stats: PollStats | None = None
    task: asyncio.Task[None] | None = None
    created_at: float = field(default_factory=time.monotonic)

    @property
    def is_active(self) -> bool:
        """Whether the worker task exists and has not finished."""
        return self.task is not None and not self.task.done()

    @property
    def age(self) -> float:
        """Seconds since the session was created."""
        return time.monotonic() - self.created_at
