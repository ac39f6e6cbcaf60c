"""Capabilities the polling core feeds: location override and log output.

The core never talks to a platform location API or a UI directly.  It
receives one object of each kind below and calls it synchronously from the
worker task.  Marshalling onto another thread or loop is the sink's job.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from typing import Protocol, TextIO


class LocationSink(Protocol):
    """Accepts a decoded fix and makes it observable as the device location.

    Implementations signal failure by raising; the caller logs the error
    and keeps polling.
    """

    def inject(self, latitude: float, longitude: float, accuracy: float, timestamp_ms: int) -> None:
        ...


class LogSink(Protocol):
    """Accepts human-readable diagnostic text."""

    def emit(self, text: str) -> None:
        ...


class LoggingLogSink:
    """Forward session messages to a :mod:`logging` logger."""

    def __init__(self, logger: logging.Logger | None = None, *, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger("gpsdrain.session")
        self._level = level

    def emit(self, text: str) -> None:
        self._logger.log(self._level, "%s", text)


class CallbackLogSink:
    """Adapt a plain ``callable(text)`` to the :class:`LogSink` interface."""

    def __init__(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def emit(self, text: str) -> None:
        self._callback(text)


class JsonLinesLocationSink:
    """Write each fix as one JSON object per line to a text stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def inject(self, latitude: float, longitude: float, accuracy: float, timestamp_ms: int) -> None:
        record = {
            "latitude": latitude,
            "longitude": longitude,
            "accuracy": accuracy,
            "timestamp_ms": timestamp_ms,
        }
        self._stream.write(json.dumps(record, separators=(",", ":")) + "\n")
        self._stream.flush()


class NullLocationSink:
    """Discard every fix."""

    def inject(self, latitude: float, longitude: float, accuracy: float, timestamp_ms: int) -> None:
        return None


def emit_safely(sink: LogSink | None, text: str, logger: logging.Logger) -> None:
    """Deliver *text* to *sink*, reporting a failing sink on *logger* instead of raising."""
    if sink is None:
        return
    try:
        sink.emit(text)
    except Exception:
        logger.warning("Log sink rejected message %r", text, exc_info=True)
