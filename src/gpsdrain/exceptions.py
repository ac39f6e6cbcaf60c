"""Custom exception hierarchy for gpsdrain."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gpsdrain.models.address_range import AddressRange
    from gpsdrain.models.coordinate import Coordinate


class GpsDrainError(Exception):
    """Base exception for all gpsdrain errors."""


class DrainConfigError(GpsDrainError):
    """Invalid or missing configuration."""


class LocationAccessError(GpsDrainError):
    """Location-override access was not granted before starting a session."""


class DiscoveryError(GpsDrainError):
    """Failure while probing the subnet for a GPS server."""


class DiscoveryNotFoundError(DiscoveryError):
    """Every candidate in the range was tried and none accepted a connection.

    Only ends the current scan attempt.  Whether and when to scan again is
    up to the caller.
    """

    def __init__(self, message: str, *, address_range: AddressRange | None = None) -> None:
        self.address_range = address_range
        super().__init__(message)


class CandidateUnreachableError(DiscoveryError):
    """A single candidate timed out, refused, or was unreachable."""

    def __init__(self, message: str, *, host: str = "", port: int = 0) -> None:
        self.host = host
        self.port = port
        super().__init__(message)


class ProtocolError(GpsDrainError):
    """The server sent something that does not follow the line protocol."""


class MalformedRecordError(ProtocolError):
    """A response line failed to parse into a coordinate.

    Non-fatal: the poll tick is skipped and the connection stays open.
    """

    def __init__(self, message: str, *, line: str = "") -> None:
        self.line = line
        super().__init__(message)


class ConnectionLostError(GpsDrainError):
    """Read/write failure or end-of-stream on the active connection."""

    def __init__(self, message: str, *, host: str = "", port: int = 0) -> None:
        self.host = host
        self.port = port
        super().__init__(message)


class InjectionError(GpsDrainError):
    """The location sink rejected a coordinate."""

    def __init__(self, message: str, *, coordinate: Coordinate | None = None) -> None:
        self.coordinate = coordinate
        super().__init__(message)
