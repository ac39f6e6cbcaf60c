"""gpsdrain - Find a GPS line server on the local subnet and feed its fixes to a location sink."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gpsdrain")
except PackageNotFoundError:
    __version__ = "0+local"
from gpsdrain.client import GpsStreamClient, PollStats
from gpsdrain.config import DrainConfig
from gpsdrain.controller import SessionController
from gpsdrain.exceptions import (
    CandidateUnreachableError,
    ConnectionLostError,
    DiscoveryError,
    DiscoveryNotFoundError,
    DrainConfigError,
    GpsDrainError,
    InjectionError,
    LocationAccessError,
    MalformedRecordError,
    ProtocolError,
)
from gpsdrain.models import AddressRange, Coordinate
from gpsdrain.scanner import SubnetScanner
from gpsdrain.session import DrainSession, SessionState
from gpsdrain.sinks import (
    CallbackLogSink,
    JsonLinesLocationSink,
    LocationSink,
    LoggingLogSink,
    LogSink,
    NullLocationSink,
)

__all__ = [
    "__version__",
    "AddressRange",
    "CallbackLogSink",
    "CandidateUnreachableError",
    "ConnectionLostError",
    "Coordinate",
    "DiscoveryError",
    "DiscoveryNotFoundError",
    "DrainConfig",
    "DrainConfigError",
    "DrainSession",
    "GpsDrainError",
    "GpsStreamClient",
    "InjectionError",
    "JsonLinesLocationSink",
    "LocationAccessError",
    "LocationSink",
    "LogSink",
    "LoggingLogSink",
    "MalformedRecordError",
    "NullLocationSink",
    "PollStats",
    "ProtocolError",
    "SessionController",
    "SessionState",
    "SubnetScanner",
]
