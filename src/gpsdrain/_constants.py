"""Internal constants shared across the library."""

DEFAULT_PORT = 2768
DEFAULT_START_OCTET = 100
DEFAULT_END_OCTET = 128
FALLBACK_SUBNET_PREFIX = "0.0.0"

#: Per-candidate TCP connect timeout in seconds.
DEFAULT_CONNECT_TIMEOUT: float = 0.5
#: Seconds between a response and the next request.
DEFAULT_POLL_INTERVAL: float = 1.0
#: Horizontal accuracy in metres reported with every injected fix.
DEFAULT_ACCURACY: float = 1.0

#: Upper bound for a single response line, in bytes.
MAX_LINE_BYTES = 4096
