"""Line protocol spoken by the GPS server.

The client asks with ``Give me GPS\\n`` and the server answers with one
line of the form ``<tag>:<lat>,<lon>\\n``, e.g. ``GPS:37.421998,-122.084``.
There is no framing beyond the newline and no version negotiation.
"""

from __future__ import annotations

import math

from gpsdrain.exceptions import MalformedRecordError
from gpsdrain.models.coordinate import Coordinate

REQUEST_LINE = "Give me GPS"


def encode_request() -> bytes:
    """Return the request line as it goes on the wire."""
    return f"{REQUEST_LINE}\n".encode("ascii")


def _parse_float(token: str) -> float | None:
    # float() accepts digit separators ("1_0"); the server never sends them.
    if "_" in token:
        return None
    try:
        result = float(token)
    except ValueError:
        return None
    if not math.isfinite(result):
        return None
    return result


def parse_response(line: str) -> Coordinate:
    """Decode one response line into a :class:`Coordinate`.

    The tag before the first colon is not checked.  The payload after it
    must hold exactly two comma-separated finite numbers.

    Raises :class:`MalformedRecordError` for anything else.
    """
    text = line.rstrip("\r\n")
    tag, sep, payload = text.partition(":")
    if not sep:
        raise MalformedRecordError(f"missing ':' in response {text!r}", line=text)

    tokens = payload.split(",")
    if len(tokens) != 2:
        raise MalformedRecordError(
            f"expected 2 values after {tag!r}, got {len(tokens)} in {text!r}",
            line=text,
        )

    lat = _parse_float(tokens[0])
    lon = _parse_float(tokens[1])
    if lat is None or lon is None:
        raise MalformedRecordError(f"non-numeric coordinate in response {text!r}", line=text)
    return Coordinate(latitude=lat, longitude=lon)
