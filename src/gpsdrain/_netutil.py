"""Local network helpers."""

from __future__ import annotations

import ipaddress
import logging
import socket

from gpsdrain._constants import FALLBACK_SUBNET_PREFIX

_logger = logging.getLogger(__name__)

# Any routable address works; a UDP connect sends no packets.
_ROUTE_PROBE = ("8.8.8.8", 80)


def detect_local_ipv4() -> str | None:
    """Return this host's outward-facing IPv4 address, or ``None``."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(_ROUTE_PROBE)
            candidate = sock.getsockname()[0]
    except OSError:
        _logger.debug("Could not determine local IPv4 address", exc_info=True)
        return None
    try:
        address = ipaddress.IPv4Address(candidate)
    except ValueError:
        return None
    if address.is_loopback or address.is_unspecified:
        return None
    return str(address)


def subnet_prefix_of(address: str) -> str:
    """Drop the last octet of a dotted-quad address (``"10.0.0.7"`` -> ``"10.0.0"``)."""
    return address.rpartition(".")[0]


def detect_subnet_prefix() -> str:
    """Subnet prefix of the local IPv4 address, or ``"0.0.0"`` if unknown."""
    address = detect_local_ipv4()
    if address is None:
        return FALLBACK_SUBNET_PREFIX
    return subnet_prefix_of(address)
