"""Data models for gpsdrain."""

from gpsdrain.models.address_range import AddressRange
from gpsdrain.models.coordinate import Coordinate

__all__ = [
    "AddressRange",
    "Coordinate",
]
