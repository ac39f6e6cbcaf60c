"""Probe range model."""

from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AddressRange(BaseModel):
    """Which IPv4 addresses and port a scan should probe.

    Parameters
    ----------
    subnet_prefix : str
        First three dotted octets of the subnet (e.g. ``"192.168.1"``).
    start_octet : int
        First host octet to try (1-254).
    end_octet : int
        Last host octet to try, inclusive (1-254).  Must not be lower
        than *start_octet*.
    port : int
        TCP port of the GPS server (1-65535).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    subnet_prefix: str
    start_octet: int = Field(ge=1, le=254)
    end_octet: int = Field(ge=1, le=254)
    port: int = Field(ge=1, le=65535)

    @field_validator("subnet_prefix")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        prefix = value.rstrip(".")
        parts = prefix.split(".")
        if len(parts) != 3:
            raise ValueError(f"subnet prefix must have three octets, got {value!r}")
        for part in parts:
            if not part.isdigit() or int(part) > 255:
                raise ValueError(f"invalid octet {part!r} in subnet prefix {value!r}")
        return ".".join(str(int(part)) for part in parts)

    @model_validator(mode="after")
    def _check_order(self) -> AddressRange:
        if self.start_octet > self.end_octet:
            raise ValueError(f"start octet {self.start_octet} is greater than end octet {self.end_octet}")
        return self

    @property
    def size(self) -> int:
        """Number of candidates in the range (0 for an inverted range)."""
        return max(0, self.end_octet - self.start_octet + 1)

    def candidate(self, octet: int) -> str:
        """Dotted-quad address for *octet* on this subnet."""
        return f"{self.subnet_prefix}.{octet}"

    def candidates(self) -> Iterator[str]:
        """Yield candidate addresses, lowest octet first."""
        for octet in range(self.start_octet, self.end_octet + 1):
            yield self.candidate(octet)

    def __str__(self) -> str:
        return f"{self.candidate(self.start_octet)}-{self.end_octet}:{self.port}"
