"""Client configuration for gpsdrain."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pydantic import ValidationError

from gpsdrain._constants import (
    DEFAULT_ACCURACY,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_END_OCTET,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PORT,
    DEFAULT_START_OCTET,
)
from gpsdrain._netutil import detect_subnet_prefix
from gpsdrain.exceptions import DrainConfigError
from gpsdrain.models.address_range import AddressRange


@dataclasses.dataclass(frozen=True)
class DrainConfig:
    """Session configuration.

    Parameters
    ----------
    port : int
        TCP port of the GPS server.
    start_octet : int
        First host octet to probe.
    end_octet : int
        Last host octet to probe, inclusive.
    subnet_prefix : str or None
        Three dotted octets of the subnet to scan.  ``None`` means
        detect it from the local IPv4 address when the range is built.
    connect_timeout : float
        Seconds allowed for each connect attempt while scanning.
    poll_interval : float
        Seconds between a response and the next request.
    accuracy : float
        Accuracy in metres reported with every injected fix.
    """

    port: int = DEFAULT_PORT
    start_octet: int = DEFAULT_START_OCTET
    end_octet: int = DEFAULT_END_OCTET
    subnet_prefix: str | None = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    accuracy: float = DEFAULT_ACCURACY

    def __post_init__(self) -> None:
        if self.connect_timeout <= 0:
            raise DrainConfigError(f"connect_timeout must be positive, got {self.connect_timeout}")
        if self.poll_interval < 0:
            raise DrainConfigError(f"poll_interval must not be negative, got {self.poll_interval}")

    def address_range(self, subnet_prefix: str | None = None) -> AddressRange:
        """Build the validated probe range.

        Raises :class:`DrainConfigError` when the port, octets, or subnet
        prefix are out of bounds, or when the start octet exceeds the end.
        """
        prefix = subnet_prefix or self.subnet_prefix or detect_subnet_prefix()
        try:
            return AddressRange(
                subnet_prefix=prefix,
                start_octet=self.start_octet,
                end_octet=self.end_octet,
                port=self.port,
            )
        except ValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            raise DrainConfigError(f"Invalid probe range: {messages}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> DrainConfig:
        """Create configuration from environment variables.

        Reads the optional ``GPSDRAIN_*`` variables.  Explicit keyword
        arguments override environment values; ``None`` overrides are
        ignored so argparse defaults can be passed straight through.

        Raises :class:`DrainConfigError` for non-numeric values.
        """
        env = os.environ

        _ENV_CONFIG_MAP: dict[str, tuple[str, type]] = {
            "GPSDRAIN_PORT": ("port", int),
            "GPSDRAIN_START_OCTET": ("start_octet", int),
            "GPSDRAIN_END_OCTET": ("end_octet", int),
            "GPSDRAIN_SUBNET": ("subnet_prefix", str),
            "GPSDRAIN_CONNECT_TIMEOUT": ("connect_timeout", float),
            "GPSDRAIN_POLL_INTERVAL": ("poll_interval", float),
            "GPSDRAIN_ACCURACY": ("accuracy", float),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, field_type) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is None or not val.strip():
                continue
            try:
                config_kwargs[field_name] = field_type(val.strip())
            except ValueError as exc:
                raise DrainConfigError(f"{env_key} must be {field_type.__name__}, got {val!r}") from exc

        config_kwargs.update({key: value for key, value in overrides.items() if value is not None})

        return cls(**config_kwargs)
