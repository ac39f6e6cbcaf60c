"""Coordinate model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Coordinate(BaseModel):
    """One decoded position fix.

    Produced once per successful poll tick and handed straight to the
    location sink; never stored.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    latitude: float
    longitude: float

    def __str__(self) -> str:
        return f"{self.latitude}, {self.longitude}"
