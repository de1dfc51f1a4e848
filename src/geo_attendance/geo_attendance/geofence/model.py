from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..core.enums import ZoneVerdict


@dataclass(frozen=True)
class Coordinate:
    """A GPS reading in decimal degrees.

    (0, 0) is what clients send when no fix is available, so it is never a
    legitimate reading.
    """

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        # One spelling per physical point: the antimeridian is +180 and the
        # poles carry longitude 0.
        if abs(self.latitude) == 90.0 and -180.0 <= self.longitude <= 180.0:
            object.__setattr__(self, "longitude", 0.0)
        elif self.longitude == -180.0:
            object.__setattr__(self, "longitude", 180.0)

    def is_well_formed(self) -> bool:
        lat, lng = self.latitude, self.longitude
        if not (math.isfinite(lat) and math.isfinite(lng)):
            return False
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
            return False
        return not (lat == 0.0 and lng == 0.0)


@dataclass(frozen=True)
class AllowedZone:
    """The single authorized site: centre plus tolerance radius in km."""

    center: Coordinate
    tolerance_km: float

    def __post_init__(self) -> None:
        if not self.center.is_well_formed():
            raise ValueError(f"Allowed zone centre is not a valid coordinate: {self.center}")
        if not (math.isfinite(self.tolerance_km) and self.tolerance_km > 0):
            raise ValueError(f"Allowed zone tolerance must be positive, got {self.tolerance_km!r}")

    @classmethod
    def from_config(cls, zone_config: dict) -> "AllowedZone":
        return cls(
            center=Coordinate(float(zone_config["latitude"]), float(zone_config["longitude"])),
            tolerance_km=float(zone_config["tolerance_km"]),
        )


@dataclass(frozen=True)
class Classification:
    verdict: ZoneVerdict
    distance_km: float
    tolerance_km: float

    @property
    def inside(self) -> bool:
        return self.verdict == ZoneVerdict.INSIDE

    @property
    def outside_distance_km(self) -> Optional[float]:
        """Distance to report to the caller, only meaningful when OUTSIDE."""
        return None if self.inside else self.distance_km
