from __future__ import annotations

import logging
import math
from typing import Optional

from ..core.constants import EARTH_RADIUS_KM
from ..core.enums import ZoneVerdict
from ..core.exceptions import InvalidCoordinate
from .model import AllowedZone, Classification, Coordinate

logger = logging.getLogger(__name__)


def is_coordinate_well_formed(c: Coordinate) -> bool:
    return c.is_well_formed()


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates using the haversine formula."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lng = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # Rounding can push h a hair above 1 for antipodal points.
    h = min(1.0, h)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


class GeoValidator:
    """Stateless geofence check against the zone injected at construction."""

    def __init__(self, zone: AllowedZone):
        self._zone = zone

    @property
    def zone(self) -> AllowedZone:
        return self._zone

    def is_coordinate_well_formed(self, c: Coordinate) -> bool:
        return is_coordinate_well_formed(c)

    def distance_km(self, a: Coordinate, b: Coordinate) -> float:
        for c in (a, b):
            if not c.is_well_formed():
                raise InvalidCoordinate(c.latitude, c.longitude)
        return distance_km(a, b)

    def distance_from_zone(self, point: Coordinate) -> float:
        return self.distance_km(self._zone.center, point)

    def classify(self, point: Coordinate, zone: Optional[AllowedZone] = None) -> Classification:
        """Classify ``point`` as INSIDE or OUTSIDE the zone.

        The boundary is closed: a reading exactly ``tolerance_km`` away is INSIDE.
        Raises InvalidCoordinate before any distance math for malformed input.
        """
        zone = zone or self._zone
        if not point.is_well_formed():
            logger.warning("Invalid GPS coordinates received: %s, %s", point.latitude, point.longitude)
            raise InvalidCoordinate(point.latitude, point.longitude)

        d = distance_km(zone.center, point)
        verdict = ZoneVerdict.INSIDE if d <= zone.tolerance_km else ZoneVerdict.OUTSIDE
        logger.debug(
            "Location validation - distance: %.4f km, tolerance: %.4f km, verdict: %s",
            d,
            zone.tolerance_km,
            verdict.value,
        )
        return Classification(verdict=verdict, distance_km=d, tolerance_km=zone.tolerance_km)
