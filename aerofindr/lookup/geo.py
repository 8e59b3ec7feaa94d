"""
Geographic helpers for proximity searches around a photo location.
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points in kilometers.

    Uses the Haversine formula for accuracy over short to medium distances.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


@dataclass
class BoundingBox:
    """
    Geographic bounding box for API queries.

    OpenSky expects: lamin, lomin, lamax, lomax
    (latitude min, longitude min, latitude max, longitude max)
    """
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    @classmethod
    def from_center_radius(
        cls,
        center_lat: float,
        center_lon: float,
        radius_km: float
    ) -> 'BoundingBox':
        """
        Create bounding box from center point and radius.

        Uses approximate conversion: 1 degree ~ 111 km at equator.
        Longitude span widens with latitude; near the poles it is clamped
        to the full [-180, 180] range.
        """
        lat_delta = radius_km / KM_PER_DEGREE
        cos_lat = abs(math.cos(math.radians(center_lat)))
        lon_delta = radius_km / (KM_PER_DEGREE * cos_lat) if cos_lat > 1e-6 else 180.0

        return cls(
            lat_min=max(center_lat - lat_delta, -90.0),
            lat_max=min(center_lat + lat_delta, 90.0),
            lon_min=max(center_lon - lon_delta, -180.0),
            lon_max=min(center_lon + lon_delta, 180.0),
        )

    def to_params(self) -> dict:
        """Convert to OpenSky API query parameters."""
        return {
            'lamin': self.lat_min,
            'lamax': self.lat_max,
            'lomin': self.lon_min,
            'lomax': self.lon_max,
        }
