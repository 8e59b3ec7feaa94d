"""
Image metadata model - what a photo tells us about where and when it was taken.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Coordinate:
    """WGS84 position in decimal degrees."""
    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        """Check that both components are inside their WGS84 ranges."""
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def to_dict(self) -> dict:
        return {'latitude': self.latitude, 'longitude': self.longitude}


@dataclass(frozen=True)
class ImageMetadata:
    """
    Location and capture time embedded in a photo.

    Either field may be None: a photo taken with location services off has
    no GPS block, and some editors strip the capture time.
    """
    location: Optional[Coordinate] = None
    timestamp: Optional[datetime] = None
