"""
Photo and external integration services.

Metadata extraction is local and pure; route lookups call AviationStack
and degrade gracefully when it is unavailable.
"""

from aerofindr.services.image_metadata import ImageMetadataService, image_metadata_service
from aerofindr.services.flight_info import RouteService, callsign_to_flight_number

__all__ = [
    'ImageMetadataService',
    'image_metadata_service',
    'RouteService',
    'callsign_to_flight_number',
]
