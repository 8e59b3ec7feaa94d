"""
Data models for AeroFindr.

Plain dataclasses: nothing here is persisted, every value lives for the
duration of one lookup.
"""

from aerofindr.models.metadata import Coordinate, ImageMetadata
from aerofindr.models.flight import FlightInfo, RouteInfo
from aerofindr.models.state import OutcomeStatus, ProcessingOutcome, ProcessingState

__all__ = [
    'Coordinate',
    'ImageMetadata',
    'FlightInfo',
    'RouteInfo',
    'OutcomeStatus',
    'ProcessingOutcome',
    'ProcessingState',
]
