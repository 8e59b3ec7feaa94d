"""
AeroFindr Package.

Finds the aircraft in a photo: reads where and when the photo was taken
from its EXIF data and asks OpenSky which flights were overhead.

Modules:
    api/         REST endpoints for photo uploads and processing state
    models/      Dataclasses (ImageMetadata, FlightInfo, ProcessingState)
    lookup/      OpenSky client and the async flight lookup client
    services/    EXIF extraction and AviationStack route lookups
    finder.py    FlightFinder, the photo -> flight pipeline and its state
    runner.py    Background event loop owning FlightFinder state
    photos.py    Selected-photo handles resolvable to bytes
    errors.py    Error taxonomy with user-facing messages
    config.py    Centralized configuration from environment variables
"""

__version__ = '1.0.0'
