"""
Error taxonomy for the photo → flight pipeline.

Every error carries a fixed, human-readable message; the orchestrator
turns them into ProcessingState.error_message and nothing structured
reaches the presentation layer.
"""

from enum import Enum


class ProcessingErrorKind(str, Enum):
    """Why a photo could not be turned into a flight query."""
    NO_METADATA = 'no_metadata'
    NO_LOCATION = 'no_location'
    FAILED_TO_LOAD_IMAGE = 'failed_to_load_image'


ERROR_MESSAGES = {
    ProcessingErrorKind.NO_METADATA: 'Could not extract metadata from image',
    ProcessingErrorKind.NO_LOCATION: (
        'No GPS location found in image. '
        'Make sure location services are enabled when taking photos.'
    ),
    ProcessingErrorKind.FAILED_TO_LOAD_IMAGE: 'Failed to load selected image',
}

NO_FLIGHTS_MESSAGE = 'No flights found in this area at this time'


class ProcessingError(Exception):
    """A photo-side failure: unreadable, unlocated, or unloadable."""

    def __init__(self, kind: ProcessingErrorKind):
        self.kind = kind
        super().__init__(ERROR_MESSAGES[kind])

    @property
    def message(self) -> str:
        return ERROR_MESSAGES[self.kind]

    @classmethod
    def no_metadata(cls) -> 'ProcessingError':
        return cls(ProcessingErrorKind.NO_METADATA)

    @classmethod
    def no_location(cls) -> 'ProcessingError':
        return cls(ProcessingErrorKind.NO_LOCATION)

    @classmethod
    def failed_to_load_image(cls) -> 'ProcessingError':
        return cls(ProcessingErrorKind.FAILED_TO_LOAD_IMAGE)


class FlightLookupError(Exception):
    """The remote flight service could not answer (transport, status, or payload)."""
