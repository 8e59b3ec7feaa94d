"""
FlightFinder - turns a photo into the flight that was overhead.

Pipeline:
1. Load: resolve a selected-photo handle to bytes (photo entry point only)
2. Extract: read GPS position and capture time from EXIF
3. Validate: a location is required; a missing time defaults to now
4. Lookup: ask the flight lookup client for nearby aircraft
5. Select: the first candidate is the match; none is a message, not an error

FlightFinder owns ProcessingState, the single value the presentation
layer observes. Every state change happens on the event loop that runs
the coroutines, and every request gets a generation number: a request
that is overtaken by a newer one never writes its result, so only the
most recently started request is ever visible.
"""

import asyncio
import dataclasses
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from aerofindr.errors import NO_FLIGHTS_MESSAGE, FlightLookupError, ProcessingError
from aerofindr.lookup import FlightLookupClient
from aerofindr.models import ProcessingOutcome, ProcessingState
from aerofindr.photos import PhotoHandle
from aerofindr.services.image_metadata import ImageMetadataService, ImageSource, image_metadata_service

logger = logging.getLogger(__name__)

StateListener = Callable[[ProcessingState], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FlightFinder:
    """
    Drives the photo → flight pipeline and holds the observable state.

    Not thread-safe: call the coroutines from a single event loop
    (see LoopRunner for use from threaded code). Reading `state` from
    other threads is fine since it is replaced, never mutated.
    """

    def __init__(
        self,
        lookup_client: Optional[FlightLookupClient] = None,
        metadata_service: Optional[ImageMetadataService] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.lookup_client = lookup_client or FlightLookupClient.from_config()
        self.metadata_service = metadata_service or image_metadata_service
        self._clock = clock

        self._state = ProcessingState()
        self._generation = 0
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> ProcessingState:
        """Current state snapshot."""
        return self._state

    @property
    def generation(self) -> int:
        """Number of requests started so far."""
        return self._generation

    def add_state_listener(self, callback: StateListener) -> None:
        """
        Register callback to be invoked after every state change.

        Callback receives the new ProcessingState.
        """
        self._listeners.append(callback)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    async def process_image(self, image: ImageSource) -> ProcessingOutcome:
        """Find the flight for an in-memory image (Pillow image or encoded bytes)."""
        generation = self._begin()
        try:
            outcome = await self._search_from_image(image)
        except asyncio.CancelledError:
            self._abandon(generation)
            raise
        except Exception as e:
            outcome = self._failure(e)
        return self._finish(generation, outcome)

    async def process_selected_photo(self, photo: PhotoHandle) -> ProcessingOutcome:
        """Find the flight for a user-selected photo, loading its bytes first."""
        generation = self._begin()
        try:
            data = await self._load_photo(photo)
            outcome = await self._search_from_image(data)
        except asyncio.CancelledError:
            self._abandon(generation)
            raise
        except Exception as e:
            outcome = self._failure(e)
        return self._finish(generation, outcome)

    # -------------------------------------------------------------------------
    # Pipeline stages
    # -------------------------------------------------------------------------

    async def _load_photo(self, photo: PhotoHandle) -> bytes:
        try:
            data = await photo.load_bytes()
        except OSError as e:
            logger.warning(f'Could not read selected photo {photo!r}: {e}')
            raise ProcessingError.failed_to_load_image() from e

        if not data:
            raise ProcessingError.failed_to_load_image()
        return data

    async def _search_from_image(self, source: ImageSource) -> ProcessingOutcome:
        metadata = self.metadata_service.extract(source)
        if metadata is None:
            raise ProcessingError.no_metadata()

        location = metadata.location
        if location is None:
            raise ProcessingError.no_location()

        timestamp = metadata.timestamp
        if timestamp is None:
            timestamp = self._clock()
            logger.info(f'Photo has no capture time, searching at current time {timestamp.isoformat()}')

        flights = await self.lookup_client.search_flights(location, timestamp)

        if not flights:
            return ProcessingOutcome.empty(NO_FLIGHTS_MESSAGE)

        best = flights[0]
        logger.info(f'Matched flight {best.id} ({len(flights)} candidates)')
        return ProcessingOutcome.success(best)

    def _failure(self, error: Exception) -> ProcessingOutcome:
        if isinstance(error, (ProcessingError, FlightLookupError)):
            logger.info(f'Processing failed: {error}')
        else:
            logger.exception(f'Unexpected error while processing photo: {error}')
        return ProcessingOutcome.error(str(error) or error.__class__.__name__)

    # -------------------------------------------------------------------------
    # State management
    # -------------------------------------------------------------------------

    def _begin(self) -> int:
        """Start a request: new generation, cleared result, spinner on."""
        self._generation += 1
        self._set_state(ProcessingState.loading())
        return self._generation

    def _finish(self, generation: int, outcome: ProcessingOutcome) -> ProcessingOutcome:
        """Publish the outcome unless a newer request has started since."""
        if generation != self._generation:
            logger.info(
                f'Discarding result of superseded request {generation} '
                f'(current is {self._generation})'
            )
            return dataclasses.replace(outcome, superseded=True)

        self._set_state(outcome.to_state())
        return outcome

    def _abandon(self, generation: int) -> None:
        """A cancelled request still turns the spinner off if it is current."""
        if generation == self._generation:
            self._set_state(dataclasses.replace(self._state, is_loading=False))

    def _set_state(self, state: ProcessingState) -> None:
        self._state = state
        for callback in self._listeners:
            try:
                callback(state)
            except Exception as e:
                logger.error(f'State listener error: {e}')
