import asyncio
import io
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from aerofindr.errors import ERROR_MESSAGES, NO_FLIGHTS_MESSAGE, FlightLookupError, ProcessingErrorKind
from aerofindr.finder import FlightFinder
from aerofindr.lookup import FlightLookupClient, OpenSkyClient
from aerofindr.models import FlightInfo, OutcomeStatus, ProcessingState
from aerofindr.photos import BytesPhoto, FilePhoto
from tests.helpers import SFO, FakeLookupClient, make_jpeg

NO_LOCATION = ERROR_MESSAGES[ProcessingErrorKind.NO_LOCATION]
NO_METADATA = ERROR_MESSAGES[ProcessingErrorKind.NO_METADATA]
FAILED_TO_LOAD = ERROR_MESSAGES[ProcessingErrorKind.FAILED_TO_LOAD_IMAGE]


def run(coro):
    return asyncio.run(coro)


def test_best_match_is_first_candidate(sfo_photo, united_flights):
    lookup = FakeLookupClient(flights=united_flights)
    finder = FlightFinder(lookup_client=lookup)

    outcome = run(finder.process_image(sfo_photo))

    assert outcome.status == OutcomeStatus.SUCCESS
    assert finder.state.flight_info.id == 'UA123'
    assert finder.state.flight_info is united_flights[0]
    assert finder.state.error_message is None
    assert finder.state.is_loading is False

    near, at = lookup.calls[0]
    assert near.latitude == pytest.approx(SFO[0], abs=1e-5)
    assert near.longitude == pytest.approx(SFO[1], abs=1e-5)
    assert at == datetime(2024, 3, 1, 10, 0, 0, tzinfo=timezone.utc)


def test_single_candidate_is_selected(sfo_photo):
    only = FlightInfo(icao24='abc123', callsign='DAL88')
    finder = FlightFinder(lookup_client=FakeLookupClient(flights=[only]))

    run(finder.process_image(sfo_photo))

    assert finder.state.flight_info is only


def test_empty_result_sets_message(sfo_photo):
    finder = FlightFinder(lookup_client=FakeLookupClient(flights=[]))

    outcome = run(finder.process_image(sfo_photo))

    assert outcome.status == OutcomeStatus.EMPTY
    assert finder.state.flight_info is None
    assert finder.state.error_message == 'No flights found in this area at this time'
    assert finder.state.error_message == NO_FLIGHTS_MESSAGE


def test_photo_without_gps_reports_no_location(unlocated_photo):
    lookup = FakeLookupClient(flights=[FlightInfo(icao24='abc123')])
    finder = FlightFinder(lookup_client=lookup)

    outcome = run(finder.process_image(unlocated_photo))

    assert outcome.status == OutcomeStatus.ERROR
    assert finder.state.error_message == NO_LOCATION
    assert finder.state.error_message.startswith('No GPS location found in image')
    assert finder.state.flight_info is None
    assert lookup.calls == []


def test_unreadable_image_reports_no_metadata():
    finder = FlightFinder(lookup_client=FakeLookupClient())

    run(finder.process_image(b'\x00\x01 not an image'))

    assert finder.state.error_message == NO_METADATA
    assert finder.state.error_message != NO_LOCATION


def test_missing_timestamp_defaults_to_now(untimed_photo, united_flights):
    lookup = FakeLookupClient(flights=united_flights)
    finder = FlightFinder(lookup_client=lookup)

    before = datetime.now(timezone.utc)
    run(finder.process_image(untimed_photo))
    after = datetime.now(timezone.utc)

    _, at = lookup.calls[0]
    assert before - timedelta(seconds=1) <= at <= after + timedelta(seconds=1)


def test_injected_clock_used_for_missing_timestamp(untimed_photo):
    fixed = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    lookup = FakeLookupClient()
    finder = FlightFinder(lookup_client=lookup, clock=lambda: fixed)

    run(finder.process_image(untimed_photo))

    assert lookup.calls[0][1] == fixed


def test_lookup_error_message_surfaces(sfo_photo):
    error = FlightLookupError('Flight lookup failed: 503 Server Error')
    finder = FlightFinder(lookup_client=FakeLookupClient(error=error))

    outcome = run(finder.process_image(sfo_photo))

    assert outcome.status == OutcomeStatus.ERROR
    assert finder.state.error_message == 'Flight lookup failed: 503 Server Error'
    assert finder.state.flight_info is None
    assert finder.state.is_loading is False


def test_malformed_flight_service_payload_surfaces_lookup_message(sfo_photo):
    opensky = OpenSkyClient(base_url='https://opensky.test/api', timeout=5)
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {'time': 1, 'states': 5}
    finder = FlightFinder(lookup_client=FlightLookupClient(opensky=opensky, radius_km=30))

    with patch.object(opensky.session, 'get', return_value=response):
        outcome = run(finder.process_image(sfo_photo))

    assert outcome.status == OutcomeStatus.ERROR
    assert finder.state.error_message.startswith('Flight lookup failed')
    assert finder.state.flight_info is None
    assert finder.state.is_loading is False


def test_unexpected_error_is_contained(sfo_photo):
    finder = FlightFinder(lookup_client=FakeLookupClient(error=RuntimeError('boom')))

    outcome = run(finder.process_image(sfo_photo))

    assert outcome.message == 'boom'
    assert finder.state.error_message == 'boom'
    assert finder.state.is_loading is False


def test_accepts_decoded_image(sfo_photo, united_flights):
    finder = FlightFinder(lookup_client=FakeLookupClient(flights=united_flights))

    run(finder.process_image(Image.open(io.BytesIO(sfo_photo))))

    assert finder.state.flight_info.id == 'UA123'


def test_selected_photo_success(sfo_photo, united_flights):
    finder = FlightFinder(lookup_client=FakeLookupClient(flights=united_flights))

    run(finder.process_selected_photo(BytesPhoto(sfo_photo, filename='IMG_0001.jpg')))

    assert finder.state.flight_info.id == 'UA123'


def test_selected_photo_without_data_fails_to_load():
    lookup = FakeLookupClient()
    finder = FlightFinder(lookup_client=lookup)

    run(finder.process_selected_photo(BytesPhoto(None)))

    assert finder.state.error_message == 'Failed to load selected image'
    assert finder.state.error_message == FAILED_TO_LOAD
    assert finder.state.is_loading is False
    assert lookup.calls == []


def test_selected_photo_read_error_fails_to_load(tmp_path):
    finder = FlightFinder(lookup_client=FakeLookupClient())

    run(finder.process_selected_photo(FilePhoto(tmp_path / 'missing.jpg')))

    assert finder.state.error_message == FAILED_TO_LOAD


def test_selected_photo_from_disk(tmp_path, sfo_photo, united_flights):
    path = tmp_path / 'IMG_0002.jpg'
    path.write_bytes(sfo_photo)
    finder = FlightFinder(lookup_client=FakeLookupClient(flights=united_flights))

    run(finder.process_selected_photo(FilePhoto(path)))

    assert finder.state.flight_info.id == 'UA123'


@pytest.mark.parametrize('flights, error, photo_factory', [
    ([FlightInfo(icao24='abc123')], None, lambda: make_jpeg(*SFO)),
    ([], None, lambda: make_jpeg(*SFO)),
    ([], FlightLookupError('down'), lambda: make_jpeg(*SFO)),
    ([], None, lambda: make_jpeg()),
    ([], None, lambda: b'junk'),
])
def test_loading_flag_on_every_path(flights, error, photo_factory):
    lookup = FakeLookupClient(flights=flights, error=error)
    finder = FlightFinder(lookup_client=lookup)
    seen = []
    finder.add_state_listener(seen.append)

    run(finder.process_image(photo_factory()))

    assert seen[0] == ProcessingState(is_loading=True)
    assert len(seen) == 2
    assert seen[-1].is_loading is False
    assert finder.state.is_loading is False


def test_loading_while_lookup_in_flight(sfo_photo, united_flights):
    lookup = FakeLookupClient(flights=united_flights)
    finder = FlightFinder(lookup_client=lookup)

    async def scenario():
        gate = lookup.hold()
        task = asyncio.create_task(finder.process_image(sfo_photo))
        await asyncio.sleep(0)

        assert finder.state.is_loading is True
        assert finder.state.flight_info is None
        assert finder.state.error_message is None

        gate.set()
        await task

    run(scenario())

    assert finder.state.is_loading is False
    assert finder.state.flight_info.id == 'UA123'


def test_new_request_clears_previous_result(sfo_photo, unlocated_photo, united_flights):
    finder = FlightFinder(lookup_client=FakeLookupClient(flights=united_flights))
    run(finder.process_image(sfo_photo))
    assert finder.state.flight_info is not None

    run(finder.process_image(unlocated_photo))

    assert finder.state.flight_info is None
    assert finder.state.error_message == NO_LOCATION


def test_superseded_request_never_overwrites_newer(sfo_photo, unlocated_photo, united_flights):
    slow_lookup = FakeLookupClient(flights=united_flights)
    finder = FlightFinder(lookup_client=slow_lookup)

    async def scenario():
        gate = slow_lookup.hold()
        first = asyncio.create_task(finder.process_image(sfo_photo))
        await asyncio.sleep(0)

        second = await finder.process_image(unlocated_photo)
        assert finder.state.error_message == NO_LOCATION
        assert finder.state.is_loading is False

        gate.set()
        return await first, second

    first_outcome, second_outcome = run(scenario())

    assert first_outcome.superseded is True
    assert first_outcome.flight.id == 'UA123'
    assert second_outcome.superseded is False
    assert finder.state.flight_info is None
    assert finder.state.error_message == NO_LOCATION
    assert finder.generation == 2


def test_newer_request_keeps_spinner_until_it_settles(sfo_photo, united_flights):
    lookup = FakeLookupClient(flights=united_flights)
    finder = FlightFinder(lookup_client=lookup)

    async def scenario():
        gate = lookup.hold()
        first = asyncio.create_task(finder.process_image(sfo_photo))
        second = asyncio.create_task(finder.process_image(sfo_photo))
        await asyncio.sleep(0)
        assert finder.state.is_loading is True

        gate.set()
        await first
        # first finished but is stale; the second is still the visible request
        await second

    run(scenario())

    assert finder.state.is_loading is False
    assert finder.state.flight_info.id == 'UA123'


def test_cancelled_request_clears_spinner(sfo_photo):
    lookup = FakeLookupClient()
    finder = FlightFinder(lookup_client=lookup)

    async def scenario():
        lookup.hold()
        task = asyncio.create_task(finder.process_image(sfo_photo))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    run(scenario())

    assert finder.state.is_loading is False


def test_listener_errors_do_not_break_processing(sfo_photo, united_flights):
    finder = FlightFinder(lookup_client=FakeLookupClient(flights=united_flights))

    def broken_listener(state):
        raise ValueError('listener failed')

    finder.add_state_listener(broken_listener)
    run(finder.process_image(sfo_photo))

    assert finder.state.flight_info.id == 'UA123'


def test_outcome_statuses_are_terminal_only():
    assert {status.value for status in OutcomeStatus} == {'success', 'empty', 'error'}
