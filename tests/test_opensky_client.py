from unittest.mock import MagicMock, patch

import pytest
import requests

from aerofindr.lookup.opensky_client import OpenSkyClient, StateVector


def state_array(icao24='a1b2c3', callsign='UAL123  ', lat=37.63, lon=-122.38, on_ground=False):
    return [
        icao24, callsign, 'United States', 1709287195, 1709287199,
        lon, lat, 1200.0, on_ground, 110.0, 280.0, 5.0, None, 1250.0, '1200', False, 0,
    ]


def mock_response(payload, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        error = requests.exceptions.HTTPError(f'{status} Error')
        error.response = response
        response.raise_for_status.side_effect = error
    return response


@pytest.fixture
def client():
    return OpenSkyClient(base_url='https://opensky.test/api', timeout=5)


def test_state_vector_parsing():
    sv = StateVector.from_array(state_array(icao24='A1B2C3'))

    assert sv.icao24 == 'a1b2c3'
    assert sv.callsign == 'UAL123'
    assert sv.latitude == 37.63
    assert sv.geo_altitude == 1250.0
    assert sv.has_position()


def test_malformed_state_vectors_rejected():
    assert StateVector.from_array([]) is None
    assert StateVector.from_array(['a1b2c3', 'UAL1']) is None
    assert StateVector.from_array(state_array(icao24=None)) is None
    assert StateVector.from_array(state_array(callsign='   ')).callsign is None


def test_get_states_sends_bbox_and_time(client):
    with patch.object(client.session, 'get', return_value=mock_response({
        'time': 1709287200,
        'states': [state_array(), state_array(icao24='nopos1', lat=None, lon=None)],
    })) as mock_get:
        api_time, states = client.get_states_by_location(37.6213, -122.3790, 25, at_time=1709287200)

    assert api_time == 1709287200
    assert [s.icao24 for s in states] == ['a1b2c3']

    args, kwargs = mock_get.call_args
    assert args[0] == 'https://opensky.test/api/states/all'
    assert kwargs['params']['time'] == 1709287200
    assert kwargs['params']['lamin'] < 37.6213 < kwargs['params']['lamax']
    assert kwargs['params']['lomin'] < -122.3790 < kwargs['params']['lomax']
    assert kwargs['timeout'] == 5


def test_null_states_means_empty_airspace(client):
    with patch.object(client.session, 'get', return_value=mock_response({'time': 1, 'states': None})):
        _, states = client.get_states()

    assert states == []


def test_http_error_is_raised(client):
    with patch.object(client.session, 'get', return_value=mock_response({}, status=503)):
        with pytest.raises(requests.exceptions.HTTPError):
            client.get_states()


def test_non_object_payload_is_rejected(client):
    with patch.object(client.session, 'get', return_value=mock_response(['unexpected'])):
        with pytest.raises(requests.RequestException):
            client.get_states()


def test_authentication_configured():
    client = OpenSkyClient(username='spotter', password='secret')

    assert client.auth is not None
    assert client.auth.username == 'spotter'
