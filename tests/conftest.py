from datetime import datetime
from typing import List

import pytest

from aerofindr.models import FlightInfo
from tests.helpers import SFO, make_jpeg


@pytest.fixture
def sfo_photo() -> bytes:
    """Photo at SFO taken 2024-03-01T10:00:00Z."""
    return make_jpeg(*SFO, taken=datetime(2024, 3, 1, 10, 0, 0), offset='+00:00')


@pytest.fixture
def untimed_photo() -> bytes:
    return make_jpeg(*SFO)


@pytest.fixture
def unlocated_photo() -> bytes:
    return make_jpeg(taken=datetime(2024, 3, 1, 10, 0, 0))


@pytest.fixture
def united_flights() -> List[FlightInfo]:
    return [
        FlightInfo(icao24='a1b2c3', callsign='UA123', distance_km=1.2),
        FlightInfo(icao24='a4b5c6', callsign='UA456', distance_km=8.7),
    ]
