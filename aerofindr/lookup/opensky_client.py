"""
OpenSky Network API client.

Handles communication with the OpenSky REST API, including:
- Authentication (optional, widens how far back in time queries may go)
- Bounding box queries for geographic filtering
- Point-in-time queries via the `time` parameter
- Error logging (callers decide what a failure means)

OpenSky state vector format (array indices):
0: icao24          - ICAO24 hex address
1: callsign        - Callsign (8 chars max)
2: origin_country  - Country of registration
3: time_position   - Unix timestamp of last position update
4: last_contact    - Unix timestamp of last message
5: longitude       - WGS84 longitude
6: latitude        - WGS84 latitude
7: baro_altitude   - Barometric altitude (meters)
8: on_ground       - Boolean
9: velocity        - Ground speed (m/s)
10: true_track     - Track angle (degrees, 0=north)
11: vertical_rate  - Vertical rate (m/s)
12: sensors        - Sensor IDs (array)
13: geo_altitude   - Geometric altitude (meters)
14: squawk         - Transponder code
15: spi            - Special position indicator
16: position_source - 0=ADS-B, 1=ASTERIX, 2=MLAT, 3=FLARM
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, List, Tuple, Any

import requests
from requests.auth import HTTPBasicAuth

from aerofindr.config import config
from aerofindr.lookup.geo import BoundingBox

logger = logging.getLogger(__name__)


@dataclass
class StateVector:
    """
    Parsed state vector from OpenSky API.

    Normalizes the raw array format into a typed dataclass.
    All values may be None if not reported by the aircraft.
    """
    icao24: str
    callsign: Optional[str]
    origin_country: Optional[str]
    time_position: Optional[int]
    last_contact: Optional[int]
    longitude: Optional[float]
    latitude: Optional[float]
    baro_altitude: Optional[float]
    on_ground: bool
    velocity: Optional[float]
    true_track: Optional[float]
    vertical_rate: Optional[float]
    geo_altitude: Optional[float]

    @classmethod
    def from_array(cls, arr: List[Any]) -> Optional['StateVector']:
        """
        Parse OpenSky state vector array into StateVector object.

        Returns None if the array is malformed or missing required fields.
        """
        if not arr or len(arr) < 17:
            return None

        icao24 = arr[0]
        if not icao24 or not isinstance(icao24, str):
            return None

        # Normalize callsign (strip whitespace, handle None)
        callsign = arr[1]
        if callsign:
            callsign = callsign.strip() or None

        return cls(
            icao24=icao24.lower(),
            callsign=callsign,
            origin_country=arr[2],
            time_position=arr[3],
            last_contact=arr[4],
            longitude=arr[5],
            latitude=arr[6],
            baro_altitude=arr[7],
            on_ground=bool(arr[8]),
            velocity=arr[9],
            true_track=arr[10],
            vertical_rate=arr[11],
            geo_altitude=arr[13],
        )

    def has_position(self) -> bool:
        """Check if this state has valid position data."""
        return self.latitude is not None and self.longitude is not None


class OpenSkyClient:
    """
    Client for OpenSky Network API.

    Handles:
    - GET requests to /states/all endpoint
    - Optional authentication
    - Bounding box and point-in-time filtering
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        base_url: str = 'https://opensky-network.org/api',
        timeout: float = 30,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.auth = None
        if username and password:
            self.auth = HTTPBasicAuth(username, password)
            logger.info('OpenSky client initialized with authentication')
        else:
            logger.warning('OpenSky client running without authentication (recent states only)')

        self.session = requests.Session()

    @classmethod
    def from_config(cls) -> 'OpenSkyClient':
        """Create client from application configuration."""
        return cls(
            username=config.opensky.username,
            password=config.opensky.password,
            base_url=config.opensky.base_url,
            timeout=config.opensky.timeout_seconds,
        )

    def get_states(
        self,
        bbox: Optional[BoundingBox] = None,
        at_time: Optional[int] = None,
    ) -> Tuple[int, List[StateVector]]:
        """
        Fetch state vectors from OpenSky.

        Args:
            bbox: Optional bounding box to filter by geography
            at_time: Optional unix timestamp; OpenSky returns the states
                     closest to that moment (current states if omitted)

        Returns:
            Tuple of (api_timestamp, list of StateVectors with a position)
            api_timestamp is the OpenSky server time for this snapshot

        Raises:
            requests.RequestException on network/API errors or a non-JSON body
        """
        url = f'{self.base_url}/states/all'
        params = {}

        if bbox:
            params.update(bbox.to_params())

        if at_time is not None:
            params['time'] = int(at_time)

        logger.debug(f'Fetching states: {url} params={params}')

        try:
            response = self.session.get(
                url,
                params=params,
                auth=self.auth,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise requests.exceptions.InvalidJSONError(
                    f'Unexpected OpenSky payload: {type(data).__name__}',
                    response=response,
                )

        except requests.exceptions.Timeout:
            logger.error('OpenSky API timeout')
            raise
        except requests.exceptions.HTTPError as e:
            if e.response is not None and e.response.status_code == 429:
                logger.warning('OpenSky rate limit exceeded')
            else:
                status = e.response.status_code if e.response is not None else '?'
                logger.error(f'OpenSky API error: {status}')
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f'OpenSky request failed: {e}')
            raise

        api_time = data.get('time') or int(time.time())
        states_raw = data.get('states') or []

        logger.info(f'Received {len(states_raw)} state vectors from OpenSky')

        states = []
        for arr in states_raw:
            sv = StateVector.from_array(arr)
            if sv and sv.has_position():
                states.append(sv)

        logger.debug(f'Parsed {len(states)} valid state vectors with positions')

        return api_time, states

    def get_states_by_location(
        self,
        center_lat: float,
        center_lon: float,
        radius_km: float,
        at_time: Optional[int] = None,
    ) -> Tuple[int, List[StateVector]]:
        """
        Fetch states within radius of a center point.

        Convenience method that constructs bounding box from center + radius.
        """
        bbox = BoundingBox.from_center_radius(center_lat, center_lon, radius_km)
        return self.get_states(bbox=bbox, at_time=at_time)
