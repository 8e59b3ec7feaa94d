"""
Flight lookup client - which aircraft were near a point at a moment.

Wraps the blocking OpenSky client for use from the event loop: each
search runs in a worker thread and issues exactly one OpenSky request,
plus at most `enrich_top` AviationStack requests for route data.

Result order is defined here: candidates are sorted by great-circle
distance from the search point, so index 0 is the closest aircraft.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional

import requests

from aerofindr.config import config
from aerofindr.errors import FlightLookupError
from aerofindr.lookup.geo import haversine_distance
from aerofindr.lookup.opensky_client import OpenSkyClient, StateVector
from aerofindr.models import Coordinate, FlightInfo
from aerofindr.services.flight_info import RouteService

logger = logging.getLogger(__name__)


class FlightLookupClient:
    """Searches for flights near a coordinate at a point in time."""

    def __init__(
        self,
        opensky: Optional[OpenSkyClient] = None,
        route_service: Optional[RouteService] = None,
        radius_km: Optional[float] = None,
        include_on_ground: Optional[bool] = None,
        enrich_top: Optional[int] = None,
    ):
        self.opensky = opensky or OpenSkyClient.from_config()
        self.route_service = route_service
        self.radius_km = radius_km if radius_km is not None else config.lookup.search_radius_km
        self.include_on_ground = (
            include_on_ground if include_on_ground is not None else config.lookup.include_on_ground
        )
        self.enrich_top = enrich_top if enrich_top is not None else config.lookup.enrich_top

    @classmethod
    def from_config(cls) -> 'FlightLookupClient':
        """Create client (and its route service) from application configuration."""
        route_service = RouteService.from_config() if config.aviationstack.is_configured else None
        return cls(opensky=OpenSkyClient.from_config(), route_service=route_service)

    async def search_flights(self, near: Coordinate, at: datetime) -> List[FlightInfo]:
        """
        Find aircraft around `near` at time `at`, closest first.

        Raises:
            FlightLookupError if the flight service could not be queried
        """
        return await asyncio.to_thread(self._search, near, at)

    def _search(self, near: Coordinate, at: datetime) -> List[FlightInfo]:
        at_time = int(_as_utc(at).timestamp())
        logger.info(
            f'Searching flights within {self.radius_km:.0f}km of '
            f'({near.latitude:.4f}, {near.longitude:.4f}) at {at_time}'
        )

        try:
            api_time, states = self.opensky.get_states_by_location(
                near.latitude,
                near.longitude,
                self.radius_km,
                at_time=at_time,
            )
            flights = [
                self._to_flight_info(sv, near, api_time)
                for sv in states
                if self.include_on_ground or not sv.on_ground
            ]
        except requests.RequestException as e:
            raise FlightLookupError(f'Flight lookup failed: {e}') from e
        except (TypeError, ValueError, AttributeError, KeyError, OverflowError) as e:
            logger.error(f'Malformed OpenSky response: {e!r}')
            raise FlightLookupError(
                'Flight lookup failed: unexpected response from flight service'
            ) from e

        flights.sort(key=lambda f: f.distance_km if f.distance_km is not None else float('inf'))

        self._enrich_routes(flights)

        logger.info(f'Found {len(flights)} candidate flights')
        return flights

    def _to_flight_info(self, sv: StateVector, near: Coordinate, api_time: int) -> FlightInfo:
        distance_km = haversine_distance(
            near.latitude, near.longitude,
            sv.latitude, sv.longitude,
        )
        # Vectors without their own timestamps are dated by the snapshot time
        observed = sv.time_position or sv.last_contact or api_time

        return FlightInfo(
            icao24=sv.icao24,
            callsign=sv.callsign,
            origin_country=sv.origin_country,
            latitude=sv.latitude,
            longitude=sv.longitude,
            altitude_m=sv.baro_altitude if sv.baro_altitude is not None else sv.geo_altitude,
            velocity_mps=sv.velocity,
            heading=sv.true_track,
            vertical_rate_mps=sv.vertical_rate,
            on_ground=sv.on_ground,
            distance_km=distance_km,
            observed_at=datetime.fromtimestamp(observed, tz=timezone.utc) if observed else None,
        )

    def _enrich_routes(self, flights: List[FlightInfo]) -> None:
        """Attach route data to the closest candidates that have a callsign."""
        if not self.route_service or self.enrich_top <= 0:
            return

        for flight in flights[:self.enrich_top]:
            if flight.callsign:
                flight.route = self.route_service.get_route_info(flight.callsign)


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
