"""
Flight information service - enriches a matched flight with route data.

Integrates with AviationStack to get:
- Airline name and codes
- Origin/destination airports
- Flight schedule and status

Lookups degrade gracefully: any failure is logged and yields None, so a
missing route never fails the photo lookup itself.
"""

import logging
from datetime import datetime
from typing import Optional

import requests

from aerofindr.config import config
from aerofindr.models import RouteInfo

logger = logging.getLogger(__name__)

# Common ICAO to IATA airline prefix mappings
ICAO_TO_IATA = {
    'AAL': 'AA',  # American Airlines
    'DAL': 'DL',  # Delta
    'UAL': 'UA',  # United
    'SWA': 'WN',  # Southwest
    'JBU': 'B6',  # JetBlue
    'ASA': 'AS',  # Alaska
    'FFT': 'F9',  # Frontier
    'NKS': 'NK',  # Spirit
    'ACA': 'AC',  # Air Canada
    'WJA': 'WS',  # WestJet
    'BAW': 'BA',  # British Airways
    'DLH': 'LH',  # Lufthansa
    'AFR': 'AF',  # Air France
    'KLM': 'KL',  # KLM
    'UAE': 'EK',  # Emirates
    'QFA': 'QF',  # Qantas
    'ANA': 'NH',  # All Nippon
    'JAL': 'JL',  # Japan Airlines
    'CPA': 'CX',  # Cathay Pacific
    'SIA': 'SQ',  # Singapore
    'SKW': 'OO',  # SkyWest
    'RPA': 'YX',  # Republic
    'ENY': 'MQ',  # Envoy
    'FDX': 'FX',  # FedEx
    'UPS': '5X',  # UPS
}


def callsign_to_flight_number(callsign: str) -> str:
    """
    Convert ICAO callsign to IATA flight number.

    Examples:
    - AAL839 -> AA839
    - DAL1234 -> DL1234
    - UAL567 -> UA567

    Unknown prefixes are returned unchanged.
    """
    callsign = callsign.strip().upper()
    if len(callsign) >= 3:
        prefix = callsign[:3]
        if prefix in ICAO_TO_IATA:
            return ICAO_TO_IATA[prefix] + callsign[3:]
    return callsign


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse an AviationStack ISO timestamp."""
    if not dt_str:
        return None
    try:
        return datetime.fromisoformat(dt_str.replace('Z', '+00:00'))
    except ValueError:
        return None


class RouteService:
    """
    Looks up route information for a callsign via AviationStack.

    Disabled (every lookup returns None) when no API key is configured.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 10,
    ):
        self.api_key = api_key
        self.base_url = (base_url or config.aviationstack.base_url).rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()

        if not self.api_key:
            logger.warning('AviationStack API key not configured - route lookups disabled')

    @classmethod
    def from_config(cls) -> 'RouteService':
        """Create service from application configuration."""
        return cls(
            api_key=config.aviationstack.api_key,
            base_url=config.aviationstack.base_url,
        )

    @property
    def is_enabled(self) -> bool:
        return bool(self.api_key)

    def get_route_info(self, callsign: Optional[str]) -> Optional[RouteInfo]:
        """
        Get route information for a flight by callsign.

        Callsigns are typically formatted as:
        - ICAO format: AAL839 (American Airlines flight 839)
        - IATA format: AA839
        """
        if not callsign or not self.is_enabled:
            return None

        flight_iata = callsign_to_flight_number(callsign)
        logger.info(f'Fetching route info from AviationStack for {callsign} ({flight_iata})')

        try:
            response = self.session.get(
                f'{self.base_url}/flights',
                params={
                    'access_key': self.api_key,
                    'flight_iata': flight_iata,
                },
                timeout=self.timeout,
            )

            if response.status_code != 200:
                logger.warning(f'AviationStack API error: {response.status_code}')
                return None

            data = response.json()

        except requests.RequestException as e:
            logger.error(f'Failed to fetch flight info: {e}')
            return None

        if not isinstance(data, dict):
            logger.warning(f'Unexpected AviationStack payload: {type(data).__name__}')
            return None

        if 'error' in data:
            logger.warning(f'AviationStack API error: {data["error"]}')
            return None

        flights = data.get('data') or []
        if not flights:
            logger.info(f'No route data found for {callsign}')
            return None

        route = self._parse_flight(flight_iata, flights[0])
        logger.info(f'Got route for {callsign}: {route.origin_iata} -> {route.destination_iata}')
        return route

    def _parse_flight(self, flight_iata: str, flight: dict) -> RouteInfo:
        """Map one AviationStack flight record onto RouteInfo."""
        airline = flight.get('airline') or {}
        departure = flight.get('departure') or {}
        arrival = flight.get('arrival') or {}
        aircraft = flight.get('aircraft') or {}

        return RouteInfo(
            flight_number=flight_iata,
            airline_name=airline.get('name'),
            airline_iata=airline.get('iata'),
            airline_icao=airline.get('icao'),
            origin_iata=departure.get('iata'),
            origin_icao=departure.get('icao'),
            origin_name=departure.get('airport'),
            destination_iata=arrival.get('iata'),
            destination_icao=arrival.get('icao'),
            destination_name=arrival.get('airport'),
            scheduled_departure=_parse_datetime(departure.get('scheduled')),
            scheduled_arrival=_parse_datetime(arrival.get('scheduled')),
            status=flight.get('flight_status'),
            aircraft_icao=aircraft.get('icao'),
            aircraft_registration=aircraft.get('registration'),
        )
