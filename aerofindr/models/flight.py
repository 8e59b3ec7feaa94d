"""
Flight candidate models returned by the lookup client.

FlightInfo mirrors the OpenSky state vector fields we care about, in SI
units, plus the distance from the photo location and optional route data
from AviationStack.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class RouteInfo:
    """Route information for a flight."""
    flight_number: str
    airline_name: Optional[str] = None
    airline_iata: Optional[str] = None
    airline_icao: Optional[str] = None
    origin_iata: Optional[str] = None
    origin_icao: Optional[str] = None
    origin_name: Optional[str] = None
    destination_iata: Optional[str] = None
    destination_icao: Optional[str] = None
    destination_name: Optional[str] = None
    scheduled_departure: Optional[datetime] = None
    scheduled_arrival: Optional[datetime] = None
    status: Optional[str] = None  # scheduled, active, landed, etc.
    aircraft_icao: Optional[str] = None  # e.g., "A21N"
    aircraft_registration: Optional[str] = None  # e.g., "N74532"

    def to_dict(self) -> dict:
        return {
            'flight_number': self.flight_number,
            'airline': {
                'name': self.airline_name,
                'iata': self.airline_iata,
                'icao': self.airline_icao,
            },
            'origin': {
                'iata': self.origin_iata,
                'icao': self.origin_icao,
                'name': self.origin_name,
            },
            'destination': {
                'iata': self.destination_iata,
                'icao': self.destination_icao,
                'name': self.destination_name,
            },
            'scheduled_departure': _isoformat(self.scheduled_departure),
            'scheduled_arrival': _isoformat(self.scheduled_arrival),
            'status': self.status,
            'aircraft': {
                'icao': self.aircraft_icao,
                'registration': self.aircraft_registration,
            },
        }


@dataclass
class FlightInfo:
    """
    One aircraft that was near the photo location at the capture time.

    Only icao24 is guaranteed; every telemetry field may be None when the
    transponder did not report it.
    """
    icao24: str
    callsign: Optional[str] = None
    origin_country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude_m: Optional[float] = None
    velocity_mps: Optional[float] = None
    heading: Optional[float] = None
    vertical_rate_mps: Optional[float] = None
    on_ground: bool = False
    distance_km: Optional[float] = None
    observed_at: Optional[datetime] = None
    route: Optional[RouteInfo] = None

    @property
    def id(self) -> str:
        """Callsign for display, with fallback to the transponder address."""
        return (self.callsign or '').strip() or self.icao24.upper()

    @property
    def altitude_ft(self) -> Optional[int]:
        if self.altitude_m is None:
            return None
        return int(self.altitude_m * 3.28084)

    @property
    def speed_kts(self) -> Optional[int]:
        if self.velocity_mps is None:
            return None
        return int(self.velocity_mps * 1.94384)

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict for API responses."""
        return {
            'id': self.id,
            'icao24': self.icao24,
            'callsign': self.callsign,
            'origin_country': self.origin_country,
            'position': {
                'latitude': self.latitude,
                'longitude': self.longitude,
                'distance_km': round(self.distance_km, 1) if self.distance_km is not None else None,
            },
            'telemetry': {
                'altitude_ft': self.altitude_ft,
                'speed_kts': self.speed_kts,
                'heading': self.heading,
                'on_ground': self.on_ground,
            },
            'observed_at': _isoformat(self.observed_at),
            'route': self.route.to_dict() if self.route else None,
        }


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
