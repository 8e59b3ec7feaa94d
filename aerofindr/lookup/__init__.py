"""
Flight lookup module for AeroFindr.

Queries OpenSky for aircraft around a photo location and orders them
by distance.
"""

from aerofindr.lookup.opensky_client import OpenSkyClient, StateVector
from aerofindr.lookup.flight_lookup import FlightLookupClient

__all__ = ['OpenSkyClient', 'StateVector', 'FlightLookupClient']
