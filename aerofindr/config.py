"""
Configuration management for AeroFindr.

Loads settings from environment variables with sensible defaults.
All configuration is centralized here to avoid magic strings scattered
throughout the codebase.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _parse_bool(value: str) -> bool:
    """Parse '1'/'true'/'yes' style flags."""
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class OpenSkyConfig:
    """OpenSky API configuration."""
    username: Optional[str] = os.getenv('OPENSKY_USERNAME') or None
    password: Optional[str] = os.getenv('OPENSKY_PASSWORD') or None
    base_url: str = os.getenv('OPENSKY_BASE_URL', 'https://opensky-network.org/api')
    timeout_seconds: float = float(os.getenv('OPENSKY_TIMEOUT_SECONDS', '30'))


@dataclass(frozen=True)
class LookupConfig:
    """Flight search settings around a photo location."""
    search_radius_km: float = float(os.getenv('SEARCH_RADIUS_KM', '25'))
    include_on_ground: bool = _parse_bool(os.getenv('INCLUDE_ON_GROUND', '0'))

    # How many of the closest candidates get route data (each costs one API call)
    enrich_top: int = int(os.getenv('ROUTE_ENRICH_TOP', '1'))

    # Upper bound for a blocking POST /api/lookup
    wait_seconds: float = float(os.getenv('LOOKUP_WAIT_SECONDS', '60'))


@dataclass(frozen=True)
class AviationStackConfig:
    """AviationStack API configuration for flight route data."""
    api_key: Optional[str] = os.getenv('AVIATIONSTACK_API_KEY') or None
    base_url: str = 'http://api.aviationstack.com/v1'

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    opensky: OpenSkyConfig
    lookup: LookupConfig
    aviationstack: AviationStackConfig

    # Flask settings
    secret_key: str
    debug: bool
    max_upload_mb: int


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        opensky=OpenSkyConfig(),
        lookup=LookupConfig(),
        aviationstack=AviationStackConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
        max_upload_mb=int(os.getenv('MAX_UPLOAD_MB', '25')),
    )


# Singleton instance
config = load_config()
