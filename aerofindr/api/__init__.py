"""
API module for AeroFindr.

Provides REST endpoints for photo lookups and the processing state.
"""

from aerofindr.api.lookup import lookup_bp

__all__ = ['lookup_bp']
