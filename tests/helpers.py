"""Shared builders for the test suite: EXIF-tagged JPEGs and a fake lookup client."""

import asyncio
import io
from datetime import datetime
from typing import List, Optional

from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from aerofindr.models import FlightInfo

EXIF_IFD = 0x8769
GPS_IFD = 0x8825


def _dms(value: float):
    degrees = int(value)
    minutes_full = (value - degrees) * 60
    minutes = int(minutes_full)
    seconds = (minutes_full - minutes) * 60
    return (
        IFDRational(degrees, 1),
        IFDRational(minutes, 1),
        IFDRational(int(round(seconds * 10000)), 10000),
    )


def make_jpeg(
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    taken: Optional[datetime] = None,
    offset: Optional[str] = None,
    gps_date: Optional[str] = None,
    gps_time: Optional[tuple] = None,
) -> bytes:
    """Build a small JPEG carrying the requested EXIF fields."""
    exif = Image.Exif()

    gps = {}
    if lat is not None and lon is not None:
        gps.update({
            1: 'N' if lat >= 0 else 'S',
            2: _dms(abs(lat)),
            3: 'E' if lon >= 0 else 'W',
            4: _dms(abs(lon)),
        })
    if gps_date and gps_time:
        gps[7] = tuple(IFDRational(int(p), 1) for p in gps_time)
        gps[29] = gps_date
    if gps:
        exif[GPS_IFD] = gps

    if taken is not None:
        exif_ifd = {0x9003: taken.strftime('%Y:%m:%d %H:%M:%S')}
        if offset:
            exif_ifd[0x9011] = offset
        exif[EXIF_IFD] = exif_ifd

    buffer = io.BytesIO()
    Image.new('RGB', (16, 16), 'white').save(buffer, format='JPEG', exif=exif.tobytes())
    return buffer.getvalue()


class FakeLookupClient:
    """Stands in for FlightLookupClient; records every search."""

    def __init__(
        self,
        flights: Optional[List[FlightInfo]] = None,
        error: Optional[Exception] = None,
        delay: float = 0,
        hang: bool = False,
    ):
        self.flights = flights or []
        self.error = error
        self.delay = delay
        self.hang = hang
        self.calls = []
        self.gate: Optional[asyncio.Event] = None

    def hold(self) -> asyncio.Event:
        """Make searches wait until the returned event is set (call inside a loop)."""
        self.gate = asyncio.Event()
        return self.gate

    async def search_flights(self, near, at):
        self.calls.append((near, at))
        if self.gate is not None:
            await self.gate.wait()
        if self.hang:
            await asyncio.Event().wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.flights)


SFO = (37.6213, -122.3790)
