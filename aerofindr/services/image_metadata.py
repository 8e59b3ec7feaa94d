"""
Image metadata service - reads GPS position and capture time from photos.

Only the EXIF blocks are parsed; Pillow opens images lazily so pixel data
is never decoded. HEIC/HEIF (the default iPhone format) is supported via
pillow-heif.

EXIF layout used here:
- IFD0 (0x0132 DateTime)
- Exif IFD 0x8769 (DateTimeOriginal, DateTimeDigitized, OffsetTimeOriginal)
- GPS IFD 0x8825 (GPSLatitude/Ref, GPSLongitude/Ref, GPSDateStamp, GPSTimeStamp)
"""

import io
import logging
import math
import struct
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

import pillow_heif
from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import GPSTAGS, TAGS

from aerofindr.models import Coordinate, ImageMetadata

logger = logging.getLogger(__name__)

pillow_heif.register_heif_opener()

EXIF_IFD = 0x8769
GPS_IFD = 0x8825

EXIF_DATETIME_FORMAT = '%Y:%m:%d %H:%M:%S'

ImageSource = Union[bytes, bytearray, memoryview, Image.Image]


def _clean_text(value: Any) -> Optional[str]:
    """EXIF ASCII fields may arrive as bytes and are often NUL-padded."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode('ascii', errors='ignore')
    text = str(value).strip('\x00').strip()
    return text or None


def _to_float(value: Any) -> Optional[float]:
    """Convert an EXIF rational (IFDRational, float, or (num, den) tuple) to float."""
    if value is None:
        return None
    try:
        if isinstance(value, tuple) and len(value) == 2:
            num, den = value
            result = float(num) / float(den)
        else:
            result = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def _dms_to_degrees(value: Any) -> Optional[float]:
    """Convert a (degrees, minutes, seconds) triple to decimal degrees."""
    if not value:
        return None
    try:
        d, m, s = value
    except (TypeError, ValueError):
        return None

    parts = [_to_float(d), _to_float(m), _to_float(s)]
    if any(p is None for p in parts):
        return None
    return parts[0] + parts[1] / 60.0 + parts[2] / 3600.0


def _parse_offset(value: Any) -> Optional[timezone]:
    """Parse an EXIF OffsetTime* value like '+02:00' or '-0700'."""
    text = _clean_text(value)
    if not text or text[0] not in '+-':
        return None
    digits = text[1:].replace(':', '')
    if len(digits) != 4 or not digits.isdigit():
        return None
    delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
    return timezone(-delta if text[0] == '-' else delta)


def _parse_exif_datetime(value: Any) -> Optional[datetime]:
    """Parse 'YYYY:MM:DD HH:MM:SS' into a naive datetime."""
    text = _clean_text(value)
    if not text:
        return None
    try:
        return datetime.strptime(text[:19], EXIF_DATETIME_FORMAT)
    except ValueError:
        return None


class ImageMetadataService:
    """
    Extracts location and capture time from photos.

    extract() is a pure function of its input: bytes are opened in memory
    and already-decoded Pillow images are read as-is.
    """

    def extract(self, source: ImageSource) -> Optional[ImageMetadata]:
        """
        Extract ImageMetadata from raw image bytes or a Pillow image.

        Returns None if the source cannot be opened as an image or its
        EXIF block is unreadable. Otherwise returns ImageMetadata whose
        location/timestamp are None when the photo does not carry them.
        """
        image = self._open(source)
        if image is None:
            return None

        try:
            exif = image.getexif()
            ifd0 = {TAGS.get(tag, tag): value for tag, value in exif.items()}
            exif_ifd = {TAGS.get(tag, tag): value for tag, value in exif.get_ifd(EXIF_IFD).items()}
            gps_ifd = {GPSTAGS.get(tag, tag): value for tag, value in exif.get_ifd(GPS_IFD).items()}
        except (OSError, ValueError, SyntaxError, struct.error) as e:
            logger.warning(f'Unreadable EXIF block: {e}')
            return None

        location = self._extract_location(gps_ifd)
        timestamp = self._extract_timestamp(ifd0, exif_ifd, gps_ifd)

        logger.debug(f'Extracted metadata: location={location} timestamp={timestamp}')
        return ImageMetadata(location=location, timestamp=timestamp)

    def _open(self, source: ImageSource) -> Optional[Image.Image]:
        """Open bytes lazily as an image; pass Pillow images through."""
        if isinstance(source, Image.Image):
            return source

        if not source:
            return None

        try:
            return Image.open(io.BytesIO(bytes(source)))
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.info(f'Could not open image ({len(source)} bytes): {e}')
            return None

    def _extract_location(self, gps: Dict[str, Any]) -> Optional[Coordinate]:
        """Decode GPSLatitude/GPSLongitude with their hemisphere references."""
        if not gps:
            return None

        lat = _dms_to_degrees(gps.get('GPSLatitude'))
        lon = _dms_to_degrees(gps.get('GPSLongitude'))
        if lat is None or lon is None:
            return None

        if _clean_text(gps.get('GPSLatitudeRef')) == 'S':
            lat = -lat
        if _clean_text(gps.get('GPSLongitudeRef')) == 'W':
            lon = -lon

        coordinate = Coordinate(latitude=lat, longitude=lon)
        if not coordinate.is_valid:
            logger.warning(f'Discarding out-of-range GPS position ({lat}, {lon})')
            return None

        return coordinate

    def _extract_timestamp(
        self,
        ifd0: Dict[str, Any],
        exif_ifd: Dict[str, Any],
        gps: Dict[str, Any],
    ) -> Optional[datetime]:
        """
        Pick the best capture time available, always timezone-aware.

        Precedence:
        1. DateTimeOriginal with OffsetTimeOriginal (camera local time + offset)
        2. GPSDateStamp + GPSTimeStamp (always UTC)
        3. DateTimeOriginal / DateTimeDigitized / DateTime, assumed UTC
        """
        original = _parse_exif_datetime(exif_ifd.get('DateTimeOriginal'))
        offset = _parse_offset(exif_ifd.get('OffsetTimeOriginal'))
        if original and offset:
            return original.replace(tzinfo=offset)

        gps_time = self._gps_timestamp(gps)
        if gps_time:
            return gps_time

        for candidate in (
            original,
            _parse_exif_datetime(exif_ifd.get('DateTimeDigitized')),
            _parse_exif_datetime(ifd0.get('DateTime')),
        ):
            if candidate:
                return candidate.replace(tzinfo=timezone.utc)

        return None

    def _gps_timestamp(self, gps: Dict[str, Any]) -> Optional[datetime]:
        """Combine GPSDateStamp ('YYYY:MM:DD') and GPSTimeStamp (h, m, s) in UTC."""
        date_text = _clean_text(gps.get('GPSDateStamp'))
        time_parts = gps.get('GPSTimeStamp')
        if not date_text or not time_parts:
            return None

        try:
            day = datetime.strptime(date_text, '%Y:%m:%d')
            hours, minutes, seconds = (_to_float(p) for p in time_parts)
        except (TypeError, ValueError):
            return None
        if hours is None or minutes is None or seconds is None:
            return None

        return day.replace(tzinfo=timezone.utc) + timedelta(
            hours=hours, minutes=minutes, seconds=seconds
        )


# Singleton instance
image_metadata_service = ImageMetadataService()
