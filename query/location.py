from __future__ import annotations

import re
from typing import Optional

from common.errors import FormatError, MapQueryError, RangeError
from common.types import Coordinate


_LATLON_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?),(-?\d+(?:\.\d+)?)\s*$")

FORMAT_HINT = "Eg. -12.445,78.12484"


def parse_location(raw: str) -> Coordinate:
    """
    Parse "lat,lon" into a Coordinate (stored lon, lat).

    Raises:
        FormatError: anything but two signed decimals separated by one comma.
        RangeError: latitude outside [-90, 90] (checked first) or longitude outside [-180, 180].
    """
    m = _LATLON_RE.match(raw) if isinstance(raw, str) else None
    if m is None:
        raise FormatError(f"Invalid geo coordinate format. {FORMAT_HINT}", fragment=raw, detail=FORMAT_HINT)
    lat = float(m.group(1))
    lon = float(m.group(2))
    if not -90.0 <= lat <= 90.0:
        raise RangeError("Latitude should be within -90 and 90", fragment=raw)
    if not -180.0 <= lon <= 180.0:
        raise RangeError("Longitude should be within -180 and 180", fragment=raw)
    return Coordinate(longitude=lon, latitude=lat)


def parse_location_fragment(raw: str) -> Coordinate:
    """parse_location for a token inside a markers/path/text value; errors name the token."""
    try:
        return parse_location(raw)
    except MapQueryError as e:
        raise e.rewrap(f'Invalid location found "{raw}". {e.detail}', fragment=raw) from e


def parse_center(token: Optional[str]) -> Optional[Coordinate]:
    if token is None:
        return None
    if not isinstance(token, str):
        raise FormatError("center should be string type")
    if not token.strip():
        return None
    return parse_location(token)
