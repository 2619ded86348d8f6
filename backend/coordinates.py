"""Extracts a coordinate pair from pasted map links or raw ``lat, lng`` text.

Patterns are tried in order:
  1.  ``@lat,lng`` as found in map-viewer URLs.
  2.  ``/dir//lat,lng`` as found in map directions URLs.
  3.  ``q=lat,lng`` or ``query=lat,lng`` query parameters.
  4.  A bare ``number, number`` pair.

The two captured numbers are ordered by magnitude: if the first fits a
latitude it is taken as latitude and the second as longitude, otherwise the
pair is swapped. ``(45, 45)`` therefore always reads as latitude first.
"""

import re

_NUMBER = r"(-?\d+(?:\.\d+)?)"
_SEPARATOR = r"\s*(?:,|%2C)\s*"

_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"@{_NUMBER}{_SEPARATOR}{_NUMBER}", re.IGNORECASE),
    re.compile(rf"/dir//{_NUMBER}{_SEPARATOR}{_NUMBER}", re.IGNORECASE),
    re.compile(rf"[?&](?:q|query)={_NUMBER}{_SEPARATOR}{_NUMBER}", re.IGNORECASE),
    re.compile(rf"^\s*\(?\s*{_NUMBER}\s*,\s*{_NUMBER}\s*\)?\s*$"),
)

MAX_LATITUDE = 90.0
MAX_LONGITUDE = 180.0


def parse_coordinates(text: str) -> tuple[float, float] | None:
    """Returns ``(longitude, latitude)`` parsed from ``text``, or None.

    None means no pattern matched or the numbers cannot be a valid pair; the
    caller should fall through to address geocoding.
    """
    if not text:
        return None

    for pattern in _PATTERNS:
        match = pattern.search(text)
        if match:
            return _order_pair(float(match.group(1)), float(match.group(2)))
    return None


def coordinate_label(coordinates: tuple[float, float]) -> str:
    """Display label for a place built straight from coordinates."""
    lng, lat = coordinates
    return f"{lat:.6f}, {lng:.6f}"


def _order_pair(first: float, second: float) -> tuple[float, float] | None:
    if abs(first) <= MAX_LATITUDE:
        lat, lng = first, second
    else:
        lat, lng = second, first

    if abs(lat) > MAX_LATITUDE or abs(lng) > MAX_LONGITUDE:
        return None
    return lng, lat
