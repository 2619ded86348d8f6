"""Deep links that open the computed trip in a map application."""

from urllib.parse import urlencode

from models import MapLink, Place

GOOGLE_MAPS_DIR_URL = "https://www.google.com/maps/dir/"
APPLE_MAPS_URL = "https://maps.apple.com/"


def _latlng(place: Place) -> str:
    return f"{place.latitude},{place.longitude}"


def build_map_links(origin: Place | None, destination: Place | None) -> list[MapLink]:
    """Returns the Google Maps then Apple Maps links, or [] if either end is unresolved."""
    if origin is None or destination is None:
        return []
    if not (origin.resolved and destination.resolved):
        return []

    google = GOOGLE_MAPS_DIR_URL + "?" + urlencode(
        {
            "api": "1",
            "origin": _latlng(origin),
            "destination": _latlng(destination),
            "travelmode": "driving",
        },
        safe=",",
    )
    apple = APPLE_MAPS_URL + "?" + urlencode(
        {
            "saddr": _latlng(origin),
            "daddr": _latlng(destination),
            "dirflg": "d",
        },
        safe=",",
    )
    return [MapLink(name="Google Maps", url=google), MapLink(name="Apple Maps", url=apple)]
