"""Address resolution and typeahead suggestions.

``PlaceResolver`` turns free text into a resolved ``Place``: pasted map links
and raw coordinate pairs are parsed locally, anything else goes through a
single-best-match forward geocode.

``SuggestionSearch`` backs the typeahead. Each query is debounced and tagged
with a per-field sequence number; a query that is no longer the newest for
its field when it wakes up, or when the geocoder answers, is reported as
superseded so a slow stale response can never overwrite a newer list.

Google Maps Python client (googlemaps) handles the geocoding calls.
"""

import asyncio
import itertools
import logging
from typing import Any

import googlemaps
import googlemaps.exceptions

from coordinates import coordinate_label, parse_coordinates
from errors import PlaceNotFoundError
from models import Place, Suggestion, SuggestionBatch

logger = logging.getLogger(__name__)

# Address component types that name the place itself, most specific first.
_NAME_COMPONENT_TYPES: tuple[str, ...] = (
    "point_of_interest",
    "establishment",
    "premise",
    "natural_feature",
    "airport",
    "park",
)
# Address component types that describe where the place is.
_PLACE_COMPONENT_TYPES: tuple[str, ...] = (
    "locality",
    "administrative_area_level_1",
    "country",
)

MIN_QUERY_LENGTH = 3
SUGGESTION_LIMIT = 5


def build_maps_client(api_key: str) -> googlemaps.Client | None:
    """Returns a Google Maps client, or None when no key is configured."""
    if not api_key:
        return None
    try:
        return googlemaps.Client(key=api_key)
    except ValueError as exc:
        # The client rejects keys that are not Google Maps API keys.
        logger.error("Ignoring GOOGLE_MAPS_API_KEY: %s", exc)
        return None


# ---------------------------------------------------------------------------
# Result mapping
# ---------------------------------------------------------------------------


def _result_coordinates(result: dict[str, Any]) -> tuple[float, float] | None:
    location = (result.get("geometry") or {}).get("location") or {}
    lat = location.get("lat")
    lng = location.get("lng")
    if lat is None or lng is None:
        return None
    try:
        return float(lng), float(lat)
    except (TypeError, ValueError):
        return None


def _component(result: dict[str, Any], kind: str, attr: str = "long_name") -> str:
    for component in result.get("address_components") or []:
        if kind in component.get("types", []):
            return component.get(attr, "") or ""
    return ""


def _result_name(result: dict[str, Any]) -> str:
    for kind in _NAME_COMPONENT_TYPES:
        name = _component(result, kind)
        if name:
            return name
    street = " ".join(
        part
        for part in (_component(result, "street_number"), _component(result, "route"))
        if part
    )
    return street or result.get("name", "") or ""


def _result_place(result: dict[str, Any]) -> str:
    parts = []
    for kind in _PLACE_COMPONENT_TYPES:
        attr = "short_name" if kind == "administrative_area_level_1" else "long_name"
        part = _component(result, kind, attr)
        if part and part not in parts:
            parts.append(part)
    return ", ".join(parts)


def result_label(result: dict[str, Any]) -> str:
    """Best display label for a geocoding result; empty when nothing usable.

    Prefers the formatted address, then ``"name, place"``, then whichever of
    the two is present.
    """
    formatted = (result.get("formatted_address") or "").strip()
    if formatted:
        return formatted
    name = _result_name(result)
    place = _result_place(result)
    if name and place:
        return f"{name}, {place}"
    return name or place


def _geocode_components(country: str | None) -> dict[str, str] | None:
    return {"country": country} if country else None


# ---------------------------------------------------------------------------
# Place resolver
# ---------------------------------------------------------------------------


class PlaceResolver:
    """Resolves free text into a ``Place``.

    Args:
        maps_client: Google Maps client used for forward geocoding. When None
            only coordinate text can be resolved.
        country: Optional ISO country code restricting geocoding results.
    """

    def __init__(
        self,
        maps_client: googlemaps.Client | None,
        *,
        country: str | None = None,
    ) -> None:
        self._maps = maps_client
        self._country = country or None

    async def resolve(self, text: str) -> Place:
        """Returns a resolved ``Place`` for ``text``.

        Raises:
            PlaceNotFoundError: If the text is empty, no geocoder is
                configured, the geocoder fails, or it returns no result with
                coordinates.
        """
        text = text.strip()
        if not text:
            raise PlaceNotFoundError("Location must not be empty.")

        parsed = parse_coordinates(text)
        if parsed is not None:
            logger.info("Parsed coordinates from text: %s", parsed)
            return Place(label=coordinate_label(parsed), coordinates=parsed)

        if self._maps is None:
            raise PlaceNotFoundError("No map provider token is configured.")

        try:
            results = await asyncio.to_thread(
                self._maps.geocode,
                text,
                components=_geocode_components(self._country),
            )
        except (
            googlemaps.exceptions.ApiError,
            googlemaps.exceptions.TransportError,
            googlemaps.exceptions.Timeout,
        ) as exc:
            logger.warning("Geocoding failed for %r: %s", text, exc)
            raise PlaceNotFoundError(f"Could not geocode location: {text!r}") from exc

        if not results:
            raise PlaceNotFoundError(f"Could not geocode location: {text!r}")

        top = results[0]
        coordinates = _result_coordinates(top)
        if coordinates is None:
            raise PlaceNotFoundError(f"Could not geocode location: {text!r}")

        place = Place(label=result_label(top) or text, coordinates=coordinates)
        logger.info("Geocoded %r to %s", text, place.coordinates)
        return place


# ---------------------------------------------------------------------------
# Typeahead
# ---------------------------------------------------------------------------


class SuggestionSearch:
    """Debounced, sequence-tagged typeahead over the geocoder.

    Args:
        maps_client: Google Maps client. With None every search returns an
            empty, non-superseded batch.
        debounce_s: Delay after the latest keystroke before querying.
        limit: Maximum suggestions returned per query.
        country: Optional ISO country code restricting results.
    """

    def __init__(
        self,
        maps_client: googlemaps.Client | None,
        *,
        debounce_s: float = 0.3,
        limit: int = SUGGESTION_LIMIT,
        country: str | None = None,
    ) -> None:
        self._maps = maps_client
        self._debounce_s = debounce_s
        self._limit = limit
        self._country = country or None
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    def _is_latest(self, field: str, seq: int) -> bool:
        return self._latest.get(field) == seq

    async def search(self, field: str, query: str) -> SuggestionBatch:
        seq = next(self._counter)
        self._latest[field] = seq

        query = query.strip()
        if len(query) < MIN_QUERY_LENGTH or self._maps is None:
            return SuggestionBatch()

        await asyncio.sleep(self._debounce_s)
        if not self._is_latest(field, seq):
            return SuggestionBatch(superseded=True)

        try:
            results = await asyncio.to_thread(
                self._maps.geocode,
                query,
                components=_geocode_components(self._country),
            )
        except (
            googlemaps.exceptions.ApiError,
            googlemaps.exceptions.TransportError,
            googlemaps.exceptions.Timeout,
        ) as exc:
            logger.warning("Suggestion lookup failed for %r: %s", query, exc)
            results = []

        if not self._is_latest(field, seq):
            logger.info("Dropping stale suggestions for %s (request %d)", field, seq)
            return SuggestionBatch(superseded=True)

        return SuggestionBatch(suggestions=self._to_suggestions(results or []))

    def _to_suggestions(self, results: list[dict[str, Any]]) -> list[Suggestion]:
        seen: set[str] = set()
        suggestions: list[Suggestion] = []
        for index, result in enumerate(results):
            coordinates = _result_coordinates(result)
            address = result_label(result)
            key = f"{coordinates or ''}|{address}"
            if key in seen:
                continue
            seen.add(key)
            name = _result_name(result)
            suggestions.append(
                Suggestion(
                    id=result.get("place_id") or f"result-{index}",
                    name=name or address,
                    address=address,
                    coordinates=coordinates,
                )
            )
            if len(suggestions) >= self._limit:
                break
        return suggestions
