"""Tests for places.py.

All Google Maps API calls are mocked. No network access occurs during these
tests.
"""

import asyncio

import googlemaps.exceptions
import pytest

from errors import PlaceNotFoundError
from models import Place
from places import PlaceResolver, SuggestionSearch, result_label

# ---------------------------------------------------------------------------
# Fixtures and helpers
# ---------------------------------------------------------------------------


def _geocode_result(
    lat=28.5421,
    lng=-81.3790,
    formatted_address="55 W Church St, Orlando, FL 32801, USA",
    components=None,
    place_id="place-1",
):
    result = {
        "place_id": place_id,
        "geometry": {"location": {"lat": lat, "lng": lng}},
        "address_components": components or [],
    }
    if formatted_address is not None:
        result["formatted_address"] = formatted_address
    return result


class _MockMapsClient:
    """Minimal mock of googlemaps.Client for testing."""

    def __init__(self, geocode_result=None, error=None):
        self._geocode = (
            geocode_result if geocode_result is not None else [_geocode_result()]
        )
        self._error = error
        self.calls = []

    def geocode(self, address, components=None):
        self.calls.append({"address": address, "components": components})
        if self._error is not None:
            raise self._error
        return self._geocode


# ---------------------------------------------------------------------------
# result_label
# ---------------------------------------------------------------------------


def test_label_prefers_formatted_address():
    assert result_label(_geocode_result()) == "55 W Church St, Orlando, FL 32801, USA"


def test_label_falls_back_to_name_and_place():
    result = _geocode_result(
        formatted_address=None,
        components=[
            {"long_name": "Amway Center", "short_name": "Amway Center",
             "types": ["point_of_interest", "establishment"]},
            {"long_name": "Orlando", "short_name": "Orlando",
             "types": ["locality", "political"]},
            {"long_name": "Florida", "short_name": "FL",
             "types": ["administrative_area_level_1", "political"]},
        ],
    )
    assert result_label(result) == "Amway Center, Orlando, FL"


def test_label_uses_whichever_part_is_present():
    only_place = _geocode_result(
        formatted_address="",
        components=[
            {"long_name": "Orlando", "short_name": "Orlando", "types": ["locality"]},
        ],
    )
    assert result_label(only_place) == "Orlando"


def test_label_empty_when_nothing_usable():
    assert result_label(_geocode_result(formatted_address=None)) == ""


# ---------------------------------------------------------------------------
# PlaceResolver
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_resolve_parses_coordinates_without_api_call():
    maps = _MockMapsClient()
    resolver = PlaceResolver(maps)

    place = await resolver.resolve("https://maps.google.com/@28.5421,-81.3790,15z")

    assert place == Place(label="28.542100, -81.379000", coordinates=(-81.379, 28.5421))
    assert maps.calls == []


@pytest.mark.asyncio
async def test_resolve_coordinates_without_maps_client():
    resolver = PlaceResolver(None)
    place = await resolver.resolve("28.5421, -81.3790")
    assert place.resolved


@pytest.mark.asyncio
async def test_resolve_geocodes_address():
    maps = _MockMapsClient()
    resolver = PlaceResolver(maps)

    place = await resolver.resolve("55 W. Church St., Orlando, FL 32801")

    assert place.label == "55 W Church St, Orlando, FL 32801, USA"
    assert place.coordinates == (-81.379, 28.5421)
    assert maps.calls[0]["components"] is None


@pytest.mark.asyncio
async def test_resolve_applies_country_restriction():
    maps = _MockMapsClient()
    resolver = PlaceResolver(maps, country="US")
    await resolver.resolve("Church Street Station")
    assert maps.calls[0]["components"] == {"country": "US"}


@pytest.mark.asyncio
async def test_resolve_falls_back_to_input_text_for_label():
    maps = _MockMapsClient(geocode_result=[_geocode_result(formatted_address=None)])
    resolver = PlaceResolver(maps)
    place = await resolver.resolve("Lake Eola")
    assert place.label == "Lake Eola"


@pytest.mark.asyncio
async def test_resolve_raises_when_no_results():
    resolver = PlaceResolver(_MockMapsClient(geocode_result=[]))
    with pytest.raises(PlaceNotFoundError, match="Could not geocode"):
        await resolver.resolve("Nonexistent Place XYZ")


@pytest.mark.asyncio
async def test_resolve_raises_when_result_lacks_coordinates():
    maps = _MockMapsClient(geocode_result=[{"formatted_address": "Somewhere"}])
    with pytest.raises(PlaceNotFoundError):
        await PlaceResolver(maps).resolve("Somewhere")


@pytest.mark.asyncio
async def test_resolve_translates_provider_errors():
    maps = _MockMapsClient(error=googlemaps.exceptions.ApiError("REQUEST_DENIED"))
    with pytest.raises(PlaceNotFoundError):
        await PlaceResolver(maps).resolve("Orlando")


@pytest.mark.asyncio
async def test_resolve_without_client_raises_for_address():
    with pytest.raises(PlaceNotFoundError, match="token"):
        await PlaceResolver(None).resolve("Orlando")


@pytest.mark.asyncio
async def test_resolve_rejects_empty_text():
    with pytest.raises(PlaceNotFoundError, match="must not be empty"):
        await PlaceResolver(_MockMapsClient()).resolve("   ")


# ---------------------------------------------------------------------------
# SuggestionSearch
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_suggestions_skip_short_queries():
    maps = _MockMapsClient()
    search = SuggestionSearch(maps, debounce_s=0)
    batch = await search.search("origin", "ab")
    assert batch.suggestions == []
    assert not batch.superseded
    assert maps.calls == []


@pytest.mark.asyncio
async def test_suggestions_dedupe_and_limit():
    duplicate = _geocode_result()
    results = [duplicate, dict(duplicate, place_id="place-dup")] + [
        _geocode_result(lat=28.0 + i, formatted_address=f"Address {i}", place_id=f"p{i}")
        for i in range(10)
    ]
    search = SuggestionSearch(_MockMapsClient(geocode_result=results), debounce_s=0, limit=5)

    batch = await search.search("destination", "Orlando")

    assert len(batch.suggestions) == 5
    assert batch.suggestions[0].address == "55 W Church St, Orlando, FL 32801, USA"
    assert batch.suggestions[1].address == "Address 0"
    assert batch.suggestions[0].to_place().resolved


@pytest.mark.asyncio
async def test_newer_keystroke_supersedes_older_query():
    maps = _MockMapsClient()
    search = SuggestionSearch(maps, debounce_s=0.05)

    older, newer = await asyncio.gather(
        search.search("destination", "Orla"),
        search.search("destination", "Orlando"),
    )

    assert older.superseded
    assert older.suggestions == []
    assert not newer.superseded
    assert len(newer.suggestions) == 1
    assert [call["address"] for call in maps.calls] == ["Orlando"]


@pytest.mark.asyncio
async def test_fields_are_sequenced_independently():
    search = SuggestionSearch(_MockMapsClient(), debounce_s=0.01)

    origin, destination = await asyncio.gather(
        search.search("origin", "Church St"),
        search.search("destination", "Orlando"),
    )

    assert not origin.superseded
    assert not destination.superseded


@pytest.mark.asyncio
async def test_slow_stale_response_is_dropped():
    """A response that lands after a newer query was issued is discarded."""

    class _SlowFirstMaps(_MockMapsClient):
        def __init__(self, search_ref):
            super().__init__()
            self._search_ref = search_ref

        def geocode(self, address, components=None):
            if address == "Orla":
                # A newer keystroke arrives while this request is in flight.
                self._search_ref["search"]._latest["destination"] += 1
            return super().geocode(address, components)

    ref = {}
    search = SuggestionSearch(_SlowFirstMaps(ref), debounce_s=0)
    ref["search"] = search

    batch = await search.search("destination", "Orla")

    assert batch.superseded
    assert batch.suggestions == []


@pytest.mark.asyncio
async def test_suggestion_provider_failure_yields_empty_list():
    maps = _MockMapsClient(error=googlemaps.exceptions.Timeout())
    batch = await SuggestionSearch(maps, debounce_s=0).search("origin", "Orlando")
    assert batch.suggestions == []
    assert not batch.superseded
