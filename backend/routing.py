"""Driving route lookup reduced to an ordered list of maneuver instructions.

The Directions API returns routes made of legs made of steps; each step
carries its instruction as HTML. ``RouteFetcher`` keeps the first route,
walks its legs and steps in order, and returns the plain-text instructions.
Steps without an instruction are skipped without disturbing the order.

Google Maps Python client (googlemaps) handles the Directions API call.
"""

import asyncio
import html
import logging
import re
from typing import Any

import googlemaps
import googlemaps.exceptions

from errors import RouteProviderError

logger = logging.getLogger(__name__)

NO_ROUTE_MESSAGE = "No route found between these locations."

# Secondary notes ("Destination will be on the right") are wrapped in <div>.
_DIV_OPEN_RE = re.compile(r"<div[^>]*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")


def clean_instruction(raw: str) -> str:
    """Converts a step's HTML instruction to a single line of plain text."""
    text = _DIV_OPEN_RE.sub(" ", raw or "")
    text = _TAG_RE.sub("", text)
    text = html.unescape(text)
    return " ".join(text.split())


def extract_maneuvers(routes: list[dict[str, Any]]) -> list[str]:
    """Returns the first route's step instructions in traversal order."""
    maneuvers: list[str] = []
    if not routes:
        return maneuvers

    for leg in routes[0].get("legs") or []:
        for step in leg.get("steps") or []:
            instruction = clean_instruction(step.get("html_instructions", ""))
            if instruction:
                maneuvers.append(instruction)
    return maneuvers


def _latlng(coordinates: tuple[float, float]) -> str:
    lng, lat = coordinates
    return f"{lat},{lng}"


class RouteFetcher:
    """Fetches driving maneuvers between two coordinate pairs.

    Args:
        maps_client: Google Maps client. When None every fetch fails with
            ``RouteProviderError``.
    """

    def __init__(self, maps_client: googlemaps.Client | None) -> None:
        self._maps = maps_client

    async def fetch_maneuvers(
        self,
        origin: tuple[float, float],
        destination: tuple[float, float],
    ) -> list[str]:
        """Returns the ordered maneuver list from ``origin`` to ``destination``.

        Both arguments are ``(longitude, latitude)``. An empty list means the
        provider found no route; that is for the caller to report.

        Raises:
            RouteProviderError: If no client is configured or the provider
                call fails. The message is the provider's own message when it
                gave one, otherwise the HTTP status.
        """
        if self._maps is None:
            raise RouteProviderError("No map provider token is configured.")

        logger.info("Requesting driving directions %s -> %s", origin, destination)
        try:
            routes = await asyncio.to_thread(
                self._maps.directions,
                origin=_latlng(origin),
                destination=_latlng(destination),
                mode="driving",
                alternatives=False,
            )
        except googlemaps.exceptions.ApiError as exc:
            logger.error("Directions API error: %s", exc)
            raise RouteProviderError(
                exc.message or f"Directions API error: {exc.status}"
            ) from exc
        except googlemaps.exceptions.HTTPError as exc:
            logger.error("Directions API HTTP error: %s", exc)
            raise RouteProviderError(
                f"Directions API error: {exc.status_code}"
            ) from exc
        except (
            googlemaps.exceptions.TransportError,
            googlemaps.exceptions.Timeout,
        ) as exc:
            logger.error("Directions API unreachable: %s", exc)
            raise RouteProviderError(f"Directions API error: {exc}") from exc

        maneuvers = extract_maneuvers(routes or [])
        logger.info("Route fetched with %d maneuvers", len(maneuvers))
        return maneuvers
