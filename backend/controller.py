"""Form controller: owns the form state and runs the generate pipeline.

Status flow:
  load / reset        -> resolving-origin -> idle
  generate (invalid)  -> error, no provider calls
  generate (valid)    -> generating -> result-ready | error
  field edited        -> clears the error, leaves the field unresolved

Generate runs sequentially: self-parking resolution (silently falling back
to the chosen destination), route fetch, then the prose request. Every
failure ends the attempt with one user-visible message; nothing is retried.
A reset or a newer attempt supersedes one still in flight, and the
superseded attempt writes nothing back.
"""

import asyncio
import logging

from clipboard import ClipboardExporter
from errors import (
    ClipboardError,
    NarrativeDirectionsError,
    PlaceNotFoundError,
    RouteProviderError,
    ValidationError,
)
from map_links import build_map_links
from models import FormField, FormState, FormStatus, MapLink, Place, Suggestion
from narrative import NarrativeRequester
from places import PlaceResolver
from routing import NO_ROUTE_MESSAGE, RouteFetcher

logger = logging.getLogger(__name__)

SELECT_BOTH_MESSAGE = (
    "Please select both a starting point and destination from the suggestions."
)
GENERIC_ERROR_MESSAGE = "Something went wrong."
SELF_PARKING_PREFIX = "Directions to self-parking: "


class FormController:
    """Single in-memory form driven by user actions.

    Args:
        resolver: Resolves the default origin and the self-parking text.
        route_fetcher: Produces the maneuver list.
        narrator: Turns the maneuver list into prose.
        exporter: Copies the narrative and map links.
        default_origin: Address the origin field starts with and resets to.
        map_token_configured: When False the default origin is left
            unresolved without a geocoding attempt.
    """

    def __init__(
        self,
        *,
        resolver: PlaceResolver,
        route_fetcher: RouteFetcher,
        narrator: NarrativeRequester,
        exporter: ClipboardExporter,
        default_origin: str,
        map_token_configured: bool = True,
    ) -> None:
        self._resolver = resolver
        self._route_fetcher = route_fetcher
        self._narrator = narrator
        self._exporter = exporter
        self._default_origin = default_origin
        self._map_token_configured = map_token_configured

        self.status = FormStatus.RESOLVING_ORIGIN
        self.origin: Place | None = Place(label=default_origin)
        self.destination: Place | None = None
        self.self_parking = ""
        self.effective_destination: Place | None = None
        self.prose = ""
        self.error: str | None = None
        self.copied = False
        self._attempt = 0

    # -- Derived state ----------------------------------------------------

    @property
    def can_generate(self) -> bool:
        return (
            self.origin is not None
            and self.origin.resolved
            and self.destination is not None
            and self.destination.resolved
            and self.status not in (FormStatus.GENERATING, FormStatus.RESOLVING_ORIGIN)
        )

    @property
    def self_parking_notice(self) -> str:
        target = self.effective_destination
        if target is None or self.destination is None or target == self.destination:
            return ""
        return f"{SELF_PARKING_PREFIX}{target.label}"

    def map_links(self) -> list[MapLink]:
        return build_map_links(self.origin, self.effective_destination or self.destination)

    def snapshot(self) -> FormState:
        return FormState(
            status=self.status,
            origin=self.origin,
            destination=self.destination,
            self_parking=self.self_parking,
            effective_destination=self.effective_destination,
            self_parking_notice=self.self_parking_notice,
            prose=self.prose,
            error=self.error,
            copied=self.copied,
            can_generate=self.can_generate,
            map_links=self.map_links(),
        )

    # -- Origin -------------------------------------------------------------

    async def resolve_origin(self) -> FormState:
        """Resolves the default origin; keeps its label-only form on failure."""
        self.status = FormStatus.RESOLVING_ORIGIN
        self.origin = Place(label=self._default_origin)
        try:
            if not self._map_token_configured:
                logger.info("No map token configured; origin left unresolved")
                return self.snapshot()
            self.origin = await self._resolver.resolve(self._default_origin)
            logger.info("Default origin resolved to %s", self.origin.coordinates)
        except PlaceNotFoundError as exc:
            logger.warning("Default origin could not be resolved: %s", exc)
        finally:
            self.status = FormStatus.IDLE
        return self.snapshot()

    # -- Field input ----------------------------------------------------------

    def _clear_error(self) -> None:
        self.error = None
        self.copied = False
        if self.status == FormStatus.ERROR:
            self.status = FormStatus.IDLE

    def edit(self, field: FormField, text: str) -> FormState:
        """Records typed text; the field stays unresolved until a suggestion is picked."""
        self._clear_error()
        if field == FormField.SELF_PARKING:
            self.self_parking = text
            return self.snapshot()

        place = Place(label=text) if text.strip() else None
        if field == FormField.ORIGIN:
            self.origin = place
        else:
            self.destination = place
        return self.snapshot()

    def select(self, field: FormField, suggestion: Suggestion) -> FormState:
        """Records the suggestion the user picked as a resolved place."""
        if field == FormField.SELF_PARKING:
            raise ValueError("self_parking is free text; it has no suggestions.")
        self._clear_error()
        place = suggestion.to_place()
        if field == FormField.ORIGIN:
            self.origin = place
        else:
            self.destination = place
        return self.snapshot()

    # -- Generate -------------------------------------------------------------

    def _validate(self) -> None:
        if not (
            self.origin is not None
            and self.origin.resolved
            and self.destination is not None
            and self.destination.resolved
        ):
            raise ValidationError(SELECT_BOTH_MESSAGE)

    async def _resolve_effective_destination(self, destination: Place, text: str) -> Place:
        if not text:
            return destination
        try:
            return await self._resolver.resolve(text)
        except PlaceNotFoundError as exc:
            logger.warning("Self-parking %r not resolved, using destination: %s", text, exc)
            return destination

    def _superseded(self, attempt: int) -> bool:
        if attempt != self._attempt:
            logger.info("Dropping result of superseded generate attempt %d", attempt)
            return True
        return False

    async def generate(self) -> FormState:
        """Runs resolve -> route -> prose and records the outcome.

        The attempt works on the origin, destination and self-parking text as
        they were when it started. A reset or a newer attempt supersedes it,
        and a superseded attempt leaves the form untouched.
        """
        if self.status == FormStatus.GENERATING:
            return self.snapshot()

        try:
            self._validate()
        except ValidationError as exc:
            self.error = str(exc)
            self.status = FormStatus.ERROR
            return self.snapshot()

        self._attempt += 1
        attempt = self._attempt
        origin, destination = self.origin, self.destination
        self_parking = self.self_parking.strip()

        self.status = FormStatus.GENERATING
        self.error = None
        self.copied = False
        self.prose = ""
        self.effective_destination = None

        error = None
        try:
            target = await self._resolve_effective_destination(destination, self_parking)
            if self._superseded(attempt):
                return self.snapshot()
            self.effective_destination = target

            maneuvers = await self._route_fetcher.fetch_maneuvers(
                origin.coordinates, target.coordinates
            )
            if self._superseded(attempt):
                return self.snapshot()
            if not maneuvers:
                raise RouteProviderError(NO_ROUTE_MESSAGE)

            prose = await self._narrator.request(maneuvers)
            if self._superseded(attempt):
                return self.snapshot()
            self.prose = prose
            self.status = FormStatus.RESULT_READY
            logger.info("Narrative ready: %d chars", len(self.prose))
        except NarrativeDirectionsError as exc:
            error = str(exc) or GENERIC_ERROR_MESSAGE
        except Exception:  # noqa: BLE001
            logger.exception("generate failed")
            error = GENERIC_ERROR_MESSAGE

        if error is not None and not self._superseded(attempt):
            self.error = error
            self.status = FormStatus.ERROR
        if attempt == self._attempt and self.status == FormStatus.GENERATING:
            self.status = FormStatus.IDLE
        return self.snapshot()

    # -- Reset ------------------------------------------------------------------

    async def reset(self) -> FormState:
        """Clears everything but the origin, then re-resolves the default origin.

        Any generate attempt still in flight is superseded.
        """
        self._attempt += 1
        self.destination = None
        self.self_parking = ""
        self.effective_destination = None
        self.prose = ""
        self.error = None
        self.copied = False
        return await self.resolve_origin()

    # -- Copy -------------------------------------------------------------------

    async def _copy(self, action) -> bool:
        # Clipboard commands block, so they run off the event loop.
        try:
            self.copied = await asyncio.to_thread(action)
        except ClipboardError as exc:
            self.copied = False
            self.error = str(exc)
        else:
            if self.copied:
                self.error = None
        return self.copied

    async def copy_narrative(self) -> bool:
        prose = self.prose
        return await self._copy(lambda: self._exporter.copy_narrative(prose))

    async def copy_links(self) -> bool:
        links = self.map_links()
        return await self._copy(lambda: self._exporter.copy_links(links))
