"""Pydantic models shared by the narrative directions backend."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Place(BaseModel):
    """A named location, optionally resolved to coordinates.

    ``coordinates`` is ``(longitude, latitude)``. A place without coordinates
    is unresolved and cannot be routed.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    coordinates: tuple[float, float] | None = None

    @property
    def resolved(self) -> bool:
        return self.coordinates is not None

    @property
    def latitude(self) -> float | None:
        return self.coordinates[1] if self.coordinates else None

    @property
    def longitude(self) -> float | None:
        return self.coordinates[0] if self.coordinates else None


class Suggestion(BaseModel):
    """One typeahead candidate returned by the geocoder."""

    id: str
    name: str
    address: str
    coordinates: tuple[float, float] | None = None

    def to_place(self) -> Place:
        """The place a user gets by picking this suggestion."""
        return Place(label=self.address or self.name, coordinates=self.coordinates)


class SuggestionBatch(BaseModel):
    """Response from the /api/suggestions endpoint.

    ``superseded`` is True when a newer query for the same field was issued
    before this one finished; its suggestions are then always empty.
    """

    superseded: bool = False
    suggestions: list[Suggestion] = Field(default_factory=list)


class MapLink(BaseModel):
    """A named deep link into a map application."""

    name: str
    url: str


# ---------------------------------------------------------------------------
# Prose backend
# ---------------------------------------------------------------------------


class GenerateProseResponse(BaseModel):
    """Successful body of POST /api/generate-prose."""

    prose: str


class ErrorResponse(BaseModel):
    """Failure body of POST /api/generate-prose."""

    error: str


# ---------------------------------------------------------------------------
# Form controller
# ---------------------------------------------------------------------------


class FormField(str, Enum):
    ORIGIN = "origin"
    DESTINATION = "destination"
    SELF_PARKING = "self_parking"


class FormStatus(str, Enum):
    IDLE = "idle"
    RESOLVING_ORIGIN = "resolving-origin"
    GENERATING = "generating"
    RESULT_READY = "result-ready"
    ERROR = "error"


class FieldText(BaseModel):
    """Request body for PUT /api/form/{field}."""

    text: str = ""


class FormState(BaseModel):
    """Snapshot of everything a presentation layer needs to render the form."""

    status: FormStatus
    origin: Place | None = None
    destination: Place | None = None
    self_parking: str = ""
    effective_destination: Place | None = None
    self_parking_notice: str = ""
    prose: str = ""
    error: str | None = None
    copied: bool = False
    can_generate: bool = False
    map_links: list[MapLink] = Field(default_factory=list)
