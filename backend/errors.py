"""Exception taxonomy for the narrative directions service.

Every component translates its third-party failures into one of these
classes so the form controller can turn any failure into a single
user-visible message.
"""


class NarrativeDirectionsError(Exception):
    """Base class for all failures the form controller knows how to report."""


class ValidationError(NarrativeDirectionsError):
    """Origin or destination was not selected before generating."""


class PlaceNotFoundError(NarrativeDirectionsError):
    """Geocoding produced no usable place for the given text."""


class RouteProviderError(NarrativeDirectionsError):
    """The directions call failed or produced no maneuvers."""


class NarrativeBackendError(NarrativeDirectionsError):
    """The prose backend rejected the request or could not be reached.

    ``status_code`` is the backend's HTTP status, or ``None`` when no
    response was received.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClipboardError(NarrativeDirectionsError):
    """Every clipboard strategy failed."""
