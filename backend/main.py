"""Narrative Directions backend service.

Exposes the prose backend (maneuver list in, one paragraph of prose out),
debounced address suggestions, and the single form controller that turns an
origin and destination into narrated driving directions.
"""

import asyncio
import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

import prose
from clipboard import ClipboardExporter
from config import Settings, load_settings
from controller import FormController
from models import (
    ErrorResponse,
    FieldText,
    FormField,
    FormState,
    GenerateProseResponse,
    Suggestion,
    SuggestionBatch,
)
from narrative import NarrativeRequester
from places import PlaceResolver, SuggestionSearch, build_maps_client
from routing import RouteFetcher

logging.basicConfig(level=logging.INFO)

app = FastAPI(
    title="Narrative Directions Backend",
    description="Turns turn-by-turn driving directions into a narrated paragraph.",
    version="0.1.0",
)

_controller: FormController | None = None
_controller_lock = asyncio.Lock()
_suggestion_search: SuggestionSearch | None = None


@lru_cache
def get_settings() -> Settings:
    return load_settings()


def build_controller(settings: Settings) -> FormController:
    """Wires a form controller from ``settings``."""
    maps_client = build_maps_client(settings.google_maps_api_key)
    return FormController(
        resolver=PlaceResolver(maps_client, country=settings.restrict_country),
        route_fetcher=RouteFetcher(maps_client),
        narrator=NarrativeRequester(
            settings.narrative_backend_url, timeout_s=settings.http_timeout_s
        ),
        exporter=ClipboardExporter(),
        default_origin=settings.default_origin,
        map_token_configured=maps_client is not None,
    )


async def get_controller(
    settings: Settings = Depends(get_settings),
) -> FormController:
    """Returns the process-wide controller, resolving the origin on first use."""
    global _controller
    if _controller is None:
        async with _controller_lock:
            if _controller is None:
                controller = build_controller(settings)
                await controller.resolve_origin()
                _controller = controller
    return _controller


def get_suggestion_search(
    settings: Settings = Depends(get_settings),
) -> SuggestionSearch:
    global _suggestion_search
    if _suggestion_search is None:
        _suggestion_search = SuggestionSearch(
            build_maps_client(settings.google_maps_api_key),
            debounce_s=settings.suggestion_debounce_ms / 1000,
            country=settings.restrict_country,
        )
    return _suggestion_search


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint used to verify the service is live."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Prose backend
# ---------------------------------------------------------------------------


@app.post(
    "/api/generate-prose",
    response_model=GenerateProseResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate_prose(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """Converts an ordered maneuver list into a single paragraph of prose.

    Args:
        request: JSON body ``{"maneuvers": [str, ...]}``.

    Returns:
        ``{"prose": str}`` on success.

    Errors (all as ``{"error": str}``):
        500: If the selected prose engine's API key is not configured.
        400: If ``maneuvers`` is missing, not a list of strings, or empty.
        500: If the upstream generation call fails; carries its message.
    """
    if not settings.prose_api_key:
        return _error(500, f"{settings.prose_api_key_name} is not configured")

    try:
        body = await request.json()
    except ValueError:
        body = None
    maneuvers = body.get("maneuvers") if isinstance(body, dict) else None
    if (
        not isinstance(maneuvers, list)
        or not maneuvers
        or not all(isinstance(m, str) for m in maneuvers)
    ):
        return _error(400, "Maneuvers are required")

    try:
        if settings.prose_provider == "anthropic":
            text = await prose.generate_with_claude(
                maneuvers,
                api_key=settings.anthropic_api_key,
                model=settings.anthropic_prose_model,
            )
        else:
            text = await prose.generate(
                maneuvers,
                api_key=settings.openai_api_key,
                model=settings.openai_prose_model,
            )
    except Exception as exc:  # noqa: BLE001
        logging.exception("prose generation failed")
        return _error(500, str(exc) or "Failed to generate prose")

    return GenerateProseResponse(prose=text)


# ---------------------------------------------------------------------------
# Typeahead
# ---------------------------------------------------------------------------


@app.get("/api/suggestions", response_model=SuggestionBatch)
async def suggestions(
    field: FormField,
    q: str = "",
    search: SuggestionSearch = Depends(get_suggestion_search),
) -> SuggestionBatch:
    """Returns address suggestions for the latest text typed into ``field``.

    A response marked ``superseded`` belongs to an older keystroke and
    should be ignored by the caller.
    """
    if field == FormField.SELF_PARKING:
        raise HTTPException(
            status_code=400,
            detail="self_parking does not offer suggestions.",
        )
    return await search.search(field.value, q)


# ---------------------------------------------------------------------------
# Form controller
# ---------------------------------------------------------------------------


@app.get("/api/form", response_model=FormState)
async def form_state(
    controller: FormController = Depends(get_controller),
) -> FormState:
    return controller.snapshot()


@app.put("/api/form/{field}", response_model=FormState)
async def edit_field(
    field: FormField,
    body: FieldText,
    controller: FormController = Depends(get_controller),
) -> FormState:
    """Records text typed into a field; origin/destination become unresolved."""
    return controller.edit(field, body.text)


@app.post("/api/form/{field}/select", response_model=FormState)
async def select_suggestion(
    field: FormField,
    suggestion: Suggestion,
    controller: FormController = Depends(get_controller),
) -> FormState:
    """Records the suggestion picked for the origin or destination."""
    try:
        return controller.select(field, suggestion)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/api/form/generate", response_model=FormState)
async def generate(
    controller: FormController = Depends(get_controller),
) -> FormState:
    """Generates the narrative; failures are reported in the returned state."""
    return await controller.generate()


@app.post("/api/form/reset", response_model=FormState)
async def reset(
    controller: FormController = Depends(get_controller),
) -> FormState:
    return await controller.reset()


@app.post("/api/form/copy/narrative", response_model=FormState)
async def copy_narrative(
    controller: FormController = Depends(get_controller),
) -> FormState:
    await controller.copy_narrative()
    return controller.snapshot()


@app.post("/api/form/copy/links", response_model=FormState)
async def copy_links(
    controller: FormController = Depends(get_controller),
) -> FormState:
    await controller.copy_links()
    return controller.snapshot()
