"""Client for the prose backend endpoint.

Posts the maneuver list to ``/api/generate-prose`` and maps the reply: a
2xx ``{"prose": ...}`` body becomes the returned string, anything else
becomes a ``NarrativeBackendError`` carrying the backend's own ``error``
message verbatim.
"""

import logging

import httpx

from errors import NarrativeBackendError

logger = logging.getLogger(__name__)

GENERATE_PROSE_PATH = "/api/generate-prose"
FALLBACK_ERROR = "Failed to generate narrative"


class NarrativeRequester:
    """Requests prose for a maneuver list from the backend.

    Args:
        base_url: Root URL of the backend serving ``/api/generate-prose``.
        timeout_s: Total request timeout in seconds.
        transport: Optional httpx transport; tests pass an ``ASGITransport``
            or ``MockTransport`` here.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    async def request(self, maneuvers: list[str]) -> str:
        """Returns the prose generated for ``maneuvers``.

        Raises:
            NarrativeBackendError: If the backend is unreachable or answers
                with a non-2xx status.
        """
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_s,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    GENERATE_PROSE_PATH, json={"maneuvers": list(maneuvers)}
                )
            except httpx.HTTPError as exc:
                logger.error("Prose backend unreachable: %s", exc)
                raise NarrativeBackendError(
                    f"Could not reach the narrative service: {exc}"
                ) from exc

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            message = data.get("error") or FALLBACK_ERROR
            logger.warning(
                "Prose backend returned %d: %s", response.status_code, message
            )
            raise NarrativeBackendError(message, status_code=response.status_code)

        return data.get("prose") or ""
