"""Runtime configuration for the narrative directions backend.

All settings are read once from the environment (after loading
``.env.local`` and ``.env`` from the backend folder) into an immutable
``Settings`` value that is handed to each component at construction.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_ORIGIN = "55 W. Church St., Orlando, FL 32801"
DEFAULT_NARRATIVE_BACKEND_URL = "http://127.0.0.1:8000"
DEFAULT_OPENAI_PROSE_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_PROSE_MODEL = "claude-haiku-4-5-20251001"

PROSE_PROVIDERS = ("openai", "anthropic")

_BACKEND_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Settings:
    google_maps_api_key: str = ""
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    prose_provider: str = "openai"
    openai_prose_model: str = DEFAULT_OPENAI_PROSE_MODEL
    anthropic_prose_model: str = DEFAULT_ANTHROPIC_PROSE_MODEL
    narrative_backend_url: str = DEFAULT_NARRATIVE_BACKEND_URL
    default_origin: str = DEFAULT_ORIGIN
    restrict_country: str = ""
    suggestion_debounce_ms: int = 300
    http_timeout_s: float = 30.0

    @property
    def has_map_token(self) -> bool:
        return bool(self.google_maps_api_key)

    @property
    def prose_api_key(self) -> str:
        """Credential for whichever prose engine is selected."""
        if self.prose_provider == "anthropic":
            return self.anthropic_api_key
        return self.openai_api_key

    @property
    def prose_api_key_name(self) -> str:
        if self.prose_provider == "anthropic":
            return "ANTHROPIC_API_KEY"
        return "OPENAI_API_KEY"


def load_env_files(directory: Path = _BACKEND_DIR) -> None:
    """Loads ``.env.local`` then ``.env``; variables already set are kept."""
    for name in (".env.local", ".env"):
        load_dotenv(directory / name, override=False)


def load_settings() -> Settings:
    """Builds ``Settings`` from the current environment.

    Raises:
        ValueError: If ``PROSE_PROVIDER`` names an unknown engine or a
            numeric variable cannot be parsed.
    """
    load_env_files()

    provider = os.environ.get("PROSE_PROVIDER", "openai").strip().lower() or "openai"
    if provider not in PROSE_PROVIDERS:
        raise ValueError(
            f"PROSE_PROVIDER must be one of {', '.join(PROSE_PROVIDERS)}; got {provider!r}"
        )

    return Settings(
        google_maps_api_key=os.environ.get("GOOGLE_MAPS_API_KEY", "").strip(),
        openai_api_key=os.environ.get("OPENAI_API_KEY", "").strip(),
        anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY", "").strip(),
        prose_provider=provider,
        openai_prose_model=os.environ.get(
            "PROSE_MODEL_OPENAI", DEFAULT_OPENAI_PROSE_MODEL
        ).strip(),
        anthropic_prose_model=os.environ.get(
            "PROSE_MODEL_ANTHROPIC", DEFAULT_ANTHROPIC_PROSE_MODEL
        ).strip(),
        narrative_backend_url=os.environ.get(
            "NARRATIVE_BACKEND_URL", DEFAULT_NARRATIVE_BACKEND_URL
        ).strip().rstrip("/"),
        default_origin=os.environ.get("DEFAULT_ORIGIN", DEFAULT_ORIGIN).strip()
        or DEFAULT_ORIGIN,
        restrict_country=os.environ.get("RESTRICT_COUNTRY", "").strip().upper(),
        suggestion_debounce_ms=int(os.environ.get("SUGGESTION_DEBOUNCE_MS", "300")),
        http_timeout_s=float(os.environ.get("HTTP_TIMEOUT_S", "30")),
    )
