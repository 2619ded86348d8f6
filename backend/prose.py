"""Turns an ordered list of driving maneuvers into one paragraph of prose.

Two interchangeable engines honour the same instruction:
  openai     : chat completion on ``gpt-4o-mini`` (the default).
  anthropic  : Claude message on a Haiku model.

Both send the maneuvers joined with newlines under a fixed system instruction
that asks for a concise, factual, single flowing paragraph with no lists,
bullets, or line breaks, and both return the stripped model text unchanged.
"""

import logging

import anthropic
import openai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from config import DEFAULT_ANTHROPIC_PROSE_MODEL, DEFAULT_OPENAI_PROSE_MODEL
from errors import NarrativeBackendError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Provide a concise, factual, and professional narrative of these "
    "directions. Avoid flowery language or conversational filler. Focus only "
    "on the sequence of roads and maneuvers. Write as a single flowing "
    "paragraph of prose. Do not use numbered lists, bullet points, or line "
    "breaks between steps."
)

_USER_PROMPT = "Convert these turn-by-turn directions into friendly prose:\n\n{maneuvers}"

TEMPERATURE = 0.7
CLAUDE_MAX_TOKENS = 1024


def build_user_prompt(maneuvers: list[str]) -> str:
    return _USER_PROMPT.format(maneuvers="\n".join(maneuvers))


async def generate(
    maneuvers: list[str],
    *,
    api_key: str = "",
    model: str = DEFAULT_OPENAI_PROSE_MODEL,
    client: AsyncOpenAI | None = None,
) -> str:
    """Generates the prose paragraph with an OpenAI chat completion.

    Args:
        maneuvers: Non-empty, ordered maneuver instructions.
        api_key: OpenAI key used when no client is given.
        model: Chat model identifier.
        client: Optional pre-constructed ``AsyncOpenAI`` client.

    Returns:
        The model's text with surrounding whitespace stripped; empty if the
        model returned no content.

    Raises:
        NarrativeBackendError: On any API-level failure, chained to the
            underlying ``openai.OpenAIError``.
    """
    _client = client or AsyncOpenAI(api_key=api_key)

    logger.info("Prose: generating from %d maneuvers with %s", len(maneuvers), model)
    try:
        response = await _client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(maneuvers)},
            ],
            temperature=TEMPERATURE,
        )
    except openai.OpenAIError as exc:
        raise NarrativeBackendError(
            str(exc), status_code=getattr(exc, "status_code", None)
        ) from exc
    prose = ""
    if response.choices:
        prose = (response.choices[0].message.content or "").strip()
    logger.info("Prose complete, %d chars", len(prose))
    return prose


async def generate_with_claude(
    maneuvers: list[str],
    *,
    api_key: str = "",
    model: str = DEFAULT_ANTHROPIC_PROSE_MODEL,
    client: AsyncAnthropic | None = None,
) -> str:
    """Generates the prose paragraph with a Claude message.

    Same contract as ``generate``.

    Raises:
        NarrativeBackendError: On any API-level failure, chained to the
            underlying ``anthropic.AnthropicError``.
    """
    _client = client or AsyncAnthropic(api_key=api_key)

    logger.info("Prose: generating from %d maneuvers with %s", len(maneuvers), model)
    try:
        response = await _client.messages.create(
            model=model,
            max_tokens=CLAUDE_MAX_TOKENS,
            system=SYSTEM_PROMPT,
            temperature=TEMPERATURE,
            messages=[{"role": "user", "content": build_user_prompt(maneuvers)}],
        )
    except anthropic.AnthropicError as exc:
        raise NarrativeBackendError(
            str(exc), status_code=getattr(exc, "status_code", None)
        ) from exc
    prose = "".join(
        getattr(block, "text", "") for block in response.content
    ).strip()
    logger.info("Prose complete, %d chars", len(prose))
    return prose
