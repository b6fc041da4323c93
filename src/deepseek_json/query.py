"""Single request/response path used by query and interactive modes."""

from __future__ import annotations

import logging
from datetime import datetime

from deepseek_json.api.client import ChatEngine
from deepseek_json.api.errors import ChatError
from deepseek_json.api.models import (
    ChatMessage,
    ChatRequest,
    ParseMode,
    Role,
    StructuredArtifact,
)
from deepseek_json.api.parser import parse_response
from deepseek_json.cancellation import CancellationSource
from deepseek_json.config import Settings
from deepseek_json.prompts import SINGLE_QUERY_SYSTEM_PROMPT, build_single_query_prompt

logger = logging.getLogger(__name__)


def build_single_query_request(
    settings: Settings,
    text: str,
    *,
    now: datetime | None = None,
) -> ChatRequest:
    return ChatRequest(
        model=settings.model,
        messages=(
            ChatMessage(role=Role.SYSTEM, content=SINGLE_QUERY_SYSTEM_PROMPT),
            ChatMessage(role=Role.USER, content=build_single_query_prompt(text, now=now)),
        ),
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
    )


async def run_single_query(
    engine: ChatEngine,
    settings: Settings,
    text: str,
    cancellation: CancellationSource,
    *,
    now: datetime | None = None,
) -> StructuredArtifact:
    """Send one question and decode the flat structured answer.

    Raises `ChatError`; a clarifying batch or final artifact in reply is a
    PARSE_ERROR here since this path has no dialogue to continue.
    """

    request = build_single_query_request(settings, text, now=now)
    logger.debug("Sending single query to model %s", settings.model)
    response = await engine.send(request, cancellation)
    parsed = parse_response(response.raw_content, ParseMode.SINGLE_QUERY)
    if not isinstance(parsed, StructuredArtifact):
        raise ChatError.parse(
            f"Expected a structured artifact, got {type(parsed).__name__}",
            raw=response.raw_content,
        )
    return parsed
