"""Async Anthropic client wrapper."""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from nova.config import settings
from nova.llm.models import ModelManager

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


async def complete_text(
    messages: list[dict[str, Any]],
    *,
    system: str | None = None,
    model: str | None = None,
    max_tokens: int = 1024,
) -> str:
    """Single-shot Claude call: no tools, no streaming.

    Returns the concatenated text blocks of the response (possibly empty).
    SDK errors propagate to the caller.
    """
    client = _get_client()
    kwargs: dict[str, Any] = {
        "model": model or ModelManager.get().chat_model,
        "max_tokens": max_tokens,
        "messages": messages,
    }
    if system is not None:
        kwargs["system"] = system
    response = await client.messages.create(**kwargs)
    text = "".join(
        block.text for block in response.content if getattr(block, "type", "text") == "text"
    )
    logger.debug("Completion from %s: %d chars", kwargs["model"], len(text))
    return text
