"""Reply generation: produce exactly one assistant message per user turn."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nova.config import settings
from nova.state.models import Message, Role

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from nova.engine.indicators import Indicators
    from nova.llm.service import LanguageService
    from nova.state.session import SessionState

logger = logging.getLogger(__name__)

APOLOGY = (
    "I'm having a little trouble connecting to my brain right now. "
    "Can you say that again? (Error: {error})"
)


def describe_error(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def recent_context(history: Sequence[Message], size: int | None = None) -> list[Message]:
    """The last *size* transcript entries (older context lives in memory)."""
    size = settings.reply_context_size if size is None else size
    if size <= 0:
        return []
    return list(history)[-size:]


async def generate_and_append_reply(
    history: Sequence[Message],
    utterance: str,
    *,
    state: SessionState,
    language: LanguageService,
    indicators: Indicators,
    speak: Callable[[str], None],
    context_size: int | None = None,
) -> Message:
    """Generate the assistant's answer and append it to the transcript.

    *history* is the transcript as it was before this turn's user message.
    On any failure an apology carrying the error description is appended
    instead, so the user always gets a response.
    """
    context = recent_context(history, context_size)
    indicators.set_typing(True)
    try:
        try:
            text = await language.generate_reply(context, utterance, state.memories)
        except Exception as exc:
            logger.exception("Error generating reply")
            return await state.append_message(
                Message.create(Role.MODEL, APOLOGY.format(error=describe_error(exc)))
            )

        message = await state.append_message(Message.create(Role.MODEL, text))
        speak(text)
        return message
    finally:
        indicators.set_typing(False)
