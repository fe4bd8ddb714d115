"""Session bootstrap: greet on first run, welcome back after a long gap."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from nova.config import settings
from nova.state.models import Message, Role

if TYPE_CHECKING:
    from collections.abc import Callable

    from nova.llm.service import LanguageService
    from nova.state.session import SessionState

logger = logging.getLogger(__name__)

GREETING = (
    "Hi! I'm Nova. I have a long-term memory, so if you tell me things about "
    "yourself (like allergies, hobbies, or plans), I'll remember them for next "
    "time. What's on your mind?"
)


async def run_bootstrap(
    state: SessionState,
    language: LanguageService,
    *,
    speak: Callable[[str], None],
    threshold_hours: int | None = None,
    now: datetime | None = None,
) -> Message | None:
    """Inject the opening assistant message, if any. Returns it.

    - Empty transcript: the fixed greeting, no language service call.
    - Last message older than the threshold: a generated welcome message.
    - Otherwise nothing happens.

    Language service failures are logged and swallowed.
    """
    last = state.last_message
    if last is None:
        logger.info("First run: sending greeting")
        return await state.append_message(Message.create(Role.MODEL, GREETING))

    hours = settings.welcome_back_hours if threshold_hours is None else threshold_hours
    elapsed = (now or datetime.now(UTC)) - last.timestamp
    if elapsed <= timedelta(hours=hours):
        return None

    logger.info("Last message was %s ago; generating welcome", elapsed)
    try:
        text = await language.generate_welcome_message(state.memories, last.timestamp)
    except Exception:
        logger.exception("Welcome message failed")
        return None

    message = await state.append_message(Message.create(Role.MODEL, text))
    speak(text)
    return message
