"""Fact extraction: turn a user utterance into a remembered fact.

Runs as its own task next to reply generation. Nothing here may delay or
fail the reply: every outcome (fact, no fact, error) ends with the
processing flag cleared.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nova.state.models import Memory

if TYPE_CHECKING:
    from nova.engine.indicators import Indicators
    from nova.llm.service import LanguageService
    from nova.state.session import SessionState

logger = logging.getLogger(__name__)


async def extract_and_remember(
    utterance: str,
    *,
    state: SessionState,
    language: LanguageService,
    indicators: Indicators,
) -> Memory | None:
    """Ask for a fact in *utterance* and append it to the memory set.

    Call via ``asyncio.create_task(extract_and_remember(...))``.
    Returns the new memory, or None when nothing was remembered.
    """
    indicators.set_processing_fact(True)
    try:
        result = await language.extract_fact(utterance)
        if result is None:
            logger.debug("No fact in: %s", utterance[:80])
            return None

        memory = Memory.create(result.fact, result.category)
        await state.append_memory(memory)
        indicators.show_fact(memory.text)
        logger.info("Remembered [%s]: %s", memory.category, memory.text[:80])
        return memory
    except Exception:
        logger.exception("Fact extraction failed (non-fatal)")
        return None
    finally:
        indicators.set_processing_fact(False)
