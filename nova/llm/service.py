"""LanguageService: the five model-backed operations the engine relies on.

All operations are async. ``extract_fact`` never raises (a failure is the
same as "nothing to remember"); the others raise ``LanguageServiceError``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import anthropic

from nova.llm.client import complete_text
from nova.llm.models import ModelManager
from nova.llm.prompt import (
    EXTRACTION_SYSTEM,
    build_extraction_prompt,
    build_proactive_prompt,
    build_reply_system,
    build_welcome_prompt,
    to_api_messages,
)
from nova.state.models import MemoryCategory

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from nova.audio.transcriber import Transcriber
    from nova.state.models import Memory, Message

logger = logging.getLogger(__name__)

REPLY_FALLBACK = "I'm lost for words..."
WELCOME_FALLBACK = "Hey! It's good to see you."
PROACTIVE_FALLBACK = "Whatcha thinking about?"


class LanguageServiceError(Exception):
    """A language service call failed. ``str()`` describes the cause."""


@dataclass(frozen=True)
class ExtractedFact:
    fact: str
    category: MemoryCategory


def _load_json(text: str) -> dict | None:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Models sometimes wrap JSON in markdown fences
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            return None
        try:
            data = json.loads(text[start:end])
        except json.JSONDecodeError:
            return None
    return data if isinstance(data, dict) else None


def parse_extraction_result(text: str) -> ExtractedFact | None:
    """Parse the extraction model's JSON output into a fact, or None."""
    data = _load_json(text)
    if data is None:
        logger.warning("Failed to parse extraction JSON")
        return None

    has_fact = data.get("has_fact", data.get("hasFact", False))
    fact = data.get("fact")
    if not has_fact or not isinstance(fact, str) or not fact.strip():
        return None
    return ExtractedFact(fact=fact.strip(), category=MemoryCategory.coerce(data.get("category")))


class LanguageService:
    """Claude-backed language operations plus local Whisper transcription."""

    def __init__(self, transcriber: Transcriber | None = None) -> None:
        self._transcriber = transcriber

    def _get_transcriber(self) -> Transcriber:
        if self._transcriber is None:
            from nova.audio.transcriber import Transcriber

            self._transcriber = Transcriber()
        return self._transcriber

    async def extract_fact(self, utterance: str) -> ExtractedFact | None:
        try:
            text = await complete_text(
                [{"role": "user", "content": build_extraction_prompt(utterance)}],
                system=EXTRACTION_SYSTEM,
                model=ModelManager.get().memory_model,
                max_tokens=256,
            )
        except Exception:
            logger.exception("Fact extraction call failed (non-fatal)")
            return None
        return parse_extraction_result(text)

    async def generate_reply(
        self,
        history: Sequence[Message],
        utterance: str,
        memories: Sequence[Memory],
    ) -> str:
        try:
            text = await complete_text(
                to_api_messages(history, utterance),
                system=build_reply_system(memories),
            )
        except anthropic.AnthropicError as exc:
            raise LanguageServiceError(str(exc)) from exc
        return text.strip() or REPLY_FALLBACK

    async def transcribe_audio(self, audio: bytes) -> str:
        try:
            return await self._get_transcriber().transcribe_async(audio)
        except Exception as exc:
            raise LanguageServiceError(f"Transcription failed: {exc}") from exc

    async def generate_welcome_message(
        self, memories: Sequence[Memory], last_message_at: datetime | None
    ) -> str:
        prompt = build_welcome_prompt(memories, last_message_at)
        try:
            text = await complete_text([{"role": "user", "content": prompt}])
        except anthropic.AnthropicError as exc:
            raise LanguageServiceError(str(exc)) from exc
        return text.strip() or WELCOME_FALLBACK

    async def generate_proactive_question(self, memories: Sequence[Memory]) -> str:
        prompt = build_proactive_prompt(memories)
        try:
            text = await complete_text([{"role": "user", "content": prompt}])
        except anthropic.AnthropicError as exc:
            raise LanguageServiceError(str(exc)) from exc
        return text.strip() or PROACTIVE_FALLBACK
