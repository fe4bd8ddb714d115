"""Tests for the reply generation pipeline."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from nova.engine.indicators import Indicators
from nova.engine.reply import generate_and_append_reply, recent_context
from nova.llm.service import LanguageServiceError
from nova.state.models import Memory, MemoryCategory, Message, Role
from nova.state.session import SessionState


def _history(n: int) -> list[Message]:
    return [Message.create(Role.USER if i % 2 == 0 else Role.MODEL, f"m{i}") for i in range(n)]


def test_recent_context_keeps_last_ten() -> None:
    history = _history(25)
    context = recent_context(history, 10)
    assert [m.text for m in context] == [f"m{i}" for i in range(15, 25)]


def test_recent_context_short_history() -> None:
    assert len(recent_context(_history(3), 10)) == 3


async def test_reply_is_appended_and_spoken(state: SessionState, language: MagicMock) -> None:
    speak = MagicMock()
    message = await generate_and_append_reply(
        [], "hi", state=state, language=language, indicators=Indicators(), speak=speak
    )

    assert message.role is Role.MODEL
    assert message.text == "Sounds lovely!"
    assert state.messages == (message,)
    speak.assert_called_once_with("Sounds lovely!")


async def test_reply_gets_truncated_history_and_memories(
    state: SessionState, language: MagicMock
) -> None:
    mem = await state.append_memory(Memory.create("Has two kids", MemoryCategory.FACT))
    history = _history(14)

    await generate_and_append_reply(
        history,
        "what's new?",
        state=state,
        language=language,
        indicators=Indicators(),
        speak=MagicMock(),
        context_size=10,
    )

    sent_history, sent_utterance, sent_memories = language.generate_reply.call_args.args
    assert [m.text for m in sent_history] == [f"m{i}" for i in range(4, 14)]
    assert sent_utterance == "what's new?"
    assert tuple(sent_memories) == (mem,)


async def test_failure_appends_exactly_one_apology(
    state: SessionState, language: MagicMock
) -> None:
    language.generate_reply = AsyncMock(side_effect=LanguageServiceError("quota exceeded"))
    speak = MagicMock()
    indicators = Indicators()

    message = await generate_and_append_reply(
        [], "hi", state=state, language=language, indicators=indicators, speak=speak
    )

    assert len(state.messages) == 1
    assert state.messages[0] == message
    assert message.role is Role.MODEL
    assert "trouble connecting" in message.text
    assert "(Error: quota exceeded)" in message.text
    assert indicators.typing is False
    speak.assert_not_called()


async def test_failure_without_message_uses_error_type(
    state: SessionState, language: MagicMock
) -> None:
    language.generate_reply = AsyncMock(side_effect=TimeoutError())
    message = await generate_and_append_reply(
        [], "hi", state=state, language=language, indicators=Indicators(), speak=MagicMock()
    )
    assert "(Error: TimeoutError)" in message.text


async def test_typing_flag_spans_the_call(state: SessionState, language: MagicMock) -> None:
    indicators = Indicators()
    seen_typing = []

    async def reply(history, utterance, memories):
        seen_typing.append(indicators.typing)
        await asyncio.sleep(0)
        return "ok"

    language.generate_reply = reply
    await generate_and_append_reply(
        [], "hi", state=state, language=language, indicators=indicators, speak=MagicMock()
    )

    assert seen_typing == [True]
    assert indicators.typing is False
