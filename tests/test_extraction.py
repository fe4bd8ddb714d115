"""Tests for the fact extraction pipeline."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from nova.engine.extraction import extract_and_remember
from nova.engine.indicators import PROCESSING_FACT, Indicators
from nova.llm.service import ExtractedFact
from nova.state.models import MemoryCategory
from nova.state.session import SessionState


async def test_fact_is_appended(state: SessionState, language: MagicMock) -> None:
    language.extract_fact.return_value = ExtractedFact("Is allergic to peanuts", MemoryCategory.FACT)
    indicators = Indicators()

    memory = await extract_and_remember(
        "I'm allergic to peanuts", state=state, language=language, indicators=indicators
    )

    assert memory is not None
    assert state.memories == (memory,)
    assert memory.text == "Is allergic to peanuts"
    assert memory.category is MemoryCategory.FACT
    assert indicators.last_extracted_fact == "Is allergic to peanuts"
    language.extract_fact.assert_awaited_once_with("I'm allergic to peanuts")


async def test_no_fact_leaves_memories_alone(state: SessionState, language: MagicMock) -> None:
    indicators = Indicators()
    assert (
        await extract_and_remember("hello", state=state, language=language, indicators=indicators)
        is None
    )
    assert state.memories == ()
    assert indicators.last_extracted_fact is None


async def test_error_is_swallowed(state: SessionState, language: MagicMock) -> None:
    language.extract_fact = AsyncMock(side_effect=RuntimeError("boom"))
    indicators = Indicators()

    result = await extract_and_remember(
        "I live in Lisbon", state=state, language=language, indicators=indicators
    )

    assert result is None
    assert state.memories == ()
    assert indicators.processing_fact is False


async def test_processing_flag_is_set_then_cleared(
    state: SessionState, language: MagicMock
) -> None:
    gate = asyncio.Event()

    async def slow_extract(utterance):
        await gate.wait()
        return None

    language.extract_fact = slow_extract
    indicators = Indicators()
    events = []
    indicators.subscribe(lambda name, value: events.append((name, value)))

    task = asyncio.create_task(
        extract_and_remember("hi", state=state, language=language, indicators=indicators)
    )
    await asyncio.sleep(0)
    assert indicators.processing_fact is True

    gate.set()
    await task
    assert indicators.processing_fact is False
    assert events == [(PROCESSING_FACT, True), (PROCESSING_FACT, False)]


async def test_consecutive_facts_append_in_order(state: SessionState, language: MagicMock) -> None:
    indicators = Indicators()
    language.extract_fact.return_value = ExtractedFact("one", MemoryCategory.FACT)
    await extract_and_remember("a", state=state, language=language, indicators=indicators)
    language.extract_fact.return_value = ExtractedFact("two", MemoryCategory.HISTORY)
    await extract_and_remember("b", state=state, language=language, indicators=indicators)

    assert [m.text for m in state.memories] == ["one", "two"]
    assert [m.text for m in state.memories_newest_first()] == ["two", "one"]


async def test_fact_notice_expires() -> None:
    indicators = Indicators(fact_notice_seconds=0)
    indicators.show_fact("Likes tea")
    assert indicators.last_extracted_fact is None
