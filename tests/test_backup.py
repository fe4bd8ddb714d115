"""Tests for backup export and import."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from nova.engine.backup import (
    BackupError,
    UnsupportedVersionError,
    backup_filename,
    confirmation_prompt,
    export_backup,
    import_backup,
    parse_backup,
)
from nova.state.models import Memory, MemoryCategory, Message, Role
from nova.state.session import SessionState

from conftest import FakeStore


@pytest.fixture
async def filled(state: SessionState) -> SessionState:
    await state.append_message(Message.create(Role.USER, "I just adopted a puppy"))
    await state.append_message(Message.create(Role.MODEL, "Congratulations!"))
    await state.append_memory(Memory.create("Adopted a puppy", MemoryCategory.HISTORY))
    return state


def _doc(**overrides) -> str:
    data = {
        "version": 1,
        "exportedAt": "2025-02-01T10:00:00.000Z",
        "memories": [
            {
                "id": "m1",
                "text": "Loves sushi",
                "category": "preference",
                "timestamp": "2025-01-31T09:00:00.000Z",
            }
        ],
        "messages": [
            {"id": "1", "role": "user", "text": "hi", "timestamp": "2025-01-31T08:59:00.000Z"},
            {"id": "2", "role": "model", "text": "hey", "timestamp": "2025-01-31T08:59:01.000Z"},
        ],
    }
    data.update(overrides)
    return json.dumps({k: v for k, v in data.items() if v is not None})


def _snapshot(state: SessionState, store: FakeStore) -> tuple:
    return state.messages, state.memories, dict(store.docs)


# -- Export ------------------------------------------------------------------


async def test_export_snapshots_state(filled: SessionState) -> None:
    now = datetime(2025, 3, 1, tzinfo=UTC)
    doc = export_backup(filled, now=now)

    assert doc.version == 1
    assert doc.exported_at == now
    assert doc.messages == list(filled.messages)
    assert doc.memories == list(filled.memories)


async def test_export_does_not_mutate(filled: SessionState, store: FakeStore) -> None:
    before = _snapshot(filled, store)
    export_backup(filled)
    assert _snapshot(filled, store) == before


def test_backup_filename() -> None:
    assert backup_filename(datetime(2025, 7, 4, 23, 0, tzinfo=UTC)) == "nova-memory-2025-07-04.json"


# -- Parsing -----------------------------------------------------------------


def test_parse_valid_document() -> None:
    doc = parse_backup(_doc().encode("utf-8"))
    assert len(doc.memories) == 1
    assert len(doc.messages) == 2
    assert doc.messages[0].timestamp == datetime(2025, 1, 31, 8, 59, tzinfo=UTC)
    assert doc.memories[0].category is MemoryCategory.PREFERENCE


@pytest.mark.parametrize("raw", [b"", b"not json", b"\xff\xfe\x00", b"[1, 2, 3]", b'"text"'])
def test_parse_rejects_unreadable(raw: bytes) -> None:
    with pytest.raises(BackupError):
        parse_backup(raw)


def test_parse_rejects_missing_messages() -> None:
    with pytest.raises(BackupError, match="missing memories or messages"):
        parse_backup(json.dumps({"version": 1, "memories": []}))


def test_parse_rejects_missing_memories() -> None:
    with pytest.raises(BackupError, match="missing memories or messages"):
        parse_backup(json.dumps({"version": 1, "messages": []}))


def test_parse_rejects_wrong_version() -> None:
    with pytest.raises(UnsupportedVersionError, match="Unsupported backup version: 2") as info:
        parse_backup(_doc(version=2))
    assert info.value.version == 2


def test_parse_rejects_missing_version() -> None:
    with pytest.raises(UnsupportedVersionError, match="unknown"):
        parse_backup(json.dumps({"memories": [], "messages": []}))


@pytest.mark.parametrize(("version", "shown"), [(0, "0"), (False, "false"), ("1", '"1"')])
def test_parse_names_falsy_or_mistyped_version(version: object, shown: str) -> None:
    with pytest.raises(UnsupportedVersionError) as info:
        parse_backup(_doc(version=version))
    assert str(info.value) == f"Unsupported backup version: {shown}"
    assert info.value.version == version


def test_parse_accepts_byte_order_mark() -> None:
    doc = parse_backup(b"\xef\xbb\xbf" + _doc().encode("utf-8"))
    assert doc.version == 1
    assert len(doc.messages) == 2


def test_parse_rejects_malformed_entries() -> None:
    with pytest.raises(BackupError, match="malformed"):
        parse_backup(_doc(messages=[{"id": "1", "role": "robot", "text": "x"}]))


def test_confirmation_prompt_names_counts() -> None:
    doc = parse_backup(_doc())
    assert confirmation_prompt(doc) == (
        "Found 1 memories and 2 messages. Overwrite current brain?"
    )


# -- Import ------------------------------------------------------------------


async def test_confirmed_import_replaces_state(filled: SessionState, store: FakeStore) -> None:
    confirm = AsyncMock(return_value=True)

    assert await import_backup(filled, _doc(), confirm) is True

    confirm.assert_awaited_once_with("Found 1 memories and 2 messages. Overwrite current brain?")
    assert [m.text for m in filled.messages] == ["hi", "hey"]
    assert [m.text for m in filled.memories] == ["Loves sushi"]
    assert json.loads(store.docs["messages"])[1]["text"] == "hey"


async def test_declined_import_leaves_state(filled: SessionState, store: FakeStore) -> None:
    before = _snapshot(filled, store)
    assert await import_backup(filled, _doc(), AsyncMock(return_value=False)) is False
    assert _snapshot(filled, store) == before


async def test_wrong_version_leaves_state_and_skips_confirm(
    filled: SessionState, store: FakeStore
) -> None:
    before = _snapshot(filled, store)
    confirm = AsyncMock(return_value=True)

    with pytest.raises(UnsupportedVersionError, match="3"):
        await import_backup(filled, _doc(version=3), confirm)

    confirm.assert_not_awaited()
    assert _snapshot(filled, store) == before


async def test_missing_collections_leave_state(filled: SessionState, store: FakeStore) -> None:
    before = _snapshot(filled, store)
    with pytest.raises(BackupError):
        await import_backup(filled, json.dumps({"version": 1}), AsyncMock(return_value=True))
    assert _snapshot(filled, store) == before


async def test_state_untouched_while_awaiting_confirmation(filled: SessionState) -> None:
    before = filled.messages

    async def confirm(prompt: str) -> bool:
        assert filled.messages == before
        return True

    await import_backup(filled, _doc(), confirm)
    assert filled.messages != before


async def test_export_then_import_round_trip(filled: SessionState) -> None:
    messages, memories = filled.messages, filled.memories
    raw = export_backup(filled).to_json()

    await filled.append_message(Message.create(Role.USER, "something new"))
    await import_backup(filled, raw, AsyncMock(return_value=True))

    assert filled.messages == messages
    assert filled.memories == memories
