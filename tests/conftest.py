"""Shared test fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from nova.llm.models import ModelManager
from nova.state.session import SessionState


class FakeStore:
    """In-memory stand-in for StateStore."""

    def __init__(self, docs: dict[str, str] | None = None) -> None:
        self.docs: dict[str, str] = dict(docs or {})
        self.saves: list[tuple[str, str]] = []
        self.fail_saves = False

    async def load(self, namespace: str) -> str | None:
        return self.docs.get(namespace)

    async def save(self, namespace: str, body: str) -> bool:
        if self.fail_saves:
            return False
        self.docs[namespace] = body
        self.saves.append((namespace, body))
        return True


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def state(store: FakeStore) -> SessionState:
    return SessionState(store)


@pytest.fixture
def language() -> MagicMock:
    """A language service whose operations all succeed with canned output."""
    lang = MagicMock()
    lang.extract_fact = AsyncMock(return_value=None)
    lang.generate_reply = AsyncMock(return_value="Sounds lovely!")
    lang.transcribe_audio = AsyncMock(return_value="hello from audio")
    lang.generate_welcome_message = AsyncMock(return_value="Good to see you again!")
    lang.generate_proactive_question = AsyncMock(return_value="How was the hike?")
    return lang


@pytest.fixture(autouse=True)
def _reset_model_manager():
    ModelManager._reset()
    yield
    ModelManager._reset()


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use a local file, not remote Turso."""
    monkeypatch.setattr("nova.config.settings.turso_database_url", "")
