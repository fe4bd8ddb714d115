"""SessionState: the single owner of the transcript and the memory set.

Every mutation is a pure append (or a whole replacement on import) applied
synchronously on the event loop, announced to listeners, and then written
through to the store.  Saves for the same namespace are serialized and
always write the state as it is when the save runs, so an older snapshot
can never land after a newer one.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from pydantic import TypeAdapter, ValidationError

from nova.state.models import Memory, Message
from nova.state.store import MEMORIES, MESSAGES

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

_messages_adapter = TypeAdapter(list[Message])
_memories_adapter = TypeAdapter(list[Memory])


class Store(Protocol):
    """Persistence port. See :class:`nova.state.store.StateStore`."""

    async def load(self, namespace: str) -> str | None: ...

    async def save(self, namespace: str, body: str) -> bool: ...


class ChangeKind(StrEnum):
    MESSAGE = "message"
    MEMORY = "memory"
    REPLACED = "replaced"


@dataclass(frozen=True)
class StateChange:
    kind: ChangeKind
    message: Message | None = None
    memory: Memory | None = None


class SessionState:
    """Transcript + memory set with write-through persistence."""

    def __init__(self, store: Store) -> None:
        self._store = store
        self._messages: list[Message] = []
        self._memories: list[Memory] = []
        self._listeners: list[Callable[[StateChange], None]] = []
        self._save_locks = {MESSAGES: asyncio.Lock(), MEMORIES: asyncio.Lock()}

    # -- Loading ---------------------------------------------------------------

    async def load(self) -> None:
        """Populate both collections from the store.

        Absent, unreadable or malformed documents yield empty collections.
        """
        self._messages = await self._load(MESSAGES, _messages_adapter)
        self._memories = await self._load(MEMORIES, _memories_adapter)
        logger.info(
            "Loaded %d message(s) and %d memory(ies)", len(self._messages), len(self._memories)
        )

    async def _load(self, namespace: str, adapter: TypeAdapter) -> list:
        body = await self._store.load(namespace)
        if not body:
            return []
        try:
            return adapter.validate_json(body)
        except ValidationError:
            logger.warning("Stored %s are malformed; starting empty", namespace, exc_info=True)
            return []

    # -- Snapshots -------------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def memories(self) -> tuple[Memory, ...]:
        """Memories in insertion order."""
        return tuple(self._memories)

    def memories_newest_first(self) -> list[Memory]:
        return list(reversed(self._memories))

    @property
    def last_message(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    # -- Observers -------------------------------------------------------------

    def subscribe(self, listener: Callable[[StateChange], None]) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, change: StateChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("State listener failed for %s", change.kind)

    # -- Mutations -------------------------------------------------------------

    async def append_message(self, message: Message) -> Message:
        self._messages.append(message)
        self._notify(StateChange(ChangeKind.MESSAGE, message=message))
        await self._persist(MESSAGES)
        return message

    async def append_memory(self, memory: Memory) -> Memory:
        self._memories.append(memory)
        self._notify(StateChange(ChangeKind.MEMORY, memory=memory))
        await self._persist(MEMORIES)
        return memory

    async def replace_all(self, memories: Iterable[Memory], messages: Iterable[Message]) -> None:
        """Swap both collections in one step, then persist both."""
        new_memories = list(memories)
        new_messages = list(messages)
        self._memories, self._messages = new_memories, new_messages
        self._notify(StateChange(ChangeKind.REPLACED))
        await self._persist(MEMORIES)
        await self._persist(MESSAGES)

    # -- Persistence -----------------------------------------------------------

    async def _persist(self, namespace: str) -> None:
        async with self._save_locks[namespace]:
            if namespace == MESSAGES:
                body = _messages_adapter.dump_json(self._messages, by_alias=True)
            else:
                body = _memories_adapter.dump_json(self._memories)
            saved = await self._store.save(namespace, body.decode("utf-8"))
        if not saved:
            logger.warning("Persisting %s failed; continuing with in-memory state", namespace)
