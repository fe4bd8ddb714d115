"""Data models for the transcript, the memory set and backup documents."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_id() -> str:
    """Mint an opaque identifier for a message or memory."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class Role(StrEnum):
    USER = "user"
    MODEL = "model"


class MemoryCategory(StrEnum):
    PREFERENCE = "preference"
    FACT = "fact"
    HISTORY = "history"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: object) -> MemoryCategory:
        """Map a loose category value onto the enum.

        Missing values default to ``fact``; anything unrecognized is ``other``.
        """
        if value is None or value == "":
            return cls.FACT
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class Message(BaseModel):
    """A single transcript entry. Immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    role: Role
    text: str
    timestamp: datetime
    is_audio: bool = Field(default=False, alias="isAudio")

    @field_validator("timestamp")
    @classmethod
    def timestamp_aware(cls, value: datetime) -> datetime:
        return _ensure_aware(value)

    @classmethod
    def create(cls, role: Role, text: str, *, is_audio: bool = False) -> Message:
        return cls(id=new_id(), role=role, text=text, timestamp=utcnow(), is_audio=is_audio)


class Memory(BaseModel):
    """A remembered fact about the user. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    category: MemoryCategory = MemoryCategory.FACT
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def timestamp_aware(cls, value: datetime) -> datetime:
        return _ensure_aware(value)

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, value: object) -> MemoryCategory:
        return MemoryCategory.coerce(value)

    @classmethod
    def create(cls, text: str, category: MemoryCategory) -> Memory:
        return cls(id=new_id(), text=text, category=category, timestamp=utcnow())


BACKUP_VERSION = 1


class BackupDocument(BaseModel):
    """Versioned snapshot of the transcript and memory set."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: int = BACKUP_VERSION
    exported_at: datetime = Field(default_factory=utcnow, alias="exportedAt")
    memories: list[Memory]
    messages: list[Message]

    @field_validator("exported_at")
    @classmethod
    def exported_at_aware(cls, value: datetime) -> datetime:
        return _ensure_aware(value)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
