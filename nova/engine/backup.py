"""Backup export and import.

Export snapshots the session into a versioned ``BackupDocument``.  Import
parses and validates a document completely, asks the user to confirm the
overwrite, and only then replaces both collections in one step.  Any
failure before that point leaves the session untouched.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError

from nova.state.models import BACKUP_VERSION, BackupDocument

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from nova.state.session import SessionState

logger = logging.getLogger(__name__)

IMPORT_SUCCESS = "Brain restored successfully!"


class BackupError(ValueError):
    """The backup document cannot be imported."""


class UnsupportedVersionError(BackupError):
    def __init__(self, version: object) -> None:
        self.version = version
        shown = "unknown" if version is None else json.dumps(version)
        super().__init__(f"Unsupported backup version: {shown}")


def export_backup(state: SessionState, now: datetime | None = None) -> BackupDocument:
    """Snapshot the session. Does not modify it."""
    doc = BackupDocument(
        version=BACKUP_VERSION,
        exported_at=now or datetime.now(UTC),
        memories=list(state.memories),
        messages=list(state.messages),
    )
    logger.info(
        "Exported backup: %d memories, %d messages", len(doc.memories), len(doc.messages)
    )
    return doc


def backup_filename(now: datetime | None = None) -> str:
    return f"nova-memory-{(now or datetime.now(UTC)).date().isoformat()}.json"


def parse_backup(raw: bytes | str) -> BackupDocument:
    """Parse and validate a backup document.

    Raises:
        BackupError: unreadable, not JSON, not an object, missing
            collections, or malformed entries.
        UnsupportedVersionError: ``version`` is not 1.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise BackupError("Backup file is not UTF-8 text") from exc
    if not raw.strip():
        raise BackupError("Backup file is empty")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise BackupError(f"Backup file is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise BackupError("Backup file must contain a JSON object")

    if not isinstance(data.get("memories"), list) or not isinstance(data.get("messages"), list):
        raise BackupError("Invalid backup file format: missing memories or messages")

    version = data.get("version")
    if version != BACKUP_VERSION or isinstance(version, bool):
        raise UnsupportedVersionError(version)

    try:
        return BackupDocument.model_validate(data)
    except ValidationError as exc:
        raise BackupError(f"Backup file has malformed entries: {exc.error_count()} error(s)") from exc


def confirmation_prompt(doc: BackupDocument) -> str:
    return (
        f"Found {len(doc.memories)} memories and {len(doc.messages)} messages. "
        "Overwrite current brain?"
    )


async def import_backup(
    state: SessionState,
    raw: bytes | str,
    confirm: Callable[[str], Awaitable[bool]],
) -> bool:
    """Validate *raw*, ask *confirm*, and replace the session on approval.

    Returns True if the session was replaced, False if the user declined.
    Raises ``BackupError`` (state untouched) when validation fails.
    """
    doc = parse_backup(raw)
    if not await confirm(confirmation_prompt(doc)):
        logger.info("Backup import declined")
        return False

    await state.replace_all(doc.memories, doc.messages)
    logger.info("Imported backup: %d memories, %d messages", len(doc.memories), len(doc.messages))
    return True
