"""StateStore: namespaced JSON documents persisted via libsql."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from nova.db import connect

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

MESSAGES = "messages"
MEMORIES = "memories"

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS state_documents (
    namespace  TEXT PRIMARY KEY,
    body       TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class StateStore:
    """Durable key-value storage of whole collections as JSON text.

    Each namespace (``"messages"``, ``"memories"``) holds one document that
    is replaced on every save.  Failures never raise: ``load`` returns
    ``None`` and ``save`` returns ``False`` after logging a warning.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._initialised = False

    async def _ensure_table(self, db) -> None:  # noqa: ANN001
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True

    async def load(self, namespace: str) -> str | None:
        """Return the stored JSON text for *namespace*, or None."""
        try:
            async with connect(self._db_path) as db:
                await self._ensure_table(db)
                row = await db.fetchone(
                    "SELECT body FROM state_documents WHERE namespace = ?", (namespace,)
                )
        except Exception:
            logger.warning("Failed to load %s from store", namespace, exc_info=True)
            return None
        return row[0] if row else None

    async def save(self, namespace: str, body: str) -> bool:
        """Replace the document for *namespace*. Returns True on success."""
        now = datetime.now(UTC).isoformat()
        try:
            async with connect(self._db_path) as db:
                await self._ensure_table(db)
                await db.execute(
                    """
                    INSERT INTO state_documents (namespace, body, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(namespace) DO UPDATE SET
                        body = excluded.body,
                        updated_at = excluded.updated_at
                    """,
                    (namespace, body, now),
                )
                await db.commit()
        except Exception:
            logger.warning("Failed to save %s to store", namespace, exc_info=True)
            return False
        logger.debug("Saved %s (%d chars)", namespace, len(body))
        return True
