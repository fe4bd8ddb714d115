"""Async access to the libsql database that backs the state store.

``libsql`` is synchronous, so every call is pushed through
``asyncio.to_thread()``.  The target comes from settings:

- ``TURSO_DATABASE_URL`` + ``TURSO_AUTH_TOKEN`` → hosted Turso database
- otherwise → local SQLite file at ``database_path``
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import libsql

from nova.config import settings

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path


class AsyncConnection:
    """Async facade over a synchronous libsql connection."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def execute(self, sql: str, params: tuple = ()) -> Any:
        return await asyncio.to_thread(self._conn.execute, sql, params)

    async def fetchone(self, sql: str, params: tuple = ()) -> tuple | None:
        def _run() -> tuple | None:
            return self._conn.execute(sql, params).fetchone()

        return await asyncio.to_thread(_run)

    async def commit(self) -> None:
        await asyncio.to_thread(self._conn.commit)

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)


def _open_file(path: str) -> Any:
    conn = libsql.connect(path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


async def open_connection(db_path: Path | None = None) -> AsyncConnection:
    """Open a connection.

    An explicit *db_path* (used by tests) wins over everything else; then a
    configured Turso URL; then the local ``database_path`` file.
    """
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return AsyncConnection(await asyncio.to_thread(_open_file, str(db_path)))

    if settings.turso_database_url:
        conn = await asyncio.to_thread(
            libsql.connect,
            database=settings.turso_database_url,
            auth_token=settings.turso_auth_token,
        )
        return AsyncConnection(conn)

    settings.database_path.parent.mkdir(parents=True, exist_ok=True)
    return AsyncConnection(await asyncio.to_thread(_open_file, str(settings.database_path)))


@contextlib.asynccontextmanager
async def connect(db_path: Path | None = None) -> AsyncIterator[AsyncConnection]:
    """Open a connection for the duration of an ``async with`` block."""
    conn = await open_connection(db_path)
    try:
        yield conn
    finally:
        await conn.close()
