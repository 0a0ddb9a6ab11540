"""
infrastructure.persistence.kv_repo - SQLite key-value store.

Implements KeyValueStorePort for sessions and rate-limit buckets.
Plain upsert semantics: concurrent writers to the same key race and the
last write wins.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional

from infrastructure.persistence.connection import AsyncSQLiteConnection


class SQLiteKeyValueStore:
    """Async SQLite implementation of KeyValueStorePort."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT value FROM kv_store WHERE key = ?", (key,),
            )
            return json.loads(rows[0]["value"]) if rows else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        async with self._conn.acquire() as conn:
            await conn.execute(
                """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, json.dumps(value), now),
            )

    async def delete(self, key: str) -> None:
        async with self._conn.acquire() as conn:
            await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
