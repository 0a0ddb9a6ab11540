"""
infrastructure.persistence.document_repo - SQLite JSON document store.

Implements DocumentStorePort. Every collection (inventory, orders) lives
in the single `documents` table; bodies are stored as JSON text and
listed in insertion order.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from domain.exceptions import NotFoundError
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteDocumentStore:
    """Async SQLite implementation of DocumentStorePort."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def list(self, collection: str, limit: int = 1000) -> list[dict[str, Any]]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT doc_id, body FROM documents
                   WHERE collection = ?
                   ORDER BY seq ASC
                   LIMIT ?""",
                (collection, int(limit)),
            )
            return [self._row_to_doc(r) for r in rows]

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT doc_id, body FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, str(doc_id)),
            )
            return self._row_to_doc(rows[0]) if rows else None

    async def create(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = str(data.get("id") or uuid4().hex[:20])
        body = {k: v for k, v in data.items() if k != "id"}
        now = datetime.now(timezone.utc).isoformat()
        async with self._conn.acquire() as conn:
            await conn.execute(
                """INSERT INTO documents (collection, doc_id, body, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (collection, doc_id, json.dumps(body), now, now),
            )
        logger.debug("Created %s/%s", collection, doc_id)
        return doc_id

    async def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT body FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, str(doc_id)),
            )
            if not rows:
                raise NotFoundError(f"{collection} document '{doc_id}' not found")
            body = json.loads(rows[0]["body"])
            body.update({k: v for k, v in patch.items() if k != "id"})
            await conn.execute(
                """UPDATE documents SET body = ?, updated_at = ?
                   WHERE collection = ? AND doc_id = ?""",
                (json.dumps(body), now, collection, str(doc_id)),
            )

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, str(doc_id)),
            )
            if cursor.rowcount == 0:
                raise NotFoundError(f"{collection} document '{doc_id}' not found")

    @staticmethod
    def _row_to_doc(row) -> dict[str, Any]:
        doc = json.loads(row["body"])
        doc["id"] = row["doc_id"]
        return doc
