"""
infrastructure.persistence.memory_repo - In-process stores.

Dict-backed implementations of KeyValueStorePort and DocumentStorePort.
Used by tests and by STORE_BACKEND=memory for throwaway demos. Values
are deep-copied on the way in and out so callers never share state with
the store.
"""

from __future__ import annotations

import copy
from typing import Any, Optional
from uuid import uuid4

from domain.exceptions import NotFoundError


class InMemoryKeyValueStore:
    """KeyValueStorePort over a plain dict."""

    def __init__(self):
        self._data: dict[str, dict[str, Any]] = {}

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class InMemoryDocumentStore:
    """DocumentStorePort over nested dicts (insertion ordered)."""

    def __init__(self, seed: Optional[dict[str, list[dict[str, Any]]]] = None):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        for collection, docs in (seed or {}).items():
            for doc in docs:
                self._insert(collection, doc)

    def _insert(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = str(data.get("id") or uuid4().hex[:20])
        body = copy.deepcopy({k: v for k, v in data.items() if k != "id"})
        self._collections.setdefault(collection, {})[doc_id] = body
        return doc_id

    async def list(self, collection: str, limit: int = 1000) -> list[dict[str, Any]]:
        docs = self._collections.get(collection, {})
        return [
            {**copy.deepcopy(body), "id": doc_id}
            for doc_id, body in list(docs.items())[: int(limit)]
        ]

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        body = self._collections.get(collection, {}).get(str(doc_id))
        return {**copy.deepcopy(body), "id": str(doc_id)} if body is not None else None

    async def create(self, collection: str, data: dict[str, Any]) -> str:
        return self._insert(collection, data)

    async def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None:
        docs = self._collections.get(collection, {})
        if str(doc_id) not in docs:
            raise NotFoundError(f"{collection} document '{doc_id}' not found")
        docs[str(doc_id)].update(copy.deepcopy({k: v for k, v in patch.items() if k != "id"}))

    async def delete(self, collection: str, doc_id: str) -> None:
        docs = self._collections.get(collection, {})
        if docs.pop(str(doc_id), None) is None:
            raise NotFoundError(f"{collection} document '{doc_id}' not found")
