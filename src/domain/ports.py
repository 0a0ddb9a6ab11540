"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. Application services depend only
on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, runtime_checkable


# ---------------------------------------------------------------------------
# Storage Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class KeyValueStorePort(Protocol):
    """Flat JSON-value store used for sessions and rate-limit buckets.

    Writes overwrite; there is no compare-and-set.
    """

    async def get(self, key: str) -> Optional[dict[str, Any]]: ...

    async def set(self, key: str, value: dict[str, Any]) -> None: ...

    async def delete(self, key: str) -> None: ...


@runtime_checkable
class DocumentStorePort(Protocol):
    """Collection-oriented document store (inventory, orders).

    list() returns documents in insertion order. Each returned document
    carries its id under the "id" key. update()/delete() raise
    NotFoundError for unknown ids.
    """

    async def list(self, collection: str, limit: int = 1000) -> list[dict[str, Any]]: ...

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]: ...

    async def create(self, collection: str, data: dict[str, Any]) -> str: ...

    async def update(self, collection: str, doc_id: str, patch: dict[str, Any]) -> None: ...

    async def delete(self, collection: str, doc_id: str) -> None: ...


# ---------------------------------------------------------------------------
# AI Component Ports
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChatMessage:
    """Provider-neutral chat message."""
    role: str  # "system" | "user" | "assistant"
    content: str


@dataclass(frozen=True)
class ProviderReply:
    text: str
    provider: str


@runtime_checkable
class ChatProviderPort(Protocol):
    """Text completion given a message list.

    Raises ProviderError on failure.
    """

    name: str

    async def complete(self, messages: Sequence[ChatMessage]) -> ProviderReply: ...


@runtime_checkable
class ContextRetrieverPort(Protocol):
    """Fetch background context for a question. Empty string when none."""

    async def retrieve(self, question: str) -> str: ...
