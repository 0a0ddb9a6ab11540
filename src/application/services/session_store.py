"""
application.services.session_store - TTL-bearing per-client session state.

Owns every read and write of Session records. Each write is a whole-record
read-modify-write against the injected KeyValueStorePort with no locking:
two concurrent turns for the same client race and the last write wins.
The record's `version` counter is bumped on every write so a lost update
is at least visible in logs.

Expiry is lazy: a record whose expiresAt is in the past is deleted the
next time anyone reads it. Every write re-arms the TTL from "now".
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Iterable, Optional

from domain.models import SESSION_KEYS, Session
from domain.ports import KeyValueStorePort

logger = logging.getLogger(__name__)

_KEY_PREFIX = "session:"


def _now_ms(clock: Callable[[], float]) -> int:
    return int(clock() * 1000)


class SessionStore:
    """get / set / clear over Session records keyed by client id."""

    def __init__(
        self,
        kv: KeyValueStorePort,
        ttl_seconds: int = 600,
        clock: Callable[[], float] = time.time,
    ):
        self._kv = kv
        self._ttl_ms = int(ttl_seconds * 1000)
        self._clock = clock

    async def get(self, client_id: str) -> Optional[Session]:
        """Return the live session for client_id, or None if absent/expired."""
        if not client_id:
            return None
        raw = await self._kv.get(_KEY_PREFIX + client_id)
        if raw is None:
            return None
        session = Session.from_dict(raw)
        if session.expires_at < _now_ms(self._clock):
            logger.debug("Session for %s expired; discarding", client_id)
            await self._kv.delete(_KEY_PREFIX + client_id)
            return None
        return session

    async def set(self, client_id: str, patch: dict[str, Any]) -> Session:
        """Merge patch into the client's session (creating it if needed).

        patch keys are Session field names (pending_choice, pending_product,
        last_inventory, last_design). A value of None removes that field.
        """
        unknown = set(patch) - set(SESSION_KEYS)
        if unknown:
            raise KeyError(f"Unknown session field(s): {sorted(unknown)}")

        now = _now_ms(self._clock)
        current = await self.get(client_id)
        if current is None:
            current = Session(client_id=client_id, expires_at=now, updated_at=now)

        updated = replace(
            current,
            **patch,
            expires_at=now + self._ttl_ms,
            updated_at=now,
            version=current.version + 1,
        )
        await self._kv.set(_KEY_PREFIX + client_id, updated.to_dict())
        logger.debug(
            "Session %s updated (v%d): %s", client_id, updated.version, sorted(patch),
        )
        return updated

    async def clear(self, client_id: str, keys: Optional[Iterable[str]] = None) -> None:
        """Delete the whole session, or only the listed fields."""
        if not client_id:
            return
        if keys is None:
            await self._kv.delete(_KEY_PREFIX + client_id)
            return
        fields = list(keys)
        unknown = set(fields) - set(SESSION_KEYS)
        if unknown:
            raise KeyError(f"Unknown session field(s): {sorted(unknown)}")
        current = await self.get(client_id)
        if current is None:
            return
        cleared = replace(
            current,
            **{k: None for k in fields},
            updated_at=_now_ms(self._clock),
            version=current.version + 1,
        )
        await self._kv.set(_KEY_PREFIX + client_id, cleared.to_dict())
