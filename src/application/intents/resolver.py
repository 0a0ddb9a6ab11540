"""
application.intents.resolver - Resolve an open PendingChoice.

Runs instead of the intent rules whenever the session holds a pending
choice. Resolution order for the user's reply:

    1. cancellation phrase  -> clear all pending keys, nothing changes
    2. leading number N     -> candidates[N-1] when 1 <= N <= k
    3. SKU-shaped token     -> candidate with that SKU (case-insensitive)
    4. plain text           -> first candidate whose name contains it
    5. otherwise            -> re-show the same list, state untouched

Re-prompting is unbounded: it is paced by the user and never touches a
model provider.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from application.intents.choices import REPROMPT_HEADER, choice_reply
from application.intents.product_flow import ProductCreationFlow
from application.services.action_executor import ActionExecutor, build_action
from application.services.inventory import normalize_sku
from application.services.session_store import SessionStore
from domain.models import (
    PENDING_KEYS,
    ActionType,
    AssistantReply,
    Candidate,
    PendingChoice,
    PendingChoiceType,
    ProductDraft,
    Session,
)

logger = logging.getLogger(__name__)

CANCEL_REPLY = "Cancelled. Nothing changed."

_CANCEL = re.compile(r"\b(?:cancel|never\s*mind|stop|abort)\b", re.IGNORECASE)
_NUMBER = re.compile(r"^\s*(?:option\s*)?(\d+)\b", re.IGNORECASE)
# "sku" must be followed by a separator or a digit, so "skull" is a name
SKU_TOKEN = r"\bsku(?:[-\s:]+|(?=\d))[a-z0-9][a-z0-9\-]*"

_SKU = re.compile(r"(" + SKU_TOKEN + r")\b", re.IGNORECASE)


def sku_forms(token: str) -> tuple[str, ...]:
    """'sku APP-TEE-1' -> ('SKUAPP-TEE-1', 'APP-TEE-1'); 'SKU-12' -> ('SKU-12', '12')."""
    whole = normalize_sku(token)
    tail = re.sub(r"^SKU[-:]*", "", whole)
    return (whole, tail) if tail and tail != whole else (whole,)


def select_candidate(text: str, candidates: Sequence[Candidate]) -> Optional[int]:
    """Index of the candidate the reply refers to, or None."""
    number = _NUMBER.match(text)
    if number:
        n = int(number.group(1))
        if 1 <= n <= len(candidates):
            return n - 1

    token = _SKU.search(text)
    if token:
        forms = sku_forms(token.group(1))
        for i, c in enumerate(candidates):
            if c.sku and c.sku.upper() in forms:
                return i

    needle = text.strip().lower()
    if needle:
        for i, c in enumerate(candidates):
            if needle in c.name.lower():
                return i
    return None


class DisambiguationResolver:
    """Consume the next turn while a PendingChoice is open."""

    def __init__(
        self,
        sessions: SessionStore,
        executor: ActionExecutor,
        product_flow: ProductCreationFlow,
    ):
        self._sessions = sessions
        self._executor = executor
        self._product_flow = product_flow

    async def resolve(self, client_id: str, text: str, session: Session) -> AssistantReply:
        choice = session.pending_choice
        if choice is None:
            raise ValueError("resolve() requires a session with a pending choice")

        if _CANCEL.search(text):
            await self._sessions.clear(client_id, PENDING_KEYS)
            logger.info("Pending %s choice cancelled by %s", choice.type.value, client_id)
            return AssistantReply(text=CANCEL_REPLY)

        index = select_candidate(text, choice.candidates)
        if index is None:
            return choice_reply(REPROMPT_HEADER, choice.candidates)

        chosen = choice.candidates[index]
        logger.info("Resolved '%s' to %s (%s)", choice.term, chosen.name, chosen.sku)

        if choice.type is PendingChoiceType.RESTOCK_BY_NAME:
            return await self._restock(client_id, choice, chosen)

        await self._sessions.clear(client_id, ["pending_choice"])
        draft = session.pending_product or ProductDraft(name="New Product")
        return await self._product_flow.resume(client_id, draft, choice, chosen)

    async def _restock(self, client_id: str, choice: PendingChoice, chosen: Candidate) -> AssistantReply:
        action = build_action(ActionType.INCREMENT_INVENTORY_STOCK, {
            "id": chosen.id, "delta": choice.delta or 0, "sku": chosen.sku,
        })
        await self._sessions.clear(client_id, ["pending_choice"])
        result = await self._executor.execute(action, client_id)
        return AssistantReply(
            text=result.message, executed=result.success, action=action, data=result.data or None,
        )
