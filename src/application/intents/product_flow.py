"""
application.intents.product_flow - Multi-turn product creation.

A ProductDraft moves through three states:

    AWAITING_MATERIALS  resolve each material term in order
    AWAITING_PACKAGING  resolve the packaging term (if any)
    READY               create the product

For every term: no match skips it, one match is taken, several matches
park the draft in the session (pendingCreateProduct) together with a
PendingChoice and return the numbered list. When the user picks, resume()
records the selection and advance() carries on from where it stopped,
possibly asking again for the next term.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from application.intents.choices import choice_reply
from application.services.action_executor import ActionExecutor, build_action
from application.services.inventory import InventoryService
from application.services.session_store import SessionStore
from domain.models import (
    PENDING_KEYS,
    ActionType,
    AssistantReply,
    Candidate,
    InventoryItem,
    PendingChoice,
    PendingChoiceType,
    ProductDraft,
    ProductFlowState,
)

logger = logging.getLogger(__name__)

MISSING_PRICE = '❌ Price is missing for product creation. Please specify like "price 25".'


def split_terms(raw: str) -> list[str]:
    """'dtf film, black shirt and ink' -> ['dtf film', 'black shirt', 'ink']."""
    return [t.strip() for t in re.split(r",|\band\b", raw or "", flags=re.IGNORECASE) if t.strip()]


class ProductCreationFlow:
    """Drive a ProductDraft to a created product, one disambiguation at a time."""

    def __init__(self, inventory: InventoryService, executor: ActionExecutor, sessions: SessionStore):
        self._inventory = inventory
        self._executor = executor
        self._sessions = sessions

    async def start(self, client_id: str, draft: ProductDraft) -> AssistantReply:
        draft.state = ProductFlowState.AWAITING_MATERIALS
        draft.next_material = 0
        draft.material_ids = []
        return await self.advance(client_id, draft)

    async def resume(
        self, client_id: str, draft: ProductDraft, choice: PendingChoice, chosen: Candidate,
    ) -> AssistantReply:
        """Apply the user's pick for the term the draft was waiting on."""
        if choice.type is PendingChoiceType.MATERIAL_FOR_PRODUCT:
            draft.material_ids.append(chosen.id)
            draft.next_material += 1
        elif choice.type is PendingChoiceType.PACKAGING_FOR_PRODUCT:
            draft.packaging_id = chosen.id
            draft.state = ProductFlowState.READY
        return await self.advance(client_id, draft)

    async def advance(self, client_id: str, draft: ProductDraft) -> AssistantReply:
        if draft.state is ProductFlowState.AWAITING_MATERIALS:
            while draft.next_material < len(draft.materials_terms):
                term = draft.materials_terms[draft.next_material]
                matches = await self._inventory.match(term, InventoryItem.is_material)
                if len(matches) > 1:
                    return await self._ask(
                        client_id, draft, PendingChoiceType.MATERIAL_FOR_PRODUCT, term, matches,
                        f'Multiple materials match "{term}". Please choose:',
                    )
                if matches:
                    draft.material_ids.append(matches[0].id)
                else:
                    logger.info("No material matches '%s'; skipping", term)
                draft.next_material += 1
            draft.state = ProductFlowState.AWAITING_PACKAGING

        if draft.state is ProductFlowState.AWAITING_PACKAGING:
            if draft.packaging_term and not draft.packaging_id:
                matches = await self._inventory.match(draft.packaging_term, InventoryItem.is_packing)
                if len(matches) > 1:
                    return await self._ask(
                        client_id, draft, PendingChoiceType.PACKAGING_FOR_PRODUCT,
                        draft.packaging_term, matches,
                        f'Multiple packaging items match "{draft.packaging_term}". Please choose:',
                    )
                if matches:
                    draft.packaging_id = matches[0].id
            draft.state = ProductFlowState.READY

        return await self._create(client_id, draft)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _ask(
        self,
        client_id: str,
        draft: ProductDraft,
        kind: PendingChoiceType,
        term: str,
        matches: list[InventoryItem],
        header: str,
    ) -> AssistantReply:
        candidates = tuple(Candidate.from_item(m) for m in matches)
        await self._sessions.set(client_id, {
            "pending_product": draft,
            "pending_choice": PendingChoice(type=kind, term=term, candidates=candidates),
        })
        return choice_reply(header, candidates)

    async def _create(self, client_id: str, draft: ProductDraft) -> AssistantReply:
        await self._sessions.clear(client_id, PENDING_KEYS)
        if draft.price is None:
            return AssistantReply(text=MISSING_PRICE)

        action = build_action(ActionType.CREATE_PRODUCT, {
            "name": draft.name,
            "price": draft.price,
            "quantity": draft.quantity,
            "materialIds": draft.material_ids,
            "packagingId": draft.packaging_id,
            "imageUrl": draft.image_url,
        })
        result = await self._executor.execute(action, client_id)
        return AssistantReply(
            text=result.message,
            executed=result.success,
            action=action,
            data=result.data or None,
        )


def draft_from_match(
    name: Optional[str],
    price: Optional[str],
    quantity: Optional[str],
    materials: Optional[str],
    packaging: Optional[str],
    image_url: Optional[str] = None,
) -> ProductDraft:
    return ProductDraft(
        name=(name or "").strip() or "New Product",
        price=float(price) if price else None,
        quantity=int(quantity) if quantity else 0,
        materials_terms=split_terms(materials or ""),
        packaging_term=(packaging or "").strip(),
        image_url=image_url,
    )
