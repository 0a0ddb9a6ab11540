"""
application.intents.handlers - What each local intent rule does.

Every handler receives the Turn and the rule's regex match and returns an
AssistantReply, or None to let the next rule try. Mutations go through
ActionExecutor; reads go straight to the services.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

from application.intents.choices import choice_reply
from application.intents.matcher import Turn
from application.intents.product_flow import ProductCreationFlow, draft_from_match
from application.intents.resolver import SKU_TOKEN, sku_forms
from application.services.action_executor import ActionExecutor, build_action
from application.services.inventory import InventoryService
from application.services.orders import OrderService
from application.services.session_store import SessionStore
from domain.exceptions import NotFoundError
from domain.models import (
    Action,
    ActionType,
    AssistantReply,
    Candidate,
    DesignRef,
    InventoryItem,
    ItemRef,
    PendingChoice,
    PendingChoiceType,
)

logger = logging.getLogger(__name__)

CONFIRM = re.compile(r"\b(?:confirm|execute|do\s+it)\b", re.IGNORECASE)
_SKU_ANYWHERE = re.compile(r"(" + SKU_TOKEN + r")\b", re.IGNORECASE)
_URL = re.compile(r"https?://\S+", re.IGNORECASE)
_PRICE = re.compile(r"\b(?:price|cost|at)\s*\$?\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_CATEGORY = re.compile(
    r"\bas\s+(raw\s*materials?|materials?|packing\s*materials?|apparel|drinkware|stickers?|headwear|prints?)\b",
    re.IGNORECASE,
)
_PACKING_WORDS = re.compile(r"pack(ing)?\s*materials?|packaging|\bbox|mailer|bubble\s*wrap|\btape\b|\blabel",
                            re.IGNORECASE)
_MATERIAL_WORDS = re.compile(r"raw\s*material|\bmaterials\b", re.IGNORECASE)
_QUERY_TAIL = re.compile(r"\s+(?:do\s+we\s+have|are\s+there|are\s+left|left|in\s+stock)\s*$", re.IGNORECASE)


def _reply(result_message: str, success: bool, action: Action, data: Optional[dict] = None) -> AssistantReply:
    return AssistantReply(text=result_message, executed=success, action=action, data=data or None)


class IntentHandlers:
    """Handlers for the ordered rule list built in application.intents.rules."""

    def __init__(
        self,
        inventory: InventoryService,
        orders: OrderService,
        executor: ActionExecutor,
        sessions: SessionStore,
        product_flow: ProductCreationFlow,
    ):
        self._inventory = inventory
        self._orders = orders
        self._executor = executor
        self._sessions = sessions
        self._product_flow = product_flow

    # ------------------------------------------------------------------
    # Follow-ups on the last touched item
    # ------------------------------------------------------------------

    async def set_last_price(self, turn: Turn, m: re.Match) -> Optional[AssistantReply]:
        price = float(m.group(1))
        return await self._update_last(turn, {"price": price},
                                       lambda ref: f"✅ Updated price for {ref.label} to ${price:.2f}.")

    async def set_last_sku(self, turn: Turn, m: re.Match) -> Optional[AssistantReply]:
        sku = m.group(1).upper()
        return await self._update_last(turn, {"sku": sku}, lambda ref: f"✅ Updated SKU to {sku}.")

    async def set_last_category(self, turn: Turn, m: re.Match) -> Optional[AssistantReply]:
        category = m.group(1).strip()
        return await self._update_last(turn, {"category": category},
                                       lambda ref: f"✅ Category set to {category}.")

    async def rename_last(self, turn: Turn, m: re.Match) -> Optional[AssistantReply]:
        name = m.group(1).strip().strip("\"'")
        if not name:
            return None
        return await self._update_last(turn, {"name": name}, lambda ref: f'✅ Renamed item to "{name}".')

    async def set_last_color(self, turn: Turn, m: re.Match) -> Optional[AssistantReply]:
        color = (m.group(1) or m.group(2)).lower()
        return await self._update_last(turn, {"color": color}, lambda ref: f"✅ Set color to {color}.")

    async def _update_last(self, turn: Turn, fields: dict[str, Any], success_text) -> AssistantReply:
        ref = turn.session.last_inventory  # guarded by the rule
        action = build_action(ActionType.UPDATE_INVENTORY_FIELDS, {"id": ref.id, "fields": fields})
        result = await self._executor.execute(action, turn.client_id)
        text = success_text(ref) if result.success else result.message
        return _reply(text, result.success, action)

    # ------------------------------------------------------------------
    # Read-only reports
    # ------------------------------------------------------------------

    async def inventory_summary(self, turn: Turn, m: re.Match) -> AssistantReply:
        summary = await self._inventory.summary()
        return AssistantReply(text=summary.render(), data=summary.to_dict())

    async def orders_overview(self, turn: Turn, m: re.Match) -> AssistantReply:
        overview = await self._orders.overview()
        return AssistantReply(text=overview.render(), data=overview.to_dict())

    async def stock_query(self, turn: Turn, m: re.Match) -> AssistantReply:
        term = _QUERY_TAIL.sub("", m.group(1).strip()).strip().lower()
        matches = await self._inventory.search(term)
        if not matches and term.endswith("s"):
            matches = await self._inventory.search(term[:-1])
        if not matches:
            return AssistantReply(text=f'📦 I couldn\'t find any items matching "{term}".')
        total = sum(i.stock for i in matches)
        lines = "\n• ".join(f"{i.name} ({i.sku or 'N/A'}) — {i.stock}" for i in matches[:5])
        return AssistantReply(
            text=f'📦 We have {total} units matching "{term}".\n• {lines}',
            data={"total": total, "matches": [{"id": i.id, "sku": i.sku, "stock": i.stock} for i in matches]},
        )

    # ------------------------------------------------------------------
    # Specialized creation flows
    # ------------------------------------------------------------------

    async def add_packing_material(self, turn: Turn, m: re.Match) -> AssistantReply:
        payload: dict[str, Any] = {"name": m.group(1).strip(), "dimensions": m.group(2).strip(),
                                   "stock": int(m.group(3) or 0)}
        if m.group(4):
            payload["price"] = float(m.group(4))
        action = build_action(ActionType.CREATE_PACKING_MATERIAL, payload)
        result = await self._executor.execute(action, turn.client_id)
        return _reply(result.message, result.success, action, result.data)

    async def add_material(self, turn: Turn, m: re.Match) -> AssistantReply:
        payload: dict[str, Any] = {"name": m.group(1).strip(), "stock": int(m.group(2) or 0)}
        if m.group(3):
            payload["price"] = float(m.group(3))
        action = build_action(ActionType.CREATE_MATERIAL, payload)
        result = await self._executor.execute(action, turn.client_id)
        return _reply(result.message, result.success, action, result.data)

    async def create_product(self, turn: Turn, m: re.Match) -> AssistantReply:
        from_design = re.search(r"create\s+product\s+from\s+last\s+design", turn.text, re.IGNORECASE)
        design = turn.session.last_design if (from_design and turn.session) else None
        image_url = design.url if design else turn.ctx.image_attachment
        name = m.group(1) or (design.subject if design else None)
        draft = draft_from_match(name, m.group(2), m.group(3), m.group(4), m.group(5), image_url)
        return await self._product_flow.start(turn.client_id, draft)

    # ------------------------------------------------------------------
    # Stock changes
    # ------------------------------------------------------------------

    async def restock_by_sku(self, turn: Turn, m: re.Match) -> AssistantReply:
        delta = int(m.group(1))
        item, sku = await self._find_sku(m.group(2))
        if item is None:
            return AssistantReply(text=f"❌ I couldn't find SKU {sku} in inventory.")
        return await self._increment(turn, item, delta)

    async def restock_by_name(self, turn: Turn, m: re.Match) -> Optional[AssistantReply]:
        delta = int(m.group(1))
        term = m.group(2).strip()
        if _PRICE.search(term):
            return None
        matches = await self._lookup(term)
        if not matches:
            return None
        if len(matches) == 1:
            return await self._increment(turn, matches[0], delta)

        candidates = tuple(Candidate.from_item(i) for i in matches)
        await self._sessions.set(turn.client_id, {
            "pending_choice": PendingChoice(
                type=PendingChoiceType.RESTOCK_BY_NAME, term=term, candidates=candidates, delta=delta,
            ),
        })
        return choice_reply(f'I found multiple items matching "{term}". Please choose:', candidates)

    async def set_stock(self, turn: Turn, m: re.Match) -> AssistantReply:
        item, sku = await self._find_sku(m.group(1))
        if item is None:
            return AssistantReply(text=f"❌ I couldn't find SKU {sku} in inventory.")
        action = build_action(ActionType.UPDATE_INVENTORY_STOCK,
                              {"id": item.id, "sku": item.sku, "stock": int(m.group(2))})
        result = await self._executor.execute(action, turn.client_id)
        return _reply(result.message, result.success, action, result.data)

    async def generic_add(self, turn: Turn, m: re.Match) -> Optional[AssistantReply]:
        stock = int(m.group(1)) if m.group(1) else 1
        name = re.sub(r"^new\s+", "", m.group(2).strip(), flags=re.IGNORECASE).strip()
        if not name:
            return None
        explicit_new = re.search(r"\bnew\b", turn.text, re.IGNORECASE)

        existing = await self._inventory.find_by_name(name)
        if existing is not None and not explicit_new and not _SKU_ANYWHERE.search(turn.text):
            reply = await self._increment(turn, existing, stock)
            if reply.executed:
                return AssistantReply(
                    text=f"{reply.text} (Merged with existing item {existing.label})",
                    executed=True, action=reply.action, data=reply.data,
                )
            return reply

        payload: dict[str, Any] = {"name": name, "stock": stock}
        price = _PRICE.search(turn.text)
        if price:
            payload["price"] = float(price.group(1))
        category = _CATEGORY.search(turn.text)
        if category:
            payload["category"] = category.group(1)
        elif _PACKING_WORDS.search(turn.text):
            payload["category"] = "Packing Materials"
        elif _MATERIAL_WORDS.search(turn.text):
            payload["category"] = "Materials"

        action = build_action(ActionType.CREATE_INVENTORY, payload)
        result = await self._executor.execute(action, turn.client_id)
        return _reply(result.message, result.success, action, result.data)

    async def delete_item(self, turn: Turn, m: re.Match) -> AssistantReply:
        item, sku = await self._find_sku(m.group(1))
        if item is None:
            return AssistantReply(text=f"❌ I couldn't find SKU {sku} in inventory.")
        action = build_action(ActionType.DELETE_INVENTORY, {"id": item.id, "sku": item.sku})
        if not CONFIRM.search(turn.text):
            return AssistantReply(
                text=f'🗑️ I can delete **{item.name}** ({item.sku}). This action cannot be undone. '
                     'Say "execute" or "confirm" to delete.',
                action=action,
                awaiting="confirmation",
            )
        result = await self._executor.execute(action, turn.client_id)
        if result.success and turn.session and turn.session.last_inventory \
                and turn.session.last_inventory.id == item.id:
            await self._sessions.clear(turn.client_id, ["last_inventory"])
        return _reply(result.message, result.success, action)

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    async def attach_image(self, turn: Turn, m: re.Match) -> AssistantReply:
        url_match = _URL.search(turn.text)
        url = url_match.group(0) if url_match else turn.ctx.image_attachment
        target = await self._target_item(turn)
        if target is None:
            return AssistantReply(
                text='❌ Please specify which item. Include a SKU like "for SKU-123" or add the item first.'
            )
        if not url:
            return AssistantReply(text="❌ Please include an image URL to attach.")
        action = build_action(ActionType.UPDATE_INVENTORY_FIELDS,
                              {"id": target.id, "fields": {"imageUrl": url}})
        result = await self._executor.execute(action, turn.client_id)
        if not result.success:
            return _reply(result.message, False, action)
        await self._sessions.set(turn.client_id, {"last_design": DesignRef(url=url, subject=target.name)})
        return _reply(f"✅ Attached image to {target.label}.", True, action)

    async def ninjatransfer_link(self, turn: Turn, m: re.Match) -> AssistantReply:
        target = await self._target_item(turn)
        if target is None:
            return AssistantReply(
                text="❌ Please specify which item to attach the NinjaTransfer link to "
                     "(use SKU or add the item first)."
            )
        action = build_action(ActionType.UPDATE_INVENTORY_FIELDS,
                              {"id": target.id, "fields": {"ninjatransferLink": m.group(1)}})
        result = await self._executor.execute(action, turn.client_id)
        text = f"🔗 Added NinjaTransfer link to {target.label}." if result.success else result.message
        return _reply(text, result.success, action)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def order_status(self, turn: Turn, m: re.Match) -> AssistantReply:
        reference = m.group(1).upper()
        try:
            order = await self._orders.find(reference)
        except NotFoundError:
            return AssistantReply(text=f"❌ I couldn't find order {reference}.")
        action = build_action(ActionType.UPDATE_ORDER_STATUS, {"id": order.id, "status": m.group(2)})
        result = await self._executor.execute(action, turn.client_id)
        return _reply(result.message, result.success, action, result.data)

    async def create_order(self, turn: Turn, m: re.Match) -> AssistantReply:
        customer, product = m.group(1).strip(), (m.group(2) or "").strip()
        if not product:
            return AssistantReply(
                text='❌ Please include a product, e.g. "create order for Jane Doe product Black T-Shirt qty 2".'
            )
        payload: dict[str, Any] = {"customerName": customer, "product": product,
                                   "quantity": int(m.group(3) or 1)}
        if m.group(4):
            payload["price"] = float(m.group(4))
        action = build_action(ActionType.CREATE_ORDER, payload)
        result = await self._executor.execute(action, turn.client_id)
        return _reply(result.message, result.success, action, result.data)

    async def delete_order(self, turn: Turn, m: re.Match) -> AssistantReply:
        reference = m.group(1).upper()
        try:
            order = await self._orders.find(reference)
        except NotFoundError:
            return AssistantReply(text=f"❌ I couldn't find order {reference}.")
        action = build_action(ActionType.DELETE_ORDER, {"id": order.id, "orderNumber": order.order_number})
        if not CONFIRM.search(turn.text):
            return AssistantReply(
                text=f"🗑️ I can delete order **{order.reference}** for {order.customer_name}. "
                     'This action cannot be undone. Say "execute" or "confirm" to delete.',
                action=action,
                awaiting="confirmation",
            )
        result = await self._executor.execute(action, turn.client_id)
        return _reply(result.message, result.success, action)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _increment(self, turn: Turn, item: InventoryItem, delta: int) -> AssistantReply:
        action = build_action(ActionType.INCREMENT_INVENTORY_STOCK,
                              {"id": item.id, "delta": delta, "sku": item.sku})
        result = await self._executor.execute(action, turn.client_id)
        return _reply(result.message, result.success, action, result.data)

    async def _lookup(self, term: str) -> list[InventoryItem]:
        """Name/SKU contains-match, retried once without a plural 's'."""
        matches = await self._inventory.match_name_or_sku(term)
        if not matches and term.lower().endswith("s"):
            matches = await self._inventory.match_name_or_sku(term[:-1])
        return matches

    async def _find_sku(self, token: str) -> tuple[Optional[InventoryItem], str]:
        forms = sku_forms(token)
        for form in forms:
            item = await self._inventory.find_by_sku(form)
            if item is not None:
                return item, item.sku
        return None, forms[0]

    async def _target_item(self, turn: Turn) -> Optional[ItemRef]:
        token = _SKU_ANYWHERE.search(turn.text)
        if token:
            item, _ = await self._find_sku(token.group(1))
            return ItemRef(id=item.id, name=item.name, sku=item.sku) if item else None
        if turn.session and turn.session.last_inventory:
            return turn.session.last_inventory
        return None


