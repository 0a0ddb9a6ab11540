"""
infrastructure.retrieval.context_retriever - Live-data context for the agent.

Implements ContextRetrieverPort with plain keyword overlap against the
document store instead of vector search: items whose name shares a word
with the question, then order counts by status.
"""

from __future__ import annotations

import logging
import re
from collections import Counter

from application.services.inventory import InventoryService
from application.services.orders import OrderService

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[a-z0-9]+")
_STOPWORDS = {
    "a", "an", "the", "of", "to", "for", "and", "or", "in", "on", "we", "do",
    "have", "how", "many", "much", "is", "are", "what", "any", "our", "my",
    "me", "can", "you", "with", "please", "show", "list", "give",
}


def keywords(text: str) -> set[str]:
    """Lowercase content words of at least three characters."""
    return {
        w for w in _WORD.findall((text or "").lower())
        if len(w) >= 3 and w not in _STOPWORDS
    }


class InventoryContextRetriever:
    """Short plain-text context from the current inventory and orders."""

    def __init__(self, inventory: InventoryService, orders: OrderService, max_items: int = 8):
        self._inventory = inventory
        self._orders = orders
        self._max_items = max_items

    async def retrieve(self, question: str) -> str:
        try:
            words = keywords(question)
            lines: list[str] = []

            if words:
                hits = [
                    item for item in await self._inventory.items()
                    if words & keywords(f"{item.name} {item.category}")
                ][: self._max_items]
                if hits:
                    lines.append("Matching inventory:")
                    lines.extend(
                        f"- {i.name} (SKU {i.sku or 'N/A'}, {i.category or 'uncategorized'}): "
                        f"stock {i.stock}, threshold {i.threshold}, ${i.price:.2f}"
                        for i in hits
                    )

            counts = Counter(o.status or "Unknown" for o in await self._orders.orders())
            if counts:
                summary = ", ".join(f"{status} {n}" for status, n in sorted(counts.items()))
                lines.append(f"Orders by status: {summary}")

            return "\n".join(lines)
        except Exception:
            logger.exception("Context retrieval failed")
            return ""
