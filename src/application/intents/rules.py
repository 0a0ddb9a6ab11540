"""
application.intents.rules - The ordered local rule list.

Order is priority. Specialized phrasings ("add packing material ...
dimensions ...", "add material ...", "create product ...") come before
the restock rules, and the generic "add [N] NAME" catch-all comes after
everything that also starts with "add".
"""

from __future__ import annotations

import re

from application.intents.handlers import IntentHandlers
from application.intents.matcher import IntentMatcher, IntentRule, Turn, rule
from application.intents.resolver import SKU_TOKEN

_EXPLICIT_CREATE = re.compile(
    r"\badd\s+(?:a\s+)?(?:raw\s+material|material)s?\b"
    r"|\badd\s+(?:a\s+)?packing\s+material\b"
    r"|\bcreate\s+product\b",
    re.IGNORECASE,
)


def _follow_up(turn: Turn) -> bool:
    """Bare attribute edits apply to lastInventory unless the text creates something."""
    return (
        turn.session is not None
        and turn.session.last_inventory is not None
        and not _EXPLICIT_CREATE.search(turn.text)
    )


def build_rules(h: IntentHandlers) -> list[IntentRule]:
    return [
        # Follow-ups on the last touched item
        rule("last_item_price",
             r"^\s*(?:set|change|update)\s+(?:the\s+)?price\s*(?:to|=)?\s*\$?(\d+(?:\.\d+)?)\s*$",
             h.set_last_price, _follow_up),
        rule("last_item_sku",
             r"^\s*(?:set|change|update)\s+(?:the\s+)?sku\s*(?:to|=)?\s*([a-z0-9\-]+)\s*$",
             h.set_last_sku, _follow_up),
        rule("last_item_category",
             r"^\s*(?:set|change|update)\s+(?:the\s+)?category\s*(?:to|=)?\s*(.+)$",
             h.set_last_category, _follow_up),
        rule("last_item_rename",
             r"^\s*(?:rename(?:\s+it)?|(?:set|change|update)\s+(?:the\s+)?name)\s*(?:to|as)?\s+(.+)$",
             h.rename_last, _follow_up),
        rule("last_item_color",
             r"^\s*(?:make\s+(?:it|them)\s+([a-z]+)(?:\s+colou?r)?"
             r"|(?:set|change)\s+(?:the\s+)?colou?r\s*(?:to|=)?\s*([a-z]+))\s*$",
             h.set_last_color, _follow_up),

        # Inventory report
        rule("inventory_summary", r"^(?=.*\binventory\b)(?=.*\b(?:summary|overview)\b)",
             h.inventory_summary),

        # Order mutations outrank the read-only orders overview
        rule("order_status",
             r"(?:mark|update|set|change)\s+(?:the\s+)?order\s+(?:status\s+(?:for|of)\s+)?([a-z0-9\-]+)\s+"
             r"(?:as\s+)?(?:status\s+)?(?:to\s+)?(pending|processing|shipped|delivered|cancelled|canceled)\b",
             h.order_status),

        # Read-only reports
        rule("orders_overview",
             r"^(?=.*\borders\b)(?=.*\b(?:pending|processing)\b)|\border\s+status\b",
             h.orders_overview),
        rule("stock_query",
             r"(?:how\s+many|do\s+we\s+have\s+any|what\s+is\s+(?:the\s+)?stock\s+of)\s+(.+?)\s*(?:\?|$)",
             h.stock_query),

        # Specialized creation flows
        rule("add_packing_material",
             r"add\s+(?:a\s+)?packing\s+material\s+(.+?)\s+dimensions\s+([^,]+?)"
             r"(?:\s+(?:stock|qty|quantity)\s+(\d+))?(?:\s+price\s+\$?(\d+(?:\.\d+)?))?\s*$",
             h.add_packing_material),
        rule("add_material",
             r"add\s+(?:a\s+)?(?:raw\s+material|material)s?\s+(.+?)"
             r"(?:\s+(?:stock|qty|quantity)\s+(\d+))?(?:\s+price\s+\$?(\d+(?:\.\d+)?))?\s*$",
             h.add_material),
        rule("create_product",
             r"create\s+product(?:\s+from\s+last\s+design)?(?:\s+(.+?))?"
             r"(?:\s+price\s*\$?(\d+(?:\.\d+)?))?(?:\s+(?:qty|quantity)\s+(\d+))?"
             r"(?:\s+using\s+materials?\s+(.+?))?(?:\s+packaging\s+(.+?))?\s*$",
             h.create_product),

        # Stock changes
        rule("restock_by_sku",
             r"\b(?:add|increase|restock|put)\s+(\d+)\s+(?:to\s+|for\s+|on\s+)?(" + SKU_TOKEN + r")",
             h.restock_by_sku),
        rule("restock_by_name", r"^\s*(?:add|increase|restock|put)\s+(\d+)\s+(.+?)\s*$",
             h.restock_by_name),
        rule("set_stock",
             r"(?:set|update)\s+stock\s+(?:for|of)\s+(" + SKU_TOKEN + r")\s*(?:to|=)\s*(\d+)",
             h.set_stock),

        # Attachments
        rule("attach_image", r"(?:set|attach|add)\s+(?:an?\s+)?(?:image|photo|picture)\b",
             h.attach_image),
        rule("ninjatransfer_link",
             r"(?:set|add)\s+(?:ninja\s*transfer|ninjatransfer)\s+(?:link|url)\s+(https?://\S+)",
             h.ninjatransfer_link),

        # Generic add (catch-all for "add ...")
        rule("generic_add",
             r"^\s*add\s+(?:(\d+)\s+)?(.+?)(?=\s+(?:to\s+inventory|as\s+|price\b|cost\b|at\s+\$?\d)|\s*$)",
             h.generic_add),
        rule("delete_item",
             r"(?:delete|remove)\s+(?:inventory\s+)?(?:item\s+)?(" + SKU_TOKEN + r")",
             h.delete_item),

        # Orders
        rule("create_order",
             r"create\s+(?:an?\s+)?order\s+for\s+(.+?)(?:\s+product\s+(.+?))?"
             r"(?:\s+(?:qty|quantity)\s+(\d+))?(?:\s+price\s+\$?(\d+(?:\.\d+)?))?\s*$",
             h.create_order),
        rule("delete_order", r"(?:delete|remove|cancel)\s+order\s+([a-z0-9\-]+)", h.delete_order),
    ]


def build_matcher(handlers: IntentHandlers) -> IntentMatcher:
    return IntentMatcher(build_rules(handlers))
