"""
application.services.scope_filter - Rule-based guardrails.

Two checks:
    1. classify(): is an incoming message about running the shop?
       An allow-list hit always wins; otherwise a block-list hit marks the
       message out of scope; otherwise the verdict is UNKNOWN and callers
       treat it as in scope.
    2. is_fabricated_report(): does model free text contain report headers
       that must only ever come from live data?
"""

from __future__ import annotations

import logging
import re

from domain.models import ScopeVerdict

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Keyword lists
# ---------------------------------------------------------------------------

DOMAIN_KEYWORDS: list[str] = [
    "inventory", "order", "sku", "stock", "restock", "material", "packing",
    "packaging", "product", "design", "pricing", "price", "customer",
    "shipping", "shipment", "shipped", "delivered", "mailer", "label",
    "threshold", "unit", "item", "shop", "dashboard", "summary", "alert",
    "usage", "report", "supplier", "catalog", "listing", "import",
]

OFF_TOPIC_KEYWORDS: list[str] = [
    "weather", "joke", "movie", "music", "celebrity", "celebrities",
    "politics", "sports", "news", "recipe", "travel", "game", "roleplay",
    "story", "fanfic", "fiction", "poem", "song", "lyrics", "astrology",
    "horoscope", "dating", "relationship", "therapy", "medical", "legal",
    "finance", "investment", "crypto", "bitcoin", "betting", "gambling",
    "nsfw",
]

OUT_OF_SCOPE_REPLY = "I’m only able to assist with shop and dashboard operations."

FABRICATED_REPORT_REDIRECT = (
    'I can pull live numbers from your database. Ask for "inventory summary" '
    'or "order status", or specify an item name/SKU '
    '(e.g., "how many black shirts do we have?").'
)

_FABRICATED_REPORT = re.compile(
    r"(inventory summary|orders overview|total skus|units in stock|low stock items"
    r"|out of stock|top pending orders|pending:|processing:|delivered:)",
    re.IGNORECASE,
)


def _keyword_pattern(words: list[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    return re.compile(r"\b(?:" + alternatives + r")(?:s|es)?\b", re.IGNORECASE)


class ScopeFilter:
    """Classify messages by domain relevance and screen model output."""

    def __init__(
        self,
        domain_keywords: list[str] | None = None,
        off_topic_keywords: list[str] | None = None,
    ):
        self._allow = _keyword_pattern(domain_keywords or DOMAIN_KEYWORDS)
        self._block = _keyword_pattern(off_topic_keywords or OFF_TOPIC_KEYWORDS)

    def classify(self, text: str) -> ScopeVerdict:
        if self._allow.search(text):
            return ScopeVerdict.IN_SCOPE
        match = self._block.search(text)
        if match:
            logger.info("Out-of-scope keyword '%s' in: %s", match.group(0), text[:80])
            return ScopeVerdict.OUT_OF_SCOPE
        return ScopeVerdict.UNKNOWN

    @staticmethod
    def is_fabricated_report(model_text: str) -> bool:
        return bool(_FABRICATED_REPORT.search(model_text or ""))

    def sanitize(self, model_text: str) -> str:
        """Replace model text that imitates a live report with a redirect."""
        if self.is_fabricated_report(model_text):
            logger.warning("Model produced a report-like answer; replacing with redirect")
            return FABRICATED_REPORT_REDIRECT
        return model_text
