"""
application.heuristics - Deterministic defaults for new inventory items.

Category, price and threshold are derived from the item name and stock
level; SKUs are derived from name + category plus a short random suffix
and made unique against the current inventory snapshot.
"""

from __future__ import annotations

import random
import re
import string
import time
from typing import Callable, Iterable

# Ordered: the first matching category wins (packing before materials so
# "packing materials" is not filed as raw material).
CATEGORY_RULES: list[tuple[str, str]] = [
    ("Packing Materials", r"pack(ing)?\s*materials?|packaging|shipping\s*suppl(y|ies)|box(es)?|mailers?|bubble\s*wrap|tape|labels?"),
    ("Materials", r"raw\s*material|materials?|blank|suppl(y|ies)|\bink\b|paper|vinyl|dtf|film|sheets?"),
    ("Apparel", r"shirt|t-?shirt|tee|hoodie|sweatshirt"),
    ("Drinkware", r"mug|cup|tumbler"),
    ("Stickers", r"sticker|decal"),
    ("Headwear", r"\bhat|\bcap\b|beanie"),
    ("Prints", r"poster|print"),
]

PRICE_RULES: list[tuple[float, str]] = [
    (5.0, r"raw\s*material|blank"),
    (35.0, r"hoodie|sweatshirt"),
    (15.0, r"shirt|t-?shirt|tee"),
    (12.0, r"mug|cup|tumbler"),
    (1.5, r"sticker|decal"),
    (18.0, r"\bhat|\bcap\b|beanie"),
    (10.0, r"poster|print"),
]

DEFAULT_CATEGORY = "General"
DEFAULT_PRICE = 9.99
DEFAULT_THRESHOLD = 5

_CATEGORY_CODES: list[tuple[str, str]] = [
    ("pack", "PKG"), ("mater", "MAT"), ("raw", "RM"), ("apparel", "APP"),
    ("drink", "DRK"), ("sticker", "STK"), ("head", "HDW"), ("print", "PRT"),
]


def guess_category(name: str) -> str:
    n = (name or "").lower()
    for category, pattern in CATEGORY_RULES:
        if re.search(pattern, n):
            return category
    return DEFAULT_CATEGORY


def normalize_category(raw: str) -> str:
    """Map a user-typed category ("raw materials", "stickers") to its canonical name."""
    c = (raw or "").strip().lower()
    if not c:
        return DEFAULT_CATEGORY
    if c.startswith("pack"):
        return "Packing Materials"
    if c.startswith("raw") or c.startswith("mater"):
        return "Materials"
    return c[:1].upper() + c[1:]


def category_code(category: str) -> str:
    c = (category or "").lower()
    for prefix, code in _CATEGORY_CODES:
        if c.startswith(prefix):
            return code
    return "GEN"


def guess_price(name: str) -> float:
    n = (name or "").lower()
    for price, pattern in PRICE_RULES:
        if re.search(pattern, n):
            return price
    return DEFAULT_PRICE


def guess_threshold(stock: int) -> int:
    """5 for an empty item, else 10% of stock clamped to [3, 25]."""
    s = int(stock or 0)
    if not s:
        return DEFAULT_THRESHOLD
    return min(25, max(3, s // 10))


def slugify(name: str) -> str:
    return re.sub(r"[^A-Z0-9]+", "-", (name or "").strip().upper()).strip("-")


def random_suffix(length: int = 4) -> str:
    return "".join(random.choices(string.ascii_uppercase + string.digits, k=length))


def guess_sku(
    name: str,
    category: str | None = None,
    suffix: Callable[[], str] = random_suffix,
) -> str:
    """CODE-FIRST-THREE-WORDS-XXXX, e.g. APP-BLACK-T-SHIRT-7KQ2."""
    cat = category or guess_category(name)
    slug = "-".join(slugify(name).split("-")[:3]) or "ITEM"
    return f"{category_code(cat)}-{slug}-{suffix()}"


def sku_from_name(name: str, max_len: int = 20) -> str:
    """Readable SKU base used for materials and products."""
    base = slugify(name)[:max_len].strip("-")
    return base or "PRODUCT"


def packing_sku_from_name(name: str) -> str:
    return ("PKG-" + sku_from_name(name))[:24].rstrip("-")


def unique_sku(
    base: str,
    existing: Iterable[str],
    clock: Callable[[], float] = time.time,
) -> str:
    """Return base, or base-001, base-002... if taken; timestamp suffix as a last resort."""
    taken = {s.upper() for s in existing if s}
    sku = base.upper()
    if sku not in taken:
        return sku
    for n in range(1, 10000):
        candidate = f"{sku}-{n:03d}"
        if candidate not in taken:
            return candidate
    return f"{sku}-{str(int(clock() * 1000))[-5:]}"
