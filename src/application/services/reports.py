"""
application.services.reports - Inventory usage over a date range.

Orders are bucketed by createdAt (ISO timestamp) or, failing that, by
their date field. Packaging usage assumes one packaging unit per product
unit sold.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional

from domain.exceptions import ValidationError
from domain.models import to_number
from domain.ports import DocumentStorePort

logger = logging.getLogger(__name__)


def parse_day(raw: str) -> Optional[date]:
    try:
        return datetime.strptime(str(raw or ""), "%Y-%m-%d").date()
    except ValueError:
        return None


def _order_time(doc: dict[str, Any]) -> Optional[datetime]:
    created = doc.get("createdAt")
    if created:
        try:
            stamp = datetime.fromisoformat(str(created).replace("Z", "+00:00"))
        except ValueError:
            stamp = None
        if stamp is not None:
            return stamp if stamp.tzinfo else stamp.replace(tzinfo=timezone.utc)
    day = parse_day(doc.get("date"))
    if day is not None:
        return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return None


class ReportService:
    """Aggregations over orders joined with inventory."""

    def __init__(self, store: DocumentStorePort):
        self._store = store

    async def usage_report(self, start: str, end: str, limit: int = 5000) -> dict[str, Any]:
        start_day, end_day = parse_day(start), parse_day(end)
        if start_day is None or end_day is None:
            raise ValidationError("start and end must be YYYY-MM-DD")
        lower = datetime(start_day.year, start_day.month, start_day.day, tzinfo=timezone.utc)
        upper = datetime(end_day.year, end_day.month, end_day.day, tzinfo=timezone.utc) \
            + timedelta(days=1)

        orders = await self._store.list("orders", limit=limit)
        inventory = await self._store.list("inventory", limit=2000)
        by_name = {str(i.get("name") or "").lower(): i for i in inventory if i.get("name")}
        by_id = {str(i["id"]): i for i in inventory}

        in_range = []
        for doc in orders:
            stamp = _order_time(doc)
            if stamp is not None and lower <= stamp < upper:
                in_range.append(doc)

        products: dict[str, dict[str, Any]] = {}
        units = 0.0
        revenue = 0.0
        for doc in in_range:
            name = str(doc.get("product") or "").strip()
            if not name:
                continue
            qty = to_number(doc.get("quantity"))
            price = doc.get("price")
            line = to_number(price) * qty if price is not None else 0.0
            units += qty
            revenue += line

            inv = by_name.get(name.lower(), {})
            rec = products.setdefault(name.lower(), {
                "name": name,
                "sku": inv.get("sku"),
                "category": inv.get("category") or "Products",
                "quantity": 0,
                "orders": 0,
                "revenue": 0.0,
                "packagingId": inv.get("packagingId") or "",
            })
            rec["quantity"] += int(qty)
            rec["orders"] += 1
            rec["revenue"] = round(rec["revenue"] + line, 2)

        packaging: dict[str, dict[str, Any]] = {}
        for rec in products.values():
            pkg = by_id.get(str(rec["packagingId"])) if rec["packagingId"] else None
            if pkg is None:
                continue
            entry = packaging.setdefault(pkg["id"], {
                "id": pkg["id"], "name": pkg.get("name"), "sku": pkg.get("sku"), "quantity": 0,
            })
            entry["quantity"] += rec["quantity"]

        logger.info("Usage report %s..%s: %d orders", start, end, len(in_range))
        return {
            "timeframe": {"start": start, "end": end},
            "totals": {
                "orders": len(in_range),
                "units": int(units),
                "revenue": round(revenue, 2),
            },
            "products": sorted(products.values(), key=lambda r: r["quantity"], reverse=True),
            "packagingUsage": sorted(packaging.values(), key=lambda r: r["quantity"], reverse=True),
        }
