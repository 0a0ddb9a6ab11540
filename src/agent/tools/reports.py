"""
agent.tools.reports - Read-only reporting tools.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from agent.tools.base import BaseTool, ToolInput, ToolResult
from application.context import SessionContext
from application.heuristics import DEFAULT_THRESHOLD
from application.services.inventory import InventoryService
from application.services.reports import ReportService


class PackingAlertsInput(ToolInput):
    threshold: Optional[int] = Field(default=None, ge=0,
                                     description="Threshold for items without their own")


class UsageReportInput(ToolInput):
    start: str = Field(..., description="YYYY-MM-DD")
    end: str = Field(..., description="YYYY-MM-DD, inclusive")


class GetPackingAlertsTool(BaseTool):
    name = "getPackingAlerts"
    description = "Packing materials that are out of stock or at/below threshold."

    def __init__(self, inventory: InventoryService):
        self._inventory = inventory

    def get_schema(self) -> type[BaseModel]:
        return PackingAlertsInput

    async def execute(self, ctx: SessionContext, threshold: Optional[int] = None, **_: Any) -> ToolResult:
        alerts = await self._inventory.packing_alerts(
            DEFAULT_THRESHOLD if threshold is None else threshold,
        )
        return ToolResult(outcome=alerts)


class InventoryUsageReportTool(BaseTool):
    name = "inventoryUsageReport"
    description = "Units, revenue and packaging used by orders between start and end dates."

    def __init__(self, reports: ReportService):
        self._reports = reports

    def get_schema(self) -> type[BaseModel]:
        return UsageReportInput

    async def execute(self, ctx: SessionContext, start: str = "", end: str = "", **_: Any) -> ToolResult:
        return ToolResult(outcome=await self._reports.usage_report(start, end))
