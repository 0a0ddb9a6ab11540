"""Pydantic models for REST API request/response validation."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Assistant ---

class AssistantBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1, max_length=4000)
    client_id: str = Field(default="default", alias="clientId", min_length=1, max_length=128)
    image_attachment: Optional[str] = Field(default=None, alias="imageAttachment")


class ActionOut(BaseModel):
    type: str
    payload: dict[str, Any]
    endpoint: str
    method: str


class OptionOut(BaseModel):
    label: str
    send: str


class AssistantOut(BaseModel):
    text: str
    source: str
    executed: bool = False
    data: Optional[dict[str, Any]] = None
    action: Optional[ActionOut] = None
    awaiting: Optional[str] = None
    options: Optional[list[OptionOut]] = None


class SessionClearedOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(..., alias="clientId")
    cleared: bool = True


# --- Inventory reports ---

class PackingAlertItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: Optional[str] = None
    sku: Optional[str] = None
    stock: int = 0
    threshold: int = 0


class PackingAlertCounts(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    low: int
    out: int
    total_packing: int = Field(..., alias="totalPacking")


class PackingAlertsOut(BaseModel):
    low: list[PackingAlertItem]
    out: list[PackingAlertItem]
    counts: PackingAlertCounts
