"""Read-only inventory report endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from factory import ServiceFactory
from adapters.rest.dependencies import enforce_rate_limit, get_factory
from adapters.rest.schemas import PackingAlertsOut
from application.heuristics import DEFAULT_THRESHOLD
from domain.exceptions import ValidationError

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/alerts/packing", response_model=PackingAlertsOut)
async def packing_alerts(
    threshold: int = Query(DEFAULT_THRESHOLD, ge=0),
    ip: str = Depends(enforce_rate_limit),
    factory: ServiceFactory = Depends(get_factory),
):
    return await factory.inventory.packing_alerts(threshold)


@router.get("/usage")
async def usage_report(
    start: str = Query(..., description="YYYY-MM-DD"),
    end: str = Query(..., description="YYYY-MM-DD, inclusive"),
    ip: str = Depends(enforce_rate_limit),
    factory: ServiceFactory = Depends(get_factory),
):
    try:
        return await factory.reports.usage_report(start, end)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
