"""API routes for alerts."""

from fastapi import APIRouter, Depends, HTTPException, Query

from src.alerting.domain.models import Severity
from src.api.application.alert_service import AlertService
from src.api.domain.exceptions import AlertNotFoundError
from src.api.domain.schemas import AlertListResponse, AlertResponse, AlertStatsResponse, ResolveAllResponse
from src.api.infrastructure.container import get_container

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


def get_alert_service() -> AlertService:
    """Get alert service dependency."""
    return AlertService(get_container().engine())


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    resolved: bool | None = Query(None, description="Filter by resolution state"),
    severity: Severity | None = Query(None, description="Filter by severity"),
    limit: int = Query(100, ge=1, le=1000),
    service: AlertService = Depends(get_alert_service),
):
    """List alerts, newest first."""
    return await service.list_alerts(resolved=resolved, severity=severity, limit=limit)


@router.get("/stats", response_model=AlertStatsResponse)
async def alert_stats(service: AlertService = Depends(get_alert_service)):
    """Alert counts by severity and type."""
    return await service.stats()


@router.post("/resolve-all", response_model=ResolveAllResponse)
async def resolve_all_alerts(service: AlertService = Depends(get_alert_service)):
    """Resolve every open alert as operator."""
    return await service.resolve_all()


@router.post("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(alert_id: str, service: AlertService = Depends(get_alert_service)):
    """
    Resolve an alert as operator.

    Resolving an alert that is already resolved returns it unchanged.
    """
    try:
        return await service.resolve(alert_id)
    except AlertNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
