"""API routes for the activity log."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.alerting.domain.timeutil import now_ms
from src.api.application.log_service import MAX_LOGS, LogService
from src.api.domain.schemas import LogCreate, LogListResponse, LogResponse, UptimeResponse
from src.api.infrastructure.database import get_db_session

router = APIRouter(prefix="/api/logs", tags=["logs"])


def get_log_service():
    """Get log service dependency."""
    return LogService()


@router.get("", response_model=LogListResponse)
async def list_logs(
    search: str = Query("", description="Space-separated tokens; all must match"),
    limit: int = Query(MAX_LOGS, ge=1, le=MAX_LOGS),
    session: AsyncSession = Depends(get_db_session),
    service: LogService = Depends(get_log_service),
):
    """List log entries, newest first."""
    return await service.list_logs(session, search=search, limit=limit)


@router.post("", response_model=LogResponse, status_code=201)
async def append_log(
    data: LogCreate,
    session: AsyncSession = Depends(get_db_session),
    service: LogService = Depends(get_log_service),
):
    """Append a log entry."""
    return await service.append(session, data.message, data.source, now_ms())


@router.delete("", status_code=200)
async def clear_logs(
    session: AsyncSession = Depends(get_db_session),
    service: LogService = Depends(get_log_service),
):
    """
    Delete all log entries.

    ⚠️ Warning: This permanently deletes the whole log.
    """
    return await service.clear(session)


@router.get("/uptime", response_model=UptimeResponse)
async def uptime(
    days: int = Query(7, ge=1, le=31),
    session: AsyncSession = Depends(get_db_session),
    service: LogService = Depends(get_log_service),
):
    """Daily uptime estimated from gaps between log entries."""
    return await service.uptime(session, days=days)
