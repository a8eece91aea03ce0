"""API routes for feeding schedules."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.application.schedule_service import ScheduleService
from src.api.domain.exceptions import ScheduleNotFoundError
from src.api.domain.schemas import ScheduleCreate, ScheduleListResponse, ScheduleResponse
from src.api.infrastructure.database import get_db_session

router = APIRouter(prefix="/api/schedules", tags=["schedules"])


def get_schedule_service():
    """Get schedule service dependency."""
    return ScheduleService()


@router.get("", response_model=ScheduleListResponse)
async def list_schedules(
    session: AsyncSession = Depends(get_db_session),
    service: ScheduleService = Depends(get_schedule_service),
):
    """List all feeding schedules."""
    return await service.list_schedules(session)


@router.post("", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
    data: ScheduleCreate,
    session: AsyncSession = Depends(get_db_session),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Create a feeding schedule (enabled)."""
    return await service.create(session, data.days, data.time)


@router.put("/{schedule_id}", response_model=ScheduleResponse)
async def replace_schedule(
    schedule_id: int,
    data: ScheduleCreate,
    session: AsyncSession = Depends(get_db_session),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Replace the days and time of a schedule."""
    try:
        return await service.replace(session, schedule_id, data.days, data.time)
    except ScheduleNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{schedule_id}/toggle", response_model=ScheduleResponse)
async def toggle_schedule(
    schedule_id: int,
    session: AsyncSession = Depends(get_db_session),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Enable or disable a schedule."""
    try:
        return await service.toggle(session, schedule_id)
    except ScheduleNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/{schedule_id}", status_code=204)
async def delete_schedule(
    schedule_id: int,
    session: AsyncSession = Depends(get_db_session),
    service: ScheduleService = Depends(get_schedule_service),
):
    """Delete a schedule."""
    try:
        await service.delete(session, schedule_id)
    except ScheduleNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
