"""Service for feeding schedule management."""

from typing import Callable

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.alerting.domain.timeutil import now_ms
from src.api.domain.exceptions import ScheduleNotFoundError
from src.api.domain.models import ScheduleRecord
from src.api.domain.schemas import ScheduleListResponse, ScheduleResponse
from src.api.infrastructure.repositories import LogRepository, ScheduleRepository


class ScheduleService:
    """Service for managing feeding schedules. Every change is written to the activity log."""

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock

    async def list_schedules(self, session: AsyncSession) -> ScheduleListResponse:
        """List all schedules."""
        schedules = await ScheduleRepository(session).list_all()
        return ScheduleListResponse(
            schedules=[self._to_response(s) for s in schedules],
            total=len(schedules),
            active=sum(1 for s in schedules if s.enabled),
        )

    async def create(self, session: AsyncSession, days: list[str], time: str) -> ScheduleResponse:
        """Create an enabled schedule."""
        schedule = await ScheduleRepository(session).create(days=days, time=time, enabled=True)
        await self._log(session, f"Added schedule: {', '.join(days)} at {time}")
        await session.commit()

        logger.info(f"✓ Created schedule {schedule.id}: {', '.join(days)} at {time}")
        return self._to_response(schedule)

    async def replace(self, session: AsyncSession, schedule_id: int, days: list[str], time: str) -> ScheduleResponse:
        """Replace days and time of a schedule; editing re-enables it."""
        repo = ScheduleRepository(session)
        schedule = await self._get(repo, schedule_id)

        schedule.days = days
        schedule.time = time
        schedule.enabled = True
        schedule = await repo.update(schedule)
        await self._log(session, f"Updated schedule: {', '.join(days)} at {time}")
        await session.commit()

        return self._to_response(schedule)

    async def toggle(self, session: AsyncSession, schedule_id: int) -> ScheduleResponse:
        """Flip the enabled flag."""
        repo = ScheduleRepository(session)
        schedule = await self._get(repo, schedule_id)

        schedule.enabled = not schedule.enabled
        schedule = await repo.update(schedule)
        await self._log(session, f"Schedule {'enabled' if schedule.enabled else 'disabled'}: ID {schedule_id}")
        await session.commit()

        return self._to_response(schedule)

    async def delete(self, session: AsyncSession, schedule_id: int) -> None:
        """Delete a schedule."""
        repo = ScheduleRepository(session)
        schedule = await self._get(repo, schedule_id)

        await repo.delete(schedule)
        await self._log(session, f"Deleted schedule: ID {schedule_id}")
        await session.commit()

        logger.info(f"✓ Deleted schedule {schedule_id}")

    async def _get(self, repo: ScheduleRepository, schedule_id: int) -> ScheduleRecord:
        schedule = await repo.get_by_id(schedule_id)
        if not schedule:
            raise ScheduleNotFoundError(schedule_id)
        return schedule

    async def _log(self, session: AsyncSession, message: str) -> None:
        await LogRepository(session).create(message, "web", self.clock())

    def _to_response(self, schedule: ScheduleRecord) -> ScheduleResponse:
        return ScheduleResponse(
            id=schedule.id,
            days=list(schedule.days),
            time=schedule.time,
            enabled=schedule.enabled,
            created_at=schedule.created_at,
            updated_at=schedule.updated_at,
        )
