"""Repositories for data access."""

from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.alerting.domain.models import Alert, AlertType, ResolvedBy, Severity
from src.api.domain.models import AlertRecord, LogRecord, ScheduleRecord


class AlertRepository:
    """Repository for Alert records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def to_domain(record: AlertRecord) -> Alert:
        """Convert a row to the domain Alert."""
        return Alert(
            id=record.id,
            type=AlertType(record.type),
            message=record.message,
            severity=Severity.normalize(record.severity),
            created_at_ms=record.created_at_ms,
            resolved=record.resolved,
            resolved_at_ms=record.resolved_at_ms,
            resolved_by=ResolvedBy(record.resolved_by) if record.resolved_by else None,
            source=record.source,
        )

    @staticmethod
    def _apply(record: AlertRecord, alert: Alert) -> None:
        record.type = alert.type.value
        record.message = alert.message
        record.severity = alert.severity.value
        record.created_at_ms = alert.created_at_ms
        record.resolved = alert.resolved
        record.resolved_at_ms = alert.resolved_at_ms
        record.resolved_by = alert.resolved_by.value if alert.resolved_by else None
        record.source = alert.source

    async def create(self, alert: Alert) -> AlertRecord:
        """Create a new alert row."""
        record = AlertRecord(id=alert.id)
        self._apply(record, alert)
        self.session.add(record)
        await self.session.flush()
        return record

    async def upsert(self, alert: Alert) -> AlertRecord:
        """Overwrite an alert by id (last write wins)."""
        record = await self.session.get(AlertRecord, alert.id)
        if record is None:
            return await self.create(alert)
        self._apply(record, alert)
        await self.session.flush()
        return record

    async def get(self, alert_id: str) -> Alert | None:
        """Get alert by ID."""
        record = await self.session.get(AlertRecord, alert_id)
        return self.to_domain(record) if record else None

    async def list_all(self) -> Sequence[Alert]:
        """List all alerts, newest first."""
        result = await self.session.execute(select(AlertRecord).order_by(AlertRecord.created_at_ms.desc()))
        return [self.to_domain(r) for r in result.scalars().all()]


class LogRepository:
    """Repository for activity log entries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, message: str, source: str, timestamp_ms: int) -> LogRecord:
        """Append a log entry."""
        record = LogRecord(message=message, source=source, timestamp_ms=timestamp_ms)
        self.session.add(record)
        await self.session.flush()
        return record

    async def list_recent(self, limit: int = 500) -> Sequence[LogRecord]:
        """List entries, newest first."""
        result = await self.session.execute(
            select(LogRecord).order_by(LogRecord.timestamp_ms.desc(), LogRecord.id.desc()).limit(limit)
        )
        return result.scalars().all()

    async def list_since(self, since_ms: int) -> Sequence[LogRecord]:
        """List entries at or after a timestamp, oldest first."""
        result = await self.session.execute(
            select(LogRecord).where(LogRecord.timestamp_ms >= since_ms).order_by(LogRecord.timestamp_ms.asc())
        )
        return result.scalars().all()

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(LogRecord.id)))
        return result.scalar_one()

    async def delete_all(self) -> int:
        """Delete every log entry."""
        count = await self.count()
        await self.session.execute(delete(LogRecord))
        await self.session.flush()
        return count


class ScheduleRepository:
    """Repository for feeding schedules."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, days: list[str], time: str, enabled: bool = True) -> ScheduleRecord:
        """Create a new schedule."""
        schedule = ScheduleRecord(days=days, time=time, enabled=enabled)
        self.session.add(schedule)
        await self.session.flush()
        await self.session.refresh(schedule)
        return schedule

    async def get_by_id(self, schedule_id: int) -> ScheduleRecord | None:
        """Get schedule by ID."""
        result = await self.session.execute(select(ScheduleRecord).where(ScheduleRecord.id == schedule_id))
        return result.scalar_one_or_none()

    async def list_all(self) -> Sequence[ScheduleRecord]:
        """List all schedules."""
        result = await self.session.execute(select(ScheduleRecord).order_by(ScheduleRecord.id.asc()))
        return result.scalars().all()

    async def update(self, schedule: ScheduleRecord) -> ScheduleRecord:
        """Update a schedule."""
        await self.session.flush()
        await self.session.refresh(schedule)
        return schedule

    async def delete(self, schedule: ScheduleRecord) -> None:
        """Delete a schedule."""
        await self.session.delete(schedule)
        await self.session.flush()
