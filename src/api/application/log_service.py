"""Service for the activity log: listing, search and daily uptime."""

import re
import unicodedata
from datetime import datetime, timezone

import pandas as pd
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.domain.models import LogRecord
from src.api.domain.schemas import LogListResponse, LogResponse, UptimeDay, UptimeResponse
from src.api.infrastructure.repositories import LogRepository

SOURCE_LABELS = {"esp32": "ESP32", "web": "Web"}
MAX_LOGS = 500
ACTIVE_GAP_MINUTES = 10
MINUTES_PER_DAY = 1440


def normalize(text: str) -> str:
    """Lowercase, strip accents and punctuation noise, collapse whitespace."""
    text = unicodedata.normalize("NFKD", str(text).lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9\s:./_-]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def format_timestamp(timestamp_ms: int, sep: str = " ") -> str:
    """Format as 'Sep 23, 2025 07:05:09 PM' (UTC)."""
    if not timestamp_ms:
        return ""
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.strftime(f"%b %d, %Y{sep}%I:%M:%S %p")


def format_line(record: LogRecord) -> str:
    """One human-readable export line."""
    label = format_timestamp(record.timestamp_ms, sep=" │ ") or "Unknown time"
    source = SOURCE_LABELS.get(record.source, "System")
    return f"{label}  {source}  {record.message}"


def matches(record: LogRecord, tokens: list[str]) -> bool:
    """All search tokens must appear in message + source + date."""
    if not tokens:
        return True
    haystack = normalize(f"{record.message} {record.source} {format_timestamp(record.timestamp_ms)}")
    return all(token in haystack for token in tokens)


def daily_uptime(timestamps_ms: list[int], days: int = 7) -> list[UptimeDay]:
    """
    Estimate daily uptime from log timestamps.

    Consecutive entries at most ACTIVE_GAP_MINUTES apart count their gap as
    active time for the day of the later entry.
    """
    if not timestamps_ms:
        return []

    df = pd.DataFrame({"ts": sorted(timestamps_ms)})
    df["time"] = pd.to_datetime(df["ts"], unit="ms", utc=True)
    df["gap"] = df["ts"].diff() // 60_000
    df["active"] = df["gap"].where(df["gap"] <= ACTIVE_GAP_MINUTES, 0).fillna(0)
    df["day"] = df["time"].dt.floor("D")

    daily = df.groupby("day")["active"].sum().tail(days)

    return [
        UptimeDay(
            day=day.strftime("%b %d"),
            date=day.date().isoformat(),
            active_minutes=int(minutes),
            uptime=round(min(100.0, minutes / MINUTES_PER_DAY * 100), 1),
        )
        for day, minutes in daily.items()
    ]


class LogService:
    """Service for managing the activity log."""

    async def append(self, session: AsyncSession, message: str, source: str, timestamp_ms: int) -> LogResponse:
        """Append one entry."""
        repo = LogRepository(session)
        record = await repo.create(message, source, timestamp_ms)
        await session.commit()
        return self._to_response(record)

    async def list_logs(self, session: AsyncSession, search: str = "", limit: int = MAX_LOGS) -> LogListResponse:
        """Newest entries first, filtered by search tokens."""
        repo = LogRepository(session)
        records = await repo.list_recent(limit=min(limit, MAX_LOGS))

        query = normalize(search)
        tokens = query.split(" ") if query else []
        filtered = [r for r in records if matches(r, tokens)]

        return LogListResponse(logs=[self._to_response(r) for r in filtered], total=len(filtered))

    async def clear(self, session: AsyncSession) -> dict:
        """Delete every entry."""
        repo = LogRepository(session)
        count = await repo.delete_all()
        await session.commit()

        logger.warning(f"Deleted {count} log entries")
        return {"deleted_count": count, "message": f"Deleted {count} log entries"}

    async def uptime(self, session: AsyncSession, since_ms: int = 0, days: int = 7) -> UptimeResponse:
        """Daily uptime estimate for the most recent days."""
        repo = LogRepository(session)
        records = await repo.list_since(since_ms)
        return UptimeResponse(days=daily_uptime([r.timestamp_ms for r in records], days=days))

    def _to_response(self, record: LogRecord) -> LogResponse:
        return LogResponse(
            id=record.id,
            message=record.message,
            source=record.source,
            timestamp_ms=record.timestamp_ms,
            line=format_line(record),
        )
