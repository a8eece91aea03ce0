"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.alerting.domain.models import AlertType, ResolvedBy, Severity

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


# Telemetry Schemas
class SensorSnapshotIn(BaseModel):
    """Fallback-channel snapshot as written by the device."""

    model_config = ConfigDict(extra="allow")

    temperature: Any = None
    humidity: Any = None
    feedLevel: Any = None
    waterLevel: Any = None
    lastUpdate: Any = None


class MqttMessageIn(BaseModel):
    """Raw MQTT message forwarded by a broker bridge."""

    topic: str = Field(..., min_length=1)
    payload: str = ""


class MqttMessageResponse(BaseModel):
    accepted: bool


class SensorStateResponse(BaseModel):
    temperature: float
    humidity: float
    feed_level: float
    water_level: float
    last_seen_at_ms: int | None


class TelemetryStatusResponse(BaseModel):
    """Current sensor state and device liveness."""

    sensors: SensorStateResponse
    liveness: str
    age_ms: int | None
    has_confirmed_sample: bool
    reported_status: str
    reported_online: bool
    open_alerts: int


# Alert Schemas
class AlertResponse(BaseModel):
    """Schema for alert response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    type: AlertType
    message: str
    severity: Severity
    created_at_ms: int
    resolved: bool
    resolved_at_ms: int | None = None
    resolved_by: ResolvedBy | None = None
    source: str = "engine"


class AlertListResponse(BaseModel):
    alerts: list[AlertResponse]
    total: int


class AlertStatsResponse(BaseModel):
    total: int
    unresolved: int
    by_severity: dict[str, int]
    by_type: dict[str, int]


class ResolveAllResponse(BaseModel):
    resolved_ids: list[str]
    resolved_count: int


# Notification / presence Schemas
class NotificationResponse(BaseModel):
    title: str
    body: str
    tag: str | None
    renotify: bool
    level: str
    created_at_ms: int


class PresenceIn(BaseModel):
    visible: bool


class PresenceResponse(BaseModel):
    visible: bool
    active: bool


# Command Schemas
class FeedResponse(BaseModel):
    topic: str
    payload: str
    timestamp_ms: int


# Log Schemas
class LogCreate(BaseModel):
    """Schema for appending a log entry."""

    message: str = Field(..., min_length=1)
    source: str = Field(default="web", pattern="^(esp32|web|system)$")


class LogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    message: str
    source: str
    timestamp_ms: int
    line: str = ""


class LogListResponse(BaseModel):
    logs: list[LogResponse]
    total: int


class UptimeDay(BaseModel):
    day: str  # e.g. "Sep 23"
    date: str  # ISO date
    active_minutes: int
    uptime: float  # percent of the day


class UptimeResponse(BaseModel):
    days: list[UptimeDay]


# Schedule Schemas
class ScheduleCreate(BaseModel):
    """Schema for creating or replacing a feeding schedule."""

    days: list[str] = Field(..., min_length=1, description="Weekday abbreviations, e.g. ['Mon', 'Thu']")
    time: str = Field(..., pattern=r"^(0[1-9]|1[0-2]):[0-5]\d (AM|PM)$", description="Time as 'hh:mm AM'")

    @field_validator("days")
    @classmethod
    def check_days(cls, value: list[str]) -> list[str]:
        unknown = [d for d in value if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"Unknown weekday(s): {', '.join(unknown)}")
        # keep week order, drop repeats
        return [d for d in WEEKDAYS if d in value]


class ScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    days: list[str]
    time: str
    enabled: bool
    created_at: datetime
    updated_at: datetime


class ScheduleListResponse(BaseModel):
    schedules: list[ScheduleResponse]
    total: int
    active: int
