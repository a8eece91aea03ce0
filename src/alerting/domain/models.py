"""Domain models for the alert engine."""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable


class Severity(str, Enum):
    """Alert severity levels."""

    WARNING = "warning"
    CRITICAL = "critical"

    @classmethod
    def normalize(cls, value: Any) -> "Severity":
        """Anything that is not explicitly critical is a warning."""
        return cls.CRITICAL if str(getattr(value, "value", value)) == cls.CRITICAL.value else cls.WARNING


class AlertType(str, Enum):
    """Fixed set of alert conditions."""

    LOW_FEED = "LowFeed"
    HIGH_TEMPERATURE = "HighTemperature"
    LOW_TEMPERATURE = "LowTemperature"
    HIGH_HUMIDITY = "HighHumidity"
    LOW_HUMIDITY = "LowHumidity"
    LOW_WATER = "LowWater"
    DEVICE_OFFLINE = "DeviceOffline"


class SensorCategory(str, Enum):
    """Category an alert type belongs to, used for auto-resolution."""

    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    FEED = "feed"
    WATER = "water"
    DEVICE = "device"


ALERT_CATEGORIES: dict[AlertType, SensorCategory] = {
    AlertType.LOW_FEED: SensorCategory.FEED,
    AlertType.HIGH_TEMPERATURE: SensorCategory.TEMPERATURE,
    AlertType.LOW_TEMPERATURE: SensorCategory.TEMPERATURE,
    AlertType.HIGH_HUMIDITY: SensorCategory.HUMIDITY,
    AlertType.LOW_HUMIDITY: SensorCategory.HUMIDITY,
    AlertType.LOW_WATER: SensorCategory.WATER,
    AlertType.DEVICE_OFFLINE: SensorCategory.DEVICE,
}


class ResolvedBy(str, Enum):
    """Who resolved an alert."""

    AUTO = "auto"
    OPERATOR = "operator"


class Liveness(str, Enum):
    """Derived device liveness."""

    ONLINE = "online"
    OFFLINE = "offline"


@dataclass
class SensorState:
    """Canonical in-memory sensor snapshot for the monitored device."""

    temperature: float = 0.0
    humidity: float = 0.0
    feed_level: float = 0.0
    water_level: float = 0.0
    last_seen_at_ms: int | None = None  # device-reported, only from the snapshot channel

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "feed_level": self.feed_level,
            "water_level": self.water_level,
            "last_seen_at_ms": self.last_seen_at_ms,
        }


@dataclass(frozen=True)
class LivenessSnapshot:
    """Result of one liveness check."""

    state: Liveness
    age_ms: int | None
    has_confirmed_sample: bool

    @property
    def is_online(self) -> bool:
        return self.state == Liveness.ONLINE

    @property
    def dropped(self) -> bool:
        """Offline after having reported at least once."""
        return self.state == Liveness.OFFLINE and self.has_confirmed_sample


@dataclass
class Alert:
    """Persisted alert record."""

    id: str | None
    type: AlertType
    message: str
    severity: Severity
    created_at_ms: int
    resolved: bool = False
    resolved_at_ms: int | None = None
    resolved_by: ResolvedBy | None = None
    source: str = "engine"

    @property
    def category(self) -> SensorCategory:
        return ALERT_CATEGORIES[self.type]

    def resolve(self, now_ms: int, by: ResolvedBy) -> "Alert":
        """Return a resolved copy; resolving twice keeps the first resolution."""
        if self.resolved:
            return self
        return replace(self, resolved=True, resolved_at_ms=now_ms, resolved_by=by)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for storage/serialization."""
        return {
            "id": self.id,
            "type": self.type.value,
            "message": self.message,
            "severity": self.severity.value,
            "created_at_ms": self.created_at_ms,
            "resolved": self.resolved,
            "resolved_at_ms": self.resolved_at_ms,
            "resolved_by": self.resolved_by.value if self.resolved_by else None,
            "source": self.source,
        }


@dataclass(frozen=True)
class AlertCandidate:
    """An alert rule that currently fires."""

    type: AlertType
    severity: Severity
    message: str


@dataclass(frozen=True)
class Notification:
    """A user-facing notification (toast + platform notification)."""

    title: str
    body: str
    tag: str | None = None
    renotify: bool = False
    level: str = "warning"
    created_at_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "tag": self.tag,
            "renotify": self.renotify,
            "level": self.level,
            "created_at_ms": self.created_at_ms,
        }


@dataclass
class ReminderState:
    """Local, best-effort record of when each unresolved alert was last reminded."""

    last_reminded: dict[str, int] = field(default_factory=dict)

    def last_for(self, alert_id: str) -> int:
        return self.last_reminded.get(alert_id, 0)

    def record(self, alert_id: str, now_ms: int) -> None:
        self.last_reminded[alert_id] = now_ms

    def prune(self, alerts: Iterable[Alert]) -> bool:
        """
        Drop entries whose alert is resolved or unknown.

        Returns:
            True if anything was removed
        """
        open_ids = {a.id for a in alerts if not a.resolved}
        stale = [alert_id for alert_id in self.last_reminded if alert_id not in open_ids]
        for alert_id in stale:
            del self.last_reminded[alert_id]
        return bool(stale)

    def to_json(self) -> str:
        return json.dumps(self.last_reminded, sort_keys=True)

    @classmethod
    def from_json(cls, raw: str | None) -> "ReminderState":
        """Parse serialized state; anything malformed yields an empty or partial state."""
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except ValueError:
            return cls()
        if not isinstance(data, dict):
            return cls()

        entries: dict[str, int] = {}
        for alert_id, ts in data.items():
            try:
                entries[str(alert_id)] = int(ts)
            except (TypeError, ValueError):
                continue
        return cls(last_reminded=entries)
