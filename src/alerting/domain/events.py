"""Telemetry events carried on the event bus."""

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class SensorReading:
    """Single field update from the push channel (value as received)."""

    field: str
    value: str


@dataclass(frozen=True)
class SensorSnapshot:
    """Bulk snapshot from the fallback channel."""

    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeviceStatusReport:
    """Status announced by the device (e.g. MQTT last will)."""

    status: str


@dataclass(frozen=True)
class DeviceLogLine:
    """Free-form log line emitted by the device."""

    message: str


TelemetryEvent = Union[SensorReading, SensorSnapshot, DeviceStatusReport, DeviceLogLine]
