"""Telemetry ingest: folds both telemetry channels into one SensorState."""

from typing import Any

from loguru import logger

from src.alerting.domain.models import SensorState
from src.alerting.domain.timeutil import parse_float, parse_timestamp_ms

# push-channel field -> SensorState attribute
READING_FIELDS = {
    "temperature": "temperature",
    "humidity": "humidity",
    "feed": "feed_level",
    "water": "water_level",
}

# snapshot key -> SensorState attribute
SNAPSHOT_FIELDS = {
    "temperature": "temperature",
    "humidity": "humidity",
    "feedLevel": "feed_level",
    "waterLevel": "water_level",
}


class TelemetryIngest:
    """
    Maintains SensorState from the push channel and the snapshot channel.

    Push readings overwrite one field each. Snapshots overwrite every field
    they carry and are the only source allowed to move `last_seen_at_ms`.
    """

    def __init__(self, state: SensorState | None = None):
        self.state = state or SensorState()
        self.last_received_at_ms: int | None = None

    def apply_reading(self, field: str, raw_value: Any, now_ms: int) -> bool:
        """
        Apply a single push-channel reading.

        Args:
            field: temperature, humidity, feed or water
            raw_value: Value as received (string); malformed values become 0
            now_ms: Local receipt time

        Returns:
            True if the reading was accepted
        """
        attr = READING_FIELDS.get(field)
        if attr is None:
            logger.debug(f"Ignoring reading for unknown field {field!r}")
            return False

        setattr(self.state, attr, parse_float(raw_value))
        self.last_received_at_ms = now_ms
        return True

    def apply_snapshot(self, payload: dict[str, Any] | None, now_ms: int) -> bool:
        """
        Apply a fallback-channel snapshot.

        Missing keys keep their previous value. `lastUpdate` advances
        `last_seen_at_ms` only when it parses and is newer than the current one.

        Returns:
            True if the snapshot was accepted
        """
        if not payload:
            return False

        for key, attr in SNAPSHOT_FIELDS.items():
            if payload.get(key) is not None:
                setattr(self.state, attr, parse_float(payload[key]))

        last_update = parse_timestamp_ms(payload.get("lastUpdate"))
        if last_update is not None:
            current = self.state.last_seen_at_ms
            if current is None or last_update > current:
                self.state.last_seen_at_ms = last_update
            elif last_update < current:
                logger.debug(f"Ignoring older lastUpdate {last_update} (have {current})")
        elif "lastUpdate" in payload:
            logger.debug(f"Unparsable lastUpdate {payload.get('lastUpdate')!r}, treating as no update")

        self.last_received_at_ms = now_ms
        return True
