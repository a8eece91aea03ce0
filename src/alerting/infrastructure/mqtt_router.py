"""Maps raw MQTT messages to typed telemetry events."""

from loguru import logger

from src.alerting.domain.events import (
    DeviceLogLine,
    DeviceStatusReport,
    SensorReading,
    TelemetryEvent,
)
from src.alerting.infrastructure.event_bus import TelemetryBus

# topic suffix -> sensor field
SENSOR_TOPICS = {
    "sensor/temp": "temperature",
    "sensor/humidity": "humidity",
    "sensor/feed": "feed",
    "sensor/water": "water",
}


class MqttTopicRouter:
    """
    Translates `<prefix>/...` topics into bus events.

    Any MQTT client can feed this router from its message callback; the
    router itself holds no connection.
    """

    def __init__(self, bus: TelemetryBus, topic_prefix: str = "chickulungan"):
        self.bus = bus
        self.topic_prefix = topic_prefix.rstrip("/")

    @property
    def subscriptions(self) -> list[str]:
        """Topic filters a client should subscribe to."""
        return [f"{self.topic_prefix}/sensor/#", f"{self.topic_prefix}/status", f"{self.topic_prefix}/log"]

    def to_event(self, topic: str, payload: str | bytes) -> TelemetryEvent | None:
        """Parse one message; unknown topics yield None."""
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")

        prefix = f"{self.topic_prefix}/"
        if not topic.startswith(prefix):
            return None
        suffix = topic[len(prefix):]

        if suffix in SENSOR_TOPICS:
            return SensorReading(field=SENSOR_TOPICS[suffix], value=payload)
        if suffix == "status":
            return DeviceStatusReport(status=payload.strip().lower())
        if suffix == "log":
            return DeviceLogLine(message=payload)
        return None

    async def handle_message(self, topic: str, payload: str | bytes) -> bool:
        """
        Route one message to the bus.

        Returns:
            True if the topic was recognized
        """
        event = self.to_event(topic, payload)
        if event is None:
            logger.debug(f"Ignoring MQTT topic {topic}")
            return False

        await self.bus.publish(event)
        return True
