"""Infrastructure layer for the alert engine."""

from src.alerting.infrastructure.alert_store import DatabaseAlertStore, InMemoryAlertStore
from src.alerting.infrastructure.event_bus import Subscription, TelemetryBus
from src.alerting.infrastructure.log_sink import DatabaseLogSink, InMemoryLogSink
from src.alerting.infrastructure.mqtt_publisher import MqttCommandPublisher, RecordingCommandPublisher
from src.alerting.infrastructure.mqtt_router import MqttTopicRouter
from src.alerting.infrastructure.notifications import (
    CompositeNotificationSink,
    InMemoryNotificationSink,
    LoggingNotificationSink,
)
from src.alerting.infrastructure.presence import AlwaysInactive, ViewerPresence
from src.alerting.infrastructure.reminder_storage import InMemoryReminderStorage, JsonFileReminderStorage

__all__ = [
    "DatabaseAlertStore",
    "InMemoryAlertStore",
    "Subscription",
    "TelemetryBus",
    "DatabaseLogSink",
    "InMemoryLogSink",
    "MqttCommandPublisher",
    "RecordingCommandPublisher",
    "MqttTopicRouter",
    "CompositeNotificationSink",
    "InMemoryNotificationSink",
    "LoggingNotificationSink",
    "AlwaysInactive",
    "ViewerPresence",
    "InMemoryReminderStorage",
    "JsonFileReminderStorage",
]
