"""Domain layer for the alert engine."""

from src.alerting.domain.exceptions import (
    AlertingError,
    AlertStoreError,
    CommandPublishError,
    NotificationError,
    ReminderStorageError,
)
from src.alerting.domain.models import (
    Alert,
    AlertCandidate,
    AlertType,
    Liveness,
    LivenessSnapshot,
    Notification,
    ReminderState,
    ResolvedBy,
    SensorCategory,
    SensorState,
    Severity,
)
from src.alerting.domain.protocols import (
    AlertStore,
    CommandPublisher,
    LogSink,
    NotificationSink,
    ReminderStorage,
    ViewerActivity,
)

__all__ = [
    "Alert",
    "AlertCandidate",
    "AlertType",
    "Liveness",
    "LivenessSnapshot",
    "Notification",
    "ReminderState",
    "ResolvedBy",
    "SensorCategory",
    "SensorState",
    "Severity",
    "AlertStore",
    "CommandPublisher",
    "LogSink",
    "NotificationSink",
    "ReminderStorage",
    "ViewerActivity",
    "AlertingError",
    "AlertStoreError",
    "CommandPublishError",
    "NotificationError",
    "ReminderStorageError",
]
