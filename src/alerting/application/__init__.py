"""Application layer for the alert engine."""

from src.alerting.application.engine import AlertEngine
from src.alerting.application.evaluator import AlertEvaluator
from src.alerting.application.ingest import TelemetryIngest
from src.alerting.application.liveness import LivenessMonitor
from src.alerting.application.reminders import ReminderScheduler, reminder_order

__all__ = [
    "AlertEngine",
    "AlertEvaluator",
    "TelemetryIngest",
    "LivenessMonitor",
    "ReminderScheduler",
    "reminder_order",
]
