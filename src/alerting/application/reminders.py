"""Reminder scheduler: re-notifies unresolved alerts with severity-dependent backoff."""

from typing import Callable

from loguru import logger

from src.alerting.domain.exceptions import ReminderStorageError
from src.alerting.domain.models import Alert, ReminderState, Severity
from src.alerting.domain.protocols import NotificationSink, ReminderStorage, ViewerActivity
from src.config import NotificationConfig, ReminderConfig


def reminder_order(alerts: list[Alert]) -> list[Alert]:
    """Unresolved alerts, critical first, newest first within a severity."""
    unresolved = [a for a in alerts if not a.resolved]
    return sorted(
        unresolved,
        key=lambda a: (Severity.normalize(a.severity) != Severity.CRITICAL, -a.created_at_ms),
    )


class ReminderScheduler:
    """Decides, once per tick, which unresolved alerts to remind about."""

    def __init__(
        self,
        notifier: NotificationSink,
        storage: ReminderStorage,
        alerts_provider: Callable[[], list[Alert]],
        activity: ViewerActivity | None = None,
        config: ReminderConfig | None = None,
        notifications: NotificationConfig | None = None,
    ):
        self.notifier = notifier
        self.storage = storage
        self.alerts_provider = alerts_provider
        self.activity = activity
        self.config = config or ReminderConfig()
        self.notifications = notifications or NotificationConfig()
        self.state = ReminderState()

    def load(self) -> None:
        """Read persisted reminder timestamps (once, at startup)."""
        self.state = self.storage.load()
        logger.info(f"Loaded reminder state with {len(self.state.last_reminded)} entries")

    def interval_for(self, severity: Severity) -> int:
        if Severity.normalize(severity) == Severity.CRITICAL:
            return self.config.critical_interval_ms
        return self.config.warning_interval_ms

    async def tick(self, now_ms: int) -> list[str]:
        """
        Run one scheduler tick.

        Returns:
            Ids of the alerts reminded in this tick
        """
        if self.config.only_when_inactive and self.activity is not None and self.activity.is_viewer_active(now_ms):
            return []

        alerts = self.alerts_provider()
        candidates = reminder_order(alerts)
        if not candidates:
            if self.state.prune(alerts):
                self._persist()
            return []

        reminded = []
        for alert in candidates[: self.config.max_per_tick]:
            elapsed = now_ms - self.state.last_for(alert.id)
            if elapsed < self.interval_for(alert.severity):
                continue

            self.state.record(alert.id, now_ms)
            reminded.append(alert.id)
            await self._remind(alert)

        pruned = self.state.prune(alerts)
        if reminded or pruned:
            self._persist()

        if reminded:
            logger.info(f"Sent {len(reminded)} reminder(s) for unresolved alerts")
        return reminded

    async def _remind(self, alert: Alert) -> None:
        critical = Severity.normalize(alert.severity) == Severity.CRITICAL
        app = self.notifications.app_title
        title = f"{app}: Critical Alert Reminder" if critical else f"{app}: Alert Reminder"
        body = f"{alert.type.value} - {alert.message}"[: self.notifications.body_max_length]
        tag = f"{self.notifications.tag_prefix}-{'critical' if critical else 'warning'}"

        try:
            await self.notifier.notify(
                title,
                body,
                tag=tag,
                renotify=critical,
                level="error" if critical else "warning",
            )
        except Exception as e:
            logger.debug(f"Reminder for {alert.id} not delivered: {e}")

    def _persist(self) -> None:
        try:
            self.storage.save(self.state)
        except ReminderStorageError as e:
            logger.warning(f"Reminder state not saved: {e.message}")
