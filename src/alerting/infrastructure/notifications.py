"""Notification sinks for alert and reminder notifications."""

from collections import deque
from typing import Callable

from loguru import logger

from src.alerting.domain.exceptions import NotificationError
from src.alerting.domain.models import Notification
from src.alerting.domain.protocols import NotificationSink
from src.alerting.domain.timeutil import now_ms


class LoggingNotificationSink(NotificationSink):
    """Writes notifications to the application log."""

    async def notify(
        self,
        title: str,
        body: str,
        tag: str | None = None,
        renotify: bool = False,
        level: str = "warning",
    ) -> None:
        log = logger.error if level == "error" else logger.warning
        log(f"🔔 {title}: {body}")


class InMemoryNotificationSink(NotificationSink):
    """Keeps the most recent notifications so the dashboard can show them as toasts."""

    def __init__(self, max_size: int = 100, clock: Callable[[], int] = now_ms):
        self.notifications: deque[Notification] = deque(maxlen=max_size)
        self.clock = clock

    async def notify(
        self,
        title: str,
        body: str,
        tag: str | None = None,
        renotify: bool = False,
        level: str = "warning",
    ) -> None:
        self.notifications.append(
            Notification(
                title=title,
                body=body,
                tag=tag,
                renotify=renotify,
                level=level,
                created_at_ms=self.clock(),
            )
        )

    def since(self, after_ms: int = 0) -> list[Notification]:
        """Notifications created after the given timestamp, oldest first."""
        return [n for n in self.notifications if n.created_at_ms > after_ms]

    def clear(self):
        self.notifications.clear()

    def __len__(self):
        return len(self.notifications)


class CompositeNotificationSink(NotificationSink):
    """Fans a notification out to several sinks; one failing sink does not affect the rest."""

    def __init__(self, sinks: list[NotificationSink]):
        self.sinks = sinks

    async def notify(
        self,
        title: str,
        body: str,
        tag: str | None = None,
        renotify: bool = False,
        level: str = "warning",
    ) -> None:
        failures = []
        for sink in self.sinks:
            try:
                await sink.notify(title, body, tag=tag, renotify=renotify, level=level)
            except Exception as e:
                failures.append(f"{type(sink).__name__}: {e}")

        if failures and len(failures) == len(self.sinks):
            raise NotificationError("All notification sinks failed", details={"failures": failures})
        for failure in failures:
            logger.debug(f"Notification sink failed: {failure}")
