"""Protocols (interfaces) for alert engine collaborators."""

from typing import Callable, Protocol, runtime_checkable

from src.alerting.domain.models import Alert, ReminderState

AlertListener = Callable[[list[Alert]], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class AlertStore(Protocol):
    """Key-value alert collection with change notification and last-write-wins updates."""

    async def add(self, alert: Alert) -> Alert:
        """
        Persist a new alert.

        Returns:
            The stored alert with its assigned id
        """
        ...

    async def update(self, alert: Alert) -> None:
        """Overwrite an existing alert by id."""
        ...

    async def get(self, alert_id: str) -> Alert | None:
        """Get a single alert by id."""
        ...

    async def list_all(self) -> list[Alert]:
        """Get the full current alert collection."""
        ...

    def subscribe(self, listener: AlertListener) -> Unsubscribe:
        """Register a listener called with the full collection after every write."""
        ...


@runtime_checkable
class NotificationSink(Protocol):
    """Interface for user-facing notifications."""

    async def notify(
        self,
        title: str,
        body: str,
        tag: str | None = None,
        renotify: bool = False,
        level: str = "warning",
    ) -> None:
        """Deliver a notification. May raise NotificationError."""
        ...


@runtime_checkable
class ReminderStorage(Protocol):
    """Process-local slot holding the serialized reminder state."""

    def load(self) -> ReminderState:
        """Read stored state; returns empty state when nothing is stored."""
        ...

    def save(self, state: ReminderState) -> None:
        """Persist state. May raise ReminderStorageError."""
        ...


@runtime_checkable
class ViewerActivity(Protocol):
    """Tells whether a viewer is currently looking at the dashboard."""

    def is_viewer_active(self, now_ms: int) -> bool:
        ...


@runtime_checkable
class LogSink(Protocol):
    """Append-only activity log."""

    async def append(self, message: str, source: str, timestamp_ms: int) -> None:
        ...


@runtime_checkable
class CommandPublisher(Protocol):
    """Outbound channel for device commands."""

    async def publish(self, topic: str, payload: str) -> None:
        """Publish one command. May raise CommandPublishError."""
        ...
