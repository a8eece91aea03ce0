"""Exceptions raised by alert engine collaborators."""


class AlertingError(Exception):
    """Base exception for the alert engine."""

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize alerting exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class AlertStoreError(AlertingError):
    """Raised when an alert store read or write fails."""

    pass


class NotificationError(AlertingError):
    """Raised when a notification cannot be delivered."""

    pass


class ReminderStorageError(AlertingError):
    """Raised when reminder state cannot be persisted."""

    pass


class CommandPublishError(AlertingError):
    """Raised when a device command cannot be published."""

    pass
