"""Custom exceptions for the API layer."""


class APIException(Exception):
    """Base exception for all API errors."""

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize API exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ResourceNotFoundException(APIException):
    """Raised when a requested resource is not found."""

    pass


class AlertNotFoundError(ResourceNotFoundException):
    """Raised when an alert is not found."""

    def __init__(self, alert_id: str):
        super().__init__(message=f"Alert {alert_id} not found", details={"alert_id": alert_id})


class ScheduleNotFoundError(ResourceNotFoundException):
    """Raised when a feeding schedule is not found."""

    def __init__(self, schedule_id: int):
        super().__init__(message=f"Schedule {schedule_id} not found", details={"schedule_id": schedule_id})
