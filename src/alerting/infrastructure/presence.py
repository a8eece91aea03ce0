"""Viewer presence tracking for the reminder policy."""

from src.alerting.domain.protocols import ViewerActivity


class ViewerPresence(ViewerActivity):
    """
    Tracks whether the dashboard is open and visible.

    The dashboard reports visibility changes; a "visible" report counts as
    active only while it is fresher than `ttl_ms`, so a closed tab that never
    said goodbye stops counting after a while.
    """

    def __init__(self, ttl_ms: int = 90_000):
        self.ttl_ms = ttl_ms
        self.visible = False
        self.reported_at_ms: int | None = None

    def report(self, visible: bool, now_ms: int) -> None:
        self.visible = visible
        self.reported_at_ms = now_ms

    def is_viewer_active(self, now_ms: int) -> bool:
        if not self.visible or self.reported_at_ms is None:
            return False
        return now_ms - self.reported_at_ms <= self.ttl_ms


class AlwaysInactive(ViewerActivity):
    """Viewer activity for headless runs: nobody is ever looking."""

    def is_viewer_active(self, now_ms: int) -> bool:
        return False
