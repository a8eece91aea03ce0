"""Alert evaluator: rule table, creation gate and auto-resolution."""

import asyncio
from typing import Callable

from loguru import logger

from src.alerting.domain.exceptions import AlertingError, AlertStoreError
from src.alerting.domain.models import (
    Alert,
    AlertCandidate,
    AlertType,
    LivenessSnapshot,
    ResolvedBy,
    SensorCategory,
    SensorState,
    Severity,
)
from src.alerting.domain.protocols import AlertStore, LogSink, NotificationSink
from src.alerting.domain.timeutil import format_elapsed
from src.config import AlertWindowConfig, NotificationConfig, ThresholdConfig


class AlertEvaluator:
    """
    Turns sensor state and liveness into alert records.

    Keeps a local copy of the alert collection (fed by the store
    subscription) for duplicate checks, a per-type record of its own
    creations for debouncing, and the set of alert ids it is currently
    resolving so two passes never resolve the same alert twice.
    """

    def __init__(
        self,
        store: AlertStore,
        notifier: NotificationSink,
        thresholds: ThresholdConfig | None = None,
        windows: AlertWindowConfig | None = None,
        notifications: NotificationConfig | None = None,
        log_sink: LogSink | None = None,
    ):
        self.store = store
        self.notifier = notifier
        self.thresholds = thresholds or ThresholdConfig()
        self.windows = windows or AlertWindowConfig()
        self.notifications = notifications or NotificationConfig()
        self.log_sink = log_sink

        self.alerts: dict[str, Alert] = {}
        self.last_created_at: dict[AlertType, int] = {}
        self.resolving_ids: set[str] = set()
        self.closed = False

    # ------------------------------------------------------------------
    # Local alert snapshot
    # ------------------------------------------------------------------

    def sync(self, alerts: list[Alert]) -> None:
        """Replace the local snapshot with the store's current collection."""
        incoming = {a.id: a for a in alerts if a.id}
        added = incoming.keys() - self.alerts.keys()
        removed = self.alerts.keys() - incoming.keys()
        newly_resolved = [
            alert_id
            for alert_id, alert in incoming.items()
            if alert.resolved and alert_id in self.alerts and not self.alerts[alert_id].resolved
        ]
        self.alerts = incoming

        if added or removed or newly_resolved:
            logger.debug(
                f"Alert snapshot: +{len(added)} -{len(removed)} resolved {len(newly_resolved)} "
                f"({len(self.unresolved())} open)"
            )

    def unresolved(self) -> list[Alert]:
        return [a for a in self.alerts.values() if not a.resolved]

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def candidates(self, state: SensorState, liveness: LivenessSnapshot) -> list[AlertCandidate]:
        """Evaluate the rule table against the current state."""
        if liveness.dropped:
            # Stale numbers from a silent device must not raise sensor alerts
            return [
                AlertCandidate(
                    type=AlertType.DEVICE_OFFLINE,
                    severity=Severity.CRITICAL,
                    message=f"No device update for {format_elapsed(liveness.age_ms)}",
                )
            ]
        if not liveness.is_online:
            return []

        t = self.thresholds
        temp = state.temperature
        humidity = state.humidity
        feed = state.feed_level

        rules = [
            (feed < t.low_feed, AlertType.LOW_FEED, Severity.CRITICAL, f"Feed level is low ({feed:g}%)"),
            (
                temp > t.high_temperature,
                AlertType.HIGH_TEMPERATURE,
                Severity.CRITICAL,
                f"Temperature too high ({temp:g}°C)",
            ),
            (
                temp < t.low_temperature,
                AlertType.LOW_TEMPERATURE,
                Severity.WARNING,
                f"Temperature too low ({temp:g}°C)",
            ),
            (
                humidity > t.high_humidity,
                AlertType.HIGH_HUMIDITY,
                Severity.WARNING,
                f"Humidity too high ({humidity:g}%)",
            ),
            (
                humidity < t.low_humidity,
                AlertType.LOW_HUMIDITY,
                Severity.WARNING,
                f"Humidity too low ({humidity:g}%)",
            ),
        ]
        if t.low_water is not None:
            water = state.water_level
            rules.append(
                (water < t.low_water, AlertType.LOW_WATER, Severity.WARNING, f"Water level is low ({water:g}%)")
            )

        return [
            AlertCandidate(type=alert_type, severity=severity, message=message)
            for fired, alert_type, severity, message in rules
            if fired
        ]

    def category_normal(
        self, category: SensorCategory, state: SensorState, liveness: LivenessSnapshot
    ) -> bool:
        """Whether no triggering condition of a category holds any more."""
        t = self.thresholds

        if category == SensorCategory.DEVICE:
            return liveness.is_online
        if category == SensorCategory.TEMPERATURE:
            return t.low_temperature <= state.temperature <= t.high_temperature
        if category == SensorCategory.HUMIDITY:
            return t.low_humidity <= state.humidity <= t.high_humidity
        if category == SensorCategory.FEED:
            return state.feed_level >= t.low_feed
        if category == SensorCategory.WATER:
            if t.low_water is None:
                return state.water_level > 0
            return state.water_level >= t.low_water
        return False

    # ------------------------------------------------------------------
    # Creation gate
    # ------------------------------------------------------------------

    def should_create(self, alert_type: AlertType, now_ms: int) -> bool:
        """Debounce, then duplicate suppression."""
        last = self.last_created_at.get(alert_type)
        if last is not None and now_ms - last < self.windows.debounce_ms:
            return False

        return not any(
            a.type == alert_type and not a.resolved and now_ms - a.created_at_ms < self.windows.duplicate_window_ms
            for a in self.alerts.values()
        )

    async def create_alert(self, candidate: AlertCandidate, now_ms: int) -> Alert | None:
        """Create an alert if it passes the gate. Store failures are logged, not raised."""
        if not self.should_create(candidate.type, now_ms):
            return None

        # Reserve the debounce slot before awaiting so a concurrent pass sees it
        previous = self.last_created_at.get(candidate.type)
        self.last_created_at[candidate.type] = now_ms

        alert = Alert(
            id=None,
            type=candidate.type,
            message=candidate.message,
            severity=candidate.severity,
            created_at_ms=now_ms,
        )
        try:
            stored = await self.store.add(alert)
        except AlertStoreError as e:
            if previous is None:
                self.last_created_at.pop(candidate.type, None)
            else:
                self.last_created_at[candidate.type] = previous
            logger.error(f"Failed to create {candidate.type.value} alert: {e.message}")
            return None

        if self.closed:
            return stored

        self.alerts[stored.id] = stored
        logger.info(f"🔔 Alert triggered: {stored.type.value} ({stored.severity.value}) - {stored.message}")

        await self._announce(stored)
        await self._log(f"Alert triggered: {stored.type.value} - {stored.message}", now_ms)
        return stored

    async def _announce(self, alert: Alert) -> None:
        try:
            await self.notifier.notify(
                f"{self.notifications.app_title} Alert: {alert.type.value}",
                alert.message,
                tag=self.notifications.tag_prefix,
                renotify=False,
                level="error" if alert.severity == Severity.CRITICAL else "warning",
            )
        except Exception as e:
            logger.debug(f"Alert notification not delivered: {e}")

    async def _log(self, message: str, now_ms: int) -> None:
        if self.log_sink is None:
            return
        try:
            await self.log_sink.append(message, "system", now_ms)
        except Exception as e:
            logger.debug(f"Activity log append failed: {e}")

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, alert: Alert, now_ms: int, by: ResolvedBy) -> bool:
        """
        Resolve one alert.

        Returns:
            True if this call wrote the resolution; False for no-ops
            (already resolved, already in flight) and failed writes
        """
        if alert.resolved or not alert.id or alert.id in self.resolving_ids:
            return False

        self.resolving_ids.add(alert.id)
        try:
            resolved = alert.resolve(now_ms, by)
            await self.store.update(resolved)
        except AlertingError as e:
            logger.error(f"Failed to resolve alert {alert.id}: {e.message}")
            return False
        finally:
            self.resolving_ids.discard(alert.id)

        if not self.closed:
            self.alerts[alert.id] = resolved
        logger.info(f"✓ Resolved {alert.type.value} alert {alert.id} ({by.value})")
        return True

    async def resolve_where(self, predicate: Callable[[Alert], bool], now_ms: int, by: ResolvedBy) -> list[str]:
        """Resolve every unresolved, not-in-flight alert matching the predicate."""
        targets = [
            a for a in self.unresolved() if a.id not in self.resolving_ids and predicate(a)
        ]
        if not targets:
            return []

        results = await asyncio.gather(*(self.resolve(a, now_ms, by) for a in targets))
        return [a.id for a, done in zip(targets, results) if done]

    async def auto_resolve(self, state: SensorState, liveness: LivenessSnapshot, now_ms: int) -> list[str]:
        """Resolve alerts whose category no longer triggers."""
        normal = {category: self.category_normal(category, state, liveness) for category in SensorCategory}
        return await self.resolve_where(lambda a: normal[a.category], now_ms, ResolvedBy.AUTO)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def evaluate(self, state: SensorState, liveness: LivenessSnapshot, now_ms: int) -> None:
        """Run every rule, create what passes the gate, then auto-resolve."""
        for candidate in self.candidates(state, liveness):
            await self.create_alert(candidate, now_ms)

        await self.auto_resolve(state, liveness, now_ms)
