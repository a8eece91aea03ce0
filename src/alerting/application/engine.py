"""Alert engine: wires ingest, liveness, evaluation and reminders on one event loop."""

import asyncio
from typing import Awaitable, Callable

from loguru import logger

from src.alerting.application.evaluator import AlertEvaluator
from src.alerting.application.ingest import TelemetryIngest
from src.alerting.application.liveness import LivenessMonitor
from src.alerting.application.reminders import ReminderScheduler
from src.alerting.domain.events import DeviceLogLine, DeviceStatusReport, SensorReading, SensorSnapshot
from src.alerting.domain.exceptions import AlertStoreError
from src.alerting.domain.models import Alert, LivenessSnapshot, ResolvedBy, SensorState
from src.alerting.domain.protocols import (
    AlertStore,
    LogSink,
    NotificationSink,
    ReminderStorage,
    Unsubscribe,
    ViewerActivity,
)
from src.alerting.domain.timeutil import now_ms
from src.alerting.infrastructure.event_bus import Subscription, TelemetryBus
from src.alerting.infrastructure.presence import AlwaysInactive
from src.api.infrastructure.logging import LoggingContext
from src.config import AppConfig


class AlertEngine:
    """
    Single-threaded alert engine.

    Work is triggered by telemetry events from the bus, by the liveness
    poll and reminder timers, and by operator resolve actions. Each
    telemetry-triggered cycle (mutate state, check liveness, evaluate)
    runs under one lock so evaluation always sees that cycle's state.
    """

    def __init__(
        self,
        store: AlertStore,
        notifier: NotificationSink,
        reminder_storage: ReminderStorage,
        bus: TelemetryBus | None = None,
        activity: ViewerActivity | None = None,
        log_sink: LogSink | None = None,
        config: AppConfig | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.config = config or AppConfig()
        self.store = store
        self.bus = bus or TelemetryBus()
        self.clock = clock
        self.log_sink = log_sink

        self.ingest = TelemetryIngest(SensorState())
        self.liveness = LivenessMonitor(
            offline_threshold_ms=self.config.liveness.offline_threshold_ms,
            status_ttl_ms=self.config.liveness.status_ttl_ms,
        )
        self.evaluator = AlertEvaluator(
            store=store,
            notifier=notifier,
            thresholds=self.config.thresholds,
            windows=self.config.alert_windows,
            notifications=self.config.notifications,
            log_sink=log_sink,
        )
        self.reminders = ReminderScheduler(
            notifier=notifier,
            storage=reminder_storage,
            alerts_provider=lambda: list(self.evaluator.alerts.values()),
            activity=activity or AlwaysInactive(),
            config=self.config.reminders,
            notifications=self.config.notifications,
        )

        self._lock = asyncio.Lock()
        self._subscriptions: list[Subscription] = []
        self._store_unsubscribe: Unsubscribe | None = None
        self._timers: list[asyncio.Task] = []
        self._jobs: set[asyncio.Task] = set()
        self.running = False

    @property
    def sensor_state(self) -> SensorState:
        return self.ingest.state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, run_timers: bool = True) -> None:
        """Load alerts and reminder state, subscribe to events, start timers."""
        if self.running:
            return

        try:
            self.evaluator.sync(await self.store.list_all())
        except AlertStoreError as e:
            logger.warning(f"Starting with an empty alert snapshot: {e.message}")
        self._store_unsubscribe = self.store.subscribe(self.evaluator.sync)

        self.reminders.load()
        self.evaluator.closed = False

        self._subscriptions = [
            self.bus.subscribe(SensorReading, self._on_reading),
            self.bus.subscribe(SensorSnapshot, self._on_snapshot),
            self.bus.subscribe(DeviceStatusReport, self._on_status),
            self.bus.subscribe(DeviceLogLine, self._on_device_log),
        ]

        self.running = True
        if run_timers:
            self._timers = [
                asyncio.create_task(
                    self._every(self.config.liveness.poll_interval_ms, self.poll_liveness), name="liveness-poll"
                ),
                asyncio.create_task(
                    self._every(self.config.reminders.tick_ms, self.remind), name="reminder-tick"
                ),
            ]

        logger.info(
            f"✓ Alert engine started ({len(self.evaluator.unresolved())} open alerts, "
            f"offline after {self.config.liveness.offline_threshold_ms} ms)"
        )

    async def stop(self) -> None:
        """Cancel timers and drop subscriptions. In-flight writes are left to finish."""
        if not self.running:
            return
        self.running = False
        self.evaluator.closed = True

        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []

        if self._store_unsubscribe:
            self._store_unsubscribe()
            self._store_unsubscribe = None

        for task in self._timers:
            task.cancel()
        for task in self._timers:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._timers = []
        await self._drain_jobs()

        logger.info("🛑 Alert engine stopped")

    async def _every(self, interval_ms: int, job: Callable[[], Awaitable[object]]) -> None:
        name = getattr(job, "__name__", "job")
        while True:
            await asyncio.sleep(interval_ms / 1000)
            run = asyncio.ensure_future(job())
            self._jobs.add(run)
            try:
                # Shielded so teardown never aborts a write halfway; stop() collects it
                await asyncio.shield(run)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Timer job {name} failed: {e}")
            self._jobs.discard(run)

    async def _drain_jobs(self) -> None:
        """Wait for timer jobs that were still running when their timer was cancelled."""
        jobs = list(self._jobs)
        self._jobs.clear()
        if not jobs:
            return

        results = await asyncio.gather(*jobs, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Timer job failed during shutdown: {result}")

    # ------------------------------------------------------------------
    # Telemetry handlers
    # ------------------------------------------------------------------

    async def _on_reading(self, event: SensorReading) -> None:
        with LoggingContext(trigger="mqtt"):
            async with self._lock:
                now = self.clock()
                if self.ingest.apply_reading(event.field, event.value, now):
                    await self._cycle(now)

    async def _on_snapshot(self, event: SensorSnapshot) -> None:
        with LoggingContext(trigger="snapshot"):
            async with self._lock:
                now = self.clock()
                if self.ingest.apply_snapshot(event.payload, now):
                    await self._cycle(now)

    async def _on_status(self, event: DeviceStatusReport) -> None:
        self.liveness.record_status(event.status, self.clock())

    async def _on_device_log(self, event: DeviceLogLine) -> None:
        if self.log_sink is None:
            return
        try:
            await self.log_sink.append(event.message, "esp32", self.clock())
        except Exception as e:
            logger.debug(f"Device log line not stored: {e}")

    async def _cycle(self, now: int) -> LivenessSnapshot:
        liveness = self.liveness.check(self.ingest.state, now)
        if self.running:
            await self.evaluator.evaluate(self.ingest.state, liveness, now)
        return liveness

    # ------------------------------------------------------------------
    # Timer jobs
    # ------------------------------------------------------------------

    async def poll_liveness(self) -> LivenessSnapshot:
        """Liveness re-check plus evaluation, independent of new traffic."""
        with LoggingContext(trigger="poll"):
            async with self._lock:
                return await self._cycle(self.clock())

    async def remind(self) -> list[str]:
        """One reminder scheduler tick."""
        with LoggingContext(trigger="reminder"):
            return await self.reminders.tick(self.clock())

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    async def resolve_by_operator(self, alert_id: str) -> Alert | None:
        """
        Resolve one alert on behalf of an operator.

        Returns:
            The alert as stored after the call, or None if it does not exist
        """
        with LoggingContext(trigger="operator"):
            alert = await self.store.get(alert_id)
            if alert is None:
                return None
            if not alert.resolved:
                await self.evaluator.resolve(alert, self.clock(), ResolvedBy.OPERATOR)
            return await self.store.get(alert_id)

    async def resolve_all_by_operator(self) -> list[str]:
        """Resolve every open alert on behalf of an operator."""
        with LoggingContext(trigger="operator"):
            now = self.clock()
            open_alerts = [a for a in await self.store.list_all() if not a.resolved]
            results = await asyncio.gather(
                *(self.evaluator.resolve(a, now, ResolvedBy.OPERATOR) for a in open_alerts)
            )
            return [a.id for a, done in zip(open_alerts, results) if done]

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    def status(self) -> dict:
        now = self.clock()
        liveness = self.liveness.peek(self.ingest.state, now)
        return {
            "sensors": self.ingest.state.to_dict(),
            "liveness": liveness.state.value,
            "age_ms": liveness.age_ms,
            "has_confirmed_sample": liveness.has_confirmed_sample,
            "reported_status": self.liveness.reported_status,
            "reported_online": self.liveness.reported_online(now),
            "open_alerts": len(self.evaluator.unresolved()),
        }
