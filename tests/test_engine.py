"""End-to-end tests for the alert engine driven through the event bus."""

import asyncio

import pytest
from loguru import logger

from src.alerting.application.engine import AlertEngine
from src.alerting.domain.events import DeviceLogLine, DeviceStatusReport, SensorReading, SensorSnapshot
from src.alerting.domain.models import Alert, AlertType, Liveness, ResolvedBy, Severity
from src.alerting.infrastructure.alert_store import InMemoryAlertStore
from src.alerting.infrastructure.event_bus import TelemetryBus
from src.alerting.infrastructure.log_sink import InMemoryLogSink
from src.alerting.infrastructure.notifications import InMemoryNotificationSink
from src.alerting.infrastructure.reminder_storage import InMemoryReminderStorage
from tests.conftest import START_MS, FakeClock, run


class Harness:
    def __init__(self):
        self.clock = FakeClock()
        self.store = InMemoryAlertStore()
        self.sink = InMemoryNotificationSink(clock=self.clock)
        self.storage = InMemoryReminderStorage()
        self.bus = TelemetryBus()
        self.log_sink = InMemoryLogSink()
        self.engine = AlertEngine(
            store=self.store,
            notifier=self.sink,
            reminder_storage=self.storage,
            bus=self.bus,
            log_sink=self.log_sink,
            clock=self.clock,
        )

    def open_alerts(self):
        return [a for a in self.store.alerts.values() if not a.resolved]

    async def snapshot(self, **payload):
        payload.setdefault("lastUpdate", self.clock.now)
        await self.bus.publish(SensorSnapshot(payload))


@pytest.fixture
def harness():
    return Harness()


def test_snapshot_triggers_alert(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.snapshot(temperature=40, humidity=60, feedLevel=70, waterLevel=80)
        await harness.engine.stop()

    run(scenario())

    (alert,) = harness.store.alerts.values()
    assert alert.type == AlertType.HIGH_TEMPERATURE
    assert alert.severity == Severity.CRITICAL
    assert len(harness.sink) == 1


def test_readings_without_snapshot_never_alert(harness):
    """Push readings alone never confirm the device, so nothing fires."""

    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.bus.publish(SensorReading("feed", "5"))
        harness.clock.advance(300_000)
        await harness.engine.poll_liveness()
        await harness.engine.stop()

    run(scenario())

    assert harness.engine.sensor_state.feed_level == 5
    assert len(harness.store) == 0


def test_reading_after_snapshot_fires_rule(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.snapshot(temperature=25, humidity=60, feedLevel=70, waterLevel=80)
        harness.clock.advance(5_000)
        await harness.bus.publish(SensorReading("feed", "12"))
        await harness.engine.stop()

    run(scenario())

    assert [a.type for a in harness.open_alerts()] == [AlertType.LOW_FEED]


def test_silence_raises_device_offline_then_recovers(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.snapshot(temperature=25, humidity=60, feedLevel=10, waterLevel=80)
        harness.clock.advance(200_000)
        await harness.engine.poll_liveness()
        offline_types = {a.type for a in harness.open_alerts()}

        harness.clock.advance(1_000)
        await harness.snapshot(feedLevel=70)
        await harness.engine.stop()
        return offline_types

    offline_types = run(scenario())

    assert offline_types == {AlertType.LOW_FEED, AlertType.DEVICE_OFFLINE}
    assert harness.open_alerts() == []
    offline = next(a for a in harness.store.alerts.values() if a.type == AlertType.DEVICE_OFFLINE)
    assert offline.resolved_by == ResolvedBy.AUTO


def test_status_report_is_informational(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.bus.publish(DeviceStatusReport("online"))
        status = harness.engine.status()
        await harness.engine.stop()
        return status

    status = run(scenario())

    assert status["reported_status"] == "online"
    assert status["reported_online"] is True
    assert status["liveness"] == "offline"
    assert status["has_confirmed_sample"] is False


def test_device_log_lines_are_stored(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.bus.publish(DeviceLogLine("Feeder dispensed 50g"))
        await harness.engine.stop()

    run(scenario())

    assert harness.log_sink.entries == [("Feeder dispensed 50g", "esp32", START_MS)]


def test_operator_resolve(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.snapshot(temperature=25, humidity=95, feedLevel=5, waterLevel=80)
        target = next(a for a in harness.open_alerts() if a.type == AlertType.HIGH_HUMIDITY)

        harness.clock.advance(1_000)
        resolved = await harness.engine.resolve_by_operator(target.id)
        again = await harness.engine.resolve_by_operator(target.id)
        missing = await harness.engine.resolve_by_operator("nope")
        await harness.engine.stop()
        return resolved, again, missing

    resolved, again, missing = run(scenario())

    assert resolved.resolved is True
    assert resolved.resolved_by == ResolvedBy.OPERATOR
    assert resolved.resolved_at_ms == START_MS + 1_000
    assert again == resolved
    assert missing is None
    assert [a.type for a in harness.open_alerts()] == [AlertType.LOW_FEED]


def test_operator_resolve_all(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.snapshot(temperature=40, humidity=95, feedLevel=5, waterLevel=80)
        ids = await harness.engine.resolve_all_by_operator()
        await harness.engine.stop()
        return ids

    ids = run(scenario())

    assert len(ids) == 3
    assert harness.open_alerts() == []


def test_start_loads_existing_alerts(harness):
    existing = Alert(
        id="a1",
        type=AlertType.LOW_FEED,
        message="Feed level is low (4%)",
        severity=Severity.CRITICAL,
        created_at_ms=START_MS - 60_000,
    )

    async def scenario():
        await harness.store.add(existing)
        await harness.engine.start(run_timers=False)
        await harness.snapshot(temperature=25, humidity=60, feedLevel=4, waterLevel=80)
        await harness.engine.stop()

    run(scenario())

    assert len(harness.store) == 1


def test_reminder_tick_through_engine(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.snapshot(temperature=25, humidity=60, feedLevel=5, waterLevel=80)
        reminded = await harness.engine.remind()
        await harness.engine.stop()
        return reminded

    reminded = run(scenario())

    assert len(reminded) == 1
    assert harness.sink.notifications[-1].title == "ChicKulungan: Critical Alert Reminder"
    assert harness.storage.saves == 1


def test_stop_cancels_timers_and_subscriptions(harness):
    async def scenario():
        await harness.engine.start(run_timers=True)
        timers = list(harness.engine._timers)
        assert harness.bus.subscriber_count(SensorSnapshot) == 1
        await harness.engine.stop()
        return timers

    timers = run(scenario())

    assert all(task.done() for task in timers)
    assert harness.engine.running is False
    assert harness.bus.subscriber_count(SensorSnapshot) == 0


def test_events_after_stop_are_ignored(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.engine.stop()
        await harness.snapshot(temperature=40, humidity=60, feedLevel=70, waterLevel=80)

    run(scenario())

    assert len(harness.store) == 0


def test_timer_runs_liveness_poll(harness):
    harness.engine.config.liveness.poll_interval_ms = 10

    async def scenario():
        await harness.engine.start(run_timers=True)
        await harness.snapshot(temperature=25, humidity=60, feedLevel=70, waterLevel=80)
        harness.clock.advance(200_000)
        for _ in range(50):
            await asyncio.sleep(0.01)
            if harness.open_alerts():
                break
        await harness.engine.stop()

    run(scenario())

    assert [a.type for a in harness.open_alerts()] == [AlertType.DEVICE_OFFLINE]


def test_status_does_not_record_liveness_transition(harness):
    async def scenario():
        await harness.engine.start(run_timers=False)
        await harness.snapshot(temperature=25, humidity=60, feedLevel=70, waterLevel=80)
        harness.clock.advance(200_000)
        status = harness.engine.status()
        await harness.engine.stop()
        return status

    status = run(scenario())

    assert status["liveness"] == "offline"
    assert harness.engine.liveness.state == Liveness.ONLINE
    assert harness.open_alerts() == []


def test_stop_collects_in_flight_timer_job(harness):
    harness.engine.config.liveness.poll_interval_ms = 10
    started = []
    errors = []

    async def failing_poll():
        started.append(True)
        await asyncio.sleep(0.05)
        raise RuntimeError("store went away")

    harness.engine.poll_liveness = failing_poll

    async def scenario():
        await harness.engine.start(run_timers=True)
        for _ in range(50):
            await asyncio.sleep(0.01)
            if started:
                break
        await harness.engine.stop()

    handler_id = logger.add(lambda message: errors.append(message.record["message"]), level="ERROR")
    try:
        run(scenario())
    finally:
        logger.remove(handler_id)

    assert started
    assert harness.engine._jobs == set()
    assert any("store went away" in message for message in errors)
