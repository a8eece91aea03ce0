"""Tests for the alert evaluator."""

import asyncio

from src.alerting.application.evaluator import AlertEvaluator
from src.alerting.application.liveness import LivenessMonitor
from src.alerting.domain.models import Alert, AlertType, ResolvedBy, SensorState, Severity
from src.alerting.infrastructure.log_sink import InMemoryLogSink
from src.alerting.infrastructure.notifications import InMemoryNotificationSink
from src.config import ThresholdConfig
from tests.conftest import (
    START_MS,
    BrokenNotificationSink,
    FlakyAlertStore,
    SlowAlertStore,
    normal_state,
    offline,
    online,
    run,
)


def open_alerts(store, alert_type=None):
    return [
        a for a in store.alerts.values() if not a.resolved and (alert_type is None or a.type == alert_type)
    ]


def test_normal_state_creates_nothing(evaluator, store):
    run(evaluator.evaluate(normal_state(), online(), START_MS))
    assert len(store) == 0


def test_rule_table_types_and_severities(evaluator, store):
    """Every out-of-range sensor maps to its own type and severity."""
    run(evaluator.evaluate(normal_state(feed_level=10, temperature=40, humidity=90), online(), START_MS))

    by_type = {a.type: a for a in store.alerts.values()}
    assert set(by_type) == {AlertType.LOW_FEED, AlertType.HIGH_TEMPERATURE, AlertType.HIGH_HUMIDITY}
    assert by_type[AlertType.LOW_FEED].severity == Severity.CRITICAL
    assert by_type[AlertType.HIGH_TEMPERATURE].severity == Severity.CRITICAL
    assert by_type[AlertType.HIGH_HUMIDITY].severity == Severity.WARNING


def test_low_side_rules(evaluator, store):
    run(evaluator.evaluate(normal_state(temperature=10, humidity=20), online(), START_MS))

    by_type = {a.type: a for a in store.alerts.values()}
    assert set(by_type) == {AlertType.LOW_TEMPERATURE, AlertType.LOW_HUMIDITY}
    assert all(a.severity == Severity.WARNING for a in by_type.values())


def test_message_embeds_value(evaluator, store):
    run(evaluator.evaluate(normal_state(feed_level=12.5), online(), START_MS))

    (alert,) = store.alerts.values()
    assert "12.5" in alert.message
    assert alert.created_at_ms == START_MS
    assert alert.resolved is False
    assert alert.resolved_at_ms is None


def test_thresholds_are_strict(evaluator, store):
    """Values exactly on a threshold do not fire."""
    run(evaluator.evaluate(normal_state(feed_level=20, temperature=35, humidity=40), online(), START_MS))
    assert len(store) == 0


def test_one_alert_per_type_within_hour(evaluator, store):
    """Repeated evaluation of the same out-of-range value never duplicates."""
    now = START_MS
    for _ in range(100):
        run(evaluator.evaluate(normal_state(feed_level=5), online(), now))
        now += 30_000  # 100 * 30s = 50 minutes

    assert len(open_alerts(store, AlertType.LOW_FEED)) == 1
    assert len(store) == 1


def test_back_to_back_calls_debounced(evaluator, store):
    run(evaluator.evaluate(normal_state(temperature=40), online(), START_MS))
    run(evaluator.evaluate(normal_state(temperature=40), online(), START_MS + 1_000))
    assert len(store) == 1


def test_debounce_applies_even_after_resolution(evaluator, store):
    run(evaluator.evaluate(normal_state(temperature=40), online(), START_MS))
    run(evaluator.evaluate(normal_state(temperature=25), online(), START_MS + 10_000))
    run(evaluator.evaluate(normal_state(temperature=40), online(), START_MS + 20_000))

    assert len(store) == 1
    assert open_alerts(store) == []


def test_temperature_scenario(evaluator, store):
    """High temperature fires, resolves when back in range, fires again later."""
    run(evaluator.evaluate(normal_state(temperature=40), online(), START_MS))
    (first,) = store.alerts.values()
    assert first.type == AlertType.HIGH_TEMPERATURE
    assert first.severity == Severity.CRITICAL

    run(evaluator.evaluate(normal_state(temperature=25), online(), START_MS + 30_000))
    resolved = store.alerts[first.id]
    assert resolved.resolved is True
    assert resolved.resolved_by == ResolvedBy.AUTO
    assert resolved.resolved_at_ms == START_MS + 30_000
    assert len(store) == 1

    run(evaluator.evaluate(normal_state(temperature=40), online(), START_MS + 61_000))
    assert len(store) == 2
    (second,) = open_alerts(store)
    assert second.type == AlertType.HIGH_TEMPERATURE
    assert second.id != first.id


def test_low_feed_auto_resolves(evaluator, store):
    run(evaluator.evaluate(normal_state(feed_level=10), online(), START_MS))
    run(evaluator.evaluate(normal_state(feed_level=20), online(), START_MS + 5_000))

    (alert,) = store.alerts.values()
    assert alert.resolved is True
    assert alert.resolved_by == ResolvedBy.AUTO


def test_temperature_category_resolves_both_sides(evaluator, store):
    run(evaluator.evaluate(normal_state(temperature=10), online(), START_MS))
    run(evaluator.evaluate(normal_state(temperature=40), online(), START_MS + 1_000))
    assert {a.type for a in open_alerts(store)} == {AlertType.LOW_TEMPERATURE, AlertType.HIGH_TEMPERATURE}

    run(evaluator.evaluate(normal_state(temperature=30), online(), START_MS + 2_000))
    assert open_alerts(store) == []


def test_other_category_not_resolved(evaluator, store):
    run(evaluator.evaluate(normal_state(feed_level=5, humidity=95), online(), START_MS))
    run(evaluator.evaluate(normal_state(feed_level=5, humidity=60), online(), START_MS + 1_000))

    assert [a.type for a in open_alerts(store)] == [AlertType.LOW_FEED]


def test_offline_guard_only_device_offline():
    """A silent device with stale low feed raises only DeviceOffline."""
    store = FlakyAlertStore()
    evaluator = AlertEvaluator(store=store, notifier=InMemoryNotificationSink())
    store.subscribe(evaluator.sync)

    now = START_MS + 200_000
    state = SensorState(feed_level=10, temperature=25, humidity=60, last_seen_at_ms=START_MS)
    liveness = LivenessMonitor(offline_threshold_ms=90_000).check(state, now)

    run(evaluator.evaluate(state, liveness, now))

    (alert,) = store.alerts.values()
    assert alert.type == AlertType.DEVICE_OFFLINE
    assert alert.severity == Severity.CRITICAL
    assert "3m 20s" in alert.message


def test_no_device_offline_without_any_sample(evaluator, store):
    state = SensorState(feed_level=10)
    liveness = LivenessMonitor().check(state, START_MS)

    for i in range(5):
        run(evaluator.evaluate(state, liveness, START_MS + i * 120_000))

    assert len(store) == 0


def test_device_offline_resolves_when_back_online(evaluator, store):
    run(evaluator.evaluate(normal_state(), offline(200_000), START_MS))
    assert [a.type for a in open_alerts(store)] == [AlertType.DEVICE_OFFLINE]

    # still offline: stays open
    run(evaluator.evaluate(normal_state(), offline(260_000), START_MS + 60_000))
    assert len(open_alerts(store)) == 1

    run(evaluator.evaluate(normal_state(), online(1_000), START_MS + 120_000))
    (alert,) = store.alerts.values()
    assert alert.resolved is True
    assert alert.resolved_by == ResolvedBy.AUTO


def test_sensor_alerts_auto_resolve_while_offline(evaluator, store):
    """Normal values clear a sensor alert even when the device is silent; DeviceOffline stays."""
    run(evaluator.evaluate(normal_state(feed_level=10), online(), START_MS))
    run(evaluator.evaluate(normal_state(feed_level=80), offline(200_000), START_MS + 120_000))

    low_feed = next(a for a in store.alerts.values() if a.type == AlertType.LOW_FEED)
    assert low_feed.resolved is True
    assert low_feed.resolved_by == ResolvedBy.AUTO
    assert [a.type for a in open_alerts(store)] == [AlertType.DEVICE_OFFLINE]


def test_sensor_alert_resolves_before_first_confirmed_sample(evaluator, store):
    run(evaluator.evaluate(normal_state(feed_level=10), online(), START_MS))
    never_seen = offline(None)

    run(evaluator.evaluate(normal_state(feed_level=50), never_seen, START_MS + 1_000))

    assert open_alerts(store) == []


def test_low_water_rule_disabled_by_default(evaluator, store):
    run(evaluator.evaluate(normal_state(water_level=1), online(), START_MS))
    assert len(store) == 0


def test_low_water_rule_when_configured(store, sink):
    evaluator = AlertEvaluator(store=store, notifier=sink, thresholds=ThresholdConfig(low_water=15))
    store.subscribe(evaluator.sync)

    run(evaluator.evaluate(normal_state(water_level=10), online(), START_MS))
    assert [a.type for a in open_alerts(store)] == [AlertType.LOW_WATER]

    run(evaluator.evaluate(normal_state(water_level=50), online(), START_MS + 1_000))
    assert open_alerts(store) == []


def test_creation_emits_notification(evaluator, sink):
    run(evaluator.evaluate(normal_state(feed_level=5), online(), START_MS))

    (notification,) = sink.notifications
    assert notification.title.endswith("LowFeed")
    assert notification.level == "error"


def test_notification_failure_is_swallowed(store):
    broken = BrokenNotificationSink()
    evaluator = AlertEvaluator(store=store, notifier=broken)
    store.subscribe(evaluator.sync)

    run(evaluator.evaluate(normal_state(temperature=40), online(), START_MS))

    assert broken.attempts == 1
    assert len(store) == 1


def test_store_failure_does_not_raise_and_retries(evaluator, store):
    store.fail_adds = True
    run(evaluator.evaluate(normal_state(feed_level=5), online(), START_MS))
    assert len(store) == 0

    # a failed write does not consume the debounce window
    store.fail_adds = False
    run(evaluator.evaluate(normal_state(feed_level=5), online(), START_MS + 5_000))
    assert len(store) == 1


def test_failed_resolution_is_retried(evaluator, store):
    run(evaluator.evaluate(normal_state(feed_level=5), online(), START_MS))

    store.fail_updates = True
    run(evaluator.evaluate(normal_state(feed_level=50), online(), START_MS + 1_000))
    assert len(open_alerts(store)) == 1
    assert evaluator.resolving_ids == set()

    store.fail_updates = False
    run(evaluator.evaluate(normal_state(feed_level=50), online(), START_MS + 2_000))
    assert open_alerts(store) == []


def test_concurrent_resolution_writes_once(sink):
    async def scenario():
        store = SlowAlertStore()
        evaluator = AlertEvaluator(store=store, notifier=sink)
        store.subscribe(evaluator.sync)

        await evaluator.evaluate(normal_state(feed_level=5), online(), START_MS)
        first = asyncio.create_task(evaluator.evaluate(normal_state(feed_level=50), online(), START_MS + 1_000))
        second = asyncio.create_task(evaluator.evaluate(normal_state(feed_level=50), online(), START_MS + 1_000))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        store.release.set()
        await asyncio.gather(first, second)
        return store, evaluator

    store, evaluator = run(scenario())

    assert store.update_calls == 1
    assert evaluator.resolving_ids == set()
    (alert,) = store.alerts.values()
    assert alert.resolved is True


def test_resolving_resolved_alert_is_noop(evaluator, store):
    run(evaluator.evaluate(normal_state(feed_level=5), online(), START_MS))
    (alert,) = store.alerts.values()

    assert run(evaluator.resolve(alert, START_MS + 1_000, ResolvedBy.OPERATOR)) is True
    resolved = store.alerts[alert.id]
    assert run(evaluator.resolve(resolved, START_MS + 2_000, ResolvedBy.AUTO)) is False

    final = store.alerts[alert.id]
    assert final.resolved_by == ResolvedBy.OPERATOR
    assert final.resolved_at_ms == START_MS + 1_000
    assert store.update_calls == 1


def test_alert_triggered_log_entry(store, sink):
    log_sink = InMemoryLogSink()
    evaluator = AlertEvaluator(store=store, notifier=sink, log_sink=log_sink)
    store.subscribe(evaluator.sync)

    run(evaluator.evaluate(normal_state(humidity=90), online(), START_MS))

    (message, source, timestamp) = log_sink.entries[0]
    assert message.startswith("Alert triggered: HighHumidity")
    assert timestamp == START_MS


def test_existing_unresolved_alert_blocks_creation(store, sink):
    """Duplicate suppression uses the store's alerts, not only this evaluator's history."""
    run(
        store.add(
            Alert(
                id=None,
                type=AlertType.LOW_FEED,
                message="Feed level is low (3%)",
                severity=Severity.CRITICAL,
                created_at_ms=START_MS - 10 * 60_000,
            )
        )
    )
    evaluator = AlertEvaluator(store=store, notifier=sink)
    evaluator.sync(run(store.list_all()))
    store.subscribe(evaluator.sync)

    run(evaluator.evaluate(normal_state(feed_level=3), online(), START_MS))
    assert len(store) == 1

    # once the open alert is older than the window, a new one may be created
    run(evaluator.evaluate(normal_state(feed_level=3), online(), START_MS + 51 * 60_000))
    assert len(store) == 2
