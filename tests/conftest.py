"""Shared fixtures for alert engine tests."""

import asyncio

import pytest

from src.alerting.application.evaluator import AlertEvaluator
from src.alerting.domain.exceptions import AlertStoreError, NotificationError
from src.alerting.domain.models import Liveness, LivenessSnapshot, SensorState
from src.alerting.infrastructure.alert_store import InMemoryAlertStore
from src.alerting.infrastructure.notifications import InMemoryNotificationSink

START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


class FlakyAlertStore(InMemoryAlertStore):
    """In-memory store whose writes can be made to fail."""

    def __init__(self):
        super().__init__()
        self.fail_adds = False
        self.fail_updates = False
        self.update_calls = 0

    async def add(self, alert):
        if self.fail_adds:
            raise AlertStoreError("store unavailable")
        return await super().add(alert)

    async def update(self, alert):
        self.update_calls += 1
        if self.fail_updates:
            raise AlertStoreError("store unavailable")
        await super().update(alert)


class SlowAlertStore(InMemoryAlertStore):
    """In-memory store whose updates block until released."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()
        self.update_calls = 0

    async def update(self, alert):
        self.update_calls += 1
        await self.release.wait()
        await super().update(alert)


class BrokenNotificationSink:
    """Sink that always fails, like a denied platform permission."""

    def __init__(self):
        self.attempts = 0

    async def notify(self, title, body, tag=None, renotify=False, level="warning"):
        self.attempts += 1
        raise NotificationError("permission denied")


def online(age_ms: int = 1_000) -> LivenessSnapshot:
    return LivenessSnapshot(Liveness.ONLINE, age_ms, True)


def offline(age_ms: int | None = 200_000) -> LivenessSnapshot:
    return LivenessSnapshot(Liveness.OFFLINE, age_ms, age_ms is not None)


def normal_state(**overrides) -> SensorState:
    """A state where no rule fires."""
    values = {"temperature": 25.0, "humidity": 60.0, "feed_level": 70.0, "water_level": 80.0}
    values.update(overrides)
    return SensorState(last_seen_at_ms=START_MS, **values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FlakyAlertStore()


@pytest.fixture
def sink():
    return InMemoryNotificationSink()


@pytest.fixture
def evaluator(store, sink):
    evaluator = AlertEvaluator(store=store, notifier=sink)
    store.subscribe(evaluator.sync)
    return evaluator


def run(coro):
    """Run a coroutine to completion."""
    return asyncio.run(coro)
