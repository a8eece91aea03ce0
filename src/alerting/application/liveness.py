"""Liveness monitor: online/offline from the age of the trusted device timestamp."""

from loguru import logger

from src.alerting.domain.models import Liveness, LivenessSnapshot, SensorState


class LivenessMonitor:
    """Two-state machine (ONLINE/OFFLINE) driven by `SensorState.last_seen_at_ms`."""

    def __init__(self, offline_threshold_ms: int = 90_000, status_ttl_ms: int = 90_000):
        self.offline_threshold_ms = offline_threshold_ms
        self.status_ttl_ms = status_ttl_ms
        self.state = Liveness.OFFLINE

        # Informational only; never used to decide liveness
        self.reported_status: str = "unknown"
        self.reported_at_ms: int | None = None

    def peek(self, sensor_state: SensorState, now_ms: int) -> LivenessSnapshot:
        """Derive liveness without recording a transition."""
        last_seen = sensor_state.last_seen_at_ms
        if last_seen is None:
            return LivenessSnapshot(Liveness.OFFLINE, None, False)

        age = now_ms - last_seen
        state = Liveness.OFFLINE if age > self.offline_threshold_ms else Liveness.ONLINE
        return LivenessSnapshot(state, age, True)

    def check(self, sensor_state: SensorState, now_ms: int) -> LivenessSnapshot:
        """Re-derive liveness and log transitions."""
        snapshot = self.peek(sensor_state, now_ms)

        if snapshot.state != self.state:
            if snapshot.state == Liveness.ONLINE:
                logger.info(f"✓ Device back online (last update {snapshot.age_ms} ms ago)")
            else:
                logger.warning(f"Device offline (last update {snapshot.age_ms} ms ago)")
            self.state = snapshot.state

        return snapshot

    def record_status(self, status: str, now_ms: int) -> None:
        """Record a status message announced by the device."""
        self.reported_status = status
        self.reported_at_ms = now_ms
        logger.debug(f"Device reported status {status!r}")

    def reported_online(self, now_ms: int) -> bool:
        """Whether the device announced 'online' recently."""
        return (
            self.reported_status == "online"
            and self.reported_at_ms is not None
            and now_ms - self.reported_at_ms < self.status_ttl_ms
        )
