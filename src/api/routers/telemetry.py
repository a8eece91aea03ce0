"""API routes for telemetry ingest, notifications and viewer presence."""

from fastapi import APIRouter, Query

from src.alerting.domain.events import SensorSnapshot
from src.api.domain.schemas import (
    MqttMessageIn,
    MqttMessageResponse,
    NotificationResponse,
    PresenceIn,
    PresenceResponse,
    SensorSnapshotIn,
    TelemetryStatusResponse,
)
from src.api.infrastructure.container import get_container

router = APIRouter(prefix="/api", tags=["telemetry"])


@router.post("/telemetry/snapshot", response_model=TelemetryStatusResponse)
async def push_snapshot(data: SensorSnapshotIn):
    """
    Fallback-channel snapshot written by the device.

    Expected body:
    ```json
    {"temperature": 27.5, "humidity": 61, "feedLevel": 54, "waterLevel": 80, "lastUpdate": 1727080000000}
    ```
    Missing fields keep their previous value; malformed numbers count as 0.
    """
    container = get_container()
    await container.bus().publish(SensorSnapshot(payload=data.model_dump(exclude_none=True)))
    return container.engine().status()


@router.post("/telemetry/mqtt", response_model=MqttMessageResponse)
async def push_mqtt_message(message: MqttMessageIn):
    """Forward one MQTT message (topic + payload) from a broker bridge."""
    accepted = await get_container().mqtt_router().handle_message(message.topic, message.payload)
    return MqttMessageResponse(accepted=accepted)


@router.get("/telemetry/state", response_model=TelemetryStatusResponse)
async def telemetry_state():
    """Current sensor values and device liveness."""
    return get_container().engine().status()


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(after_ms: int = Query(0, ge=0, description="Only notifications newer than this")):
    """Recent notifications for the dashboard to show as toasts."""
    return [n.to_dict() for n in get_container().toast_sink().since(after_ms)]


@router.post("/presence", response_model=PresenceResponse)
async def report_presence(data: PresenceIn):
    """The dashboard reports whether it is visible; reminders pause while it is."""
    container = get_container()
    engine = container.engine()
    presence = container.presence()

    now = engine.clock()
    presence.report(data.visible, now)
    return PresenceResponse(visible=presence.visible, active=presence.is_viewer_active(now))
