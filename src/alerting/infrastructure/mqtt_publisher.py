"""MQTT publisher for device commands."""

import aiomqtt
from loguru import logger

from src.alerting.domain.exceptions import CommandPublishError
from src.alerting.domain.protocols import CommandPublisher


class MqttCommandPublisher(CommandPublisher):
    """Publishes commands to the broker, one short-lived connection per command."""

    def __init__(
        self,
        hostname: str,
        port: int = 1883,
        username: str | None = None,
        password: str | None = None,
        timeout_s: float = 10.0,
    ):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.password = password
        self.timeout_s = timeout_s

    async def publish(self, topic: str, payload: str) -> None:
        try:
            async with aiomqtt.Client(
                self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                timeout=self.timeout_s,
            ) as client:
                await client.publish(topic, payload=payload, qos=1)
        except aiomqtt.MqttError as e:
            raise CommandPublishError(
                f"Could not publish to {topic}: {e}",
                details={"broker": f"{self.hostname}:{self.port}"},
            ) from e

        logger.info(f"📤 Published {topic} = {payload}")


class RecordingCommandPublisher(CommandPublisher):
    """Keeps published commands in a list, for tests."""

    def __init__(self):
        self.published: list[tuple[str, str]] = []

    async def publish(self, topic: str, payload: str) -> None:
        self.published.append((topic, payload))

    def __len__(self):
        return len(self.published)
