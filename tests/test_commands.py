"""Tests for device command publishing."""

import aiomqtt
import pytest

from src.alerting.domain.exceptions import CommandPublishError
from src.alerting.infrastructure.mqtt_publisher import MqttCommandPublisher
from tests.conftest import run


class FakeClient:
    """Stands in for aiomqtt.Client and records what would go over the wire."""

    instances = []

    def __init__(self, hostname, port=1883, **kwargs):
        self.hostname = hostname
        self.port = port
        self.kwargs = kwargs
        self.published = []
        FakeClient.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def publish(self, topic, payload=None, qos=0, **kwargs):
        self.published.append((topic, payload, qos))


class UnreachableClient(FakeClient):
    async def __aenter__(self):
        raise aiomqtt.MqttError("connection refused")


@pytest.fixture(autouse=True)
def reset_instances():
    FakeClient.instances = []


def test_publishes_with_configured_credentials(monkeypatch):
    monkeypatch.setattr(aiomqtt, "Client", FakeClient)
    publisher = MqttCommandPublisher("broker.local", port=1884, username="coop", password="secret")

    run(publisher.publish("chickulungan/control/feed", "1"))

    (client,) = FakeClient.instances
    assert (client.hostname, client.port) == ("broker.local", 1884)
    assert client.kwargs["username"] == "coop"
    assert client.kwargs["password"] == "secret"
    assert client.published == [("chickulungan/control/feed", "1", 1)]


def test_broker_failure_raises_command_error(monkeypatch):
    monkeypatch.setattr(aiomqtt, "Client", UnreachableClient)
    publisher = MqttCommandPublisher("broker.local")

    with pytest.raises(CommandPublishError) as excinfo:
        run(publisher.publish("chickulungan/control/feed", "1"))

    assert "connection refused" in excinfo.value.message
    assert excinfo.value.details == {"broker": "broker.local:1883"}
