"""Dependency injection container for API layer."""

from dependency_injector import containers, providers

from src.alerting.application.engine import AlertEngine
from src.alerting.infrastructure.alert_store import DatabaseAlertStore, InMemoryAlertStore
from src.alerting.infrastructure.event_bus import TelemetryBus
from src.alerting.infrastructure.log_sink import DatabaseLogSink
from src.alerting.infrastructure.mqtt_publisher import MqttCommandPublisher
from src.alerting.infrastructure.mqtt_router import MqttTopicRouter
from src.alerting.infrastructure.notifications import (
    CompositeNotificationSink,
    InMemoryNotificationSink,
    LoggingNotificationSink,
)
from src.alerting.infrastructure.presence import ViewerPresence
from src.alerting.infrastructure.reminder_storage import JsonFileReminderStorage
from src.api.infrastructure.database import Database
from src.config import AppConfig


class APIContainer(containers.DeclarativeContainer):
    """Dependency injection container for API layer."""

    config = providers.Configuration()
    app_config = providers.Singleton(AppConfig)

    # Database
    database = providers.Singleton(
        Database,
        async_database_url=config.database.async_url,
    )

    # Alert store
    alert_store = providers.Selector(
        config.store.backend,
        memory=providers.Singleton(InMemoryAlertStore),
        database=providers.Singleton(DatabaseAlertStore, database=database),
    )

    # Notifications: log + toast history for the dashboard
    toast_sink = providers.Singleton(
        InMemoryNotificationSink,
        max_size=config.notifications.history_size,
    )
    notifier = providers.Singleton(
        CompositeNotificationSink,
        sinks=providers.List(providers.Singleton(LoggingNotificationSink), toast_sink),
    )

    reminder_storage = providers.Singleton(
        JsonFileReminderStorage,
        path=config.reminders.storage_path,
    )
    presence = providers.Singleton(
        ViewerPresence,
        ttl_ms=config.reminders.presence_ttl_ms,
    )
    log_sink = providers.Singleton(DatabaseLogSink, database=database)

    # Telemetry
    bus = providers.Singleton(TelemetryBus)
    mqtt_router = providers.Singleton(
        MqttTopicRouter,
        bus=bus,
        topic_prefix=config.mqtt.topic_prefix,
    )
    command_publisher = providers.Singleton(
        MqttCommandPublisher,
        hostname=config.mqtt.host,
        port=config.mqtt.port,
        username=config.mqtt.username,
        password=config.mqtt.password,
        timeout_s=config.mqtt.publish_timeout_s,
    )

    # Alert engine
    engine = providers.Singleton(
        AlertEngine,
        store=alert_store,
        notifier=notifier,
        reminder_storage=reminder_storage,
        bus=bus,
        activity=presence,
        log_sink=log_sink,
        config=app_config,
    )


# Global container instance
_container: APIContainer | None = None


def init_container(app_config: AppConfig) -> APIContainer:
    """Initialize the global container."""
    global _container
    _container = APIContainer()
    _container.app_config.override(providers.Object(app_config))
    _container.config.from_dict(
        {
            "database": {"async_url": app_config.database.async_url},
            "store": {"backend": app_config.store.backend},
            "notifications": {"history_size": app_config.notifications.history_size},
            "reminders": {
                "storage_path": app_config.reminders.storage_path,
                "presence_ttl_ms": app_config.reminders.presence_ttl_ms,
            },
            "mqtt": {
                "host": app_config.mqtt.host,
                "port": app_config.mqtt.port,
                "username": app_config.mqtt.username,
                "password": app_config.mqtt.password,
                "publish_timeout_s": app_config.mqtt.publish_timeout_s,
                "topic_prefix": app_config.mqtt.topic_prefix,
            },
        }
    )
    return _container


def get_container() -> APIContainer:
    """Get the global container instance."""
    if _container is None:
        raise RuntimeError("Container not initialized. Call init_container() first.")
    return _container
