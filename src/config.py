"""Configuration for the application."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ThresholdConfig(BaseSettings):
    """Sensor thresholds used by the alert rules."""

    model_config = SettingsConfigDict(env_prefix="THRESHOLD_", env_file=".env", extra="ignore")

    low_feed: float = Field(default=20.0, description="Feed level (%) below which LowFeed fires")
    high_temperature: float = Field(default=35.0, description="Temperature (°C) above which HighTemperature fires")
    low_temperature: float = Field(default=18.0, description="Temperature (°C) below which LowTemperature fires")
    high_humidity: float = Field(default=80.0, description="Humidity (%) above which HighHumidity fires")
    low_humidity: float = Field(default=40.0, description="Humidity (%) below which LowHumidity fires")
    low_water: float | None = Field(default=None, description="Water level (%) below which LowWater fires (None disables)")


class AlertWindowConfig(BaseSettings):
    """Debounce and duplicate-suppression windows."""

    model_config = SettingsConfigDict(env_prefix="ALERT_", env_file=".env", extra="ignore")

    debounce_ms: int = Field(default=60_000, ge=0, description="Minimum gap between two creations of the same type")
    duplicate_window_ms: int = Field(
        default=3_600_000, ge=0, description="Window in which an unresolved alert of the same type blocks a new one"
    )


class LivenessConfig(BaseSettings):
    """Configuration for device liveness detection."""

    model_config = SettingsConfigDict(env_prefix="LIVENESS_", env_file=".env", extra="ignore")

    offline_threshold_ms: int = Field(default=90_000, gt=0, description="Age of last device update before offline")
    poll_interval_ms: int = Field(default=5_000, gt=0, description="Liveness polling period")
    status_ttl_ms: int = Field(default=90_000, gt=0, description="How long an MQTT 'online' status stays valid")


class ReminderConfig(BaseSettings):
    """Configuration for unresolved alert reminders."""

    model_config = SettingsConfigDict(env_prefix="REMINDER_", env_file=".env", extra="ignore")

    critical_interval_ms: int = Field(default=600_000, gt=0, description="Reminder backoff for critical alerts")
    warning_interval_ms: int = Field(default=1_800_000, gt=0, description="Reminder backoff for warning alerts")
    tick_ms: int = Field(default=60_000, gt=0, description="Reminder scheduler period")
    max_per_tick: int = Field(default=1, ge=1, description="Maximum alerts reminded in one tick")
    only_when_inactive: bool = Field(default=True, description="Only remind while the viewer is not looking")
    storage_path: str = Field(default="./state/reminders.json", description="Where reminder timestamps are kept")
    presence_ttl_ms: int = Field(default=90_000, gt=0, description="How long a visibility heartbeat stays valid")


class NotificationConfig(BaseSettings):
    """Configuration for user-facing notifications."""

    model_config = SettingsConfigDict(env_prefix="NOTIFICATION_", env_file=".env", extra="ignore")

    app_title: str = Field(default="ChicKulungan", description="Prefix used in notification titles")
    tag_prefix: str = Field(default="chickulungan-alert", description="Notification tag prefix")
    history_size: int = Field(default=100, ge=1, description="Notifications kept for the dashboard")
    body_max_length: int = Field(default=160, ge=1, description="Maximum reminder body length")


class MqttConfig(BaseSettings):
    """Configuration for the MQTT broker and topic routing."""

    model_config = SettingsConfigDict(env_prefix="MQTT_", env_file=".env", extra="ignore")

    host: str = Field(default="broker.emqx.io", description="Broker hostname")
    port: int = Field(default=1883, description="Broker TCP port")
    username: str | None = Field(default=None, description="Broker username")
    password: str | None = Field(default=None, description="Broker password")
    publish_timeout_s: float = Field(default=10.0, description="Connect/publish timeout for commands")
    topic_prefix: str = Field(default="chickulungan", description="Root of the device topic tree")


class StoreConfig(BaseSettings):
    """Configuration for the alert store backend."""

    model_config = SettingsConfigDict(env_prefix="STORE_", env_file=".env", extra="ignore")

    backend: str = Field(default="database", description="Alert store backend (database or memory)")


class DatabaseConfig(BaseSettings):
    """Configuration for database."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", env_file=".env", extra="ignore")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="coop_db", description="Database name")
    user: str = Field(default="coop_user", description="Database user")
    password: str = Field(default="coop_password", description="Database password")
    url: str | None = Field(default=None, description="Full async database URL (overrides host/port/name)")

    @property
    def async_url(self) -> str:
        """Get asynchronous database URL."""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class LoggingConfig(BaseSettings):
    """Configuration for log sinks."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: str = Field(default="INFO", description="Minimum console log level")
    file: str | None = Field(default="logs/app.log", description="Log file path (None disables)")
    rotation: str = Field(default="100 MB", description="Log file rotation")
    retention: str = Field(default="30 days", description="Log file retention")


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    thresholds: ThresholdConfig = Field(default_factory=ThresholdConfig)
    alert_windows: AlertWindowConfig = Field(default_factory=AlertWindowConfig)
    liveness: LivenessConfig = Field(default_factory=LivenessConfig)
    reminders: ReminderConfig = Field(default_factory=ReminderConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    mqtt: MqttConfig = Field(default_factory=MqttConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
