"""Alert stores with change notification."""

import asyncio
import uuid
from dataclasses import replace

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from src.alerting.domain.exceptions import AlertStoreError
from src.alerting.domain.models import Alert
from src.alerting.domain.protocols import AlertListener, AlertStore, Unsubscribe
from src.api.infrastructure.database import Database
from src.api.infrastructure.repositories import AlertRepository


def new_alert_id() -> str:
    """Opaque alert identifier."""
    return uuid.uuid4().hex


class _SubscribableStore:
    """Listener bookkeeping shared by the store implementations."""

    def __init__(self):
        self._listeners: list[AlertListener] = []

    def subscribe(self, listener: AlertListener) -> Unsubscribe:
        if listener not in self._listeners:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, alerts: list[Alert]) -> None:
        for listener in list(self._listeners):
            try:
                listener(alerts)
            except Exception as e:
                logger.error(f"Alert listener failed: {e}")


class InMemoryAlertStore(_SubscribableStore, AlertStore):
    """Simple in-memory alert storage for testing and single-process setups."""

    def __init__(self):
        super().__init__()
        self.alerts: dict[str, Alert] = {}

    async def add(self, alert: Alert) -> Alert:
        stored = replace(alert, id=alert.id or new_alert_id())
        self.alerts[stored.id] = stored
        self._emit(await self.list_all())
        return stored

    async def update(self, alert: Alert) -> None:
        if not alert.id:
            raise AlertStoreError("Cannot update an alert without id")
        self.alerts[alert.id] = alert
        self._emit(await self.list_all())

    async def get(self, alert_id: str) -> Alert | None:
        return self.alerts.get(alert_id)

    async def list_all(self) -> list[Alert]:
        return list(self.alerts.values())

    def clear(self):
        """Clear all stored alerts."""
        self.alerts.clear()

    def __len__(self):
        return len(self.alerts)


class DatabaseAlertStore(_SubscribableStore, AlertStore):
    """Alert store backed by the SQL database. Writes are serialized."""

    def __init__(self, database: Database):
        super().__init__()
        self.database = database
        self._write_lock = asyncio.Lock()

    async def add(self, alert: Alert) -> Alert:
        stored = replace(alert, id=alert.id or new_alert_id())
        try:
            async with self._write_lock, self.database.get_async_session() as session:
                await AlertRepository(session).create(stored)
        except SQLAlchemyError as e:
            raise AlertStoreError(f"Failed to create alert: {e}", details={"type": stored.type.value}) from e

        await self._notify()
        return stored

    async def update(self, alert: Alert) -> None:
        if not alert.id:
            raise AlertStoreError("Cannot update an alert without id")
        try:
            async with self._write_lock, self.database.get_async_session() as session:
                await AlertRepository(session).upsert(alert)
        except SQLAlchemyError as e:
            raise AlertStoreError(f"Failed to update alert {alert.id}: {e}", details={"alert_id": alert.id}) from e

        await self._notify()

    async def get(self, alert_id: str) -> Alert | None:
        try:
            async with self.database.get_async_session() as session:
                return await AlertRepository(session).get(alert_id)
        except SQLAlchemyError as e:
            raise AlertStoreError(f"Failed to read alert {alert_id}: {e}") from e

    async def list_all(self) -> list[Alert]:
        try:
            async with self.database.get_async_session() as session:
                return list(await AlertRepository(session).list_all())
        except SQLAlchemyError as e:
            raise AlertStoreError(f"Failed to list alerts: {e}") from e

    async def _notify(self) -> None:
        if not self._listeners:
            return
        try:
            alerts = await self.list_all()
        except AlertStoreError as e:
            logger.warning(f"Skipping alert change notification: {e.message}")
            return
        self._emit(alerts)
