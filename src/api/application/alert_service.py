"""Service for alert queries and operator actions."""

from collections import Counter

from loguru import logger

from src.alerting.application.engine import AlertEngine
from src.alerting.domain.models import Alert, Severity
from src.api.domain.exceptions import AlertNotFoundError
from src.api.domain.schemas import (
    AlertListResponse,
    AlertResponse,
    AlertStatsResponse,
    ResolveAllResponse,
)


class AlertService:
    """Reads the alert collection and performs operator resolutions through the engine."""

    def __init__(self, engine: AlertEngine):
        self.engine = engine

    async def list_alerts(
        self,
        resolved: bool | None = None,
        severity: Severity | None = None,
        limit: int = 100,
    ) -> AlertListResponse:
        """List alerts, newest first, with optional filters."""
        alerts = await self.engine.store.list_all()
        filtered = [
            a
            for a in alerts
            if (resolved is None or a.resolved == resolved) and (severity is None or a.severity == severity)
        ]
        filtered.sort(key=lambda a: a.created_at_ms, reverse=True)

        return AlertListResponse(
            alerts=[self._to_response(a) for a in filtered[:limit]],
            total=len(filtered),
        )

    async def stats(self) -> AlertStatsResponse:
        """Counts by severity and type."""
        alerts = await self.engine.store.list_all()
        return AlertStatsResponse(
            total=len(alerts),
            unresolved=sum(1 for a in alerts if not a.resolved),
            by_severity=dict(Counter(a.severity.value for a in alerts)),
            by_type=dict(Counter(a.type.value for a in alerts)),
        )

    async def resolve(self, alert_id: str) -> AlertResponse:
        """Resolve one alert as operator; resolving a resolved alert is a no-op."""
        alert = await self.engine.resolve_by_operator(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return self._to_response(alert)

    async def resolve_all(self) -> ResolveAllResponse:
        """Resolve every open alert as operator."""
        resolved_ids = await self.engine.resolve_all_by_operator()
        logger.info(f"✓ Operator resolved {len(resolved_ids)} alert(s)")
        return ResolveAllResponse(resolved_ids=resolved_ids, resolved_count=len(resolved_ids))

    def _to_response(self, alert: Alert) -> AlertResponse:
        return AlertResponse(
            id=alert.id,
            type=alert.type,
            message=alert.message,
            severity=alert.severity,
            created_at_ms=alert.created_at_ms,
            resolved=alert.resolved,
            resolved_at_ms=alert.resolved_at_ms,
            resolved_by=alert.resolved_by,
            source=alert.source,
        )
