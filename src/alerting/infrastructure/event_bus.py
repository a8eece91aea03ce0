"""Typed in-process event bus with explicit subscriber lifecycle."""

from collections import defaultdict
from typing import Any, Awaitable, Callable

from loguru import logger

from src.alerting.domain.events import TelemetryEvent

Handler = Callable[[Any], Awaitable[None]]


class Subscription:
    """Handle returned by TelemetryBus.subscribe()."""

    def __init__(self, bus: "TelemetryBus", event_type: type, handler: Handler):
        self._bus = bus
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        """Remove the handler. Safe to call more than once."""
        if self.active:
            self._bus._remove(self.event_type, self.handler)
            self.active = False


class TelemetryBus:
    """
    Routes telemetry events to async handlers by event type.

    Registering the same handler twice for one type keeps a single
    registration, so re-running setup code never duplicates delivery.
    """

    def __init__(self):
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> Subscription:
        """Register a handler for one event type."""
        handlers = self._handlers[event_type]
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"Subscribed {getattr(handler, '__qualname__', handler)} to {event_type.__name__}")
        return Subscription(self, event_type, handler)

    def _remove(self, event_type: type, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: TelemetryEvent) -> None:
        """Deliver an event to every handler of its type, in registration order."""
        for handler in list(self._handlers.get(type(event), [])):
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Handler {getattr(handler, '__qualname__', handler)} failed on {event}: {e}")
