"""
In-process publish/subscribe for sync and health telemetry.

Observers (dashboards, the health monitor, tests) subscribe to an EventBus and
receive SyncEvent objects. Delivery is best-effort and at-least-once per
subscriber: a subscriber that raises is logged and skipped, the rest still
receive the event. There is no ordering guarantee across event types.

Example:
    bus = EventBus()

    async def on_error(event: SyncEvent) -> None:
        print(event.payload["code"], event.payload["error"])

    subscription = bus.subscribe(on_error, {EventType.ITEM_ERROR})
    await bus.publish(SyncEvent(EventType.ITEM_ERROR, {"code": "11-1011", "error": "boom"}))
    subscription.cancel()
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional, Union

import structlog

from occsync.core.typing import utc_now

logger = structlog.get_logger(__name__)


class EventType(str, Enum):
    PROGRESS = "progress"
    ITEM_PROCESSED = "item_processed"
    ITEM_ERROR = "item_error"
    CHECKPOINT = "checkpoint"
    HEALTH_WARNING = "health_warning"
    API_CALL = "api_call"
    HEALTH_UPDATE = "health_update"
    ALERT = "alert"
    ALERT_RESOLVED = "alert_resolved"
    RECOVERY = "recovery"


@dataclass(frozen=True)
class SyncEvent:
    """Immutable event passed to subscribers."""

    type: EventType
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)


Subscriber = Callable[[SyncEvent], Union[None, Awaitable[None]]]


class Subscription:
    """Handle returned by EventBus.subscribe. Cancel it to stop receiving events."""

    def __init__(self, bus: "EventBus", callback: Subscriber, event_types: Optional[frozenset[EventType]]):
        self._bus = bus
        self.callback = callback
        self.event_types = event_types
        self.active = True

    def wants(self, event: SyncEvent) -> bool:
        return self.event_types is None or event.type in self.event_types

    def cancel(self) -> None:
        self._bus.unsubscribe(self)


class EventBus:
    """Observer list with error isolation between subscribers."""

    def __init__(self) -> None:
        self._subs: list[Subscription] = []

    def subscribe(
        self,
        callback: Subscriber,
        event_types: Optional[Iterable[EventType]] = None,
    ) -> Subscription:
        """
        Register a callback.

        Args:
            callback: Sync or async callable accepting a SyncEvent
            event_types: Only deliver these types (default: every event)

        Returns:
            Subscription handle
        """
        types = frozenset(event_types) if event_types is not None else None
        subscription = Subscription(self, callback, types)
        self._subs.append(subscription)
        logger.debug("event subscriber added", total=len(self._subs))
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription. Safe to call more than once."""
        subscription.active = False
        try:
            self._subs.remove(subscription)
        except ValueError:
            return
        logger.debug("event subscriber removed", total=len(self._subs))

    async def publish(self, event: SyncEvent) -> None:
        """Deliver an event to every matching subscriber."""
        if not self._subs:
            return

        # Iterate over copy to allow unsubscribe during delivery
        for subscription in list(self._subs):
            if not subscription.active or not subscription.wants(event):
                continue
            try:
                result = subscription.callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(
                    "event subscriber failed",
                    event_type=event.type.value,
                    error=f"{type(e).__name__}: {e}",
                )

    async def emit(self, event_type: EventType, **payload: Any) -> None:
        await self.publish(SyncEvent(event_type, payload))

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)
