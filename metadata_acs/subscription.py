"""Single-slot subscription state machine."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import SubscribeError
from .event_bus import EventBus, EventCallback
from .models import Topic

log = logging.getLogger(__name__)


class SubscriptionState(enum.Enum):
    IDLE = "Idle"
    SUBSCRIBED = "Subscribed"
    RESUBSCRIBING = "Resubscribing"
    CLOSED = "Closed"


@dataclass(frozen=True)
class Subscription:
    handle: int
    topic: Topic


class SubscriptionManager:
    """Keeps at most one live subscription on the event bus.

    A topic change tears the current subscription down before the new one is
    created; events published in between are lost.
    """

    def __init__(self, bus: EventBus, callback: EventCallback) -> None:
        self._bus = bus
        self._callback = callback
        self._active: Optional[Subscription] = None
        self._topic: Optional[Topic] = None
        self._state = SubscriptionState.IDLE

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def active(self) -> Optional[Subscription]:
        return self._active

    @property
    def topic(self) -> Optional[Topic]:
        return self._topic

    def set_topic(self, topic: Topic) -> SubscriptionState:
        if self._state is SubscriptionState.CLOSED:
            log.warning("Ignoring topic %s, subscription manager is shut down", topic.label())
            return self._state
        if topic == self._topic:
            return self._state

        self._topic = topic
        if self._active is not None:
            self._state = SubscriptionState.RESUBSCRIBING
            self._teardown()

        if not topic.is_configured:
            log.debug("No analytic configured, skip event subscription")
            self._state = SubscriptionState.IDLE
            return self._state

        if not topic.binds_category:
            log.debug("Subscribing to %s without category", topic.analytic)
        try:
            handle = self._bus.subscribe(topic.to_filter(), self._callback)
        except SubscribeError as exc:
            log.error("Failed to subscribe to %s: %s", topic.label(), exc)
            self._state = SubscriptionState.IDLE
            return self._state

        self._active = Subscription(handle=handle, topic=topic)
        self._state = SubscriptionState.SUBSCRIBED
        log.debug("Subscribed to %s (handle %s)", topic.label(), handle)
        return self._state

    def shutdown(self) -> None:
        if self._active is not None:
            self._teardown()
        self._state = SubscriptionState.CLOSED

    def _teardown(self) -> None:
        subscription = self._active
        self._active = None
        if subscription is None:
            return
        log.debug("Unsubscribing handle %s", subscription.handle)
        self._bus.unsubscribe(subscription.handle)
