"""Event bus interface and an in-process implementation."""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Protocol

from .errors import EventBusClosedError, SubscribeError
from .models import TopicFilter

log = logging.getLogger(__name__)


@dataclass
class EventRecord:
    """Typed key/value set delivered with an event.

    The accessors mirror the bus API: each one succeeds only when the key holds
    a value of that exact kind.
    """

    values: Mapping[str, Any] = field(default_factory=dict)
    topic: Mapping[str, str] = field(default_factory=dict)

    def get_string(self, key: str) -> Optional[str]:
        value = self.values.get(key)
        return value if isinstance(value, str) else None

    def get_boolean(self, key: str) -> Optional[bool]:
        value = self.values.get(key)
        return value if isinstance(value, bool) else None

    def get_integer(self, key: str) -> Optional[int]:
        value = self.values.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return None

    def get_double(self, key: str) -> Optional[float]:
        value = self.values.get(key)
        return value if isinstance(value, float) else None


EventCallback = Callable[[EventRecord], None]


class EventBus(Protocol):
    def subscribe(self, topic_filter: TopicFilter, callback: EventCallback) -> int:
        ...

    def unsubscribe(self, handle: int) -> None:
        ...


@dataclass
class _Subscriber:
    topic_filter: TopicFilter
    callback: EventCallback


class LocalEventBus:
    """Publish/subscribe bus living in this process.

    Without a bound loop callbacks run inside :meth:`publish`. After
    :meth:`bind_loop` every delivery is scheduled on that loop, so subscribers
    always run on the dispatcher thread regardless of who publishes.
    """

    def __init__(self) -> None:
        self._id_gen = itertools.count(start=1)
        self._subscribers: Dict[int, _Subscriber] = {}
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._closed = False

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
        self._loop = loop

    def subscribe(self, topic_filter: TopicFilter, callback: EventCallback) -> int:
        if self._closed:
            raise EventBusClosedError("event bus is closed")
        keys = [key for key, _namespace, _value in topic_filter]
        if "topic0" not in keys or "topic1" not in keys:
            raise SubscribeError(f"incomplete topic filter: {topic_filter!r}")
        for key, _namespace, value in topic_filter:
            if not value:
                raise SubscribeError(f"empty value for {key}")
        handle = next(self._id_gen)
        with self._lock:
            self._subscribers[handle] = _Subscriber(list(topic_filter), callback)
        log.debug("Subscription %s created for %s", handle, topic_filter)
        return handle

    def unsubscribe(self, handle: int) -> None:
        with self._lock:
            removed = self._subscribers.pop(handle, None)
        if removed is None:
            log.debug("Unsubscribe for unknown handle %s ignored", handle)

    def publish(self, topic: Mapping[str, str], values: Mapping[str, Any]) -> int:
        """Deliver an event to every matching subscriber; return the match count."""
        with self._lock:
            targets = [
                sub.callback
                for sub in self._subscribers.values()
                if self._matches(sub.topic_filter, topic)
            ]
        for callback in targets:
            record = EventRecord(values=dict(values), topic=dict(topic))
            if self._loop is not None:
                self._loop.call_soon_threadsafe(callback, record)
            else:
                callback(record)
        return len(targets)

    def close(self) -> None:
        with self._lock:
            self._subscribers.clear()
        self._closed = True
        self._loop = None

    @property
    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @staticmethod
    def _matches(topic_filter: TopicFilter, topic: Mapping[str, str]) -> bool:
        return all(topic.get(key) == value for key, _namespace, value in topic_filter)
