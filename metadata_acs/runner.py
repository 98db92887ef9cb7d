"""Service wiring: parameters, subscription, extraction and delivery."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import requests

from .acs_client import ACSClient, SendMode
from .config import Settings, get_settings
from .control import ControlSurface, StatusSnapshot
from .errors import MissingFieldError
from .event_bus import EventBus, EventRecord, LocalEventBus
from .extractor import extract_items
from .logs import set_debug
from .models import ItemList, Topic
from .overlay import LogOverlay, OverlaySink
from .params import (
    ANALYTIC,
    CATEGORY,
    CONTENT_FILTER,
    DEBUG_ENABLED,
    ENABLED,
    ITEMS,
    PASSWORD,
    SERVER_ADDRESS,
    SOURCE_ID,
    USERNAME,
    ParameterStore,
)
from .subscription import SubscriptionManager

log = logging.getLogger(__name__)

ACS_PARAMETERS = (SERVER_ADDRESS, SOURCE_ID, USERNAME, PASSWORD, ENABLED)
TOPIC_PARAMETERS = (ANALYTIC, CATEGORY)


class MetadataACSService:
    """Forwards events of the selected analytic to ACS.

    Every callback (event delivery, parameter change, control handlers that
    mutate state) is expected to run on one dispatcher loop. Event handling
    reads a snapshot of the parameters, so a concurrent write can never mix
    old and new values within one event.
    """

    def __init__(
        self,
        settings: Settings,
        params: ParameterStore,
        bus: EventBus,
        acs_client: ACSClient,
        overlay: OverlaySink,
        owns_bus: bool = False,
    ) -> None:
        self.settings = settings
        self.params = params
        self.bus = bus
        self.acs_client = acs_client
        self.overlay = overlay
        self.subscriptions = SubscriptionManager(bus, self.handle_event)
        self.control = ControlSurface(
            params,
            acs_client,
            status=self.status,
            max_items=settings.max_items,
        )
        self._owns_bus = owns_bus
        self._current_items: ItemList = []
        self._started = False

    @property
    def current_items(self) -> ItemList:
        return list(self._current_items)

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if self._started:
            return
        if loop is not None and isinstance(self.bus, LocalEventBus):
            self.bus.bind_loop(loop)

        set_debug(self.params.get(DEBUG_ENABLED))
        self._apply_acs_config()
        self.subscriptions.set_topic(self._current_topic())

        for name in ACS_PARAMETERS:
            self.params.on_change(name, self._on_acs_parameter)
        for name in TOPIC_PARAMETERS:
            self.params.on_change(name, self._on_topic_parameter)
        self.params.on_change(ITEMS, self._on_items)
        self.params.on_change(CONTENT_FILTER, self._on_content_filter)
        self.params.on_change(DEBUG_ENABLED, set_debug)
        self._started = True
        log.info("Metadata ACS service started")

    def handle_event(self, record: EventRecord) -> None:
        values = self.params.snapshot()
        analytic = values.get(ANALYTIC, "")
        category = values.get(CATEGORY, "")
        log.debug("Got event %s/%s event to push to ACS", analytic, category)

        try:
            items = extract_items(
                record,
                values.get(ITEMS),
                values.get(CONTENT_FILTER),
                max_items=self.settings.max_items,
            )
        except MissingFieldError as exc:
            log.debug("Dropping event: %s", exc)
            return
        if not items:
            log.debug("Dropping event: no items to push")
            return

        self.acs_client.send(items, SendMode.ASYNC)
        self.overlay.set_data(items, self.settings.overlay_duration_ms, analytic, category)
        self._current_items = items

    def status(self) -> StatusSnapshot:
        active = self.subscriptions.active
        return StatusSnapshot(
            items=self.current_items,
            subscription=self.subscriptions.state.value,
            topic=active.topic if active else None,
        )

    def shutdown(self) -> None:
        log.info("Shutting down metadata ACS service")
        self.subscriptions.shutdown()
        self.params.clear_callbacks()
        if isinstance(self.bus, LocalEventBus):
            self.bus.bind_loop(None)
            if self._owns_bus:
                self.bus.close()
        # In-flight async sends are not awaited.
        self.acs_client.close(wait=False)
        self.overlay.close()
        self._current_items = []
        self._started = False

    def _current_topic(self) -> Topic:
        return Topic(analytic=self.params.get(ANALYTIC), category=self.params.get(CATEGORY))

    def _apply_acs_config(self) -> None:
        self.acs_client.configure(
            host=self.params.get(SERVER_ADDRESS),
            source_id=self.params.get(SOURCE_ID),
            username=self.params.get(USERNAME),
            password=self.params.get(PASSWORD),
            enabled=self.params.get(ENABLED),
        )

    def _on_acs_parameter(self, value: str) -> None:
        self._apply_acs_config()

    def _on_topic_parameter(self, value: str) -> None:
        topic = self._current_topic()
        log.debug("Got new topic %s", topic.label())
        self.subscriptions.set_topic(topic)

    def _on_items(self, value: str) -> None:
        log.debug("Got new Items %s", value)

    def _on_content_filter(self, value: str) -> None:
        log.debug("Got new Filter %s", value)


def create_service(
    settings: Settings | None = None,
    bus: Optional[EventBus] = None,
    overlay: Optional[OverlaySink] = None,
    session: Optional[requests.Session] = None,
    params: Optional[ParameterStore] = None,
) -> MetadataACSService:
    settings = settings or get_settings()
    owns_bus = bus is None
    return MetadataACSService(
        settings=settings,
        params=params or ParameterStore.from_settings(settings),
        bus=bus or LocalEventBus(),
        acs_client=ACSClient(settings, session=session),
        overlay=overlay or LogOverlay(),
        owns_bus=owns_bus,
    )
