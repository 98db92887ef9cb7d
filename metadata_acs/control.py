"""Settings and test-reporting handlers behind the configuration UI."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import quote
from xml.sax.saxutils import escape

from .acs_client import ACSClient, SendMode
from .extractor import MAX_ITEMS, synthetic_items
from .models import BLANK, ControlResponse, ItemList, TestResult, Topic
from .params import (
    ANALYTIC,
    CATEGORY,
    ENABLED,
    ITEMS,
    PARAMETER_NAMES,
    VISIBLE_PARAMETERS,
    ParameterStore,
)

log = logging.getLogger(__name__)

XML_MEDIA_TYPE = "text/xml; charset=utf-8"
XML_PROLOG = '<?xml version="1.0"?>\r\n'
NO_CACHE = {"Cache-Control": "no-cache"}

BAD_REQUEST_HTML = (
    "<HTML><HEAD><TITLE>400 Bad Request</TITLE></HEAD>\n"
    "<BODY><H1>400 Bad Request</H1>\n"
    "The request had bad syntax or was inherently impossible to be satisfied.\n"
    "</BODY></HTML>\n"
)

RESULT_SUCCESS = "Success"
RESULT_ERROR = "Error"
RESULT_FAILURE = "Failure"
RESULT_ITEM_ERROR = "Item Error"


@dataclass
class StatusSnapshot:
    items: ItemList = field(default_factory=list)
    subscription: str = "Idle"
    topic: Optional[Topic] = None


def url_encode(value: str) -> str:
    return quote(value or "", safe="")


def _attr(value: str) -> str:
    return escape(value, {"'": "&apos;"})


def settings_xml(params: Iterable[Tuple[str, str]]) -> str:
    entries = "".join(
        f"<param name='{_attr(name)}' value='{_attr(value)}'/>" for name, value in params
    )
    return f"{XML_PROLOG}<settings>{entries}</settings>"


def xml_response(params: Iterable[Tuple[str, str]]) -> ControlResponse:
    return ControlResponse(
        status_code=200,
        body=settings_xml(params),
        media_type=XML_MEDIA_TYPE,
        headers=dict(NO_CACHE),
    )


def bad_request() -> ControlResponse:
    return ControlResponse(status_code=400, body=BAD_REQUEST_HTML, media_type="text/html")


Handler = Callable[[Mapping[str, str]], ControlResponse]


class ControlSurface:
    """Routes app-local paths such as ``settings/get`` to handlers."""

    def __init__(
        self,
        params: ParameterStore,
        acs_client: ACSClient,
        status: Optional[Callable[[], StatusSnapshot]] = None,
        max_items: int = MAX_ITEMS,
    ) -> None:
        self.params = params
        self.acs_client = acs_client
        self.status = status or StatusSnapshot
        self.max_items = max_items
        self._routes: Dict[str, Tuple[Handler, bool]] = {}
        self.register("settings/get", self.settings_get)
        self.register("settings/testreporting", self.test_reporting, blocking=True)
        self.register("settings/set", self.settings_set)
        self.register("settings/status", self.settings_status)

    def register(self, path: str, handler: Handler, blocking: bool = False) -> None:
        self._routes[path.strip("/")] = (handler, blocking)

    def is_blocking(self, path: str) -> bool:
        route = self._routes.get(path.strip("/"))
        return bool(route and route[1])

    def handle(self, path: str, query: Optional[Mapping[str, str]] = None) -> ControlResponse:
        route = self._routes.get(path.strip("/"))
        if route is None:
            log.warning("Cannot locate handler for request %s", path)
            return bad_request()
        handler, _blocking = route
        return handler(query or {})

    def settings_get(self, query: Mapping[str, str]) -> ControlResponse:
        values = self.params.snapshot()
        return xml_response((name, url_encode(values.get(name, ""))) for name in VISIBLE_PARAMETERS)

    def settings_set(self, query: Mapping[str, str]) -> ControlResponse:
        unknown = [name for name in query if name not in PARAMETER_NAMES]
        if unknown:
            log.warning("Rejecting unknown parameters %s", ", ".join(unknown))
            return bad_request()
        for name, value in query.items():
            self.params.set(name, value)
        return self.settings_get({})

    def settings_status(self, query: Mapping[str, str]) -> ControlResponse:
        snapshot = self.status()
        topic = snapshot.topic.label() if snapshot.topic else ""
        entries = [("Subscription", snapshot.subscription), ("Topic", url_encode(topic))]
        entries.extend((item.name, url_encode(item.value)) for item in snapshot.items)
        return xml_response(entries)

    def test_reporting(self, query: Mapping[str, str]) -> ControlResponse:
        result = self.run_test_reporting()
        return xml_response((("Result", result.status), ("Error", result.detail)))

    def run_test_reporting(self) -> TestResult:
        """Send one synthetic event synchronously and report what ACS said."""
        values = self.params.snapshot()
        if values.get(ANALYTIC) == BLANK:
            return TestResult(RESULT_ERROR, "Save Analytic")
        if values.get(CATEGORY) == BLANK:
            return TestResult(RESULT_ERROR, "Save Category")
        if values.get(ITEMS) == BLANK:
            return TestResult(RESULT_ERROR, "Save Items")
        if values.get(ENABLED) != "yes":
            return TestResult(RESULT_ERROR, "Enable reporting")

        items = synthetic_items(values.get(ITEMS), self.max_items)
        if not items:
            return TestResult(RESULT_ITEM_ERROR, "No items")

        sent = self.acs_client.send(items, SendMode.SYNC)
        if sent.ok:
            return TestResult(RESULT_SUCCESS, "NA")
        log.info("Test reporting failed: %s", sent.error)
        return TestResult(RESULT_FAILURE, sent.error or "Unknown Error")
