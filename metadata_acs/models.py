"""Plain data types shared by the pipeline components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

TOPIC_NAMESPACE = "tnsaxis"
TOPIC_ROOT = "CameraApplicationPlatform"
UNCATEGORIZED = "Uncategorized"
# Value a text parameter holds until the user saves something.
BLANK = " "

TopicFilter = List[Tuple[str, str, str]]


@dataclass(frozen=True)
class ItemPair:
    name: str
    value: str


ItemList = List[ItemPair]


@dataclass(frozen=True)
class Topic:
    """Two-level analytic topic, e.g. ("FenceGuard", "Camera1Profile1")."""

    analytic: str
    category: str = ""

    @property
    def is_configured(self) -> bool:
        return self.analytic != BLANK

    @property
    def binds_category(self) -> bool:
        return self.category not in ("", UNCATEGORIZED)

    def to_filter(self) -> TopicFilter:
        """Return the (key, namespace, value) triples used to subscribe."""
        topic_filter: TopicFilter = [
            ("topic0", TOPIC_NAMESPACE, TOPIC_ROOT),
            ("topic1", TOPIC_NAMESPACE, self.analytic),
        ]
        if self.binds_category:
            topic_filter.append(("topic2", TOPIC_NAMESPACE, self.category))
        return topic_filter

    def label(self) -> str:
        return f"{self.analytic}/{self.category}"


@dataclass(frozen=True)
class SendResult:
    ok: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class TestResult:
    """Outcome of the test reporting path."""

    status: str
    detail: str


@dataclass
class ControlResponse:
    """HTTP answer produced by a control surface handler."""

    status_code: int
    body: str
    media_type: str = "text/xml"
    headers: dict = field(default_factory=dict)
