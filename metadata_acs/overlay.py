"""Overlay sinks fed with the items of each forwarded event."""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Protocol

from .models import ItemList

log = logging.getLogger(__name__)


class OverlaySink(Protocol):
    def set_data(self, items: ItemList, duration_ms: int, analytic: str, category: str) -> bool:
        ...

    def close(self) -> None:
        ...


def render_overlay_text(items: ItemList, analytic: str, category: str) -> str:
    lines: List[str] = [f"{analytic}/{category}"]
    lines.extend(f"{item.name}: {item.value}" for item in items)
    return "\n".join(lines)


class LogOverlay:
    """Overlay that renders to text and logs it instead of drawing on video."""

    def __init__(self) -> None:
        self.text: Optional[str] = None
        self._expires_at = 0.0

    def set_data(self, items: ItemList, duration_ms: int, analytic: str, category: str) -> bool:
        self.text = render_overlay_text(items, analytic, category)
        self._expires_at = time.monotonic() + duration_ms / 1000.0
        log.info("Overlay update (%d ms):\n%s", duration_ms, self.text)
        return True

    @property
    def visible(self) -> bool:
        return self.text is not None and time.monotonic() < self._expires_at

    def close(self) -> None:
        self.text = None
        self._expires_at = 0.0
