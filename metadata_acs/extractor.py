"""Pull the configured items out of an event record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .errors import MissingFieldError
from .event_bus import EventRecord
from .models import BLANK, ItemList, ItemPair

log = logging.getLogger(__name__)

MAX_ITEMS = 20
SYNTHETIC_VALUE = "TEST"


@dataclass(frozen=True)
class ContentFilter:
    key: str
    value: str

    def matches(self, name: str, value: str) -> bool:
        return name == self.key and value == self.value


def parse_items(items: Optional[str], max_items: int = MAX_ITEMS) -> List[str]:
    """Split ``plate;country;`` into names, stopping at the first empty entry."""
    names: List[str] = []
    for name in (items or "").split(";"):
        if not name or len(names) >= max_items:
            break
        names.append(name)
    return names


def parse_content_filter(raw: Optional[str]) -> Optional[ContentFilter]:
    if raw is None or raw == BLANK:
        return None
    parts = raw.split("=")
    if len(parts) != 2:
        log.debug("Ignoring malformed content filter %r", raw)
        return None
    return ContentFilter(key=parts[0], value=parts[1])


def lookup_value(record: EventRecord, name: str) -> Optional[str]:
    """Return the string form of ``name``, trying string, bool, int, double."""
    text = record.get_string(name)
    if text is not None:
        return text
    flag = record.get_boolean(name)
    if flag is not None:
        return "yes" if flag else "no"
    number = record.get_integer(name)
    if number is not None:
        return "%d" % number
    real = record.get_double(name)
    if real is not None:
        return "%f" % real
    return None


def title_case(name: str) -> str:
    return name[:1].upper() + name[1:]


def extract_items(
    record: EventRecord,
    items: Optional[str],
    content_filter: Optional[str] = None,
    max_items: int = MAX_ITEMS,
) -> ItemList:
    """Build the item list for one event.

    Raises :class:`MissingFieldError` when any configured item is absent. Returns
    an empty list when a content filter is active and nothing matched it.
    """
    active_filter = parse_content_filter(content_filter)
    matched = active_filter is None
    result: ItemList = []
    for name in parse_items(items, max_items):
        value = lookup_value(record, name)
        if value is None:
            raise MissingFieldError(name)
        if active_filter is not None and active_filter.matches(name, value):
            matched = True
        result.append(ItemPair(title_case(name), value))

    if not matched:
        log.debug("Content filter %s=%s not matched", active_filter.key, active_filter.value)
        return []
    return result


def synthetic_items(items: Optional[str], max_items: int = MAX_ITEMS) -> ItemList:
    """Item list used by test reporting: every configured item set to TEST."""
    return [ItemPair(title_case(name), SYNTHETIC_VALUE) for name in parse_items(items, max_items)]
