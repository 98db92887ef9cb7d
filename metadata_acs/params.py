"""In-memory parameter store with per-name change notification."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, Dict, List, Optional

from .config import Settings

log = logging.getLogger(__name__)

SERVER_ADDRESS = "ServerAddress"
SOURCE_ID = "SourceID"
USERNAME = "Username"
PASSWORD = "Password"
ENABLED = "Enabled"
ANALYTIC = "Analytic"
CATEGORY = "Category"
ITEMS = "Items"
CONTENT_FILTER = "ContentFilter"
DEBUG_ENABLED = "DebugEnabled"

PARAMETER_NAMES = (
    SERVER_ADDRESS,
    SOURCE_ID,
    USERNAME,
    PASSWORD,
    ENABLED,
    ANALYTIC,
    CATEGORY,
    ITEMS,
    CONTENT_FILTER,
    DEBUG_ENABLED,
)

# Everything except ContentFilter is visible to the settings page.
VISIBLE_PARAMETERS = tuple(name for name in PARAMETER_NAMES if name != CONTENT_FILTER)

ChangeCallback = Callable[[str], None]


class ParameterStore:
    """Mapping of parameter name to string value.

    Callbacks registered with :meth:`on_change` fire only when a write actually
    changes the stored value. Writes are expected to happen on the dispatcher
    loop; readers on other threads should use :meth:`snapshot`.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = {name: "" for name in PARAMETER_NAMES}
        if initial:
            for name, value in initial.items():
                self._values[name] = "" if value is None else str(value)
        self._callbacks: DefaultDict[str, List[ChangeCallback]] = defaultdict(list)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ParameterStore":
        return cls(
            {
                SERVER_ADDRESS: settings.param_server_address,
                SOURCE_ID: settings.param_source_id,
                USERNAME: settings.param_username,
                PASSWORD: settings.param_password,
                ENABLED: settings.param_enabled,
                ANALYTIC: settings.param_analytic,
                CATEGORY: settings.param_category,
                ITEMS: settings.param_items,
                CONTENT_FILTER: settings.param_content_filter,
                DEBUG_ENABLED: settings.param_debug_enabled,
            }
        )

    def get(self, name: str) -> str:
        return self._values.get(name, "")

    def set(self, name: str, value: Optional[str]) -> bool:
        """Store ``value``; return True and notify listeners if it changed."""
        new_value = "" if value is None else str(value)
        if self._values.get(name, "") == new_value:
            return False
        self._values[name] = new_value
        log.debug("Parameter %s changed", name)
        for callback in list(self._callbacks.get(name, ())):
            callback(new_value)
        return True

    def on_change(self, name: str, callback: ChangeCallback) -> None:
        self._callbacks[name].append(callback)

    def clear_callbacks(self) -> None:
        self._callbacks.clear()

    def snapshot(self) -> Dict[str, str]:
        """Return a copy of every stored value."""
        return dict(self._values)
