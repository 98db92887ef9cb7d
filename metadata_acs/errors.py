"""Exceptions raised inside the forwarding pipeline."""

from __future__ import annotations


class MetadataACSError(Exception):
    """Base class for pipeline errors."""


class MissingFieldError(MetadataACSError):
    """An event did not carry one of the configured items."""

    def __init__(self, name: str) -> None:
        super().__init__(f"missing field {name!r}")
        self.name = name


class SubscribeError(MetadataACSError):
    """The event bus refused a subscription."""


class EventBusClosedError(SubscribeError):
    """Subscription attempted on a bus that has been closed."""
