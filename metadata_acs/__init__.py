"""Forward analytic events from the camera event bus to an ACS server."""

from .config import Settings, get_settings
from .runner import MetadataACSService, create_service

__all__ = [
    "Settings",
    "get_settings",
    "MetadataACSService",
    "create_service",
]
