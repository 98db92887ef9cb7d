"""Logging setup and the DebugEnabled toggle."""

from __future__ import annotations

import logging

from .config import Settings

PACKAGE_LOGGER = "metadata_acs"

log = logging.getLogger(__name__)

_base_level = logging.INFO


def configure_logging(settings: Settings) -> None:
    global _base_level
    _base_level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(_base_level, int):
        _base_level = logging.INFO
    logging.basicConfig(level=_base_level, format=settings.log_format)


def set_debug(value: str) -> bool:
    """Apply a DebugEnabled value; ``"yes"`` turns verbose logging on."""
    enabled = value == "yes"
    logger = logging.getLogger(PACKAGE_LOGGER)
    if enabled:
        logger.setLevel(logging.DEBUG)
        log.debug("Enabled debug logging")
    else:
        log.debug("Disabling debug logging")
        logger.setLevel(_base_level)
    return enabled
