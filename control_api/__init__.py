"""HTTP front for the configuration UI."""

from .main import create_app

__all__ = ["create_app"]
