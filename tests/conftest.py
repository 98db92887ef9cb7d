from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from metadata_acs.config import Settings

FIXED_TIME = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code: int, headers: Optional[Dict[str, str]] = None) -> None:
        self.status_code = status_code
        self.headers = headers or {}
        self.text = ""
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Stands in for requests.Session and records every POST."""

    def __init__(self, responses: Optional[List[FakeResponse]] = None, error: Optional[Exception] = None):
        self.responses = list(responses or [FakeResponse(200)])
        self.error = error
        self.calls: List[dict] = []
        self.posted = threading.Event()
        self.closed = False

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        self.posted.set()
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def close(self) -> None:
        self.closed = True


class RecordingOverlay:
    def __init__(self) -> None:
        self.updates: List[tuple] = []
        self.closed = False

    def set_data(self, items, duration_ms, analytic, category) -> bool:
        self.updates.append((list(items), duration_ms, analytic, category))
        return True

    def close(self) -> None:
        self.closed = True


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()
