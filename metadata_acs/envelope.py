"""Helpers to build the ACS external data document."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional

from .models import ItemPair

EXTERNAL_DATA_TYPE = "PointOfSales"
OCCURRENCE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def format_occurrence_time(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(OCCURRENCE_TIME_FORMAT)


class EnvelopeBuilder:
    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.clock = clock or utc_now

    def build(self, source_id: str, items: Iterable[ItemPair]) -> Dict[str, object]:
        data: Dict[str, str] = {}
        for item in items:
            data[item.name] = item.value
        return {
            "addExternalDataRequest": {
                "occurrenceTime": format_occurrence_time(self.clock()),
                "source": source_id,
                "externalDataType": EXTERNAL_DATA_TYPE,
                "data": data,
            }
        }
