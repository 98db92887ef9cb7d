import re
from datetime import datetime, timedelta, timezone

from metadata_acs.envelope import EnvelopeBuilder, format_occurrence_time
from metadata_acs.models import ItemPair

from conftest import FIXED_TIME


def test_build_envelope():
    builder = EnvelopeBuilder(clock=lambda: FIXED_TIME)
    document = builder.build("S", [ItemPair("Plate", "ABC"), ItemPair("Country", "SE")])

    request = document["addExternalDataRequest"]
    assert list(document) == ["addExternalDataRequest"]
    assert request["occurrenceTime"] == "2024-01-02 03:04:05"
    assert request["source"] == "S"
    assert request["externalDataType"] == "PointOfSales"
    assert list(request["data"].items()) == [("Plate", "ABC"), ("Country", "SE")]


def test_empty_item_list_gives_empty_data():
    document = EnvelopeBuilder(clock=lambda: FIXED_TIME).build("S", [])
    assert document["addExternalDataRequest"]["data"] == {}


def test_occurrence_time_is_converted_to_utc():
    local = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
    assert format_occurrence_time(local) == "2024-01-02 03:04:05"


def test_default_clock_format():
    stamp = EnvelopeBuilder().build("S", [])["addExternalDataRequest"]["occurrenceTime"]
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", stamp)
