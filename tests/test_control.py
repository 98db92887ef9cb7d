from concurrent.futures import ThreadPoolExecutor

import pytest

from metadata_acs.acs_client import ACSClient
from metadata_acs.control import ControlSurface, StatusSnapshot
from metadata_acs.envelope import EnvelopeBuilder
from metadata_acs.models import ItemPair, Topic
from metadata_acs.params import ParameterStore

from conftest import FIXED_TIME, FakeResponse, FakeSession, make_settings

S1_PARAMS = {
    "ServerAddress": "10.0.0.1",
    "SourceID": "S",
    "Username": "u",
    "Password": "p",
    "Enabled": "yes",
    "Analytic": "LicensePlate",
    "Category": "Uncategorized",
    "Items": "plate;count;",
    "ContentFilter": " ",
    "DebugEnabled": "no",
}


def _surface(session=None, status=None, **overrides):
    params = ParameterStore({**S1_PARAMS, **overrides})
    client = ACSClient(
        make_settings(),
        session=session or FakeSession(),
        envelope_builder=EnvelopeBuilder(clock=lambda: FIXED_TIME),
        executor=ThreadPoolExecutor(max_workers=1),
    )
    client.configure(
        host=params.get("ServerAddress"),
        source_id=params.get("SourceID"),
        username=params.get("Username"),
        password=params.get("Password"),
        enabled=params.get("Enabled"),
    )
    return ControlSurface(params, client, status=status)


def test_settings_get_lists_visible_parameters_url_encoded():
    surface = _surface(Items="plate;country;", Password="p@ss word")
    response = surface.handle("settings/get")

    assert response.status_code == 200
    assert response.media_type == "text/xml; charset=utf-8"
    assert response.headers["Cache-Control"] == "no-cache"
    assert response.body.startswith('<?xml version="1.0"?>')
    assert "<param name='Items' value='plate%3Bcountry%3B'/>" in response.body
    assert "<param name='Password' value='p%40ss%20word'/>" in response.body
    assert "<param name='Analytic' value='LicensePlate'/>" in response.body
    assert "ContentFilter" not in response.body
    assert response.body.count("<param ") == 9


def test_unknown_path_is_bad_request():
    response = _surface().handle("settings/nothing")
    assert response.status_code == 400
    assert response.media_type == "text/html"
    assert "400 Bad Request" in response.body


def test_test_reporting_success():
    session = FakeSession([FakeResponse(200)])
    response = _surface(session).handle("settings/testreporting")

    assert "<param name='Result' value='Success'/>" in response.body
    assert "<param name='Error' value='NA'/>" in response.body
    data = session.calls[0]["json"]["addExternalDataRequest"]["data"]
    assert data == {"Plate": "TEST", "Count": "TEST"}


def test_test_reporting_unauthorized():
    response = _surface(FakeSession([FakeResponse(401)])).handle("settings/testreporting")
    assert "<param name='Result' value='Failure'/>" in response.body
    assert "<param name='Error' value='Unauthorized'/>" in response.body


@pytest.mark.parametrize(
    "overrides, error",
    [
        ({"Analytic": " ", "Category": " "}, "Save Analytic"),
        ({"Category": " "}, "Save Category"),
        ({"Items": " "}, "Save Items"),
        ({"Enabled": "no"}, "Enable reporting"),
    ],
)
def test_test_reporting_preconditions(overrides, error):
    session = FakeSession()
    result = _surface(session, **overrides).run_test_reporting()
    assert (result.status, result.detail) == ("Error", error)
    assert session.calls == []


def test_test_reporting_missing_credentials_is_a_failure():
    session = FakeSession()
    result = _surface(session, Username="").run_test_reporting()
    assert (result.status, result.detail) == ("Failure", "Missing config")
    assert session.calls == []


def test_test_reporting_without_items():
    result = _surface(Items=";").run_test_reporting()
    assert result.status == "Item Error"


def test_test_reporting_is_blocking_route():
    surface = _surface()
    assert surface.is_blocking("settings/testreporting") is True
    assert surface.is_blocking("settings/get") is False


def test_settings_set_writes_parameters():
    surface = _surface()
    changes = []
    surface.params.on_change("Analytic", changes.append)

    response = surface.handle("settings/set", {"Analytic": "FenceGuard", "ContentFilter": "plate=ABC"})

    assert response.status_code == 200
    assert changes == ["FenceGuard"]
    assert surface.params.get("ContentFilter") == "plate=ABC"
    assert "<param name='Analytic' value='FenceGuard'/>" in response.body


def test_settings_set_rejects_unknown_names():
    surface = _surface()
    response = surface.handle("settings/set", {"Analytic": "FenceGuard", "Bogus": "1"})
    assert response.status_code == 400
    assert surface.params.get("Analytic") == "LicensePlate"


def test_settings_status_reports_current_items():
    snapshot = StatusSnapshot(
        items=[ItemPair("Plate", "A B")],
        subscription="Subscribed",
        topic=Topic("LicensePlate", "Uncategorized"),
    )
    response = _surface(status=lambda: snapshot).handle("settings/status")
    assert "<param name='Subscription' value='Subscribed'/>" in response.body
    assert "<param name='Topic' value='LicensePlate%2FUncategorized'/>" in response.body
    assert "<param name='Plate' value='A%20B'/>" in response.body
