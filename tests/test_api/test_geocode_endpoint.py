"""Tests for the geocode endpoint."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from locator.api.v1.geocode import GeocodeRequest, get_resolver
from locator.core.events import AppStateDict
from locator.core.geocoding.resolver import AddressResolver
from tests.fixtures.geocoding import provider_item

GEOCODE_URL = "/api/v1/geocode"

MG_ROAD = provider_item(
    17.4,
    78.4,
    "MG Road, Hyderabad, Telangana, 500032, India",
    place_id="101",
    state="Telangana",
    city="Hyderabad",
    road="MG Road",
    postcode="500032",
)

PAYLOAD = {
    "street": "12 MG Road",
    "city": "Hyderabad",
    "state": "Telengana",
    "postal": "500032",
}


@pytest.mark.asyncio
async def test_successful_resolution(api_client, fake_provider):
    """A strong structured match resolves with high confidence."""
    fake_provider.reply("search/structured", [MG_ROAD])

    response = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert response.status_code == 200
    assert response.json() == {
        "latitude": 17.4,
        "longitude": 78.4,
        "placeName": "MG Road, Hyderabad, Telangana, 500032, India",
        "confidence": 0.9,
        "status": "Success",
    }
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_vm_name_alias_and_numeric_postal(api_client, fake_provider):
    """Spreadsheet-style payloads with camelCase names and numeric zips are accepted."""
    fake_provider.reply("search/structured", [MG_ROAD])

    response = await api_client.post(
        GEOCODE_URL, json={**PAYLOAD, "postal": 500032, "vmName": "VM-HYD-01"}
    )

    assert response.status_code == 200
    structured = fake_provider.calls("search/structured")[0]
    assert structured.url.params["postalcode"] == "500032"
    # machine labels never reach autocomplete
    assert fake_provider.calls("autocomplete") == []


@pytest.mark.asyncio
async def test_float_postal_matches_text_postal(api_client, fake_provider):
    """Whole-number float zips from spreadsheets resolve like their text form."""
    fake_provider.reply("search/structured", [MG_ROAD])

    first = await api_client.post(GEOCODE_URL, json={**PAYLOAD, "postal": 500032.0})
    calls = len(fake_provider.requests)
    second = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert first.status_code == 200
    assert first.json()["confidence"] == 0.9
    structured = fake_provider.calls("search/structured")[0]
    assert structured.url.params["postalcode"] == "500032"
    assert second.json() == first.json()
    assert len(fake_provider.requests) == calls


@pytest.mark.parametrize(
    "value,expected",
    [(500032, "500032"), (500032.0, "500032"), (12.5, "12.5"), (True, None), ("500032", "500032")],
)
def test_request_coerces_spreadsheet_scalars(value, expected):
    """Numbers become text; booleans are dropped."""
    assert GeocodeRequest(postal=value).postal == expected


@pytest.mark.asyncio
async def test_rate_limited(api_client, fake_provider):
    """Provider throttling surfaces as 429 with the provider's Retry-After."""
    fake_provider.reply(
        "search/structured", {"error": "Rate Limited"}, status=429, headers={"Retry-After": "12"}
    )

    response = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert response.status_code == 429
    assert response.json() == {"error": "Too many requests"}
    assert response.headers["Retry-After"] == "12"


@pytest.mark.asyncio
async def test_hintless_primary_throttle_continues(api_client, fake_provider):
    """A primary 429 without Retry-After falls through to the fallbacks."""
    fake_provider.reply("search/structured", [], status=429)
    fake_provider.reply("search", [MG_ROAD])

    response = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert response.status_code == 200
    assert response.json()["placeName"] == MG_ROAD["display_name"]


@pytest.mark.asyncio
async def test_rate_limited_without_hint(api_client, fake_provider):
    """A throttled fallback aborts; no Retry-After header is invented."""
    fake_provider.reply("search/structured", [], status=429)
    fake_provider.reply("search", [], status=429)

    response = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert response.status_code == 429
    assert "Retry-After" not in response.headers
    assert len(fake_provider.calls("search")) == 1


@pytest.mark.asyncio
async def test_no_results(api_client):
    """Nothing found anywhere is a 404 with a Failed status."""
    response = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert response.status_code == 404
    assert response.json() == {"error": "No results found", "status": "Failed"}


@pytest.mark.asyncio
async def test_empty_payload(api_client, fake_provider):
    """Blank fragments are rejected before any provider call."""
    response = await api_client.post(GEOCODE_URL, json={"city": "  "})

    assert response.status_code == 422
    assert "error" in response.json()
    assert fake_provider.requests == []


@pytest.mark.asyncio
async def test_malformed_body(api_client):
    """A body that is not an object fails request validation."""
    response = await api_client.post(GEOCODE_URL, json=["not", "an", "object"])

    assert response.status_code == 422
    assert response.json()["error"] == "Invalid request"


@pytest.mark.asyncio
async def test_missing_credential(test_app: FastAPI, api_client):
    """A resolver without a provider client answers 500."""
    test_app.state.locator.resolver = AddressResolver(client=None)

    response = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert response.status_code == 500
    assert response.json() == {"error": "Server configuration error"}


@pytest.mark.asyncio
async def test_state_not_ready(test_app: FastAPI, api_client):
    """Requests before startup completes are a configuration error."""
    test_app.state.locator = AppStateDict()

    response = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert response.status_code == 500
    assert response.json() == {"error": "Server configuration error"}


@pytest.mark.asyncio
async def test_unexpected_error(test_app: FastAPI):
    """Unhandled exceptions become a JSON 500 carrying the message."""

    class BrokenResolver:
        async def resolve(self, address):
            raise RuntimeError("resolver exploded")

    test_app.dependency_overrides[get_resolver] = lambda: BrokenResolver()
    async with AsyncClient(
        transport=ASGITransport(app=test_app), base_url="http://test"
    ) as client:
        response = await client.post(
            GEOCODE_URL, json=PAYLOAD, headers={"X-Request-ID": "test-broken"}
        )

    assert response.status_code == 500
    assert response.json() == {"error": "resolver exploded"}
    assert response.headers["X-Request-ID"] == "test-broken"


@pytest.mark.asyncio
async def test_repeat_request_is_cached(api_client, fake_provider):
    """The second identical request never reaches the provider."""
    fake_provider.reply("search/structured", [MG_ROAD])

    first = await api_client.post(GEOCODE_URL, json=PAYLOAD)
    calls = len(fake_provider.requests)
    second = await api_client.post(GEOCODE_URL, json=PAYLOAD)

    assert first.json() == second.json()
    assert len(fake_provider.requests) == calls
