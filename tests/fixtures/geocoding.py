"""Geocoding test fixtures: a scripted LocationIQ stand-in and resolver builders."""

from collections.abc import AsyncGenerator, Callable
from typing import Any, Optional

import httpx
import pytest
import pytest_asyncio

from locator.core.geocoding.cache import InMemoryResultCache
from locator.core.geocoding.client import LocationIQClient
from locator.core.geocoding.resolver import AddressResolver

TEST_BASE_URL = "https://locationiq.test/v1"
TEST_API_KEY = "test-key"

Reply = tuple[int, Any, dict[str, str]]


def provider_item(
    lat: float,
    lon: float,
    display_name: str,
    place_id: Optional[str] = None,
    category: Optional[str] = None,
    subtype: Optional[str] = None,
    **address: str,
) -> dict[str, Any]:
    """Build one provider record the way LocationIQ returns it (coordinates as strings)."""
    item: dict[str, Any] = {
        "lat": str(lat),
        "lon": str(lon),
        "display_name": display_name,
        "address": address,
    }
    if place_id is not None:
        item["place_id"] = place_id
    if category is not None:
        item["class"] = category
    if subtype is not None:
        item["type"] = subtype
    return item


class FakeLocationIQ:
    """Scripted provider keyed by endpoint ("autocomplete", "search/structured", "search").

    Replies queued for an endpoint are served in order; the last one repeats.
    Endpoints without replies answer with an empty list.
    """

    def __init__(self) -> None:
        self.replies: dict[str, list[Reply]] = {}
        self.requests: list[httpx.Request] = []

    def reply(
        self,
        endpoint: str,
        body: Any = None,
        status: int = 200,
        headers: Optional[dict[str, str]] = None,
    ) -> "FakeLocationIQ":
        self.replies.setdefault(endpoint, []).append(
            (status, [] if body is None else body, headers or {})
        )
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.split("/v1/", 1)[1]
        queue = self.replies.get(endpoint)
        if not queue:
            return httpx.Response(200, json=[])
        status, body, headers = queue.pop(0) if len(queue) > 1 else queue[0]
        return httpx.Response(status, json=body, headers=headers)

    def calls(self, endpoint: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.url.path.split("/v1/", 1)[1] == endpoint
        ]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_provider() -> FakeLocationIQ:
    return FakeLocationIQ()


@pytest_asyncio.fixture
async def make_resolver() -> AsyncGenerator[Callable[..., AddressResolver], None]:
    """Factory building resolvers wired to a transport; closes their HTTP clients."""
    http_clients: list[httpx.AsyncClient] = []

    def factory(
        transport: httpx.AsyncBaseTransport, **kwargs: Any
    ) -> AddressResolver:
        http_client = httpx.AsyncClient(transport=transport)
        http_clients.append(http_client)
        client = LocationIQClient(
            api_key=TEST_API_KEY, base_url=TEST_BASE_URL, http_client=http_client
        )
        kwargs.setdefault("cache", InMemoryResultCache())
        return AddressResolver(client=client, **kwargs)

    yield factory

    for http_client in http_clients:
        await http_client.aclose()
