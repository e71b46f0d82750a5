"""HTTP client for the LocationIQ geocoding API."""

from types import TracebackType
from typing import Any, Optional, Type

import httpx

from locator.core.geocoding.models import Candidate, ProviderResponse
from locator.core.geocoding.planner import QueryStrategy
from locator.core.logging import get_logger
from locator.core.metrics import PROVIDER_QUERIES_TOTAL

logger = get_logger(__name__)

TRANSPORT_FAILURE_STATUS = 500


class LocationIQClient:
    """Executes single provider queries and normalizes every outcome.

    Nothing here raises for a failed query: HTTP errors keep their status
    code and ``Retry-After`` header, transport errors and undecodable bodies
    become status 500, and a body that is not a JSON list yields no
    candidates.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://us1.locationiq.com/v1",
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def __aenter__(self) -> "LocationIQClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    def url_for(self, strategy: QueryStrategy) -> str:
        return f"{self.base_url}/{strategy.endpoint}"

    async def fetch(self, strategy: QueryStrategy) -> ProviderResponse:
        """Run one strategy against the provider.

        Args:
            strategy: Query descriptor from the planner

        Returns:
            ProviderResponse with decoded candidates, status and retry hint
        """
        params: dict[str, Any] = {"key": self.api_key, **strategy.params}
        try:
            response = await self._http.get(self.url_for(strategy), params=params)
        except httpx.HTTPError as e:
            logger.error(
                "geocode_transport_error",
                strategy=strategy.kind.value,
                error=f"{type(e).__name__}: {e}",
            )
            PROVIDER_QUERIES_TOTAL.labels(
                strategy=strategy.kind.value, status=str(TRANSPORT_FAILURE_STATUS)
            ).inc()
            return ProviderResponse(status=TRANSPORT_FAILURE_STATUS)

        PROVIDER_QUERIES_TOTAL.labels(
            strategy=strategy.kind.value, status=str(response.status_code)
        ).inc()

        if not response.is_success:
            logger.warning(
                "geocode_provider_error",
                strategy=strategy.kind.value,
                status=response.status_code,
            )
            return ProviderResponse(
                status=response.status_code,
                retry_after=response.headers.get("Retry-After"),
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                "geocode_transport_error",
                strategy=strategy.kind.value,
                error=f"Malformed response body: {e}",
            )
            return ProviderResponse(status=TRANSPORT_FAILURE_STATUS)

        return ProviderResponse(candidates=self.decode(data), status=response.status_code)

    @staticmethod
    def decode(data: Any) -> list[Candidate]:
        """Decode a provider body into candidates, skipping unusable records."""
        if not isinstance(data, list):
            return []
        candidates = (Candidate.from_provider(item) for item in data)
        return [candidate for candidate in candidates if candidate is not None]
