"""Prometheus metrics shared by the HTTP layer and the geocoding engine."""

from prometheus_client import Counter

REQUESTS_TOTAL = Counter(
    "locator_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path"],
)

RESPONSES_TOTAL = Counter(
    "locator_http_responses_total",
    "Total number of HTTP responses",
    labelnames=["status_code"],
)

PROVIDER_QUERIES_TOTAL = Counter(
    "locator_geocode_provider_queries_total",
    "Queries issued to the geocoding provider",
    labelnames=["strategy", "status"],
)

CACHE_LOOKUPS_TOTAL = Counter(
    "locator_geocode_cache_total",
    "Resolution cache lookups",
    labelnames=["result"],
)

RESOLUTIONS_TOTAL = Counter(
    "locator_geocode_resolutions_total",
    "Completed address resolutions by outcome",
    labelnames=["outcome"],
)
