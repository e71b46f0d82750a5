"""Address resolution engine.

This package turns free-form address fragments into a single best-guess
coordinate using LocationIQ as the source of truth:
- Fragment normalization and street cleaning
- Query planning (POI autocomplete, structured search, free-text fallbacks)
- Candidate scoring, deduplication and confidence mapping
- Result caching and rate-limit propagation
"""

from locator.core.geocoding.batch import BatchGeocoder, RowOutcome
from locator.core.geocoding.cache import (
    InMemoryResultCache,
    RedisResultCache,
    ResultCache,
)
from locator.core.geocoding.client import LocationIQClient
from locator.core.geocoding.errors import (
    ConfigurationError,
    EmptyAddressError,
    GeocodingError,
    NoResultsError,
    RateLimitedError,
)
from locator.core.geocoding.models import (
    AddressInput,
    Candidate,
    ResolutionResult,
    ResolutionStatus,
)
from locator.core.geocoding.resolver import AddressResolver

__all__ = [
    "AddressInput",
    "AddressResolver",
    "BatchGeocoder",
    "Candidate",
    "ConfigurationError",
    "EmptyAddressError",
    "GeocodingError",
    "InMemoryResultCache",
    "LocationIQClient",
    "NoResultsError",
    "RateLimitedError",
    "RedisResultCache",
    "ResolutionResult",
    "ResolutionStatus",
    "ResultCache",
    "RowOutcome",
]
