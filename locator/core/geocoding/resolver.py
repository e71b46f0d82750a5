"""Address resolution: plan queries, fetch, score, pick a winner, cache."""

import asyncio
from collections.abc import Iterable, Sequence
from typing import Optional

import httpx

from locator.core.config import Settings
from locator.core.geocoding.cache import InMemoryResultCache, ResultCache
from locator.core.geocoding.client import LocationIQClient
from locator.core.geocoding.errors import (
    ConfigurationError,
    EmptyAddressError,
    NoResultsError,
    RateLimitedError,
)
from locator.core.geocoding.models import (
    AddressInput,
    Candidate,
    ProviderResponse,
    ResolutionResult,
    ResolutionStatus,
    ScoredCandidate,
)
from locator.core.geocoding.normalizer import normalize
from locator.core.geocoding.planner import QueryPlanner, QueryStrategy
from locator.core.geocoding.scorer import score_candidate
from locator.core.geocoding.street import clean_street
from locator.core.logging import get_logger
from locator.core.metrics import CACHE_LOOKUPS_TOTAL, RESOLUTIONS_TOTAL

logger = get_logger(__name__)

# Below this primary score the free-text fallbacks run. Roughly a
# state+city+street or state+city+postal+name match.
GOOD_ENOUGH_SCORE = 8

# (minimum score, confidence), checked top-down
CONFIDENCE_STEPS: tuple[tuple[int, float], ...] = (
    (5, 0.9),
    (3, 0.8),
    (0, 0.7),
)
FLOOR_CONFIDENCE = 0.4
SUCCESS_CONFIDENCE = 0.75


def confidence_for_score(score: int) -> float:
    """Map a winning score onto the coarse confidence scale."""
    for minimum, confidence in CONFIDENCE_STEPS:
        if score >= minimum:
            return confidence
    return FLOOR_CONFIDENCE


def status_for_confidence(confidence: float) -> ResolutionStatus:
    if confidence >= SUCCESS_CONFIDENCE:
        return ResolutionStatus.SUCCESS
    return ResolutionStatus.LOW_CONFIDENCE


def deduplicate(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Drop records whose provider id or exact coordinates were already seen.

    First occurrence wins and input order is kept.
    """
    seen: set[str] = set()
    unique: list[Candidate] = []
    for candidate in candidates:
        keys = candidate.dedup_keys
        if seen.intersection(keys):
            continue
        seen.update(keys)
        unique.append(candidate)
    return unique


def select_best(
    candidates: Sequence[Candidate], address: AddressInput
) -> Optional[ScoredCandidate]:
    """Score every candidate and return the highest; ties keep the earliest."""
    best: Optional[ScoredCandidate] = None
    for candidate in candidates:
        score = score_candidate(candidate, address)
        if best is None or score > best.score:
            best = ScoredCandidate(candidate=candidate, score=score)
    return best


def cache_key(address: AddressInput, street: str) -> str:
    """Key built from the normalized name, cleaned street, city, state and postal code."""
    return "|".join(
        normalize(part)
        for part in (
            address.name,
            street,
            address.city,
            address.state,
            address.postal_code,
        )
    )


class AddressResolver:
    """Resolves address fragments to a single best-guess coordinate.

    Primary strategies run concurrently and are all awaited. If they return
    nothing, or nothing scoring at least ``good_enough_score``, the free-text
    fallbacks run one at a time and stop at the first that returns any
    candidate. A rate-limited primary response carrying a retry hint, or any
    rate-limited fallback response, aborts the resolution immediately.
    """

    def __init__(
        self,
        client: Optional[LocationIQClient],
        cache: Optional[ResultCache] = None,
        planner: Optional[QueryPlanner] = None,
        good_enough_score: int = GOOD_ENOUGH_SCORE,
    ) -> None:
        self.client = client
        self.cache: ResultCache = cache if cache is not None else InMemoryResultCache()
        self.planner = planner or QueryPlanner()
        self.good_enough_score = good_enough_score

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cache: Optional[ResultCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "AddressResolver":
        """Build a resolver from application settings.

        A missing API key yields a resolver without a client; every cache miss
        then fails with ConfigurationError.
        """
        client = None
        if settings.LOCATIONIQ_API_KEY:
            client = LocationIQClient(
                api_key=settings.LOCATIONIQ_API_KEY,
                base_url=settings.LOCATIONIQ_BASE_URL,
                http_client=http_client,
                timeout=settings.GEOCODING_TIMEOUT,
            )
        if cache is None:
            cache = InMemoryResultCache(
                max_size=settings.GEOCODING_CACHE_SIZE,
                ttl=settings.GEOCODING_CACHE_TTL,
            )
        planner = QueryPlanner(
            country_code=settings.GEOCODING_COUNTRY_CODE,
            country_name=settings.GEOCODING_COUNTRY_NAME,
            limit=settings.GEOCODING_RESULT_LIMIT,
        )
        return cls(
            client=client,
            cache=cache,
            planner=planner,
            good_enough_score=settings.GEOCODING_GOOD_ENOUGH_SCORE,
        )

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    async def _query(self, strategy: QueryStrategy) -> ProviderResponse:
        if self.client is None:
            raise ConfigurationError()
        logger.info(
            "geocode_strategy",
            strategy=strategy.kind.value,
            query=strategy.description,
        )
        return await self.client.fetch(strategy)

    @staticmethod
    def _check_rate_limit(
        responses: Iterable[ProviderResponse], require_hint: bool = False
    ) -> None:
        for response in responses:
            if not response.rate_limited:
                continue
            if require_hint and not response.retry_after:
                logger.warning("geocode_rate_limited_without_hint")
                continue
            logger.warning("geocode_rate_limited", retry_after=response.retry_after)
            RESOLUTIONS_TOTAL.labels(outcome="rate_limited").inc()
            raise RateLimitedError(response.retry_after)

    async def _collect(self, address: AddressInput, street: str) -> list[Candidate]:
        primary = self.planner.primary(address, street)
        responses = await asyncio.gather(*(self._query(s) for s in primary))
        # A throttled primary query without a retry hint counts as empty
        self._check_rate_limit(responses, require_hint=True)

        candidates = [c for response in responses for c in response.candidates]
        best_score = max(
            (score_candidate(c, address) for c in candidates), default=None
        )
        if best_score is not None and best_score >= self.good_enough_score:
            return candidates

        logger.info("geocode_fallback", best_score=best_score)
        for strategy in self.planner.fallbacks(address, street):
            response = await self._query(strategy)
            self._check_rate_limit([response])
            if response.candidates:
                candidates.extend(response.candidates)
                break
        return candidates

    async def resolve(self, address: AddressInput) -> ResolutionResult:
        """Resolve one address.

        Args:
            address: Fragments to resolve

        Returns:
            The winning coordinate with its confidence and status

        Raises:
            EmptyAddressError: Every fragment is blank
            ConfigurationError: No provider credential and no cached result
            RateLimitedError: The provider throttled any query
            NoResultsError: No strategy returned a candidate
        """
        if address.is_empty:
            raise EmptyAddressError()

        street = clean_street(
            address.street, address.city, address.state, address.postal_code
        )
        key = cache_key(address, street)

        cached = await self.cache.get(key)
        if cached is not None:
            logger.info("geocode_cache_hit", cache_key=key)
            CACHE_LOOKUPS_TOTAL.labels(result="hit").inc()
            return cached
        CACHE_LOOKUPS_TOTAL.labels(result="miss").inc()

        if self.client is None:
            raise ConfigurationError()

        candidates = deduplicate(await self._collect(address, street))
        winner = select_best(candidates, address)
        if winner is None:
            logger.warning("geocode_no_results", cache_key=key)
            RESOLUTIONS_TOTAL.labels(outcome="no_results").inc()
            raise NoResultsError()

        confidence = confidence_for_score(winner.score)
        result = ResolutionResult(
            latitude=winner.candidate.latitude,
            longitude=winner.candidate.longitude,
            matched_place_name=winner.candidate.display_name,
            confidence=confidence,
            status=status_for_confidence(confidence),
        )
        logger.info(
            "geocode_resolved",
            score=winner.score,
            confidence=confidence,
            candidates=len(candidates),
        )
        RESOLUTIONS_TOTAL.labels(
            outcome="success"
            if result.status is ResolutionStatus.SUCCESS
            else "low_confidence"
        ).inc()

        await self.cache.set(key, result)
        return result
