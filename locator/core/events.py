"""Application startup and shutdown events."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Optional, cast

import httpx
from redis.asyncio.client import Redis as AsyncRedis
from redis.exceptions import ConnectionError, TimeoutError

from locator.core.config import Settings, settings
from locator.core.geocoding.cache import (
    InMemoryResultCache,
    RedisResultCache,
    ResultCache,
)
from locator.core.geocoding.resolver import AddressResolver
from locator.core.logging import get_logger

logger = get_logger(__name__)


class CacheInitError(Exception):
    """Raised when the Redis cache cannot be reached."""


class AppStateDict:
    """Application state holding the shared resolver and its resources."""

    def __init__(self) -> None:
        """Initialize state."""
        self.redis: Optional["AsyncRedis[Any]"] = None
        self.http_client: Optional[httpx.AsyncClient] = None
        self.resolver: Optional[AddressResolver] = None

    async def health_check(self) -> dict[str, Any]:
        """Check health of all components.

        Returns:
            Dict containing health status of all components
        """
        health_status: dict[str, Any] = {
            "status": "healthy",
            "components": {
                "provider_configured": bool(
                    self.resolver is not None and self.resolver.client is not None
                ),
                "cache": "redis" if self.redis is not None else "memory",
            },
        }

        if self.redis is not None:
            try:
                await self.redis.ping()
                health_status["components"]["redis"] = True
            except (ConnectionError, TimeoutError) as e:
                health_status["components"]["redis"] = False
                health_status["status"] = "degraded"
                health_status["error"] = str(e)

        if not health_status["components"]["provider_configured"]:
            health_status["status"] = "degraded"

        return health_status


async def create_redis_pool(
    redis_url: str, max_retries: int = 3, retry_delay: float = 1.0
) -> "AsyncRedis[Any]":
    """Create Redis connection pool with retry logic.

    Args:
        redis_url: Redis connection URL
        max_retries: Connection attempts before giving up
        retry_delay: Seconds between attempts

    Returns:
        Redis connection pool

    Raises:
        CacheInitError: If connection cannot be established after retries
    """
    for attempt in range(max_retries):
        try:
            pool = AsyncRedis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                health_check_interval=15,
            )
            # Verify connection is working
            await pool.ping()
            logger.info("redis_cache_ready", redis_url=redis_url)
            return pool
        except (ConnectionError, TimeoutError) as e:
            if attempt == max_retries - 1:
                raise CacheInitError(f"Failed to initialize Redis pool: {e}")
            logger.warning(
                "redis_connect_retry",
                attempt=attempt + 1,
                max_retries=max_retries,
                error=str(e),
            )
            await asyncio.sleep(retry_delay)

    raise CacheInitError("Failed to initialize Redis pool: max retries exceeded")


async def build_state(config: Settings) -> AppStateDict:
    """Create the HTTP client, cache and resolver described by ``config``."""
    state = AppStateDict()

    cache: ResultCache
    if config.REDIS_URL:
        state.redis = await create_redis_pool(config.REDIS_URL)
        cache = RedisResultCache(state.redis, ttl=config.GEOCODING_CACHE_TTL)
    else:
        cache = InMemoryResultCache(
            max_size=config.GEOCODING_CACHE_SIZE, ttl=config.GEOCODING_CACHE_TTL
        )

    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.GEOCODING_TIMEOUT)
    )
    state.resolver = AddressResolver.from_settings(
        config, cache=cache, http_client=state.http_client
    )
    if state.resolver.client is None:
        logger.error("provider_not_configured", setting="LOCATIONIQ_API_KEY")
    return state


def create_start_app_handler(
    app: Any, config: Settings = settings
) -> Callable[[], Awaitable[None]]:
    """Create startup event handler.

    Args:
        app: FastAPI application instance
        config: Settings to build the resolver from

    Returns:
        Startup handler function
    """

    async def start_app() -> None:
        app.state.locator = await build_state(config)
        logger.info(
            "application_started",
            cache="redis" if config.REDIS_URL else "memory",
            country=config.GEOCODING_COUNTRY_CODE,
        )

    return start_app


def create_stop_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create shutdown event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Shutdown handler function
    """

    async def stop_app() -> None:
        state = cast(Optional[AppStateDict], getattr(app.state, "locator", None))
        if state is None:
            return
        if state.http_client is not None:
            await state.http_client.aclose()
        if state.redis is not None:
            await state.redis.aclose()
        logger.info("application_stopped")

    return stop_app

