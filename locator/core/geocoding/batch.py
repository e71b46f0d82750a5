"""Sequential batch geocoding with request pacing and rate-limit backoff."""

import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Optional

from pydantic import BaseModel

from locator.core.geocoding.errors import (
    GeocodingError,
    NoResultsError,
    RateLimitedError,
)
from locator.core.geocoding.fields import ColumnMap, address_from_row, resolve_columns
from locator.core.geocoding.models import ResolutionStatus
from locator.core.geocoding.resolver import AddressResolver
from locator.core.logging import get_logger

logger = get_logger(__name__)

SKIPPED_STATUS = "Skipped: No Address"

ProgressCallback = Callable[[int, int], None]
Sleeper = Callable[[float], Awaitable[Any]]


class RowOutcome(BaseModel):
    """Geocoding outcome for one input row."""

    index: int
    status: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    matched_place: Optional[str] = None
    confidence: Optional[float] = None


def retry_delay(retry_after: Optional[str], attempt: int, backoff_base: float) -> float:
    """Seconds to wait before retrying a throttled row.

    An integer ``Retry-After`` hint wins; otherwise exponential backoff
    ``backoff_base * 2 ** (attempt - 1)``.
    """
    if retry_after is not None:
        try:
            return float(int(retry_after.strip()))
        except ValueError:
            pass
    return backoff_base * 2 ** (attempt - 1)


class BatchGeocoder:
    """Resolves many rows one after another, respecting provider rate limits.

    Rows are paced by ``delay`` seconds. A throttled row is retried up to
    ``max_retries`` times before it is recorded as an error.
    """

    def __init__(
        self,
        resolver: AddressResolver,
        delay: float = 1.0,
        max_retries: int = 3,
        backoff_base: float = 2.0,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.resolver = resolver
        self.delay = delay
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._sleep = sleep

    async def _resolve_row(
        self, index: int, row: Mapping[str, Any], columns: ColumnMap
    ) -> RowOutcome:
        address = address_from_row(row, columns)
        if address.is_empty:
            return RowOutcome(index=index, status=SKIPPED_STATUS)

        attempt = 0
        while True:
            try:
                result = await self.resolver.resolve(address)
            except RateLimitedError as e:
                attempt += 1
                if attempt > self.max_retries:
                    return RowOutcome(index=index, status=f"Error: {e}")
                wait = retry_delay(e.retry_after, attempt, self.backoff_base)
                logger.info(
                    "batch_row_throttled", row=index, attempt=attempt, wait=wait
                )
                await self._sleep(wait)
                continue
            except NoResultsError:
                return RowOutcome(index=index, status=ResolutionStatus.FAILED.value)
            except GeocodingError as e:
                return RowOutcome(index=index, status=f"Error: {e}")

            return RowOutcome(
                index=index,
                status=result.status.value,
                latitude=result.latitude,
                longitude=result.longitude,
                matched_place=result.matched_place_name,
                confidence=result.confidence,
            )

    async def run(
        self,
        rows: Sequence[Mapping[str, Any]],
        progress: Optional[ProgressCallback] = None,
    ) -> list[RowOutcome]:
        """Geocode every row in order.

        Args:
            rows: Input rows keyed by column header
            progress: Optional callback receiving (completed, total)

        Returns:
            One outcome per row, in input order
        """
        columns: ColumnMap = resolve_columns(rows[0].keys()) if rows else {}
        outcomes: list[RowOutcome] = []
        total = len(rows)

        for index, row in enumerate(rows):
            if index > 0 and self.delay > 0:
                await self._sleep(self.delay)
            try:
                outcome = await self._resolve_row(index, row, columns)
            except Exception as e:
                logger.error("batch_row_failed", row=index, error=str(e))
                outcome = RowOutcome(index=index, status=f"Error: {e}")
            outcomes.append(outcome)
            if progress is not None:
                progress(index + 1, total)

        return outcomes
