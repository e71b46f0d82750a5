"""Command-line interface for the address locator."""

import asyncio
import csv
import json
import sys
from typing import Optional, TextIO

import click

from locator.core.config import Settings
from locator.core.geocoding.batch import BatchGeocoder, ProgressCallback, RowOutcome
from locator.core.geocoding.errors import GeocodingError, RateLimitedError
from locator.core.geocoding.models import AddressInput, ResolutionResult
from locator.core.geocoding.resolver import AddressResolver
from locator.core.logging import configure_logging


@click.group()
def cli() -> None:
    """Resolve free-form address fragments to coordinates."""


@cli.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", "-p", default=8000, type=int, help="Port to listen on")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("locator.main:app", host=host, port=port, reload=reload)


async def _resolve_once(settings: Settings, address: AddressInput) -> ResolutionResult:
    resolver = AddressResolver.from_settings(settings)
    try:
        return await resolver.resolve(address)
    finally:
        await resolver.aclose()


@cli.command()
@click.option("--name", help="Site or POI name hint")
@click.option("--street", help="Street line")
@click.option("--city", help="City")
@click.option("--state", help="State")
@click.option("--postal", help="Postal code")
@click.option("--address", "raw_address", help="Combined one-line address")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def resolve(
    name: Optional[str],
    street: Optional[str],
    city: Optional[str],
    state: Optional[str],
    postal: Optional[str],
    raw_address: Optional[str],
    verbose: bool,
) -> None:
    """Resolve one address and print the result as JSON."""
    settings = Settings()
    configure_logging(
        level="debug" if verbose else "warning", json_logs=settings.JSON_LOGS
    )
    address = AddressInput(
        name=name,
        street=street,
        city=city,
        state=state,
        postal_code=postal,
        raw_address=raw_address,
    )

    try:
        result = asyncio.run(_resolve_once(settings, address))
    except RateLimitedError as e:
        hint = f" (retry after {e.retry_after}s)" if e.retry_after else ""
        click.echo(f"Error: {e}{hint}", err=True)
        sys.exit(2)
    except GeocodingError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(result.to_response(), indent=2))


RESULT_COLUMNS = ("Latitude", "Longitude", "Matched Place", "Confidence", "Status")


def _result_columns(outcome: RowOutcome) -> dict[str, str]:
    def cell(value: object) -> str:
        return "" if value is None else str(value)

    return {
        "Latitude": cell(outcome.latitude),
        "Longitude": cell(outcome.longitude),
        "Matched Place": cell(outcome.matched_place),
        "Confidence": cell(outcome.confidence),
        "Status": outcome.status,
    }


async def _run_batch(
    settings: Settings, rows: list[dict[str, str]], progress: ProgressCallback
) -> list[RowOutcome]:
    resolver = AddressResolver.from_settings(settings)
    geocoder = BatchGeocoder(
        resolver,
        delay=settings.BATCH_REQUEST_DELAY,
        max_retries=settings.BATCH_MAX_RETRIES,
        backoff_base=settings.BATCH_BACKOFF_BASE,
    )
    try:
        return await geocoder.run(rows, progress=progress)
    finally:
        await resolver.aclose()


@cli.command()
@click.argument("source", type=click.File("r", encoding="utf-8-sig"))
@click.argument("destination", type=click.File("w", encoding="utf-8"))
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def batch(source: TextIO, destination: TextIO, verbose: bool) -> None:
    """Geocode every row of a CSV file and write the rows back with results.

    Columns are matched case-insensitively: name / vm name / vmname, address /
    street, city, state, zip / postal code.
    """
    settings = Settings()
    configure_logging(
        level="debug" if verbose else "warning", json_logs=settings.JSON_LOGS
    )

    reader = csv.DictReader(source)
    rows = list(reader)
    if not rows:
        raise click.UsageError("Input file has no data rows")

    with click.progressbar(
        length=len(rows), label="Geocoding", file=click.get_text_stream("stderr")
    ) as bar:
        outcomes = asyncio.run(
            _run_batch(settings, rows, lambda done, total: bar.update(1))
        )

    fieldnames = list(reader.fieldnames or []) + list(RESULT_COLUMNS)
    writer = csv.DictWriter(destination, fieldnames=fieldnames, extrasaction="ignore")
    writer.writeheader()
    for row, outcome in zip(rows, outcomes):
        writer.writerow({**row, **_result_columns(outcome)})

    succeeded = sum(1 for o in outcomes if o.latitude is not None)
    click.echo(f"Geocoded {succeeded} of {len(rows)} rows", err=True)


if __name__ == "__main__":
    cli()
