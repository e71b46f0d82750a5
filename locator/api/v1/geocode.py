"""Geocoding endpoint."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field, field_validator

from locator.core.events import AppStateDict
from locator.core.geocoding.errors import ConfigurationError
from locator.core.geocoding.models import AddressInput
from locator.core.geocoding.resolver import AddressResolver
from locator.core.logging import get_request_logger

router = APIRouter(tags=["geocoding"])


class GeocodeRequest(BaseModel):
    """Address fragments as sent by the upload client. Every field is optional."""

    address: Optional[str] = Field(None, description="Combined one-line address")
    vm_name: Optional[str] = Field(
        None, alias="vmName", description="Site or POI name hint"
    )
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal: Optional[str] = Field(None, description="Postal / ZIP code")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any) -> Any:
        """Spreadsheet values such as postal codes often arrive as numbers."""
        if isinstance(value, bool):
            return None
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, (int, float)):
            return str(value)
        return value

    def to_address(self) -> AddressInput:
        return AddressInput(
            name=self.vm_name,
            street=self.street,
            city=self.city,
            state=self.state,
            postal_code=self.postal,
            raw_address=self.address,
        )


class GeocodeResponse(BaseModel):
    """Successful resolution."""

    latitude: float
    longitude: float
    placeName: str
    confidence: float
    status: str


def get_resolver(request: Request) -> AddressResolver:
    """Resolver created at startup and stored on application state."""
    state: Optional[AppStateDict] = getattr(request.app.state, "locator", None)
    if state is None or state.resolver is None:
        raise ConfigurationError()
    return state.resolver


@router.post("/geocode", response_model=GeocodeResponse)
async def geocode(
    payload: GeocodeRequest,
    request: Request,
    resolver: AddressResolver = Depends(get_resolver),
) -> dict[str, Any]:
    """Resolve address fragments to a single coordinate.

    Errors follow the service contract: 429 with ``Retry-After`` when the
    provider throttles, 404 with ``status: "Failed"`` when nothing matches,
    500 when the provider credential is missing.
    """
    logger = get_request_logger(getattr(request.state, "correlation_id", None))
    address = payload.to_address()
    logger.info("geocode_request", city=address.city, state=address.state)

    result = await resolver.resolve(address)
    return result.to_response()
