"""Typed shapes for address input, provider candidates and resolution results."""

import math
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ResolutionStatus(str, Enum):
    """Outcome label attached to every resolution result."""

    SUCCESS = "Success"
    LOW_CONFIDENCE = "Low confidence"
    FAILED = "Failed"


class AddressInput(BaseModel):
    """Free-form address fragments submitted for resolution.

    Every fragment is optional. ``name`` is a place or POI hint (for example a
    site label), ``raw_address`` is the caller's combined one-line address.
    """

    name: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    raw_address: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        """True when no fragment carries any non-blank text."""
        return not any(
            value and value.strip()
            for value in (
                self.name,
                self.street,
                self.city,
                self.state,
                self.postal_code,
                self.raw_address,
            )
        )


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return None


def _coordinate(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        coordinate = float(value)
    except (TypeError, ValueError):
        return None
    return coordinate if math.isfinite(coordinate) else None


class AddressComponents(BaseModel):
    """Structured address details returned with ``addressdetails=1``."""

    state: Optional[str] = None
    city: Optional[str] = None
    town: Optional[str] = None
    village: Optional[str] = None
    suburb: Optional[str] = None
    county: Optional[str] = None
    road: Optional[str] = None
    street: Optional[str] = None
    pedestrian: Optional[str] = None
    postcode: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_provider(cls, raw: Any) -> "AddressComponents":
        if not isinstance(raw, dict):
            return cls()
        return cls(**{name: _text(raw.get(name)) for name in cls.model_fields})

    @property
    def city_like(self) -> str:
        """First populated of city, town, village, suburb, county."""
        return self.city or self.town or self.village or self.suburb or self.county or ""

    @property
    def street_like(self) -> str:
        return self.road or self.street or self.pedestrian or ""


class Candidate(BaseModel):
    """One location record returned by the provider for a single query."""

    latitude: float
    longitude: float
    display_name: str = ""
    address: AddressComponents = Field(default_factory=AddressComponents)
    category: Optional[str] = None
    subtype: Optional[str] = None
    place_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_provider(cls, item: Any) -> Optional["Candidate"]:
        """Decode one provider record, returning None when it has no usable coordinates.

        Args:
            item: A single element of the provider's JSON list

        Returns:
            Candidate or None if the record is not an object or lacks lat/lon
        """
        if not isinstance(item, dict):
            return None

        latitude = _coordinate(item.get("lat"))
        longitude = _coordinate(item.get("lon"))
        if latitude is None or longitude is None:
            return None

        return cls(
            latitude=latitude,
            longitude=longitude,
            display_name=_text(item.get("display_name")) or "",
            address=AddressComponents.from_provider(item.get("address")),
            category=_text(item.get("class")),
            subtype=_text(item.get("type")),
            place_id=_text(item.get("place_id")) or None,
        )

    @property
    def dedup_keys(self) -> tuple[str, ...]:
        """Identities under which this record counts as already seen.

        The provider identifier when present, plus the exact coordinate pair.
        """
        coordinates = f"coord:{self.latitude!r},{self.longitude!r}"
        if self.place_id:
            return (f"id:{self.place_id}", coordinates)
        return (coordinates,)


class ScoredCandidate(BaseModel):
    """A candidate paired with its match score against the input."""

    candidate: Candidate
    score: int

    model_config = ConfigDict(frozen=True)


class ProviderResponse(BaseModel):
    """Uniform outcome of a single provider query.

    Transport failures and malformed bodies surface as status 500 with no
    candidates; HTTP errors keep their status code and ``Retry-After`` value.
    """

    candidates: list[Candidate] = Field(default_factory=list)
    status: int = 200
    retry_after: Optional[str] = None

    @property
    def rate_limited(self) -> bool:
        return self.status == 429


class ResolutionResult(BaseModel):
    """Best-guess coordinate for one address input."""

    latitude: float
    longitude: float
    matched_place_name: str = Field(serialization_alias="placeName")
    confidence: float = Field(ge=0.0, le=1.0)
    status: ResolutionStatus

    model_config = ConfigDict(frozen=True)

    def to_response(self) -> dict[str, Any]:
        """Serialize to the public response shape."""
        return self.model_dump(mode="json", by_alias=True)
