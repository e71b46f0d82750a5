"""Build provider query strategies from address fragments."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from locator.core.geocoding.models import AddressInput

# Name hints with this prefix are machine labels, not place names
MACHINE_NAME_PREFIX = "vm"
MIN_NAME_LENGTH = 4
MIN_FALLBACK_QUERY_LENGTH = 11


class StrategyKind(str, Enum):
    """Ways of phrasing a query to the provider."""

    AUTOCOMPLETE = "autocomplete"
    STRUCTURED = "structured"
    FREE_TEXT = "free_text"


_ENDPOINTS: dict[StrategyKind, str] = {
    StrategyKind.AUTOCOMPLETE: "autocomplete",
    StrategyKind.STRUCTURED: "search/structured",
    StrategyKind.FREE_TEXT: "search",
}


@dataclass(frozen=True)
class QueryStrategy:
    """A single provider query: which endpoint and with which parameters."""

    kind: StrategyKind
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def endpoint(self) -> str:
        return _ENDPOINTS[self.kind]

    @property
    def description(self) -> str:
        """Short human-readable form for logs."""
        if "q" in self.params:
            return str(self.params["q"])
        return ", ".join(
            f"{key}={self.params[key]}"
            for key in ("street", "city", "state", "postalcode")
            if key in self.params
        )


def _present(value: Optional[str]) -> str:
    return value.strip() if value else ""


class QueryPlanner:
    """Turns an AddressInput into ordered provider queries.

    Every strategy carries the same base parameters: JSON format, the result
    limit, the country filter, and the address-detail and dedupe flags.
    """

    def __init__(
        self, country_code: str = "in", country_name: str = "India", limit: int = 10
    ) -> None:
        self.country_code = country_code
        self.country_name = country_name
        self.limit = limit

    def common_params(self) -> dict[str, Any]:
        return {
            "format": "json",
            "limit": self.limit,
            "countrycodes": self.country_code,
            "addressdetails": 1,
            "dedupe": 1,
        }

    def _strategy(self, kind: StrategyKind, **params: Any) -> QueryStrategy:
        return QueryStrategy(kind=kind, params={**params, **self.common_params()})

    def name_strategy(self, address: AddressInput) -> Optional[QueryStrategy]:
        """Autocomplete on the name hint, unless it is missing, short or a VM label."""
        name = _present(address.name)
        if len(name) < MIN_NAME_LENGTH:
            return None
        if name.lower().startswith(MACHINE_NAME_PREFIX):
            return None

        query = ", ".join(
            part for part in (name, _present(address.city), _present(address.state)) if part
        )
        return self._strategy(StrategyKind.AUTOCOMPLETE, q=query, namedetails=1)

    def structured_strategy(
        self, address: AddressInput, street: str
    ) -> Optional[QueryStrategy]:
        """Discrete street/city/state/postal fields, if any of street/city/state exist."""
        fields = {
            "street": _present(street),
            "city": _present(address.city),
            "state": _present(address.state),
        }
        if not any(fields.values()):
            return None

        fields["postalcode"] = _present(address.postal_code)
        return self._strategy(
            StrategyKind.STRUCTURED, **{key: value for key, value in fields.items() if value}
        )

    def primary(self, address: AddressInput, street: str) -> list[QueryStrategy]:
        """Strategies issued concurrently on every resolution.

        Args:
            address: Submitted fragments
            street: Street after cleaning

        Returns:
            Zero, one or two strategies, name-based first
        """
        strategies = [
            self.name_strategy(address),
            self.structured_strategy(address, street),
        ]
        return [strategy for strategy in strategies if strategy is not None]

    def fallback_queries(self, address: AddressInput, street: str) -> list[str]:
        """Free-text queries, broadest context first, without duplicates or short strings."""
        name = _present(address.name)
        city = _present(address.city)
        state = _present(address.state)
        postal = _present(address.postal_code)
        street = _present(street)
        country = self.country_name

        orderings = [
            (name, city, state, country, postal),
            (name, street, city, state, country, postal),
            (street, city, state, country, postal),
            (city, state, country, postal),
        ]

        queries: list[str] = []
        for parts in orderings:
            query = ", ".join(part for part in parts if part)
            if len(query) < MIN_FALLBACK_QUERY_LENGTH or query in queries:
                continue
            queries.append(query)
        return queries

    def fallbacks(self, address: AddressInput, street: str) -> Iterator[QueryStrategy]:
        """Lazily yield fallback strategies; callers stop at the first non-empty result."""
        for query in self.fallback_queries(address, street):
            yield self._strategy(StrategyKind.FREE_TEXT, q=query)
