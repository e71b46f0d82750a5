"""Map tabular rows onto address fragments using column aliases."""

from collections.abc import Iterable, Mapping
from typing import Any, Optional

from locator.core.geocoding.models import AddressInput

# Canonical fragment -> accepted column names, in priority order
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name", "vm name", "vmname"),
    "street": ("address", "street"),
    "city": ("city",),
    "state": ("state",),
    "postal_code": ("zip", "postal code"),
}

ColumnMap = dict[str, list[str]]


def resolve_columns(columns: Iterable[str]) -> ColumnMap:
    """Match a batch's column headers to canonical fragments, case-insensitively.

    Resolve once per batch and reuse the result for every row.

    Args:
        columns: Header names as they appear in the input

    Returns:
        Canonical fragment name to matching headers, in alias priority order
    """
    by_lower: dict[str, str] = {}
    for column in columns:
        by_lower.setdefault(column.strip().lower(), column)

    resolved: ColumnMap = {}
    for fragment, aliases in FIELD_ALIASES.items():
        resolved[fragment] = [by_lower[alias] for alias in aliases if alias in by_lower]
    return resolved


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def address_from_row(
    row: Mapping[str, Any], columns: Optional[ColumnMap] = None
) -> AddressInput:
    """Build an AddressInput from one row.

    The first non-empty aliased column wins for each fragment. ``raw_address``
    joins the present fragments, or falls back to the row's first value when
    no known column is filled in.
    """
    if columns is None:
        columns = resolve_columns(row.keys())

    fragments: dict[str, str] = {}
    for fragment, headers in columns.items():
        fragments[fragment] = next(
            (_cell(row.get(header)) for header in headers if _cell(row.get(header))),
            "",
        )

    ordered = [
        fragments.get(name, "")
        for name in ("name", "street", "city", "state", "postal_code")
    ]
    if any(fragments.get(name) for name in ("name", "street", "city", "state")):
        raw_address = ", ".join(part for part in ordered if part)
    else:
        raw_address = next(iter(map(_cell, row.values())), "")

    return AddressInput(
        name=fragments.get("name") or None,
        street=fragments.get("street") or None,
        city=fragments.get("city") or None,
        state=fragments.get("state") or None,
        postal_code=fragments.get("postal_code") or None,
        raw_address=raw_address or None,
    )
