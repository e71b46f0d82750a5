"""Remove city, state and postal text that leaked into a street field."""

import re
from typing import Optional

MIN_STREET_LENGTH = 3

_SEPARATORS = re.compile(r"[,.\-]")
_WHITESPACE = re.compile(r"\s+")


def clean_street(
    street: Optional[str],
    city: Optional[str] = None,
    state: Optional[str] = None,
    postal: Optional[str] = None,
) -> str:
    """Strip other fragments out of a street value.

    Occurrences of the postal code, state and city are removed
    case-insensitively, then separators and runs of whitespace collapse to
    single spaces. When fewer than three characters survive, the original
    street is returned unchanged so a street that only repeats the city is
    not lost.

    Args:
        street: Street text as supplied by the caller
        city: City fragment
        state: State fragment
        postal: Postal code fragment

    Returns:
        Cleaned street, the original street, or "" when street is empty
    """
    if not street:
        return ""

    cleaned = street
    for fragment in (postal, state, city):
        if fragment and fragment.strip():
            cleaned = re.sub(re.escape(fragment.strip()), "", cleaned, flags=re.IGNORECASE)

    cleaned = _WHITESPACE.sub(" ", _SEPARATORS.sub(" ", cleaned)).strip()
    if len(cleaned) < MIN_STREET_LENGTH:
        return street
    return cleaned
