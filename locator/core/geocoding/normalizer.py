"""Text canonicalization for address fragments."""

from typing import Optional

# Characters dropped from every fragment before comparison
STRIPPED_PUNCTUATION = ".,/#!$%^&*;:{}=-_`~()"

_STRIP_TABLE = str.maketrans("", "", STRIPPED_PUNCTUATION)

# Common misspellings of state names, keyed by their normalized form
STATE_TYPOS: dict[str, str] = {
    "maharastra": "maharashtra",
    "maharashtr": "maharashtra",
    "telengana": "telangana",
    "telagana": "telangana",
    "karnatka": "karnataka",
    "chattisgarh": "chhattisgarh",
    "chhatisgarh": "chhattisgarh",
    "tamilnadu": "tamil nadu",
    "pondicherry": "puducherry",
    "orissa": "odisha",
    "uttaranchal": "uttarakhand",
}


def normalize(text: Optional[str]) -> str:
    """Lower-case, drop punctuation and trim surrounding whitespace.

    Args:
        text: Raw fragment, may be None

    Returns:
        Canonical form, empty string for empty or missing input
    """
    if not text:
        return ""
    return text.lower().translate(_STRIP_TABLE).strip()


def normalize_state(text: Optional[str]) -> str:
    """Normalize a state name and correct known misspellings.

    Unknown values pass through in their normalized form.
    """
    normalized = normalize(text)
    return STATE_TYPOS.get(normalized, normalized)
