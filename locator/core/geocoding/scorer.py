"""Score provider candidates against the submitted address.

Each signal is evaluated independently and the points add up; no rule
short-circuits another. Scores are unbounded integers, in practice between
about -8 and +14.
"""

from locator.core.geocoding.models import AddressInput, Candidate
from locator.core.geocoding.normalizer import normalize, normalize_state

STATE_MATCH = 3
STATE_MISMATCH = -5
CITY_MATCH = 2
CITY_IN_DISPLAY = 1
CITY_MISMATCH = -3
DISPLAY_CITY_BONUS = 1
DISPLAY_STATE_BONUS = 1
POSTAL_MATCH = 2
STREET_MATCH = 2
STREET_TOKEN_OVERLAP = 1
NAME_TOKEN_MATCH = 2
POI_CATEGORY_BONUS = 1

MIN_TOKEN_LENGTH = 4
NAME_NOISE_TOKENS = frozenset({"spaces", "center"})
POI_CATEGORIES = frozenset({"amenity", "shop", "office", "building"})


def _overlaps(left: str, right: str) -> bool:
    """Exact match or containment in either direction; both must be non-empty."""
    if not left or not right:
        return False
    return left == right or left in right or right in left


def _tokens(text: str) -> list[str]:
    return [token for token in text.split() if len(token) >= MIN_TOKEN_LENGTH]


def _state_points(in_state: str, candidate_state: str) -> int:
    if not in_state or not candidate_state:
        return 0
    return STATE_MATCH if _overlaps(in_state, candidate_state) else STATE_MISMATCH


def _city_points(in_city: str, candidate_city: str, display: str) -> int:
    if not in_city:
        return 0
    if _overlaps(in_city, candidate_city):
        return CITY_MATCH
    if in_city in display:
        return CITY_IN_DISPLAY
    return CITY_MISMATCH


def _display_points(in_city: str, in_state: str, display: str) -> int:
    # Rewards free text that repeats the structured city/state evidence, on
    # top of the structured rules above.
    points = 0
    if in_city and in_city in display:
        points += DISPLAY_CITY_BONUS
    if in_state and in_state in display:
        points += DISPLAY_STATE_BONUS
    return points


def _street_points(in_street: str, candidate_street: str) -> int:
    if not in_street or not candidate_street:
        return 0
    if _overlaps(in_street, candidate_street):
        return STREET_MATCH
    if any(token in candidate_street for token in _tokens(in_street)):
        return STREET_TOKEN_OVERLAP
    return 0


def _name_points(in_name: str, display: str) -> int:
    tokens = [token for token in _tokens(in_name) if token not in NAME_NOISE_TOKENS]
    if any(token in display for token in tokens):
        return NAME_TOKEN_MATCH
    return 0


def score_candidate(candidate: Candidate, address: AddressInput) -> int:
    """Compute the match score of one candidate.

    Pure and deterministic: the same candidate and input always give the
    same score.

    Args:
        candidate: Provider record
        address: Fragments as originally submitted

    Returns:
        Integer score, higher is better, may be negative
    """
    components = candidate.address

    in_state = normalize_state(address.state)
    in_city = normalize(address.city)
    in_postal = normalize(address.postal_code)
    in_street = normalize(address.street or address.raw_address)
    in_name = normalize(address.name)

    display = normalize(candidate.display_name)

    score = 0
    score += _state_points(in_state, normalize_state(components.state))
    score += _city_points(in_city, normalize(components.city_like), display)
    score += _display_points(in_city, in_state, display)

    candidate_postal = normalize(components.postcode)
    if in_postal and candidate_postal == in_postal:
        score += POSTAL_MATCH

    score += _street_points(in_street, normalize(components.street_like))

    if in_name:
        score += _name_points(in_name, display)
        if candidate.category in POI_CATEGORIES:
            score += POI_CATEGORY_BONUS

    return score
