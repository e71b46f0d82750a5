"""Tests for candidate scoring."""

import pytest

from locator.core.geocoding.models import AddressInput, Candidate
from locator.core.geocoding.scorer import score_candidate
from tests.fixtures.geocoding import provider_item


def candidate(display_name, category=None, **address) -> Candidate:
    return Candidate.from_provider(
        provider_item(17.4, 78.4, display_name, category=category, **address)
    )


class TestStructuredSignals:
    """State, city, postal and street rules."""

    def test_full_match_with_typo_in_state(self):
        address = AddressInput(
            street="12 MG Road", city="Hyderabad", state="Telengana", postal_code="500032"
        )
        match = candidate(
            "MG Road, Hyderabad, Telangana, 500032, India",
            state="Telangana",
            city="Hyderabad",
            road="MG Road",
            postcode="500032",
        )
        # state 3, city 2, display city/state 2, postal 2, street 2
        assert score_candidate(match, address) == 11

    def test_state_city_postal_without_road(self):
        address = AddressInput(city="Hyderabad", state="Telangana", postal_code="500032")
        match = candidate(
            "Hyderabad, Telangana, 500032, India",
            state="Telangana",
            city="Hyderabad",
            postcode="500032",
        )
        assert score_candidate(match, address) == 9

    def test_city_mismatch_is_penalized(self):
        address = AddressInput(city="Mumbai", state="Maharashtra")
        other_city = candidate(
            "Pune, Maharashtra, India", state="Maharashtra", city="Pune"
        )
        # state 3, display state 1, city mismatch -3
        assert score_candidate(other_city, address) == 1

    def test_state_mismatch_is_penalized(self):
        address = AddressInput(state="Karnataka")
        other_state = candidate("Kochi, Kerala, India", state="Kerala")
        assert score_candidate(other_state, address) == -5

    def test_missing_candidate_state_is_neutral(self):
        address = AddressInput(state="Karnataka")
        assert score_candidate(candidate("Somewhere"), address) == 0

    def test_city_found_only_in_display_name(self):
        address = AddressInput(city="Secunderabad")
        nearby = candidate(
            "Secunderabad, Hyderabad, Telangana, India", city="Hyderabad"
        )
        # the display-name city rule and the display bonus both count
        assert score_candidate(nearby, address) == 2

    def test_empty_candidate_city_is_not_a_match(self):
        address = AddressInput(city="Pune")
        no_city = candidate("Maharashtra, India", state="Maharashtra")
        assert score_candidate(no_city, address) == -3

    def test_town_counts_as_city(self):
        address = AddressInput(city="Gachibowli")
        town = candidate("Somewhere", town="Gachibowli")
        assert score_candidate(town, address) == 2

    def test_postal_requires_exact_match(self):
        address = AddressInput(postal_code="500032")
        assert score_candidate(candidate("x", postcode="500032"), address) == 2
        assert score_candidate(candidate("x", postcode="500033"), address) == 0

    def test_street_token_overlap(self):
        address = AddressInput(street="Plot 7 Jubilee Hills Road 36")
        partial = candidate("x", road="Road Number 36, Jubilee Hills")
        assert score_candidate(partial, address) == 1

    def test_short_street_tokens_are_ignored(self):
        address = AddressInput(street="Lane 5 MG")
        assert score_candidate(candidate("x", road="MG Nagar Main"), address) == 0

    def test_raw_address_stands_in_for_missing_street(self):
        address = AddressInput(raw_address="MG Road Hyderabad")
        assert score_candidate(candidate("x", road="MG Road"), address) == 2


class TestNameSignals:
    """Name tokens and POI category bonus."""

    def test_name_tokens_and_poi_category(self):
        address = AddressInput(name="Cyber Towers")
        poi = candidate(
            "Cyber Towers, Hitech City, Hyderabad", category="building"
        )
        assert score_candidate(poi, address) == 3

    def test_noise_tokens_do_not_match(self):
        address = AddressInput(name="Tech Spaces Center")
        mall = candidate("Spaces Center Mall, Pune", category="shop")
        # only the category bonus applies
        assert score_candidate(mall, address) == 1

    def test_no_name_means_no_category_bonus(self):
        address = AddressInput(city="Hyderabad")
        poi = candidate("Hyderabad", category="amenity", city="Hyderabad")
        assert score_candidate(poi, address) == 3

    def test_non_poi_category_earns_nothing_extra(self):
        address = AddressInput(name="Cyber Towers")
        road = candidate("Cyber Towers Road", category="highway")
        assert score_candidate(road, address) == 2


def test_empty_input_scores_zero():
    match = candidate("Anything, India", state="Telangana", city="Hyderabad")
    assert score_candidate(match, AddressInput()) == 0


@pytest.mark.parametrize("repeat", range(3))
def test_scoring_is_deterministic(repeat):
    address = AddressInput(
        name="Cyber Towers", street="Hitech City", city="Hyderabad", state="Telangana"
    )
    match = candidate(
        "Cyber Towers, Hitech City, Hyderabad, Telangana",
        category="building",
        state="Telangana",
        city="Hyderabad",
        road="Hitech City Main Road",
    )
    assert score_candidate(match, address) == score_candidate(match, address) == 12
