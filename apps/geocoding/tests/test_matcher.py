from django.test import SimpleTestCase

from apps.core.exceptions import UpstreamError
from apps.geocoding.dtos import GeocoderResult
from apps.geocoding.matcher import AddressMatcher, suggestion_quality
from .helpers import FakeGeocoder


MAIN_ST = GeocoderResult(house_number="123", road="Main St", place="Pharr", state="Texas")


class ValidateTest(SimpleTestCase):

    def setUp(self):
        self.matcher = AddressMatcher(FakeGeocoder())

    def test_main_street_scenario(self):
        self.assertTrue(self.matcher.validate("123 Main St", [MAIN_ST]))
        self.assertEqual(suggestion_quality(MAIN_ST), 4)

    def test_short_input_is_invalid(self):
        self.assertFalse(self.matcher.validate("12 A", [MAIN_ST]))
        self.assertFalse(self.matcher.validate("12 A", [MAIN_ST], selected_from_suggestions=True))

    def test_input_without_street_prefix_is_invalid(self):
        self.assertFalse(self.matcher.validate("Main Street Pharr", [MAIN_ST]))

    def test_selected_suggestion_bypasses_structure(self):
        self.assertTrue(self.matcher.validate("Main Street Pharr", [], selected_from_suggestions=True))

    def test_single_token_input_is_invalid(self):
        self.assertFalse(self.matcher.validate("12345 X", [MAIN_ST]))

    def test_candidates_without_structure_are_skipped(self):
        bare = GeocoderResult(road="Main St")
        self.assertFalse(self.matcher.validate("123 Main St", [bare]))

    def test_token_overlap_accepts_reordered_input(self):
        candidate = GeocoderResult(
            house_number="4500", road="North Jackson Road", place="Pharr", state="Texas", postcode="78577"
        )
        self.assertTrue(self.matcher.validate("4500 Jackson Rd Pharr TX", [candidate]))

    def test_unrelated_candidate_is_rejected(self):
        candidate = GeocoderResult(
            house_number="9", road="Elm Avenue", place="Boston", state="Massachusetts"
        )
        self.assertFalse(self.matcher.validate("123 Main St", [candidate]))

    def test_suggestion_round_trip_is_valid(self):
        suggestion = self.matcher.rank_suggestions([MAIN_ST])[0]
        self.assertTrue(
            self.matcher.validate(suggestion.full_address, [MAIN_ST], selected_from_suggestions=True)
        )
        self.assertTrue(self.matcher.validate(suggestion.full_address, [MAIN_ST]))


class MatchPathTest(SimpleTestCase):
    """Each acceptance rule on its own, with the neighbouring rules failing."""

    def setUp(self):
        self.matcher = AddressMatcher(FakeGeocoder())

    def test_short_input_needs_more_than_sixty_percent_of_tokens(self):
        candidate = GeocoderResult(house_number="12", road="Main St", place="Pharr", state="Texas")
        # 9 chars normalized, half the tokens match
        self.assertFalse(self.matcher.validate("12 Zzzzzz", [candidate]))

    def test_long_input_needs_more_than_forty_percent_of_tokens(self):
        candidate = GeocoderResult(house_number="12", road="Main St", place="Pharr", state="Texas")
        # 11 chars normalized, half the tokens match
        self.assertTrue(self.matcher.validate("12 Zzzzzzzz", [candidate]))

    def test_small_typos_pass_on_edit_distance(self):
        candidate = GeocoderResult(house_number="1200", road="Maplewood", place="Renoville")
        # Distance 3, no token overlap
        self.assertTrue(self.matcher.validate("1300 Maplewod, Renovile", [candidate]))

    def test_edit_distance_of_five_is_rejected(self):
        candidate = GeocoderResult(house_number="1200", road="Maplewood", place="Renoville")
        self.assertFalse(self.matcher.validate("1399 Maplewod, Renovile", [candidate]))

    def test_parts_covering_components_pass(self):
        candidate = GeocoderResult(house_number="12", road="Oak", place="Ely", state="Texas")
        # Token overlap is 1/4 and the edit distance is large
        self.assertTrue(self.matcher.validate("12 Oakwood Elyton Texasville", [candidate]))

    def test_too_few_covering_parts_are_rejected(self):
        candidate = GeocoderResult(house_number="12", road="Oak", place="Ely", state="Texas")
        self.assertFalse(self.matcher.validate("12 Oakwood Zzzzzz Yyyyyyy", [candidate]))
        self.assertFalse(self.matcher.validate("99 Oakwood", [candidate]))


class RankSuggestionsTest(SimpleTestCase):

    def setUp(self):
        self.matcher = AddressMatcher(FakeGeocoder())

    def test_full_address_format(self):
        result = GeocoderResult(
            house_number="123", road="Main St", place="Pharr", state="Texas", postcode="78577"
        )
        suggestion = self.matcher.rank_suggestions([result])[0]
        self.assertEqual(suggestion.full_address, "123 Main St, Pharr, Texas 78577")
        self.assertEqual(suggestion.street, "123 Main St")
        self.assertEqual(suggestion.zip_code, "78577")

    def test_drops_incomplete_and_orders_by_quality(self):
        results = [
            GeocoderResult(road="Low Rd", state="Texas"),                                    # 2
            GeocoderResult(place="Nowhere", state="Texas"),                                  # no street
            GeocoderResult(road="Lonely Rd"),                                                # no city/state
            GeocoderResult(house_number="1", road="High St", place="Pharr", state="Texas",
                           postcode="78577"),                                                # 5
            GeocoderResult(road="Mid Rd", place="Pharr", state="Texas"),                     # 3
        ]
        streets = [s.street for s in self.matcher.rank_suggestions(results)]
        self.assertEqual(streets, ["1 High St", "Mid Rd", "Low Rd"])

    def test_returns_at_most_five(self):
        results = [GeocoderResult(road=f"Road {i}", state="Texas") for i in range(8)]
        suggestions = self.matcher.rank_suggestions(results)
        self.assertEqual(len(suggestions), 5)
        self.assertEqual(suggestions[0].street, "Road 0")
        self.assertFalse(hasattr(suggestions[0], "quality"))


class FrontDoorTest(SimpleTestCase):

    def test_validate_address_queries_geocoder_once(self):
        geocoder = FakeGeocoder([MAIN_ST])
        self.assertTrue(AddressMatcher(geocoder).validate_address("123 Main St"))
        self.assertEqual(len(geocoder.queries), 1)

    def test_upstream_failure_degrades_to_invalid(self):
        matcher = AddressMatcher(FakeGeocoder(error=UpstreamError("down")))
        with self.assertLogs("apps.geocoding.matcher", level="WARNING"):
            self.assertFalse(matcher.validate_address("123 Main St"))

    def test_upstream_failure_yields_no_suggestions(self):
        matcher = AddressMatcher(FakeGeocoder(error=UpstreamError("down")))
        self.assertEqual(matcher.rank_address_suggestions("123 Main"), [])
