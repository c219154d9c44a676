"""
Fuzzy address validation and suggestion ranking.

Member-typed address text is accepted when it plausibly refers to one of the
geocoder's candidates. Text picked from our own suggestion list is trusted
(selected_from_suggestions=True) and skips the structural checks.
"""
import logging
import re
from typing import List, Sequence

from apps.core.exceptions import UpstreamError
from apps.core.similarity import (
    levenshtein_distance,
    meaningful_tokens,
    normalize_address_text,
    token_match_percentage,
)
from .client import get_geocoder, get_result_limit
from .dtos import AddressSuggestion, GeocoderResult

logger = logging.getLogger(__name__)

MIN_INPUT_LENGTH = 5
MIN_TOKEN_COUNT = 2
SHORT_INPUT_LENGTH = 10
SHORT_INPUT_REQUIRED_MATCH = 0.6
LONG_INPUT_REQUIRED_MATCH = 0.4
MAX_EDIT_DISTANCE = 5
PART_MATCH_RATIO = 0.7
MAX_SUGGESTIONS = 5

# House number followed by a street word, e.g. "123 Main"
_STREET_PREFIX = re.compile(r'\d+\s+\w+')


def suggestion_quality(result: GeocoderResult) -> int:
    return sum(1 for value in (
        result.road, result.house_number, result.place, result.state, result.postcode
    ) if value)


class AddressMatcher:
    """Validates free-text addresses against geocoder candidates."""

    def __init__(self, geocoder):
        self.geocoder = geocoder

    def validate(
        self,
        input_text: str,
        candidates: Sequence[GeocoderResult],
        selected_from_suggestions: bool = False,
    ) -> bool:
        if not input_text or len(input_text) < MIN_INPUT_LENGTH:
            return False

        if not selected_from_suggestions and not _STREET_PREFIX.search(input_text.strip()):
            return False

        normalized = normalize_address_text(input_text)
        parts = meaningful_tokens(normalized)
        if len(parts) < MIN_TOKEN_COUNT and not selected_from_suggestions:
            return False

        for candidate in candidates:
            if not candidate.has_valid_structure:
                continue
            if self._candidate_matches(normalized, parts, candidate):
                return True

        return selected_from_suggestions

    def _candidate_matches(self, normalized: str, parts: List[str], candidate: GeocoderResult) -> bool:
        text = normalize_address_text(candidate.full_address)

        if normalized in text:
            # Very short inputs are contained in almost anything.
            if len(normalized) < MIN_INPUT_LENGTH:
                return False
            return True

        required = SHORT_INPUT_REQUIRED_MATCH if len(normalized) < SHORT_INPUT_LENGTH else LONG_INPUT_REQUIRED_MATCH
        if token_match_percentage(parts, text) > required:
            return True

        if levenshtein_distance(normalized, text) < min(MAX_EDIT_DISTANCE, len(normalized) / 3):
            return True

        # A part counts when it sits inside the candidate text or wraps one of
        # its components ("oakwood" covers road "oak").
        components = candidate.components
        matching_parts = sum(
            1 for part in parts
            if len(part) > 2 and (part in text or any(c in part for c in components))
        )
        return matching_parts >= max(MIN_TOKEN_COUNT, len(parts) * PART_MATCH_RATIO)

    def rank_suggestions(self, results: Sequence[GeocoderResult]) -> List[AddressSuggestion]:
        """Best five usable results, most complete first."""
        usable = [r for r in results if r.road and (r.place or r.state)]
        # sorted() is stable, so equal-quality results keep geocoder order
        ranked = sorted(usable, key=suggestion_quality, reverse=True)[:MAX_SUGGESTIONS]
        return [
            AddressSuggestion(
                full_address=r.full_address,
                street=r.street_address,
                city=r.place,
                state=r.state,
                zip_code=r.postcode,
            )
            for r in ranked
        ]

    def validate_address(self, text: str, selected_from_suggestions: bool = False) -> bool:
        try:
            candidates = self.geocoder.search(text, limit=get_result_limit())
        except UpstreamError as e:
            logger.warning(f"Address validation degraded to invalid: {e}")
            return False

        valid = self.validate(text, candidates, selected_from_suggestions)
        logger.info(f"Address validation for '{text}': {'valid' if valid else 'invalid'}")
        return valid

    def rank_address_suggestions(self, text: str) -> List[AddressSuggestion]:
        try:
            results = self.geocoder.search(text, limit=get_result_limit())
        except UpstreamError as e:
            logger.warning(f"Address lookup returned no suggestions: {e}")
            return []
        return self.rank_suggestions(results)


def get_matcher() -> AddressMatcher:
    return AddressMatcher(get_geocoder())
