"""
Geocoder collaborator.

Thin wrapper over the Nominatim (OpenStreetMap) search API. One HTTP attempt
per call, no retries; every transport or status failure surfaces as
UpstreamError so callers decide how to degrade.
"""
import logging
from typing import List, Optional

import requests
from django.conf import settings

from apps.core.exceptions import UpstreamError
from .dtos import GeocoderResult

logger = logging.getLogger(__name__)

ATTRIBUTION = "© OpenStreetMap contributors"

DEFAULT_BASE_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "Gatehouse HOA App (dev-test@example.com)"
DEFAULT_TIMEOUT = 5.0
DEFAULT_RESULT_LIMIT = 10


class NominatimGeocoder:
    """
    Free-text address search against a Nominatim endpoint.

    Queries are scoped to the US by appending " USA", and results carry
    structured address details.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    def search(self, query: str, limit: int = DEFAULT_RESULT_LIMIT) -> List[GeocoderResult]:
        params = {
            'q': f"{query} USA",
            'format': 'json',
            'addressdetails': 1,
            'limit': limit,
        }
        headers = {
            'User-Agent': self.user_agent,
            'Accept-Language': 'en-US,en',
        }

        try:
            response = self.session.get(
                self.base_url, params=params, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"Geocoder request failed for '{query}': {e}")
            raise UpstreamError(f"Geocoding service unavailable: {e}") from e

        if not response.ok:
            logger.warning(f"Geocoder returned HTTP {response.status_code} for '{query}'")
            raise UpstreamError(f"Geocoding service returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("Geocoding service returned malformed JSON") from e

        if not isinstance(payload, list):
            raise UpstreamError("Geocoding service returned an unexpected payload")

        results = [GeocoderResult.from_raw(item) for item in payload if isinstance(item, dict)]
        logger.debug(f"Geocoder returned {len(results)} result(s) for '{query}'")
        return results


def get_geocoder() -> NominatimGeocoder:
    """Build a geocoder from settings. API modules call this per request."""
    return NominatimGeocoder(
        base_url=getattr(settings, 'GEOCODER_BASE_URL', DEFAULT_BASE_URL),
        user_agent=getattr(settings, 'GEOCODER_USER_AGENT', DEFAULT_USER_AGENT),
        timeout=getattr(settings, 'GEOCODER_TIMEOUT', DEFAULT_TIMEOUT),
    )


def get_result_limit() -> int:
    return getattr(settings, 'GEOCODER_RESULT_LIMIT', DEFAULT_RESULT_LIMIT)
