"""
Geocoding API endpoints.

Address autocomplete for the member address form.
"""
from dataclasses import asdict

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.identity.api import require_auth
from .client import ATTRIBUTION
from .dtos import AddressLookupOut
from .matcher import get_matcher

router = Router(tags=["Geocoding"])

MIN_QUERY_LENGTH = 3


@router.get("/address-lookup", response=AddressLookupOut, auth=None)
def address_lookup(request: HttpRequest, q: str = ""):
    """
    Suggest up to five complete US addresses for a partial query.

    Query Parameters:
    - q: Free-text address fragment (at least 3 characters)
    """
    require_auth(request)

    query = q.strip()
    if len(query) < MIN_QUERY_LENGTH:
        raise HttpError(400, "Query must be at least 3 characters long")

    suggestions = get_matcher().rank_address_suggestions(query)
    return {
        "suggestions": [asdict(s) for s in suggestions],
        "attribution": ATTRIBUTION,
    }
