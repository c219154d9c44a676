"""DTOs for Geocoding app."""
from dataclasses import dataclass, field
from typing import List, Optional

from ninja import Schema


@dataclass(frozen=True)
class GeocoderResult:
    """One candidate returned by the geocoder, flattened from its raw payload."""
    house_number: str = ""
    road: str = ""
    place: str = ""  # city, town or village
    state: str = ""
    postcode: str = ""
    country: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    display_name: str = ""

    @classmethod
    def from_raw(cls, item: dict) -> "GeocoderResult":
        address = item.get('address') or {}
        latitude = longitude = None
        if item.get('lat') and item.get('lon'):
            try:
                latitude = float(item['lat'])
                longitude = float(item['lon'])
            except (TypeError, ValueError):
                latitude = longitude = None
        return cls(
            house_number=address.get('house_number') or "",
            road=address.get('road') or address.get('pedestrian') or "",
            place=address.get('city') or address.get('town') or address.get('village') or "",
            state=address.get('state') or "",
            postcode=address.get('postcode') or "",
            country=address.get('country') or "",
            latitude=latitude,
            longitude=longitude,
            display_name=item.get('display_name') or "",
        )

    @property
    def street_address(self) -> str:
        return f"{self.house_number} {self.road}" if self.house_number else self.road

    @property
    def full_address(self) -> str:
        """US-style single line: "123 Main St, Pharr, Texas 78577"."""
        text = f"{self.street_address}, {self.place}, {self.state} {self.postcode}".strip()
        return text.rstrip(',').rstrip()

    @property
    def components(self) -> List[str]:
        """Normalized structural components: house number, road, place, state."""
        return [
            value.lower()
            for value in (self.house_number, self.road, self.place, self.state)
            if value
        ]

    @property
    def has_valid_structure(self) -> bool:
        """A road plus a place or state, or at least a house number."""
        return bool((self.road and (self.place or self.state)) or self.house_number)


@dataclass(frozen=True)
class AddressSuggestion:
    full_address: str
    street: str
    city: str
    state: str
    zip_code: str


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of an automated address verification."""
    verification_status: str
    original_address: str
    components: dict = field(default_factory=dict)
    standardized_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    verification_notes: Optional[str] = None


class AddressSuggestionOut(Schema):
    full_address: str
    street: str
    city: str
    state: str
    zip_code: str


class AddressLookupOut(Schema):
    suggestions: List[AddressSuggestionOut]
    attribution: str
