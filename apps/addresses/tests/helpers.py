from datetime import timedelta
from uuid import uuid4

from django.utils import timezone

from apps.addresses.models import AddressStatus, MemberAddress
from apps.geocoding.dtos import GeocoderResult
from apps.identity.models import User, UserRole, UserStatus

MAIN_ST = GeocoderResult(
    house_number="123", road="Main St", place="Pharr", state="Texas", postcode="78577",
    country="United States", latitude=26.19, longitude=-98.18,
    display_name="123, Main St, Pharr, Hidalgo County, Texas, 78577, United States",
)
OAK_AVE = GeocoderResult(house_number="45", road="Oak Ave", place="McAllen", state="Texas")


class FakeGeocoder:
    def __init__(self, results=None, error=None):
        self.results = [MAIN_ST, OAK_AVE] if results is None else results
        self.error = error

    def search(self, query, limit=10):
        if self.error:
            raise self.error
        return self.results[:limit]


def make_user(role=UserRole.MEMBER, status=UserStatus.APPROVED, username=None, **extra):
    username = username or f"user_{uuid4().hex[:8]}"
    return User.objects.create_user(
        username=username,
        email=f"{username}@test.com",
        password="testpass123",
        role=role,
        status=status,
        **extra,
    )


def make_address(member, text="123 Main St, Pharr, Texas 78577", status=AddressStatus.APPROVED,
                 is_primary=False, created_offset_days=0, **extra):
    address = MemberAddress.objects.create(
        member=member,
        address=text,
        owner_name=extra.pop('owner_name', "Pat Member"),
        status=status,
        is_primary=is_primary,
        **extra,
    )
    if created_offset_days:
        MemberAddress.objects.filter(id=address.id).update(
            created_at=timezone.now() - timedelta(days=created_offset_days)
        )
        address.refresh_from_db()
    return address
