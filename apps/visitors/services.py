"""
Visitor authorization, gate check-in and guard lookups.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.addresses.models import AddressStatus, MemberAddress
from apps.addresses.services import search_approved_addresses
from apps.core.exceptions import NotFoundError, ValidationError
from .access_codes import AccessCodeManager
from .dtos import AddressLookupResult, CheckInFilters, CheckInIn, VisitorIn
from .models import AllowedVisitor, EntryMethod, VisitorCheckIn

logger = logging.getLogger(__name__)

GUARD_LOOKUP_LIMIT = 10
UNREGISTERED_LOOKUP_MIN_LENGTH = 3
MAX_PAGE_SIZE = 100

VISITOR_SORT_FIELDS = {
    'name': ('last_name', 'first_name'),
    'created': ('created_at',),
    'expires': ('expires_at',),
}


def _approved_owned_address(member, address_id: UUID) -> MemberAddress:
    address = MemberAddress.objects.filter(id=address_id, member=member, is_active=True).first()
    if address is None:
        raise NotFoundError("Address not found")
    if address.status != AddressStatus.APPROVED:
        raise ValidationError("Visitors can only be added to approved addresses")
    return address


def _resolve_expiry(expires_at: Optional[datetime], option: Optional[str], custom_date: Optional[str]) -> Optional[datetime]:
    if expires_at is not None:
        return expires_at
    if option:
        return AccessCodeManager.compute_expiration(option, custom_date)
    return None


def get_owned_visitor(member, visitor_id: UUID, for_update: bool = False) -> AllowedVisitor:
    qs = AllowedVisitor.objects.select_related('address').filter(id=visitor_id, address__member=member)
    if for_update:
        qs = qs.select_for_update()
    visitor = qs.first()
    if visitor is None:
        raise NotFoundError("Visitor not found")
    return visitor


def list_visitors(
    member,
    search: Optional[str] = None,
    status: str = 'all',
    address_id: Optional[UUID] = None,
    sort: Optional[str] = None,
    order: str = 'desc',
) -> List[AllowedVisitor]:
    """
    The member's visitors.

    status: active (enabled and unexpired), expired, inactive (revoked) or all.
    search matches names, or an access code exactly.
    """
    now = timezone.now()
    qs = AllowedVisitor.objects.select_related('address').filter(address__member=member)

    if address_id:
        qs = qs.filter(address_id=address_id)
    if search:
        qs = qs.filter(
            Q(first_name__icontains=search) |
            Q(last_name__icontains=search) |
            Q(access_code=search.strip())
        )

    if status == 'active':
        qs = qs.filter(is_active=True, expires_at__gt=now)
    elif status == 'expired':
        qs = qs.filter(expires_at__lte=now)
    elif status == 'inactive':
        qs = qs.filter(is_active=False)

    if sort in VISITOR_SORT_FIELDS:
        prefix = '' if order == 'asc' else '-'
        qs = qs.order_by(*[f"{prefix}{f}" for f in VISITOR_SORT_FIELDS[sort]])

    return list(qs)


def create_visitor(member, payload: VisitorIn) -> AllowedVisitor:
    """
    Authorize a visitor for one of the member's approved addresses.

    Named visitors need first and last name; generate_code mints a code-only
    visitor and must not carry names.
    """
    address = _approved_owned_address(member, payload.address_id)

    first_name = (payload.first_name or "").strip()
    last_name = (payload.last_name or "").strip()
    if payload.generate_code and (first_name or last_name):
        raise ValidationError("A visitor is either named or code-only, not both")
    if not payload.generate_code and not (first_name and last_name):
        raise ValidationError("First and last name are required for named visitors")

    expires_at = _resolve_expiry(payload.expires_at, payload.expiration_option, payload.custom_date)
    if expires_at is None:
        raise ValidationError("Expiration date is required")
    if expires_at <= timezone.now():
        raise ValidationError("Expiration date must be in the future")

    visitor = AllowedVisitor.objects.create(
        address=address,
        first_name=first_name,
        last_name=last_name,
        access_code=AccessCodeManager.generate_code() if payload.generate_code else "",
        expires_at=expires_at,
    )
    logger.info(f"Member {member.id} authorized visitor {visitor.id} for address {address.id}")
    return visitor


def update_visitor(member, visitor_id: UUID, patch: dict) -> AllowedVisitor:
    with transaction.atomic():
        visitor = get_owned_visitor(member, visitor_id, for_update=True)

        if patch.get('address_id') and patch['address_id'] != visitor.address_id:
            visitor.address = _approved_owned_address(member, patch['address_id'])

        names = {k: (patch[k] or "").strip() for k in ('first_name', 'last_name') if k in patch}
        if names:
            if not AccessCodeManager.is_named_visitor(visitor):
                raise ValidationError("Code-only visitors cannot be given names")
            for key, value in names.items():
                if not value:
                    raise ValidationError("First and last name are required for named visitors")
                setattr(visitor, key, value)

        expires_at = _resolve_expiry(
            patch.get('expires_at'), patch.get('expiration_option'), patch.get('custom_date')
        )
        if expires_at is not None:
            visitor.expires_at = expires_at

        if patch.get('is_active') is not None:
            visitor.is_active = patch['is_active']

        visitor.save()
    return visitor


def delete_visitor(member, visitor_id: UUID) -> bool:
    """
    Remove a visitor. Returns True when check-in history forced a deactivation
    instead of a delete.
    """
    with transaction.atomic():
        visitor = get_owned_visitor(member, visitor_id, for_update=True)
        if visitor.check_ins.exists():
            visitor.is_active = False
            visitor.save(update_fields=['is_active', 'updated_at'])
            logger.info(f"Visitor {visitor.id} has check-in history, deactivated")
            return True

        visitor.delete()
    logger.info(f"Visitor {visitor_id} deleted")
    return False


def inactivate_visitor(member, visitor_id: UUID) -> AllowedVisitor:
    visitor = get_owned_visitor(member, visitor_id)
    visitor.is_active = False
    visitor.save(update_fields=['is_active', 'updated_at'])
    return visitor


# =============================================================================
# Gate operations
# =============================================================================

def check_in_visitor(guard, payload: CheckInIn) -> VisitorCheckIn:
    """
    Record a visitor at the gate.

    Registered visitors must belong to the given address and still be valid.
    Walk-ins need first and last name. The destination is a registered address
    or free text for unregistered ones.
    """
    unregistered_address = (payload.unregistered_address or "").strip()
    if not payload.address_id and not unregistered_address:
        raise ValidationError("Address is required")

    address = None
    if payload.address_id:
        address = MemberAddress.objects.filter(id=payload.address_id, is_active=True).first()
        if address is None:
            raise NotFoundError("Address not found")

    now = timezone.now()
    visitor = None
    if payload.visitor_id:
        visitor = AllowedVisitor.objects.filter(id=payload.visitor_id).first()
        if visitor is None:
            raise NotFoundError("Visitor not found")
        if address is None or visitor.address_id != address.id:
            raise ValidationError("Visitor is not authorized for this address")
        if not visitor.is_active or visitor.expires_at <= now:
            raise ValidationError("Visitor authorization is inactive or expired")
        first_name, last_name = visitor.first_name, visitor.last_name
    else:
        first_name = (payload.first_name or "").strip()
        last_name = (payload.last_name or "").strip()
        if not (first_name and last_name):
            raise ValidationError("Visitor ID or first and last name are required")

    if payload.entry_method == EntryMethod.ACCESS_CODE and visitor is None:
        raise ValidationError("Access code entry requires a registered visitor")

    with transaction.atomic():
        check_in = VisitorCheckIn.objects.create(
            visitor=visitor,
            address=address,
            checked_in_by=guard,
            check_in_time=now,
            entry_method=payload.entry_method,
            notes=payload.notes or "",
            first_name=first_name,
            last_name=last_name,
            unregistered_address="" if address else unregistered_address,
        )
        if visitor is not None:
            AllowedVisitor.objects.filter(id=visitor.id).update(last_used=now)

    logger.info(f"Guard {guard.id} checked in {first_name} {last_name} ({payload.entry_method})")
    return check_in


def lookup_addresses(query: str, matcher, include_unregistered: bool = False) -> AddressLookupResult:
    """
    Approved addresses matching `query`. Geocoder suggestions are added when
    nothing is registered under that text, or on request for longer queries.
    """
    query = (query or "").strip()
    if not query:
        raise ValidationError("Search query is required")

    registered = search_approved_addresses(query, limit=GUARD_LOOKUP_LIMIT)

    unregistered = []
    wants_external = include_unregistered and len(query) > UNREGISTERED_LOOKUP_MIN_LENGTH
    if not registered or wants_external:
        unregistered = matcher.rank_address_suggestions(query)

    return AddressLookupResult(registered=registered, unregistered=unregistered)


def get_address_details(address_id: UUID) -> Tuple[MemberAddress, List[AllowedVisitor]]:
    """An approved address with its currently valid visitors."""
    address = (
        MemberAddress.objects
        .select_related('member')
        .filter(id=address_id, is_active=True, status=AddressStatus.APPROVED)
        .first()
    )
    if address is None:
        raise NotFoundError("Address not found")

    visitors = list(
        address.visitors
        .filter(is_active=True, expires_at__gt=timezone.now())
        .order_by('last_name', 'first_name')
    )
    return address, visitors


def list_check_ins(user, can_view_all: bool, filters: CheckInFilters) -> Tuple[List[VisitorCheckIn], int]:
    """Check-in log page. Without can_view_all the caller only sees their own entries."""
    qs = VisitorCheckIn.objects.select_related('address', 'checked_in_by', 'visitor')

    guard_id = filters.guard_id if can_view_all else user.id
    if guard_id:
        qs = qs.filter(checked_in_by_id=guard_id)
    if filters.visitor_id:
        qs = qs.filter(visitor_id=filters.visitor_id)
    if filters.address_id:
        qs = qs.filter(address_id=filters.address_id)
    if filters.start_date:
        qs = qs.filter(check_in_time__date__gte=filters.start_date)
    if filters.end_date:
        qs = qs.filter(check_in_time__date__lte=filters.end_date)

    page = max(1, filters.page)
    page_size = max(1, min(filters.page_size, MAX_PAGE_SIZE))
    total = qs.count()
    offset = (page - 1) * page_size
    return list(qs[offset:offset + page_size]), total
