"""
Address lifecycle: creation, edits, deletion and admin review.

Status moves PENDING -> APPROVED | REJECTED, and admins may flip between
APPROVED and REJECTED. Any change to the address text or owner name sends the
row back to PENDING. Verification status is tracked separately.
"""
import logging
from typing import Iterable, List, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.core.exceptions import ConflictError, NotFoundError, UpstreamError, ValidationError
from apps.geocoding.dtos import VerificationReport
from .models import AddressStatus, MemberAddress, VerificationStatus
from .dtos import AddressIn, DeletionMode, DeletionPlan, DeletionResult, StatusDecision

logger = logging.getLogger(__name__)

NO_MATCH_NOTE = "No matches found in OpenStreetMap database."
UPSTREAM_FAILURE_NOTE = "Error during address validation. Manual review required."
VERIFIED_NOTE = "Address verified against OpenStreetMap."
INCOMPLETE_MATCH_NOTE = "Match found but missing essential address components."

INVALID_ADDRESS_MESSAGE = (
    "Address could not be validated. Please select an address from the suggestions."
)


class BatchAction:
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    VERIFY = "VERIFY"

    ALL = (APPROVE, REJECT, VERIFY)


def decide_status_transition(current: MemberAddress, patch: dict) -> StatusDecision:
    """
    Status after applying `patch` to `current`.

    Changing the address text or the owner name forces PENDING; a text change
    also resets verification to UNVERIFIED. Nothing else in the patch (status
    included) moves either field.
    """
    address_changed = 'address' in patch and patch['address'] is not None \
        and patch['address'] != current.address
    owner_changed = 'owner_name' in patch and patch['owner_name'] is not None \
        and patch['owner_name'] != current.owner_name

    if address_changed:
        return StatusDecision(AddressStatus.PENDING, VerificationStatus.UNVERIFIED, address_changed=True)
    if owner_changed:
        return StatusDecision(AddressStatus.PENDING, current.verification_status)
    return StatusDecision(current.status, current.verification_status)


def _demote_primary(member_id, keep_id=None) -> None:
    qs = MemberAddress.objects.filter(member_id=member_id, is_primary=True)
    if keep_id:
        qs = qs.exclude(id=keep_id)
    qs.update(is_primary=False, updated_at=timezone.now())


class AddressLifecycle:
    """Member and admin operations on MemberAddress rows."""

    def __init__(self, matcher):
        self.matcher = matcher

    # -------------------------------------------------------------------------
    # Member operations
    # -------------------------------------------------------------------------

    def get_owned(self, member, address_id: UUID, for_update: bool = False) -> MemberAddress:
        qs = MemberAddress.objects.filter(id=address_id, member=member, is_active=True)
        if for_update:
            qs = qs.select_for_update()
        address = qs.first()
        if address is None:
            raise NotFoundError("Address not found")
        return address

    def _validate_text(self, text: str, selected_from_suggestions: bool) -> None:
        if not self.matcher.validate_address(text, selected_from_suggestions):
            raise ValidationError(INVALID_ADDRESS_MESSAGE)

    def create_address(self, member, payload: AddressIn) -> MemberAddress:
        text = payload.address.strip()
        self._validate_text(text, payload.selected_from_suggestions)

        with transaction.atomic():
            has_primary = MemberAddress.objects.filter(
                member=member, is_active=True, is_primary=True
            ).exists()
            make_primary = payload.is_primary or not has_primary
            if make_primary:
                _demote_primary(member.id)

            address = MemberAddress.objects.create(
                member=member,
                address=text,
                apartment_number=(payload.apartment_number or "").strip(),
                owner_name=(payload.owner_name or "").strip() or member.display_name,
                is_primary=make_primary,
            )

        logger.info(f"Member {member.id} registered address {address.id} (primary={make_primary})")
        return address

    def update_address(
        self,
        member,
        address_id: UUID,
        patch: dict,
        selected_from_suggestions: bool = False,
    ) -> MemberAddress:
        with transaction.atomic():
            address = self.get_owned(member, address_id, for_update=True)

            if patch.get('address') is not None:
                patch['address'] = patch['address'].strip()
                if patch['address'] != address.address:
                    self._validate_text(patch['address'], selected_from_suggestions)

            decision = decide_status_transition(address, patch)

            for field in ('address', 'apartment_number', 'owner_name'):
                if patch.get(field) is not None:
                    setattr(address, field, patch[field])

            if patch.get('is_primary') is True:
                _demote_primary(member.id, keep_id=address.id)
                address.is_primary = True
            elif patch.get('is_primary') is False and address.is_primary:
                successor_id = self._newest_other_active(address)
                if successor_id is None:
                    raise ValidationError("Your only address must stay primary")
                MemberAddress.objects.filter(id=successor_id).update(
                    is_primary=True, updated_at=timezone.now()
                )
                address.is_primary = False
                logger.info(f"Address {successor_id} promoted to primary in place of {address.id}")

            if decision.status != address.status:
                logger.info(f"Address {address.id} returned to {decision.status} after edit")
            address.status = decision.status
            address.verification_status = decision.verification_status
            if decision.address_changed:
                address.verification_notes = ""
                address.verification_date = None
                address.verified_by = None

            address.save()
        return address

    @staticmethod
    def _newest_other_active(address: MemberAddress) -> Optional[UUID]:
        return (
            MemberAddress.objects
            .filter(member_id=address.member_id, is_active=True)
            .exclude(id=address.id)
            .order_by('-created_at')
            .values_list('id', flat=True)
            .first()
        )

    def resolve_deletion(self, address: MemberAddress) -> DeletionPlan:
        """
        How to remove `address`: refused when it is the member's only active
        address, soft when visitors or check-ins reference it, hard otherwise.
        """
        newest_other = self._newest_other_active(address)
        if newest_other is None:
            raise ConflictError(
                "Cannot delete your only address. Please add another address first."
            )

        has_dependents = address.visitors.exists() or address.check_ins.exists()
        mode = DeletionMode.SOFT if has_dependents else DeletionMode.HARD

        promote_id = newest_other if address.is_primary else None
        return DeletionPlan(mode=mode, promote_id=promote_id)

    def delete_address(self, member, address_id: UUID) -> DeletionResult:
        with transaction.atomic():
            address = self.get_owned(member, address_id, for_update=True)
            plan = self.resolve_deletion(address)

            if plan.mode == DeletionMode.SOFT:
                address.is_active = False
                address.is_primary = False
                address.save(update_fields=['is_active', 'is_primary', 'updated_at'])
            else:
                address.delete()

            if plan.promote_id:
                MemberAddress.objects.filter(id=plan.promote_id).update(
                    is_primary=True, updated_at=timezone.now()
                )

        logger.info(
            f"Address {address_id} deleted ({plan.mode.lower()}), promoted={plan.promote_id}"
        )
        return DeletionResult(
            soft_deleted=plan.mode == DeletionMode.SOFT,
            promoted_id=plan.promote_id,
        )

    # -------------------------------------------------------------------------
    # Admin operations
    # -------------------------------------------------------------------------

    def set_status(self, address_id: UUID, status: str, admin) -> MemberAddress:
        if status not in (AddressStatus.APPROVED, AddressStatus.REJECTED):
            raise ValidationError(f"Invalid status '{status}'. Use APPROVED or REJECTED.")

        address = MemberAddress.objects.filter(id=address_id, is_active=True).first()
        if address is None:
            raise NotFoundError("Address not found")

        address.status = status
        address.save(update_fields=['status', 'updated_at'])
        logger.info(f"Admin {admin.id} set address {address.id} to {status}")
        return address

    def apply_batch_action(
        self,
        ids: Iterable[UUID],
        action: str,
        admin,
        verification_status: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        ids = list(dict.fromkeys(ids))
        if not ids:
            raise ValidationError("No addresses selected")
        if action not in BatchAction.ALL:
            raise ValidationError(f"Invalid action '{action}'. Use APPROVE, REJECT or VERIFY.")

        qs = MemberAddress.objects.filter(id__in=ids, is_active=True)
        now = timezone.now()

        if action == BatchAction.VERIFY:
            if verification_status not in VerificationStatus.values:
                raise ValidationError("A valid verification_status is required for VERIFY")
            updated = qs.update(
                verification_status=verification_status,
                verification_notes=notes or "",
                verification_date=now,
                verified_by=admin,
                updated_at=now,
            )
        else:
            status = AddressStatus.APPROVED if action == BatchAction.APPROVE else AddressStatus.REJECTED
            updated = qs.update(status=status, updated_at=now)

        logger.info(f"Admin {admin.id} applied {action} to {updated}/{len(ids)} address(es)")
        return updated

    def build_verification_report(self, address: MemberAddress) -> VerificationReport:
        """Check the stored text against the geocoder's best match."""
        try:
            results = self.matcher.geocoder.search(address.address, limit=1)
        except UpstreamError as e:
            logger.warning(f"Verification of address {address.id} needs manual review: {e}")
            return VerificationReport(
                verification_status=VerificationStatus.NEEDS_REVIEW,
                original_address=address.address,
                verification_notes=UPSTREAM_FAILURE_NOTE,
            )

        if not results:
            return VerificationReport(
                verification_status=VerificationStatus.NEEDS_REVIEW,
                original_address=address.address,
                verification_notes=NO_MATCH_NOTE,
            )

        best = results[0]
        essential = bool(
            (best.road and (best.place or best.state)) or (best.house_number and best.road)
        )
        return VerificationReport(
            verification_status=VerificationStatus.VERIFIED if essential else VerificationStatus.NEEDS_REVIEW,
            original_address=address.address,
            components={
                'street_number': best.house_number,
                'street': best.road,
                'city': best.place,
                'state': best.state,
                'postal_code': best.postcode,
                'country': best.country,
            },
            standardized_address=best.display_name or best.full_address,
            latitude=best.latitude,
            longitude=best.longitude,
            verification_notes=VERIFIED_NOTE if essential else INCOMPLETE_MATCH_NOTE,
        )

    def set_verification(self, address_id: UUID, status: str, notes: str, admin) -> MemberAddress:
        if status not in VerificationStatus.values:
            raise ValidationError(f"Invalid verification status '{status}'")

        address = MemberAddress.objects.filter(id=address_id).first()
        if address is None:
            raise NotFoundError("Address not found")

        address.verification_status = status
        address.verification_notes = notes or ""
        address.verification_date = timezone.now()
        address.verified_by = admin
        address.save()
        return address


# =============================================================================
# Queries
# =============================================================================

MEMBER_SORT_FIELDS = {
    'address': 'address',
    'created': 'created_at',
    'status': 'status',
}


def list_member_addresses(
    member,
    status: Optional[str] = None,
    sort: Optional[str] = None,
    order: str = 'desc',
    include_inactive: bool = False,
) -> List[MemberAddress]:
    qs = MemberAddress.objects.filter(member=member)
    if not include_inactive:
        qs = qs.filter(is_active=True)
    if status:
        qs = qs.filter(status=status)

    if sort in MEMBER_SORT_FIELDS:
        field = MEMBER_SORT_FIELDS[sort]
        qs = qs.order_by(field if order == 'asc' else f"-{field}")

    return list(qs)


def list_addresses_for_review(
    status: Optional[str] = AddressStatus.PENDING,
    member_id: Optional[UUID] = None,
    verification_status: Optional[str] = None,
) -> List[MemberAddress]:
    qs = MemberAddress.objects.filter(is_active=True).select_related('member')
    if status:
        qs = qs.filter(status=status)
    if member_id:
        qs = qs.filter(member_id=member_id)
    if verification_status:
        qs = qs.filter(verification_status=verification_status)
    return list(qs.order_by('created_at'))


def search_approved_addresses(query: str, limit: int = 10) -> List[MemberAddress]:
    """Case-insensitive match over approved, active addresses."""
    return list(
        MemberAddress.objects
        .filter(status=AddressStatus.APPROVED, is_active=True)
        .filter(Q(address__icontains=query) | Q(owner_name__icontains=query))
        .select_related('member')
        .order_by('address')[:limit]
    )
