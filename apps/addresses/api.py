"""
Address API endpoints.

Members manage their own addresses; admins review, batch-approve and verify.
"""
from dataclasses import asdict
from typing import List, Optional
from uuid import UUID

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.exceptions import DomainError
from apps.geocoding.matcher import get_matcher
from apps.governance.audit_service import log_action, AuditAction
from apps.identity.decorators import has_permission
from apps.identity.permissions import Permissions
from .models import AddressStatus, MemberAddress
from .dtos import (
    AddressIn,
    AddressOut,
    AddressPatchIn,
    AddressStatusIn,
    AdminAddressOut,
    BatchActionIn,
    BatchActionOut,
    DeletionOut,
    VerificationIn,
    VerificationReportOut,
)
from .services import (
    AddressLifecycle,
    list_addresses_for_review,
    list_member_addresses,
)

member_router = Router(tags=["Member Addresses"])
admin_router = Router(tags=["Admin Addresses"])


def get_lifecycle() -> AddressLifecycle:
    return AddressLifecycle(get_matcher())


# =============================================================================
# Member endpoints
# =============================================================================

@member_router.get("", response=List[AddressOut], auth=None)
@has_permission(Permissions.ADDRESSES_MANAGE_OWN)
def list_my_addresses(
    request: HttpRequest,
    status: Optional[str] = None,
    sort: Optional[str] = None,
    order: str = "desc",
    include_inactive: bool = False,
):
    """
    List the caller's addresses.

    Query Parameters:
    - status: PENDING, APPROVED or REJECTED
    - sort: address, created or status (default: primary first, newest first)
    - order: asc or desc
    - include_inactive: include soft-deleted rows
    """
    return list_member_addresses(
        request.user,
        status=status,
        sort=sort,
        order=order,
        include_inactive=include_inactive,
    )


@member_router.post("", response={201: AddressOut}, auth=None)
@has_permission(Permissions.ADDRESSES_MANAGE_OWN)
def create_my_address(request: HttpRequest, payload: AddressIn):
    """
    Register a new address. It starts PENDING until an admin approves it.
    """
    try:
        address = get_lifecycle().create_address(request.user, payload)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.CREATE_ADDRESS,
        target_type="MemberAddress",
        target_id=address.id,
        target_label=address.full_label,
        performed_by=request.user,
    )
    return 201, address


@member_router.put("/{address_id}", response=AddressOut, auth=None)
@has_permission(Permissions.ADDRESSES_MANAGE_OWN)
def update_my_address(request: HttpRequest, address_id: UUID, payload: AddressPatchIn):
    """
    Edit an address. Changing the address text or owner name resets it to PENDING.
    """
    patch = payload.dict(exclude_unset=True)
    selected = patch.pop('selected_from_suggestions', False)

    try:
        address = get_lifecycle().update_address(request.user, address_id, patch, selected)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.UPDATE_ADDRESS,
        target_type="MemberAddress",
        target_id=address.id,
        target_label=address.full_label,
        performed_by=request.user,
        context={"fields": sorted(patch.keys()), "status": address.status},
    )
    return address


@member_router.delete("/{address_id}", response=DeletionOut, auth=None)
@has_permission(Permissions.ADDRESSES_MANAGE_OWN)
def delete_my_address(request: HttpRequest, address_id: UUID):
    """
    Delete an address. Addresses with visitors or check-in history are
    deactivated instead of removed.
    """
    try:
        result = get_lifecycle().delete_address(request.user, address_id)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.DELETE_ADDRESS,
        target_type="MemberAddress",
        target_id=address_id,
        performed_by=request.user,
        context={"soft_deleted": result.soft_deleted},
    )

    if result.soft_deleted:
        message = "Address has visitor history and was deactivated instead of deleted."
    else:
        message = "Address deleted."
    return {
        "success": True,
        "soft_deleted": result.soft_deleted,
        "promoted_id": result.promoted_id,
        "message": message,
    }


# =============================================================================
# Admin endpoints
# =============================================================================

@admin_router.get("", response=List[AdminAddressOut], auth=None)
@has_permission(Permissions.ADDRESSES_REVIEW)
def list_review_queue(
    request: HttpRequest,
    status: Optional[str] = "PENDING",
    member_id: Optional[UUID] = None,
    verification_status: Optional[str] = None,
):
    """
    List active addresses for review. Pass status=ALL to drop the status filter.
    """
    return list_addresses_for_review(
        status=None if status == "ALL" else status,
        member_id=member_id,
        verification_status=verification_status,
    )


@admin_router.put("/{address_id}", response=AdminAddressOut, auth=None)
@has_permission(Permissions.ADDRESSES_REVIEW)
def decide_address(request: HttpRequest, address_id: UUID, payload: AddressStatusIn):
    """
    Approve or reject a single address.
    """
    try:
        address = get_lifecycle().set_status(address_id, payload.status, request.user)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.APPROVE_ADDRESS if address.status == AddressStatus.APPROVED else AuditAction.REJECT_ADDRESS,
        target_type="MemberAddress",
        target_id=address.id,
        target_label=address.full_label,
        performed_by=request.user,
    )
    return address


@admin_router.post("/batch", response=BatchActionOut, auth=None)
@has_permission(Permissions.ADDRESSES_REVIEW)
def batch_update_addresses(request: HttpRequest, payload: BatchActionIn):
    """
    Apply APPROVE, REJECT or VERIFY to several addresses at once.
    """
    action = payload.action.upper()
    try:
        updated = get_lifecycle().apply_batch_action(
            payload.address_ids,
            action,
            request.user,
            verification_status=payload.verification_status,
            notes=payload.verification_notes,
        )
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    audit_action = {
        "APPROVE": AuditAction.APPROVE_ADDRESS,
        "REJECT": AuditAction.REJECT_ADDRESS,
        "VERIFY": AuditAction.VERIFY_ADDRESS,
    }[action]
    log_action(
        action=audit_action,
        target_type="MemberAddress",
        target_id=None,
        target_label=f"{updated} address(es)",
        performed_by=request.user,
        context={"address_ids": [str(i) for i in payload.address_ids], "batch": True},
    )
    return {"success": True, "updated": updated}


@admin_router.get("/{address_id}/verification", response=VerificationReportOut, auth=None)
@has_permission(Permissions.ADDRESSES_REVIEW)
def run_verification(request: HttpRequest, address_id: UUID):
    """
    Geocode the stored address and report whether it looks deliverable.
    Nothing is saved; use POST to record a decision.
    """
    address = MemberAddress.objects.filter(id=address_id).first()
    if address is None:
        raise HttpError(404, "Address not found")

    report = get_lifecycle().build_verification_report(address)
    return asdict(report)


@admin_router.post("/{address_id}/verification", response=AdminAddressOut, auth=None)
@has_permission(Permissions.ADDRESSES_REVIEW)
def record_verification(request: HttpRequest, address_id: UUID, payload: VerificationIn):
    """
    Record the verification outcome for an address.
    """
    try:
        address = get_lifecycle().set_verification(
            address_id, payload.verification_status, payload.verification_notes, request.user
        )
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.VERIFY_ADDRESS,
        target_type="MemberAddress",
        target_id=address.id,
        target_label=address.full_label,
        performed_by=request.user,
        context={"verification_status": address.verification_status},
    )
    return address
