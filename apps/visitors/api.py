"""
Visitor API endpoints.

Members authorize visitors for their approved addresses; guards look up
addresses, verify access codes and record check-ins.
"""
from dataclasses import asdict
from typing import List, Optional
from uuid import UUID

from django.http import HttpRequest
from ninja import Query, Router
from ninja.errors import HttpError

from apps.addresses.models import MemberAddress
from apps.core.exceptions import DomainError
from apps.geocoding.matcher import get_matcher
from apps.governance.audit_service import log_action, AuditAction
from apps.identity.decorators import has_permission
from apps.identity.permissions import Permissions, get_user_permissions
from .access_codes import AccessCodeManager
from .bulk_service import BulkVisitorActionCoordinator
from .dtos import (
    BulkActionIn,
    BulkActionOut,
    BulkOutcome,
    CheckInFilters,
    CheckInIn,
    CheckInOut,
    CheckInPageOut,
    CodeOut,
    CodeVerifyIn,
    CodeVerifyOut,
    GuardAddressDetailOut,
    GuardLookupOut,
    InactivateIn,
    VisitorDeleteOut,
    VisitorIn,
    VisitorOut,
    VisitorPatchIn,
)
from .services import (
    check_in_visitor,
    create_visitor,
    delete_visitor,
    get_address_details,
    inactivate_visitor,
    list_check_ins,
    list_visitors,
    lookup_addresses,
    MAX_PAGE_SIZE,
    update_visitor,
)

member_router = Router(tags=["Member Visitors"])
guard_router = Router(tags=["Guard"])
check_in_router = Router(tags=["Check-Ins"])

BULK_STATUS_CODES = {
    BulkOutcome.SUCCESS: 200,
    BulkOutcome.PARTIAL_SUCCESS: 207,
    BulkOutcome.CONFLICT: 409,
}


def _bulk_body(result) -> dict:
    body = asdict(result)
    body["message"] = result.message
    return body


# =============================================================================
# Member endpoints
# =============================================================================

@member_router.get("", response=List[VisitorOut], auth=None)
@has_permission(Permissions.VISITORS_MANAGE_OWN)
def list_my_visitors(
    request: HttpRequest,
    search: Optional[str] = None,
    status: str = "all",
    address_id: Optional[UUID] = None,
    sort: Optional[str] = None,
    order: str = "desc",
):
    """
    List the caller's visitors.

    Query Parameters:
    - search: name fragment or exact access code
    - status: active, expired, inactive or all
    - sort: name, created or expires
    """
    return list_visitors(
        request.user, search=search, status=status, address_id=address_id, sort=sort, order=order
    )


@member_router.post("", response={201: VisitorOut}, auth=None)
@has_permission(Permissions.VISITORS_MANAGE_OWN)
def create_my_visitor(request: HttpRequest, payload: VisitorIn):
    try:
        visitor = create_visitor(request.user, payload)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.CREATE_VISITOR,
        target_type="AllowedVisitor",
        target_id=visitor.id,
        target_label=visitor.display_name,
        performed_by=request.user,
        context={"address_id": str(visitor.address_id), "code_only": bool(visitor.access_code)},
    )
    return 201, visitor


@member_router.get("/code", response=CodeOut, auth=None)
@has_permission(Permissions.VISITORS_MANAGE_OWN)
def preview_access_code(request: HttpRequest):
    """Mint a fresh six-digit code without saving it."""
    return {"access_code": AccessCodeManager.generate_code()}


@member_router.post("/code", response=CodeVerifyOut, auth=None)
@has_permission(Permissions.VISITORS_MANAGE_OWN)
def verify_my_access_code(request: HttpRequest, payload: CodeVerifyIn):
    """Check a code against one of the caller's addresses."""
    if not MemberAddress.objects.filter(id=payload.address_id, member=request.user).exists():
        raise HttpError(404, "Address not found")

    visitor = AccessCodeManager().verify(payload.access_code, payload.address_id)
    return {"valid": visitor is not None, "visitor": visitor}


@member_router.post("/inactivate", response=VisitorOut, auth=None)
@has_permission(Permissions.VISITORS_MANAGE_OWN)
def inactivate_my_visitor(request: HttpRequest, payload: InactivateIn):
    try:
        visitor = inactivate_visitor(request.user, payload.visitor_id)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.INACTIVATE_VISITOR,
        target_type="AllowedVisitor",
        target_id=visitor.id,
        target_label=visitor.display_name,
        performed_by=request.user,
    )
    return visitor


@member_router.post("/bulk", response={200: BulkActionOut, 207: BulkActionOut, 409: BulkActionOut}, auth=None)
@has_permission(Permissions.VISITORS_MANAGE_OWN)
def bulk_visitor_action(request: HttpRequest, payload: BulkActionIn):
    """
    Extend, revoke or delete several visitors.

    Delete answers 207 when some visitors were kept for their check-in
    history and 409 when all were; blocked_ids lists them for a follow-up
    revoke.
    """
    try:
        result = BulkVisitorActionCoordinator().apply(
            payload.action, payload.visitor_ids, request.user.id, expires_at=payload.expires_at
        )
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.BULK_VISITOR_ACTION,
        target_type="AllowedVisitor",
        target_id=None,
        target_label=f"{result.action} x{len(payload.visitor_ids)}",
        performed_by=request.user,
        context={
            "action": result.action,
            "outcome": result.outcome,
            "affected_ids": [str(i) for i in result.affected_ids],
            "blocked_ids": [str(i) for i in result.blocked_ids],
        },
    )
    return BULK_STATUS_CODES[result.outcome], _bulk_body(result)


@member_router.put("/{visitor_id}", response=VisitorOut, auth=None)
@has_permission(Permissions.VISITORS_MANAGE_OWN)
def update_my_visitor(request: HttpRequest, visitor_id: UUID, payload: VisitorPatchIn):
    try:
        visitor = update_visitor(request.user, visitor_id, payload.dict(exclude_unset=True))
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.UPDATE_VISITOR,
        target_type="AllowedVisitor",
        target_id=visitor.id,
        target_label=visitor.display_name,
        performed_by=request.user,
    )
    return visitor


@member_router.delete("/{visitor_id}", response=VisitorDeleteOut, auth=None)
@has_permission(Permissions.VISITORS_MANAGE_OWN)
def delete_my_visitor(request: HttpRequest, visitor_id: UUID):
    try:
        soft_deleted = delete_visitor(request.user, visitor_id)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.DELETE_VISITOR,
        target_type="AllowedVisitor",
        target_id=visitor_id,
        performed_by=request.user,
        context={"soft_deleted": soft_deleted},
    )
    message = (
        "Visitor has check-in history and was deactivated instead of deleted."
        if soft_deleted else "Visitor deleted."
    )
    return {"success": True, "soft_deleted": soft_deleted, "message": message}


# =============================================================================
# Guard endpoints
# =============================================================================

@guard_router.get("/lookup", response=GuardLookupOut, auth=None)
@has_permission(Permissions.VISITORS_CHECK_IN)
def guard_lookup(request: HttpRequest, q: str = "", include_unregistered: bool = False):
    """
    Find registered addresses by text, with map suggestions for addresses
    that are not registered.
    """
    try:
        result = lookup_addresses(q, get_matcher(), include_unregistered=include_unregistered)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    return {
        "registered": result.registered,
        "unregistered": [asdict(s) for s in result.unregistered],
    }


@guard_router.get("/addresses/{address_id}", response=GuardAddressDetailOut, auth=None)
@has_permission(Permissions.VISITORS_CHECK_IN)
def guard_address_details(request: HttpRequest, address_id: UUID):
    try:
        address, visitors = get_address_details(address_id)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))
    return {"address": address, "visitors": visitors}


@guard_router.post("/visitors/verify-code", response=VisitorOut, auth=None)
@has_permission(Permissions.VISITORS_CHECK_IN)
def guard_verify_code(request: HttpRequest, payload: CodeVerifyIn):
    visitor = AccessCodeManager().verify(payload.access_code, payload.address_id)
    if visitor is None:
        raise HttpError(404, "Invalid or expired access code")
    return visitor


@guard_router.post("/visitors/check-in", response={201: CheckInOut}, auth=None)
@has_permission(Permissions.VISITORS_CHECK_IN)
def guard_check_in(request: HttpRequest, payload: CheckInIn):
    try:
        check_in = check_in_visitor(request.user, payload)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.CHECK_IN_VISITOR,
        target_type="VisitorCheckIn",
        target_id=check_in.id,
        target_label=f"{check_in.first_name} {check_in.last_name}",
        performed_by=request.user,
        context={"entry_method": check_in.entry_method},
    )
    return 201, check_in


# =============================================================================
# Check-in log
# =============================================================================

@check_in_router.get("", response=CheckInPageOut, auth=None)
@has_permission(Permissions.VISITORS_CHECK_IN)
def list_check_in_log(request: HttpRequest, filters: CheckInFilters = Query(...)):
    """
    Paged check-in log. Guards see only the check-ins they recorded.
    """
    can_view_all = Permissions.VISITORS_VIEW_ALL_CHECK_INS in get_user_permissions(request.user)
    items, total = list_check_ins(request.user, can_view_all, filters)
    return {
        "items": items,
        "total": total,
        "page": max(1, filters.page),
        "page_size": max(1, min(filters.page_size, MAX_PAGE_SIZE)),
    }
