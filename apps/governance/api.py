"""
Governance API endpoints: read access to the audit trail for admins.
"""
from typing import List
from uuid import UUID

from django.http import HttpRequest
from django.shortcuts import get_object_or_404
from ninja import Query, Router

from apps.identity.decorators import has_permission
from apps.identity.permissions import Permissions
from .audit_service import search_audit_logs
from .dtos import AuditLogFilters, AuditLogOut
from .models import AuditLog

router = Router(tags=["Governance"])


@router.get("/audit-logs", response=List[AuditLogOut], auth=None)
@has_permission(Permissions.GOVERNANCE_VIEW_AUDIT)
def list_audit_logs(request: HttpRequest, filters: AuditLogFilters = Query(...)):
    """
    List audit log entries, newest first.

    Query Parameters:
    - action, target_type, target_id: exact matches
    - performed_by: actor user ID
    - start_date / end_date: inclusive day range
    - limit: default 100, at most 500
    """
    return search_audit_logs(filters)


@router.get("/audit-logs/{log_id}", response=AuditLogOut, auth=None)
@has_permission(Permissions.GOVERNANCE_VIEW_AUDIT)
def get_audit_log(request: HttpRequest, log_id: UUID):
    return get_object_or_404(AuditLog.objects.select_related('performed_by'), id=log_id)
