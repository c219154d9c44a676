"""
Centralized audit logging service.

Use log_action() to record any critical mutation. It never raises, so a
logging failure will never break the calling request.

Usage:
    from apps.governance.audit_service import log_action, AuditAction

    log_action(
        action=AuditAction.DELETE_ADDRESS,
        target_type="MemberAddress",
        target_id=address.id,
        target_label=address.address,
        performed_by=request.user,
        context={"soft_deleted": True},
    )
"""
import logging
from uuid import UUID
from typing import List, Optional

from django.db import transaction

from .models import AuditLog

logger = logging.getLogger(__name__)


class AuditAction:
    """
    Canonical string constants for audit log actions.
    Prevents scattered string literals and typos across apps.
    """
    # ── Addresses ─────────────────────────────────────────────────────
    CREATE_ADDRESS = "CREATE_ADDRESS"
    UPDATE_ADDRESS = "UPDATE_ADDRESS"
    DELETE_ADDRESS = "DELETE_ADDRESS"
    APPROVE_ADDRESS = "APPROVE_ADDRESS"
    REJECT_ADDRESS = "REJECT_ADDRESS"
    VERIFY_ADDRESS = "VERIFY_ADDRESS"

    # ── Visitors ──────────────────────────────────────────────────────
    CREATE_VISITOR = "CREATE_VISITOR"
    UPDATE_VISITOR = "UPDATE_VISITOR"
    DELETE_VISITOR = "DELETE_VISITOR"
    INACTIVATE_VISITOR = "INACTIVATE_VISITOR"
    BULK_VISITOR_ACTION = "BULK_VISITOR_ACTION"
    CHECK_IN_VISITOR = "CHECK_IN_VISITOR"

    # ── Identity ──────────────────────────────────────────────────────
    USER_LOGIN = "USER_LOGIN"
    CREATE_USER = "CREATE_USER"
    APPROVE_USER = "APPROVE_USER"
    REJECT_USER = "REJECT_USER"


def log_action(
    *,
    action: str,
    target_type: str,
    target_id: Optional[UUID],
    performed_by,
    target_label: str = "",
    context: Optional[dict] = None,
) -> Optional[AuditLog]:
    """
    Create an AuditLog entry for a critical action.

    Never raises: a DB or serialization error is logged and swallowed so
    audit logging never degrades the user-facing request.

    Args:
        action:        Action constant from AuditAction (e.g. "DELETE_ADDRESS").
        target_type:   Human-readable type of the object acted on (e.g. "MemberAddress").
        target_id:     Primary key of the object acted on, None for set operations.
        performed_by:  Django User instance or None.
        target_label:  Optional human-readable description of the object.
        context:       Optional dict of additional metadata to store as JSON.

    Returns:
        The created AuditLog instance, or None if creation failed.
    """
    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                action=action,
                target_type=target_type,
                target_id=target_id,
                target_label=target_label[:255],
                performed_by=performed_by,
                context=context or {},
            )
    except Exception:
        logger.exception(f"Failed to write audit log for {action} on {target_type} {target_id}")
        return None


MAX_LOG_PAGE = 500


def actor_name(log: AuditLog) -> Optional[str]:
    user = log.performed_by
    if user is None:
        return None
    return user.get_full_name() or user.email or user.username


def search_audit_logs(filters) -> List[AuditLog]:
    """Newest entries first, narrowed by AuditLogFilters and capped at MAX_LOG_PAGE."""
    qs = AuditLog.objects.select_related('performed_by')

    if filters.action:
        qs = qs.filter(action=filters.action)
    if filters.target_type:
        qs = qs.filter(target_type=filters.target_type)
    if filters.target_id:
        qs = qs.filter(target_id=filters.target_id)
    if filters.performed_by:
        qs = qs.filter(performed_by_id=filters.performed_by)
    if filters.start_date:
        qs = qs.filter(performed_at__date__gte=filters.start_date)
    if filters.end_date:
        qs = qs.filter(performed_at__date__lte=filters.end_date)

    limit = max(1, min(filters.limit, MAX_LOG_PAGE))
    return list(qs[:limit])
