"""DTOs for Governance app."""
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

from ninja import Schema

from .audit_service import actor_name


class AuditLogOut(Schema):
    id: UUID
    action: str
    target_type: str
    target_id: Optional[UUID] = None
    target_label: str
    performed_by_id: Optional[UUID] = None
    performed_by_name: Optional[str] = None
    performed_at: datetime
    context: Any

    @staticmethod
    def resolve_performed_by_name(obj):
        return actor_name(obj)


class AuditLogFilters(Schema):
    action: Optional[str] = None
    target_type: Optional[str] = None
    target_id: Optional[UUID] = None
    performed_by: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    limit: int = 100
