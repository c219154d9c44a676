"""DTOs for Visitors app."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from ninja import Schema
from .models import EntryMethod


class BulkAction:
    EXTEND = "extend"
    REVOKE = "revoke"
    DELETE = "delete"

    ALL = (EXTEND, REVOKE, DELETE)


class BulkOutcome:
    SUCCESS = "SUCCESS"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"
    CONFLICT = "CONFLICT"


@dataclass(frozen=True)
class BulkActionResult:
    """
    Outcome of a bulk visitor action.

    For delete, blocked_ids are the visitors kept because they have check-in
    history; callers revoke exactly that list.
    """
    action: str
    outcome: str
    affected_ids: List[UUID] = field(default_factory=list)
    deleted_ids: List[UUID] = field(default_factory=list)
    blocked_ids: List[UUID] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.outcome == BulkOutcome.CONFLICT:
            return (
                "None of the selected visitors could be deleted because they have "
                "check-in history. Revoke them instead."
            )
        if self.outcome == BulkOutcome.PARTIAL_SUCCESS:
            return (
                f"Deleted {len(self.deleted_ids)} visitor(s). {len(self.blocked_ids)} visitor(s) "
                "have check-in history and were not deleted."
            )
        return f"{self.action.capitalize()} applied to {len(self.affected_ids)} visitor(s)."


@dataclass(frozen=True)
class AddressLookupResult:
    registered: list
    unregistered: list


# =============================================================================
# Schemas
# =============================================================================

class VisitorIn(Schema):
    address_id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    generate_code: bool = False
    expires_at: Optional[datetime] = None
    expiration_option: Optional[str] = None
    custom_date: Optional[str] = None


class VisitorPatchIn(Schema):
    address_id: Optional[UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    expires_at: Optional[datetime] = None
    expiration_option: Optional[str] = None
    custom_date: Optional[str] = None
    is_active: Optional[bool] = None


class VisitorOut(Schema):
    id: UUID
    address_id: UUID
    address: str
    first_name: str
    last_name: str
    access_code: str
    expires_at: datetime
    is_active: bool
    last_used: Optional[datetime] = None
    created_at: datetime

    @staticmethod
    def resolve_address(obj):
        return obj.address.full_label


class VisitorDeleteOut(Schema):
    success: bool
    soft_deleted: bool
    message: str


class CodeOut(Schema):
    access_code: str


class CodeVerifyIn(Schema):
    address_id: UUID
    access_code: str


class CodeVerifyOut(Schema):
    valid: bool
    visitor: Optional[VisitorOut] = None


class BulkActionIn(Schema):
    action: str
    visitor_ids: List[UUID]
    expires_at: Optional[datetime] = None


class BulkActionOut(Schema):
    action: str
    outcome: str
    message: str
    affected_ids: List[UUID]
    deleted_ids: List[UUID]
    blocked_ids: List[UUID]


class CheckInIn(Schema):
    address_id: Optional[UUID] = None
    visitor_id: Optional[UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    unregistered_address: Optional[str] = None
    entry_method: EntryMethod = EntryMethod.NAME_VERIFICATION
    notes: Optional[str] = ""


class CheckInOut(Schema):
    id: UUID
    visitor_id: Optional[UUID] = None
    address_id: Optional[UUID] = None
    address: Optional[str] = None
    checked_in_by_id: UUID
    checked_in_by_name: str
    check_in_time: datetime
    entry_method: str
    notes: str
    first_name: str
    last_name: str
    unregistered_address: str

    @staticmethod
    def resolve_address(obj):
        return obj.address.full_label if obj.address_id else obj.unregistered_address

    @staticmethod
    def resolve_checked_in_by_name(obj):
        return obj.checked_in_by.display_name


class CheckInPageOut(Schema):
    items: List[CheckInOut]
    total: int
    page: int
    page_size: int


class CheckInFilters(Schema):
    visitor_id: Optional[UUID] = None
    address_id: Optional[UUID] = None
    guard_id: Optional[UUID] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = 1
    page_size: int = 25


class InactivateIn(Schema):
    visitor_id: UUID


class GuardAddressOut(Schema):
    id: UUID
    address: str
    apartment_number: str
    owner_name: str
    phone: Optional[str] = None

    @staticmethod
    def resolve_phone(obj):
        return obj.member.phone or None


class SuggestionOut(Schema):
    full_address: str
    street: str
    city: str
    state: str
    zip_code: str


class GuardLookupOut(Schema):
    registered: List[GuardAddressOut]
    unregistered: List[SuggestionOut]


class GuardAddressDetailOut(Schema):
    address: GuardAddressOut
    visitors: List[VisitorOut]
