"""DTOs for Addresses app."""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from ninja import Schema
from .models import AddressStatus, VerificationStatus


class DeletionMode:
    HARD = "HARD"
    SOFT = "SOFT"


@dataclass(frozen=True)
class StatusDecision:
    status: str
    verification_status: str
    address_changed: bool = False


@dataclass(frozen=True)
class DeletionPlan:
    mode: str
    promote_id: Optional[UUID] = None


@dataclass(frozen=True)
class DeletionResult:
    soft_deleted: bool
    promoted_id: Optional[UUID] = None


class AddressIn(Schema):
    address: str
    apartment_number: Optional[str] = ""
    owner_name: Optional[str] = None
    is_primary: bool = False
    # True when the text was picked from the address-lookup suggestions
    selected_from_suggestions: bool = False


class AddressPatchIn(Schema):
    address: Optional[str] = None
    apartment_number: Optional[str] = None
    owner_name: Optional[str] = None
    is_primary: Optional[bool] = None
    selected_from_suggestions: bool = False


class AddressOut(Schema):
    id: UUID
    member_id: UUID
    address: str
    apartment_number: str
    owner_name: str
    status: str
    is_primary: bool
    is_active: bool
    verification_status: str
    verification_notes: str
    verification_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class AdminAddressOut(AddressOut):
    member_email: Optional[str] = None
    member_name: Optional[str] = None

    @staticmethod
    def resolve_member_email(obj):
        return obj.member.email

    @staticmethod
    def resolve_member_name(obj):
        return obj.member.display_name


class DeletionOut(Schema):
    success: bool
    soft_deleted: bool
    promoted_id: Optional[UUID] = None
    message: str


class AddressStatusIn(Schema):
    status: AddressStatus


class BatchActionIn(Schema):
    address_ids: List[UUID]
    action: str
    verification_status: Optional[VerificationStatus] = None
    verification_notes: Optional[str] = None


class BatchActionOut(Schema):
    success: bool
    updated: int


class VerificationIn(Schema):
    verification_status: VerificationStatus
    verification_notes: Optional[str] = ""


class VerificationReportOut(Schema):
    verification_status: str
    original_address: str
    components: dict
    standardized_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    verification_notes: Optional[str] = None
