"""DTOs for Identity app."""
from dataclasses import dataclass
from uuid import UUID
from typing import Optional, List

from ninja import Schema
from .models import UserRole, UserStatus


@dataclass(frozen=True)
class UserDTO:
    id: UUID
    username: str
    email: str
    first_name: str
    last_name: str
    role: str
    status: str
    is_active: bool
    permissions: List[str]


@dataclass(frozen=True)
class FederatedIdentity:
    """Profile data handed over by an external sign-in provider."""
    provider: str
    provider_id: str
    email: Optional[str] = None
    name: Optional[str] = None


class UserCreate(Schema):
    username: str
    email: str
    password: str
    first_name: str
    last_name: str
    role: str = UserRole.MEMBER
    phone: Optional[str] = None


class UserStatusIn(Schema):
    status: UserStatus
