"""Services for Identity app."""
import logging
from typing import List, Optional

from django.db import transaction

from apps.core.exceptions import NotFoundError, ValidationError
from apps.core.strategies import try_in_order
from .models import IdentityMapping, User, UserRole, UserStatus, mint_local_id
from .dtos import FederatedIdentity, UserCreate, UserDTO
from .permissions import get_user_permissions

logger = logging.getLogger(__name__)


def to_user_dto(user: User) -> UserDTO:
    return UserDTO(
        id=user.id,
        username=user.username,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        status=user.status,
        is_active=user.is_active,
        permissions=get_user_permissions(user),
    )


def get_user_dto(user_id) -> Optional[UserDTO]:
    try:
        return to_user_dto(User.objects.get(id=user_id))
    except User.DoesNotExist:
        return None


def create_user(payload: UserCreate, status: str = UserStatus.PENDING) -> UserDTO:
    user = User.objects.create_user(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        phone=payload.phone or "",
        status=status,
        is_active=True
    )
    logger.info(f"Created user {user.username} ({user.role}, {user.status})")
    return to_user_dto(user)


def list_users(status: Optional[str] = None, role: Optional[str] = None) -> List[UserDTO]:
    users = User.objects.filter(is_active=True)
    if status:
        users = users.filter(status=status)
    if role:
        users = users.filter(role=role)
    return [to_user_dto(u) for u in users]


def set_user_status(user_id, status: str) -> User:
    """Admin decision on a user account."""
    if status not in (UserStatus.APPROVED, UserStatus.REJECTED):
        raise ValidationError(f"Invalid status '{status}'. Use APPROVED or REJECTED.")

    try:
        user = User.objects.get(id=user_id, is_active=True)
    except User.DoesNotExist:
        raise NotFoundError("User not found")

    user.status = status
    user.save(update_fields=['status'])
    logger.info(f"User {user.id} set to {status}")
    return user


# =============================================================================
# Federated identity
# =============================================================================

def _find_by_mapping(identity: FederatedIdentity) -> Optional[User]:
    mapping = (
        IdentityMapping.objects
        .select_related('user')
        .filter(provider=identity.provider, provider_id=identity.provider_id)
        .first()
    )
    return mapping.user if mapping else None


def _link_by_email(identity: FederatedIdentity) -> Optional[User]:
    if not identity.email:
        return None
    user = User.objects.filter(email__iexact=identity.email, is_active=True).first()
    if not user:
        return None
    IdentityMapping.objects.get_or_create(
        provider=identity.provider,
        provider_id=identity.provider_id,
        defaults={'user': user},
    )
    return user


def _create_profile(identity: FederatedIdentity) -> User:
    first_name, _, last_name = (identity.name or "").strip().partition(" ")
    with transaction.atomic():
        user = User(
            id=mint_local_id(),
            username=identity.email or f"{identity.provider}_{identity.provider_id}",
            email=identity.email or "",
            first_name=first_name,
            last_name=last_name.strip(),
            role=UserRole.MEMBER,
            status=UserStatus.APPROVED,
        )
        user.set_unusable_password()
        user.save()
        IdentityMapping.objects.create(
            provider=identity.provider,
            provider_id=identity.provider_id,
            user=user,
        )
    return user


def sync_federated_user(provider: str, provider_id: str, email: str = None, name: str = None) -> User:
    """
    Resolve the local user for an external sign-in.

    Intended caller is the OAuth/OIDC provider callback, once it has verified
    the provider's token; no endpoint in this project wires one up yet.

    Existing mapping first, then a local account with the same email (the
    mapping is recorded), then a brand-new approved member. If another request
    created the mapping concurrently, the last lookup picks it up.
    """
    identity = FederatedIdentity(provider=provider, provider_id=provider_id, email=email, name=name)

    user = try_in_order([
        ("existing mapping", _find_by_mapping),
        ("matching email", _link_by_email),
        ("new profile", _create_profile),
        ("concurrent mapping", _find_by_mapping),
    ], identity)

    if user.status == UserStatus.PENDING:
        user.status = UserStatus.APPROVED
        user.save(update_fields=['status'])
        logger.info(f"Auto-approved federated user {user.id}")

    return user
