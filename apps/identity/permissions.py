from typing import List, Dict
from .models import UserRole, User

# Define all available permissions here for reference
class Permissions:
    # Addresses
    ADDRESSES_MANAGE_OWN = "addresses.manage_own"
    ADDRESSES_REVIEW = "addresses.review"

    # Visitors
    VISITORS_MANAGE_OWN = "visitors.manage_own"
    VISITORS_CHECK_IN = "visitors.check_in"
    VISITORS_VIEW_ALL_CHECK_INS = "visitors.view_all_check_ins"

    # Identity
    IDENTITY_VIEW_USER = "identity.view_user"
    IDENTITY_MANAGE_USER = "identity.manage_user"

    # Governance
    GOVERNANCE_VIEW_AUDIT = "governance.view_audit"


# Static Role -> Permission Mapping
ROLE_PERMISSIONS: Dict[str, List[str]] = {
    UserRole.SYSTEM_ADMIN: [
        # Addresses
        Permissions.ADDRESSES_REVIEW,
        # Visitors - admins can work the gate too
        Permissions.VISITORS_CHECK_IN,
        Permissions.VISITORS_VIEW_ALL_CHECK_INS,
        # Identity
        Permissions.IDENTITY_VIEW_USER,
        Permissions.IDENTITY_MANAGE_USER,
        # Governance
        Permissions.GOVERNANCE_VIEW_AUDIT,
    ],
    UserRole.SECURITY_GUARD: [
        # Visitors - own check-ins only, enforced at the service level
        Permissions.VISITORS_CHECK_IN,
    ],
    UserRole.MEMBER: [
        Permissions.ADDRESSES_MANAGE_OWN,
        Permissions.VISITORS_MANAGE_OWN,
    ],
}

def get_user_permissions(user: User) -> List[str]:
    """
    Returns a list of permission strings for the given user based on their role.
    Pending and rejected accounts get nothing.
    """
    if not user or not user.is_active or not user.is_approved:
        return []

    return ROLE_PERMISSIONS.get(user.role, [])
