"""
Identity API endpoints with JWT authentication.

Provides login, logout, token refresh, registration and user approval.
Uses JWT tokens in httpOnly cookies; a Django session login is accepted too.
"""
import os
from typing import List, Optional
from uuid import UUID
from ninja import Router, Schema
from django.conf import settings
from django.http import HttpRequest, HttpResponse
from ninja.errors import HttpError
from django.contrib.auth import authenticate
from django.contrib.auth.signals import user_logged_in

from apps.core.exceptions import DomainError
from apps.governance.audit_service import log_action, AuditAction
from .decorators import has_permission
from .models import User, UserRole, UserStatus
from .dtos import UserDTO, UserCreate, UserStatusIn
from .services import create_user, get_user_dto, list_users, set_user_status, to_user_dto
from .permissions import Permissions
from .jwt_auth import (
    create_access_token,
    create_token_pair,
    decode_token,
    get_access_token_cookie_settings,
    get_refresh_token_cookie_settings,
    get_user_id_from_token,
)

router = Router(tags=["Identity"])


# =============================================================================
# Schemas
# =============================================================================

class LoginSchema(Schema):
    username: str
    password: str


class RegisterSchema(Schema):
    username: str
    email: str
    password: str
    first_name: str
    last_name: str
    phone: Optional[str] = None


class TokenResponse(Schema):
    success: bool
    user: Optional[UserDTO] = None
    message: Optional[str] = None


# =============================================================================
# Helper Functions
# =============================================================================

def get_current_user(request: HttpRequest) -> Optional[User]:
    """
    Resolve the caller from the session, falling back to the access_token cookie.
    """
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return user

    access_token = request.COOKIES.get('access_token')
    if not access_token:
        return None

    user_id = get_user_id_from_token(access_token)
    if not user_id:
        return None

    try:
        return User.objects.get(id=user_id, is_active=True)
    except User.DoesNotExist:
        return None


def require_auth(request: HttpRequest) -> User:
    """
    Require authentication. Raises 401 if not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HttpError(401, "Authentication required")
    return user


def is_production() -> bool:
    """Check if running in production (Lambda or DEBUG=False)."""
    return bool(os.getenv('AWS_LAMBDA_FUNCTION_NAME')) or not settings.DEBUG


def _json_response(body: TokenResponse) -> HttpResponse:
    return HttpResponse(body.model_dump_json(), content_type='application/json')


# =============================================================================
# Auth Endpoints
# =============================================================================

@router.post("/login", response=TokenResponse, auth=None)
def login_user(request: HttpRequest, payload: LoginSchema):
    """
    Authenticate user and set JWT tokens in httpOnly cookies.
    """
    user = authenticate(request, username=payload.username, password=payload.password)

    if user is None:
        raise HttpError(401, "Invalid username or password")

    if user.status == UserStatus.REJECTED:
        raise HttpError(403, "Account has been rejected")

    access_token, refresh_token = create_token_pair(user.id, user.role)
    user_logged_in.send(sender=user.__class__, request=request, user=user)

    response = _json_response(TokenResponse(success=True, user=to_user_dto(user)))

    prod = is_production()
    response.set_cookie('access_token', access_token, **get_access_token_cookie_settings(prod))
    response.set_cookie('refresh_token', refresh_token, **get_refresh_token_cookie_settings(prod))
    return response


@router.post("/logout", response=TokenResponse, auth=None)
def logout_user(request: HttpRequest):
    """
    Clear authentication cookies.
    """
    response = _json_response(TokenResponse(success=True, message="Logged out"))
    response.delete_cookie('access_token', path='/')
    response.delete_cookie('refresh_token', path='/')
    return response


@router.post("/refresh", response=TokenResponse, auth=None)
def refresh_token(request: HttpRequest):
    """
    Issue a new access token from the refresh token cookie.
    """
    refresh_token_value = request.COOKIES.get('refresh_token')
    if not refresh_token_value:
        raise HttpError(401, "No refresh token")

    payload = decode_token(refresh_token_value)
    if not payload or payload.get('type') != 'refresh':
        raise HttpError(401, "Invalid refresh token")

    try:
        user = User.objects.get(id=UUID(payload['sub']), is_active=True)
    except (ValueError, User.DoesNotExist):
        raise HttpError(401, "Invalid refresh token")

    response = _json_response(TokenResponse(success=True, user=to_user_dto(user)))
    response.set_cookie(
        'access_token',
        create_access_token(user.id, user.role),
        **get_access_token_cookie_settings(is_production()),
    )
    return response


@router.post("/register", response={201: UserDTO}, auth=None)
def register(request: HttpRequest, payload: RegisterSchema):
    """
    Self-service member sign-up. Accounts start PENDING until an admin approves.
    """
    if User.objects.filter(username=payload.username).exists():
        raise HttpError(409, "Username already taken")

    user = create_user(UserCreate(**payload.dict(), role=UserRole.MEMBER))
    return 201, user


@router.get("/me", response=UserDTO, auth=None)
def get_me(request: HttpRequest):
    """
    Get current authenticated user's profile.
    """
    user = require_auth(request)
    return to_user_dto(user)


# =============================================================================
# User Management Endpoints
# =============================================================================

@router.get("/users", response=List[UserDTO], auth=None)
@has_permission(Permissions.IDENTITY_VIEW_USER)
def list_all_users(request: HttpRequest, status: Optional[str] = None, role: Optional[str] = None):
    """
    List users, optionally filtered by status (e.g. PENDING) and role.
    """
    return list_users(status=status, role=role)


@router.post("/users", response={201: UserDTO}, auth=None)
@has_permission(Permissions.IDENTITY_MANAGE_USER)
def create_staff_user(request: HttpRequest, payload: UserCreate):
    """
    Create an already-approved account (guards, admins).
    """
    if User.objects.filter(username=payload.username).exists():
        raise HttpError(409, "Username already taken")

    user = create_user(payload, status=UserStatus.APPROVED)
    log_action(
        action=AuditAction.CREATE_USER,
        target_type="User",
        target_id=user.id,
        target_label=user.username,
        performed_by=request.user,
        context={"role": user.role},
    )
    return 201, user


@router.post("/users/{user_id}/status", response=UserDTO, auth=None)
@has_permission(Permissions.IDENTITY_MANAGE_USER)
def update_user_status(request: HttpRequest, user_id: UUID, payload: UserStatusIn):
    """
    Approve or reject a user account.
    """
    try:
        user = set_user_status(user_id, payload.status)
    except DomainError as e:
        raise HttpError(e.status_code, str(e))

    log_action(
        action=AuditAction.APPROVE_USER if user.status == UserStatus.APPROVED else AuditAction.REJECT_USER,
        target_type="User",
        target_id=user.id,
        target_label=user.username,
        performed_by=request.user,
    )
    return get_user_dto(user.id)
