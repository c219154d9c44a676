import logging
from functools import wraps
from typing import Callable

from ninja.errors import HttpError
from django.http import HttpRequest

from .models import UserStatus
from .permissions import get_user_permissions

logger = logging.getLogger(__name__)


def has_permission(*required_perms: str):
    """
    Guard a Django Ninja endpoint behind one or more permissions.

    The caller needs at least one of `required_perms`. Anonymous callers get
    401; accounts still awaiting admin approval and callers lacking the
    permission get 403.

    Usage:
        @router.get("/some-path", auth=None)
        @has_permission(Permissions.VISITORS_CHECK_IN)
        def my_view(request):
            ...
    """
    def decorator(view_func: Callable):
        @wraps(view_func)
        def wrapper(request: HttpRequest, *args, **kwargs):
            user = request.user
            if not user.is_authenticated:
                raise HttpError(401, "Unauthorized")

            if user.status == UserStatus.PENDING:
                raise HttpError(403, "Account pending approval")

            perms = get_user_permissions(user)
            if not any(perm in perms for perm in required_perms):
                logger.warning(
                    f"User {user.id} ({user.role}) denied {view_func.__name__}: "
                    f"needs {', '.join(required_perms)}"
                )
                raise HttpError(403, "Permission denied")

            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator
