import logging
from django.utils.deprecation import MiddlewareMixin

from .jwt_auth import get_user_id_from_token
from .models import User

logger = logging.getLogger(__name__)


class JWTCookieAuthenticationMiddleware(MiddlewareMixin):
    """
    Resolves request.user from the access_token cookie.

    Runs after AuthenticationMiddleware; a session login wins, so the
    cookie is only consulted for anonymous requests.
    """

    def process_request(self, request):
        if hasattr(request, 'user') and request.user.is_authenticated:
            return

        token = request.COOKIES.get('access_token')
        if not token:
            return

        user_id = get_user_id_from_token(token)
        if not user_id:
            logger.debug("Ignoring invalid or expired access token")
            return

        try:
            request.user = User.objects.get(id=user_id, is_active=True)
        except User.DoesNotExist:
            logger.warning(f"Access token references unknown or inactive user {user_id}")
