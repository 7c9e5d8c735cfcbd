"""DRF authenticator backed by the user that ``JWTAuthMiddleware`` attached.

Bearer tokens are decoded and checked against the blocklist once, in the
middleware. DRF views still need an authentication class so that
``IsAuthenticated`` failures map to 401 instead of 403; this one only reads
the user back off the underlying Django request.
"""

from typing import Any, Optional, Tuple

from rest_framework.authentication import BaseAuthentication


class MiddlewareUserAuthentication(BaseAuthentication):
    """Surface ``request._request.user`` to DRF without re-parsing credentials."""

    keyword = "Bearer"

    def authenticate(self, request) -> Optional[Tuple[Any, None]]:
        django_request = getattr(request, "_request", None)
        user = getattr(django_request, "user", None)
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return user, None

    def authenticate_header(self, request) -> str:
        return self.keyword


__all__ = ["MiddlewareUserAuthentication"]
