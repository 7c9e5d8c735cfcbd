"""Resolve the Bearer access token on every request into ``request.user``."""

from django.contrib.auth.models import AnonymousUser
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed

from authentication.models import User
from authentication.services import BlocklistUnavailable, TokenService
from .exceptions import AUTH_ERROR_MESSAGE
from .response import error_body


def bearer_token(request) -> str | None:
    """Return the token from an ``Authorization: Bearer ...`` header, if any."""
    scheme, _, token = request.META.get("HTTP_AUTHORIZATION", "").partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


class JWTAuthMiddleware(MiddlewareMixin):
    """Anonymous without a header; 401 for a bad, revoked or orphaned token."""

    def process_request(self, request):  # type: ignore[override]
        request.user = AnonymousUser()
        token = bearer_token(request)
        if token is None:
            return None

        try:
            claims = TokenService.verify(token, expected_type="access")
        except AuthenticationFailed:
            return _unauthorized()
        except BlocklistUnavailable:
            return JsonResponse(
                error_body("Authentication service unavailable (blocklist)."),
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        user = User.objects.get_active(claims["sub"])
        if user is None:
            return _unauthorized()
        request.user = user
        return None


def _unauthorized() -> JsonResponse:
    return JsonResponse(error_body(AUTH_ERROR_MESSAGE), status=status.HTTP_401_UNAUTHORIZED)


__all__ = ["JWTAuthMiddleware", "bearer_token"]
