"""Custom exception handling to enforce the API error envelope."""

import logging
from typing import Any

from django.conf import settings
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from authentication.services import BlocklistUnavailable
from .response import error_body

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGE = (
    "Authentication credentials were not provided or are invalid, or the token was revoked."
)
FORBIDDEN_MESSAGE = "You do not have permission to perform this action on this resource."


def _normalize_errors(payload: Any, field: str | None = None) -> list[Any]:
    """Flatten DRF's response.data into a list of ``{field, message}`` items."""

    if isinstance(payload, dict):
        if "detail" in payload and len(payload) == 1:
            return _normalize_errors(payload["detail"], field)
        errors: list[Any] = []
        for key, value in payload.items():
            name = key if field is None else f"{field}.{key}"
            errors.extend(_normalize_errors(value, name))
        return errors
    if isinstance(payload, list):
        errors = []
        for index, item in enumerate(payload):
            # Nested list payloads (e.g. per-tag errors) carry their index.
            name = field
            if isinstance(item, (dict, list)) and field is not None:
                name = f"{field}.{index}"
            errors.extend(_normalize_errors(item, name))
        return errors
    return [{"field": field, "message": str(payload)}]


def _first_message(payload: Any, default: str) -> str:
    errors = _normalize_errors(payload)
    if errors and errors[0]["field"] is None:
        return errors[0]["message"]
    return default


def custom_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap errors in ``{"success": false, "message": ..., "errors": [...]}``.

    - Uses DRF's default handler to produce the base response.
    - Validation failures list every offending field in ``errors``.
    - Anything DRF does not map becomes a generic 500 without internals.
    """

    # Blocklist connectivity errors are security-critical and fail closed.
    if isinstance(exc, BlocklistUnavailable):
        return Response(
            error_body("Authentication service unavailable (blocklist)."),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    if isinstance(exc, DatabaseError):
        logger.exception("Database error while handling %s", _view_name(context), exc_info=exc)
        return Response(error_body("Server error"), status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    response = drf_exception_handler(exc, context)

    if response is None:
        logger.exception("Unhandled error while handling %s", _view_name(context), exc_info=exc)
        return Response(error_body("Server error"), status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    # AuthenticationFailed/NotAuthenticated always produce 401, even for views
    # whose authenticators do not define an authenticate header.
    if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
        response.status_code = status.HTTP_401_UNAUTHORIZED

    base_errors = response.data
    if response.status_code == status.HTTP_401_UNAUTHORIZED:
        if getattr(settings, "DEBUG_AUTH_ERRORS", False):
            # Surface the specific reason (e.g. "Token has expired").
            body = error_body(_first_message(base_errors, AUTH_ERROR_MESSAGE))
        else:
            body = error_body(AUTH_ERROR_MESSAGE)
    elif response.status_code == status.HTTP_403_FORBIDDEN:
        body = error_body(_first_message(base_errors, FORBIDDEN_MESSAGE))
    elif isinstance(exc, ValidationError):
        errors = _normalize_errors(base_errors)
        body = error_body(_first_message(base_errors, "Validation failed"), errors)
    else:
        body = error_body(_first_message(base_errors, "Request failed"))

    response.data = body
    return response


def _view_name(context: dict[str, Any]) -> str:
    view = context.get("view")
    return type(view).__name__ if view is not None else "request"
