"""Response helpers and base classes for consistent API envelopes."""

from typing import Any

from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import GenericViewSet


def api_response(payload: dict[str, Any] | None = None, status: int = 200, message: str | None = None) -> Response:
    """Return payload merged into the standard success envelope.

    Every successful JSON response carries ``{"success": true, ...}``; an
    optional human-readable ``message`` is added next to the payload keys.
    """

    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if payload:
        body.update(payload)
    return Response(body, status=status)


def error_body(message: str, errors: list[Any] | None = None) -> dict[str, Any]:
    """Build the failure envelope shared by the exception handler and middleware."""
    return {"success": False, "message": message, "errors": errors or []}


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and "success" in payload


class EnvelopeMixin:
    """Mixin to wrap successful responses in the standard envelope."""

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        """Ensure non-error responses include the ``success`` flag."""
        if hasattr(response, "data") and response.status_code and response.status_code < 400:
            if response.status_code != 204 and not _is_enveloped(response.data):
                if isinstance(response.data, dict):
                    response.data = {"success": True, **response.data}
                else:
                    response.data = {"success": True, "data": response.data}
        # DRF's APIView/GenericViewSet provide finalize_response; mixin alone doesn't.
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class BaseAPIView(EnvelopeMixin, APIView):
    """APIView that ensures successful responses use the standard envelope."""


class BaseViewSet(EnvelopeMixin, GenericViewSet):
    """GenericViewSet variant that wraps successful responses in the envelope."""
