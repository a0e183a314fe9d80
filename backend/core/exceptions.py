import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class TenantRequired(APIException):
    """Raised when work that needs a tenant runs with no tenant bound."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "No tenant is bound to this request."
    default_code = "tenant_required"


class TenantNotFound(APIException):
    """Raised when the bound tenant does not exist or is inactive."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Tenant not found."
    default_code = "tenant_not_found"


class NotFound(APIException):
    """
    Entity absent *or* owned by another tenant.
    Both cases produce the same message so ids never leak across tenants.
    """
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class InvalidTransition(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "invalid_transition"

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            detail=f"Invalid status transition from {current} to {requested}",
        )


class Conflict(APIException):
    """Raised when a concurrent write changed the order first. Safe to retry."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The order was modified concurrently. Retry the request."
    default_code = "conflict"


def _error_code(exc):
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    codes = exc.get_codes()
    return codes if isinstance(codes, str) else exc.default_code


def api_exception_handler(exc, context):
    """
    DRF exception handler.

    Every error body carries ``detail`` and ``code``. Field errors of a
    ValidationError move under ``errors``; InvalidTransition adds its two
    endpoints. Anything else is logged in full and reported as an opaque 500.
    """
    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "Unexpected error in %s",
            view.__class__.__name__ if view else "unknown view",
            exc_info=exc,
        )
        return Response(
            {"detail": "An unexpected error occurred.", "code": "unexpected"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, ValidationError) and not (isinstance(response.data, dict) and "detail" in response.data):
        response.data = {
            "detail": str(ValidationError.default_detail),
            "code": ValidationError.default_code,
            "errors": response.data,
        }
    elif isinstance(response.data, dict) and "detail" in response.data:
        response.data["code"] = _error_code(exc)

    if isinstance(exc, InvalidTransition):
        response.data["current"] = exc.current
        response.data["requested"] = exc.requested

    if isinstance(exc, (TenantRequired, TenantNotFound)):
        logger.warning("Tenant binding rejected: %s", exc.detail)

    return response
