# doctor_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


def ensure_request_id(request) -> str:
    """Returns request.request_id, assigning a fresh hex id when missing."""
    if request is None:
        return uuid.uuid4().hex
    rid = getattr(request, "request_id", None)
    if not rid:
        rid = uuid.uuid4().hex
        request.request_id = rid
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    """
    {"error": {"code", "message", "details", "request_id"}}

    Every non-2xx JSON body of the doctor service has this shape.
    """
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": ensure_request_id(request),
        }
    }


class ConflictError(APIException):
    """
    409: the current state blocks the action (already processed activation,
    overlapping appointment, duplicate registration).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class UpstreamUnavailable(APIException):
    """503: the user directory could not be reached on a write path."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "A required upstream service is unavailable."
    default_code = "upstream_unavailable"


# First match wins; anything else falls back to the exception's default_code.
_ERROR_CODES = (
    (ValidationError, "validation_error"),
    (NotAuthenticated, "not_authenticated"),
    (PermissionDenied, "permission_denied"),
    ((Http404, NotFound), "not_found"),
)


def _error_code(exc: Exception) -> str:
    for types, code in _ERROR_CODES:
        if isinstance(exc, types):
            return code
    return getattr(exc, "default_code", None) or "api_error"


def _as_drf(exc: DjangoValidationError) -> ValidationError:
    if hasattr(exc, "message_dict"):
        return ValidationError(exc.message_dict)
    messages = list(exc.messages)
    return ValidationError({"detail": messages[0] if len(messages) == 1 else messages})


def _split_detail(data: Any) -> tuple[str, Optional[Any]]:
    """
    DRF payload -> (message, details).

    A "detail" key becomes the message and the remaining keys (if any) the
    details; a single-item list is promoted to the message; field errors are
    reported as details under a generic message.
    """
    if isinstance(data, dict) and "detail" in data:
        extra = {k: v for k, v in data.items() if k != "detail"}
        return str(data["detail"]), (extra or None)
    if isinstance(data, list) and len(data) == 1:
        return str(data[0]), None
    return "Request failed.", data


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")

    # Service-layer rule violations are plain Django ValidationErrors.
    if isinstance(exc, DjangoValidationError):
        exc = _as_drf(exc)

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.exception("Unhandled error on %s", getattr(request, "path", "?"), exc_info=exc)
        body = build_error_envelope(request=request, code="server_error", message="Unexpected server error.")
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    message, details = _split_detail(response.data)
    body = build_error_envelope(request=request, code=_error_code(exc), message=message, details=details)
    return Response(body, status=response.status_code, headers=response.headers)
