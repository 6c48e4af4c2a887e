"""Standardised API error format.

Every error response has the shape::

    {"type": "<kind>", "errors": [{"code": "...", "detail": "..."}]}

Domain errors raised by the service layer are mapped to HTTP status codes
here, so views can let them propagate instead of catching each one.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.exceptions import (
    ConflictError,
    DomainError,
    NotFoundError,
    SideEffectError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

CONFLICT_DETAIL = "Data changed, please retry."

_DOMAIN_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST, "validation_error"),
    (ConflictError, status.HTTP_409_CONFLICT, "conflict"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (SideEffectError, status.HTTP_502_BAD_GATEWAY, "side_effect_error"),
)


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """DRF ``EXCEPTION_HANDLER`` producing the standard error envelope."""
    if isinstance(exc, DomainError):
        return _domain_error_response(exc)

    response = exception_handler(exc, context)
    if response is None:
        return None

    response.data = {
        "type": _drf_error_type(response.status_code),
        "errors": _flatten_drf_errors(response.data),
    }
    return response


def _domain_error_response(exc: DomainError) -> Response:
    for error_class, http_status, error_type in _DOMAIN_STATUS:
        if isinstance(exc, error_class):
            break
    else:
        http_status, error_type = status.HTTP_400_BAD_REQUEST, "domain_error"

    detail = str(exc) or exc.code
    if isinstance(exc, ConflictError):
        detail = f"{detail} {CONFLICT_DETAIL}".strip()

    logger.warning("api.domain_error", error_type=error_type, code=exc.code, detail=detail)
    return Response(
        {"type": error_type, "errors": [{"code": exc.code, "detail": detail}]},
        status=http_status,
    )


def _drf_error_type(status_code: int) -> str:
    if status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        return "authentication_error"
    if status_code == status.HTTP_404_NOT_FOUND:
        return "not_found"
    return "validation_error"


def _flatten_drf_errors(data: Any, field: Optional[str] = None) -> List[Dict[str, str]]:
    if isinstance(data, dict):
        if "detail" in data and len(data) == 1:
            return _flatten_drf_errors(data["detail"], field)
        errors: List[Dict[str, str]] = []
        for key, value in data.items():
            errors.extend(_flatten_drf_errors(value, key if field is None else f"{field}.{key}"))
        return errors
    if isinstance(data, list):
        errors = []
        for item in data:
            errors.extend(_flatten_drf_errors(item, field))
        return errors

    code = getattr(data, "code", None) or "invalid"
    entry = {"code": str(code), "detail": str(data)}
    if field is not None:
        entry["field"] = field
    return [entry]
