"""DRF exception handler producing one error envelope for every endpoint.

Shape::

    {"type": "validation_error", "errors": [{"code", "detail", "attr"}]}

Domain exceptions that escape a view are mapped by kind, so an
unexpected ``NotFoundError`` still answers 404 instead of 500.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from modules.core.exceptions import (
    AuthorizationError,
    ConcurrencyConflict,
    DomainValidationError,
    NotFoundError,
    ReconciliationRequired,
    RenderingError,
)

logger = structlog.get_logger(__name__)

_DOMAIN_STATUS = (
    (DomainValidationError, status.HTTP_400_BAD_REQUEST, "invalid"),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "not_found"),
    (AuthorizationError, status.HTTP_403_FORBIDDEN, "permission_denied"),
    (ConcurrencyConflict, status.HTTP_409_CONFLICT, "conflict"),
    (ReconciliationRequired, status.HTTP_503_SERVICE_UNAVAILABLE, "reconciliation_required"),
    (RenderingError, status.HTTP_500_INTERNAL_SERVER_ERROR, "rendering_failed"),
)


def standard_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    response = exception_handler(exc, context)
    if response is None:
        return _domain_response(exc)

    if isinstance(exc, (exceptions.ValidationError, exceptions.ParseError)):
        error_type = "validation_error"
    elif response.status_code >= 500:
        error_type = "server_error"
    else:
        error_type = "client_error"

    response.data = {
        "type": error_type,
        "errors": _flatten(response.data, default_code=_code_of(exc)),
    }
    return response


def _domain_response(exc: Exception) -> Optional[Response]:
    for kind, http_status, code in _DOMAIN_STATUS:
        if isinstance(exc, kind):
            logger.warning("api.domain_error", error=str(exc), kind=kind.__name__)
            error_type = "server_error" if http_status >= 500 else "client_error"
            return Response(
                {
                    "type": error_type,
                    "errors": [{"code": code, "detail": str(exc), "attr": None}],
                },
                status=http_status,
            )
    return None


def _code_of(exc: Exception) -> str:
    if isinstance(exc, exceptions.APIException):
        return str(exc.default_code)
    return "error"


def _flatten(data: Any, default_code: str, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        if set(data) == {"detail"}:
            return _flatten(data["detail"], default_code, attr)
        errors: List[Dict[str, Any]] = []
        for key, value in data.items():
            child = key if attr is None else f"{attr}.{key}"
            errors.extend(_flatten(value, default_code, child))
        return errors
    if isinstance(data, list):
        errors = []
        for index, value in enumerate(data):
            child = attr
            if isinstance(value, dict) and attr is not None:
                child = f"{attr}.{index}"
            errors.extend(_flatten(value, default_code, child))
        return errors
    code = getattr(data, "code", None) or default_code
    return [{"code": str(code), "detail": str(data), "attr": attr}]
