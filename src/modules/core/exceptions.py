"""DRF exception handler producing one error envelope for the whole API.

Shape::

    {
        "type": "client_error" | "server_error",
        "errors": [{"code": "...", "detail": "...", "attr": "..."?, ...}]
    }

Domain errors carry their structured details (e.g. current/target status
or product/requested/available) as extra keys on the error item.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.http import Http404
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.exceptions import DomainError, ResourceNotFound

logger = structlog.get_logger(__name__)

CLIENT_ERROR = "client_error"
SERVER_ERROR = "server_error"
VALIDATION_ERROR = "validation_error"


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """Translate domain, validation and framework errors into the envelope."""
    view = context.get("view")
    view_name = view.__class__.__name__ if view else None

    if isinstance(exc, DomainError):
        http_status = (
            status.HTTP_404_NOT_FOUND
            if isinstance(exc, ResourceNotFound)
            else status.HTTP_400_BAD_REQUEST
        )
        logger.info(
            "api.domain_error",
            view=view_name,
            code=exc.code,
            detail=exc.message,
        )
        error = {"code": exc.code, "detail": exc.message, **exc.details()}
        return Response(
            {"type": CLIENT_ERROR, "errors": [error]},
            status=http_status,
        )

    if isinstance(exc, PydanticValidationError):
        errors = [
            {
                "code": "invalid",
                "detail": err["msg"],
                "attr": ".".join(str(part) for part in err["loc"]) or None,
            }
            for err in exc.errors()
        ]
        return Response(
            {"type": VALIDATION_ERROR, "errors": errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, Http404):
        exc = exceptions.NotFound()

    response = exception_handler(exc, context)
    if response is None:
        logger.error("api.unhandled_error", view=view_name, exc_info=exc)
        return Response(
            {
                "type": SERVER_ERROR,
                "errors": [
                    {"code": "error", "detail": "An unexpected error occurred."}
                ],
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        response.data = {
            "type": VALIDATION_ERROR,
            "errors": _flatten_validation_errors(exc.detail),
        }
        return response

    if isinstance(exc, exceptions.APIException):
        codes = exc.get_codes()
        response.data = {
            "type": CLIENT_ERROR if response.status_code < 500 else SERVER_ERROR,
            "errors": [
                {
                    "code": codes if isinstance(codes, str) else "error",
                    "detail": str(exc.detail),
                }
            ],
        }
    return response


def _flatten_validation_errors(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    """Flatten DRF's nested error dict/list into ``[{code, detail, attr}]``."""
    errors: List[Dict[str, Any]] = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            child = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors":
                child = attr
            errors.extend(_flatten_validation_errors(value, child))
    elif isinstance(detail, list):
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                child = str(index) if attr is None else f"{attr}.{index}"
                errors.extend(_flatten_validation_errors(value, child))
            else:
                errors.extend(_flatten_validation_errors(value, attr))
    else:
        errors.append(
            {
                "code": getattr(detail, "code", "invalid"),
                "detail": str(detail),
                "attr": attr,
            }
        )
    return errors
