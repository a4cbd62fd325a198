"""
API exception handlers.

This module maps domain exceptions to REST API error responses of the
form {"error": {"code": ..., "message": ...}}.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    DomainException,
    EntitlementError,
    InsufficientPaymentError,
    NotFoundError,
    PaymentAlreadyAppliedError,
    PaymentProviderError,
    RepositoryFailureError,
    ValidationError,
)
from core.metrics import errors_total
from core.middleware.metrics import normalize_endpoint

logger = logging.getLogger(__name__)

DOMAIN_STATUS_CODES = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InsufficientPaymentError, status.HTTP_402_PAYMENT_REQUIRED),
    (EntitlementError, status.HTTP_403_FORBIDDEN),
    (RepositoryFailureError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PaymentProviderError, status.HTTP_502_BAD_GATEWAY),
    (PaymentAlreadyAppliedError, status.HTTP_409_CONFLICT),
)


def status_code_for(exc: DomainException) -> int:
    """Return the HTTP status code of a domain exception."""
    for exc_type, status_code in DOMAIN_STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)
    endpoint = _get_endpoint(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, trace_id)
        errors_total.labels(error_type=exc.code, endpoint=endpoint).inc()
    elif isinstance(exc, DRFValidationError):
        response = Response(
            {"error": {"code": "VALIDATION_ERROR", "message": "Invalid request", "details": exc.detail}},
            status=status.HTTP_400_BAD_REQUEST,
        )
        errors_total.labels(error_type="VALIDATION_ERROR", endpoint=endpoint).inc()
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        code = exc.default_code.upper().replace("-", "_")
        response.data = {"error": {"code": code, "message": str(exc.detail)}}
        errors_total.labels(error_type=code, endpoint=endpoint).inc()
    elif isinstance(exc, Http404):
        response = Response(
            {"error": {"code": "NOT_FOUND", "message": "Resource not found"}},
            status=status.HTTP_404_NOT_FOUND,
        )
    else:
        response = _handle_unexpected_exception(exc, trace_id)
        errors_total.labels(error_type="INTERNAL_ERROR", endpoint=endpoint).inc()

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))


def _get_endpoint(context: Dict[str, Any]) -> str:
    request = context.get("request")
    return normalize_endpoint(request.path) if request else "unknown"


def _handle_domain_exception(exc: DomainException, trace_id: Optional[str]) -> Response:
    """Handle domain-specific exceptions."""
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})
    return Response({"error": {"code": exc.code, "message": exc.message}}, status=status_code)


def _handle_unexpected_exception(exc: Exception, trace_id: Optional[str]) -> Response:
    """Handle unexpected or untracked exceptions."""
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    return Response(
        {"error": {"code": "INTERNAL_ERROR", "message": "An internal error occurred"}},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
