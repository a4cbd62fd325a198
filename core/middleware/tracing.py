"""
Tracing middleware for OpenTelemetry.

Adds a span to every request, tagged with the calling organization.
"""

import json
import time
from typing import Callable

from django.http import HttpRequest, HttpResponse

from core.instrumentation import Status, StatusCode, get_tracer

tracer = get_tracer(__name__)

SENSITIVE_FIELDS = ("password", "secret", "token", "api_key", "authorization")


def sanitize(data, max_depth: int = 3):
    """Redact sensitive fields and bound the size of a decoded body."""
    if max_depth <= 0:
        return "..."
    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            if any(field in str(key).lower() for field in SENSITIVE_FIELDS):
                sanitized[key] = "***REDACTED***"
            elif isinstance(value, (dict, list)):
                sanitized[key] = sanitize(value, max_depth - 1)
            else:
                sanitized[key] = str(value)[:500]
        return sanitized
    if isinstance(data, list):
        return [sanitize(item, max_depth - 1) for item in data[:10]]
    return str(data)[:500]


class TracingMiddleware:
    """
    Middleware to add distributed tracing to requests.

    Creates a span for each request and records request/response details.
    """

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """Process request with tracing."""
        span_name = f"{request.method} {request.path}"
        with tracer.start_as_current_span(span_name) as span:
            self._set_request_attributes(span, request)
            request.trace_id = format(span.get_span_context().trace_id, "032x")  # type: ignore

            start_time = time.time()
            try:
                response = self.get_response(request)
            except Exception as e:
                span.set_attribute("http.duration_ms", round((time.time() - start_time) * 1000, 2))
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, f"{type(e).__name__}: {e}"))
                raise
            self._set_response_attributes(span, response, time.time() - start_time)
            return response

    def _set_request_attributes(self, span, request: HttpRequest):
        """Set attributes from the request."""
        span.set_attribute("http.method", request.method)
        span.set_attribute("http.route", request.path)
        span.set_attribute("http.user_agent", request.META.get("HTTP_USER_AGENT", ""))
        span.set_attribute("http.scheme", request.scheme)

        identity = getattr(request, "identity", None)
        if identity is not None:
            span.set_attribute("organization.id", identity.organization_id)
            if identity.user_id:
                span.set_attribute("user.id", identity.user_id)

        content_type = request.headers.get("Content-Type", "")
        if content_type.startswith("application/json") and request.body:
            body = request.body.decode("utf-8", errors="ignore")
            span.set_attribute("http.request.body_size", len(body))
            try:
                span.set_attribute("http.request.body", json.dumps(sanitize(json.loads(body)))[:5000])
            except ValueError:
                span.set_attribute("http.request.body", body[:1000])

    def _set_response_attributes(self, span, response, duration: float):
        """Set attributes from the response."""
        span.set_attribute("http.status_code", response.status_code)
        span.set_attribute("http.duration_ms", round(duration * 1000, 2))
        if response.status_code >= 400:
            self._extract_error_details(span, response)
            span.set_status(Status(StatusCode.ERROR, f"HTTP {response.status_code}"))
        else:
            span.set_status(Status(StatusCode.OK))

    def _extract_error_details(self, span, response):
        """Copy the error code and message of a JSON error body onto the span."""
        if not response.get("Content-Type", "").startswith("application/json"):
            return
        try:
            body = json.loads(response.content.decode("utf-8", errors="ignore"))
        except ValueError:
            return
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            for key in ("code", "message"):
                if key in error:
                    span.set_attribute(f"error.{key}", str(error[key]))
