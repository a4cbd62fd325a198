"""
Identity middleware.

Reads the calling organization and user from request headers and
attaches them to the request as a RequestIdentity.
"""

import logging
from typing import Callable

from django.http import HttpRequest, HttpResponse

from core.domain.exceptions import InvalidOrganizationIDError
from core.domain.value_objects import RequestIdentity

logger = logging.getLogger(__name__)

ORGANIZATION_HEADER = "X-Organization-ID"
USER_HEADER = "X-User-ID"


class IdentityMiddleware:
    """
    Middleware to extract the request identity.

    Sets request.identity to a RequestIdentity, or None when the
    organization header is missing, blank or malformed. A malformed ID is
    kept on request.identity_error so views can report it.
    """

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        organization_id = request.headers.get(ORGANIZATION_HEADER, "").strip()
        user_id = request.headers.get(USER_HEADER, "").strip() or None
        request.identity_error = None  # type: ignore
        try:
            request.identity = RequestIdentity(organization_id, user_id)  # type: ignore
        except InvalidOrganizationIDError as e:
            request.identity = None  # type: ignore
            if organization_id:
                logger.info("Rejected organization header", extra={"error": e.message})
                request.identity_error = e  # type: ignore
        return self.get_response(request)
