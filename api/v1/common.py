"""
Helpers shared by the v1 views.
"""

from drf_spectacular.utils import OpenApiParameter
from rest_framework.request import Request

from core.domain.exceptions import InvalidOrganizationIDError
from core.domain.value_objects import RequestIdentity
from core.middleware.identity import ORGANIZATION_HEADER, USER_HEADER

IDENTITY_PARAMETERS = [
    OpenApiParameter(
        name=ORGANIZATION_HEADER,
        type=str,
        location=OpenApiParameter.HEADER,
        required=True,
        description="Calling organization",
    ),
    OpenApiParameter(
        name=USER_HEADER,
        type=str,
        location=OpenApiParameter.HEADER,
        required=False,
        description="Calling user, recorded in audit logs",
    ),
]

ERROR_RESPONSES = {
    400: {"description": "Bad Request"},
    403: {"description": "Forbidden - license does not allow the operation"},
    404: {"description": "Not Found"},
    503: {"description": "Storage unavailable"},
}


def require_identity(request: Request) -> RequestIdentity:
    """
    Return the identity attached by IdentityMiddleware.

    Raises:
        InvalidOrganizationIDError: If the request names no organization or a
            malformed one
    """
    identity = getattr(request, "identity", None)
    if identity is None:
        error = getattr(request, "identity_error", None)
        if error is not None:
            raise error
        raise InvalidOrganizationIDError(f"{ORGANIZATION_HEADER} header is required")
    return identity
