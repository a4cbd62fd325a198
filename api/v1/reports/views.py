"""
Report retention API views.
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.common import ERROR_RESPONSES, IDENTITY_PARAMETERS, require_identity
from api.v1.reports.serializers import (
    RetentionPolicyResponseSerializer,
    RetentionPolicySerializer,
)
from core.container import get_container
from core.instrumentation import Status, StatusCode, get_tracer
from reports.domain.retention import RetentionPolicy

tracer = get_tracer(__name__)


def policy_payload(organization_id: str, policy: RetentionPolicy, custom: bool) -> dict:
    return RetentionPolicyResponseSerializer(
        {
            "organization_id": organization_id,
            "custom": custom,
            "daily_reports": policy.daily_reports,
            "weekly_reports": policy.weekly_reports,
            "monthly_reports": policy.monthly_reports,
        }
    ).data


class RetentionPolicyView(APIView):
    """View for reading, setting and removing the caller's retention policy."""

    @extend_schema(
        operation_id="get_retention_policy",
        summary="Get Retention Policy",
        description="Return the organization's custom retention policy, or the default one.",
        tags=["Reports"],
        parameters=IDENTITY_PARAMETERS,
        responses={200: RetentionPolicyResponseSerializer, **ERROR_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        """Get retention policy."""
        return async_to_sync(self._handle_get)(request)

    async def _handle_get(self, request: Request) -> Response:
        with tracer.start_as_current_span("get_retention_policy") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)
            scheduler = get_container().report_scheduler
            policy = await scheduler.get_retention_policy(identity.organization_id)
            custom = policy is not scheduler.default_policy
            return Response(policy_payload(identity.organization_id, policy, custom))

    @extend_schema(
        operation_id="set_retention_policy",
        summary="Set Retention Policy",
        description=(
            "Set how long stored reports are kept. Minimums: 24 hours for daily, "
            "7 days for weekly and 30 days for monthly reports."
        ),
        tags=["Reports"],
        parameters=IDENTITY_PARAMETERS,
        request=RetentionPolicySerializer,
        responses={200: RetentionPolicyResponseSerializer, **ERROR_RESPONSES},
    )
    def put(self, request: Request) -> Response:
        """Set retention policy."""
        return async_to_sync(self._handle_put)(request)

    async def _handle_put(self, request: Request) -> Response:
        with tracer.start_as_current_span("set_retention_policy") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)

            serializer = RetentionPolicySerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            policy = await get_container().report_scheduler.set_retention_policy(
                identity, RetentionPolicy(**serializer.validated_data)
            )
            span.set_status(Status(StatusCode.OK))
            return Response(policy_payload(identity.organization_id, policy, True))

    @extend_schema(
        operation_id="remove_retention_policy",
        summary="Remove Retention Policy",
        description="Drop the custom policy so the default one applies again.",
        tags=["Reports"],
        parameters=IDENTITY_PARAMETERS,
        responses={204: None, **ERROR_RESPONSES},
    )
    def delete(self, request: Request) -> Response:
        """Remove retention policy."""
        return async_to_sync(self._handle_delete)(request)

    async def _handle_delete(self, request: Request) -> Response:
        with tracer.start_as_current_span("remove_retention_policy") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)
            removed = await get_container().report_scheduler.remove_retention_policy(identity)
            span.set_attribute("policy.removed", removed)
            return Response(status=status.HTTP_204_NO_CONTENT)
