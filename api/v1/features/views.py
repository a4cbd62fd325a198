"""
Feature and bundle API views.

These endpoints are used by organizations to:
- Activate or deactivate tiers, bundles and features
- Inspect activation state
- Check (and record) access to a feature
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.commands.activate_features import (
    ActivateFeaturesCommand,
    DeactivateFeaturesCommand,
)
from activations.application.queries.get_activation_status import (
    GetBundleStatusQuery,
    GetFeatureAccessQuery,
    GetFeatureStatusQuery,
)
from api.v1.common import ERROR_RESPONSES, IDENTITY_PARAMETERS, require_identity
from api.v1.features.serializers import (
    ActivationRequestSerializer,
    ActivationResultSerializer,
    BundleStatusSerializer,
    FeatureAccessSerializer,
    FeatureStatusSerializer,
)
from core.container import get_container
from core.domain.value_objects import ActivationTarget
from core.instrumentation import Status, StatusCode, get_tracer

tracer = get_tracer(__name__)


def activation_target(request: Request) -> ActivationTarget:
    """Build the activation target named in a request body."""
    serializer = ActivationRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return ActivationTarget.from_fields(**serializer.validated_data)


class ActivateFeaturesView(APIView):
    """View for activating a tier, bundle or feature."""

    @extend_schema(
        operation_id="activate_features",
        summary="Activate Features",
        description=(
            "Activate every feature of a tier or bundle, or a single feature. "
            "The license must cover them and their dependencies."
        ),
        tags=["Features"],
        parameters=IDENTITY_PARAMETERS,
        request=ActivationRequestSerializer,
        responses={200: ActivationResultSerializer, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Activate features."""
        return async_to_sync(self._handle_activate)(request)

    async def _handle_activate(self, request: Request) -> Response:
        with tracer.start_as_current_span("activate_features") as span:
            identity = require_identity(request)
            target = activation_target(request)
            span.set_attribute("organization.id", identity.organization_id)
            span.set_attribute("activation.target", str(target))

            result = await get_container().activate_features_handler.handle(
                ActivateFeaturesCommand(organization_id=identity.organization_id, target=target)
            )
            span.set_attribute("activations.count", len(result.activations))
            span.set_status(Status(StatusCode.OK))
            return Response(ActivationResultSerializer(result).data)


class DeactivateFeaturesView(APIView):
    """View for deactivating a bundle or feature."""

    @extend_schema(
        operation_id="deactivate_features",
        summary="Deactivate Features",
        description="Deactivate every feature of a bundle, or a single feature.",
        tags=["Features"],
        parameters=IDENTITY_PARAMETERS,
        request=ActivationRequestSerializer,
        responses={200: ActivationResultSerializer, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Deactivate features."""
        return async_to_sync(self._handle_deactivate)(request)

    async def _handle_deactivate(self, request: Request) -> Response:
        with tracer.start_as_current_span("deactivate_features") as span:
            identity = require_identity(request)
            target = activation_target(request)
            span.set_attribute("organization.id", identity.organization_id)
            span.set_attribute("activation.target", str(target))

            result = await get_container().deactivate_features_handler.handle(
                DeactivateFeaturesCommand(organization_id=identity.organization_id, target=target)
            )
            span.set_status(Status(StatusCode.OK))
            return Response(ActivationResultSerializer(result).data)


class FeatureStatusView(APIView):
    """View for the activation state of one feature."""

    @extend_schema(
        operation_id="get_feature_status",
        summary="Get Feature Status",
        tags=["Features"],
        parameters=IDENTITY_PARAMETERS,
        responses={200: FeatureStatusSerializer, **ERROR_RESPONSES},
    )
    def get(self, request: Request, feature_id: str) -> Response:
        """Get feature activation status."""
        return async_to_sync(self._handle_status)(request, feature_id)

    async def _handle_status(self, request: Request, feature_id: str) -> Response:
        with tracer.start_as_current_span("get_feature_status") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)
            span.set_attribute("feature.id", feature_id)
            result = await get_container().feature_status_handler.handle(
                GetFeatureStatusQuery(organization_id=identity.organization_id, feature_id=feature_id)
            )
            return Response(FeatureStatusSerializer(result).data)


class FeatureAccessView(APIView):
    """View for checking access to one feature."""

    @extend_schema(
        operation_id="check_feature_access",
        summary="Check Feature Access",
        description="Decide whether the organization may use a feature now. Granted checks count as usage.",
        tags=["Features"],
        parameters=IDENTITY_PARAMETERS,
        responses={200: FeatureAccessSerializer, **ERROR_RESPONSES},
    )
    def get(self, request: Request, feature_id: str) -> Response:
        """Check feature access."""
        return async_to_sync(self._handle_access)(request, feature_id)

    async def _handle_access(self, request: Request, feature_id: str) -> Response:
        with tracer.start_as_current_span("check_feature_access") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)
            span.set_attribute("feature.id", feature_id)
            result = await get_container().feature_access_handler.handle(
                GetFeatureAccessQuery(organization_id=identity.organization_id, feature_id=feature_id)
            )
            span.set_attribute("access.granted", result.has_access)
            return Response(FeatureAccessSerializer(result).data)


class BundleStatusView(APIView):
    """View for the activation state of a bundle."""

    @extend_schema(
        operation_id="get_bundle_status",
        summary="Get Bundle Status",
        tags=["Features"],
        parameters=IDENTITY_PARAMETERS,
        responses={200: BundleStatusSerializer, **ERROR_RESPONSES},
    )
    def get(self, request: Request, bundle_id: str) -> Response:
        """Get bundle activation status."""
        return async_to_sync(self._handle_status)(request, bundle_id)

    async def _handle_status(self, request: Request, bundle_id: str) -> Response:
        with tracer.start_as_current_span("get_bundle_status") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)
            span.set_attribute("bundle.id", bundle_id)
            result = await get_container().bundle_status_handler.handle(
                GetBundleStatusQuery(organization_id=identity.organization_id, bundle_id=bundle_id)
            )
            return Response(BundleStatusSerializer(result).data)
