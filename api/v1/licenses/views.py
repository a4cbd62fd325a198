"""
License API views.

These endpoints are used by organizations to:
- Activate a license from a payment
- Query license and renewal status
- Renew one or several licenses
- Download usage reports
"""

from datetime import timedelta

from asgiref.sync import async_to_sync
from django.http import HttpResponse
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.common import ERROR_RESPONSES, IDENTITY_PARAMETERS, require_identity
from api.v1.licenses.serializers import (
    ActivateLicenseRequestSerializer,
    BulkRenewalSerializer,
    BulkRenewLicensesRequestSerializer,
    LicenseSerializer,
    LicenseStatusSerializer,
    RenewalStatusSerializer,
    RenewLicenseRequestSerializer,
)
from core.container import get_container
from core.domain.value_objects import BillingPeriod, ExportFormat
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.application.commands.activate_license import ActivateLicenseCommand
from licenses.application.commands.renew_license import (
    BulkRenewLicensesCommand,
    RenewLicenseCommand,
)
from licenses.application.queries.get_license_status import (
    GetLicenseStatusQuery,
    GetRenewalStatusQuery,
)

tracer = get_tracer(__name__)

REPORT_CONTENT_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
}


def requested_duration(data) -> timedelta:
    """Turn a validated billing period or day count into a license duration."""
    if "billing_period" in data:
        return BillingPeriod.parse(data["billing_period"]).duration
    return timedelta(days=data["duration_days"])


class ActivateLicenseView(APIView):
    """View for activating a license."""

    @extend_schema(
        operation_id="activate_license",
        summary="Activate License",
        description=(
            "Create the organization's license from a completed payment. "
            "The amount must cover the catalog price of the features and bundles."
        ),
        tags=["Licenses"],
        parameters=IDENTITY_PARAMETERS,
        request=ActivateLicenseRequestSerializer,
        responses={201: LicenseSerializer, 402: {"description": "Payment too low"}, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Activate a license."""
        return async_to_sync(self._handle_activate)(request)

    async def _handle_activate(self, request: Request) -> Response:
        with tracer.start_as_current_span("activate_license") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)

            serializer = ActivateLicenseRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data

            command = ActivateLicenseCommand(
                organization_id=identity.organization_id,
                payment_id=data["payment_id"],
                amount=data["amount"],
                currency=data["currency"],
                duration=requested_duration(data),
                features=data["features"],
                bundles=data["bundles"],
            )
            span.set_attribute("features.count", len(command.features))
            span.set_attribute("bundles.count", len(command.bundles))

            result = await get_container().activate_license_handler.handle(command)

            span.set_attribute("license.id", str(result.id))
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result).data, status=status.HTTP_201_CREATED)


class LicenseStatusView(APIView):
    """View for license status."""

    @extend_schema(
        operation_id="get_license_status",
        summary="Get License Status",
        description="Return the license, its payment state, pricing and per-feature access.",
        tags=["Licenses"],
        parameters=IDENTITY_PARAMETERS,
        responses={200: LicenseStatusSerializer, **ERROR_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        """Get license status."""
        return async_to_sync(self._handle_status)(request)

    async def _handle_status(self, request: Request) -> Response:
        with tracer.start_as_current_span("get_license_status") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)
            result = await get_container().license_status_handler.handle(
                GetLicenseStatusQuery(organization_id=identity.organization_id)
            )
            span.set_attribute("license.active", result.is_active)
            return Response(LicenseStatusSerializer(result).data)


class RenewalStatusView(APIView):
    """View for renewal status."""

    @extend_schema(
        operation_id="get_renewal_status",
        summary="Get Renewal Status",
        description="Report whether the organization should renew and how urgently.",
        tags=["Licenses"],
        parameters=IDENTITY_PARAMETERS,
        responses={200: RenewalStatusSerializer, **ERROR_RESPONSES},
    )
    def get(self, request: Request) -> Response:
        """Get renewal status."""
        return async_to_sync(self._handle_renewal_status)(request)

    async def _handle_renewal_status(self, request: Request) -> Response:
        with tracer.start_as_current_span("get_renewal_status") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)
            result = await get_container().renewal_status_handler.handle(
                GetRenewalStatusQuery(organization_id=identity.organization_id)
            )
            span.set_attribute("renewal.priority", result.priority)
            return Response(RenewalStatusSerializer(result).data)


class RenewLicenseView(APIView):
    """View for renewing the caller's license."""

    @extend_schema(
        operation_id="renew_license",
        summary="Renew License",
        description=(
            "Replace the organization's license with one running from now for the "
            "requested duration. Features and bundles are kept."
        ),
        tags=["Licenses"],
        parameters=IDENTITY_PARAMETERS,
        request=RenewLicenseRequestSerializer,
        responses={200: LicenseSerializer, 402: {"description": "Payment too low"}, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Renew a license."""
        return async_to_sync(self._handle_renew)(request)

    async def _handle_renew(self, request: Request) -> Response:
        with tracer.start_as_current_span("renew_license") as span:
            identity = require_identity(request)
            span.set_attribute("organization.id", identity.organization_id)

            serializer = RenewLicenseRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data

            result = await get_container().renew_license_handler.handle(
                RenewLicenseCommand(
                    organization_id=identity.organization_id,
                    payment_id=data["payment_id"],
                    amount=data["amount"],
                    currency=data["currency"],
                    duration=requested_duration(data),
                )
            )
            span.set_attribute("license.id", str(result.id))
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseSerializer(result).data)


class BulkRenewLicensesView(APIView):
    """View for renewing several organizations from one payment."""

    @extend_schema(
        operation_id="bulk_renew_licenses",
        summary="Bulk Renew Licenses",
        description=(
            "Renew every listed organization. The payment must cover the sum of the "
            "renewal prices; per-organization failures are reported in the response."
        ),
        tags=["Licenses"],
        request=BulkRenewLicensesRequestSerializer,
        responses={200: BulkRenewalSerializer, 402: {"description": "Payment too low"}, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Renew several licenses."""
        return async_to_sync(self._handle_bulk_renew)(request)

    async def _handle_bulk_renew(self, request: Request) -> Response:
        with tracer.start_as_current_span("bulk_renew_licenses") as span:
            serializer = BulkRenewLicensesRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            data = serializer.validated_data
            span.set_attribute("organizations.count", len(data["organization_ids"]))

            result = await get_container().bulk_renew_handler.handle(
                BulkRenewLicensesCommand(
                    organization_ids=data["organization_ids"],
                    payment_id=data["payment_id"],
                    total_amount=data["total_amount"],
                    currency=data["currency"],
                    duration=requested_duration(data),
                )
            )
            span.set_attribute("renewals.succeeded", len(result.succeeded))
            span.set_attribute("renewals.failed", len(result.failed))
            return Response(BulkRenewalSerializer(result).data)


class UsageReportView(APIView):
    """View for downloading a usage report."""

    @extend_schema(
        operation_id="get_usage_report",
        summary="Get Usage Report",
        description="Export per-feature usage and cost of the organization as JSON or CSV.",
        tags=["Reports"],
        parameters=IDENTITY_PARAMETERS
        + [
            OpenApiParameter(name="period", type=str, enum=["daily", "weekly", "monthly"]),
            OpenApiParameter(name="format", type=str, enum=["json", "csv"]),
        ],
        responses={(200, "application/json"): dict, (200, "text/csv"): str, **ERROR_RESPONSES},
    )
    def get(self, request: Request) -> HttpResponse:
        """Export a usage report."""
        return async_to_sync(self._handle_report)(request)

    async def _handle_report(self, request: Request) -> HttpResponse:
        with tracer.start_as_current_span("get_usage_report") as span:
            identity = require_identity(request)
            export_format = ExportFormat.parse(request.query_params.get("format", "json"))
            period = request.query_params.get("period", "monthly")
            span.set_attribute("organization.id", identity.organization_id)
            span.set_attribute("report.format", export_format.value)
            span.set_attribute("report.period", period)

            content = await get_container().report_exporter.export(
                identity.organization_id, period, export_format
            )

            response = HttpResponse(content, content_type=REPORT_CONTENT_TYPES[export_format])
            response["Content-Disposition"] = (
                f'attachment; filename="usage-report-{identity.organization_id}.'
                f'{export_format.value}"'
            )
            return response
