"""
Usage report generation and export.

Reports join the usage tracker's counters with catalog pricing and the
organization's license state.
"""
import csv
import io
import json
import logging
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Union

from asgiref.sync import sync_to_async
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from catalog.domain.currency import round_money
from core.domain.exceptions import LicenseNotFoundError, repository_failures
from core.domain.value_objects import ExpirationStatus, ExportFormat, ReportPeriod
from core.metrics import report_generation_duration_seconds, reports_generated_total
from licenses.domain.license import License
from licenses.domain.resolver import RENEWAL_WINDOW_DAYS, EntitlementResolver
from usage.domain.report import FeatureUsageReport, UsageReport
from usage.domain.tracker import UsageTracker

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Feature ID",
    "Total Usage",
    "Active Sessions",
    "Last Used",
    "Cost Per Use",
    "Total Cost",
    "License Status",
    "Expiration Status",
]


def expiration_status(license: License, now: datetime) -> ExpirationStatus:
    """Classify a license expiry relative to now."""
    if now > license.expires_at:
        return ExpirationStatus.EXPIRED
    if now + timedelta(days=RENEWAL_WINDOW_DAYS) > license.expires_at:
        return ExpirationStatus.EXPIRING_SOON
    return ExpirationStatus.ACTIVE


class UsageReportGenerator:
    """Builds usage reports for an organization."""

    def __init__(
        self,
        resolver: EntitlementResolver,
        tracker: UsageTracker,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.resolver = resolver
        self.tracker = tracker
        self.clock = clock

    async def generate(
        self, organization_id: str, period: Union[str, ReportPeriod]
    ) -> UsageReport:
        """
        Generate a usage report.

        Only features the license covers and that have been used appear.

        Args:
            organization_id: Organization ID
            period: daily, weekly or monthly

        Returns:
            UsageReport

        Raises:
            InvalidReportPeriodError: If the period is unknown
            LicenseNotFoundError: If the organization has no license
        """
        report_period = period if isinstance(period, ReportPeriod) else ReportPeriod.parse(period)
        with repository_failures("load license"):
            license = await self.resolver.license_repository.find_by_organization(organization_id)
        if license is None:
            raise LicenseNotFoundError(f"No license found for organization {organization_id}")

        now = self.clock()
        stats = await sync_to_async(self.tracker.stats)(organization_id)
        status = expiration_status(license, now)
        catalog = self.resolver.catalog
        features = {}
        total = catalog.converter.money("0.00", license.currency)

        for feature_id in sorted(self.resolver.covered_features(license)):
            stat = stats.get(feature_id)
            if stat is None or not catalog.has_feature(feature_id):
                continue
            price = catalog.feature_price(feature_id, license.currency)
            cost_per_use = (
                round_money(price / stat.usage_count).amount if stat.usage_count else Decimal("0.00")
            )
            features[feature_id] = FeatureUsageReport(
                feature_id=feature_id,
                total_usage=stat.usage_count,
                active_sessions=stat.active_sessions,
                last_used=stat.last_used,
                cost_per_use=cost_per_use,
                total_cost=price.amount,
                license_status=license.status.value,
                expiration_status=status.value,
            )
            total += price

        return UsageReport(
            organization_id=organization_id,
            generated_at=now,
            period=report_period.value,
            features=features,
            total_cost=total.amount,
        )


class ReportExporter:
    """Serializes usage reports to JSON or CSV."""

    def __init__(self, generator: UsageReportGenerator):
        self.generator = generator

    async def export(
        self,
        organization_id: str,
        period: Union[str, ReportPeriod],
        export_format: Union[str, ExportFormat],
    ) -> str:
        """
        Generate and serialize a usage report.

        Args:
            organization_id: Organization ID
            period: Report period
            export_format: json or csv

        Returns:
            Serialized report

        Raises:
            UnsupportedFormatError: If the format is not json or csv
            InvalidReportPeriodError: If the period is unknown
            LicenseNotFoundError: If the organization has no license
        """
        fmt = (
            export_format
            if isinstance(export_format, ExportFormat)
            else ExportFormat.parse(export_format)
        )
        started = time.perf_counter()
        report = await self.generator.generate(organization_id, period)
        content = self.render(report, fmt)
        report_generation_duration_seconds.observe(time.perf_counter() - started)
        reports_generated_total.labels(format=fmt.value).inc()
        logger.info(
            "Usage report exported",
            extra={
                "organization_id": organization_id,
                "period": report.period,
                "format": fmt.value,
                "features": len(report.features),
            },
        )
        return content

    def render(self, report: UsageReport, fmt: ExportFormat) -> str:
        if fmt == ExportFormat.JSON:
            return self.to_json(report)
        return self.to_csv(report)

    @staticmethod
    def to_json(report: UsageReport) -> str:
        return json.dumps(report.to_dict(), cls=DjangoJSONEncoder, indent=2)

    @staticmethod
    def to_csv(report: UsageReport) -> str:
        """
        Render a report as CSV.

        One row per feature in feature ID order, then a TOTAL row carrying
        only the summed cost.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for feature in report.features.values():
            writer.writerow(
                [
                    feature.feature_id,
                    feature.total_usage,
                    feature.active_sessions,
                    feature.last_used.isoformat() if feature.last_used else "",
                    str(feature.cost_per_use),
                    str(feature.total_cost),
                    feature.license_status,
                    feature.expiration_status,
                ]
            )
        writer.writerow(["TOTAL", "", "", "", "", str(report.total_cost), "", ""])
        return buffer.getvalue()
