"""
Report retention policy and schedule.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Union

from core.domain.exceptions import InvalidRetentionPolicyError
from core.domain.value_objects import ExportFormat, ReportPeriod

MINIMUM_DAILY_RETENTION = timedelta(hours=24)
MINIMUM_WEEKLY_RETENTION = timedelta(days=7)
MINIMUM_MONTHLY_RETENTION = timedelta(days=30)


@dataclass(frozen=True)
class RetentionPolicy:
    """How long stored reports of each period are kept."""

    daily_reports: timedelta
    weekly_reports: timedelta
    monthly_reports: timedelta

    def validate(self) -> "RetentionPolicy":
        """
        Check every threshold against its minimum.

        Returns:
            The policy itself

        Raises:
            InvalidRetentionPolicyError: If a threshold is below its minimum
        """
        if self.daily_reports < MINIMUM_DAILY_RETENTION:
            raise InvalidRetentionPolicyError("Daily reports must be kept for at least 24 hours")
        if self.weekly_reports < MINIMUM_WEEKLY_RETENTION:
            raise InvalidRetentionPolicyError("Weekly reports must be kept for at least 7 days")
        if self.monthly_reports < MINIMUM_MONTHLY_RETENTION:
            raise InvalidRetentionPolicyError("Monthly reports must be kept for at least 30 days")
        return self

    def threshold_for(self, period: Union[str, ReportPeriod]) -> timedelta:
        """Return the retention threshold of a report period."""
        report_period = period if isinstance(period, ReportPeriod) else ReportPeriod.parse(period)
        return {
            ReportPeriod.DAILY: self.daily_reports,
            ReportPeriod.WEEKLY: self.weekly_reports,
            ReportPeriod.MONTHLY: self.monthly_reports,
        }[report_period]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "daily_reports": self.daily_reports.total_seconds(),
            "weekly_reports": self.weekly_reports.total_seconds(),
            "monthly_reports": self.monthly_reports.total_seconds(),
        }


DEFAULT_RETENTION_POLICY = RetentionPolicy(
    daily_reports=timedelta(days=7),
    weekly_reports=timedelta(days=30),
    monthly_reports=timedelta(days=365),
)


class ScheduleState(Enum):
    """Where a schedule is in its cycle."""

    SCHEDULED = "scheduled"
    GENERATING = "generating"


@dataclass
class ReportSchedule:
    """
    Periodic report generation for one organization.

    The scheduler owns the instance; callers get copies.
    """

    organization_id: str
    period: ReportPeriod
    format: ExportFormat
    frequency: timedelta
    last_run: Optional[datetime] = None
    export_path: Optional[str] = None
    state: ScheduleState = ScheduleState.SCHEDULED
