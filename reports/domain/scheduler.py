"""
Report scheduler.

Runs one asyncio task per scheduled organization plus a cleanup task that
applies retention policies. The schedule map is guarded by a lock that is
never held across storage or export I/O.
"""
import asyncio
import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set, Union

from django.utils import timezone

from core.domain.events import EventBus
from core.domain.exceptions import (
    DomainException,
    ScheduleNotFoundError,
    ValidationError,
    repository_failures,
)
from core.domain.value_objects import (
    ExportFormat,
    ReportPeriod,
    RequestIdentity,
    validate_organization_id,
)
from core.metrics import reports_deleted_total
from reports.domain.events import ReportsDeleted, RetentionPolicyChanged
from reports.domain.retention import (
    DEFAULT_RETENTION_POLICY,
    ReportSchedule,
    RetentionPolicy,
    ScheduleState,
)
from reports.ports.report_storage import ReportStorage, RetentionPolicyRepository
from usage.application.services.usage_report_service import ReportExporter

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_INTERVAL = timedelta(days=1)


class ReportScheduler:
    """
    Generates scheduled reports and deletes expired ones.

    Lifecycle of a schedule: scheduled -> generating -> scheduled, until
    remove_schedule drops it together with the organization's custom
    retention policy.
    """

    def __init__(
        self,
        exporter: ReportExporter,
        storage: ReportStorage,
        policy_repository: RetentionPolicyRepository,
        event_bus: Optional[EventBus] = None,
        cleanup_interval: timedelta = DEFAULT_CLEANUP_INTERVAL,
        default_policy: RetentionPolicy = DEFAULT_RETENTION_POLICY,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.exporter = exporter
        self.storage = storage
        self.policy_repository = policy_repository
        self.event_bus = event_bus
        self.cleanup_interval = cleanup_interval
        self.default_policy = default_policy
        self.clock = clock
        self._lock = threading.RLock()
        self._schedules: Dict[str, ReportSchedule] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._cleanup_task: Optional[asyncio.Task] = None
        self._stop: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._stop is not None and not self._stop.is_set()

    async def start(self) -> None:
        """Start the cleanup task and a task for every known schedule."""
        if self.running:
            return
        self._stop = asyncio.Event()
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        with self._lock:
            schedules = list(self._schedules.values())
        for schedule in schedules:
            self._start_schedule_task(schedule)
        logger.info("Report scheduler started", extra={"schedules": len(schedules)})

    # Schedules

    async def schedule_report(
        self,
        organization_id: str,
        period: Union[str, ReportPeriod],
        export_format: Union[str, ExportFormat],
        frequency: timedelta,
    ) -> ReportSchedule:
        """
        Schedule periodic reports for an organization.

        An existing schedule of the organization is replaced.

        Args:
            organization_id: Organization ID
            period: Report period, which also selects the retention threshold
            export_format: json or csv
            frequency: Interval between two reports

        Returns:
            Copy of the stored schedule

        Raises:
            InvalidOrganizationIDError: If the organization ID is empty or malformed
            InvalidReportPeriodError: If the period is unknown
            UnsupportedFormatError: If the format is unknown
            ValidationError: If the frequency is not positive
        """
        validate_organization_id(organization_id)
        if frequency is None or frequency <= timedelta(0):
            raise ValidationError("Report frequency must be positive", code="INVALID_FREQUENCY")
        schedule = ReportSchedule(
            organization_id=organization_id,
            period=period if isinstance(period, ReportPeriod) else ReportPeriod.parse(period),
            format=(
                export_format
                if isinstance(export_format, ExportFormat)
                else ExportFormat.parse(export_format)
            ),
            frequency=frequency,
        )
        with self._lock:
            self._schedules[organization_id] = schedule
        if self.running:
            self._start_schedule_task(schedule)
        logger.info(
            "Report scheduled",
            extra={
                "organization_id": organization_id,
                "period": schedule.period.value,
                "format": schedule.format.value,
                "frequency_seconds": frequency.total_seconds(),
            },
        )
        return replace(schedule)

    def get_schedule(self, organization_id: str) -> Optional[ReportSchedule]:
        with self._lock:
            schedule = self._schedules.get(organization_id)
            return replace(schedule) if schedule is not None else None

    def list_schedules(self) -> List[ReportSchedule]:
        with self._lock:
            return [replace(s) for _, s in sorted(self._schedules.items())]

    async def remove_schedule(self, organization_id: str) -> bool:
        """
        Drop an organization's schedule and its custom retention policy.

        A report being generated is allowed to finish.

        Returns:
            True if a schedule existed
        """
        with self._lock:
            removed = self._schedules.pop(organization_id, None)
        with repository_failures("delete retention policy"):
            await self.policy_repository.delete(organization_id)
        if removed is not None:
            logger.info("Report schedule removed", extra={"organization_id": organization_id})
        return removed is not None

    def _start_schedule_task(self, schedule: ReportSchedule) -> None:
        task = asyncio.create_task(self._schedule_loop(schedule))
        with self._lock:
            self._tasks.add(task)
        task.add_done_callback(self._forget_task)

    def _forget_task(self, task: asyncio.Task) -> None:
        with self._lock:
            self._tasks.discard(task)

    def _is_current(self, schedule: ReportSchedule) -> bool:
        with self._lock:
            return self._schedules.get(schedule.organization_id) is schedule

    async def _wait(self, interval: timedelta) -> bool:
        """Wait for the interval; return True when the scheduler is stopping."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=interval.total_seconds())
        except asyncio.TimeoutError:
            return False
        return True

    async def _schedule_loop(self, schedule: ReportSchedule) -> None:
        while self._is_current(schedule):
            if await self._wait(schedule.frequency):
                return
            if not self._is_current(schedule):
                return
            try:
                await self.generate_scheduled_report(schedule.organization_id)
            except DomainException as exc:
                logger.error(
                    "Scheduled report failed",
                    extra={
                        "organization_id": schedule.organization_id,
                        "error": exc.code,
                        "error_message": exc.message,
                    },
                )

    async def generate_scheduled_report(self, organization_id: str) -> str:
        """
        Generate and store the scheduled report of an organization now.

        Returns:
            Path of the stored report

        Raises:
            ScheduleNotFoundError: If the organization has no schedule
            LicenseNotFoundError: If the organization has no license
            RepositoryFailureError: If storing fails
        """
        with self._lock:
            schedule = self._schedules.get(organization_id)
            if schedule is None:
                raise ScheduleNotFoundError(f"No report schedule for organization {organization_id}")
            schedule.state = ScheduleState.GENERATING
        try:
            content = await self.exporter.export(organization_id, schedule.period, schedule.format)
            with repository_failures("store report"):
                path = await self.storage.store(organization_id, content, schedule.format)
        finally:
            with self._lock:
                schedule.state = ScheduleState.SCHEDULED
        with self._lock:
            schedule.last_run = self.clock()
            schedule.export_path = path
        return path

    # Retention policies

    async def get_retention_policy(self, organization_id: str) -> RetentionPolicy:
        """Return the organization's custom policy, or the default one."""
        with repository_failures("load retention policy"):
            policy = await self.policy_repository.find(organization_id)
        return policy or self.default_policy

    async def set_retention_policy(
        self, identity: RequestIdentity, policy: RetentionPolicy
    ) -> RetentionPolicy:
        """
        Set a custom retention policy.

        Args:
            identity: Organization and user making the change
            policy: New policy

        Returns:
            The stored policy

        Raises:
            InvalidRetentionPolicyError: If a threshold is below its minimum
        """
        policy.validate()
        with repository_failures("save retention policy"):
            previous = await self.policy_repository.find(identity.organization_id)
            await self.policy_repository.save(identity.organization_id, policy, identity.user_id)
        await self._publish(
            RetentionPolicyChanged(
                organization_id=identity.organization_id,
                action="set",
                old_policy=previous.to_dict() if previous else None,
                new_policy=policy.to_dict(),
                user_id=identity.user_id,
            )
        )
        return policy

    async def remove_retention_policy(self, identity: RequestIdentity) -> bool:
        """
        Remove a custom retention policy, reverting to the default.

        Returns:
            True if a custom policy existed
        """
        with repository_failures("delete retention policy"):
            previous = await self.policy_repository.find(identity.organization_id)
            removed = await self.policy_repository.delete(identity.organization_id)
        if removed:
            await self._publish(
                RetentionPolicyChanged(
                    organization_id=identity.organization_id,
                    action="remove",
                    old_policy=previous.to_dict() if previous else None,
                    new_policy=None,
                    user_id=identity.user_id,
                )
            )
        return removed

    # Cleanup

    async def cleanup_reports_with_policy(
        self,
        organization_id: str,
        policy: RetentionPolicy,
        period: Union[str, ReportPeriod],
    ) -> List[str]:
        """
        Delete an organization's reports older than the policy allows.

        Args:
            organization_id: Organization ID
            policy: Retention policy to apply
            period: Period selecting the threshold

        Returns:
            Paths that were deleted

        Raises:
            RepositoryFailureError: If the reports cannot be listed
        """
        report_period = period if isinstance(period, ReportPeriod) else ReportPeriod.parse(period)
        threshold = policy.threshold_for(report_period)
        with repository_failures("list reports"):
            paths = await self.storage.list(organization_id)

        deleted = []
        for path in paths:
            try:
                with repository_failures(f"delete report {path}"):
                    if await self.storage.file_age(path) <= threshold:
                        continue
                    await self.storage.delete(path)
            except DomainException as exc:
                logger.warning(
                    "Report cleanup failed",
                    extra={"organization_id": organization_id, "path": path, "error": exc.message},
                )
                continue
            deleted.append(path)

        if deleted:
            reports_deleted_total.inc(len(deleted))
            await self._publish(
                ReportsDeleted(
                    organization_id=organization_id,
                    paths=tuple(deleted),
                    period=report_period.value,
                )
            )
        return deleted

    async def run_cleanup_cycle(self) -> Dict[str, List[str]]:
        """
        Apply retention to every scheduled organization.

        Returns:
            Deleted paths per organization
        """
        with self._lock:
            targets = [(org_id, s.period) for org_id, s in self._schedules.items()]
        results = {}
        for organization_id, period in targets:
            try:
                policy = await self.get_retention_policy(organization_id)
                results[organization_id] = await self.cleanup_reports_with_policy(
                    organization_id, policy, period
                )
            except DomainException as exc:
                logger.error(
                    "Retention cleanup failed",
                    extra={"organization_id": organization_id, "error": exc.message},
                )
        return results

    async def _cleanup_loop(self) -> None:
        while not await self._wait(self.cleanup_interval):
            await self.run_cleanup_cycle()

    async def shutdown(self) -> None:
        """Stop every periodic task and wait for them to exit."""
        if self._stop is None:
            return
        self._stop.set()
        with self._lock:
            tasks = list(self._tasks)
            self._tasks.clear()
        if self._cleanup_task is not None:
            tasks.append(self._cleanup_task)
            self._cleanup_task = None
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Report scheduler stopped")

    async def _publish(self, event) -> None:
        if self.event_bus is not None:
            await self.event_bus.publish(event)
