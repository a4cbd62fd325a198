"""
Django management command running the usage report scheduler.

Schedules a report for every organization holding a current license and
applies retention cleanup until interrupted.
"""

import asyncio
import logging
from datetime import timedelta

from django.core.management.base import BaseCommand

from core.container import get_container
from core.domain.exceptions import DomainException

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to run the report scheduler in the foreground."""

    help = "Generate scheduled usage reports and apply retention policies"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("--period", help="Report period: daily, weekly or monthly")
        parser.add_argument("--format", dest="export_format", help="Export format: json or csv")
        parser.add_argument(
            "--frequency-hours",
            type=float,
            help="Hours between two reports of one organization",
        )
        parser.add_argument(
            "--once",
            action="store_true",
            help="Generate every report and run one cleanup cycle, then exit",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        container = get_container()
        defaults = container.config.get("REPORT_SCHEDULE", {})
        period = options["period"] or defaults.get("PERIOD", "monthly")
        export_format = options["export_format"] or defaults.get("FORMAT", "json")
        hours = options["frequency_hours"] or float(defaults.get("FREQUENCY_HOURS", 24))

        try:
            asyncio.run(
                self._run(container, period, export_format, timedelta(hours=hours), options["once"])
            )
        except KeyboardInterrupt:
            self.stdout.write("Report scheduler interrupted")

    async def _run(self, container, period, export_format, frequency, once):
        scheduler = container.report_scheduler
        for license in await container.license_repository.list_current():
            try:
                await scheduler.schedule_report(
                    license.organization_id, period, export_format, frequency
                )
            except DomainException as e:
                self.stderr.write(
                    self.style.ERROR(f"{license.organization_id}: {e.code}: {e.message}")
                )
                return
        self.stdout.write(f"Scheduled {len(scheduler.list_schedules())} report(s)")

        if once:
            for schedule in scheduler.list_schedules():
                try:
                    path = await scheduler.generate_scheduled_report(schedule.organization_id)
                    self.stdout.write(f"  - {path}")
                except DomainException as e:
                    logger.error(
                        "Scheduled report failed",
                        extra={"organization_id": schedule.organization_id, "error": e.code},
                    )
            deleted = await scheduler.run_cleanup_cycle()
            self.stdout.write(f"Deleted {sum(len(p) for p in deleted.values())} report(s)")
            return

        await scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            await scheduler.shutdown()
