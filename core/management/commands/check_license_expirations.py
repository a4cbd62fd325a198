"""
Django management command to check and mark expired licenses.

This command should be run periodically (e.g., via cron or scheduled task).
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from core.container import get_container
from core.domain.exceptions import DomainException
from core.tasks import notify_renewals_due

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to check and mark expired licenses."""

    help = "Mark overdue licenses as expired and send renewal notifications"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - don't actually update licenses",
        )
        parser.add_argument(
            "--skip-notifications",
            action="store_true",
            help="Do not send renewal notifications",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        dry_run = options["dry_run"]
        container = get_container()

        try:
            licenses = async_to_sync(container.expire_licenses_handler.handle)(dry_run=dry_run)
        except DomainException as e:
            logger.error("License expiration check failed", extra={"error": e.code})
            self.stderr.write(self.style.ERROR(f"{e.code}: {e.message}"))
            return

        if dry_run:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            self.stdout.write(f"Found {len(licenses)} expired license(s)")
            for license in licenses[:10]:
                self.stdout.write(
                    f"  - Organization {license.organization_id} expired at {license.expires_at}"
                )
            return

        self.stdout.write(
            # pylint: disable=no-member
            self.style.SUCCESS(f"Successfully marked {len(licenses)} license(s) as expired")
        )

        if options["skip_notifications"]:
            return
        sent = async_to_sync(notify_renewals_due)(container)
        self.stdout.write(f"Sent {sent} renewal notification(s)")
