"""
Unit tests for Celery tasks and management commands.
"""

from io import StringIO

import pytest
from asgiref.sync import async_to_sync
from django.core import mail
from django.core.management import call_command

from core.container import set_container
from core.domain.value_objects import LicenseStatus
from core.tasks import (
    expire_overdue_licenses_task,
    notify_renewals_due,
    send_notification_email_task,
)


@pytest.fixture
def installed_container(container):
    """Install the in-memory container as the process container."""
    set_container(container)
    yield container
    set_container(None)


class TestNotificationTasks:
    """Tests for notification tasks."""

    def test_send_notification_email(self):
        """Test the task delivers one mail."""
        send_notification_email_task.apply(
            args=["billing@example.com", "Renewal", "Please renew"]
        ).get()

        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == ["billing@example.com"]
        assert mail.outbox[0].subject == "Renewal"

    @pytest.mark.asyncio
    async def test_notify_renewals_due(self, container, store_license, notification_sink):
        """Test only licenses inside the notice window are notified."""
        await store_license(organization_id="soon", days=5)
        await store_license(organization_id="later", days=20)
        await store_license(organization_id="far", days=90)

        sent = await notify_renewals_due(container)

        assert sent == 2
        subjects = [subject for _, subject, _ in notification_sink.messages]
        assert subjects == [
            "Enterprise License Renewal (high)",
            "Enterprise License Renewal (low)",
        ]

    @pytest.mark.asyncio
    async def test_notify_renewals_respects_notice_days(self, container, store_license):
        container.config["RENEWAL_NOTICE_DAYS"] = 7
        await store_license(organization_id="soon", days=5)
        await store_license(organization_id="later", days=20)

        assert await notify_renewals_due(container) == 1


class TestExpireTask:
    """Tests for the expiration task."""

    def test_expire_overdue_licenses(self, installed_container, store_license, clock):
        """Test the task expires overdue licenses."""
        async_to_sync(store_license)(organization_id="org1", days=1)
        clock.advance(days=2)

        assert expire_overdue_licenses_task.apply().get() == 1

        license = async_to_sync(installed_container.license_repository.find_by_organization)(
            "org1"
        )
        assert license.status == LicenseStatus.EXPIRED


class TestCheckLicenseExpirationsCommand:
    """Tests for check_license_expirations command."""

    def test_dry_run_changes_nothing(self, installed_container, store_license, clock):
        async_to_sync(store_license)(organization_id="org1", days=1)
        clock.advance(days=2)
        out = StringIO()

        call_command("check_license_expirations", "--dry-run", stdout=out)

        assert "DRY RUN" in out.getvalue()
        assert "Found 1 expired license(s)" in out.getvalue()
        license = async_to_sync(installed_container.license_repository.find_by_organization)(
            "org1"
        )
        assert license.status == LicenseStatus.ACTIVE

    def test_marks_and_notifies(self, installed_container, store_license, clock, notification_sink):
        """Test expired licenses are marked and due renewals notified."""
        async_to_sync(store_license)(organization_id="org1", days=1)
        async_to_sync(store_license)(organization_id="org2", days=10)
        clock.advance(days=2)
        out = StringIO()

        call_command("check_license_expirations", stdout=out)

        assert "Successfully marked 1 license(s) as expired" in out.getvalue()
        assert "Sent 2 renewal notification(s)" in out.getvalue()
        assert len(notification_sink.messages) == 2

    def test_skip_notifications(self, installed_container, notification_sink):
        out = StringIO()

        call_command("check_license_expirations", "--skip-notifications", stdout=out)

        assert "Successfully marked 0 license(s) as expired" in out.getvalue()
        assert notification_sink.messages == []


class TestRunReportSchedulerCommand:
    """Tests for run_report_scheduler command."""

    def test_once_generates_reports(self, installed_container, store_license):
        """Test --once schedules, generates and cleans up, then exits."""
        async_to_sync(store_license)(organization_id="org1")
        async_to_sync(store_license)(organization_id="org2")
        out = StringIO()

        call_command("run_report_scheduler", "--once", "--format", "csv", stdout=out)

        output = out.getvalue()
        assert "Scheduled 2 report(s)" in output
        assert output.count(".csv") == 2
        assert "Deleted 0 report(s)" in output
        stored = async_to_sync(installed_container.report_storage.list)("org1")
        assert len(stored) == 1
