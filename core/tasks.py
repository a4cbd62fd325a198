"""
Celery tasks for background processing.

Tasks for notification delivery and periodic license maintenance.
"""
import logging

from asgiref.sync import async_to_sync
from django.conf import settings
from django.core.mail import send_mail

from EnterpriseEntitlementService.celery import app

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def send_notification_email_task(self, recipient: str, subject: str, body: str):
    """
    Celery task for notification email delivery.

    Args:
        recipient: Email address
        subject: Mail subject
        body: Plain text body
    """
    try:
        send_mail(
            subject,
            body,
            settings.ENTITLEMENTS.get("NOTIFICATION_FROM_EMAIL", "billing@localhost"),
            [recipient],
        )
    except Exception as exc:
        logger.error(
            "Notification delivery failed",
            extra={"recipient": recipient, "subject": subject, "error": str(exc)},
        )
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)


@app.task
def expire_overdue_licenses_task() -> int:
    """
    Mark every overdue active license as expired.

    Returns:
        Number of licenses expired
    """
    from core.container import get_container

    expired = async_to_sync(get_container().expire_licenses_handler.handle)()
    logger.info("Overdue licenses expired", extra={"count": len(expired)})
    return len(expired)


@app.task
def send_renewal_notifications_task() -> int:
    """
    Notify billing contacts about licenses due for renewal.

    Returns:
        Number of notifications sent
    """
    from core.container import get_container

    sent = async_to_sync(notify_renewals_due)(get_container())
    logger.info("Renewal notifications sent", extra={"count": sent})
    return sent


async def notify_renewals_due(container) -> int:
    """
    Send one renewal notification per license due for renewal.

    Licenses further from expiry than RENEWAL_NOTICE_DAYS are skipped.
    """
    notice_days = int(container.config.get("RENEWAL_NOTICE_DAYS", 30))
    notifications = await container.resolver.get_renewal_notifications()
    sent = 0
    for notification in notifications:
        if notification.days_until_expiry > notice_days:
            continue
        if await container.notifications.notify_renewal_due(notification):
            sent += 1
    return sent
