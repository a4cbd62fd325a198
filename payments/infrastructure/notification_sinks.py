"""
NotificationSink adapters.
"""
import logging

from asgiref.sync import sync_to_async
from django.core.mail import send_mail

from payments.ports.notification_sink import NotificationSink

logger = logging.getLogger(__name__)


class EmailNotificationSink(NotificationSink):
    """Sends notifications with Django's mail framework."""

    def __init__(self, from_email: str):
        self.from_email = from_email

    async def notify(self, recipient: str, subject: str, body: str) -> None:
        await sync_to_async(send_mail, thread_sensitive=False)(
            subject, body, self.from_email, [recipient], fail_silently=False
        )
        logger.info("Notification sent", extra={"recipient": recipient, "subject": subject})


class CeleryNotificationSink(NotificationSink):
    """Queues notifications for delivery by a Celery worker."""

    async def notify(self, recipient: str, subject: str, body: str) -> None:
        from core.tasks import send_notification_email_task

        send_notification_email_task.delay(recipient, subject, body)
        logger.debug("Notification queued", extra={"recipient": recipient, "subject": subject})
