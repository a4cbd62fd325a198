"""
Notification service.

Formats payment and license messages and hands them to a NotificationSink.
Delivery failures are logged and counted, never raised to the caller.
"""
import logging
from typing import Iterable, Optional

from core.metrics import notifications_failed_total
from licenses.domain.resolver import RenewalNotification
from payments.domain.payment import PaymentMetadata
from payments.ports.notification_sink import NotificationSink

logger = logging.getLogger(__name__)

PAYMENT_SUCCESS_SUBJECT = "Payment Successful - Enterprise Features Activated"
PAYMENT_SUCCESS_BODY = """Your payment has been processed successfully. The following items have been activated for your organization:

Features: {features}
Bundles: {bundles}
Billing period: {billing_period}

You can start using these features immediately. For assistance, please refer to our documentation or contact support."""

PAYMENT_FAILURE_SUBJECT = "Payment Processing Issue"
PAYMENT_FAILURE_BODY = """We encountered an issue processing your payment for enterprise features:

Requested Features: {features}
Requested Bundles: {bundles}

{reason}

Please try again or contact support if the issue persists."""

LICENSE_CANCELED_SUBJECT = "Enterprise License Canceled"
LICENSE_CANCELED_BODY = """The enterprise license of organization {organization_id} was canceled because its payment {payment_id} was not completed ({status}).

All enterprise features have been deactivated. Purchase a new license to restore access."""

RENEWAL_SUBJECT = "Enterprise License Renewal ({priority})"


def format_list(items: Iterable[str]) -> str:
    items = list(items)
    if not items:
        return "None"
    return "- " + "\n- ".join(items)


class NotificationService:
    """Sends customer-facing notifications."""

    def __init__(self, sink: NotificationSink, default_recipient: Optional[str] = None):
        self.sink = sink
        self.default_recipient = default_recipient

    async def send(self, recipient: Optional[str], subject: str, body: str) -> bool:
        """
        Deliver one notification.

        Returns:
            True if the sink accepted the message
        """
        target = recipient or self.default_recipient
        if not target:
            logger.warning("Notification dropped: no recipient", extra={"subject": subject})
            return False
        try:
            await self.sink.notify(target, subject, body)
        except Exception as e:
            notifications_failed_total.inc()
            logger.error(
                f"Notification delivery failed: {e}",
                extra={"recipient": target, "subject": subject},
                exc_info=True,
            )
            return False
        return True

    async def notify_payment_success(self, metadata: PaymentMetadata) -> bool:
        body = PAYMENT_SUCCESS_BODY.format(
            features=format_list(metadata.features),
            bundles=format_list(metadata.bundles),
            billing_period=metadata.billing_period,
        )
        return await self.send(metadata.recipient, PAYMENT_SUCCESS_SUBJECT, body)

    async def notify_payment_failure(self, metadata: PaymentMetadata, reason: str) -> bool:
        body = PAYMENT_FAILURE_BODY.format(
            features=format_list(metadata.features),
            bundles=format_list(metadata.bundles),
            reason=reason,
        )
        return await self.send(metadata.recipient, PAYMENT_FAILURE_SUBJECT, body)

    async def notify_license_canceled(
        self, metadata: PaymentMetadata, payment_id: str, status: str
    ) -> bool:
        body = LICENSE_CANCELED_BODY.format(
            organization_id=metadata.organization_id, payment_id=payment_id, status=status
        )
        return await self.send(metadata.recipient, LICENSE_CANCELED_SUBJECT, body)

    async def notify_renewal_due(
        self, notification: RenewalNotification, recipient: Optional[str] = None
    ) -> bool:
        subject = RENEWAL_SUBJECT.format(priority=notification.priority.value)
        body = (
            f"Organization {notification.organization_id}: {notification.message}\n\n"
            f"Expiry: {notification.expires_at.isoformat()}"
        )
        return await self.send(recipient, subject, body)
