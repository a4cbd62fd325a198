"""
PaymentWebhookHandler.

Applies the authoritative provider state of a payment to the licenses.
"""
import logging
from datetime import timedelta
from typing import Optional

from django.core.cache import cache as default_cache

from activations.domain.services import FeatureActivationService
from core.domain.events import EventBus
from core.domain.exceptions import (
    InvalidPaymentIDError,
    PaymentAlreadyAppliedError,
    repository_failures,
)
from core.domain.value_objects import BillingPeriod, LicenseStatus
from core.infrastructure.locks import OrganizationLocks
from core.metrics import payment_webhooks_total
from licenses.application.commands.activate_license import ActivateLicenseCommand
from licenses.application.handlers.activate_license_handler import ActivateLicenseHandler
from licenses.domain.events import LicenseCanceled
from licenses.domain.renewal import RenewalManager
from licenses.ports.license_repository import LicenseRepository
from payments.application.commands.payment_commands import PaymentWebhookCommand
from payments.application.dto.payment_dto import PaymentWebhookResultDTO
from payments.application.services.notification_service import NotificationService
from payments.domain.payment import RENEWAL, Payment, PaymentStatus

logger = logging.getLogger(__name__)

PROCESSED_KEY = "payments:webhook:{payment_id}:{status}"
PROCESSED_TTL = int(timedelta(days=1).total_seconds())

# Actions reported back to the provider call
ACTIVATED = "activated"
RENEWED = "renewed"
ALREADY_APPLIED = "already_applied"
CANCELED = "canceled"
FAILURE_NOTIFIED = "failure_notified"
IGNORED = "ignored"
DUPLICATE = "duplicate"


class PaymentWebhookHandler:
    """
    Handler for PaymentWebhookCommand.

    The webhook only names a payment; its state is always fetched from the
    provider. A payment/status pair is processed once; repeats within a day
    are answered from the cache.
    """

    def __init__(
        self,
        provider,
        license_repository: LicenseRepository,
        activate_handler: ActivateLicenseHandler,
        renewal_manager: RenewalManager,
        activation_service: FeatureActivationService,
        locks: OrganizationLocks,
        notifications: NotificationService,
        event_bus: Optional[EventBus] = None,
        cache=None,
    ):
        self.provider = provider
        self.license_repository = license_repository
        self.activate_handler = activate_handler
        self.renewal_manager = renewal_manager
        self.activation_service = activation_service
        self.locks = locks
        self.notifications = notifications
        self.event_bus = event_bus
        self.cache = cache if cache is not None else default_cache

    async def handle(self, command: PaymentWebhookCommand) -> PaymentWebhookResultDTO:
        """
        Handle a payment webhook.

        Args:
            command: PaymentWebhookCommand

        Returns:
            PaymentWebhookResultDTO naming the action taken

        Raises:
            InvalidPaymentIDError: If the payment ID is empty
            PaymentNotFoundError: If the provider does not know the payment
            PaymentProviderError: If the provider cannot be reached
        """
        if not command.payment_id or not command.payment_id.strip():
            raise InvalidPaymentIDError("Payment ID is required")

        payment = await self.provider.get_payment(command.payment_id)
        payment_webhooks_total.labels(status=payment.status.value).inc()
        key = PROCESSED_KEY.format(payment_id=payment.id, status=payment.status.value)
        if await self.cache.aget(key):
            logger.info("Duplicate payment webhook", extra={"payment_id": payment.id})
            return self._result(payment, DUPLICATE)

        if payment.status == PaymentStatus.PAID:
            result = await self._apply_paid(payment)
        elif payment.status.is_failure:
            result = await self._apply_failed(payment)
        else:
            logger.info(
                "Payment not final yet",
                extra={"payment_id": payment.id, "status": payment.status.value},
            )
            return self._result(payment, IGNORED)

        await self.cache.aset(key, result.action, PROCESSED_TTL)
        return result

    def _result(
        self, payment: Payment, action: str, license_id: Optional[str] = None
    ) -> PaymentWebhookResultDTO:
        return PaymentWebhookResultDTO(
            payment_id=payment.id,
            status=payment.status.value,
            action=action,
            organization_id=payment.metadata.organization_id or None,
            license_id=license_id,
        )

    async def _apply_paid(self, payment: Payment) -> PaymentWebhookResultDTO:
        metadata = payment.metadata
        organization_id = metadata.organization_id
        duration = BillingPeriod.parse(metadata.billing_period).duration
        # Both paths re-check the current license under the organization lock
        try:
            if metadata.kind == RENEWAL:
                license = await self.renewal_manager.renew(
                    organization_id=organization_id,
                    payment_id=payment.id,
                    amount=payment.amount,
                    currency=payment.currency,
                    duration=duration,
                )
                action, license_id = RENEWED, str(license.id)
            else:
                dto = await self.activate_handler.handle(
                    ActivateLicenseCommand(
                        organization_id=organization_id,
                        payment_id=payment.id,
                        amount=payment.amount,
                        currency=payment.currency,
                        duration=duration,
                        features=list(metadata.features),
                        bundles=list(metadata.bundles),
                    )
                )
                action, license_id = ACTIVATED, str(dto.id)
        except PaymentAlreadyAppliedError as e:
            logger.info("Payment already applied", extra={"payment_id": payment.id})
            return self._result(payment, ALREADY_APPLIED, e.license_id)

        await self.notifications.notify_payment_success(metadata)
        return self._result(payment, action, license_id)

    async def _apply_failed(self, payment: Payment) -> PaymentWebhookResultDTO:
        metadata = payment.metadata
        organization_id = metadata.organization_id
        canceled = None
        if organization_id:
            async with self.locks.hold(organization_id):
                with repository_failures("load license"):
                    current = await self.license_repository.find_by_organization(organization_id)
                if (
                    current is not None
                    and current.payment_id == payment.id
                    and current.status != LicenseStatus.CANCELED
                ):
                    with repository_failures("save canceled license"):
                        canceled = await self.license_repository.save(current.cancel())
                    await self.activation_service.deactivate_all(organization_id)

        reason = f"Payment {payment.id} is {payment.status.value}."
        await self.notifications.notify_payment_failure(metadata, reason)
        if canceled is None:
            return self._result(payment, FAILURE_NOTIFIED)

        logger.warning(
            "License canceled after failed payment",
            extra={
                "organization_id": organization_id,
                "license_id": str(canceled.id),
                "payment_id": payment.id,
                "status": payment.status.value,
            },
        )
        if self.event_bus is not None:
            await self.event_bus.publish(
                LicenseCanceled(
                    organization_id=organization_id,
                    license_id=str(canceled.id),
                    payment_id=payment.id,
                    reason=f"payment {payment.status.value}",
                )
            )
        await self.notifications.notify_license_canceled(
            metadata, payment.id, payment.status.value
        )
        return self._result(payment, CANCELED, str(canceled.id))
