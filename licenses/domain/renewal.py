"""
License renewal.

Renewal replaces an organization's license with a new record funded by a
new payment. Bulk renewal funds several organizations from one payment:
the funding check covers the whole batch, the renewals themselves do not.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from django.utils import timezone
from moneyed import Money

from core.domain.events import EventBus
from core.domain.exceptions import (
    DomainException,
    InsufficientPaymentError,
    InvalidAmountError,
    InvalidDurationError,
    InvalidPaymentIDError,
    LicenseNotFoundError,
    PaymentAlreadyAppliedError,
    repository_failures,
)
from core.domain.value_objects import validate_organization_id
from core.infrastructure.locks import OrganizationLocks
from core.metrics import bulk_renewals_total
from licenses.domain.events import LicenseRenewed
from licenses.domain.license import License
from licenses.domain.pricing import PaymentValidator
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


@dataclass
class BulkRenewalResult:
    """Per-organization outcome of a bulk renewal."""

    currency: str
    total_required: Decimal = Decimal("0.00")
    succeeded: Dict[str, License] = field(default_factory=dict)
    failed: Dict[str, DomainException] = field(default_factory=dict)


class RenewalManager:
    """
    Domain service renewing licenses.

    Writes for one organization are serialized through the shared
    organization locks, the same ones activation uses.
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        validator: PaymentValidator,
        locks: OrganizationLocks,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        self.license_repository = license_repository
        self.validator = validator
        self.locks = locks
        self.event_bus = event_bus
        self.clock = clock

    async def _load(self, organization_id: str) -> Optional[License]:
        with repository_failures("load license"):
            return await self.license_repository.find_by_organization(organization_id)

    def _validate_request(self, payment_id: str, currency: str, duration: timedelta) -> str:
        if not payment_id or not payment_id.strip():
            raise InvalidPaymentIDError("Payment ID is required")
        if duration is None or duration <= timedelta(0):
            raise InvalidDurationError("Renewal duration must be positive")
        return self.validator.catalog.converter.normalize(currency)

    async def renew(
        self,
        organization_id: str,
        payment_id: str,
        amount: Decimal,
        currency: str,
        duration: timedelta,
    ) -> License:
        """
        Renew an organization's license.

        Args:
            organization_id: Organization ID
            payment_id: Payment funding the renewal
            amount: Paid amount
            currency: Currency of the payment
            duration: New validity period, starting now

        Returns:
            The replacement License

        Raises:
            InvalidOrganizationIDError: If the organization ID is empty or malformed
            InvalidPaymentIDError: If the payment ID is empty
            InvalidDurationError: If the duration is not positive
            InvalidCurrencyError: If the currency is unsupported
            InvalidAmountError: If the amount is not positive or overpays
            LicenseNotFoundError: If the organization has no license
            InsufficientPaymentError: If the amount is below the price
            PaymentAlreadyAppliedError: If the payment already funds the current license
        """
        validate_organization_id(organization_id)
        code = self._validate_request(payment_id, currency, duration)
        if amount is None or Decimal(amount) <= 0:
            raise InvalidAmountError("Renewal amount must be positive")

        async with self.locks.hold(organization_id):
            current = await self._load(organization_id)
            if current is None:
                raise LicenseNotFoundError(f"No license found for organization {organization_id}")
            renewed = await self._replace(current, payment_id, Decimal(amount), code, duration)

        await self._publish_renewed(current, renewed)
        return renewed

    async def _replace(
        self,
        current: License,
        payment_id: str,
        amount: Decimal,
        currency: str,
        duration: timedelta,
    ) -> License:
        if current.payment_id == payment_id:
            raise PaymentAlreadyAppliedError(
                f"Payment {payment_id} already funds license {current.id}",
                license_id=str(current.id),
            )
        self.validator.validate_payment(amount, currency, current.features, current.bundles)
        renewed = current.renew(
            payment_id=payment_id,
            currency=currency,
            amount=amount,
            duration=duration,
            now=self.clock(),
        )
        self.validator.validate_license_payment(renewed)
        with repository_failures("save renewed license"):
            saved = await self.license_repository.save(renewed)
        logger.info(
            "License renewed",
            extra={
                "organization_id": current.organization_id,
                "license_id": str(saved.id),
                "previous_license_id": str(current.id),
                "payment_id": payment_id,
                "expires_at": saved.expires_at.isoformat(),
            },
        )
        return saved

    async def _publish_renewed(self, previous: License, renewed: License) -> None:
        if self.event_bus is None:
            return
        await self.event_bus.publish(
            LicenseRenewed(
                organization_id=renewed.organization_id,
                license_id=str(renewed.id),
                previous_license_id=str(previous.id),
                payment_id=renewed.payment_id,
                currency=renewed.currency,
                amount=str(renewed.amount),
                expires_at=renewed.expires_at,
            )
        )

    async def renew_bulk(
        self,
        organization_ids: Iterable[str],
        payment_id: str,
        total_amount: Decimal,
        currency: str,
        duration: timedelta,
    ) -> BulkRenewalResult:
        """
        Renew several organizations from a single payment.

        Phase one prices every existing organization; if the payment does
        not cover the sum, nothing is renewed. Phase two renews each
        organization with its own price. A failure in phase two is
        recorded and does not undo earlier renewals.

        Args:
            organization_ids: Organizations to renew; duplicates are ignored
            payment_id: Payment funding the batch
            total_amount: Paid amount for the whole batch
            currency: Currency of the payment
            duration: New validity period for every license

        Returns:
            BulkRenewalResult with succeeded and failed organizations

        Raises:
            InvalidPaymentIDError: If the payment ID is empty
            InvalidDurationError: If the duration is not positive
            InvalidCurrencyError: If the currency is unsupported
            InvalidAmountError: If the total amount is not positive
            InsufficientPaymentError: If the total does not cover the batch
        """
        code = self._validate_request(payment_id, currency, duration)
        if total_amount is None or Decimal(total_amount) <= 0:
            raise InvalidAmountError("Bulk renewal amount must be positive")

        ordered: List[str] = list(dict.fromkeys(organization_ids))
        result = BulkRenewalResult(currency=code)
        required: Dict[str, Money] = {}

        for organization_id in ordered:
            try:
                validate_organization_id(organization_id)
                license = await self._load(organization_id)
            except DomainException as exc:
                result.failed[organization_id] = exc
                continue
            if license is None:
                result.failed[organization_id] = LicenseNotFoundError(
                    f"No license found for organization {organization_id}"
                )
                continue
            try:
                pricing = self.validator.calculate_pricing(license.features, license.bundles, code)
            except DomainException as exc:
                result.failed[organization_id] = exc
                continue
            required[organization_id] = pricing.total

        converter = self.validator.catalog.converter
        required_total = sum(required.values(), converter.money("0.00", code))
        result.total_required = required_total.amount
        if converter.money(total_amount, code) < required_total:
            bulk_renewals_total.labels(outcome="underfunded").inc(len(ordered))
            raise InsufficientPaymentError(
                f"Bulk payment of {total_amount} {code} is below the required "
                f"{result.total_required} {code}"
            )

        for organization_id, price in required.items():
            try:
                async with self.locks.hold(organization_id):
                    current = await self._load(organization_id)
                    if current is None:
                        raise LicenseNotFoundError(
                            f"No license found for organization {organization_id}"
                        )
                    renewed = await self._replace(current, payment_id, price.amount, code, duration)
            except DomainException as exc:
                result.failed[organization_id] = exc
                logger.warning(
                    "Bulk renewal failed for organization",
                    extra={"organization_id": organization_id, "error": exc.code},
                )
                continue
            result.succeeded[organization_id] = renewed
            await self._publish_renewed(current, renewed)

        bulk_renewals_total.labels(outcome="succeeded").inc(len(result.succeeded))
        bulk_renewals_total.labels(outcome="failed").inc(len(result.failed))
        logger.info(
            "Bulk renewal completed",
            extra={
                "payment_id": payment_id,
                "succeeded": sorted(result.succeeded),
                "failed": sorted(result.failed),
                "total_required": str(result.total_required),
            },
        )
        return result
