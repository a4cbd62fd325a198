"""
InitiatePaymentHandler.

Handler for InitiatePaymentCommand.
"""
import logging
from typing import Optional

from moneyed import Money

from core.domain.exceptions import (
    InvalidAmountError,
    LicenseNotFoundError,
    NoFeaturesOrBundlesError,
    ValidationError,
    repository_failures,
)
from core.domain.value_objects import BillingPeriod, validate_organization_id
from catalog.domain.currency import MINIMUM_PAYMENT_AMOUNT
from licenses.domain.pricing import PaymentValidator
from licenses.ports.license_repository import LicenseRepository
from payments.application.commands.payment_commands import InitiatePaymentCommand
from payments.application.dto.payment_dto import PaymentDTO
from payments.domain.payment import PURCHASE, RENEWAL, PaymentMetadata
from payments.ports.payment_provider import PaymentProvider

logger = logging.getLogger(__name__)


class InitiatePaymentHandler:
    """
    Handler for InitiatePaymentCommand.

    The charged amount is the catalog price of the license term. Renewals
    are priced from the organization's current license.
    """

    def __init__(
        self,
        provider: PaymentProvider,
        validator: PaymentValidator,
        license_repository: LicenseRepository,
        default_recipient: Optional[str] = None,
    ):
        self.provider = provider
        self.validator = validator
        self.license_repository = license_repository
        self.default_recipient = default_recipient

    async def handle(self, command: InitiatePaymentCommand) -> PaymentDTO:
        """
        Handle initiate payment command.

        Args:
            command: InitiatePaymentCommand

        Returns:
            PaymentDTO with the provider checkout URL

        Raises:
            InvalidOrganizationIDError: If the organization ID is empty or malformed
            NoFeaturesOrBundlesError: If a purchase names nothing
            InvalidBillingPeriodError: If the billing period is unknown
            LicenseNotFoundError: If a renewal has no license to renew
            InvalidAmountError: If the price is below the provider minimum
            PaymentProviderError: If the provider rejects the payment
        """
        validate_organization_id(command.organization_id)
        billing_period = BillingPeriod.parse(command.billing_period)

        if command.kind == RENEWAL:
            with repository_failures("load license"):
                license = await self.license_repository.find_by_organization(
                    command.organization_id
                )
            if license is None:
                raise LicenseNotFoundError(
                    f"No license found for organization {command.organization_id}"
                )
            features, bundles = sorted(license.features), sorted(license.bundles)
        elif command.kind == PURCHASE:
            if not command.features and not command.bundles:
                raise NoFeaturesOrBundlesError()
            features, bundles = list(command.features), list(command.bundles)
            catalog = self.validator.catalog
            covered = catalog.expand(features, bundles)
            catalog.validate_dependencies(covered, covered)
        else:
            raise ValidationError(f"Unknown payment kind: {command.kind}", code="INVALID_PAYMENT_KIND")

        pricing = self.validator.calculate_pricing(features, bundles, command.currency)
        minimum = Money(MINIMUM_PAYMENT_AMOUNT, pricing.total.currency)
        if pricing.total < minimum:
            raise InvalidAmountError(
                f"Payment amount {pricing.total} is below the minimum of {minimum}"
            )

        metadata = PaymentMetadata(
            organization_id=command.organization_id,
            features=tuple(features),
            bundles=tuple(bundles),
            billing_period=billing_period.value,
            kind=command.kind,
            recipient=command.recipient or self.default_recipient,
        )
        description = (
            f"Enterprise license {command.kind} for {command.organization_id} "
            f"({billing_period.value})"
        )
        response = await self.provider.create_payment(
            pricing.total_amount, pricing.currency, description, metadata
        )
        logger.info(
            "Payment initiated",
            extra={
                "organization_id": command.organization_id,
                "payment_id": response.id,
                "kind": command.kind,
                "amount": str(pricing.total_amount),
                "currency": pricing.currency,
            },
        )
        return PaymentDTO(
            payment_id=response.id,
            status=response.status.value,
            amount=pricing.total_amount,
            currency=pricing.currency,
            checkout_url=response.redirect_url,
        )
